"""Shared Postgres connection pool and schema initialisation."""

from psycopg_pool import ConnectionPool
from psycopg.rows import dict_row

from backend.core.config import settings
from backend.core.exceptions import StoreUnavailableError
from backend.core.logging import get_logger

logger = get_logger(__name__)

_pool: ConnectionPool | None = None


def get_pool() -> ConnectionPool:
    if _pool is None:
        raise StoreUnavailableError("DB pool not initialised, call open_pool() at startup")
    return _pool


def open_pool() -> None:
    global _pool
    _pool = ConnectionPool(
        settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        configure=_configure,
    )
    _pool.wait()  # block until min_size connections are ready


def _configure(conn) -> None:
    conn.row_factory = dict_row


def close_pool() -> None:
    global _pool
    if _pool:
        _pool.close()
        _pool = None


def db_ok() -> bool:
    """Cheap reachability probe used by the health check and the invoice routes."""
    try:
        with get_pool().connection() as conn:
            conn.execute("SELECT 1").fetchone()
        return True
    except Exception as e:
        logger.warning("db_unreachable", error=str(e))
        return False


def init_db() -> None:
    """Create all application tables. Idempotent, safe to call on every startup."""
    with get_pool().connection() as conn:
        # ── Users ────────────────────────────────────────────────────────────
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id           TEXT PRIMARY KEY,
                name         TEXT NOT NULL,
                address      TEXT,
                email        TEXT UNIQUE NOT NULL,
                phone_number TEXT,
                hashed_pw    TEXT NOT NULL,
                created_at   TIMESTAMPTZ NOT NULL,
                updated_at   TIMESTAMPTZ NOT NULL
            )
            """
        )

        # ── Customers ────────────────────────────────────────────────────────
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS customers (
                id           SERIAL PRIMARY KEY,
                user_id      TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                name         TEXT NOT NULL,
                address      TEXT,
                email        TEXT,
                phone_number TEXT,
                created_at   TIMESTAMPTZ NOT NULL,
                updated_at   TIMESTAMPTZ NOT NULL,
                deleted_at   TIMESTAMPTZ
            )
            """
        )

        # ── Invoices ─────────────────────────────────────────────────────────
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS invoices (
                id          SERIAL PRIMARY KEY,
                user_id     TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                customer_id INTEGER NOT NULL,
                start_date  TIMESTAMPTZ NOT NULL,
                end_date    TIMESTAMPTZ NOT NULL,
                total_sum   NUMERIC NOT NULL DEFAULT 0,
                comment     TEXT,
                status      TEXT NOT NULL DEFAULT 'Created',
                created_at  TIMESTAMPTZ NOT NULL,
                updated_at  TIMESTAMPTZ NOT NULL,
                deleted_at  TIMESTAMPTZ
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS invoice_rows (
                invoice_id INTEGER NOT NULL
                    REFERENCES invoices(id) ON DELETE CASCADE,
                position   INTEGER NOT NULL,
                service    TEXT NOT NULL,
                unit_price NUMERIC NOT NULL,
                quantity   NUMERIC NOT NULL,
                line_sum   NUMERIC NOT NULL,
                PRIMARY KEY (invoice_id, position)
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_invoices_user
                ON invoices(user_id, created_at)
            """
        )
    logger.info("db_schema_ready")
