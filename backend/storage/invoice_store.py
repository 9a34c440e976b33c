"""Postgres storage for invoices and their line-item rows."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from psycopg import sql

from backend.core.db import get_pool
from backend.core.logging import get_logger
from backend.core.models import Invoice, InvoiceRow, InvoiceStatus, OrderBy

logger = get_logger(__name__)

_INVOICE_COLUMNS = (
    "i.id, i.user_id, i.customer_id, i.start_date, i.end_date, i.total_sum, "
    "i.comment, i.status, i.created_at, i.updated_at, i.deleted_at"
)

# Columns a partial edit may touch.
EDITABLE_FIELDS = ("customer_id", "start_date", "end_date", "comment", "status")

_SORT_COLUMNS = {
    "start_date": "start_date",
    "end_date": "end_date",
    "total_sum": "total_sum",
    "created_at": "created_at",
    "status": "status",
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _to_invoice(record: Dict[str, Any], rows: List[Dict[str, Any]]) -> Invoice:
    return Invoice(
        id=record["id"],
        user_id=record["user_id"],
        customer_id=record["customer_id"],
        start_date=record["start_date"],
        end_date=record["end_date"],
        total_sum=record["total_sum"],
        comment=record["comment"],
        status=InvoiceStatus(record["status"]),
        created_at=record["created_at"],
        updated_at=record["updated_at"],
        deleted_at=record["deleted_at"],
        rows=[
            InvoiceRow(service=r["service"], unit_price=r["unit_price"], quantity=r["quantity"])
            for r in rows
        ],
    )


class InvoiceStore:
    """Invoice persistence. Every read and write is scoped to one owner (``user_id``)."""

    def create(self, invoice: Invoice) -> Invoice:
        """Insert an invoice and its rows in one transaction."""
        now = _now()
        with get_pool().connection() as conn:
            record = conn.execute(
                f"""
                INSERT INTO invoices AS i
                    (user_id, customer_id, start_date, end_date, total_sum,
                     comment, status, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING {_INVOICE_COLUMNS}
                """,
                (
                    invoice.user_id,
                    invoice.customer_id,
                    invoice.start_date,
                    invoice.end_date,
                    invoice.total_sum,
                    invoice.comment,
                    invoice.status.value,
                    now,
                    now,
                ),
            ).fetchone()
            self._insert_rows(conn, record["id"], invoice.rows)

        logger.info("invoice_rows_inserted", invoice_id=record["id"], rows=len(invoice.rows))
        return _to_invoice(record, [row.model_dump() for row in invoice.rows])

    def get(self, invoice_id: int, user_id: str) -> Optional[Invoice]:
        """Return a live (not soft-deleted) invoice, or None."""
        with get_pool().connection() as conn:
            record = conn.execute(
                f"""
                SELECT {_INVOICE_COLUMNS} FROM invoices i
                WHERE i.id = %s AND i.user_id = %s AND i.deleted_at IS NULL
                """,
                (invoice_id, user_id),
            ).fetchone()
            if not record:
                return None
            rows = self._load_rows(conn, [invoice_id]).get(invoice_id, [])
        return _to_invoice(record, rows)

    def update(self, invoice_id: int, user_id: str, changes: Dict[str, Any]) -> Optional[Invoice]:
        """
        Overwrite the given columns and refresh ``updated_at``.

        Args:
            invoice_id: Invoice to edit
            user_id: Owner; invoices of other users are treated as missing
            changes: Column -> new value; keys must be in EDITABLE_FIELDS

        Returns:
            The edited invoice, or None when it does not exist
        """
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not editable: {sorted(unknown)}")

        values = {k: (v.value if isinstance(v, InvoiceStatus) else v) for k, v in changes.items()}
        values["updated_at"] = _now()
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder(column))
            for column in values
        )
        query = sql.SQL(
            "UPDATE invoices AS i SET {assignments} "
            "WHERE i.id = {id} AND i.user_id = {user_id} AND i.deleted_at IS NULL "
            "RETURNING " + _INVOICE_COLUMNS
        ).format(
            assignments=assignments,
            id=sql.Placeholder("invoice_id"),
            user_id=sql.Placeholder("owner_id"),
        )

        with get_pool().connection() as conn:
            record = conn.execute(
                query, {**values, "invoice_id": invoice_id, "owner_id": user_id}
            ).fetchone()
            if not record:
                return None
            rows = self._load_rows(conn, [invoice_id]).get(invoice_id, [])
        return _to_invoice(record, rows)

    def soft_delete(self, invoice_id: int, user_id: str) -> Optional[Invoice]:
        """Stamp ``deleted_at`` and return the invoice as it was before deletion."""
        before = self.get(invoice_id, user_id)
        if before is None:
            return None
        with get_pool().connection() as conn:
            conn.execute(
                "UPDATE invoices SET deleted_at = %s "
                "WHERE id = %s AND user_id = %s AND deleted_at IS NULL",
                (_now(), invoice_id, user_id),
            )
        return before

    def list(
        self,
        user_id: str,
        page: int,
        page_size: int,
        search: Optional[str] = None,
        order_by: Optional[OrderBy] = None,
    ) -> Tuple[List[Invoice], int]:
        """
        Return one page of live invoices and the total number of matches.

        ``search`` is a case-insensitive substring match on the comment, the
        status, the id, and the customer name.
        """
        conditions = [sql.SQL("i.user_id = %(user_id)s"), sql.SQL("i.deleted_at IS NULL")]
        params: Dict[str, Any] = {
            "user_id": user_id,
            "limit": page_size,
            "offset": (page - 1) * page_size,
        }
        if search:
            conditions.append(
                sql.SQL(
                    "(i.comment ILIKE %(pattern)s OR i.status ILIKE %(pattern)s "
                    "OR CAST(i.id AS TEXT) ILIKE %(pattern)s OR c.name ILIKE %(pattern)s)"
                )
            )
            params["pattern"] = f"%{_escape_like(search)}%"
        where = sql.SQL(" AND ").join(conditions)

        order_by = order_by or OrderBy.CREATED_AT_DESC
        ordering = sql.SQL("{} {}, i.id {}").format(
            sql.Identifier("i", _SORT_COLUMNS[order_by.column]),
            sql.SQL("DESC" if order_by.descending else "ASC"),
            sql.SQL("DESC" if order_by.descending else "ASC"),
        )
        base = sql.SQL(
            "FROM invoices i "
            "LEFT JOIN customers c ON c.id = i.customer_id AND c.user_id = i.user_id "
            "WHERE {}"
        ).format(where)

        with get_pool().connection() as conn:
            total = conn.execute(
                sql.SQL("SELECT COUNT(*) AS total {}").format(base), params
            ).fetchone()["total"]
            records = conn.execute(
                sql.SQL("SELECT " + _INVOICE_COLUMNS + " {} ORDER BY {} LIMIT %(limit)s OFFSET %(offset)s").format(
                    base, ordering
                ),
                params,
            ).fetchall()
            rows_by_invoice = self._load_rows(conn, [r["id"] for r in records])

        invoices = [_to_invoice(r, rows_by_invoice.get(r["id"], [])) for r in records]
        logger.debug("invoices_listed", user_id=user_id, page=page, count=len(invoices), total=total)
        return invoices, total

    # ── Rows ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _insert_rows(conn, invoice_id: int, rows: List[InvoiceRow]) -> None:
        for position, row in enumerate(rows):
            conn.execute(
                "INSERT INTO invoice_rows "
                "(invoice_id, position, service, unit_price, quantity, line_sum) "
                "VALUES (%s, %s, %s, %s, %s, %s)",
                (invoice_id, position, row.service, row.unit_price, row.quantity, row.sum),
            )

    @staticmethod
    def _load_rows(conn, invoice_ids: List[int]) -> Dict[int, List[Dict[str, Any]]]:
        if not invoice_ids:
            return {}
        records = conn.execute(
            "SELECT invoice_id, service, unit_price, quantity FROM invoice_rows "
            "WHERE invoice_id = ANY(%s) ORDER BY invoice_id, position",
            (invoice_ids,),
        ).fetchall()
        grouped: Dict[int, List[Dict[str, Any]]] = {}
        for record in records:
            grouped.setdefault(record["invoice_id"], []).append(record)
        return grouped
