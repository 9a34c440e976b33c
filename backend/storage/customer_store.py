"""Postgres storage for customers, the billed party of an invoice."""

from datetime import datetime, timezone
from typing import List, Optional

from backend.core.db import get_pool
from backend.core.models import Customer

_COLUMNS = "id, user_id, name, address, email, phone_number, created_at, updated_at, deleted_at"


class CustomerStore:
    """Customer CRUD, scoped per owning user."""

    def create(self, customer: Customer) -> Customer:
        now = datetime.now(timezone.utc)
        with get_pool().connection() as conn:
            record = conn.execute(
                f"""
                INSERT INTO customers
                    (user_id, name, address, email, phone_number, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING {_COLUMNS}
                """,
                (
                    customer.user_id,
                    customer.name,
                    customer.address,
                    customer.email,
                    customer.phone_number,
                    now,
                    now,
                ),
            ).fetchone()
        return Customer(**record)

    def get(self, customer_id: int, user_id: str) -> Optional[Customer]:
        with get_pool().connection() as conn:
            record = conn.execute(
                f"SELECT {_COLUMNS} FROM customers "
                "WHERE id = %s AND user_id = %s AND deleted_at IS NULL",
                (customer_id, user_id),
            ).fetchone()
        return Customer(**record) if record else None

    def list(self, user_id: str) -> List[Customer]:
        with get_pool().connection() as conn:
            records = conn.execute(
                f"SELECT {_COLUMNS} FROM customers "
                "WHERE user_id = %s AND deleted_at IS NULL ORDER BY created_at DESC",
                (user_id,),
            ).fetchall()
        return [Customer(**r) for r in records]
