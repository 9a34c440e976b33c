"""Postgres-backed user store."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from psycopg.errors import UniqueViolation

from backend.core.db import get_pool
from backend.core.exceptions import DuplicateEmailError

_PUBLIC_COLUMNS = "id, name, address, email, phone_number, created_at, updated_at"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserStore:
    """Manages user accounts. Emails are stored lower-cased and are unique."""

    def create_user(
        self,
        name: str,
        email: str,
        hashed_pw: str,
        address: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> dict:
        """Create a new user. Raises DuplicateEmailError if the email is taken."""
        user_id = str(uuid.uuid4())
        now = _now()
        email = email.strip().lower()
        try:
            with get_pool().connection() as conn:
                conn.execute(
                    "INSERT INTO users "
                    "(id, name, address, email, phone_number, hashed_pw, created_at, updated_at) "
                    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s)",
                    (user_id, name, address, email, phone_number, hashed_pw, now, now),
                )
        except UniqueViolation:
            raise DuplicateEmailError(email)
        return {
            "id": user_id,
            "name": name,
            "address": address,
            "email": email,
            "phone_number": phone_number,
            "created_at": now,
            "updated_at": now,
        }

    def get_by_email(self, email: str) -> dict | None:
        """Return the user including ``hashed_pw``; used by login only."""
        with get_pool().connection() as conn:
            row = conn.execute(
                f"SELECT {_PUBLIC_COLUMNS}, hashed_pw FROM users WHERE email = %s",
                (email.strip().lower(),),
            ).fetchone()
        return dict(row) if row else None

    def get_by_id(self, user_id: str, with_password: bool = False) -> dict | None:
        columns = f"{_PUBLIC_COLUMNS}, hashed_pw" if with_password else _PUBLIC_COLUMNS
        with get_pool().connection() as conn:
            row = conn.execute(
                f"SELECT {columns} FROM users WHERE id = %s",
                (user_id,),
            ).fetchone()
        return dict(row) if row else None

    def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        address: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> dict | None:
        """Overwrite only the fields that are given."""
        with get_pool().connection() as conn:
            row = conn.execute(
                f"""
                UPDATE users SET
                    name         = COALESCE(%s, name),
                    address      = COALESCE(%s, address),
                    phone_number = COALESCE(%s, phone_number),
                    updated_at   = %s
                WHERE id = %s
                RETURNING {_PUBLIC_COLUMNS}
                """,
                (name, address, phone_number, _now(), user_id),
            ).fetchone()
        return dict(row) if row else None

    def update_password(self, user_id: str, hashed_pw: str) -> None:
        with get_pool().connection() as conn:
            conn.execute(
                "UPDATE users SET hashed_pw = %s, updated_at = %s WHERE id = %s",
                (hashed_pw, _now(), user_id),
            )

    def delete_user(self, user_id: str) -> None:
        with get_pool().connection() as conn:
            conn.execute("DELETE FROM users WHERE id = %s", (user_id,))
