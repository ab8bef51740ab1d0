"""
repositories/user_repo.py
--------------------------
Data access layer for user records.
"""

from typing import Optional

from config import DEFAULT_CURRENCY
from db.connection import cursor
from models.user import User
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "telegram_id, first_name, email, base_currency, monthly_income"


class UserRepository:
    """Repository for CRUD operations on the users table."""

    def ensure_user(self, telegram_id: int, first_name: Optional[str] = None) -> User:
        """
        Insert a user if they don't exist, or return the existing record.
        Uses PostgreSQL's ON CONFLICT (upsert) for atomicity.
        """
        sql = f"""
            INSERT INTO users (telegram_id, first_name, base_currency)
            VALUES (%s, %s, %s)
            ON CONFLICT (telegram_id) DO UPDATE
                SET first_name = COALESCE(EXCLUDED.first_name, users.first_name)
            RETURNING {_COLUMNS};
        """
        with cursor() as cur:
            cur.execute(sql, (telegram_id, first_name, DEFAULT_CURRENCY))
            return self._row_to_user(cur.fetchone())

    def get_by_telegram_id(self, telegram_id: int) -> Optional[User]:
        """Fetch a user by their Telegram ID."""
        sql = f"SELECT {_COLUMNS} FROM users WHERE telegram_id = %s;"
        with cursor() as cur:
            cur.execute(sql, (telegram_id,))
            row = cur.fetchone()
            return self._row_to_user(row) if row else None

    def get_all(self) -> list[User]:
        """Every registered user; used by the weekly alert job."""
        with cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY telegram_id;")
            return [self._row_to_user(r) for r in cur.fetchall()]

    def update_preferences(
        self,
        telegram_id: int,
        email: Optional[str] = None,
        base_currency: Optional[str] = None,
    ) -> bool:
        """Set the alert email and/or base currency; unspecified fields are kept."""
        sql = """
            UPDATE users
            SET email = COALESCE(%s, email),
                base_currency = COALESCE(%s, base_currency)
            WHERE telegram_id = %s;
        """
        with cursor() as cur:
            cur.execute(sql, (email, base_currency, telegram_id))
            updated = cur.rowcount > 0
        if updated:
            logger.info(f"Updated preferences for user {telegram_id}")
        return updated

    @staticmethod
    def _row_to_user(row: tuple) -> User:
        return User(
            telegram_id=row[0],
            first_name=row[1],
            email=row[2],
            base_currency=row[3],
            monthly_income=row[4],
        )
