"""
repositories/expense_repo.py
-----------------------------
Data access layer for expense transactions.
All SQL queries related to the `expenses` table live here.
"""

from datetime import date
from typing import Optional

from db.connection import cursor
from models.expense import Expense
from utils.logger import get_logger

logger = get_logger(__name__)

_SELECT = """
    SELECT e.id, e.user_id, e.amount, e.currency, e.category_id, e.description,
           e.date, e.is_recurring, e.created_at, c.name
    FROM expenses e
    LEFT JOIN categories c ON c.id = e.category_id
"""


class ExpenseRepository:
    """Repository for CRUD operations on the expenses table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, expense: Expense) -> Expense:
        """
        Insert a new expense record.

        Returns:
            The same Expense with its `id` and `created_at` populated.
        """
        sql = """
            INSERT INTO expenses
                (user_id, amount, currency, category_id, description, date, is_recurring)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at;
        """
        with cursor() as cur:
            cur.execute(sql, (
                expense.user_id, expense.amount, expense.currency,
                expense.category_id, expense.description, expense.date,
                expense.is_recurring,
            ))
            expense.id, expense.created_at = cur.fetchone()
        logger.info(f"Added expense #{expense.id} for user {expense.user_id}")
        return expense

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, expense_id: int, user_id: int) -> Optional[Expense]:
        """Fetch a single expense by ID, scoped to a user."""
        sql = _SELECT + " WHERE e.id = %s AND e.user_id = %s;"
        with cursor() as cur:
            cur.execute(sql, (expense_id, user_id))
            row = cur.fetchone()
            return self._row_to_expense(row) if row else None

    def get_by_date_range(self, user_id: int, start: date, end: date) -> list[Expense]:
        """
        Fetch all expenses of a user within a date range.

        Args:
            start: Start date (inclusive).
            end: End date (inclusive).

        Returns:
            List of Expense objects ordered by date descending.
        """
        sql = _SELECT + """
            WHERE e.user_id = %s AND e.date BETWEEN %s AND %s
            ORDER BY e.date DESC, e.id DESC;
        """
        with cursor() as cur:
            cur.execute(sql, (user_id, start, end))
            return [self._row_to_expense(r) for r in cur.fetchall()]

    def get_category_totals(self, user_id: int, start: date, end: date) -> list[dict]:
        """
        Total spending grouped by category for a date range (inclusive).

        Returns:
            [{'category_id': int, 'total': Decimal, 'count': int}, ...],
            largest total first.
        """
        sql = """
            SELECT category_id, SUM(amount) AS total, COUNT(*) AS n
            FROM expenses
            WHERE user_id = %s AND date BETWEEN %s AND %s
            GROUP BY category_id
            ORDER BY total DESC;
        """
        with cursor() as cur:
            cur.execute(sql, (user_id, start, end))
            return [
                {"category_id": r[0], "total": r[1], "count": r[2]}
                for r in cur.fetchall()
            ]

    def get_monthly_totals(self, user_id: int, year: int) -> list[dict]:
        """
        Total spending per month of ``year``.

        Returns:
            [{'month': int, 'total': Decimal, 'count': int}, ...] ordered by month.
        """
        sql = """
            SELECT EXTRACT(MONTH FROM date)::int AS month, SUM(amount), COUNT(*)
            FROM expenses
            WHERE user_id = %s AND date BETWEEN %s AND %s
            GROUP BY month
            ORDER BY month;
        """
        with cursor() as cur:
            cur.execute(sql, (user_id, date(year, 1, 1), date(year, 12, 31)))
            return [
                {"month": r[0], "total": r[1], "count": r[2]}
                for r in cur.fetchall()
            ]

    # ── DELETE ────────────────────────────────────────────

    def delete(self, expense_id: int, user_id: int) -> bool:
        """
        Delete an expense by ID, scoped to a user.

        Returns:
            True if a row was deleted, False otherwise.
        """
        sql = "DELETE FROM expenses WHERE id = %s AND user_id = %s;"
        with cursor() as cur:
            cur.execute(sql, (expense_id, user_id))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info(f"Deleted expense #{expense_id} for user {user_id}")
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_expense(row: tuple) -> Expense:
        """Convert a database row tuple to an Expense domain object."""
        return Expense(
            id=row[0],
            user_id=row[1],
            amount=row[2],
            currency=row[3],
            category_id=row[4],
            description=row[5],
            date=row[6],
            is_recurring=row[7],
            created_at=row[8],
            category_name=row[9],
        )
