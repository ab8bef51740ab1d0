"""
repositories/recurring_repo.py
-------------------------------
Data access layer for recurring expenses.
All SQL queries related to the `recurring_expenses` table live here.
"""

from datetime import date, timedelta
from typing import Optional

from db.connection import cursor
from models.recurring import RecurringExpense
from utils.logger import get_logger

logger = get_logger(__name__)

_SELECT = """
    SELECT r.id, r.user_id, r.description, r.amount, r.currency, r.category_id,
           r.frequency, r.start_date, r.end_date, r.next_occurrence, r.created_at,
           c.name
    FROM recurring_expenses r
    LEFT JOIN categories c ON c.id = r.category_id
"""


class RecurringRepository:
    """Repository for CRUD operations on the recurring_expenses table."""

    # ── CREATE ────────────────────────────────────────────

    def add(self, rule: RecurringExpense) -> RecurringExpense:
        """
        Insert a new recurring expense.

        Returns:
            The same object with its `id` and `created_at` populated.
        """
        sql = """
            INSERT INTO recurring_expenses
                (user_id, description, amount, currency, category_id,
                 frequency, start_date, end_date, next_occurrence)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at;
        """
        with cursor() as cur:
            cur.execute(sql, (
                rule.user_id, rule.description, rule.amount, rule.currency,
                rule.category_id, rule.frequency, rule.start_date,
                rule.end_date, rule.next_occurrence,
            ))
            rule.id, rule.created_at = cur.fetchone()
        logger.info(f"Added recurring expense '{rule.description}' #{rule.id}")
        return rule

    # ── READ ──────────────────────────────────────────────

    def get_all(self, user_id: int) -> list[RecurringExpense]:
        """Get all recurring expenses of a user, soonest first."""
        sql = _SELECT + " WHERE r.user_id = %s ORDER BY r.next_occurrence ASC, r.id ASC;"
        with cursor() as cur:
            cur.execute(sql, (user_id,))
            return [self._row_to_rule(r) for r in cur.fetchall()]

    def get_by_id(self, rule_id: int, user_id: int) -> Optional[RecurringExpense]:
        """Fetch a single recurring expense by ID, scoped to user."""
        sql = _SELECT + " WHERE r.id = %s AND r.user_id = %s;"
        with cursor() as cur:
            cur.execute(sql, (rule_id, user_id))
            row = cur.fetchone()
            return self._row_to_rule(row) if row else None

    def get_due(self, today: date) -> list[RecurringExpense]:
        """
        Rules due on ``today``: next_occurrence in [today, tomorrow) and
        end_date either unset or strictly after today.
        """
        sql = _SELECT + """
            WHERE r.next_occurrence >= %s AND r.next_occurrence < %s
              AND (r.end_date IS NULL OR r.end_date > %s)
            ORDER BY r.id ASC;
        """
        with cursor() as cur:
            cur.execute(sql, (today, today + timedelta(days=1), today))
            return [self._row_to_rule(r) for r in cur.fetchall()]

    def get_stale(self, today: date) -> list[RecurringExpense]:
        """Active rules whose next_occurrence slipped into the past."""
        sql = _SELECT + """
            WHERE r.next_occurrence < %s
              AND (r.end_date IS NULL OR r.end_date > %s)
            ORDER BY r.id ASC;
        """
        with cursor() as cur:
            cur.execute(sql, (today, today))
            return [self._row_to_rule(r) for r in cur.fetchall()]

    # ── UPDATE ────────────────────────────────────────────

    def update(self, rule: RecurringExpense) -> bool:
        """
        Overwrite every mutable field of a rule (last writer wins).

        Returns:
            True if a row was updated.
        """
        sql = """
            UPDATE recurring_expenses
            SET description = %s, amount = %s, currency = %s, category_id = %s,
                frequency = %s, start_date = %s, end_date = %s, next_occurrence = %s
            WHERE id = %s AND user_id = %s;
        """
        with cursor() as cur:
            cur.execute(sql, (
                rule.description, rule.amount, rule.currency, rule.category_id,
                rule.frequency, rule.start_date, rule.end_date,
                rule.next_occurrence, rule.id, rule.user_id,
            ))
            return cur.rowcount > 0

    def advance_next_occurrence(self, rule_id: int, current: date, new_date: date) -> bool:
        """
        Move next_occurrence from ``current`` to ``new_date`` only if it still
        equals ``current``. A False result means a concurrent run or a user
        edit changed the rule first.
        """
        sql = """
            UPDATE recurring_expenses SET next_occurrence = %s
            WHERE id = %s AND next_occurrence = %s;
        """
        with cursor() as cur:
            cur.execute(sql, (new_date, rule_id, current))
            moved = cur.rowcount > 0
        if moved:
            logger.info(f"Recurring #{rule_id} next occurrence {current} -> {new_date}")
        return moved

    # ── DELETE ────────────────────────────────────────────

    def delete(self, rule_id: int, user_id: int) -> bool:
        """Delete a recurring expense by ID, scoped to user."""
        sql = "DELETE FROM recurring_expenses WHERE id = %s AND user_id = %s;"
        with cursor() as cur:
            cur.execute(sql, (rule_id, user_id))
            deleted = cur.rowcount > 0
        if deleted:
            logger.info(f"Deleted recurring expense #{rule_id}")
        return deleted

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_rule(row: tuple) -> RecurringExpense:
        """Convert a database row tuple to a RecurringExpense domain object."""
        return RecurringExpense(
            id=row[0],
            user_id=row[1],
            description=row[2],
            amount=row[3],
            currency=row[4],
            category_id=row[5],
            frequency=row[6],
            start_date=row[7],
            end_date=row[8],
            next_occurrence=row[9],
            created_at=row[10],
            category_name=row[11],
        )
