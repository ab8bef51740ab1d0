"""
services/materialization_service.py
------------------------------------
Daily job that turns due recurring expenses into concrete expenses.

Delivery is at-most-once per occurrence: a rule's next_occurrence is
advanced with a compare-and-set *before* the expense is written. Two
overlapping runs (or a run racing a user edit) can therefore never both
fire the same occurrence; a failed expense write loses that single firing
and is logged.
"""

import threading
from datetime import date, datetime
from typing import Callable, Optional

from config import TIMEZONE
from models.expense import Expense
from models.recurring import RecurringExpense
from repositories.expense_repo import ExpenseRepository
from repositories.recurring_repo import RecurringRepository
from services.date_rules import advance_one_period, compute_next_occurrence
from utils.errors import BudgetError
from utils.logger import get_logger

logger = get_logger(__name__)

RECURRING_SUFFIX = " (Recurring)"


class MaterializationService:
    """Emits one Expense per due RecurringExpense and advances the rule."""

    def __init__(
        self,
        recurring_repo: Optional[RecurringRepository] = None,
        expense_repo: Optional[ExpenseRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.recurring_repo = recurring_repo or RecurringRepository()
        self.expense_repo = expense_repo or ExpenseRepository()
        self.clock = clock or (lambda: datetime.now(TIMEZONE))
        self._lock = threading.Lock()

    def run(self) -> dict:
        """
        Process every rule due today.

        Returns:
            Counts: 'due', 'created', 'failed', 'skipped', 'repaired';
            'running' is True when the call was dropped because another run
            still holds the job lock.
        """
        stats = {"due": 0, "created": 0, "failed": 0, "skipped": 0, "repaired": 0, "running": False}
        if not self._lock.acquire(blocking=False):
            logger.warning("Recurring expense job already running; skipping this trigger.")
            stats["running"] = True
            return stats

        try:
            today = self.clock().date()
            logger.info(f"Processing recurring expenses for {today}...")

            stats["repaired"] = self._repair_stale(today)

            try:
                due = self.recurring_repo.get_due(today)
            except BudgetError as e:
                logger.error(f"Could not load due recurring expenses: {e}")
                return stats

            stats["due"] = len(due)
            logger.info(f"Found {len(due)} recurring expenses due today")

            for rule in due:
                outcome = self._materialize(rule, today)
                stats[outcome] += 1

            logger.info(
                f"Recurring expenses done: {stats['created']} created, "
                f"{stats['skipped']} skipped, {stats['failed']} failed"
            )
            return stats
        finally:
            self._lock.release()

    def _materialize(self, rule: RecurringExpense, today: date) -> str:
        """Fire a single rule. Returns 'created', 'skipped' or 'failed'."""
        try:
            next_date = advance_one_period(rule.frequency, rule.next_occurrence, anchor=rule.start_date)
            claimed = self.recurring_repo.advance_next_occurrence(
                rule.id, rule.next_occurrence, next_date
            )
            if not claimed:
                logger.info(f"Recurring #{rule.id} changed since it was loaded; not firing.")
                return "skipped"

            expense = Expense(
                user_id=rule.user_id,
                amount=rule.amount,
                currency=rule.currency,
                category_id=rule.category_id,
                description=f"{rule.description}{RECURRING_SUFFIX}",
                date=today,
                is_recurring=True,
            )
            self.expense_repo.add(expense)
        except BudgetError as e:
            logger.error(f"Failed to process recurring expense #{rule.id}: {e}")
            return "failed"

        logger.info(f"Processed recurring expense #{rule.id} -> expense #{expense.id}")
        return "created"

    def _repair_stale(self, today: date) -> int:
        """
        Roll rules whose next_occurrence is already in the past (missed run,
        or a daily rule created after today's run) forward with the same rule
        used at creation time. Missed occurrences are not back-filled.
        """
        try:
            stale = self.recurring_repo.get_stale(today)
        except BudgetError as e:
            logger.error(f"Could not load stale recurring expenses: {e}")
            return 0

        repaired = 0
        for rule in stale:
            try:
                new_date = compute_next_occurrence(rule.frequency, rule.start_date, today)
                if self.recurring_repo.advance_next_occurrence(rule.id, rule.next_occurrence, new_date):
                    repaired += 1
                    logger.warning(
                        f"Recurring #{rule.id} was behind ({rule.next_occurrence}); moved to {new_date}"
                    )
            except BudgetError as e:
                logger.error(f"Failed to repair recurring expense #{rule.id}: {e}")
        return repaired
