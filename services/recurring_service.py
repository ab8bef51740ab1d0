"""
services/recurring_service.py
------------------------------
Business logic for creating, editing and listing recurring expenses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from config import DEFAULT_CURRENCY, TIMEZONE
from models.recurring import RecurringExpense
from repositories.category_repo import CategoryRepository
from repositories.recurring_repo import RecurringRepository
from repositories.user_repo import UserRepository
from services.date_rules import MONTHLY, compute_next_occurrence, validate_frequency
from utils.logger import get_logger
from utils.parsing import normalize_currency, parse_amount

logger = get_logger(__name__)

_UNSET = object()


class RecurringService:
    """
    Handles the lifecycle of recurring expenses.

    Responsibilities:
        - Validate new rules and compute their first next_occurrence.
        - Recompute next_occurrence when frequency or start date is edited.
        - Render a user's rules for chat.

    The scheduled firing of rules lives in MaterializationService.
    """

    def __init__(
        self,
        repo: Optional[RecurringRepository] = None,
        category_repo: Optional[CategoryRepository] = None,
        user_repo: Optional[UserRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repo = repo or RecurringRepository()
        self.category_repo = category_repo or CategoryRepository()
        self.user_repo = user_repo or UserRepository()
        self.clock = clock or (lambda: datetime.now(TIMEZONE))

    def _today(self) -> date:
        return self.clock().date()

    def _check_category(self, category_id: int, user_id: int) -> None:
        if self.category_repo.get_by_id(category_id, user_id) is None:
            raise ValueError(f"Category #{category_id} not found.")

    def _default_currency(self, user_id: int) -> str:
        user = self.user_repo.get_by_telegram_id(user_id)
        return user.base_currency if user and user.base_currency else DEFAULT_CURRENCY

    # ── CREATE ────────────────────────────────────────────

    def create(
        self,
        user_id: int,
        description: str,
        amount,
        frequency: str,
        category_id: int,
        start_date: date,
        end_date: Optional[date] = None,
        currency: Optional[str] = None,
    ) -> RecurringExpense:
        """
        Validate and persist a new recurring expense.

        Raises:
            InvalidFrequency: Unknown frequency.
            ValueError: Any other invalid field.
        """
        description = (description or "").strip()
        if not description:
            raise ValueError("Description is required.")
        validate_frequency(frequency)
        if end_date is not None and end_date < start_date:
            raise ValueError("End date must not be before the start date.")
        self._check_category(category_id, user_id)

        rule = RecurringExpense(
            user_id=user_id,
            description=description,
            amount=parse_amount(amount),
            currency=normalize_currency(currency) if currency else self._default_currency(user_id),
            category_id=category_id,
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            next_occurrence=compute_next_occurrence(frequency, start_date, self._today()),
        )
        return self.repo.add(rule)

    # ── READ ──────────────────────────────────────────────

    def resolve_category(self, user_id: int, name: str) -> int:
        """Category id for a name typed by the user; raises ValueError."""
        category = self.category_repo.find_by_name(user_id, name)
        if category is None:
            raise ValueError(f"Unknown category: {name!r}. Send /categories to list them.")
        return category.id

    def get(self, rule_id: int, user_id: int) -> Optional[RecurringExpense]:
        return self.repo.get_by_id(rule_id, user_id)

    def list_for_user(self, user_id: int) -> list[RecurringExpense]:
        return self.repo.get_all(user_id)

    def format_list(self, user_id: int) -> str:
        """Chat-friendly listing of a user's recurring expenses."""
        rules = self.repo.get_all(user_id)
        if not rules:
            return "📭 No recurring expenses yet."

        today = self._today()
        lines = ["🔁 Recurring expenses:\n"]
        monthly_totals: dict[str, Decimal] = {}
        for r in rules:
            status = "" if r.is_active(today) else " (ended)"
            category = r.category_name or f"#{r.category_id}"
            lines.append(
                f"  #{r.id} {r.description}: {r.amount:.2f} {r.currency} "
                f"({r.frequency}, {category}) - next: {r.next_occurrence}{status}"
            )
            if r.frequency == MONTHLY and r.is_active(today):
                monthly_totals[r.currency] = monthly_totals.get(r.currency, Decimal("0")) + r.amount

        for currency, total in sorted(monthly_totals.items()):
            lines.append(f"\n💶 Monthly commitments: {total:.2f} {currency}")
        return "\n".join(lines)

    # ── UPDATE ────────────────────────────────────────────

    def update(
        self,
        rule_id: int,
        user_id: int,
        *,
        description: Optional[str] = None,
        amount=None,
        currency: Optional[str] = None,
        category_id: Optional[int] = None,
        frequency: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date=_UNSET,
    ) -> Optional[RecurringExpense]:
        """
        Apply a user edit. ``end_date=None`` clears the end date; leaving it
        out keeps the current one.

        next_occurrence is recomputed from start_date, the same way as on
        creation, when the frequency changes or a start date is supplied.

        Returns:
            The updated rule, or None if it does not exist for this user.
        """
        rule = self.repo.get_by_id(rule_id, user_id)
        if rule is None:
            return None

        if description is not None:
            description = description.strip()
            if not description:
                raise ValueError("Description must not be empty.")
            rule.description = description
        if amount is not None:
            rule.amount = parse_amount(amount)
        if currency is not None:
            rule.currency = normalize_currency(currency)
        if category_id is not None and category_id != rule.category_id:
            self._check_category(category_id, user_id)
            rule.category_id = category_id

        recalculate = False
        if frequency is not None and frequency != rule.frequency:
            rule.frequency = validate_frequency(frequency)
            recalculate = True
        if start_date is not None:
            rule.start_date = start_date
            recalculate = True
        if end_date is not _UNSET:
            rule.end_date = end_date

        if rule.end_date is not None and rule.end_date < rule.start_date:
            raise ValueError("End date must not be before the start date.")

        if recalculate:
            rule.next_occurrence = compute_next_occurrence(
                rule.frequency, rule.start_date, self._today()
            )

        if not self.repo.update(rule):
            return None
        logger.info(f"Updated recurring expense #{rule_id} (next: {rule.next_occurrence})")
        return rule

    # ── DELETE ────────────────────────────────────────────

    def delete(self, rule_id: int, user_id: int) -> bool:
        """Delete a rule; expenses it already produced are kept."""
        return self.repo.delete(rule_id, user_id)
