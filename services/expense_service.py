"""
services/expense_service.py
----------------------------
Business logic for one-off expenses and spending summaries.
"""

import calendar
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from config import DEFAULT_CURRENCY, TIMEZONE
from models.expense import Expense
from repositories.category_repo import CategoryRepository
from repositories.expense_repo import ExpenseRepository
from repositories.user_repo import UserRepository
from services.date_rules import month_bounds
from utils.logger import get_logger
from utils.parsing import normalize_currency, parse_amount

logger = get_logger(__name__)


class ExpenseService:
    """
    Handles expenses entered by hand and the summaries built on them.

    Summaries mirror the two aggregate views of the app: spending by
    category over a month and spending by month over a year.
    """

    def __init__(
        self,
        repo: Optional[ExpenseRepository] = None,
        category_repo: Optional[CategoryRepository] = None,
        user_repo: Optional[UserRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repo = repo or ExpenseRepository()
        self.category_repo = category_repo or CategoryRepository()
        self.user_repo = user_repo or UserRepository()
        self.clock = clock or (lambda: datetime.now(TIMEZONE))

    def add(
        self,
        user_id: int,
        amount,
        category_name: str,
        description: str,
        expense_date: Optional[date] = None,
        currency: Optional[str] = None,
    ) -> Expense:
        """
        Validate and save a single expense.

        Raises:
            ValueError: Unknown category, empty description, bad amount/currency.
        """
        description = (description or "").strip()
        if not description:
            raise ValueError("Description is required.")

        category = self.category_repo.find_by_name(user_id, category_name)
        if category is None:
            raise ValueError(f"Unknown category: {category_name!r}. Send /categories to list them.")

        if currency:
            currency = normalize_currency(currency)
        else:
            user = self.user_repo.get_by_telegram_id(user_id)
            currency = user.base_currency if user else DEFAULT_CURRENCY

        expense = Expense(
            user_id=user_id,
            amount=parse_amount(amount),
            currency=currency,
            category_id=category.id,
            description=description,
            date=expense_date or self.clock().date(),
        )
        saved = self.repo.add(expense)
        saved.category_name = category.name
        return saved

    def delete(self, expense_id: int, user_id: int) -> bool:
        return self.repo.delete(expense_id, user_id)

    def get_month_summary(self, user_id: int, year: Optional[int] = None, month: Optional[int] = None) -> str:
        """Spending by category for one month (defaults to the current one)."""
        today = self.clock().date()
        start, end = month_bounds(date(year or today.year, month or today.month, 1))

        rows = self.repo.get_category_totals(user_id, start, end)
        if not rows:
            return f"📭 No expenses in {start:%B %Y}."

        grand_total = sum((Decimal(r["total"]) for r in rows), Decimal("0"))
        lines = [f"📊 {start:%B %Y}: {grand_total:.2f} total\n"]
        for r in rows:
            name = self.category_repo.get_name(r["category_id"]) or f"#{r['category_id']}"
            pct = r["total"] / grand_total * 100 if grand_total else 0
            lines.append(f"  • {name}: {r['total']:.2f} ({pct:.0f}%, {r['count']} items)")
        return "\n".join(lines)

    def get_year_summary(self, user_id: int, year: Optional[int] = None) -> str:
        """Spending per month for one year (defaults to the current one)."""
        year = year or self.clock().date().year
        rows = self.repo.get_monthly_totals(user_id, year)
        if not rows:
            return f"📭 No expenses in {year}."

        grand_total = sum((Decimal(r["total"]) for r in rows), Decimal("0"))
        lines = [f"📆 {year}: {grand_total:.2f} total\n"]
        for r in rows:
            lines.append(
                f"  • {calendar.month_abbr[r['month']]}: {r['total']:.2f} ({r['count']} items)"
            )
        return "\n".join(lines)
