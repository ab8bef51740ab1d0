"""
models/recurring.py
-------------------
Domain model for recurring expenses (rent, subscriptions, bills, ...).
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass
class RecurringExpense:
    """
    A template for a periodic expense, not a concrete transaction.

    Attributes:
        user_id: Telegram user ID of the owner.
        description: Human-readable label (e.g. 'Rent', 'Netflix').
        amount: Amount charged on each occurrence (> 0).
        currency: ISO 4217 code.
        category_id: Category every materialized expense is filed under.
        frequency: 'daily' | 'weekly' | 'monthly' | 'yearly'.
        start_date: Anchor of the rule; fixes weekday / day-of-month / month+day.
        next_occurrence: Next date an expense is due to be emitted.
        end_date: Optional last day; from this date on the rule no longer fires.
        id: Database primary key (None for new records).
        created_at: Timestamp when the record was created.
        category_name: Filled in on reads for display only.
    """
    user_id: int
    description: str
    amount: Decimal
    currency: str
    category_id: int
    frequency: str
    start_date: date
    next_occurrence: date
    end_date: Optional[date] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    category_name: Optional[str] = None

    def is_active(self, today: date) -> bool:
        """True while the rule may still fire on ``today``."""
        return self.end_date is None or self.end_date > today

    def __str__(self) -> str:
        until = f" until {self.end_date}" if self.end_date else ""
        return (
            f"#{self.id} {self.description}: {self.amount:.2f} {self.currency} "
            f"({self.frequency}{until}) - next: {self.next_occurrence}"
        )
