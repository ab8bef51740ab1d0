"""
models/expense.py
-----------------
Domain model for concrete expense transactions.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass
class Expense:
    """
    Represents a single expense.

    Attributes:
        user_id: Telegram user ID.
        amount: Transaction amount in the specified currency.
        currency: ISO currency code.
        category_id: Category the expense is filed under.
        description: Human-readable note.
        date: Date of the transaction.
        is_recurring: True when created by the recurring-expense job.
        id: Database primary key (None for new records).
        created_at: Timestamp when the record was created.
        category_name: Filled in on reads for display only.
    """
    user_id: int
    amount: Decimal
    currency: str
    category_id: int
    description: str
    date: date
    is_recurring: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    category_name: Optional[str] = None

    def __str__(self) -> str:
        tag = " (recurring)" if self.is_recurring else ""
        category = self.category_name or f"category #{self.category_id}"
        return f"-{self.amount:.2f} {self.currency} | {category} | {self.date}{tag}"
