"""
models/user.py
--------------
Domain model for bot users and their preferences.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class User:
    """A Telegram user; ``email`` receives the weekly budget digest."""
    telegram_id: int
    first_name: Optional[str] = None
    email: Optional[str] = None
    base_currency: str = "USD"
    monthly_income: Decimal = Decimal("0")
