"""
utils/parsing.py
----------------
Parsing helpers for amounts, currency codes and dates typed by users.
All of them raise ValueError with a message fit to show back to the user.
"""

from datetime import date
from decimal import Decimal, InvalidOperation

_CENT = Decimal("0.01")


def parse_amount(value) -> Decimal:
    """Parse a positive money amount rounded to cents."""
    try:
        amount = Decimal(str(value).strip()).quantize(_CENT)
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if amount <= 0:
        raise ValueError("Amount must be at least 0.01.")
    return amount


def normalize_currency(code: str) -> str:
    """Upper-case a three-letter ISO 4217 code."""
    code = (code or "").strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"Invalid currency code: {code!r}")
    return code


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD date."""
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValueError(f"Invalid date {value.strip()!r}, expected YYYY-MM-DD.") from None
