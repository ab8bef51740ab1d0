"""
services/date_rules.py
----------------------
Calendar arithmetic for recurring expenses.

Two operations:
    compute_next_occurrence  - roll a rule's anchor forward to the first
                               occurrence on or after "today" (creation/edit).
    advance_one_period       - move an occurrence exactly one period ahead
                               (after the daily job fired it).

Days that do not exist in the target month are clamped to the month's last
day (Jan 31 -> Feb 28/29, Feb 29 -> Feb 28 in common years).
"""

from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from utils.errors import InvalidFrequency

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"

FREQUENCIES: tuple[str, ...] = (DAILY, WEEKLY, MONTHLY, YEARLY)

_PERIODS = {
    DAILY: relativedelta(days=1),
    WEEKLY: relativedelta(weeks=1),
    MONTHLY: relativedelta(months=1),
    YEARLY: relativedelta(years=1),
}


def validate_frequency(frequency: str) -> str:
    """
    Return ``frequency`` unchanged if known.

    Raises:
        InvalidFrequency: For anything outside FREQUENCIES.
    """
    if frequency not in _PERIODS:
        raise InvalidFrequency(frequency)
    return frequency


def compute_next_occurrence(frequency: str, anchor: date, today: date) -> date:
    """
    First occurrence of a rule on or after ``today``.

    Args:
        frequency: One of FREQUENCIES.
        anchor: The rule's start date; fixes weekday, day-of-month, month+day.
        today: Reference date.

    Returns:
        ``anchor`` itself when the rule has not started yet; otherwise:
          daily   -> today
          weekly  -> next date on anchor's weekday; a full week ahead when
                     today already is that weekday
          monthly -> anchor's day in today's month, or next month if passed
          yearly  -> anchor's month/day this year, or next year if passed
    """
    validate_frequency(frequency)

    if anchor >= today:
        return anchor

    if frequency == DAILY:
        return today

    if frequency == WEEKLY:
        days_ahead = (anchor.weekday() - today.weekday()) % 7
        return today + timedelta(days=days_ahead or 7)

    if frequency == MONTHLY:
        candidate = today + relativedelta(day=anchor.day)
        if candidate < today:
            candidate = today + relativedelta(months=1, day=anchor.day)
        return candidate

    # yearly
    candidate = today + relativedelta(month=anchor.month, day=anchor.day)
    if candidate < today:
        candidate = today + relativedelta(years=1, month=anchor.month, day=anchor.day)
    return candidate


def advance_one_period(frequency: str, current: date, anchor: Optional[date] = None) -> date:
    """
    Shift ``current`` forward by exactly one period, independent of today.

    Args:
        frequency: One of FREQUENCIES.
        current: The occurrence that just fired.
        anchor: Optional rule start date. For monthly/yearly rules it
            restores the anchor's day after a clamped month, so a rule
            anchored on the 31st goes Jan 31 -> Feb 29 -> Mar 31.

    Returns:
        +1 day, +7 days, +1 calendar month or +1 calendar year.
    """
    validate_frequency(frequency)

    if anchor is not None and frequency == MONTHLY:
        return current + relativedelta(months=1, day=anchor.day)
    if anchor is not None and frequency == YEARLY:
        return current + relativedelta(years=1, month=anchor.month, day=anchor.day)
    return current + _PERIODS[frequency]


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the calendar month containing ``day``."""
    return day.replace(day=1), day + relativedelta(day=31)
