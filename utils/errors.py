"""
utils/errors.py
---------------
Exception taxonomy shared by every layer.

Scheduled jobs treat every BudgetError as terminal for the single item
(rule or user) being processed: it is logged and the run continues.
"""


class BudgetError(Exception):
    """Base class for all application errors."""


class InvalidFrequency(BudgetError, ValueError):
    """Raised when a recurrence frequency is not one of the known values."""

    def __init__(self, frequency):
        self.frequency = frequency
        super().__init__(f"Invalid frequency: {frequency!r}")


class PersistenceError(BudgetError):
    """Raised when a database read or write fails."""


class MailError(BudgetError):
    """Raised when the mail transport cannot deliver a message."""
