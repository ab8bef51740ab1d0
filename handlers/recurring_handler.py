"""
handlers/recurring_handler.py
------------------------------
Handles recurring expense commands. Arguments are '|' separated so that
descriptions and category names may contain spaces.
"""

from datetime import date
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.recurring_service import RecurringService
from utils.errors import BudgetError
from utils.logger import get_logger
from utils.parsing import parse_date

logger = get_logger(__name__)
recurring_service = RecurringService()

# Accepted spellings -> canonical frequency
_FREQ_MAP = {
    "daily": "daily", "day": "daily",
    "weekly": "weekly", "week": "weekly",
    "monthly": "monthly", "month": "monthly",
    "yearly": "yearly", "year": "yearly", "annually": "yearly", "annual": "yearly",
}

_EDIT_KEYS = {
    "amount": "amount",
    "currency": "currency",
    "category": "category",
    "description": "description", "desc": "description",
    "frequency": "frequency", "freq": "frequency",
    "start": "start_date", "start_date": "start_date",
    "end": "end_date", "end_date": "end_date",
}

ADD_USAGE = (
    "📝 Add a recurring expense\n\n"
    "/add_recurring <description> | <amount> | <frequency> | <category> | <start YYYY-MM-DD> [| <end YYYY-MM-DD>]\n\n"
    "Examples:\n"
    "• /add_recurring Rent | 1200 | monthly | Rent/Mortgage | 2024-01-01\n"
    "• /add_recurring Gym | 35 | monthly | Gym Memberships | 2024-02-15 | 2024-12-31\n\n"
    "Frequency: daily, weekly, monthly, yearly"
)

EDIT_USAGE = (
    "✏️ Edit a recurring expense\n\n"
    "/edit_recurring <id> | key=value | key=value ...\n\n"
    "Keys: amount, currency, category, description, frequency, start, end (end=none clears it)\n"
    "Example: /edit_recurring 3 | amount=40 | frequency=weekly"
)


def normalize_frequency(value: str) -> str:
    """Map a typed frequency to its canonical name; unknown input is returned as typed."""
    value = value.strip().lower()
    return _FREQ_MAP.get(value, value)


def parse_add_args(text: str) -> dict:
    """
    Parse '/add_recurring' arguments.

    Raises:
        ValueError: Wrong number of fields or a malformed date.
    """
    parts = [p.strip() for p in text.split("|")]
    if len(parts) not in (5, 6):
        raise ValueError("Expected 5 or 6 '|' separated fields.")

    description, amount, frequency, category, start = parts[:5]
    end_date: Optional[date] = None
    if len(parts) == 6 and parts[5]:
        end_date = parse_date(parts[5])

    return {
        "description": description,
        "amount": amount,
        "frequency": normalize_frequency(frequency),
        "category": category,
        "start_date": parse_date(start),
        "end_date": end_date,
    }


def parse_edit_args(text: str) -> tuple[int, dict]:
    """
    Parse '/edit_recurring' arguments into (rule id, changes).

    Raises:
        ValueError: Missing id, unknown key or malformed value.
    """
    parts = [p.strip() for p in text.split("|")]
    try:
        rule_id = int(parts[0])
    except ValueError:
        raise ValueError("The first field must be the recurring expense id.") from None

    changes: dict = {}
    for part in parts[1:]:
        if not part:
            continue
        key, sep, value = part.partition("=")
        key = _EDIT_KEYS.get(key.strip().lower())
        if not sep or key is None:
            raise ValueError(f"Cannot understand {part!r}.")
        value = value.strip()
        if key == "start_date":
            changes[key] = parse_date(value)
        elif key == "end_date":
            changes[key] = None if value.lower() in ("", "none", "-") else parse_date(value)
        elif key == "frequency":
            changes[key] = normalize_frequency(value)
        else:
            changes[key] = value

    if not changes:
        raise ValueError("Nothing to change.")
    return rule_id, changes


@authorized_only
async def recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /recurring - list the user's recurring expenses."""
    user = update.effective_user
    await update.message.reply_text(recurring_service.format_list(user.id))


@authorized_only
async def add_recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add_recurring - create a recurring expense."""
    user = update.effective_user
    if not context.args:
        await update.message.reply_text(ADD_USAGE)
        return

    try:
        fields = parse_add_args(" ".join(context.args))
        rule = recurring_service.create(
            user_id=user.id,
            description=fields["description"],
            amount=fields["amount"],
            frequency=fields["frequency"],
            category_id=recurring_service.resolve_category(user.id, fields["category"]),
            start_date=fields["start_date"],
            end_date=fields["end_date"],
        )
    except (ValueError, BudgetError) as e:
        await update.message.reply_text(f"⚠️ {e}\n\n{ADD_USAGE}")
        return

    await update.message.reply_text(
        f"🔁 Recurring expense added:\n"
        f"  📌 {rule.description}\n"
        f"  💶 {rule.amount:.2f} {rule.currency} ({rule.frequency})\n"
        f"  📅 Next: {rule.next_occurrence}\n"
        f"  🔖 #{rule.id}"
    )


@authorized_only
async def edit_recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit_recurring - change fields of a recurring expense."""
    user = update.effective_user
    if not context.args:
        await update.message.reply_text(EDIT_USAGE)
        return

    try:
        rule_id, changes = parse_edit_args(" ".join(context.args))
        if "category" in changes:
            changes["category_id"] = recurring_service.resolve_category(user.id, changes.pop("category"))
        rule = recurring_service.update(rule_id, user.id, **changes)
    except (ValueError, BudgetError) as e:
        await update.message.reply_text(f"⚠️ {e}\n\n{EDIT_USAGE}")
        return

    if rule is None:
        await update.message.reply_text(f"⚠️ Recurring expense #{rule_id} not found.")
        return
    await update.message.reply_text(f"✏️ Updated:\n  {rule}")


@authorized_only
async def delete_recurring_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /delete_recurring <id>.
    Expenses already created from the rule are kept.
    """
    user = update.effective_user
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /delete_recurring <id>")
        return

    try:
        rule_id = int(context.args[0])
    except ValueError:
        await update.message.reply_text("⚠️ The id must be a whole number.")
        return

    if recurring_service.delete(rule_id, user.id):
        await update.message.reply_text(f"🗑️ Recurring expense #{rule_id} deleted.")
    else:
        await update.message.reply_text(f"⚠️ Recurring expense #{rule_id} not found.")
