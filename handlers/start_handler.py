"""
handlers/start_handler.py
--------------------------
Handles /start, /help, /myid and the user preference commands.
"""

import re

from telegram import Update
from telegram.ext import ContextTypes

from repositories.user_repo import UserRepository
from security.auth import authorized_only
from utils.logger import get_logger
from utils.parsing import normalize_currency

logger = get_logger(__name__)
user_repo = UserRepository()

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

HELP_TEXT = """
🤖 Family budget bot

Expenses:
/add <amount> | <category> | <description> [| <date>] - record an expense
/delete <id> - delete an expense
/month [year month] - spending by category
/year [year] - spending by month
/categories - list categories
/add_category <name> [| <parent>] - create a category

Recurring expenses:
/recurring - list them
/add_recurring - add one (send without arguments for the format)
/edit_recurring - edit one
/delete_recurring <id> - delete one

Budget:
/budget - this month's spending against the limits
/export_csv [year month] - download a month as CSV
/export_excel [year month] - download a month as Excel

Settings:
/email <address> - where weekly budget alerts are sent
/currency <code> - default currency, e.g. EUR
/myid - show your Telegram ID
"""


@authorized_only
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - greet the (already registered) user."""
    user = update.effective_user
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")
    await update.message.reply_text(
        f"Hi {user.first_name}! 👋\n"
        f"I keep track of your family's expenses and recurring bills.\n\n"
        f"Send /help to see every command."
    )


@authorized_only
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT)


async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myid command - show the Telegram ID to put in ALLOWED_USER_IDS."""
    user = update.effective_user
    await update.message.reply_text(
        f"🆔 Your Telegram ID: {user.id}\n"
        f"Add it to ALLOWED_USER_IDS in the .env file to get access."
    )


@authorized_only
async def email_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /email <address> - set the budget alert recipient."""
    user = update.effective_user
    if not context.args:
        current = user_repo.get_by_telegram_id(user.id)
        shown = current.email if current and current.email else "not set"
        await update.message.reply_text(f"📧 Alert email: {shown}\nUsage: /email you@example.com")
        return

    address = context.args[0].strip()
    if not _EMAIL_RE.match(address):
        await update.message.reply_text("⚠️ That does not look like an email address.")
        return

    user_repo.update_preferences(user.id, email=address)
    await update.message.reply_text(f"📧 Weekly budget alerts will go to {address}.")


@authorized_only
async def currency_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /currency <code> - set the default currency for new expenses."""
    user = update.effective_user
    if not context.args:
        current = user_repo.get_by_telegram_id(user.id)
        await update.message.reply_text(
            f"💱 Default currency: {current.base_currency if current else '?'}\n"
            f"Usage: /currency EUR"
        )
        return

    try:
        code = normalize_currency(context.args[0])
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    user_repo.update_preferences(user.id, base_currency=code)
    await update.message.reply_text(f"💱 Default currency set to {code}.")
