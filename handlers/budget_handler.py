"""
handlers/budget_handler.py
---------------------------
Handles /budget: this month's spending against the configured thresholds.
"""

from telegram import Update
from telegram.ext import ContextTypes

from config import DEFAULT_CURRENCY
from repositories.user_repo import UserRepository
from security.auth import authorized_only
from services.alert_service import AlertService
from utils.logger import get_logger

logger = get_logger(__name__)
alert_service = AlertService()
user_repo = UserRepository()


@authorized_only
async def budget_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /budget - show threshold status for the current month."""
    user = update.effective_user
    record = user_repo.get_by_telegram_id(user.id)
    currency = record.base_currency if record else DEFAULT_CURRENCY
    await update.message.reply_text(alert_service.format_status(user.id, currency))
