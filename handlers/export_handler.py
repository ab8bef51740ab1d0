"""
handlers/export_handler.py
---------------------------
Handles data export commands (CSV, Excel).
Delegates to ExportService.
"""

from datetime import date, datetime

from telegram import Update
from telegram.ext import ContextTypes

from config import TIMEZONE
from security.auth import authorized_only
from services.export_service import ExportService
from utils.errors import BudgetError
from utils.logger import get_logger

logger = get_logger(__name__)
export_service = ExportService()

_FORMATS = {
    "csv": (export_service.export_month_csv, "csv"),
    "excel": (export_service.export_month_excel, "xlsx"),
}


def parse_period(args: list[str], today: date) -> tuple[int, int]:
    """
    '[year month]' arguments -> (year, month); current month by default.

    Raises:
        ValueError: Non-numeric input or a month outside 1-12.
    """
    if not args or len(args) < 2:
        return today.year, today.month
    year, month = int(args[0]), int(args[1])
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    return year, month


async def _send_export(update: Update, context: ContextTypes.DEFAULT_TYPE, kind: str) -> None:
    user = update.effective_user
    try:
        year, month = parse_period(context.args, datetime.now(TIMEZONE).date())
    except ValueError:
        await update.message.reply_text(f"⚠️ Usage: /export_{kind} [year month]\nExample: /export_{kind} 2024 3")
        return

    build, extension = _FORMATS[kind]
    try:
        buffer = build(user.id, year, month)
    except BudgetError as e:
        logger.error(f"{kind} export failed for user {user.id}: {e}")
        await update.message.reply_text("❌ Export failed. Please try again later.")
        return

    await update.message.reply_document(
        document=buffer,
        filename=f"expenses_{year}_{month:02d}.{extension}",
        caption=f"📊 Expenses {month:02d}/{year}",
    )


@authorized_only
async def export_csv_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_csv [year month] - send a month's expenses as CSV."""
    await _send_export(update, context, "csv")


@authorized_only
async def export_excel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_excel [year month] - send a month's expenses as Excel."""
    await _send_export(update, context, "excel")
