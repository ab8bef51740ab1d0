"""
main.py
-------
Entry point for the family budget bot.

Responsibilities:
    - Initialize the database connection pool, schema and default categories.
    - Configure and start the Telegram bot with all handlers.
    - Schedule the daily recurring-expense job and the weekly budget alert job.
"""

import asyncio
from typing import Callable

from telegram import BotCommand, Update
from telegram.ext import Application, CommandHandler, ContextTypes

from config import (
    ALERT_AT,
    ALERT_WEEKDAY,
    JOB_TIMEOUT_SECONDS,
    MATERIALIZE_AT,
    TELEGRAM_BOT_TOKEN,
)
from db.connection import close_pool, init_pool
from db.init_db import create_tables, seed_default_categories
from handlers.budget_handler import budget_command
from handlers.expense_handler import (
    add_category_command,
    add_command,
    categories_command,
    delete_command,
    month_command,
    year_command,
)
from handlers.export_handler import export_csv_command, export_excel_command
from handlers.recurring_handler import (
    add_recurring_command,
    delete_recurring_command,
    edit_recurring_command,
    recurring_command,
)
from handlers.start_handler import (
    currency_command,
    email_command,
    help_command,
    myid_command,
    start_command,
)
from services.alert_service import AlertService
from services.materialization_service import MaterializationService
from utils.logger import get_logger

logger = get_logger(__name__)


async def _run_blocking_job(name: str, job: Callable[[], dict]) -> None:
    """
    Run a blocking job in a worker thread, bounded by JOB_TIMEOUT_SECONDS.

    On timeout the worker keeps its job lock until it returns, so the next
    trigger is skipped instead of overlapping.
    """
    try:
        stats = await asyncio.wait_for(asyncio.to_thread(job), timeout=JOB_TIMEOUT_SECONDS)
        logger.info(f"Job '{name}' finished: {stats}")
    except asyncio.TimeoutError:
        logger.error(f"Job '{name}' exceeded {JOB_TIMEOUT_SECONDS:.0f}s; abandoned this run.")


async def materialize_recurring(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job: create today's expenses from due recurring expenses.
    Runs daily at MATERIALIZE_AT.
    """
    service: MaterializationService = context.job.data
    await _run_blocking_job("recurring_expenses", service.run)


async def send_budget_alerts(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job: email users whose category spending nears its limit.
    Runs weekly on ALERT_WEEKDAY at ALERT_AT.
    """
    service: AlertService = context.job.data
    await _run_blocking_job("budget_alerts", service.run)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log handler exceptions and tell the user something went wrong."""
    logger.error(f"Unhandled error while processing an update: {context.error}", exc_info=context.error)
    if isinstance(update, Update) and update.effective_message:
        await update.effective_message.reply_text("❌ Something went wrong. Please try again later.")


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    commands = [
        BotCommand("start", "Start the bot"),
        BotCommand("help", "Show all commands"),
        BotCommand("add", "Record an expense"),
        BotCommand("delete", "Delete an expense"),
        BotCommand("month", "Spending by category"),
        BotCommand("year", "Spending by month"),
        BotCommand("categories", "List categories"),
        BotCommand("add_category", "Create a category"),
        BotCommand("recurring", "List recurring expenses"),
        BotCommand("add_recurring", "Add a recurring expense"),
        BotCommand("edit_recurring", "Edit a recurring expense"),
        BotCommand("delete_recurring", "Delete a recurring expense"),
        BotCommand("budget", "Budget status this month"),
        BotCommand("export_csv", "Export a month as CSV"),
        BotCommand("export_excel", "Export a month as Excel"),
        BotCommand("email", "Set the alert email"),
        BotCommand("currency", "Set the default currency"),
        BotCommand("myid", "Show your Telegram ID"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info("Initializing database...")
    init_pool()
    create_tables()
    seed_default_categories()

    # ── 2. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = Application.builder().token(TELEGRAM_BOT_TOKEN).post_init(set_bot_commands).build()

    # ── 3. Register command handlers ──────────────────────
    handlers = {
        "start": start_command,
        "help": help_command,
        "myid": myid_command,
        "email": email_command,
        "currency": currency_command,
        "add": add_command,
        "delete": delete_command,
        "month": month_command,
        "year": year_command,
        "categories": categories_command,
        "add_category": add_category_command,
        "recurring": recurring_command,
        "add_recurring": add_recurring_command,
        "edit_recurring": edit_recurring_command,
        "delete_recurring": delete_recurring_command,
        "budget": budget_command,
        "export_csv": export_csv_command,
        "export_excel": export_excel_command,
    }
    for command, callback in handlers.items():
        app.add_handler(CommandHandler(command, callback))
    app.add_error_handler(on_error)

    # ── 4. Schedule jobs ──────────────────────────────────
    job_queue = app.job_queue
    if job_queue is None:
        raise RuntimeError("JobQueue unavailable; install python-telegram-bot[job-queue].")

    job_queue.run_daily(
        materialize_recurring,
        time=MATERIALIZE_AT,
        data=MaterializationService(),
        name="recurring_expenses",
    )
    job_queue.run_daily(
        send_budget_alerts,
        time=ALERT_AT,
        days=(ALERT_WEEKDAY,),
        data=AlertService(),
        name="budget_alerts",
    )
    logger.info(
        f"Scheduled recurring expenses daily at {MATERIALIZE_AT:%H:%M} "
        f"and budget alerts on weekday {ALERT_WEEKDAY} at {ALERT_AT:%H:%M}"
    )

    # ── 5. Start polling ──────────────────────────────────
    logger.info("Budget bot is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message"])

    # ── 6. Cleanup on shutdown ────────────────────────────
    close_pool()
    logger.info("Budget bot stopped.")


if __name__ == "__main__":
    main()
