"""
handlers/expense_handler.py
----------------------------
Handles one-off expenses, summaries and categories.
Delegates all logic to ExpenseService and CategoryService.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from services.category_service import CategoryService
from services.expense_service import ExpenseService
from utils.errors import BudgetError
from utils.logger import get_logger
from utils.parsing import parse_date

logger = get_logger(__name__)
expense_service = ExpenseService()
category_service = CategoryService()

ADD_USAGE = (
    "💸 Add an expense\n\n"
    "/add <amount> | <category> | <description> [| <date YYYY-MM-DD>]\n\n"
    "Example: /add 42.50 | Groceries | Weekly shop"
)


@authorized_only
async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add - record a single expense."""
    user = update.effective_user
    parts = [p.strip() for p in " ".join(context.args or []).split("|")]
    if len(parts) not in (3, 4):
        await update.message.reply_text(ADD_USAGE)
        return

    try:
        expense_date = parse_date(parts[3]) if len(parts) == 4 and parts[3] else None
        saved = expense_service.add(
            user_id=user.id,
            amount=parts[0],
            category_name=parts[1],
            description=parts[2],
            expense_date=expense_date,
        )
    except (ValueError, BudgetError) as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    await update.message.reply_text(
        f"💸 Expense saved:\n"
        f"  📂 {saved.category_name}\n"
        f"  💶 {saved.amount:.2f} {saved.currency}\n"
        f"  📅 {saved.date}\n"
        f"  📝 {saved.description}\n"
        f"  🔖 #{saved.id}"
    )


@authorized_only
async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /delete <id> command - delete an expense.
    Usage: /delete 5
    """
    user = update.effective_user
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /delete <id>\nExample: /delete 5")
        return

    try:
        expense_id = int(context.args[0])
    except ValueError:
        await update.message.reply_text("⚠️ The id must be a whole number.")
        return

    if expense_service.delete(expense_id, user.id):
        await update.message.reply_text(f"🗑️ Expense #{expense_id} deleted.")
    else:
        await update.message.reply_text(f"⚠️ Expense #{expense_id} not found.")


@authorized_only
async def month_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /month [year month] - spending by category."""
    user = update.effective_user
    year = month = None
    if context.args and len(context.args) >= 2:
        try:
            year, month = int(context.args[0]), int(context.args[1])
            if not 1 <= month <= 12:
                raise ValueError
        except ValueError:
            await update.message.reply_text("⚠️ Usage: /month [year month]\nExample: /month 2024 3")
            return

    await update.message.reply_text(expense_service.get_month_summary(user.id, year, month))


@authorized_only
async def year_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /year [year] - spending by month."""
    user = update.effective_user
    year = None
    if context.args:
        try:
            year = int(context.args[0])
        except ValueError:
            await update.message.reply_text("⚠️ Usage: /year [year]\nExample: /year 2024")
            return

    await update.message.reply_text(expense_service.get_year_summary(user.id, year))


@authorized_only
async def categories_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /categories - list available categories."""
    user = update.effective_user
    await update.message.reply_text(category_service.format_tree(user.id))


@authorized_only
async def add_category_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add_category <name> [| <parent>]."""
    user = update.effective_user
    parts = [p.strip() for p in " ".join(context.args or []).split("|")]
    if not parts[0]:
        await update.message.reply_text("⚠️ Usage: /add_category <name> [| <parent category>]")
        return

    try:
        category = category_service.add(user.id, parts[0], parts[1] if len(parts) > 1 else None)
    except (ValueError, BudgetError) as e:
        await update.message.reply_text(f"⚠️ {e}")
        return
    await update.message.reply_text(f"🏷️ Category '{category.name}' added.")
