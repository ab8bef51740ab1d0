"""
security/auth.py
-----------------
Access control for bot commands.
Only whitelisted Telegram users may use the bot; everyone who passes
is registered in the users table on first contact.
"""

from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

from config import ALLOWED_USER_IDS
from repositories.user_repo import UserRepository
from utils.logger import get_logger

logger = get_logger(__name__)
user_repo = UserRepository()


def is_allowed(user_id: int) -> bool:
    """An empty whitelist lets everyone in (development mode)."""
    return not ALLOWED_USER_IDS or user_id in ALLOWED_USER_IDS


def authorized_only(func: Callable):
    """
    Decorator that restricts a handler to whitelisted users and makes sure
    the caller has a users row before the handler runs.

    Usage:
        @authorized_only
        async def my_handler(update, context):
            ...
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not is_allowed(user.id):
            logger.warning(f"Unauthorized access attempt: user_id={user.id}, username={user.username}")
            await update.message.reply_text("⛔ Sorry, this bot is private.")
            return

        user_repo.ensure_user(user.id, user.first_name)
        return await func(update, context, *args, **kwargs)

    return wrapper
