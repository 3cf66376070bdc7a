"""
security/auth.py
-----------------
Admin login for the Telegram bot.
A chat becomes an admin chat after /login with the admin password and stays
one until /logout or a bot restart.
"""

import hmac
from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

from config import ADMIN_PASSWORD, ADMIN_USER_IDS
from utils.logger import get_logger

logger = get_logger(__name__)

# Chats that passed /login: {chat_id}
_admin_chats: set[int] = set()


def is_admin(chat_id: int) -> bool:
    return chat_id in _admin_chats


def login(user_id: int, chat_id: int, password: str) -> dict:
    """
    Check the admin password and open an admin session for the chat.

    Behavior:
        - If ADMIN_USER_IDS is empty, any user may log in with the password.
        - If the list is set, other users are refused even with the password.

    Returns:
        Dict with 'success' and 'message'.
    """
    if ADMIN_USER_IDS and user_id not in ADMIN_USER_IDS:
        logger.warning(f"🚫 Admin login refused for non-whitelisted user_id={user_id}")
        return {"success": False, "message": "⛔ This account is not allowed to administer the site."}

    if not hmac.compare_digest((password or "").encode(), ADMIN_PASSWORD.encode()):
        logger.warning(f"🚫 Wrong admin password from user_id={user_id}")
        return {"success": False, "message": "❌ Wrong password"}

    _admin_chats.add(chat_id)
    logger.info(f"Admin session opened in chat {chat_id} by user {user_id}")
    return {"success": True, "message": "🔓 Logged in. Send /dashboard to start."}


def logout(chat_id: int) -> bool:
    if chat_id not in _admin_chats:
        return False
    _admin_chats.discard(chat_id)
    logger.info(f"Admin session closed in chat {chat_id}")
    return True


def admin_only(func: Callable):
    """
    Decorator that restricts a handler to chats with an admin session.

    Usage:
        @admin_only
        async def my_handler(update, context):
            ...
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        chat = update.effective_chat
        if not chat or not update.message:
            return

        if not is_admin(chat.id):
            await update.message.reply_text("🔒 Admin only. Log in with /login <password>.")
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
