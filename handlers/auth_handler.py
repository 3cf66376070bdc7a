"""
handlers/auth_handler.py
-------------------------
Handles /login and /logout.
"""

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from handlers.common import get_session
from handlers.sync_handler import send_dashboard
from security import auth
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)


@rate_limited
async def login_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /login <password>.
    Success shows the dashboard; a wrong password changes nothing.
    """
    user = update.effective_user
    chat = update.effective_chat
    password = " ".join(context.args) if context.args else ""

    if not password:
        await update.message.reply_text("⚠️ Usage: /login <password>")
        return

    result = auth.login(user.id, chat.id, password)

    # Remove the password from the chat history.
    try:
        await update.message.delete()
    except TelegramError as e:
        logger.debug(f"Could not delete login message: {e}")

    await context.bot.send_message(chat_id=chat.id, text=result["message"])
    if result["success"]:
        get_session(context)
        await send_dashboard(context, chat.id)


@rate_limited
async def logout_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /logout - close the admin session of this chat."""
    chat = update.effective_chat
    if auth.logout(chat.id):
        await update.message.reply_text("🔒 Logged out.")
    else:
        await update.message.reply_text("ℹ️ You were not logged in.")
