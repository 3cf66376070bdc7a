"""
handlers/start_handler.py
--------------------------
Handles /start and /help commands.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.rate_limiter import rate_limited
from services.filter_service import SORT_KEYS
from utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = """
🌐 Welcome to Zemora!
Free tools, step-by-step guides and the latest blog posts.

🔎 Browse:
/home - Featured tools and latest guides
/tools [words] [category=ai] [sort=name-asc] [featured] - Tool directory
/guides [words] - Guides
/blog [words] [category=news] [sort=oldest] - Blog

🔐 Admin:
/login <password> - Open an admin session
/logout - Close it
/dashboard - Live admin view of all collections
/section <tools|guides|blog> - Switch the active collection
/list [words] - Search the active collection
/new <tools|guides|blog> - Start a blank form
/edit <tools|guides|blog> <id> - Load a record into the form
/form - Show the open form
Send "field: value" lines to fill the form.
/save [field: value ...] - Save the form
/cancel - Discard the form
/delete <tools|guides|blog> <id> - Delete (then /confirm)
/export [json|csv|excel] - Download the active collection
Send a .json file with caption "/import <tools|guides|blog>" to replace a collection.
/refresh - Reload everything from storage
/status - Sync status and counts
"""

SORT_HELP = "Sort keys: " + " | ".join(
    f"{name} {', '.join(keys)}" for name, keys in SORT_KEYS.items() if keys
)
HELP_TEXT = f"{HELP_TEXT}\n{SORT_HELP}\n"


@rate_limited
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - show welcome message."""
    user = update.effective_user
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")
    await update.message.reply_text(f"👋 Hi {user.first_name}!\n{HELP_TEXT}")


@rate_limited
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    await update.message.reply_text(HELP_TEXT)
