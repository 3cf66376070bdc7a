"""
handlers/sync_handler.py
-------------------------
Live dashboards and inbound sync.

Every open dashboard message is re-rendered in full whenever the workspace
reports a change, whether it came from this chat, another admin chat, or
another bot process sharing the database.
"""

from typing import Optional

from telegram import Update
from telegram.error import BadRequest, TelegramError
from telegram.ext import Application, ContextTypes

from handlers.common import DASHBOARDS_KEY, SESSION_KEY, WORKSPACE_KEY, clip, get_workspace
from security import auth
from security.auth import admin_only
from security.rate_limiter import rate_limited
from services.render_service import render_dashboard
from utils.logger import get_logger

logger = get_logger(__name__)


def _dashboard_text(application: Application, chat_id: int) -> str:
    workspace = application.bot_data[WORKSPACE_KEY]
    session = application.chat_data.get(chat_id, {}).get(SESSION_KEY)
    return clip(render_dashboard(workspace, session.forms if session else None))


async def send_dashboard(context: ContextTypes.DEFAULT_TYPE, chat_id: int) -> None:
    """Send a fresh dashboard message and keep it live."""
    message = await context.bot.send_message(
        chat_id=chat_id, text=_dashboard_text(context.application, chat_id)
    )
    context.bot_data.setdefault(DASHBOARDS_KEY, {})[chat_id] = message.message_id


async def refresh_dashboards(application: Application, only: Optional[int] = None) -> int:
    """
    Re-render every tracked dashboard (or just the one in chat `only`).

    Returns:
        Number of dashboard messages edited.
    """
    dashboards: dict = application.bot_data.setdefault(DASHBOARDS_KEY, {})
    edited = 0
    for chat_id, message_id in list(dashboards.items()):
        if only is not None and chat_id != only:
            continue
        if not auth.is_admin(chat_id):
            dashboards.pop(chat_id, None)
            continue
        try:
            await application.bot.edit_message_text(
                chat_id=chat_id, message_id=message_id, text=_dashboard_text(application, chat_id)
            )
            edited += 1
        except BadRequest as e:
            if "not modified" in str(e).lower():
                continue
            logger.warning(f"Dropping dashboard in chat {chat_id}: {e}")
            dashboards.pop(chat_id, None)
        except TelegramError as e:
            logger.error(f"Failed to refresh dashboard in chat {chat_id}: {e}")
    return edited


def make_render_listener(application: Application):
    """Workspace render listener that schedules a dashboard refresh."""
    def on_render(changed: set) -> None:
        logger.debug(f"Re-rendering dashboards after change in {sorted(changed)}")
        application.create_task(refresh_dashboards(application))
    return on_render


async def poll_sync(context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Scheduled job: apply updates published by other bot processes.
    Runs every SYNC_POLL_SECONDS.
    """
    try:
        get_workspace(context).poll()
    except Exception as e:
        logger.error(f"Sync poll failed: {e}")


@admin_only
@rate_limited
async def refresh_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /refresh - reload every collection from storage."""
    workspace = get_workspace(context)
    reloaded = workspace.force_refresh()
    kept = [name for name, fresh in reloaded.items() if not fresh]
    message = "🔄 Refreshed from local storage"
    if kept:
        message += f"\nℹ️ Nothing stored for {', '.join(kept)}; kept what was loaded."
    await update.message.reply_text(message)


@admin_only
@rate_limited
async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /status - sync status line, counts and load sources."""
    workspace = get_workspace(context)
    stats = workspace.stats()
    lines = [f"● {workspace.status}"]
    for name, repository in workspace.repositories.items():
        lines.append(f"{name}: {stats[name]} (loaded from {repository.source or 'nowhere'})")
    lines.append(f"Origin: {workspace.origin_id}")
    await update.message.reply_text("\n".join(lines))
