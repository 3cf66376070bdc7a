"""
handlers/common.py
------------------
Helpers shared by the handlers: access to the workspace stored in
`bot_data`, the per-chat admin session, and Telegram's message size limit.
"""

from telegram import Update
from telegram.ext import ContextTypes

from services.admin_service import AdminSession, AdminWorkspace
from services.catalog_service import CatalogService
from services.export_service import ExportService

MAX_MESSAGE_LENGTH = 4096

WORKSPACE_KEY = "workspace"
CATALOG_KEY = "catalog"
EXPORTS_KEY = "exports"
DASHBOARDS_KEY = "dashboards"
SESSION_KEY = "admin_session"


def get_workspace(context: ContextTypes.DEFAULT_TYPE) -> AdminWorkspace:
    return context.bot_data[WORKSPACE_KEY]


def get_catalog(context: ContextTypes.DEFAULT_TYPE) -> CatalogService:
    return context.bot_data[CATALOG_KEY]


def get_exports(context: ContextTypes.DEFAULT_TYPE) -> ExportService:
    return context.bot_data[EXPORTS_KEY]


def get_session(context: ContextTypes.DEFAULT_TYPE) -> AdminSession:
    """The admin editor state of the current chat, created on first use."""
    session = context.chat_data.get(SESSION_KEY)
    if session is None:
        session = AdminSession()
        context.chat_data[SESSION_KEY] = session
    return session


def clip(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut `text` to one Telegram message."""
    if len(text) <= limit:
        return text
    marker = "\n…"
    return text[: limit - len(marker)] + marker


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split `text` into Telegram-sized chunks on paragraph boundaries.
    A single paragraph longer than `limit` is clipped.
    """
    chunks: list[str] = []
    current = ""
    for paragraph in text.split("\n\n"):
        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        current = clip(paragraph, limit)
    if current or not chunks:
        chunks.append(current)
    return chunks


async def reply_long(update: Update, text: str) -> None:
    for chunk in split_message(text):
        await update.message.reply_text(chunk)


def command_body(text: str) -> str:
    """Everything after the command word, newlines included."""
    parts = (text or "").split(maxsplit=1)
    return parts[1] if len(parts) > 1 else ""
