"""
main.py
-------
Entry point for the Zemora Telegram bot.

Responsibilities:
    - Open the shared store (PostgreSQL, or in-memory for a single process).
    - Load the tools, guides and blog collections into the admin workspace.
    - Configure and start the Telegram bot with all handlers.
    - Schedule the job that applies updates from other bot processes.
"""

import secrets
from typing import Optional

from telegram import BotCommand
from telegram.ext import (
    Application,
    CommandHandler,
    MessageHandler,
    filters,
)

from config import STORE_BACKEND, SYNC_POLL_SECONDS, TELEGRAM_BOT_TOKEN
from db.connection import close_pool, init_pool
from db.init_db import create_tables
from db.kv_store import MemoryKeyValueStore, PostgresKeyValueStore
from db.listener import PgNotifyListener
from db.pubsub import MemoryBroadcastChannel, PostgresBroadcastChannel
from handlers.auth_handler import login_command, logout_command
from handlers.common import CATALOG_KEY, EXPORTS_KEY, WORKSPACE_KEY
from handlers.content_handler import (
    cancel_command,
    confirm_command,
    dashboard_command,
    delete_command,
    edit_command,
    form_command,
    handle_form_input,
    list_command,
    new_command,
    save_command,
    section_command,
)
from handlers.public_handler import blog_command, guides_command, home_command, tools_command
from handlers.start_handler import help_command, start_command
from handlers.sync_handler import make_render_listener, poll_sync, refresh_command, status_command
from handlers.transfer_handler import export_command, import_command, import_document
from services.admin_service import AdminWorkspace
from services.catalog_service import CatalogService
from services.export_service import ExportService
from services.snapshot_service import SnapshotSource
from utils.logger import get_logger

logger = get_logger(__name__)


def build_workspace(origin_id: str) -> tuple[AdminWorkspace, Optional[PgNotifyListener]]:
    """
    Wire the store and broadcast channel selected by STORE_BACKEND.

    Returns:
        The workspace and, for PostgreSQL, the LISTEN connection to close on shutdown.
    """
    snapshots = SnapshotSource()

    if STORE_BACKEND == "memory":
        logger.info("Using in-memory store; changes are lost on restart.")
        backend = MemoryKeyValueStore(origin_id=origin_id)
        return AdminWorkspace(backend, MemoryBroadcastChannel(), snapshots, origin_id), None

    if STORE_BACKEND != "postgres":
        raise ValueError(f"Unknown STORE_BACKEND '{STORE_BACKEND}' (use postgres or memory)")

    logger.info("Initializing database...")
    init_pool()
    create_tables()
    listener = PgNotifyListener()
    backend = PostgresKeyValueStore(origin_id, listener)
    channel = PostgresBroadcastChannel(listener)
    return AdminWorkspace(backend, channel, snapshots, origin_id), listener


async def post_init(application: Application) -> None:
    """Register the commands menu and hook dashboards to workspace changes."""
    workspace: AdminWorkspace = application.bot_data[WORKSPACE_KEY]
    workspace.add_render_listener(make_render_listener(application))

    commands = [
        BotCommand("start", "🚀 Start the bot"),
        BotCommand("help", "📖 Show help"),
        BotCommand("home", "🏠 Featured tools and latest guides"),
        BotCommand("tools", "🛠️ Browse tools"),
        BotCommand("guides", "📚 Browse guides"),
        BotCommand("blog", "📰 Read the blog"),
        BotCommand("login", "🔐 Admin login"),
        BotCommand("logout", "🔒 Admin logout"),
        BotCommand("dashboard", "🗂️ Admin dashboard"),
        BotCommand("section", "📂 Switch collection"),
        BotCommand("list", "📋 Search the collection"),
        BotCommand("new", "➕ New record"),
        BotCommand("edit", "✏️ Edit a record"),
        BotCommand("form", "📝 Show the form"),
        BotCommand("save", "💾 Save the form"),
        BotCommand("cancel", "↩️ Discard the form"),
        BotCommand("delete", "🗑️ Delete a record"),
        BotCommand("confirm", "✅ Confirm delete"),
        BotCommand("export", "📤 Export collection"),
        BotCommand("import", "📥 Import collection"),
        BotCommand("refresh", "🔄 Reload from storage"),
        BotCommand("status", "● Sync status"),
    ]
    await application.bot.set_my_commands(commands)
    logger.info("Bot commands menu registered successfully.")


def main() -> None:
    """Initialize and run the bot."""

    # ── 1. Storage and collections ────────────────────────
    origin_id = secrets.token_hex(8)
    workspace, listener = build_workspace(origin_id)
    sources = workspace.start()
    logger.info(f"Collections loaded: {sources} (origin {origin_id})")

    # ── 2. Build the Telegram application ─────────────────
    logger.info("Starting Telegram bot...")
    app = Application.builder().token(TELEGRAM_BOT_TOKEN).post_init(post_init).build()
    app.bot_data[WORKSPACE_KEY] = workspace
    app.bot_data[CATALOG_KEY] = CatalogService()
    app.bot_data[EXPORTS_KEY] = ExportService(workspace)

    # ── 3. Register command handlers ──────────────────────
    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("home", home_command))
    app.add_handler(CommandHandler("tools", tools_command))
    app.add_handler(CommandHandler("guides", guides_command))
    app.add_handler(CommandHandler("blog", blog_command))
    app.add_handler(CommandHandler("login", login_command))
    app.add_handler(CommandHandler("logout", logout_command))
    app.add_handler(CommandHandler("dashboard", dashboard_command))
    app.add_handler(CommandHandler("section", section_command))
    app.add_handler(CommandHandler("list", list_command))
    app.add_handler(CommandHandler("new", new_command))
    app.add_handler(CommandHandler("edit", edit_command))
    app.add_handler(CommandHandler("form", form_command))
    app.add_handler(CommandHandler("save", save_command))
    app.add_handler(CommandHandler("cancel", cancel_command))
    app.add_handler(CommandHandler("delete", delete_command))
    app.add_handler(CommandHandler("confirm", confirm_command))
    app.add_handler(CommandHandler("export", export_command))
    app.add_handler(CommandHandler("import", import_command))
    app.add_handler(CommandHandler("refresh", refresh_command))
    app.add_handler(CommandHandler("status", status_command))

    # ── 4. Documents and plain text ───────────────────────
    app.add_handler(MessageHandler(filters.Document.ALL & filters.CaptionRegex(r"^/import"), import_document))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_form_input))

    # ── 5. Schedule jobs ──────────────────────────────────
    job_queue = app.job_queue
    if job_queue:
        job_queue.run_repeating(poll_sync, interval=SYNC_POLL_SECONDS, first=SYNC_POLL_SECONDS, name="sync_poll")
        logger.info(f"Polling for sync updates every {SYNC_POLL_SECONDS}s")
    else:
        logger.warning("No job queue available; updates from other processes will not be applied.")

    # ── 6. Start polling ──────────────────────────────────
    logger.info("🚀 Zemora bot is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message"])

    # ── 7. Cleanup on shutdown ────────────────────────────
    workspace.stop()
    if listener is not None:
        listener.close()
        close_pool()
    logger.info("Zemora bot stopped.")


if __name__ == "__main__":
    main()
