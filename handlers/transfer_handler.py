"""
handlers/transfer_handler.py
-----------------------------
Handles collection export (/export) and import (JSON document uploads).
Delegates to ExportService and AdminWorkspace.import_json.
"""

import re

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import get_exports, get_session, get_workspace
from models.datasets import DATASETS, get_spec
from security.auth import admin_only
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)

EXPORT_FORMATS = {
    "json": ("json", "📄"),
    "csv": ("csv", "📄"),
    "excel": ("xlsx", "📊"),
}

IMPORT_CAPTION = re.compile(r"^/import(?:@\w+)?\s+(\w+)", re.IGNORECASE)
MAX_IMPORT_BYTES = 5 * 1024 * 1024


@admin_only
@rate_limited
async def export_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /export [json|csv|excel] - send the active collection as a file.
    A collection name may be given too: /export blog csv.
    """
    dataset = get_session(context).active_section
    fmt = "json"
    for arg in context.args or []:
        word = arg.lower()
        if word in EXPORT_FORMATS:
            fmt = word
        elif word in DATASETS:
            dataset = word
        else:
            await update.message.reply_text("⚠️ Usage: /export [tools|guides|blog] [json|csv|excel]")
            return

    exports = get_exports(context)
    extension, icon = EXPORT_FORMATS[fmt]
    try:
        if fmt == "json":
            buffer = exports.export_json(dataset)
        elif fmt == "csv":
            buffer = exports.export_csv(dataset)
        else:
            buffer = exports.export_excel(dataset)
        await update.message.reply_document(
            document=buffer,
            filename=exports.filename(dataset, extension),
            caption=f"{icon} {dataset} - {fmt.upper()}",
        )
    except Exception as e:
        logger.error(f"{fmt} export of {dataset} failed: {e}")
        await update.message.reply_text("❌ Export failed. Try again.")


@admin_only
@rate_limited
async def import_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle a bare /import - explain how to attach the file."""
    await update.message.reply_text(
        "📥 Send the .json file as a document with the caption /import <tools|guides|blog>."
    )


@admin_only
@rate_limited
async def import_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle a document captioned "/import <name>".
    The file must hold a JSON array; it replaces the whole collection.
    """
    match = IMPORT_CAPTION.match(update.message.caption or "")
    if not match:
        return
    try:
        spec = get_spec(match.group(1))
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    document = update.message.document
    if document.file_size and document.file_size > MAX_IMPORT_BYTES:
        await update.message.reply_text("❌ Failed to import: file is too large")
        return

    telegram_file = await document.get_file()
    raw = await telegram_file.download_as_bytearray()
    try:
        text = bytes(raw).decode("utf-8-sig")
    except UnicodeDecodeError:
        await update.message.reply_text("❌ Failed to import: file is not UTF-8 text")
        return

    result = get_workspace(context).import_json(spec.name, text)
    await update.message.reply_text(result["message"])
