"""
handlers/content_handler.py
----------------------------
Admin editing of the three collections: dashboard, lists, the record form,
save and delete. Delegates all logic to AdminWorkspace and FormSession.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import command_body, get_session, get_workspace, reply_long
from handlers.sync_handler import refresh_dashboards, send_dashboard
from models.datasets import DATASETS, get_spec
from security import auth
from security.auth import admin_only
from security.rate_limiter import rate_limited
from services.filter_service import filter_and_sort
from services.form_service import ValidationError, parse_form_text, render_form
from services.render_service import render_admin_table
from utils.logger import get_logger

logger = get_logger(__name__)

_DATASET_USAGE = "tools, guides, or blog"


@admin_only
@rate_limited
async def dashboard_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /dashboard - post a live dashboard in this chat."""
    get_session(context)
    await send_dashboard(context, update.effective_chat.id)


@admin_only
@rate_limited
async def section_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /section <name> - switch the active collection."""
    session = get_session(context)
    if not context.args:
        await update.message.reply_text(
            f"📂 Active section: {session.active_section}\nUsage: /section <{_DATASET_USAGE}>"
        )
        return
    try:
        session.select(context.args[0])
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return
    await update.message.reply_text(f"📂 Active section: {session.active_section}")
    await refresh_dashboards(context.application, only=update.effective_chat.id)


@admin_only
@rate_limited
async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list [query] - search the active collection."""
    session = get_session(context)
    spec = DATASETS[session.active_section]
    query = " ".join(context.args) if context.args else ""
    records = get_workspace(context).repository(spec.name).all()
    visible = filter_and_sort(records, spec, query=query) if query else records
    header = f"📋 {spec.plural.capitalize()} ({len(visible)}/{len(records)})"
    if query:
        header += f" matching '{query}'"
    await reply_long(update, f"{header}\n\n{render_admin_table(spec, visible)}")


@admin_only
@rate_limited
async def new_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /new <name> - open a blank form (create mode)."""
    session = get_session(context)
    try:
        form = session.select(context.args[0]) if context.args else session.form
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return
    form.reset()
    await update.message.reply_text(render_form(form))
    await refresh_dashboards(context.application, only=update.effective_chat.id)


@admin_only
@rate_limited
async def edit_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit <name> <id> - load a record into its form."""
    if not context.args or len(context.args) < 2:
        await update.message.reply_text(f"⚠️ Usage: /edit <{_DATASET_USAGE}> <id>")
        return
    session = get_session(context)
    try:
        form = session.select(context.args[0])
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    result = get_workspace(context).start_edit(form, context.args[1])
    await update.message.reply_text(result["message"])
    if result["success"]:
        await update.message.reply_text(render_form(form))
        await refresh_dashboards(context.application, only=update.effective_chat.id)


@admin_only
@rate_limited
async def form_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /form - show the open form of the active collection."""
    await update.message.reply_text(render_form(get_session(context).form))


async def _apply_form_text(update: Update, context: ContextTypes.DEFAULT_TYPE, text: str) -> bool:
    """Apply `field: value` lines to the open form. Returns False on a bad field."""
    fields = parse_form_text(text)
    if not fields:
        return True
    try:
        get_session(context).form.set_fields(fields)
    except ValidationError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return False
    return True


@rate_limited
async def handle_form_input(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle any plain text message (not a command).
    In an admin chat, `field: value` lines update the open form.
    """
    chat = update.effective_chat
    if not chat or not auth.is_admin(chat.id):
        await update.message.reply_text("ℹ️ Send /help to see what I can do.")
        return

    text = (update.message.text or "").strip()
    if not parse_form_text(text):
        await update.message.reply_text("🤔 Send fields as 'name: value' lines, or /help.")
        return

    if await _apply_form_text(update, context, text):
        await update.message.reply_text(render_form(get_session(context).form))


@admin_only
@rate_limited
async def save_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /save [field: value ...] - save the open form.
    Fields given after the command are applied first.
    """
    if not await _apply_form_text(update, context, command_body(update.message.text)):
        return

    session = get_session(context)
    result = get_workspace(context).save(session.form)
    await update.message.reply_text(result["message"])
    if not result["success"]:
        await update.message.reply_text(render_form(session.form))


@admin_only
@rate_limited
async def cancel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel - discard the open form and any pending delete."""
    session = get_session(context)
    session.form.reset()
    session.pending_delete = None
    await update.message.reply_text(f"↩️ {session.active_section} form cleared.")
    await refresh_dashboards(context.application, only=update.effective_chat.id)


@admin_only
@rate_limited
async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <name> <id> - ask for confirmation first."""
    if not context.args or len(context.args) < 2:
        await update.message.reply_text(f"⚠️ Usage: /delete <{_DATASET_USAGE}> <id>")
        return
    try:
        spec = get_spec(context.args[0])
    except ValueError as e:
        await update.message.reply_text(f"⚠️ {e}")
        return

    record = get_workspace(context).repository(spec.name).get(context.args[1])
    if record is None:
        await update.message.reply_text(f"⚠️ {spec.label.capitalize()} #{context.args[1]} not found.")
        return

    get_session(context).pending_delete = (spec.name, record.id)
    await update.message.reply_text(f"❓ Delete {spec.label} #{record.id}? Send /confirm or /cancel.")


@admin_only
@rate_limited
async def confirm_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /confirm - carry out the pending delete."""
    session = get_session(context)
    if session.pending_delete is None:
        await update.message.reply_text("ℹ️ Nothing to confirm.")
        return
    dataset, record_id = session.pending_delete
    session.pending_delete = None
    result = get_workspace(context).delete(dataset, record_id)
    await update.message.reply_text(result["message"])
