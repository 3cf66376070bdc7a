"""
services/render_service.py
--------------------------
Turns records into chat text: admin tables, public cards, and the admin
dashboard. Pure functions of their inputs; every view is re-rendered in
full whenever its data changes.
"""

import math
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser

from models.datasets import DatasetSpec

CATEGORY_LABELS = {
    "developer": "Developer Tool",
    "design": "Design Tool",
    "windows": "Windows Utility",
    "ai": "AI Tool",
    "security": "Security Tool",
    "mobile": "Mobile App",
    "productivity": "Productivity",
}

ADMIN_EMPTY = {
    "tools": "No tools yet. Add one below.",
    "guides": "No guides yet.",
    "blog": "No blog posts yet.",
}

PUBLIC_EMPTY = {
    "tools": ("No tools found", "Try a different search or browse categories"),
    "guides": ("No guides found", "Try another keyword."),
    "blog": ("No posts found", "Try another keyword."),
}

LOAD_ERRORS = {
    "tools": "Could not load tools. Please try again later.",
    "guides": "Could not load guides.",
    "blog": "Could not load blog posts.",
}

DEFAULT_TOOL_ICON = "🛠️"
WORDS_PER_MINUTE = 200


# ── small formatters ──────────────────────────────────────

def format_category(category: Optional[str]) -> str:
    return CATEGORY_LABELS.get(category or "", category or "")


def format_date(value: Optional[str]) -> str:
    """'2024-03-05' -> 'Mar 5, 2024'; missing or invalid -> 'No date'."""
    if not value:
        return "No date"
    try:
        parsed = date_parser.isoparse(str(value))
    except (ValueError, OverflowError):
        return "No date"
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def estimate_read_time(content: Optional[str]) -> int:
    """Minutes to read at 200 words per minute, at least 1."""
    words = len((content or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def truncate(text: Optional[str], limit: int) -> str:
    text = text or ""
    return text[:limit] + ("..." if len(text) > limit else "")


# ── admin tables ──────────────────────────────────────────

def render_admin_row(spec: DatasetSpec, record: Any) -> str:
    if spec.name == "tools":
        icon = f"{record.icon} " if record.icon else ""
        return (
            f"#{record.id} {icon}{record.name} | {record.category} | "
            f"{', '.join(record.platform)} | {', '.join(record.tags)} | "
            f"featured: {'Yes' if record.featured else 'No'}"
        )
    return f"#{record.id} {record.title} | /{record.slug} | {truncate(record.excerpt, 60)}"


def render_admin_table(spec: DatasetSpec, records: Iterable[Any]) -> str:
    records = list(records)
    if not records:
        return ADMIN_EMPTY[spec.name]
    return "\n".join(render_admin_row(spec, r) for r in records)


# ── public cards ──────────────────────────────────────────

def render_tool_card(tool: Any) -> str:
    lines = [f"{tool.icon or DEFAULT_TOOL_ICON} {tool.name}", format_category(tool.category)]
    if tool.description:
        lines.append(tool.description)
    if tool.platform:
        lines.append(" · ".join(tool.platform))
    meta = " | ".join(part for part in (tool.difficulty, tool.license) if part)
    if meta:
        lines.append(meta)
    lines.append(f"Download → {tool.download}")
    return "\n".join(lines)


def render_guide_card(guide: Any) -> str:
    teaser = (guide.excerpt or guide.content or "")[:140]
    return f"📖 {guide.title}\n{teaser}..."


def render_blog_card(post: Any) -> str:
    meta = [format_date(post.date), f"{estimate_read_time(post.content)} min read"]
    if post.category:
        meta.append(post.category)
    lines = [f"📰 {post.title}", " | ".join(meta), f"{(post.excerpt or post.content or '')[:160]}..."]
    if post.tags:
        lines.append(" ".join(f"#{t}" for t in post.tags))
    return "\n".join(lines)


CARD_RENDERERS = {
    "tools": render_tool_card,
    "guides": render_guide_card,
    "blog": render_blog_card,
}


def count_label(spec: DatasetSpec, count: int) -> str:
    if spec.name == "tools":
        return f"{count} tools"
    if spec.name == "guides":
        return f"{count} guides"
    return f"{count} posts"


def render_page(spec: DatasetSpec, records: Optional[list], error: Optional[str] = None) -> str:
    """
    A public listing: count line then cards, or an error banner / empty state.
    """
    if error:
        return f"⚠️ {error}"
    records = records or []
    if not records:
        title, hint = PUBLIC_EMPTY[spec.name]
        return f"{count_label(spec, 0)}\n\n{title}\n{hint}"
    render_card = CARD_RENDERERS[spec.name]
    cards = "\n\n".join(render_card(r) for r in records)
    return f"{count_label(spec, len(records))}\n\n{cards}"


# ── admin dashboard ───────────────────────────────────────

def render_dashboard(workspace: Any, sessions: Optional[dict] = None) -> str:
    """
    The whole admin view: stats, edit modes, sync status and all tables.

    Args:
        workspace: The AdminWorkspace whose collections are shown.
        sessions: Optional {dataset: FormSession} for the mode pills.
    """
    stats = workspace.stats()
    lines = [
        "🗂️ Zemora admin",
        f"Tools: {stats['tools']} | Guides: {stats['guides']} | Blog: {stats['blog']}",
    ]
    if sessions:
        modes = " | ".join(f"{name}: {session.mode}" for name, session in sessions.items())
        lines.append(f"Mode: {modes}")
    lines.append(f"● {workspace.status}")
    for name, repository in workspace.repositories.items():
        lines.append("")
        lines.append(f"── {repository.spec.plural.capitalize()} ──")
        lines.append(render_admin_table(repository.spec, repository.all()))
    return "\n".join(lines)
