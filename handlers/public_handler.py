"""
handlers/public_handler.py
---------------------------
The public pages: /home, /tools, /guides, /blog.
Each request reads the published snapshot once; no login needed.
"""

from typing import Sequence

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import get_catalog, reply_long
from models.datasets import get_spec
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)


def parse_listing_args(dataset: str, args: Sequence[str]) -> dict:
    """
    Split command arguments into listing options.

    `category=x` and `sort=x` set options (where the collection supports
    them), a bare `featured` restricts tools to featured ones, and every
    other word joins the search query.

    Returns:
        Dict with 'query', 'category', 'sort' and 'featured_only'.
    """
    spec = get_spec(dataset)
    options = {"query": "", "category": "all", "sort": None, "featured_only": False}
    words = []
    for arg in args or []:
        key, sep, value = arg.partition("=")
        key = key.lower()
        if sep and key == "category" and spec.has_category:
            options["category"] = value or "all"
        elif sep and key == "sort" and spec.sort_keys:
            options["sort"] = value.lower() or None
        elif arg.lower() == "featured" and spec.name == "tools":
            options["featured_only"] = True
        else:
            words.append(arg)
    options["query"] = " ".join(words)
    return options


async def _listing(update: Update, context: ContextTypes.DEFAULT_TYPE, dataset: str) -> None:
    options = parse_listing_args(dataset, context.args)
    text = get_catalog(context).page(dataset, **options)
    await reply_long(update, text)


@rate_limited
async def home_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /home - featured tools and the latest guides."""
    await reply_long(update, get_catalog(context).home())


@rate_limited
async def tools_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tools [words] [category=..] [sort=..] [featured]."""
    await _listing(update, context, "tools")


@rate_limited
async def guides_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /guides [words]."""
    await _listing(update, context, "guides")


@rate_limited
async def blog_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /blog [words] [category=..] [sort=..]."""
    catalog = get_catalog(context)
    options = parse_listing_args("blog", context.args)
    await reply_long(update, catalog.blog_page(**options))
