from models.blog_post import BlogPost
from models.datasets import BLOG, GUIDES, TOOLS
from models.guide import Guide
from models.tool import Tool
from services.render_service import (
    estimate_read_time,
    format_category,
    format_date,
    render_admin_table,
    render_blog_card,
    render_dashboard,
    render_guide_card,
    render_page,
    render_tool_card,
    truncate,
)


def test_format_date() -> None:
    assert format_date("2024-03-05") == "Mar 5, 2024"
    assert format_date(None) == "No date"
    assert format_date("soon") == "No date"


def test_read_time_is_at_least_one_minute() -> None:
    assert estimate_read_time("") == 1
    assert estimate_read_time("word " * 401) == 3


def test_category_labels() -> None:
    assert format_category("ai") == "AI Tool"
    assert format_category("custom") == "custom"


def test_truncate() -> None:
    assert truncate("abcdef", 3) == "abc..."
    assert truncate("abc", 3) == "abc"


def test_tool_card_uses_default_icon() -> None:
    card = render_tool_card(Tool(name="Plain", download="https://example.com", platform=["Linux", "macOS"]))

    assert card.startswith("🛠️ Plain")
    assert "Linux · macOS" in card
    assert card.endswith("Download → https://example.com")


def test_guide_and_blog_cards() -> None:
    guide = render_guide_card(Guide(id=3, title="G", excerpt="Short"))
    post = render_blog_card(BlogPost(id=4, title="P", content="a b c", category="news",
                                     date="2024-01-15", tags=["x"]))

    assert guide == "📖 G\nShort..."
    assert post.endswith("#x")
    assert "detail.html" not in guide + post
    assert "Jan 15, 2024 | 1 min read | news" in post
    assert "#x" in post


def test_empty_states() -> None:
    assert render_admin_table(TOOLS, []) == "No tools yet. Add one below."
    assert render_admin_table(GUIDES, []) == "No guides yet."
    assert render_page(BLOG, []) == "0 posts\n\nNo posts found\nTry another keyword."


def test_error_banner_replaces_listing() -> None:
    assert render_page(TOOLS, None, error="Could not load tools.") == "⚠️ Could not load tools."


def test_page_has_count_line() -> None:
    page = render_page(GUIDES, [Guide(id=1, title="A"), Guide(id=2, title="B")])

    assert page.startswith("2 guides\n\n")


def test_admin_row_shows_featured_flag() -> None:
    table = render_admin_table(TOOLS, [Tool(id=7, name="T", featured=True, tags=["a", "b"])])

    assert table == "#7 T | developer |  | a, b | featured: Yes"


def test_dashboard_lists_every_collection(workspace) -> None:
    text = render_dashboard(workspace)

    assert "Tools: 3 | Guides: 2 | Blog: 3" in text
    assert "● Ready" in text
    assert "── Blog posts ──" in text
    assert "#1 Alpha" in text
