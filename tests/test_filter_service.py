import math

import pytest

from models.blog_post import BlogPost
from models.datasets import BLOG, GUIDES, TOOLS
from models.guide import Guide
from models.tool import Tool
from services.filter_service import (
    categories_of,
    date_value,
    difficulty_rank,
    filter_and_sort,
    matches_query,
)
from tests.samples import SAMPLE_BLOG, SAMPLE_GUIDES, SAMPLE_TOOLS


@pytest.fixture
def tools():
    return [Tool.from_dict(t) for t in SAMPLE_TOOLS]


@pytest.fixture
def posts():
    return [BlogPost.from_dict(p) for p in SAMPLE_BLOG]


def _names(records):
    return [r.name for r in records]


def _titles(records):
    return [r.title for r in records]


@pytest.mark.parametrize("spec", [TOOLS, GUIDES, BLOG])
def test_empty_input_gives_empty_output(spec) -> None:
    assert filter_and_sort([], spec, query="x", category="ai", sort="oldest", featured_only=True) == []


def test_featured_first_then_alphabetical() -> None:
    tools = [
        Tool(name="Alpha", featured=False),
        Tool(name="Beta", featured=True),
        Tool(name="Gamma", featured=True),
    ]

    assert _names(filter_and_sort(tools, TOOLS, sort="featured")) == ["Beta", "Gamma", "Alpha"]


def test_default_options_return_everything(tools) -> None:
    result = filter_and_sort(tools, TOOLS)

    assert len(result) == len(tools)
    assert _names(result) == ["Beta", "Gamma", "Alpha"]


def test_input_is_not_mutated(tools) -> None:
    before = list(tools)

    filter_and_sort(tools, TOOLS, sort="name-desc")

    assert tools == before


def test_name_sorts(tools) -> None:
    assert _names(filter_and_sort(tools, TOOLS, sort="name-asc")) == ["Alpha", "Beta", "Gamma"]
    assert _names(filter_and_sort(tools, TOOLS, sort="name-desc")) == ["Gamma", "Beta", "Alpha"]


def test_difficulty_sort_puts_unknown_last(tools) -> None:
    tools.append(Tool(name="Mystery", difficulty="expert"))

    result = filter_and_sort(tools, TOOLS, sort="difficulty")

    assert _names(result) == ["Beta", "Gamma", "Alpha", "Mystery"]


def test_difficulty_rank() -> None:
    assert difficulty_rank("Beginner") < difficulty_rank("intermediate") < difficulty_rank("advanced")
    assert difficulty_rank(None) == math.inf


def test_query_matches_tags_and_platform_case_insensitively(tools) -> None:
    assert _names(filter_and_sort(tools, TOOLS, query="LLM")) == ["Gamma"]
    assert _names(filter_and_sort(tools, TOOLS, query="mac", sort="name-asc")) == ["Beta"]
    assert filter_and_sort(tools, TOOLS, query="First tool") == []


def test_category_and_featured_filters(tools) -> None:
    assert _names(filter_and_sort(tools, TOOLS, category="design")) == ["Beta"]
    assert _names(filter_and_sort(tools, TOOLS, category="all", featured_only=True)) == ["Beta", "Gamma"]


def test_guides_ignore_category_and_keep_order() -> None:
    guides = [Guide.from_dict(g) for g in SAMPLE_GUIDES]

    assert _titles(filter_and_sort(guides, GUIDES, category="news", sort="title-desc")) == [
        "Install Alpha",
        "Tune Gamma",
    ]
    assert _titles(filter_and_sort(guides, GUIDES, query="model")) == ["Tune Gamma"]


def test_blog_dates_missing_sorts_as_earliest(posts) -> None:
    assert _titles(filter_and_sort(posts, BLOG)) == ["Fresh review", "Old news", "Undated"]
    assert _titles(filter_and_sort(posts, BLOG, sort="oldest")) == ["Undated", "Old news", "Fresh review"]


def test_blog_title_sorts_and_unknown_key_falls_back(posts) -> None:
    assert _titles(filter_and_sort(posts, BLOG, sort="title-asc")) == ["Fresh review", "Old news", "Undated"]
    assert _titles(filter_and_sort(posts, BLOG, sort="bogus")) == _titles(filter_and_sort(posts, BLOG))


def test_date_value_handles_bad_input() -> None:
    assert date_value("not a date") == -math.inf
    assert date_value("2024-01-01") < date_value("2024-01-01T00:00:01+00:00")


def test_matches_query_with_blank_query() -> None:
    assert matches_query(Tool(name="x"), TOOLS.search_fields, "   ") is True


def test_categories_in_first_seen_order(posts) -> None:
    assert categories_of(posts) == ["news", "reviews"]
