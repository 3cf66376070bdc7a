"""
services/filter_service.py
--------------------------
Pure filtering and sorting of collection records.
Used by the public pages and the admin lists alike; nothing here touches
storage or mutates its input.
"""

import math
from datetime import timezone
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser

from models.datasets import DATASETS, DatasetSpec

DIFFICULTY_ORDER = ("beginner", "intermediate", "advanced")

SORT_KEYS: dict[str, tuple] = {name: spec.sort_keys for name, spec in DATASETS.items()}


def difficulty_rank(level: Optional[str]) -> float:
    """beginner < intermediate < advanced < anything else."""
    try:
        return DIFFICULTY_ORDER.index((level or "").strip().lower())
    except ValueError:
        return math.inf


def date_value(value: Optional[str]) -> float:
    """POSIX timestamp of an ISO date; missing or invalid dates sort as earliest."""
    if not value:
        return -math.inf
    try:
        parsed = date_parser.isoparse(str(value))
    except (ValueError, OverflowError):
        return -math.inf
    if parsed.tzinfo is None:
        # Naive dates are read as UTC so they compare with aware ones.
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _text_key(value: Optional[str]) -> str:
    return (value or "").casefold()


def _field_values(record: Any, field: str) -> list[str]:
    value = getattr(record, field, None)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def matches_query(record: Any, fields: Iterable[str], query: str) -> bool:
    """Case-insensitive substring match on any of `fields`. Empty query matches."""
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return any(
        needle in value.lower()
        for field in fields
        for value in _field_values(record, field)
    )


def sort_records(records: list, spec: DatasetSpec, sort: Optional[str]) -> list:
    """
    Order `records` by `sort`. Python's sort is stable, so ties keep input order.

    Unknown keys fall back to the collection default. Collections without
    sort keys (guides) are returned in input order.
    """
    if not spec.sort_keys:
        return list(records)
    key = sort if sort in spec.sort_keys else spec.default_sort

    if spec.name == "tools":
        if key == "name-asc":
            return sorted(records, key=lambda t: _text_key(t.name))
        if key == "name-desc":
            return sorted(records, key=lambda t: _text_key(t.name), reverse=True)
        if key == "difficulty":
            return sorted(records, key=lambda t: difficulty_rank(t.difficulty))
        return sorted(records, key=lambda t: (not t.featured, _text_key(t.name)))

    if key == "oldest":
        return sorted(records, key=lambda p: date_value(p.date))
    if key == "title-asc":
        return sorted(records, key=lambda p: _text_key(p.title))
    if key == "title-desc":
        return sorted(records, key=lambda p: _text_key(p.title), reverse=True)
    return sorted(records, key=lambda p: date_value(p.date), reverse=True)


def filter_and_sort(records: Iterable[Any], spec: DatasetSpec, query: str = "",
                    category: str = "all", sort: Optional[str] = None,
                    featured_only: bool = False) -> list:
    """
    Compute the visible, ordered slice of a collection.

    Args:
        records: Model instances of the collection described by `spec`.
        spec: Collection description (search fields, category support, sorts).
        query: Free-text query; empty matches everything.
        category: Exact category, or "all". Ignored for guides.
        sort: Sort key; None or unknown means the collection default.
        featured_only: Keep featured tools only. Ignored outside tools.

    Returns:
        A new list; `records` is left untouched.
    """
    selected = []
    for record in records:
        if not matches_query(record, spec.search_fields, query):
            continue
        if spec.has_category and category and category != "all":
            if getattr(record, "category", None) != category:
                continue
        if featured_only and spec.name == "tools" and not record.featured:
            continue
        selected.append(record)
    return sort_records(selected, spec, sort)


def categories_of(records: Iterable[Any]) -> list[str]:
    """Distinct non-empty categories in first-seen order."""
    seen: list[str] = []
    for record in records:
        category = getattr(record, "category", None)
        if category and category not in seen:
            seen.append(category)
    return seen
