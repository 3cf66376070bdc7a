"""
models/record.py
----------------
Coercion helpers shared by the content models.
Records arrive as loosely-shaped JSON; these helpers give every field a
concrete type and default at construction time.
"""

from typing import Any, Iterable, Mapping, Optional


def as_text(value: Any, default: str = "") -> str:
    """Return ``value`` as a string, or ``default`` when it is missing."""
    if value is None:
        return default
    return str(value)


def as_optional_text(value: Any) -> Optional[str]:
    """Return ``value`` as a string, keeping None (and blank) as None."""
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def as_text_list(value: Any) -> list[str]:
    """Return a list of strings from a list, a single string, or nothing."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [str(value)]


def extras_of(data: Mapping[str, Any], known: Iterable[str]) -> dict:
    """Collect the keys a model does not declare, so they survive a save."""
    known = set(known)
    return {k: v for k, v in data.items() if k not in known}
