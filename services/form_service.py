"""
services/form_service.py
------------------------
Form binding for the admin editor: field values ⇄ records, validation,
slug auto-fill and the per-collection edit mode.

Form values are kept as text (lists as comma-separated text, `featured` as
a bool) exactly as an admin types them; `bind()` turns them into a record.
"""

import re
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from models.datasets import DatasetSpec
from models.tool import DEFAULT_CATEGORY

FORM_FIELDS: dict[str, tuple] = {
    "tools": ("name", "category", "platform", "tags", "difficulty", "license",
              "icon", "download", "description", "featured"),
    "guides": ("title", "slug", "excerpt", "content", "tags"),
    "blog": ("title", "slug", "excerpt", "content", "category", "date", "tags"),
}

LIST_FIELDS = ("platform", "tags")

FIELD_ALIASES = {
    "platforms": "platform",
    "tag": "tags",
    "url": "download",
    "summary": "excerpt",
    "body": "content",
}

_TRUE_WORDS = {"1", "true", "yes", "y", "on", "x"}
_FORM_LINE = re.compile(r"^\s*([A-Za-z_ ]+?)\s*[:=]\s*(.*)$")


class ValidationError(ValueError):
    """A record is missing a required field or has a malformed value."""


# ── helpers ───────────────────────────────────────────────

def slugify(text: str) -> str:
    """'My First Guide!' -> 'my-first-guide'."""
    text = (text or "").lower().strip()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"\s+", "-", text)
    return re.sub(r"-+", "-", text)


def is_valid_url(url: Optional[str]) -> bool:
    """True for absolute http/https URLs with a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def split_list(value: Any) -> list[str]:
    """Comma-separated text (or a list) -> trimmed, non-empty, first occurrence kept."""
    if value is None:
        return []
    parts = value if isinstance(value, (list, tuple)) else str(value).split(",")
    result: list[str] = []
    for part in parts:
        item = str(part).strip()
        if item and item not in result:
            result.append(item)
    return result


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in _TRUE_WORDS


def canonical_field(name: str) -> str:
    key = (name or "").strip().lower().replace(" ", "_")
    return FIELD_ALIASES.get(key, key)


def parse_form_text(text: str) -> dict[str, str]:
    """
    Parse `field: value` lines (as typed in a chat) into a dict.

    Lines without a `:`/`=` separator are ignored. Later lines win.
    """
    fields: dict[str, str] = {}
    for line in (text or "").splitlines():
        match = _FORM_LINE.match(line)
        if match:
            fields[canonical_field(match.group(1))] = match.group(2).strip()
    return fields


# ── record <-> fields ─────────────────────────────────────

def blank_fields(spec: DatasetSpec) -> dict[str, Any]:
    values: dict[str, Any] = {name: "" for name in FORM_FIELDS[spec.name]}
    if spec.name == "tools":
        values["category"] = DEFAULT_CATEGORY
        values["featured"] = False
    return values


def unbind(record: Any, spec: DatasetSpec) -> dict[str, Any]:
    """Populate form values from a record (the load-for-edit direction)."""
    values = blank_fields(spec)
    for name in FORM_FIELDS[spec.name]:
        value = getattr(record, name, None)
        if name in LIST_FIELDS:
            values[name] = ", ".join(value or [])
        elif name == "featured":
            values[name] = bool(value)
        elif name == "category" and spec.name == "tools":
            values[name] = value or DEFAULT_CATEGORY
        else:
            values[name] = value or ""
    return values


def bind(values: Mapping[str, Any], spec: DatasetSpec, record_id: Any = None) -> Any:
    """Build a record from form values: strings trimmed, lists split, checkbox coerced."""
    data: dict[str, Any] = {"id": record_id}
    for name in FORM_FIELDS[spec.name]:
        raw = values.get(name)
        if name in LIST_FIELDS:
            data[name] = split_list(raw)
        elif name == "featured":
            data[name] = coerce_bool(raw)
        else:
            data[name] = str(raw if raw is not None else "").strip()
    if spec.name == "tools":
        data["category"] = data["category"] or DEFAULT_CATEGORY
        data["icon"] = data["icon"] or None
    if spec.name == "blog":
        data["category"] = data["category"] or None
        data["date"] = data["date"] or None
    return spec.record_type.from_dict(data)


def validate(record: Any, spec: DatasetSpec) -> None:
    """
    Check required fields.

    Raises:
        ValidationError: With the message shown to the admin.
    """
    if spec.name == "tools":
        if not record.name:
            raise ValidationError("Name is required")
        if not record.download:
            raise ValidationError("Download URL is required")
        if not is_valid_url(record.download):
            raise ValidationError("Download URL must be http/https")
        return
    if not record.title:
        raise ValidationError("Title is required")
    if not record.slug:
        raise ValidationError("Slug is required")


# ── edit session ──────────────────────────────────────────

class FormSession:
    """
    The editor state of one collection: current values and the id being
    edited (None while creating).

    Slug rule: typing a title fills the slug while the slug is empty, or
    while the record is new and the slug has not been typed by hand.
    """

    def __init__(self, spec: DatasetSpec):
        self.spec = spec
        self.editing_id: Any = None
        self.values: dict[str, Any] = blank_fields(spec)
        self.slug_touched = False

    @property
    def mode(self) -> str:
        return "edit" if self.editing_id is not None else "create"

    @property
    def fields(self) -> tuple:
        return FORM_FIELDS[self.spec.name]

    def start_edit(self, record: Any) -> None:
        self.editing_id = record.id
        self.values = unbind(record, self.spec)
        self.slug_touched = False

    def reset(self) -> None:
        self.editing_id = None
        self.values = blank_fields(self.spec)
        self.slug_touched = False

    def set_field(self, name: str, value: Any) -> None:
        name = canonical_field(name)
        if name not in self.fields:
            raise ValidationError(f"Unknown field '{name}' for {self.spec.plural}")
        self.values[name] = coerce_bool(value) if name == "featured" else value
        if name == "slug":
            self.slug_touched = True
        elif name == "title" and "slug" in self.fields:
            self._autofill_slug()

    def set_fields(self, values: Mapping[str, Any]) -> None:
        """
        Apply several fields at once. An explicit slug is applied after the
        title so it always wins over the auto-filled one.

        Raises:
            ValidationError: On an unknown field name; nothing is applied then.
        """
        names = [canonical_field(n) for n in values]
        unknown = [n for n in names if n not in self.fields]
        if unknown:
            raise ValidationError(f"Unknown field '{unknown[0]}' for {self.spec.plural}")
        ordered = sorted(values.items(), key=lambda kv: canonical_field(kv[0]) == "slug")
        for name, value in ordered:
            self.set_field(name, value)

    def _autofill_slug(self) -> None:
        slug = str(self.values.get("slug") or "").strip()
        if not slug or (self.editing_id is None and not self.slug_touched):
            self.values["slug"] = slugify(str(self.values.get("title") or ""))

    def bind(self) -> Any:
        return bind(self.values, self.spec, self.editing_id)


def render_form(session: FormSession) -> str:
    """Text form an admin can copy, edit, and send back."""
    lines = [f"📝 {session.spec.label.capitalize()} form | Mode: {session.mode}"]
    if session.editing_id is not None:
        lines.append(f"Editing #{session.editing_id}")
    for name in session.fields:
        value = session.values.get(name)
        if name == "featured":
            value = "yes" if value else "no"
        lines.append(f"{name}: {value if value is not None else ''}")
    return "\n".join(lines)
