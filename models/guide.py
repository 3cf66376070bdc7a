"""
models/guide.py
---------------
Domain model for a how-to guide.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from models.record import as_text, as_text_list, extras_of


@dataclass
class Guide:
    """
    Represents a single guide.

    Attributes:
        id: Creation-time identifier (None until the repository assigns one).
        title: Guide title (required).
        slug: URL slug, derived from the title by default. Not guaranteed unique.
        excerpt: Teaser text shown on cards.
        content: Full body text.
        tags: Optional search tags.
        extras: Unknown keys carried through from imported JSON.
    """
    title: str = ""
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    tags: list[str] = field(default_factory=list)
    id: Optional[Union[int, str]] = None
    extras: dict = field(default_factory=dict)

    FIELDS = ("id", "title", "slug", "excerpt", "content", "tags")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Guide":
        return cls(
            id=data.get("id"),
            title=as_text(data.get("title")),
            slug=as_text(data.get("slug")),
            excerpt=as_text(data.get("excerpt")),
            content=as_text(data.get("content")),
            tags=as_text_list(data.get("tags")),
            extras=extras_of(data, cls.FIELDS),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "content": self.content,
        }
        if self.tags:
            data["tags"] = list(self.tags)
        data.update(self.extras)
        return data

    def __str__(self) -> str:
        return f"{self.title} /{self.slug} #{self.id}"
