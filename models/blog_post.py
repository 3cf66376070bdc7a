"""
models/blog_post.py
-------------------
Domain model for a blog post.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from models.record import as_optional_text, as_text, as_text_list, extras_of


@dataclass
class BlogPost:
    """
    Represents a single blog post.

    Attributes:
        id: Creation-time identifier (None until the repository assigns one).
        title: Post title (required).
        slug: URL slug, derived from the title by default.
        excerpt: Teaser text shown on cards.
        content: Full body text.
        category: Optional category label.
        date: Optional ISO-8601 publication date.
        tags: Search tags.
        extras: Unknown keys carried through from imported JSON.
    """
    title: str = ""
    slug: str = ""
    excerpt: str = ""
    content: str = ""
    category: Optional[str] = None
    date: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    id: Optional[Union[int, str]] = None
    extras: dict = field(default_factory=dict)

    FIELDS = ("id", "title", "slug", "excerpt", "content", "category", "date", "tags")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BlogPost":
        return cls(
            id=data.get("id"),
            title=as_text(data.get("title")),
            slug=as_text(data.get("slug")),
            excerpt=as_text(data.get("excerpt")),
            content=as_text(data.get("content")),
            category=as_optional_text(data.get("category")),
            date=as_optional_text(data.get("date")),
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
        if self.category is not None:
            data["category"] = self.category
        if self.date is not None:
            data["date"] = self.date
        if self.tags:
            data["tags"] = list(self.tags)
        data.update(self.extras)
        return data

    def __str__(self) -> str:
        return f"{self.title} ({self.date or 'no date'}) #{self.id}"
