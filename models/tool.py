"""
models/tool.py
--------------
Domain model for a downloadable tool listed on the site.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from models.record import as_optional_text, as_text, as_text_list, extras_of

DEFAULT_CATEGORY = "developer"


@dataclass
class Tool:
    """
    Represents a single tool card.

    Attributes:
        id: Creation-time identifier (None until the repository assigns one).
        name: Display name (required).
        category: Category slug (e.g., developer, design, ai).
        platform: Supported platforms (e.g., Windows, macOS).
        tags: Free-form search tags.
        difficulty: beginner | intermediate | advanced (free text allowed).
        license: License label (e.g., Free, MIT, Freemium).
        icon: Optional glyph shown on the card.
        download: http/https download URL (required).
        description: Short description.
        featured: Whether the tool is promoted on the home page.
        extras: Unknown keys carried through from imported JSON.
    """
    name: str = ""
    category: str = DEFAULT_CATEGORY
    platform: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    difficulty: str = ""
    license: str = ""
    icon: Optional[str] = None
    download: str = ""
    description: str = ""
    featured: bool = False
    id: Optional[Union[int, str]] = None
    extras: dict = field(default_factory=dict)

    FIELDS = (
        "id", "name", "category", "platform", "tags", "difficulty",
        "license", "icon", "download", "description", "featured",
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Tool":
        return cls(
            id=data.get("id"),
            name=as_text(data.get("name")),
            category=as_text(data.get("category"), DEFAULT_CATEGORY),
            platform=as_text_list(data.get("platform")),
            tags=as_text_list(data.get("tags")),
            difficulty=as_text(data.get("difficulty")),
            license=as_text(data.get("license")),
            icon=as_optional_text(data.get("icon")),
            download=as_text(data.get("download")),
            description=as_text(data.get("description")),
            featured=bool(data.get("featured", False)),
            extras=extras_of(data, cls.FIELDS),
        )

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "platform": list(self.platform),
            "tags": list(self.tags),
            "difficulty": self.difficulty,
            "license": self.license,
        }
        if self.icon is not None:
            data["icon"] = self.icon
        data["download"] = self.download
        data["description"] = self.description
        data["featured"] = self.featured
        data.update(self.extras)
        return data

    def __str__(self) -> str:
        star = "⭐ " if self.featured else ""
        return f"{star}{self.name} ({self.category}) #{self.id}"
