"""
models/datasets.py
------------------
Registry of the three content collections (tools, guides, blog).
Every layer looks collections up here instead of hard-coding names.
"""

from dataclasses import dataclass
from typing import Optional

from config import STORAGE_KEY_PREFIX
from models.blog_post import BlogPost
from models.guide import Guide
from models.tool import Tool


@dataclass(frozen=True)
class DatasetSpec:
    """
    Static description of one collection.

    Attributes:
        name: Collection name used in commands and broadcast messages.
        record_type: Model class (Tool, Guide or BlogPost).
        label: Singular human label ("tool", "guide", "blog post").
        plural: Plural human label.
        snapshot_file: File name of the bundled JSON snapshot.
        search_fields: Fields matched by the free-text query.
        has_category: Whether the category filter applies.
        sort_keys: Accepted sort keys, default first (empty = unsorted).
        storage_key: Key of the collection in the shared key-value store.
    """
    name: str
    record_type: type
    label: str
    plural: str
    snapshot_file: str
    search_fields: tuple
    has_category: bool
    sort_keys: tuple
    storage_key: str

    @property
    def default_sort(self) -> Optional[str]:
        return self.sort_keys[0] if self.sort_keys else None

    def from_dict(self, data: dict):
        return self.record_type.from_dict(data)


TOOLS = DatasetSpec(
    name="tools",
    record_type=Tool,
    label="tool",
    plural="tools",
    snapshot_file="tools.json",
    search_fields=("name", "tags", "platform"),
    has_category=True,
    sort_keys=("featured", "name-asc", "name-desc", "difficulty"),
    storage_key=f"{STORAGE_KEY_PREFIX}tools",
)

GUIDES = DatasetSpec(
    name="guides",
    record_type=Guide,
    label="guide",
    plural="guides",
    snapshot_file="guides.json",
    search_fields=("title", "slug", "excerpt", "content", "tags"),
    has_category=False,
    sort_keys=(),
    storage_key=f"{STORAGE_KEY_PREFIX}guides",
)

BLOG = DatasetSpec(
    name="blog",
    record_type=BlogPost,
    label="blog post",
    plural="blog posts",
    snapshot_file="blog.json",
    search_fields=("title", "slug", "excerpt", "content", "tags"),
    has_category=True,
    sort_keys=("newest", "oldest", "title-asc", "title-desc"),
    storage_key=f"{STORAGE_KEY_PREFIX}blog",
)

DATASETS: dict[str, DatasetSpec] = {spec.name: spec for spec in (TOOLS, GUIDES, BLOG)}


def get_spec(name: str) -> DatasetSpec:
    """
    Look up a collection by name.

    Raises:
        ValueError: If the name is not tools, guides, or blog.
    """
    spec = DATASETS.get((name or "").strip().lower())
    if spec is None:
        raise ValueError("dataset must be tools, guides, or blog")
    return spec


def spec_for_key(storage_key: str) -> Optional[DatasetSpec]:
    """Return the collection stored under ``storage_key``, if any."""
    for spec in DATASETS.values():
        if spec.storage_key == storage_key:
            return spec
    return None
