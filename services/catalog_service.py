"""
services/catalog_service.py
---------------------------
The public side of the site: home, tools, guides and blog listings.

Each request fetches the published JSON once and renders it; nothing is
written back and nothing is cached between requests.
"""

from typing import Optional

from models.datasets import BLOG, GUIDES, TOOLS, DatasetSpec, get_spec
from repositories.dataset_repo import records_from_json
from services.filter_service import categories_of, filter_and_sort
from services.render_service import LOAD_ERRORS, render_guide_card, render_page, render_tool_card
from services.snapshot_service import SnapshotSource
from utils.logger import get_logger

logger = get_logger(__name__)

HOME_FEATURED_TOOLS = 6
HOME_LATEST_GUIDES = 3


class CatalogService:
    """Renders the public listings from the bundled snapshots."""

    def __init__(self, snapshots: Optional[SnapshotSource] = None):
        self.snapshots = snapshots or SnapshotSource()

    def load(self, spec: DatasetSpec) -> Optional[list]:
        """One-shot fetch. None means the page should show its error banner."""
        raw = self.snapshots.fetch(spec)
        if raw is None:
            return None
        try:
            return records_from_json(spec, raw)
        except ValueError as e:
            logger.error(f"Failed to load {spec.plural}: {e}")
            return None

    def page(self, dataset: str, query: str = "", category: str = "all",
             sort: Optional[str] = None, featured_only: bool = False) -> str:
        """Render a filtered, sorted listing of one collection."""
        spec = get_spec(dataset)
        return self._render(spec, self.load(spec), query, category, sort, featured_only)

    def blog_page(self, query: str = "", category: str = "all",
                  sort: Optional[str] = None, featured_only: bool = False) -> str:
        """The blog listing headed by its category line, from a single fetch."""
        posts = self.load(BLOG)
        text = self._render(BLOG, posts, query, category, sort, featured_only)
        if posts is None:
            return text
        line = " · ".join(["all"] + categories_of(posts))
        return f"🏷️ {line}\n\n{text}"

    def _render(self, spec: DatasetSpec, records: Optional[list], query: str,
                category: str, sort: Optional[str], featured_only: bool) -> str:
        if records is None:
            return render_page(spec, None, error=LOAD_ERRORS[spec.name])
        visible = filter_and_sort(records, spec, query=query, category=category,
                                  sort=sort, featured_only=featured_only)
        return render_page(spec, visible)

    def home(self) -> str:
        """Featured tools and the latest guides."""
        sections = []
        tools = self.load(TOOLS)
        if tools is None:
            sections.append(f"⚠️ {LOAD_ERRORS[TOOLS.name]}")
        else:
            featured = [t for t in tools if t.featured][:HOME_FEATURED_TOOLS]
            sections.append("⭐ Featured tools\n\n" + "\n\n".join(render_tool_card(t) for t in featured))

        guides = self.load(GUIDES)
        if guides:
            latest = guides[:HOME_LATEST_GUIDES]
            sections.append("📚 Latest guides\n\n" + "\n\n".join(render_guide_card(g) for g in latest))
        return "\n\n".join(sections)
