import io
import json

import pandas as pd
import requests

from models.datasets import TOOLS
from services.catalog_service import CatalogService
from services.export_service import ExportService
from services.snapshot_service import SnapshotSource
from tests.samples import SAMPLE_TOOLS


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.response


# ── snapshots ─────────────────────────────────────────────

def test_local_snapshot(snapshots) -> None:
    assert snapshots.fetch(TOOLS) == SAMPLE_TOOLS


def test_missing_local_snapshot_is_none(tmp_path) -> None:
    assert SnapshotSource(base=str(tmp_path)).fetch(TOOLS) is None


def test_remote_snapshot_url() -> None:
    session = FakeSession(FakeResponse(SAMPLE_TOOLS))
    source = SnapshotSource(base="https://cdn.example.com/data/", session=session)

    assert source.fetch(TOOLS) == SAMPLE_TOOLS
    assert session.urls == ["https://cdn.example.com/data/tools.json"]


def test_remote_failures_are_none() -> None:
    down = SnapshotSource(base="https://x.test", session=FakeSession(error=requests.ConnectionError("down")))
    missing = SnapshotSource(base="https://x.test", session=FakeSession(FakeResponse(status=404)))
    wrong_shape = SnapshotSource(base="https://x.test", session=FakeSession(FakeResponse({"tools": []})))

    assert down.fetch(TOOLS) is None
    assert missing.fetch(TOOLS) is None
    assert wrong_shape.fetch(TOOLS) is None


# ── public catalog ────────────────────────────────────────

def test_tools_page_filters_and_sorts(snapshots) -> None:
    page = CatalogService(snapshots).page("tools", sort="name-desc", category="all")

    assert page.startswith("3 tools")
    assert page.index("Gamma") < page.index("Beta") < page.index("Alpha")


def test_featured_only_page(snapshots) -> None:
    page = CatalogService(snapshots).page("tools", featured_only=True)

    assert page.startswith("2 tools")
    assert "Alpha" not in page


def test_page_shows_error_when_snapshot_missing(tmp_path) -> None:
    catalog = CatalogService(SnapshotSource(base=str(tmp_path)))

    assert catalog.page("tools") == "⚠️ Could not load tools. Please try again later."
    assert catalog.page("blog") == "⚠️ Could not load blog posts."


def test_home_shows_featured_tools_and_guides(snapshots) -> None:
    home = CatalogService(snapshots).home()

    assert "⭐ Featured tools" in home
    assert "Beta" in home and "Gamma" in home
    assert "Alpha" not in home.split("📚")[0]
    assert "Install Alpha" in home


class CountingSnapshots(SnapshotSource):
    def __init__(self, base):
        super().__init__(base=base)
        self.fetched = []

    def fetch(self, spec):
        self.fetched.append(spec.name)
        return super().fetch(spec)


def test_blog_page_fetches_once(snapshot_dir) -> None:
    snapshots = CountingSnapshots(str(snapshot_dir))

    page = CatalogService(snapshots).blog_page(category="news")

    assert snapshots.fetched == ["blog"]
    assert page.startswith("🏷️ all · news · reviews\n\n1 posts")


def test_blog_page_error_has_no_category_line(tmp_path) -> None:
    page = CatalogService(SnapshotSource(base=str(tmp_path))).blog_page()

    assert page == "⚠️ Could not load blog posts."


# ── exports ───────────────────────────────────────────────

def test_json_export_is_reimportable(workspace) -> None:
    exports = ExportService(workspace)

    buffer = exports.export_json("tools")
    text = buffer.getvalue().decode("utf-8")

    assert exports.filename("tools", "json") == "zemora-tools.json"
    assert text.startswith("[\n  {")
    assert json.loads(text) == workspace.repository("tools").to_json()
    assert workspace.import_json("tools", text)["success"] is True


def test_csv_export_joins_lists(workspace) -> None:
    buffer = ExportService(workspace).export_csv("tools")

    df = pd.read_csv(io.BytesIO(buffer.getvalue()), encoding="utf-8-sig")

    assert list(df["name"]) == ["Alpha", "Beta", "Gamma"]
    assert df.loc[1, "platform"] == "macOS, Linux"


def test_excel_export_has_category_sheet(workspace) -> None:
    buffer = ExportService(workspace).export_excel("tools")

    sheets = pd.read_excel(buffer, sheet_name=None)

    assert set(sheets) == {"tools", "categories"}
    assert len(sheets["tools"]) == 3
