import json
import os
import sys
from pathlib import Path

import pytest

os.environ["STORE_BACKEND"] = "memory"
os.environ["ADMIN_PASSWORD"] = "test-password"
os.environ["ADMIN_USER_IDS"] = ""

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from db.kv_store import MemoryKeyValueStore, MemoryStorageArea  # noqa: E402
from db.pubsub import MemoryBroadcastHub  # noqa: E402
from repositories.dataset_repo import IdFactory  # noqa: E402
from security import auth  # noqa: E402
from services.admin_service import AdminWorkspace  # noqa: E402
from services.snapshot_service import SnapshotSource  # noqa: E402
from tests.samples import SAMPLE_BLOG, SAMPLE_GUIDES, SAMPLE_TOOLS  # noqa: E402


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now


@pytest.fixture(autouse=True)
def _logged_out():
    auth._admin_chats.clear()
    yield
    auth._admin_chats.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def snapshot_dir(tmp_path):
    (tmp_path / "tools.json").write_text(json.dumps(SAMPLE_TOOLS), encoding="utf-8")
    (tmp_path / "guides.json").write_text(json.dumps(SAMPLE_GUIDES), encoding="utf-8")
    (tmp_path / "blog.json").write_text(json.dumps(SAMPLE_BLOG), encoding="utf-8")
    return tmp_path


@pytest.fixture
def snapshots(snapshot_dir):
    return SnapshotSource(base=str(snapshot_dir))


@pytest.fixture
def area():
    return MemoryStorageArea()


@pytest.fixture
def hub():
    return MemoryBroadcastHub()


@pytest.fixture
def make_workspace(area, hub, snapshots, clock):
    """Build workspaces sharing one storage area and one broadcast hub."""
    created = []

    def factory(origin_id: str, with_channel: bool = True, start: bool = True) -> AdminWorkspace:
        backend = MemoryKeyValueStore(area, origin_id=origin_id)
        channel = hub.channel() if with_channel else None
        workspace = AdminWorkspace(backend, channel, snapshots, origin_id, IdFactory(clock))
        if start:
            workspace.start()
        created.append(workspace)
        return workspace

    yield factory
    for workspace in created:
        workspace.stop()


@pytest.fixture
def workspace(make_workspace):
    return make_workspace("local")
