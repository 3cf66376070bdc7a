from db.kv_store import StorageEvent
from models.datasets import BLOG, TOOLS
from models.tool import Tool
from services.sync_service import MESSAGE_TYPE, build_message


def _message(origin, dataset="tools", data=None):
    return build_message(dataset, data if data is not None else [{"id": 9, "name": "Peer"}], origin)


def test_build_message_shape() -> None:
    message = build_message("blog", [], "abc", ts=123)

    assert message == {"type": MESSAGE_TYPE, "dataset": "blog", "data": [], "origin": "abc", "ts": 123}


def test_own_broadcast_is_ignored(workspace) -> None:
    before = workspace.repository("tools").all()

    assert workspace.notifier.handle_message(_message("local")) is False
    assert workspace.repository("tools").all() == before


def test_peer_broadcast_replaces_collection(workspace) -> None:
    assert workspace.notifier.handle_message(_message("peer")) is True

    assert [t.name for t in workspace.repository("tools").all()] == ["Peer"]
    assert workspace.store.read(TOOLS.storage_key) == [Tool(id=9, name="Peer").to_dict()]
    assert workspace.status.startswith("Updated tools from peer")


def test_malformed_broadcasts_are_ignored(workspace) -> None:
    notifier = workspace.notifier

    assert notifier.handle_message("hello") is False
    assert notifier.handle_message({"type": "other"}) is False
    assert notifier.handle_message({**_message("peer"), "dataset": "videos"}) is False
    assert notifier.handle_message({**_message("peer"), "data": {"id": 1}}) is False
    assert notifier.handle_message(_message("peer", data=[1, 2])) is False
    assert len(workspace.repository("tools")) == 3


def test_storage_event_with_garbage_is_ignored(workspace) -> None:
    before = workspace.repository("tools").all()
    event = StorageEvent(key=TOOLS.storage_key, old_value=None, new_value="not json")

    assert workspace.notifier.handle_storage_event(event) is False
    assert workspace.repository("tools").all() == before


def test_storage_event_for_unknown_key_is_ignored(workspace) -> None:
    event = StorageEvent(key="theme", old_value=None, new_value="[]")

    assert workspace.notifier.handle_storage_event(event) is False


def test_removed_key_reads_as_empty_collection(workspace) -> None:
    event = StorageEvent(key=BLOG.storage_key, old_value="[]", new_value=None)

    assert workspace.notifier.handle_storage_event(event) is True
    assert len(workspace.repository("blog")) == 0
    assert workspace.status.startswith("Storage sync blog")


def test_two_workspaces_converge_over_broadcast(make_workspace) -> None:
    first = make_workspace("first")
    second = make_workspace("second")
    first.repository("guides").create(first.repository("guides").all()[0])

    second.poll()

    assert second.repository("guides").to_json() == first.repository("guides").to_json()


def test_storage_events_carry_changes_without_a_channel(make_workspace) -> None:
    first = make_workspace("first", with_channel=False)
    second = make_workspace("second", with_channel=False)

    first.delete("tools", 1)
    assert len(second.repository("tools")) == 3

    second.poll()

    assert [t.id for t in second.repository("tools").all()] == [2, 3]


def test_writer_does_not_hear_its_own_storage_event(make_workspace) -> None:
    first = make_workspace("first")
    make_workspace("second")
    status = first.status

    first.delete("tools", 1)
    first.poll()

    assert first.status != status
    assert first.status.startswith("Synced tools")


def test_peer_echo_does_not_restore_deleted_records(make_workspace) -> None:
    first = make_workspace("first")
    second = make_workspace("second")

    first.delete("tools", 1)
    second.poll()
    first.delete("tools", 2)

    assert first.poll() == 0
    assert [t.id for t in first.repository("tools").all()] == [3]
    assert [t["id"] for t in first.store.read(TOOLS.storage_key)] == [3]
    assert first.status.startswith("Synced tools")


def test_stopped_workspace_stops_hearing_peers(make_workspace) -> None:
    first = make_workspace("first", with_channel=False)
    second = make_workspace("second", with_channel=False)
    first.stop()

    second.delete("tools", 1)

    assert first.poll() == 0
    assert len(first.repository("tools")) == 3


def test_last_write_wins(make_workspace) -> None:
    first = make_workspace("first", with_channel=False)
    second = make_workspace("second", with_channel=False)

    first.delete("tools", 1)
    second.delete("tools", 2)
    first.poll()

    assert [t["id"] for t in first.store.read(TOOLS.storage_key)] == [1, 3]
    assert [t.id for t in first.repository("tools").all()] == [1, 3]


def test_publish_failure_is_swallowed(workspace) -> None:
    workspace.notifier.channel.close()

    result = workspace.delete("tools", 1)

    assert result["success"] is True
    assert [t.id for t in workspace.repository("tools").all()] == [2, 3]
