import json

import pytest

from db import kv_store
from db.kv_store import KeyValueStore, MemoryKeyValueStore, MemoryStorageArea
from db.pubsub import MemoryBroadcastHub, MemoryBroadcastChannel
from repositories.persistent_store import PersistentStore


class BrokenBackend(KeyValueStore):
    def get_item(self, key):
        raise OSError("disk on fire")

    def set_item(self, key, value):
        raise OSError("quota exceeded")


def test_write_then_read() -> None:
    store = PersistentStore(MemoryKeyValueStore())
    store.write("zemora_tools", [{"id": 1, "name": "A"}])

    assert store.read("zemora_tools") == [{"id": 1, "name": "A"}]


def test_empty_array_is_a_hit() -> None:
    store = PersistentStore(MemoryKeyValueStore())
    store.write("zemora_tools", [])

    assert store.read("zemora_tools") == []


@pytest.mark.parametrize("raw", ["not json", "{\"a\": 1}", "42", ""])
def test_malformed_or_non_array_values_read_as_missing(raw) -> None:
    backend = MemoryKeyValueStore()
    backend.set_item("zemora_tools", raw)

    assert PersistentStore(backend).read("zemora_tools") is None


def test_absent_key_reads_as_missing() -> None:
    assert PersistentStore(MemoryKeyValueStore()).read("zemora_blog") is None


def test_backend_failures_never_raise() -> None:
    store = PersistentStore(BrokenBackend())

    store.write("zemora_tools", [{"id": 1}])
    assert store.read("zemora_tools") is None


def test_memory_values_must_be_strings() -> None:
    with pytest.raises(TypeError):
        MemoryKeyValueStore().set_item("k", ["not", "a", "string"])


def test_storage_events_reach_other_views_only() -> None:
    area = MemoryStorageArea()
    writer = MemoryKeyValueStore(area)
    reader = MemoryKeyValueStore(area)
    seen_by_writer, seen_by_reader = [], []
    writer.subscribe(seen_by_writer.append)
    reader.subscribe(seen_by_reader.append)

    writer.set_item("zemora_tools", json.dumps([1]))
    writer.remove_item("zemora_tools")

    assert reader.poll() == 2
    assert writer.poll() == 0
    assert seen_by_writer == []
    assert [e.new_value for e in seen_by_reader] == ["[1]", None]
    assert seen_by_reader[1].old_value == "[1]"


def test_unchanged_writes_raise_no_event() -> None:
    area = MemoryStorageArea()
    writer = MemoryKeyValueStore(area)
    reader = MemoryKeyValueStore(area)

    writer.set_item("k", "v")
    writer.set_item("k", "v")
    writer.remove_item("absent")

    assert reader.poll() == 1


def test_closed_view_stops_hearing_writes() -> None:
    area = MemoryStorageArea()
    writer = MemoryKeyValueStore(area)
    reader = MemoryKeyValueStore(area)
    writer.set_item("k", "v")
    reader.close()

    writer.set_item("k", "w")

    assert reader.poll() == 0
    reader.close()


class FakeCursor:
    def __init__(self, rowcount):
        self.rowcount = rowcount
        self.executed = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))


class FakeConnection:
    def __init__(self, rowcount):
        self.cur = FakeCursor(rowcount)
        self.committed = False

    def cursor(self):
        return self.cur

    def commit(self):
        self.committed = True

    def rollback(self):
        pass


@pytest.mark.parametrize("rowcount, notified", [(0, False), (1, True)])
def test_postgres_notifies_only_when_a_row_changed(monkeypatch, rowcount, notified) -> None:
    conn = FakeConnection(rowcount)
    monkeypatch.setattr(kv_store, "get_connection", lambda: conn)
    monkeypatch.setattr(kv_store, "release_connection", lambda c: None)

    kv_store.PostgresKeyValueStore("me").set_item("k", "v")

    statements = [sql for sql, _ in conn.cur.executed]
    assert "IS DISTINCT FROM" in statements[0]
    assert any("pg_notify" in sql for sql in statements) is notified
    assert conn.committed


def test_events_wait_for_poll() -> None:
    area = MemoryStorageArea()
    writer = MemoryKeyValueStore(area)
    reader = MemoryKeyValueStore(area)
    seen = []
    reader.subscribe(seen.append)

    writer.set_item("k", "v")

    assert seen == []
    reader.poll()
    assert len(seen) == 1


def test_broadcast_skips_sender_and_copies_payload() -> None:
    hub = MemoryBroadcastHub()
    sender, receiver = hub.channel(), hub.channel()
    received, echoed = [], []
    sender.on_message(echoed.append)
    receiver.on_message(received.append)
    message = {"data": [{"id": 1}]}

    sender.post_message(message)
    message["data"].append({"id": 2})

    assert receiver.poll() == 1
    assert sender.poll() == 0
    assert received == [{"data": [{"id": 1}]}]
    assert echoed == []


def test_broadcast_is_scoped_by_channel_name() -> None:
    hub = MemoryBroadcastHub()
    sender = hub.channel("a")
    other = hub.channel("b")

    sender.post_message({"x": 1})

    assert other.poll() == 0


def test_closed_channel_rejects_posts() -> None:
    channel = MemoryBroadcastChannel()
    channel.close()

    with pytest.raises(RuntimeError):
        channel.post_message({"x": 1})
