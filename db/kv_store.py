"""
db/kv_store.py
--------------
Shared key-value storage for the content collections.

Each bot process is one "context". All contexts of a deployment see the same
keys; a write in one context raises a StorageEvent in every *other* context
(never in the writer), delivered when that context calls `poll()`.

Backends:
    - PostgresKeyValueStore: table `kv_store`, change events via NOTIFY.
    - MemoryKeyValueStore: views over a shared in-process MemoryStorageArea.
"""

import json
from dataclasses import dataclass
from typing import Callable, Optional

from config import STORAGE_CHANNEL
from db.connection import get_connection, release_connection
from db.listener import PgNotifyListener
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """A key changed in another context. `new_value` is None when the key was removed."""
    key: str
    old_value: Optional[str]
    new_value: Optional[str]


StorageListener = Callable[[StorageEvent], None]


class KeyValueStore:
    """Interface shared by the storage backends. Values are raw strings."""

    origin_id: str = ""

    def get_item(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def subscribe(self, listener: StorageListener) -> None:
        """Receive StorageEvents for writes made by other contexts."""
        raise NotImplementedError

    def poll(self) -> int:
        """Deliver pending StorageEvents. Returns how many were delivered."""
        return 0

    def close(self) -> None:
        """Stop receiving StorageEvents."""


# ── PostgreSQL ────────────────────────────────────────────

class PostgresKeyValueStore(KeyValueStore):
    """Key-value rows in `kv_store`, shared by every process on the database."""

    def __init__(self, origin_id: str, listener: Optional[PgNotifyListener] = None,
                 channel: str = STORAGE_CHANNEL):
        self.origin_id = origin_id
        self.channel = channel
        self._listener = listener
        self._listeners: list[StorageListener] = []

    def get_item(self, key: str) -> Optional[str]:
        sql = "SELECT value FROM kv_store WHERE key = %s;"
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (key,))
                row = cur.fetchone()
                return row[0] if row else None
        finally:
            release_connection(conn)

    def set_item(self, key: str, value: str) -> None:
        sql = """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (%s, %s, NOW())
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
            WHERE kv_store.value IS DISTINCT FROM EXCLUDED.value;
        """
        self._write(key, sql, (key, value))

    def remove_item(self, key: str) -> None:
        self._write(key, "DELETE FROM kv_store WHERE key = %s;", (key,))

    def subscribe(self, listener: StorageListener) -> None:
        if self._listener is None:
            raise RuntimeError("PostgresKeyValueStore needs a PgNotifyListener to subscribe.")
        if not self._listeners:
            self._listener.listen(self.channel, self._on_notify)
        self._listeners.append(listener)

    def poll(self) -> int:
        if self._listener is None:
            return 0
        return self._listener.poll()

    def close(self) -> None:
        self._listeners.clear()

    def _write(self, key: str, sql: str, params: tuple) -> None:
        """
        Run the write and its change notification in one transaction.
        A write that changed no row (same value, or nothing to delete) notifies nobody.
        """
        payload = json.dumps({"key": key, "origin": self.origin_id})
        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                if cur.rowcount:
                    cur.execute("SELECT pg_notify(%s, %s);", (self.channel, payload))
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to write key '{key}': {e}")
            raise
        finally:
            release_connection(conn)

    def _on_notify(self, payload: str) -> None:
        try:
            message = json.loads(payload)
            key = message["key"]
            origin = message.get("origin")
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring malformed storage notification: {e}")
            return
        if origin == self.origin_id:
            return
        try:
            value = self.get_item(key)
        except Exception as e:
            logger.error(f"Failed to read '{key}' after change notification: {e}")
            return
        event = StorageEvent(key=key, old_value=None, new_value=value)
        for listener in list(self._listeners):
            listener(event)


# ── In-memory ─────────────────────────────────────────────

class MemoryStorageArea:
    """The shared storage all MemoryKeyValueStore views read and write."""

    def __init__(self):
        self._data: dict[str, str] = {}
        self._views: list["MemoryKeyValueStore"] = []

    def attach(self, view: "MemoryKeyValueStore") -> None:
        self._views.append(view)

    def detach(self, view: "MemoryKeyValueStore") -> None:
        if view in self._views:
            self._views.remove(view)

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, writer: "MemoryKeyValueStore", key: str, value: Optional[str]) -> None:
        old = self._data.get(key)
        if old == value:
            return
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value
        event = StorageEvent(key=key, old_value=old, new_value=value)
        for view in self._views:
            if view is not writer:
                view.enqueue(event)


class MemoryKeyValueStore(KeyValueStore):
    """One context's view of a MemoryStorageArea."""

    def __init__(self, area: Optional[MemoryStorageArea] = None, origin_id: str = ""):
        self.area = area if area is not None else MemoryStorageArea()
        self.origin_id = origin_id
        self._pending: list[StorageEvent] = []
        self._listeners: list[StorageListener] = []
        self.area.attach(self)

    def get_item(self, key: str) -> Optional[str]:
        return self.area.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("values must be strings")
        self.area.put(self, key, value)

    def remove_item(self, key: str) -> None:
        self.area.put(self, key, None)

    def subscribe(self, listener: StorageListener) -> None:
        self._listeners.append(listener)

    def enqueue(self, event: StorageEvent) -> None:
        self._pending.append(event)

    def poll(self) -> int:
        delivered = 0
        while self._pending:
            event = self._pending.pop(0)
            for listener in list(self._listeners):
                listener(event)
            delivered += 1
        return delivered

    def close(self) -> None:
        self.area.detach(self)
        self._pending.clear()
