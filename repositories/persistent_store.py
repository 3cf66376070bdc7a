"""
repositories/persistent_store.py
--------------------------------
JSON serialization boundary in front of the shared key-value store.

Writes never raise: a failed write is logged and otherwise indistinguishable
from a successful one. Reads never raise: missing, corrupt, or non-array
values all come back as None (a cache miss). No per-record validation
happens here.
"""

import json
from typing import Optional

from db.kv_store import KeyValueStore, StorageListener
from utils.logger import get_logger

logger = get_logger(__name__)


class PersistentStore:
    """Reads and writes whole collections (JSON arrays) by storage key."""

    def __init__(self, backend: KeyValueStore):
        self.backend = backend

    def write(self, key: str, records: list) -> None:
        """
        Serialize `records` and store them under `key`.

        Args:
            key: Storage key of the collection.
            records: List of JSON-serializable dicts.
        """
        try:
            self.backend.set_item(key, json.dumps(records, ensure_ascii=False))
        except Exception as e:
            logger.error(f"Failed to persist '{key}': {e}")

    def read(self, key: str) -> Optional[list]:
        """
        Load the array stored under `key`.

        Returns:
            The decoded list, or None when the key is absent, unreadable,
            not valid JSON, or not a JSON array.
        """
        try:
            raw = self.backend.get_item(key)
        except Exception as e:
            logger.error(f"Failed to read '{key}' from storage: {e}")
            return None
        if raw is None or raw == "":
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error(f"Failed to parse stored '{key}': {e}")
            return None
        if not isinstance(data, list):
            logger.error(f"Stored '{key}' is not a JSON array, ignoring it.")
            return None
        return data

    def subscribe(self, listener: StorageListener) -> None:
        """Forward the backend's cross-context change events to `listener`."""
        self.backend.subscribe(listener)

    def poll(self) -> int:
        return self.backend.poll()

    def close(self) -> None:
        self.backend.close()
