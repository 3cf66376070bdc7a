"""
services/sync_service.py
------------------------
Best-effort propagation of collection changes between bot processes.

Outbound: every write-through is published on the broadcast channel as
    {"type": "dataset:update", "dataset", "data", "origin", "ts"}.

Inbound, two independent sources feed one update function:
    (a) broadcast messages from other processes (own origin is dropped);
    (b) key-value store change events, which only reach non-writers and keep
        working when the broadcast channel is unavailable.

There is no locking, ordering, or acknowledgement between writers: the
last write applied wins.
"""

import json
import time
from typing import Any, Callable, Optional

from db.kv_store import StorageEvent
from db.pubsub import BroadcastChannel
from models.datasets import DATASETS, spec_for_key
from repositories.persistent_store import PersistentStore
from utils.logger import get_logger

logger = get_logger(__name__)

MESSAGE_TYPE = "dataset:update"

AppliedCallback = Callable[[str, str], None]


def build_message(dataset: str, records: list, origin: str, ts: Optional[int] = None) -> dict:
    """Build the cross-process update message for `dataset`."""
    return {
        "type": MESSAGE_TYPE,
        "dataset": dataset,
        "data": records,
        "origin": origin,
        "ts": ts if ts is not None else int(time.time() * 1000),
    }


class CrossContextNotifier:
    """
    Publishes local write-throughs and applies updates made elsewhere.

    Args:
        origin_id: Identifier of this process, unique for its lifetime.
        channel: Broadcast channel, or None when unavailable.
        store: Persistent store adapter whose change events are consumed.
    """

    def __init__(self, origin_id: str, channel: Optional[BroadcastChannel], store: PersistentStore):
        self.origin_id = origin_id
        self.channel = channel
        self.store = store
        self.repositories: dict[str, Any] = {}
        self._applied: list[AppliedCallback] = []
        self._started = False

    def register(self, repository) -> None:
        self.repositories[repository.name] = repository

    def on_applied(self, callback: AppliedCallback) -> None:
        """`callback(dataset, via)` runs after an external update is applied."""
        self._applied.append(callback)

    # ── lifecycle ─────────────────────────────────────────

    def start(self) -> None:
        if self._started:
            return
        if self.channel is not None:
            self.channel.on_message(self.handle_message)
        else:
            logger.warning("No broadcast channel; relying on storage events only.")
        try:
            self.store.subscribe(self.handle_storage_event)
        except Exception as e:
            logger.warning(f"Storage change events unavailable: {e}")
        self._started = True

    def poll(self) -> int:
        """Pump both inbound sources. Returns the number of events seen."""
        seen = 0
        if self.channel is not None:
            try:
                seen += self.channel.poll()
            except Exception as e:
                logger.error(f"Polling broadcast channel failed: {e}")
        try:
            seen += self.store.poll()
        except Exception as e:
            logger.error(f"Polling storage events failed: {e}")
        return seen

    def stop(self) -> None:
        if self.channel is not None:
            self.channel.close()
        self.store.close()
        self._started = False

    # ── outbound ──────────────────────────────────────────

    def publish(self, dataset: str, records: list) -> None:
        """Broadcast a write-through. Failures are logged and otherwise ignored."""
        if self.channel is None:
            return
        try:
            self.channel.post_message(build_message(dataset, records, self.origin_id))
        except Exception as e:
            logger.warning(f"Broadcast of {dataset} failed: {e}")

    # ── inbound ───────────────────────────────────────────

    def handle_message(self, message: Any) -> bool:
        """
        Apply a broadcast message from another process.

        Returns:
            True if the message was applied.
        """
        if not isinstance(message, dict) or message.get("type") != MESSAGE_TYPE:
            return False
        if message.get("origin") == self.origin_id:
            return False
        dataset = message.get("dataset")
        data = message.get("data")
        if dataset not in DATASETS or not isinstance(data, list):
            return False
        return self.apply_external_update(dataset, data, persist=True, via="peer")

    def handle_storage_event(self, event: StorageEvent) -> bool:
        """
        Apply a key-value change made by another process.

        A removed key reads as an empty collection; values that are not a
        JSON array are ignored.

        Returns:
            True if the event was applied.
        """
        spec = spec_for_key(event.key)
        if spec is None:
            return False
        try:
            data = json.loads(event.new_value if event.new_value is not None else "[]")
        except (TypeError, ValueError):
            return False
        if not isinstance(data, list):
            return False
        return self.apply_external_update(spec.name, data, persist=False, via="storage")

    def apply_external_update(self, dataset: str, data: list, persist: bool, via: str) -> bool:
        """The single state-update path shared by both inbound sources."""
        repository = self.repositories.get(dataset)
        if repository is None:
            return False
        try:
            repository.apply_external(data, persist=persist)
        except ValueError as e:
            logger.warning(f"Ignoring {via} update of {dataset}: {e}")
            return False
        logger.info(f"Applied {via} update of {dataset} ({len(data)} records)")
        for callback in list(self._applied):
            try:
                callback(dataset, via)
            except Exception as e:
                logger.error(f"Sync callback failed: {e}")
        return True
