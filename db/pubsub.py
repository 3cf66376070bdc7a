"""
db/pubsub.py
------------
Broadcast channels used to push dataset updates to other bot processes.

A message posted on a channel reaches every other channel with the same name
(never the poster itself) and is handed to `on_message` callbacks when the
receiving side calls `poll()`. Delivery is best-effort: no acknowledgement,
no ordering across senders.
"""

import copy
import json
from typing import Callable, Optional

from config import SYNC_CHANNEL
from db.connection import get_connection, release_connection
from db.listener import PgNotifyListener
from utils.logger import get_logger

logger = get_logger(__name__)

MessageListener = Callable[[dict], None]

# PostgreSQL rejects NOTIFY payloads of 8000 bytes or more.
MAX_NOTIFY_PAYLOAD_BYTES = 7999


class BroadcastChannel:
    """Interface shared by the channel implementations."""

    name: str = ""

    def post_message(self, message: dict) -> None:
        raise NotImplementedError

    def on_message(self, listener: MessageListener) -> None:
        raise NotImplementedError

    def poll(self) -> int:
        return 0

    def close(self) -> None:
        pass


class PostgresBroadcastChannel(BroadcastChannel):
    """Channel backed by NOTIFY/LISTEN on a shared PostgreSQL database."""

    def __init__(self, listener: PgNotifyListener, name: str = SYNC_CHANNEL):
        self.name = name
        self._listener = listener
        self._listeners: list[MessageListener] = []

    def post_message(self, message: dict) -> None:
        """
        Publish `message` as JSON.

        Raises:
            ValueError: If the encoded message exceeds the NOTIFY payload limit.
            psycopg2.Error: If the database rejects the notification.
        """
        payload = json.dumps(message, ensure_ascii=False)
        size = len(payload.encode("utf-8"))
        if size > MAX_NOTIFY_PAYLOAD_BYTES:
            raise ValueError(f"message is {size} bytes, NOTIFY allows {MAX_NOTIFY_PAYLOAD_BYTES}")

        conn = get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT pg_notify(%s, %s);", (self.name, payload))
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to notify '{self.name}': {e}")
            raise
        finally:
            release_connection(conn)

    def on_message(self, listener: MessageListener) -> None:
        if not self._listeners:
            self._listener.listen(self.name, self._on_notify)
        self._listeners.append(listener)

    def poll(self) -> int:
        return self._listener.poll()

    def close(self) -> None:
        self._listeners.clear()

    def _on_notify(self, payload: str) -> None:
        try:
            message = json.loads(payload)
        except ValueError as e:
            logger.warning(f"Ignoring non-JSON message on '{self.name}': {e}")
            return
        for listener in list(self._listeners):
            listener(message)


class MemoryBroadcastHub:
    """In-process registry connecting MemoryBroadcastChannel instances by name."""

    def __init__(self):
        self._channels: list["MemoryBroadcastChannel"] = []

    def channel(self, name: str = SYNC_CHANNEL) -> "MemoryBroadcastChannel":
        return MemoryBroadcastChannel(self, name)

    def register(self, channel: "MemoryBroadcastChannel") -> None:
        self._channels.append(channel)

    def unregister(self, channel: "MemoryBroadcastChannel") -> None:
        if channel in self._channels:
            self._channels.remove(channel)

    def deliver(self, sender: "MemoryBroadcastChannel", message: dict) -> None:
        for channel in self._channels:
            if channel is not sender and channel.name == sender.name:
                # Each receiver gets its own copy, like a structured clone.
                channel.enqueue(copy.deepcopy(message))


class MemoryBroadcastChannel(BroadcastChannel):
    """One context's end of an in-process broadcast channel."""

    def __init__(self, hub: Optional[MemoryBroadcastHub] = None, name: str = SYNC_CHANNEL):
        self.hub = hub if hub is not None else MemoryBroadcastHub()
        self.name = name
        self._pending: list[dict] = []
        self._listeners: list[MessageListener] = []
        self._closed = False
        self.hub.register(self)

    def post_message(self, message: dict) -> None:
        if self._closed:
            raise RuntimeError(f"channel '{self.name}' is closed")
        self.hub.deliver(self, message)

    def on_message(self, listener: MessageListener) -> None:
        self._listeners.append(listener)

    def enqueue(self, message: dict) -> None:
        self._pending.append(message)

    def poll(self) -> int:
        delivered = 0
        while self._pending:
            message = self._pending.pop(0)
            for listener in list(self._listeners):
                listener(message)
            delivered += 1
        return delivered

    def close(self) -> None:
        self._closed = True
        self._pending.clear()
        self.hub.unregister(self)
