"""
db/listener.py
--------------
Single LISTEN connection shared by every PostgreSQL notification consumer
(the broadcast channel and the key-value store's change events).

Notifications are queued by the server and only handed to Python when
`poll()` is called, so consumers run on the caller's thread, one at a time.
"""

from typing import Callable, Optional

import psycopg2
from psycopg2 import sql

from db.connection import open_listen_connection
from utils.logger import get_logger

logger = get_logger(__name__)

NotifyHandler = Callable[[str], None]


class PgNotifyListener:
    """Dispatches NOTIFY payloads to handlers registered per channel."""

    def __init__(self, connection_factory: Callable = open_listen_connection):
        self._connection_factory = connection_factory
        self._conn = None
        self._handlers: dict[str, list[NotifyHandler]] = {}

    def listen(self, channel: str, handler: NotifyHandler) -> None:
        """Register `handler` for `channel`, issuing LISTEN on first use."""
        first = channel not in self._handlers
        self._handlers.setdefault(channel, []).append(handler)
        if self._conn is None:
            self._connection()
        elif first:
            self._listen(self._conn, channel)

    def poll(self) -> int:
        """
        Deliver pending notifications.

        Returns:
            Number of notifications dispatched. A lost connection is logged
            and reopened on the next call.
        """
        conn = self._connection()
        if conn is None:
            return 0
        try:
            conn.poll()
        except psycopg2.Error as e:
            logger.error(f"LISTEN connection failed, will reconnect: {e}")
            self._drop()
            return 0

        delivered = 0
        while conn.notifies:
            notify = conn.notifies.pop(0)
            for handler in self._handlers.get(notify.channel, []):
                try:
                    handler(notify.payload)
                except Exception as e:
                    logger.error(f"Notification handler for '{notify.channel}' failed: {e}")
            delivered += 1
        return delivered

    def close(self) -> None:
        self._drop()
        self._handlers.clear()

    # ── internals ─────────────────────────────────────────

    def _connection(self) -> Optional[object]:
        if self._conn is not None:
            return self._conn
        if not self._handlers:
            return None
        try:
            conn = self._connection_factory()
            for channel in self._handlers:
                self._listen(conn, channel)
        except psycopg2.Error as e:
            logger.error(f"Could not open LISTEN connection: {e}")
            return None
        self._conn = conn
        return conn

    @staticmethod
    def _listen(conn, channel: str) -> None:
        with conn.cursor() as cur:
            cur.execute(sql.SQL("LISTEN {};").format(sql.Identifier(channel)))
        logger.info(f"Listening on '{channel}'.")

    def _drop(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except psycopg2.Error as e:
                logger.debug(f"Ignoring error while closing LISTEN connection: {e}")
            self._conn = None
