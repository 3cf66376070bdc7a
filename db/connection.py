"""
db/connection.py
----------------
PostgreSQL connections for the store and the sync channels.

Reads and writes borrow from a SimpleConnectionPool sized by DB_POOL_MIN /
DB_POOL_MAX. LISTEN uses its own long-lived autocommit connection that
never enters the pool.
"""

import psycopg2
from psycopg2 import extensions, pool

from config import DATABASE_URL, DB_POOL_MAX, DB_POOL_MIN
from utils.logger import get_logger

logger = get_logger(__name__)

_pool: pool.SimpleConnectionPool | None = None


def init_pool(min_conn: int = DB_POOL_MIN, max_conn: int = DB_POOL_MAX) -> None:
    """
    Open the shared pool. Calling it again is a no-op.

    Raises:
        psycopg2.OperationalError: If the database is unreachable.
    """
    global _pool
    if _pool is not None:
        return
    try:
        _pool = pool.SimpleConnectionPool(min_conn, max_conn, DATABASE_URL)
        logger.info(f"Connection pool ready ({min_conn}-{max_conn} connections).")
    except psycopg2.OperationalError as e:
        logger.error(f"Could not reach the database: {e}")
        raise


def get_connection():
    """
    Borrow a pooled connection. Pair every call with release_connection().

    Raises:
        RuntimeError: If init_pool() has not run.
    """
    if _pool is None:
        raise RuntimeError("Connection pool is not open; call init_pool() first.")
    return _pool.getconn()


def release_connection(conn) -> None:
    if _pool is not None:
        _pool.putconn(conn)


def open_listen_connection():
    """
    Open a dedicated autocommit connection for LISTEN.

    Notifications only reach a session that stays open outside a
    transaction, so this connection is never returned to the pool.
    """
    conn = psycopg2.connect(DATABASE_URL)
    conn.set_isolation_level(extensions.ISOLATION_LEVEL_AUTOCOMMIT)
    logger.info("Opened LISTEN connection.")
    return conn


def close_pool() -> None:
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None
        logger.info("Connection pool closed.")
