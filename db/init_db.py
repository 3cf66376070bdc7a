"""
db/init_db.py
-------------
Creates the `kv_store` table that backs the shared collections.
Run directly to prepare a fresh database:
    python -m db.init_db
"""

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

STORE_TABLE = "kv_store"

# One row per collection key; the value is the raw JSON text of the array.
SCHEMA_SQL = f"""
CREATE TABLE IF NOT EXISTS {STORE_TABLE} (
    key             VARCHAR(100) PRIMARY KEY,
    value           TEXT,
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);
"""


def create_tables() -> None:
    """Create the store table if it is missing. Idempotent."""
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info(f"Table '{STORE_TABLE}' is ready.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to create '{STORE_TABLE}': {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import close_pool, init_pool
    init_pool()
    try:
        create_tables()
    finally:
        close_pool()
    print(f"✅ {STORE_TABLE} created.")
