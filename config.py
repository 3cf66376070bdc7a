"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "zemora")
DB_USER: str = os.getenv("DB_USER", "zemora_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)
DB_POOL_MIN: int = int(os.getenv("DB_POOL_MIN", "1"))
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "5"))

# ── Storage & sync ────────────────────────────────────────
# "postgres" shares state between bot processes, "memory" keeps it in-process.
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "postgres").strip().lower()
STORAGE_KEY_PREFIX: str = os.getenv("STORAGE_KEY_PREFIX", "zemora_")
SYNC_CHANNEL: str = os.getenv("SYNC_CHANNEL", "zemora_admin_sync")
STORAGE_CHANNEL: str = os.getenv("STORAGE_CHANNEL", "zemora_storage")
SYNC_POLL_SECONDS: float = float(os.getenv("SYNC_POLL_SECONDS", "1.0"))

# ── Bundled snapshots ─────────────────────────────────────
# A local directory or an http(s) base URL holding tools.json, guides.json, blog.json.
SNAPSHOT_BASE: str = os.getenv(
    "SNAPSHOT_BASE",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data"),
)
FETCH_TIMEOUT_SECONDS: float = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))

# ── Admin ─────────────────────────────────────────────────
ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "zemora123")

# Optional whitelist of Telegram user ids allowed to log in as admin.
_raw_ids = os.getenv("ADMIN_USER_IDS", "")
ADMIN_USER_IDS: list[int] = (
    [int(uid.strip()) for uid in _raw_ids.split(",") if uid.strip()]
    if _raw_ids
    else []
)

# ── Rate Limiting ─────────────────────────────────────────
RATE_LIMIT_MESSAGES: int = int(os.getenv("RATE_LIMIT_MESSAGES", "30"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
