"""
security/rate_limiter.py
-------------------------
Rate limiting middleware for the bot commands.
Caps how many commands one user can send within a sliding window.
"""

import time
from collections import defaultdict
from functools import wraps
from typing import Callable, Optional

from telegram import Update
from telegram.ext import ContextTypes

from config import RATE_LIMIT_MESSAGES, RATE_LIMIT_WINDOW_SECONDS
from utils.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """
    Sliding-window counter per user.

    Args:
        limit: Max messages per window.
        window: Window length in seconds.
        clock: Time source (seconds), injectable for tests.
    """

    def __init__(self, limit: int = RATE_LIMIT_MESSAGES, window: float = RATE_LIMIT_WINDOW_SECONDS,
                 clock: Optional[Callable[[], float]] = None):
        self.limit = limit
        self.window = window
        self._clock = clock or time.time
        # {user_id: [timestamp1, timestamp2, ...]}
        self._timestamps: dict[int, list[float]] = defaultdict(list)

    def allow(self, user_id: int) -> bool:
        """Record a message for `user_id` unless the window is already full."""
        now = self._clock()
        cutoff = now - self.window
        recent = [t for t in self._timestamps[user_id] if t > cutoff]
        if len(recent) >= self.limit:
            self._timestamps[user_id] = recent
            return False
        recent.append(now)
        self._timestamps[user_id] = recent
        return True


_limiter = RateLimiter()


def rate_limited(func: Callable):
    """
    Decorator that enforces rate limiting per user.

    Configuration (via .env):
        RATE_LIMIT_MESSAGES: Max messages per window (default: 30).
        RATE_LIMIT_WINDOW_SECONDS: Window duration in seconds (default: 60).
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not _limiter.allow(user.id):
            logger.warning(f"⚠️ Rate limit hit for user {user.id}")
            await update.message.reply_text(
                "⚠️ You are sending too many messages. Wait a moment and try again."
            )
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
