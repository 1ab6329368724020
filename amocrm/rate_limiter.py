"""Sliding-window rate limiter shared by every request a client makes."""

import asyncio
import logging
import time
from collections import defaultdict, deque

from .config import DEFAULT_RATE_LIMIT, DEFAULT_RATE_LIMIT_WINDOW

logger = logging.getLogger(__name__)


class RateLimiter:
    """At most `max_requests` calls per `window` seconds for each key.

    The client keys by base URL, so one limiter can serve several accounts.
    Concurrent coroutines queue on a lock; the concurrent page finder relies
    on this when two probes share a client.
    """

    def __init__(self, max_requests: int = DEFAULT_RATE_LIMIT, window: float = DEFAULT_RATE_LIMIT_WINDOW):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self.max_requests = max_requests
        self.window = window
        self._sent = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def acquire(self, key: str = "default"):
        """Take a slot for `key`, sleeping until the oldest one leaves the window."""
        async with self._lock:
            sent = self._sent[key]
            while True:
                now = time.monotonic()
                while sent and now - sent[0] >= self.window:
                    sent.popleft()
                if len(sent) < self.max_requests:
                    sent.append(now)
                    return
                delay = self.window - (now - sent[0])
                logger.debug(f"amoCRM rate limit reached for {key}, sleeping {delay:.2f}s")
                await asyncio.sleep(delay)
