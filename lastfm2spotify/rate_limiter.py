"""
Async request pacing for Spotify API calls.
"""

import asyncio


class RateLimiter:
    """
    Paces requests to a maximum rate (requests/second).

    Jobs run one at a time, so there is no concurrency limit here; the limiter
    only spaces calls out. A rate of 0 disables pacing.

    Usage:
        async with limiter:
            await do_request()
    """

    def __init__(self, rate_per_second: float = 10):
        self.rate = float(rate_per_second) if rate_per_second else 0.0
        self._lock = asyncio.Lock()
        self._next_allowed: float = 0.0

    async def acquire(self):
        """Wait until the next paced request slot."""
        if self.rate <= 0:
            return

        interval = 1.0 / self.rate
        loop = asyncio.get_running_loop()

        async with self._lock:
            now = loop.time()
            wait_for = max(0.0, self._next_allowed - now)
            self._next_allowed = max(now, self._next_allowed) + interval

        if wait_for > 0:
            await asyncio.sleep(wait_for)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False
