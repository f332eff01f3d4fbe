"""Token bucket admission control shared across requests."""
import asyncio
import logging
import time
from typing import Callable

from answer_engine.core.errors import RateLimitExceeded

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket that refills continuously at capacity / interval tokens per second.

    One instance is shared by every request in the process. All mutation happens
    synchronously between awaits, so the event loop serializes access.
    """

    def __init__(
        self,
        capacity: int,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.capacity = capacity
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._tokens = float(capacity)
        self._updated_at = clock()

    @property
    def refill_rate(self) -> float:
        """Tokens added per second."""
        return self.capacity / self.interval_seconds

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_rate)
        self._updated_at = now

    def retry_after(self, tokens: int = 1) -> float:
        """Seconds until `tokens` would be available."""
        self._refill()
        missing = tokens - self._tokens
        if missing <= 0:
            return 0.0
        return missing / self.refill_rate

    def try_consume(self, tokens: int = 1) -> bool:
        """Take tokens if available. Never waits."""
        if tokens > self.capacity:
            return False
        self._refill()
        if self._tokens >= tokens:
            self._tokens -= tokens
            return True
        return False

    async def acquire(self, tokens: int = 1, timeout: float | None = None) -> None:
        """
        Wait until tokens are available, then take them.

        Raises:
            RateLimitExceeded: If the wait would exceed `timeout`

        With timeout=0 an empty bucket is rejected at once.
        """
        if tokens > self.capacity:
            raise ValueError(f"Cannot acquire {tokens} tokens from a bucket of {self.capacity}")
        deadline = None if timeout is None else self._clock() + timeout
        while not self.try_consume(tokens):
            wait = self.retry_after(tokens)
            if deadline is not None and self._clock() + wait > deadline:
                logger.warning(f"Admission rejected, retry after {wait:.1f}s")
                raise RateLimitExceeded(retry_after=wait)
            await asyncio.sleep(wait)
