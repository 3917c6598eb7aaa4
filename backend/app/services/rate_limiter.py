"""Fixed-window rate limiting for the aggregation endpoints."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from app.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    """Counter state for one client bucket."""

    count: int
    window_reset_at: float
    violations: int = 0


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""

    allowed: bool
    limit: int
    remaining: int
    reset_in: float  # seconds until the window resets
    count: int
    violations: int


class RateLimiter:
    """Process-wide fixed-window limiter with a periodic expiry sweep.

    State lives in a per-process dict, so each running instance counts
    independently. Violations persist across windows until the entry is
    swept.
    """

    def __init__(
        self,
        max_requests: int = 15,
        window_seconds: float = 60,
        cleanup_interval_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._cleanup_interval = cleanup_interval_seconds
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._running = False
        self._task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def get_entry(self, key: str) -> RateLimitEntry | None:
        return self._entries.get(key)

    def check(self, key: str, now: float | None = None) -> RateLimitDecision:
        """Count a request against ``key`` and decide whether to admit it."""
        if now is None:
            now = self._clock()
        entry = self._entries.get(key)

        if entry is None or now >= entry.window_reset_at:
            violations = entry.violations if entry else 0
            entry = RateLimitEntry(
                count=1,
                window_reset_at=now + self.window_seconds,
                violations=violations,
            )
            self._entries[key] = entry
            return RateLimitDecision(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - 1,
                reset_in=self.window_seconds,
                count=entry.count,
                violations=entry.violations,
            )

        if entry.count >= self.max_requests:
            entry.violations += 1
            return RateLimitDecision(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                reset_in=entry.window_reset_at - now,
                count=entry.count,
                violations=entry.violations,
            )

        entry.count += 1
        return RateLimitDecision(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - entry.count,
            reset_in=entry.window_reset_at - now,
            count=entry.count,
            violations=entry.violations,
        )

    def sweep(self, now: float | None = None) -> int:
        """Delete entries whose window has elapsed. Returns count removed."""
        if now is None:
            now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.window_reset_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired rate limit entries")
        return len(expired)

    def clear(self) -> None:
        """Drop all counters."""
        self._entries.clear()

    async def start(self) -> None:
        """Start the periodic sweep."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info("Started rate limit sweep")

    async def _sweep_loop(self) -> None:
        """Periodic sweep loop."""
        while self._running:
            await asyncio.sleep(self._cleanup_interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Rate limit sweep error: {e}")

    async def stop(self) -> None:
        """Stop the periodic sweep."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Stopped rate limit sweep")


def _build_rate_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
        cleanup_interval_seconds=settings.rate_limit_cleanup_interval_seconds,
    )


# Global rate limiter instance
rate_limiter = _build_rate_limiter()
