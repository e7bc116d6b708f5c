"""Rate limiter for GitHub API requests.

A single rate-limited-call abstraction shared by every request a client
makes: a token bucket smooths bursts, a semaphore caps in-flight requests,
and quota headers from previous responses pause callers until reset when the
quota is exhausted.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from copilot_metrics.config import RateLimitConfig

logger = logging.getLogger(__name__)


@dataclass
class RateLimitState:
    """Last known quota reported by GitHub."""

    limit: int = 5000
    remaining: int = 5000
    reset_at: float = 0.0  # Unix timestamp
    last_updated: float = field(default_factory=time.time)

    @property
    def remaining_percent(self) -> float:
        """Calculate percentage of requests remaining."""
        if self.limit == 0:
            return 0.0
        return (self.remaining / self.limit) * 100

    @property
    def seconds_until_reset(self) -> float:
        """Calculate seconds until rate limit reset."""
        return max(0.0, self.reset_at - time.time())

    def is_exhausted(self) -> bool:
        return self.remaining <= 0


class TokenBucket:
    """Token bucket rate limiter for burst control."""

    def __init__(self, capacity: int, fill_rate: float) -> None:
        """Initialize token bucket.

        Args:
            capacity: Maximum number of tokens (burst capacity).
            fill_rate: Tokens added per second (sustained rate).
        """
        self.capacity = capacity
        self.fill_rate = fill_rate
        self.tokens = float(capacity)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    async def try_acquire(self, count: int = 1) -> bool:
        """Try to acquire tokens from the bucket.

        Args:
            count: Number of tokens to acquire.

        Returns:
            True if tokens were acquired, False otherwise.
        """
        async with self._lock:
            self.refill()

            if self.tokens >= count:
                self.tokens -= count
                return True
            return False

    async def acquire(self, count: int = 1) -> None:
        """Wait until tokens are available, then take them."""
        while not await self.try_acquire(count):
            deficit = count - self.tokens
            await asyncio.sleep(max(deficit / self.fill_rate, 0.01))

    def refill(self) -> None:
        """Refill tokens based on elapsed time."""
        now = time.monotonic()
        elapsed = now - self._last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.fill_rate)
        self._last_refill = now


class RateLimiter:
    """Quota-aware limiter injected into ``GitHubClient``."""

    def __init__(self, config: RateLimitConfig | None = None) -> None:
        """Initialize rate limiter.

        Args:
            config: Rate limit configuration. Defaults are used if None.
        """
        self.config = config or RateLimitConfig()
        self._semaphore = asyncio.Semaphore(self.config.max_concurrency)
        self._lock = asyncio.Lock()
        self._state = RateLimitState()
        self._token_bucket = TokenBucket(
            capacity=self.config.burst.capacity,
            fill_rate=self.config.burst.sustained_rate,
        )

        logger.debug(
            "Rate limiter initialized: max_concurrency=%d, burst_capacity=%d",
            self.config.max_concurrency,
            self.config.burst.capacity,
        )

    @property
    def state(self) -> RateLimitState:
        return self._state

    async def acquire(self) -> None:
        """Acquire permission to make a request.

        Blocks until a concurrency slot and a burst token are available and
        the last known quota is not exhausted.
        """
        await self._semaphore.acquire()
        try:
            await self._token_bucket.acquire()
            await self._wait_for_reset()
        except BaseException:
            self._semaphore.release()
            raise

    def release(self) -> None:
        """Release the acquired concurrency slot."""
        self._semaphore.release()

    async def _wait_for_reset(self) -> None:
        async with self._lock:
            if not self._state.is_exhausted():
                return
            wait_time = min(self._state.seconds_until_reset, self.config.max_sleep_seconds)
            if wait_time <= 0:
                return
            logger.warning(
                "Rate limit exhausted (%d/%d). Sleeping %.1f seconds until reset.",
                self._state.remaining,
                self._state.limit,
                wait_time,
            )
            await asyncio.sleep(wait_time)
            # Assume the window rolled over; the next response corrects this
            self._state.remaining = self._state.limit

    def update(self, headers: Any) -> None:
        """Update quota state from response headers.

        Args:
            headers: HTTP response headers (any case-insensitive mapping).
        """
        normalized = {k.lower(): v for k, v in headers.items()}

        if "retry-after" in normalized:
            try:
                retry_after = int(normalized["retry-after"])
            except ValueError:
                retry_after = 0
            logger.warning("Retry-After header present: %d seconds", retry_after)
            self._state.remaining = 0
            self._state.reset_at = time.time() + retry_after
            self._state.last_updated = time.time()
            return

        limit = normalized.get("x-ratelimit-limit")
        remaining = normalized.get("x-ratelimit-remaining")
        reset = normalized.get("x-ratelimit-reset")

        if limit and remaining and reset:
            self._state.limit = int(limit)
            self._state.remaining = int(remaining)
            self._state.reset_at = float(reset)
            self._state.last_updated = time.time()

            logger.debug(
                "Rate limit updated: %d/%d (%.1f%% remaining)",
                self._state.remaining,
                self._state.limit,
                self._state.remaining_percent,
            )
