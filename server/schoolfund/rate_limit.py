"""
Fixed-window request limiting keyed by client IP and path.

The in-memory store lives in the process and is lost on restart; the Redis
store shares counters between workers.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

import redis
from redis import exceptions as redis_exceptions

from schoolfund.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Too many requests, please try again later."


class RateLimitStore(Protocol):
    def hit(self, key: str, window_seconds: int) -> tuple[int, float]:
        """Count one request; returns (count in window, seconds until reset)."""
        ...


@dataclass
class InMemoryRateLimitStore:
    clock: Callable[[], float] = time.monotonic
    windows: dict[str, tuple[int, float]] = field(default_factory=dict)

    def __post_init__(self):
        self._lock = threading.Lock()
        self._next_sweep = 0.0

    def _sweep(self, now: float, window_seconds: int) -> None:
        """Drop expired windows, at most once per window. Caller holds the lock."""
        if now < self._next_sweep:
            return
        expired = [key for key, (_, reset_at) in self.windows.items() if reset_at <= now]
        for key in expired:
            del self.windows[key]
        self._next_sweep = now + window_seconds

    def hit(self, key: str, window_seconds: int) -> tuple[int, float]:
        now = self.clock()
        with self._lock:
            self._sweep(now, window_seconds)
            count, reset_at = self.windows.get(key, (0, 0.0))
            if now >= reset_at:
                count, reset_at = 0, now + window_seconds
            count += 1
            self.windows[key] = (count, reset_at)
        return count, reset_at - now


@dataclass
class RedisRateLimitStore:
    url: str
    key_prefix: str = "schoolfund:ratelimit:"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def hit(self, key: str, window_seconds: int) -> tuple[int, float]:
        redis_key = self.key_prefix + key
        try:
            pipe = self.client.pipeline()
            pipe.incr(redis_key)
            pipe.pttl(redis_key)
            count, ttl_ms = pipe.execute()
            if ttl_ms is None or ttl_ms < 0:
                self.client.pexpire(redis_key, window_seconds * 1000)
                ttl_ms = window_seconds * 1000
            return int(count), ttl_ms / 1000.0
        except redis_exceptions.ConnectionError as e:
            # Managed Redis drops idle connections. Let the request through
            # and reconnect for the next one.
            logger.warning("Rate limit store unavailable: %s", e)
            self.client = redis.Redis.from_url(self.url)
            return 0, float(window_seconds)


class RateLimiter:
    def __init__(
        self,
        store: RateLimitStore,
        *,
        max_requests: int = 100,
        window_seconds: int = 60,
        message: str = DEFAULT_MESSAGE,
    ):
        self.store = store
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message

    def check(self, client_ip: str, path: str) -> None:
        count, retry_after = self.store.hit(f"{client_ip}:{path}", self.window_seconds)
        if count > self.max_requests:
            logger.info("Rate limit hit for %s on %s (%d requests)", client_ip, path, count)
            raise RateLimitExceeded(
                self.message,
                headers={"Retry-After": str(max(1, math.ceil(retry_after)))},
            )
