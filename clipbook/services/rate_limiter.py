"""Per-user chat request throttle.

Cloud Run instances are stateless, so the in-memory limiter only enforces the
cap per instance. Set REDIS_URL to share counters across instances.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import redis

from clipbook.config import get_settings

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    """``allow(user_id)`` answers whether one more request fits in the window."""

    def __init__(self, max_requests: int, window_ms: int) -> None:
        self.max_requests = max_requests
        self.window_ms = window_ms

    @abstractmethod
    def allow(self, user_id: str) -> bool: ...


class InMemoryRateLimiter(RateLimiter):
    """Thread-safe sliding log of request timestamps per user."""

    def __init__(
        self,
        max_requests: int = 20,
        window_ms: int = 60_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(max_requests, window_ms)
        self._buckets: dict[str, list[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def allow(self, user_id: str) -> bool:
        now = self._now_ms()
        with self._lock:
            recent = [t for t in self._buckets.get(user_id, []) if now - t < self.window_ms]
            if len(recent) >= self.max_requests:
                # Rejected attempts are not recorded
                self._buckets[user_id] = recent
                return False
            recent.append(now)
            self._buckets[user_id] = recent
            return True

    def reset(self, user_id: str | None = None) -> None:
        with self._lock:
            if user_id is None:
                self._buckets.clear()
            else:
                self._buckets.pop(user_id, None)


class RedisRateLimiter(RateLimiter):
    """Fixed-window counter shared through Redis.

    ``ratelimit:{user_id}`` is incremented per request and expires one window
    after the first request of the window. The check runs as one Lua script so
    the key cannot expire between the increment and the rollback.
    """

    key_prefix = "ratelimit:"

    # KEYS[1] counter key; ARGV[1] window ms; ARGV[2] cap. Returns 1 if allowed.
    ALLOW_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 or redis.call('PTTL', KEYS[1]) < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
if count > tonumber(ARGV[2]) then
    redis.call('DECR', KEYS[1])
    return 0
end
return 1
"""

    def __init__(self, client, max_requests: int = 20, window_ms: int = 60_000) -> None:
        super().__init__(max_requests, window_ms)
        self._client = client
        self._allow_script = client.register_script(self.ALLOW_SCRIPT)

    @classmethod
    def from_url(cls, url: str, max_requests: int = 20, window_ms: int = 60_000):
        return cls(redis.from_url(url, decode_responses=True), max_requests, window_ms)

    def allow(self, user_id: str) -> bool:
        key = f"{self.key_prefix}{user_id}"
        try:
            allowed = self._allow_script(keys=[key], args=[self.window_ms, self.max_requests])
            return int(allowed) == 1
        except redis.RedisError as e:
            # Best-effort guard: an unreachable Redis must not take chat down
            logger.warning(f"Rate limiter unavailable, allowing request for {user_id}: {e}")
            return True


_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Singleton limiter: Redis when REDIS_URL is set, in-memory otherwise."""
    global _rate_limiter
    if _rate_limiter is None:
        settings = get_settings()
        if settings.redis_url:
            _rate_limiter = RedisRateLimiter.from_url(
                settings.redis_url,
                max_requests=settings.rate_limit_max_requests,
                window_ms=settings.rate_limit_window_ms,
            )
        else:
            _rate_limiter = InMemoryRateLimiter(
                max_requests=settings.rate_limit_max_requests,
                window_ms=settings.rate_limit_window_ms,
            )
        logger.info(f"Rate limiter backend: {type(_rate_limiter).__name__}")
    return _rate_limiter
