"""Tests for the per-user chat rate limiter (in-memory and Redis backends)."""

from unittest.mock import MagicMock

import redis

from clipbook.services.rate_limiter import InMemoryRateLimiter, RedisRateLimiter


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestInMemoryRateLimiter:
    def test_rejects_call_over_cap_within_window(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(max_requests=3, window_ms=1000, clock=clock)

        assert [limiter.allow("u1") for _ in range(3)] == [True, True, True]
        assert limiter.allow("u1") is False

    def test_allows_again_after_window_from_oldest_call(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(max_requests=2, window_ms=1000, clock=clock)

        limiter.allow("u1")
        clock.advance(0.5)
        limiter.allow("u1")
        assert limiter.allow("u1") is False

        # Oldest call is now exactly one window old
        clock.advance(0.5)
        assert limiter.allow("u1") is True
        assert limiter.allow("u1") is False

    def test_rejected_attempts_are_not_recorded(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(max_requests=1, window_ms=1000, clock=clock)

        assert limiter.allow("u1") is True
        for _ in range(5):
            clock.advance(0.1)
            assert limiter.allow("u1") is False

        clock.advance(0.6)
        assert limiter.allow("u1") is True

    def test_users_are_independent(self):
        limiter = InMemoryRateLimiter(max_requests=1, window_ms=60_000)

        assert limiter.allow("alice") is True
        assert limiter.allow("alice") is False
        assert limiter.allow("bob") is True

    def test_reset(self):
        limiter = InMemoryRateLimiter(max_requests=1, window_ms=60_000)
        limiter.allow("u1")
        limiter.reset("u1")
        assert limiter.allow("u1") is True


class TestRedisRateLimiter:
    def limiter_with_script(self, result=1, error: Exception | None = None):
        client = MagicMock()
        script = MagicMock(return_value=result, side_effect=error)
        client.register_script.return_value = script
        return RedisRateLimiter(client, max_requests=2, window_ms=60_000), client, script

    def test_check_runs_as_one_script(self):
        limiter, client, script = self.limiter_with_script(result=1)

        assert limiter.allow("u1") is True
        script.assert_called_once_with(keys=["ratelimit:u1"], args=[60_000, 2])
        client.incr.assert_not_called()
        client.decr.assert_not_called()

    def test_script_increments_expires_and_rolls_back_together(self):
        _, client, _ = self.limiter_with_script()

        lua = client.register_script.call_args.args[0]
        assert "INCR" in lua
        assert "DECR" in lua
        # A counter left without a TTL gets one again
        assert "PTTL" in lua
        assert "PEXPIRE" in lua

    def test_over_cap_is_rejected(self):
        limiter, _, _ = self.limiter_with_script(result=0)
        assert limiter.allow("u1") is False

    def test_unreachable_redis_allows_request(self):
        limiter, _, _ = self.limiter_with_script(error=redis.ConnectionError("connection refused"))
        assert limiter.allow("u1") is True
