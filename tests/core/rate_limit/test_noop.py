"""Tests for NoOpLimiter and create_limiter."""

from __future__ import annotations

import pytest

from docgate.core.clock import MockClock
from docgate.core.config import RateLimitSettings
from docgate.core.rate_limit import NoOpLimiter, TokenBucket, create_limiter


class TestNoOpLimiter:
    def test_always_grants(self) -> None:
        limiter = NoOpLimiter()
        assert all(limiter.try_consume() for _ in range(1000))
        assert limiter.try_consume(10_000)

    @pytest.mark.parametrize("permits", [0, -1])
    def test_non_positive_request_rejected(self, permits: int) -> None:
        with pytest.raises(ValueError, match="positive"):
            NoOpLimiter().try_consume(permits)


class TestCreateLimiter:
    def test_enabled_builds_bucket(self, mock_clock: MockClock) -> None:
        limiter = create_limiter(RateLimitSettings(window_seconds=2.0, permits=4), clock=mock_clock)

        assert isinstance(limiter, TokenBucket)
        assert limiter.capacity == 4
        assert limiter.nanos_per_token == 500_000_000

    def test_bucket_uses_given_clock(self, mock_clock: MockClock) -> None:
        limiter = create_limiter(RateLimitSettings(permits=1), clock=mock_clock)

        assert limiter.try_consume()
        assert not limiter.try_consume()
        mock_clock.advance(1.0)
        assert limiter.try_consume()

    def test_disabled_builds_noop(self) -> None:
        assert isinstance(create_limiter(RateLimitSettings(enabled=False)), NoOpLimiter)
