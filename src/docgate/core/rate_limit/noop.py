"""Disabled-limiter stand-in and limiter construction from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docgate.core.clock import DEFAULT_CLOCK, Clock
from docgate.core.rate_limit.limiter import TokenBucket

if TYPE_CHECKING:
    from docgate.core.config import RateLimitSettings


class NoOpLimiter:
    """No-op limiter when rate limiting is disabled.

    Provides the same interface as TokenBucket but admits everything.
    """

    def try_consume(self, permits: int = 1) -> bool:
        """Always grants.

        Raises:
            ValueError: If permits is not positive (same contract as TokenBucket).
        """
        if permits <= 0:
            raise ValueError(f"permits must be positive, got {permits}")
        return True


def create_limiter(
    settings: RateLimitSettings,
    *,
    clock: Clock = DEFAULT_CLOCK,
) -> TokenBucket | NoOpLimiter:
    """Build the limiter described by settings.

    Args:
        settings: Rate limit configuration
        clock: Monotonic time source for the bucket

    Returns:
        TokenBucket (or NoOpLimiter if disabled)
    """
    if not settings.enabled:
        return NoOpLimiter()
    return TokenBucket(settings.window, settings.permits, clock=clock)
