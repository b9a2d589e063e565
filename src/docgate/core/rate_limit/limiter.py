"""In-process token bucket limiter."""

from __future__ import annotations

import threading
from datetime import timedelta

from docgate.contracts.errors import InvalidConfigurationError
from docgate.core.clock import DEFAULT_CLOCK, Clock

# timedelta resolution is microseconds.
_NANOS_PER_MICROSECOND = 1_000


def window_to_nanos(window: timedelta) -> int:
    """Whole nanoseconds in window, truncated to timedelta's microsecond resolution."""
    return (window // timedelta(microseconds=1)) * _NANOS_PER_MICROSECOND


class TokenBucket:
    """Concurrency-safe token bucket with a non-blocking admission check.

    The bucket starts full. Tokens replenish one at a time every
    ``window / permits``. Credit accrued while idle is capped at capacity.

    The refill clock only ever advances in whole token intervals, never
    straight to "now". Leftover sub-token time carries over to the next
    call, so callers arriving faster than one interval are not
    under-credited.

    Example:
        limiter = TokenBucket(timedelta(minutes=1), permits=30)

        if limiter.try_consume():
            submit_document()
        else:
            handle_rate_limit()

    Thread Safety:
        A single lock guards all bucket state for the whole
        refill + check + decrement sequence, so concurrent callers can
        never be granted more tokens in total than a single sequential
        caller would.
    """

    def __init__(
        self,
        window: timedelta,
        permits: int,
        *,
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        """Initialize a full bucket.

        Args:
            window: Time over which ``permits`` tokens replenish.
            permits: Bucket capacity and tokens per window. Must be positive.
            clock: Monotonic time source (inject MockClock in tests).

        Raises:
            InvalidConfigurationError: If permits is not positive, window is
                not positive, or window is too short to give each token a
                non-zero interval.
        """
        if permits <= 0:
            raise InvalidConfigurationError(f"permits must be positive, got {permits}")

        window_ns = window_to_nanos(window)
        if window_ns <= 0:
            raise InvalidConfigurationError(f"window must be positive, got {window!r}")

        nanos_per_token = window_ns // permits
        if nanos_per_token <= 0:
            raise InvalidConfigurationError(f"window {window!r} is too short for {permits} permits")

        self._clock = clock
        self._lock = threading.Lock()
        self._capacity = permits
        self._available_tokens = permits
        self._nanos_per_token = nanos_per_token
        self._last_refill_ns = clock.monotonic_ns()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def nanos_per_token(self) -> int:
        return self._nanos_per_token

    @property
    def available_tokens(self) -> int:
        """Tokens as of the last try_consume (does not refill)."""
        with self._lock:
            return self._available_tokens

    @property
    def last_refill_ns(self) -> int:
        with self._lock:
            return self._last_refill_ns

    def try_consume(self, permits: int = 1) -> bool:
        """Take tokens if available, without blocking.

        Args:
            permits: Number of tokens to take (default 1).

        Returns:
            True if granted, False if rate limited. A rejection leaves the
            refill applied but takes nothing.

        Raises:
            ValueError: If permits is not positive.
        """
        if permits <= 0:
            raise ValueError(f"permits must be positive, got {permits}")

        with self._lock:
            self._refill()
            if self._available_tokens < permits:
                return False
            self._available_tokens -= permits
            return True

    def _refill(self) -> None:
        """Credit whole tokens earned since the last refill. Caller holds the lock."""
        elapsed = self._clock.monotonic_ns() - self._last_refill_ns
        if elapsed < self._nanos_per_token:
            return

        earned = elapsed // self._nanos_per_token
        self._available_tokens = min(self._capacity, self._available_tokens + earned)
        self._last_refill_ns += earned * self._nanos_per_token

    def __repr__(self) -> str:
        return (
            f"TokenBucket(capacity={self._capacity}, "
            f"nanos_per_token={self._nanos_per_token})"
        )
