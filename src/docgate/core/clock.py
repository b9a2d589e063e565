# src/docgate/core/clock.py
"""Clock abstraction for testable rate limiting.

The token bucket does all of its arithmetic in integer nanoseconds, so the
clock exposes monotonic_ns() rather than float seconds.

Production code uses SystemClock (the default).
Tests inject MockClock to control time advancement.
"""

from __future__ import annotations

import time
from typing import Protocol

NANOS_PER_SECOND = 1_000_000_000


class Clock(Protocol):
    """Abstract monotonic clock.

    Implementations:
    - SystemClock: Uses time.monotonic_ns() (production)
    - MockClock: Returns controllable times (testing)
    """

    def monotonic_ns(self) -> int:
        """Return monotonic time in integer nanoseconds.

        Must never go backwards and must be unaffected by wall-clock
        adjustments (NTP, manual changes).
        """
        ...


class SystemClock:
    """Production clock using time.monotonic_ns()."""

    def monotonic_ns(self) -> int:
        """Return system monotonic time."""
        return time.monotonic_ns()


class MockClock:
    """Controllable clock for deterministic testing.

    Allows tests to advance time programmatically without sleep().

    Example:
        clock = MockClock()
        bucket = TokenBucket(timedelta(seconds=1), permits=5, clock=clock)

        for _ in range(5):
            assert bucket.try_consume()
        assert not bucket.try_consume()

        clock.advance(0.2)  # One token interval
        assert bucket.try_consume()
    """

    def __init__(self, start_ns: int = 0) -> None:
        """Initialize mock clock at a given time.

        Args:
            start_ns: Initial monotonic time in nanoseconds (default 0).
        """
        self._current_ns = start_ns

    def monotonic_ns(self) -> int:
        """Return current mock time."""
        return self._current_ns

    def advance(self, seconds: float) -> None:
        """Advance mock time by specified seconds.

        Seconds are rounded to the nearest nanosecond, so advance(0.2)
        moves exactly 200_000_000ns despite float representation error.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current_ns += round(seconds * NANOS_PER_SECOND)

    def advance_ns(self, nanos: int) -> None:
        """Advance mock time by an exact number of nanoseconds.

        Raises:
            ValueError: If nanos is negative.
        """
        if nanos < 0:
            raise ValueError(f"Cannot advance time by negative amount: {nanos}ns")
        self._current_ns += nanos


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
