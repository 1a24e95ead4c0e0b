"""Clock sources for Pomoquest engines.

Engines never read ambient time. They receive a clock with two readings:
a monotonic millisecond counter for the timer and a local calendar "now"
for day and week boundaries.
"""

import time
from datetime import datetime, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    """Anything that can report monotonic and calendar time."""

    def monotonic_ms(self) -> int:
        ...

    def now(self) -> datetime:
        ...


class SystemClock:
    """Clock backed by the host's monotonic timer and local time."""

    def monotonic_ms(self) -> int:
        return int(time.monotonic() * 1000)

    def now(self) -> datetime:
        return datetime.now()


class ManualClock:
    """Scripted clock for tests and simulations.

    Both readings move together when advanced.
    """

    def __init__(self, start: Optional[datetime] = None, monotonic_ms: int = 0):
        """Initialize the clock.

        Args:
            start: Initial calendar time (defaults to 2024-01-01 09:00)
            monotonic_ms: Initial monotonic reading
        """
        self._now = start or datetime(2024, 1, 1, 9, 0, 0)
        self._monotonic_ms = monotonic_ms

    def monotonic_ms(self) -> int:
        return self._monotonic_ms

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 0, ms: int = 0) -> None:
        """Move both readings forward.

        Args:
            seconds: Seconds to advance
            ms: Additional milliseconds to advance
        """
        delta_ms = int(seconds * 1000) + ms
        self._monotonic_ms += delta_ms
        self._now += timedelta(milliseconds=delta_ms)

    def set(self, now: datetime) -> None:
        """Jump the calendar reading without touching the monotonic counter."""
        self._now = now


def default_clock(clock: Optional[Clock]) -> Clock:
    """Return the given clock or a SystemClock."""
    return clock if clock is not None else SystemClock()
