from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Core logic depends on this interface rather than calling real time directly.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


class WallClock(Protocol):
    """Local time-of-day source used by the Clock mode."""

    def time_of_day(self) -> tuple[int, int, int]:
        """Return (hours, minutes, seconds) in local time."""


class SystemWallClock:
    """Wall clock backed by time.localtime()."""

    def time_of_day(self) -> tuple[int, int, int]:
        t = time.localtime()
        return t.tm_hour, t.tm_min, t.tm_sec
