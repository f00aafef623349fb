"""Frame scheduling for frame-paced timers.

A ``FrameClock`` hands out one-shot callbacks that run at the next display
refresh, in the spirit of a browser's ``requestAnimationFrame``. Timers keep
ticking by resubscribing from inside their own callback, so ticks follow the
host's frame rate rather than a fixed interval.

``FrameScheduler`` is the only implementation. It has no pygame dependency:
the host loop calls :meth:`FrameScheduler.pump` once per rendered frame, and
tests call it directly with explicit timestamps.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from .clock import Clock

logger = logging.getLogger(__name__)

FrameCallback = Callable[[int], None]


@dataclass(frozen=True, slots=True)
class FrameSubscription:
    """Opaque handle to a pending frame request."""

    handle_id: int


class FrameClock(Protocol):
    def now_ms(self) -> int: ...
    def subscribe(self, callback: FrameCallback) -> FrameSubscription: ...
    def unsubscribe(self, handle: FrameSubscription | None) -> None: ...


def frame_delta_ms(previous_ms: int, current_ms: int) -> int:
    """Return the non-negative gap between two frame timestamps.

    Negative gaps only come from clock anomalies; they count as zero.
    Large gaps (e.g. a suspended window) are kept as-is so the timer
    catches up with real elapsed time.
    """

    delta = int(current_ms) - int(previous_ms)
    if delta < 0:
        logger.warning("Negative frame delta %d ms clamped to 0", delta)
        return 0
    return delta


class FrameScheduler:
    """Pumped frame clock.

    - Callbacks pending when :meth:`pump` starts run in subscription order.
    - A callback subscribed during a pump waits for the next pump.
    - Timestamps are integer milliseconds from the injected ``Clock``.
    """

    def __init__(self, *, clock: Clock) -> None:
        self._clock = clock
        self._ids = itertools.count(1)
        self._pending: dict[int, FrameCallback] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def now_ms(self) -> int:
        return int(round(self._clock.now() * 1000.0))

    def subscribe(self, callback: FrameCallback) -> FrameSubscription:
        handle = FrameSubscription(next(self._ids))
        self._pending[handle.handle_id] = callback
        return handle

    def unsubscribe(self, handle: FrameSubscription | None) -> None:
        if handle is None:
            return
        self._pending.pop(handle.handle_id, None)

    def pump(self, timestamp_ms: int | None = None) -> int:
        """Run one frame. Returns the number of callbacks invoked."""

        if not self._pending:
            return 0
        stamp = self.now_ms() if timestamp_ms is None else int(timestamp_ms)
        due = list(self._pending.keys())
        fired = 0
        for handle_id in due:
            # Earlier callbacks in this frame may have cancelled later ones.
            callback = self._pending.pop(handle_id, None)
            if callback is None:
                continue
            callback(stamp)
            fired += 1
        return fired
