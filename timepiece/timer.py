"""Frame-driven stopwatch/countdown state machine.

The machine owns a :class:`TickAccumulator` and at most one outstanding
:class:`FrameSubscription`. While ``RUNNING`` every frame advances the
accumulator by the real gap since the previous frame, so throttled or dropped
frames never lose time. Invalid transitions are silent no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from .accumulator import Direction, TickAccumulator
from .frame_clock import FrameCallback, FrameClock, FrameSubscription, frame_delta_ms

logger = logging.getLogger(__name__)


class TimerMode(StrEnum):
    CLOCK = "clock"
    STOPWATCH = "stopwatch"
    COUNTDOWN = "countdown"


class RunState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class RenderSink(Protocol):
    def render(self, mode: TimerMode, value_ms: int, run_state: RunState) -> None: ...


class CompletionSink(Protocol):
    def on_countdown_complete(self) -> None: ...


class _NullSink:
    def render(self, mode: TimerMode, value_ms: int, run_state: RunState) -> None:
        return None

    def on_countdown_complete(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class TimerSnapshot:
    """View model for the UI (pure data)."""

    mode: TimerMode
    value_ms: int
    run_state: RunState
    direction: Direction
    seed_ms: int


_DIRECTIONS = {
    TimerMode.STOPWATCH: Direction.UP,
    TimerMode.COUNTDOWN: Direction.DOWN,
}


class TimerStateMachine:
    """Stopwatch (count-up) or countdown (count-down) controller.

    - IDLE -> RUNNING -> STOPPED -> RUNNING -> ...
    - ``reset`` is allowed from any state; from RUNNING it halts first.
    - Each subscription carries a generation number; a callback whose
      generation is stale (halted or reset since scheduling) does nothing.
    """

    def __init__(
        self,
        *,
        mode: TimerMode,
        frames: FrameClock,
        render_sink: RenderSink | None = None,
        completion_sink: CompletionSink | None = None,
        seed_ms: int = 0,
    ) -> None:
        if mode not in _DIRECTIONS:
            raise ValueError(f"mode {mode!s} has no timer")
        self._mode = TimerMode(mode)
        self._frames = frames
        self._render_sink: RenderSink = render_sink or _NullSink()
        self._completion_sink: CompletionSink = completion_sink or _NullSink()

        self._seed_ms = max(0, int(seed_ms)) if self._mode is TimerMode.COUNTDOWN else 0
        self._accumulator = TickAccumulator(direction=_DIRECTIONS[self._mode], seed_ms=self._seed_ms)
        self._run_state = RunState.IDLE
        self._subscription: FrameSubscription | None = None
        self._baseline_ms = 0
        self._generation = 0

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def run_state(self) -> RunState:
        return self._run_state

    @property
    def is_running(self) -> bool:
        return self._run_state is RunState.RUNNING

    @property
    def value_ms(self) -> int:
        return self._accumulator.value

    @property
    def seed_ms(self) -> int:
        return self._seed_ms

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            mode=self._mode,
            value_ms=self._accumulator.value,
            run_state=self._run_state,
            direction=self._accumulator.direction,
            seed_ms=self._seed_ms,
        )

    def start(self) -> None:
        if self._run_state is RunState.RUNNING:
            return
        if self._accumulator.is_exhausted():
            logger.debug("%s: start ignored, nothing remaining", self._mode)
            return
        self._baseline_ms = self._frames.now_ms()
        self._run_state = RunState.RUNNING
        self._generation += 1
        logger.debug("%s: running from %d ms", self._mode, self._accumulator.value)
        self._subscribe()
        self._render()

    def halt(self) -> None:
        if self._run_state is not RunState.RUNNING:
            return
        self._cancel()
        self._run_state = RunState.STOPPED
        logger.debug("%s: stopped at %d ms", self._mode, self._accumulator.value)
        self._render()

    def reset(self) -> None:
        if self._run_state is RunState.RUNNING:
            self._cancel()
        self._accumulator.reset(self._seed_ms)
        self._run_state = RunState.IDLE
        logger.debug("%s: reset to %d ms", self._mode, self._seed_ms)
        self._render()

    def clear(self, seed_ms: int = 0) -> None:
        """Halt, forget the configured seed and return to IDLE at ``seed_ms``."""

        if self._run_state is RunState.RUNNING:
            self._cancel()
        if self._mode is TimerMode.COUNTDOWN:
            self._seed_ms = max(0, int(seed_ms))
        self._accumulator.reset(self._seed_ms)
        self._run_state = RunState.IDLE
        self._render()

    def accepts_input(self) -> bool:
        if self._mode is not TimerMode.COUNTDOWN:
            return False
        if self._run_state is RunState.IDLE:
            return True
        # Stopped before any time was consumed.
        return self._run_state is RunState.STOPPED and self._accumulator.value == self._seed_ms

    def on_input_changed(self, seed_ms: int) -> bool:
        """Re-seed a countdown. Returns True if accepted."""

        if not self.accepts_input():
            logger.debug("%s: seed %d ms ignored while %s", self._mode, seed_ms, self._run_state)
            return False
        self._seed_ms = max(0, int(seed_ms))
        self._accumulator.reset(self._seed_ms)
        self._render()
        return True

    def _subscribe(self) -> None:
        # One outstanding subscription per machine.
        self._frames.unsubscribe(self._subscription)
        self._subscription = self._frames.subscribe(self._frame_callback(self._generation))

    def _cancel(self) -> None:
        self._frames.unsubscribe(self._subscription)
        self._subscription = None
        self._generation += 1

    def _frame_callback(self, generation: int) -> FrameCallback:
        def on_frame(timestamp_ms: int) -> None:
            self._on_frame(generation, timestamp_ms)

        return on_frame

    def _on_frame(self, generation: int, timestamp_ms: int) -> None:
        if generation != self._generation or self._run_state is not RunState.RUNNING:
            logger.debug("%s: stale frame callback ignored", self._mode)
            return
        self._subscription = None

        delta = frame_delta_ms(self._baseline_ms, timestamp_ms)
        self._baseline_ms = int(timestamp_ms)
        self._accumulator.advance(delta)

        if self._accumulator.is_exhausted():
            self._run_state = RunState.STOPPED
            self._generation += 1
            logger.debug("%s: exhausted", self._mode)
            self._render()
            self._completion_sink.on_countdown_complete()
            return

        self._render()
        # The render sink may have halted or reset us.
        if self._run_state is RunState.RUNNING and generation == self._generation:
            self._subscribe()

    def _render(self) -> None:
        self._render_sink.render(self._mode, self._accumulator.value, self._run_state)
