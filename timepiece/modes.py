from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .clock import Clock, SystemWallClock, WallClock
from .frame_clock import FrameClock, FrameScheduler
from .timer import CompletionSink, RenderSink, RunState, TimerMode, TimerStateMachine

logger = logging.getLogger(__name__)


class ModeChangeSink(Protocol):
    def on_mode_changed(self, mode: TimerMode) -> None: ...


@dataclass(frozen=True, slots=True)
class ModeSnapshot:
    """View model for the active mode (pure data)."""

    mode: TimerMode
    value_ms: int
    run_state: RunState
    wall_time: tuple[int, int, int] | None = None


class ModeController:
    """Widget-wide context: the active mode plus one timer per timed mode.

    Constructed explicitly and handed to whoever needs it. Switching modes
    halts whatever is running and zeroes both timers; nothing carries over.
    """

    def __init__(
        self,
        *,
        frames: FrameClock,
        render_sink: RenderSink | None = None,
        completion_sink: CompletionSink | None = None,
        mode_sink: ModeChangeSink | None = None,
        wall_clock: WallClock | None = None,
        initial_mode: TimerMode = TimerMode.CLOCK,
    ) -> None:
        self._frames = frames
        self._render_sink = render_sink
        self._mode_sink = mode_sink
        self._wall_clock = wall_clock or SystemWallClock()
        self._mode = TimerMode(initial_mode)
        self._stopwatch = TimerStateMachine(
            mode=TimerMode.STOPWATCH,
            frames=frames,
            render_sink=render_sink,
        )
        self._countdown = TimerStateMachine(
            mode=TimerMode.COUNTDOWN,
            frames=frames,
            render_sink=render_sink,
            completion_sink=completion_sink,
        )

    @property
    def mode(self) -> TimerMode:
        return self._mode

    @property
    def frames(self) -> FrameClock:
        return self._frames

    @property
    def stopwatch(self) -> TimerStateMachine:
        return self._stopwatch

    @property
    def countdown(self) -> TimerStateMachine:
        return self._countdown

    @property
    def active_timer(self) -> TimerStateMachine | None:
        if self._mode is TimerMode.STOPWATCH:
            return self._stopwatch
        if self._mode is TimerMode.COUNTDOWN:
            return self._countdown
        return None

    def switch_mode(self, next_mode: TimerMode) -> bool:
        """Activate ``next_mode``. Returns False if it is already active."""

        next_mode = TimerMode(next_mode)
        if next_mode is self._mode:
            return False
        previous = self._mode
        self._stopwatch.clear()
        self._countdown.clear()
        self._mode = next_mode
        logger.debug("mode %s -> %s", previous, next_mode)
        self._render_full()
        return True

    def start(self) -> None:
        timer = self.active_timer
        if timer is not None:
            timer.start()

    def halt(self) -> None:
        timer = self.active_timer
        if timer is not None:
            timer.halt()

    def reset(self) -> None:
        timer = self.active_timer
        if timer is not None:
            timer.reset()

    def toggle(self) -> None:
        timer = self.active_timer
        if timer is None:
            return
        if timer.is_running:
            timer.halt()
        else:
            timer.start()

    def set_countdown_seed(self, seed_ms: int) -> bool:
        if self._mode is not TimerMode.COUNTDOWN:
            return False
        return self._countdown.on_input_changed(seed_ms)

    def snapshot(self) -> ModeSnapshot:
        timer = self.active_timer
        if timer is None:
            return ModeSnapshot(
                mode=self._mode,
                value_ms=0,
                run_state=RunState.IDLE,
                wall_time=self._wall_clock.time_of_day(),
            )
        return ModeSnapshot(mode=self._mode, value_ms=timer.value_ms, run_state=timer.run_state)

    def _render_full(self) -> None:
        if self._mode_sink is not None:
            self._mode_sink.on_mode_changed(self._mode)
        sink = self._render_sink
        if sink is None:
            return
        snap = self.snapshot()
        sink.render(snap.mode, snap.value_ms, snap.run_state)


def build_mode_controller(
    *,
    clock: Clock,
    render_sink: RenderSink | None = None,
    completion_sink: CompletionSink | None = None,
    mode_sink: ModeChangeSink | None = None,
    wall_clock: WallClock | None = None,
    initial_mode: TimerMode = TimerMode.CLOCK,
) -> tuple[ModeController, FrameScheduler]:
    """Factory wiring a controller to a fresh pumped frame scheduler."""

    frames = FrameScheduler(clock=clock)
    controller = ModeController(
        frames=frames,
        render_sink=render_sink,
        completion_sink=completion_sink,
        mode_sink=mode_sink,
        wall_clock=wall_clock,
        initial_mode=initial_mode,
    )
    return controller, frames
