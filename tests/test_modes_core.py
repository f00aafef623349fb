from __future__ import annotations

from dataclasses import dataclass, field

from timepiece.frame_clock import FrameScheduler
from timepiece.modes import ModeController
from timepiece.timer import RunState, TimerMode


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t


@dataclass
class FakeWallClock:
    hms: tuple[int, int, int] = (13, 45, 7)

    def time_of_day(self) -> tuple[int, int, int]:
        return self.hms


@dataclass
class RecordingSink:
    renders: list[tuple[TimerMode, int, RunState]] = field(default_factory=list)
    modes: list[TimerMode] = field(default_factory=list)

    def render(self, mode: TimerMode, value_ms: int, run_state: RunState) -> None:
        self.renders.append((mode, value_ms, run_state))

    def on_mode_changed(self, mode: TimerMode) -> None:
        self.modes.append(mode)


def _controller(initial: TimerMode = TimerMode.CLOCK) -> tuple[ModeController, FrameScheduler, RecordingSink]:
    frames = FrameScheduler(clock=FakeClock())
    sink = RecordingSink()
    controller = ModeController(
        frames=frames,
        render_sink=sink,
        mode_sink=sink,
        wall_clock=FakeWallClock(),
        initial_mode=initial,
    )
    return controller, frames, sink


def test_switch_to_same_mode_is_noop() -> None:
    controller, _, sink = _controller(TimerMode.STOPWATCH)
    assert controller.switch_mode(TimerMode.STOPWATCH) is False
    assert sink.renders == []
    assert sink.modes == []


def test_switch_while_running_halts_and_zeroes_both() -> None:
    controller, frames, sink = _controller(TimerMode.STOPWATCH)
    controller.start()
    frames.pump(300)
    assert controller.stopwatch.is_running

    assert controller.switch_mode(TimerMode.COUNTDOWN) is True
    assert controller.mode is TimerMode.COUNTDOWN
    assert frames.pending_count == 0
    assert controller.stopwatch.run_state is RunState.IDLE
    assert controller.stopwatch.value_ms == 0
    assert controller.countdown.value_ms == 0
    assert sink.modes == [TimerMode.COUNTDOWN]
    assert sink.renders[-1] == (TimerMode.COUNTDOWN, 0, RunState.IDLE)


def test_switch_discards_configured_countdown() -> None:
    controller, frames, _ = _controller(TimerMode.COUNTDOWN)
    controller.set_countdown_seed(60_000)
    controller.start()
    frames.pump(1000)
    controller.switch_mode(TimerMode.CLOCK)
    controller.switch_mode(TimerMode.COUNTDOWN)
    assert controller.countdown.value_ms == 0
    assert controller.countdown.seed_ms == 0


def test_clock_mode_snapshot_has_wall_time_and_no_timer() -> None:
    controller, _, _ = _controller()
    assert controller.active_timer is None
    snap = controller.snapshot()
    assert snap.mode is TimerMode.CLOCK
    assert snap.wall_time == (13, 45, 7)
    assert snap.run_state is RunState.IDLE


def test_controls_are_noops_in_clock_mode() -> None:
    controller, frames, sink = _controller()
    controller.start()
    controller.toggle()
    controller.halt()
    controller.reset()
    assert frames.pending_count == 0
    assert sink.renders == []


def test_countdown_seed_only_applies_in_countdown_mode() -> None:
    controller, _, _ = _controller(TimerMode.STOPWATCH)
    assert controller.set_countdown_seed(5000) is False
    assert controller.countdown.value_ms == 0
    controller.switch_mode(TimerMode.COUNTDOWN)
    assert controller.set_countdown_seed(5000) is True
    assert controller.snapshot().value_ms == 5000


def test_toggle_starts_and_halts_active_timer() -> None:
    controller, frames, _ = _controller(TimerMode.STOPWATCH)
    controller.toggle()
    assert controller.stopwatch.run_state is RunState.RUNNING
    frames.pump(20)
    controller.toggle()
    assert controller.stopwatch.run_state is RunState.STOPPED
    assert controller.snapshot().value_ms == 20


def test_mode_changes_go_to_mode_sink_only() -> None:
    @dataclass
    class RenderOnlySink:
        renders: list[tuple[TimerMode, int, RunState]] = field(default_factory=list)

        def render(self, mode: TimerMode, value_ms: int, run_state: RunState) -> None:
            self.renders.append((mode, value_ms, run_state))

    render_sink = RenderOnlySink()
    mode_sink = RecordingSink()
    controller = ModeController(
        frames=FrameScheduler(clock=FakeClock()),
        render_sink=render_sink,
        mode_sink=mode_sink,
        wall_clock=FakeWallClock(),
    )
    controller.switch_mode(TimerMode.STOPWATCH)
    assert mode_sink.modes == [TimerMode.STOPWATCH]
    assert mode_sink.renders == []
    assert render_sink.renders[-1] == (TimerMode.STOPWATCH, 0, RunState.IDLE)

    # A render sink that also has on_mode_changed is not notified unless wired as the mode sink.
    both = RecordingSink()
    controller = ModeController(frames=FrameScheduler(clock=FakeClock()), render_sink=both)
    controller.switch_mode(TimerMode.COUNTDOWN)
    assert both.modes == []
    assert both.renders[-1] == (TimerMode.COUNTDOWN, 0, RunState.IDLE)
