from __future__ import annotations

from dataclasses import dataclass, field

from timepiece.modes import build_mode_controller
from timepiece.timer import RunState, TimerMode


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


@dataclass
class RecordingSink:
    renders: list[tuple[TimerMode, int, RunState]] = field(default_factory=list)
    modes: list[TimerMode] = field(default_factory=list)
    completions: int = 0

    def render(self, mode: TimerMode, value_ms: int, run_state: RunState) -> None:
        self.renders.append((mode, value_ms, run_state))

    def on_mode_changed(self, mode: TimerMode) -> None:
        self.modes.append(mode)

    def on_countdown_complete(self) -> None:
        self.completions += 1


def test_stopwatch_frames_at_16_33_50_accumulate_50ms() -> None:
    controller, frames = build_mode_controller(clock=FakeClock(), initial_mode=TimerMode.STOPWATCH)
    controller.start()
    frames.pump(16)
    frames.pump(33)
    frames.pump(50)
    assert controller.stopwatch.value_ms == 50
    assert controller.snapshot().run_state is RunState.RUNNING


def test_countdown_exact_exhaustion_fires_completion_once() -> None:
    sink = RecordingSink()
    controller, frames = build_mode_controller(
        clock=FakeClock(),
        render_sink=sink,
        completion_sink=sink,
        initial_mode=TimerMode.COUNTDOWN,
    )
    assert controller.set_countdown_seed(5000) is True
    controller.start()

    for ts in (1000, 2500, 4000, 5000):
        frames.pump(ts)

    assert controller.countdown.value_ms == 0
    assert controller.countdown.run_state is RunState.STOPPED
    assert sink.completions == 1
    assert frames.pending_count == 0

    frames.pump(6000)
    assert sink.completions == 1


def test_countdown_frame_skip_clamps_to_zero() -> None:
    sink = RecordingSink()
    controller, frames = build_mode_controller(
        clock=FakeClock(),
        render_sink=sink,
        completion_sink=sink,
        initial_mode=TimerMode.COUNTDOWN,
    )
    controller.set_countdown_seed(5000)
    controller.start()
    frames.pump(6000)

    assert controller.countdown.value_ms == 0
    assert all(value >= 0 for _, value, _ in sink.renders)
    assert sink.completions == 1


def test_suspended_host_catches_up_in_one_frame() -> None:
    clock = FakeClock()
    controller, frames = build_mode_controller(clock=clock, initial_mode=TimerMode.STOPWATCH)
    controller.start()
    frames.pump(16)
    # Window hidden for a minute: no frames, then one late frame.
    frames.pump(60_016)
    assert controller.stopwatch.value_ms == 60_016


def test_start_on_empty_countdown_creates_no_subscription() -> None:
    controller, frames = build_mode_controller(clock=FakeClock(), initial_mode=TimerMode.COUNTDOWN)
    controller.start()
    assert frames.pending_count == 0
    assert controller.countdown.run_state is RunState.IDLE


def test_scripted_session_across_modes() -> None:
    clock = FakeClock()
    sink = RecordingSink()
    controller, frames = build_mode_controller(
        clock=clock,
        render_sink=sink,
        completion_sink=sink,
        mode_sink=sink,
    )
    assert controller.mode is TimerMode.CLOCK
    controller.start()  # clock mode: nothing to start
    assert frames.pending_count == 0

    controller.switch_mode(TimerMode.STOPWATCH)
    controller.toggle()
    frames.pump(1200)
    controller.toggle()
    assert controller.stopwatch.value_ms == 1200
    assert controller.stopwatch.run_state is RunState.STOPPED

    clock.t = 2.0
    controller.switch_mode(TimerMode.COUNTDOWN)
    assert controller.stopwatch.value_ms == 0
    controller.set_countdown_seed(1000)
    controller.start()
    frames.pump(2600)
    frames.pump(3100)
    assert sink.completions == 1
    controller.reset()
    assert controller.countdown.value_ms == 1000

    assert sink.modes == [TimerMode.STOPWATCH, TimerMode.COUNTDOWN]
