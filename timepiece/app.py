"""Pygame shell for the Timepiece widget.

Three modes share one window:
- Clock (live time of day, digital + analog dial)
- Stopwatch (count-up with hundredths)
- Countdown (hours/minutes/seconds entry, alert on completion)

Timing state lives in timepiece/* core modules; this module only draws it
and turns key presses into controller calls.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import pygame

from .clock import Clock, RealClock, SystemWallClock, WallClock
from .display import (
    HOURS_MAX,
    MINUTES_MAX,
    SECONDS_MAX,
    CountdownFields,
    HandAngles,
    format_duration,
    format_wall_time,
    hand_angles_for_duration,
    hand_angles_for_time,
    parse_field,
)
from .frame_clock import FrameScheduler
from .modes import ModeController, build_mode_controller
from .preferences import PreferencesStore, Theme
from .timer import RunState, TimerMode

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 540)
TARGET_FPS = 60

MORPH_OUT_MS = 500
MORPH_IN_MS = 350
CURSOR_FADE_MS = 3000
ALERT_MS = 5000
IMMERSIVE_GRACE_MS = 250

LOG_LEVEL_ENV = "TIMEPIECE_LOG_LEVEL"

MODE_ORDER = (TimerMode.CLOCK, TimerMode.STOPWATCH, TimerMode.COUNTDOWN)
MODE_LABELS = {
    TimerMode.CLOCK: "Clock",
    TimerMode.STOPWATCH: "Stopwatch",
    TimerMode.COUNTDOWN: "Countdown",
}
MODE_KEYS = {
    pygame.K_F1: TimerMode.CLOCK,
    pygame.K_F2: TimerMode.STOPWATCH,
    pygame.K_F3: TimerMode.COUNTDOWN,
}
FIELD_LABELS = ("Hours", "Minutes", "Seconds")
FIELD_MAX = (HOURS_MAX, MINUTES_MAX, SECONDS_MAX)


@dataclass(frozen=True, slots=True)
class Palette:
    bg: tuple[int, int, int]
    panel: tuple[int, int, int]
    border: tuple[int, int, int]
    text_main: tuple[int, int, int]
    text_muted: tuple[int, int, int]
    accent: tuple[int, int, int]
    alert: tuple[int, int, int]


PALETTES = {
    Theme.DIURNAL: Palette(
        bg=(236, 238, 244),
        panel=(250, 251, 255),
        border=(120, 132, 157),
        text_main=(20, 26, 48),
        text_muted=(96, 104, 128),
        accent=(36, 92, 220),
        alert=(214, 64, 48),
    ),
    Theme.NOCTURNAL: Palette(
        bg=(6, 9, 22),
        panel=(14, 20, 44),
        border=(78, 102, 170),
        text_main=(238, 245, 255),
        text_muted=(150, 162, 196),
        accent=(120, 172, 255),
        alert=(255, 112, 96),
    ),
}


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


class App:
    def __init__(self, surface: pygame.Surface) -> None:
        self._surface = surface
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


class _ScreenSink:
    """Forwards core render, completion and mode-change callbacks to the screen.

    The screen already uses ``render(surface)`` for drawing, so the sink
    interface lives on this small adapter instead.
    """

    def __init__(self, screen: "TimepieceScreen") -> None:
        self._screen = screen

    def render(self, mode: TimerMode, value_ms: int, run_state: RunState) -> None:
        self._screen.render_state(mode, value_ms, run_state)

    def on_mode_changed(self, mode: TimerMode) -> None:
        self._screen.on_mode_changed(mode)

    def on_countdown_complete(self) -> None:
        self._screen.on_countdown_complete()


class TimepieceScreen:
    """Single-screen widget showing whichever mode is active."""

    def __init__(
        self,
        app: App,
        *,
        clock: Clock,
        preferences: PreferencesStore,
        wall_clock: WallClock | None = None,
    ) -> None:
        self._app = app
        self._prefs = preferences
        self._wall_clock = wall_clock or SystemWallClock()
        prefs = preferences.preferences
        self._theme = prefs.theme

        sink = _ScreenSink(self)
        self._controller, self._frames = build_mode_controller(
            clock=clock,
            render_sink=sink,
            completion_sink=sink,
            mode_sink=sink,
            wall_clock=self._wall_clock,
            initial_mode=prefs.mode,
        )

        self._rendered: dict[TimerMode, tuple[int, RunState]] = {}
        self._fields = ["", "", ""]
        self._field_index = 0

        self._pending_mode: TimerMode | None = None
        self._morph_started_ms: int | None = None

        self._immersive = False
        self._immersive_since_ms = 0
        self._cursor_fade_at_ms: int | None = None
        self._alert_pending = False
        self._alert_until_ms: int | None = None

        self._tab_font = pygame.font.Font(None, 30)
        self._digit_font = pygame.font.Font(None, 112)
        self._small_font = pygame.font.Font(None, 24)
        self._field_font = pygame.font.Font(None, 44)
        self._dial_font = pygame.font.Font(None, 22)
        self._float_font = pygame.font.Font(None, 180)

        if prefs.immersive:
            self._engage_immersive()

    @property
    def controller(self) -> ModeController:
        return self._controller

    @property
    def frames(self) -> FrameScheduler:
        return self._frames

    @property
    def theme(self) -> Theme:
        return self._theme

    @property
    def immersive(self) -> bool:
        return self._immersive

    @property
    def alert_active(self) -> bool:
        return self._alert_pending

    @property
    def fields(self) -> tuple[str, str, str]:
        return self._fields[0], self._fields[1], self._fields[2]

    def last_rendered(self, mode: TimerMode) -> tuple[int, RunState] | None:
        return self._rendered.get(mode)

    def render_state(self, mode: TimerMode, value_ms: int, run_state: RunState) -> None:
        """Latest timer state pushed by the core; the digits are drawn from it."""

        self._rendered[mode] = (int(value_ms), run_state)

    def on_mode_changed(self, mode: TimerMode) -> None:
        self._fields = ["", "", ""]
        self._field_index = 0
        self._prefs.set_mode(mode)

    def on_countdown_complete(self) -> None:
        logger.info("Countdown complete")
        # Expiry starts once the banner is first drawn.
        self._alert_pending = True
        self._alert_until_ms = None

    def handle_event(self, event: pygame.event.Event) -> None:
        if self._immersive:
            settling = self._frames.now_ms() - self._immersive_since_ms < IMMERSIVE_GRACE_MS
            if event.type == pygame.MOUSEMOTION and settling:
                # Going fullscreen can emit a synthetic motion event.
                return
            if event.type in (pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN, pygame.MOUSEMOTION, pygame.FINGERDOWN):
                self._disengage_immersive()
            return

        if event.type != pygame.KEYDOWN:
            return

        if self._alert_pending:
            self._dismiss_alert()
            return

        key = event.key
        if key == pygame.K_ESCAPE:
            self._app.quit()
            return
        if key in MODE_KEYS:
            self.request_mode(MODE_KEYS[key])
            return
        if key == pygame.K_TAB:
            step = -1 if (getattr(event, "mod", 0) & pygame.KMOD_SHIFT) else 1
            idx = MODE_ORDER.index(self._controller.mode)
            self.request_mode(MODE_ORDER[(idx + step) % len(MODE_ORDER)])
            return
        if key == pygame.K_t:
            self._theme = self._prefs.toggle_theme()
            return
        if key == pygame.K_f:
            self._engage_immersive()
            return
        if self._morph_started_ms is not None:
            # Controls are inert while the stage is morphing.
            return

        if key == pygame.K_SPACE:
            self._controller.toggle()
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            self._controller.start()
        elif key == pygame.K_r:
            self._controller.reset()
        elif self._controller.mode is TimerMode.COUNTDOWN:
            self._handle_field_key(key, getattr(event, "unicode", ""))

    def request_mode(self, mode: TimerMode) -> None:
        """Begin the morph towards ``mode``; the switch lands at its midpoint."""

        if self._morph_started_ms is not None:
            return
        if mode is self._controller.mode:
            return
        self._pending_mode = mode
        self._morph_started_ms = self._frames.now_ms()

    def update(self) -> None:
        """Advance one display frame: timers, morph, cursor fade, alert expiry."""

        self._frames.pump()
        now = self._frames.now_ms()

        if self._morph_started_ms is not None:
            elapsed = now - self._morph_started_ms
            if self._pending_mode is not None and elapsed >= MORPH_OUT_MS:
                self._controller.switch_mode(self._pending_mode)
                self._pending_mode = None
            if elapsed >= MORPH_OUT_MS + MORPH_IN_MS:
                self._morph_started_ms = None

        if self._alert_until_ms is not None and now >= self._alert_until_ms:
            self._dismiss_alert()

        if self._immersive and self._cursor_fade_at_ms is not None and now >= self._cursor_fade_at_ms:
            pygame.mouse.set_visible(False)
            self._cursor_fade_at_ms = None

    def render(self, surface: pygame.Surface) -> None:
        self.update()
        palette = PALETTES[self._theme]
        if self._immersive:
            self._render_immersive(surface, palette)
            if self._alert_pending:
                self._render_alert(surface, palette)
            return

        surface.fill(palette.bg)
        w, h = surface.get_size()
        snap = self._controller.snapshot()

        tabs_rect = pygame.Rect(20, 16, w - 40, 44)
        self._render_tabs(surface, tabs_rect, palette, snap.mode)

        stage = pygame.Rect(20, tabs_rect.bottom + 14, w - 40, h - tabs_rect.bottom - 70)
        pygame.draw.rect(surface, palette.panel, stage)
        pygame.draw.rect(surface, palette.border, stage, 2)

        dial_r = max(60, min(stage.h // 2 - 24, stage.w // 5))
        dial_center = (stage.right - dial_r - 30, stage.centery)

        value_ms, run_state = self._rendered.get(snap.mode, (snap.value_ms, snap.run_state))
        if snap.mode is TimerMode.CLOCK:
            hh, mm, ss = snap.wall_time or (0, 0, 0)
            digits = format_wall_time(hh, mm, ss)
            angles = hand_angles_for_time(hh, mm, ss)
        else:
            digits = format_duration(value_ms, with_fraction=snap.mode is TimerMode.STOPWATCH)
            angles = hand_angles_for_duration(value_ms)

        digits_surf = self._digit_font.render(digits, True, palette.text_main)
        digits_x = stage.x + 30
        digits_y = stage.y + max(20, stage.h // 4 - digits_surf.get_height() // 2)
        surface.blit(digits_surf, (digits_x, digits_y))

        if snap.mode is not TimerMode.CLOCK:
            status = self._small_font.render(run_state.value.upper(), True, palette.text_muted)
            surface.blit(status, (digits_x, digits_y + digits_surf.get_height() + 6))

        if snap.mode is TimerMode.COUNTDOWN:
            fields_rect = pygame.Rect(digits_x, stage.bottom - 110, dial_center[0] - dial_r - digits_x - 40, 80)
            self._render_fields(surface, fields_rect, palette)

        self._render_dial(surface, dial_center, dial_r, angles, palette)

        hint = self._hint_for(snap.mode)
        hint_surf = self._small_font.render(hint, True, palette.text_muted)
        surface.blit(hint_surf, hint_surf.get_rect(midbottom=(w // 2, h - 16)))

        if self._alert_pending:
            self._render_alert(surface, palette)

        self._render_morph(surface, palette)

    def _handle_field_key(self, key: int, unicode: str) -> None:
        if key == pygame.K_LEFT:
            self._field_index = (self._field_index - 1) % 3
            return
        if key == pygame.K_RIGHT:
            self._field_index = (self._field_index + 1) % 3
            return
        if not self._controller.countdown.accepts_input():
            return

        text = self._fields[self._field_index]
        if key == pygame.K_BACKSPACE:
            text = text[:-1]
        elif key in (pygame.K_UP, pygame.K_DOWN):
            step = 1 if key == pygame.K_UP else -1
            value = parse_field(text) + step
            value = max(0, min(FIELD_MAX[self._field_index], value))
            text = str(value)
        elif unicode.isdigit() and len(unicode) == 1:
            if len(text) >= 2:
                text = ""
            text += unicode
        else:
            return

        self._fields[self._field_index] = text
        self._controller.set_countdown_seed(CountdownFields.from_text(*self._fields).seed_ms())

    def _dismiss_alert(self) -> None:
        self._alert_pending = False
        self._alert_until_ms = None

    def _engage_immersive(self) -> None:
        self._immersive = True
        self._immersive_since_ms = self._frames.now_ms()
        self._prefs.set_immersive(True)
        _toggle_fullscreen()
        self._cursor_fade_at_ms = self._frames.now_ms() + CURSOR_FADE_MS

    def _disengage_immersive(self) -> None:
        self._immersive = False
        self._prefs.set_immersive(False)
        self._cursor_fade_at_ms = None
        pygame.mouse.set_visible(True)
        _toggle_fullscreen()

    def _render_tabs(self, surface: pygame.Surface, rect: pygame.Rect, palette: Palette, active: TimerMode) -> None:
        tab_w = rect.w // len(MODE_ORDER)
        for idx, mode in enumerate(MODE_ORDER):
            tab = pygame.Rect(rect.x + idx * tab_w, rect.y, tab_w - 8, rect.h)
            chosen = mode is active
            pygame.draw.rect(surface, palette.accent if chosen else palette.panel, tab)
            pygame.draw.rect(surface, palette.border, tab, 1)
            color = palette.panel if chosen else palette.text_main
            label = self._tab_font.render(f"F{idx + 1}  {MODE_LABELS[mode]}", True, color)
            surface.blit(label, label.get_rect(center=tab.center))

    def _render_fields(self, surface: pygame.Surface, rect: pygame.Rect, palette: Palette) -> None:
        editable = self._controller.countdown.accepts_input()
        col_w = max(80, rect.w // 3)
        for idx, label in enumerate(FIELD_LABELS):
            box = pygame.Rect(rect.x + idx * col_w, rect.y + 22, col_w - 16, rect.h - 22)
            selected = idx == self._field_index and editable
            pygame.draw.rect(surface, palette.bg, box)
            pygame.draw.rect(surface, palette.accent if selected else palette.border, box, 2 if selected else 1)
            cap = self._small_font.render(label, True, palette.text_muted)
            surface.blit(cap, (box.x, rect.y))
            raw = self._fields[idx]
            text = raw if raw != "" else "00"
            color = palette.text_main if raw != "" else palette.text_muted
            val = self._field_font.render(text, True, color)
            surface.blit(val, val.get_rect(center=box.center))

    def _render_dial(
        self,
        surface: pygame.Surface,
        center: tuple[int, int],
        radius: int,
        angles: HandAngles,
        palette: Palette,
    ) -> None:
        cx, cy = center
        pygame.draw.circle(surface, palette.bg, center, radius)
        pygame.draw.circle(surface, palette.border, center, radius, 2)

        for idx in range(12):
            numeral = 12 if idx == 0 else idx
            x, y = _polar(center, radius - 16, idx * 30.0)
            mark = self._dial_font.render(str(numeral), True, palette.text_muted)
            surface.blit(mark, mark.get_rect(center=(int(x), int(y))))

        hands = (
            (angles.hour, radius * 0.5, 6, palette.text_main),
            (angles.minute, radius * 0.72, 4, palette.text_main),
            (angles.second, radius * 0.84, 2, palette.alert),
        )
        for angle, length, width, color in hands:
            end = _polar(center, length, angle)
            pygame.draw.line(surface, color, (cx, cy), (int(end[0]), int(end[1])), width)
        pygame.draw.circle(surface, palette.accent, center, 5)

    def _render_alert(self, surface: pygame.Surface, palette: Palette) -> None:
        if self._alert_until_ms is None:
            self._alert_until_ms = self._frames.now_ms() + ALERT_MS
        w, h = surface.get_size()
        banner = pygame.Rect(w // 2 - 220, h // 2 - 50, 440, 100)
        pygame.draw.rect(surface, palette.alert, banner)
        pygame.draw.rect(surface, palette.border, banner, 2)
        msg = self._field_font.render("Countdown complete!", True, palette.panel)
        surface.blit(msg, msg.get_rect(center=(banner.centerx, banner.centery - 10)))
        sub = self._small_font.render("Press any key", True, palette.panel)
        surface.blit(sub, sub.get_rect(center=(banner.centerx, banner.bottom - 18)))

    def _render_morph(self, surface: pygame.Surface, palette: Palette) -> None:
        if self._morph_started_ms is None:
            return
        elapsed = self._frames.now_ms() - self._morph_started_ms
        if elapsed < MORPH_OUT_MS:
            alpha = int(255 * elapsed / MORPH_OUT_MS)
        else:
            alpha = int(255 * max(0.0, 1.0 - (elapsed - MORPH_OUT_MS) / MORPH_IN_MS))
        if alpha <= 0:
            return
        veil = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        veil.fill((*palette.bg, min(255, alpha)))
        surface.blit(veil, (0, 0))

    def _render_immersive(self, surface: pygame.Surface, palette: Palette) -> None:
        surface.fill(palette.bg)
        hh, mm, ss = self._wall_clock.time_of_day()
        text = self._float_font.render(format_wall_time(hh, mm, ss), True, palette.text_main)
        surface.blit(text, text.get_rect(center=surface.get_rect().center))

    @staticmethod
    def _hint_for(mode: TimerMode) -> str:
        if mode is TimerMode.CLOCK:
            return "F1-F3/Tab: Mode  |  T: Theme  |  F: Immersive  |  Esc: Quit"
        if mode is TimerMode.STOPWATCH:
            return "Space: Start/Suspend  |  R: Nullify  |  T: Theme  |  F: Immersive  |  Esc: Quit"
        return "Digits/Up/Down: Set  |  Left/Right: Field  |  Space: Commence/Suspend  |  R: Nullify"


def _polar(center: tuple[int, int], length: float, angle_deg: float) -> tuple[float, float]:
    rad = math.radians(angle_deg)
    return center[0] + math.sin(rad) * length, center[1] - math.cos(rad) * length


def _toggle_fullscreen() -> None:
    if os.environ.get("SDL_VIDEODRIVER", "").strip().lower() == "dummy":
        return
    try:
        pygame.display.toggle_fullscreen()
    except pygame.error as exc:
        logger.warning("Fullscreen toggle failed: %s", exc)


def _configure_logging() -> None:
    level_name = os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper()
    level = getattr(logging, level_name, logging.WARNING)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    target_fps: int = TARGET_FPS,
) -> int:
    if target_fps <= 0:
        raise ValueError(f"target_fps must be positive, got {target_fps}")
    _configure_logging()
    pygame.init()

    pygame.display.set_caption("Timepiece")
    surface = pygame.display.set_mode(WINDOW_SIZE, pygame.RESIZABLE)

    clock = pygame.time.Clock()

    app = App(surface=surface)
    preferences = PreferencesStore(PreferencesStore.default_path())
    app.push(TimepieceScreen(app, clock=RealClock(), preferences=preferences))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(target_fps)
    finally:
        pygame.quit()

    return 0
