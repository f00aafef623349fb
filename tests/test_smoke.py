"""Smoke tests for the pygame UI.

These tests verify that the application's main loop can initialise and
execute a handful of frames without crashing when the SDL dummy video
driver is used. They do not check rendering correctness.
"""

from __future__ import annotations

import json
import os

import pytest

# Use the dummy drivers before importing pygame or the application
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")


def test_app_runs_headless(monkeypatch, tmp_path) -> None:
    """Ensure the application can start and run a few frames headlessly."""
    monkeypatch.setenv("TIMEPIECE_PREFERENCES_PATH", str(tmp_path / "prefs.json"))
    # Import inside the test so that environment variables take effect
    from timepiece.app import run

    exit_code = run(max_frames=3)
    assert exit_code == 0


def test_app_switches_mode_and_theme_from_keys(monkeypatch, tmp_path) -> None:
    prefs_path = tmp_path / "prefs.json"
    monkeypatch.setenv("TIMEPIECE_PREFERENCES_PATH", str(prefs_path))

    import pygame

    from timepiece.app import run

    def inject(frame: int) -> None:
        if frame == 1:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_F2, "unicode": ""}))
        elif frame == 2:
            pygame.event.post(pygame.event.Event(pygame.KEYDOWN, {"key": pygame.K_t, "unicode": "t"}))

    # Frames are paced at TARGET_FPS, so 60 frames outlast the 500 ms morph.
    assert run(max_frames=60, event_injector=inject) == 0

    payload = json.loads(prefs_path.read_text(encoding="utf-8"))
    assert payload["preferences"]["theme"] == "nocturnal"
    assert payload["preferences"]["mode"] == "stopwatch"


def test_run_rejects_non_positive_fps(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("TIMEPIECE_PREFERENCES_PATH", str(tmp_path / "prefs.json"))
    from timepiece.app import run

    with pytest.raises(ValueError):
        run(max_frames=1, target_fps=0)
