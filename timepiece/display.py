"""Presentation math for the timepiece shell.

Everything here is pure: the pygame layer feeds millisecond values and
time-of-day tuples in and gets strings, angles and seeds back. The core
state machine never formats anything itself.
"""

from __future__ import annotations

from dataclasses import dataclass

HOURS_MAX = 99
MINUTES_MAX = 59
SECONDS_MAX = 59


@dataclass(frozen=True, slots=True)
class DurationParts:
    hours: int
    minutes: int
    seconds: int
    centis: int  # hundredths of a second


@dataclass(frozen=True, slots=True)
class HandAngles:
    """Clockwise rotation in degrees from twelve o'clock."""

    hour: float
    minute: float
    second: float


def split_duration(value_ms: int) -> DurationParts:
    ms = max(0, int(value_ms))
    return DurationParts(
        hours=ms // 3_600_000,
        minutes=(ms // 60_000) % 60,
        seconds=(ms // 1000) % 60,
        centis=(ms % 1000) // 10,
    )


def format_duration(value_ms: int, *, with_fraction: bool) -> str:
    """Render ``HH:MM:SS`` (plus ``.cc`` when ``with_fraction``)."""

    p = split_duration(value_ms)
    text = f"{p.hours:02d}:{p.minutes:02d}:{p.seconds:02d}"
    if with_fraction:
        text += f".{p.centis:02d}"
    return text


def format_wall_time(hours: int, minutes: int, seconds: int) -> str:
    return f"{int(hours):02d}:{int(minutes):02d}:{int(seconds):02d}"


def hand_angles_for_time(hours: int, minutes: int, seconds: int) -> HandAngles:
    hour_s = (hours % 12) * 3600 + minutes * 60 + seconds
    minute_s = minutes * 60 + seconds
    return HandAngles(
        hour=(hour_s / 43200.0) * 360.0,
        minute=(minute_s / 3600.0) * 360.0,
        second=(seconds / 60.0) * 360.0,
    )


def hand_angles_for_duration(value_ms: int) -> HandAngles:
    # Whole seconds only; the second hand steps rather than sweeps.
    p = split_duration(value_ms)
    return HandAngles(
        hour=((p.hours % 12) / 12.0) * 360.0 + (p.minutes / 60.0) * 30.0,
        minute=(p.minutes / 60.0) * 360.0 + (p.seconds / 60.0) * 6.0,
        second=(p.seconds / 60.0) * 360.0,
    )


def parse_field(raw: str) -> int:
    """Parse a typed countdown field. Blank or garbage reads as 0."""

    raw = raw.strip()
    if raw == "":
        return 0
    try:
        return int(raw)
    except ValueError:
        return 0


@dataclass(frozen=True, slots=True)
class CountdownFields:
    """Hours/minutes/seconds as typed by the user (unvalidated)."""

    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @classmethod
    def from_text(cls, hours: str, minutes: str, seconds: str) -> "CountdownFields":
        return cls(parse_field(hours), parse_field(minutes), parse_field(seconds))

    def clamped(self) -> "CountdownFields":
        return CountdownFields(
            hours=_clamp_int(self.hours, 0, HOURS_MAX),
            minutes=_clamp_int(self.minutes, 0, MINUTES_MAX),
            seconds=_clamp_int(self.seconds, 0, SECONDS_MAX),
        )

    def seed_ms(self) -> int:
        c = self.clamped()
        return (c.hours * 3600 + c.minutes * 60 + c.seconds) * 1000


def _clamp_int(value: int, lo: int, hi: int) -> int:
    if value <= lo:
        return lo
    if value >= hi:
        return hi
    return int(value)
