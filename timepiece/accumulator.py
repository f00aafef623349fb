from __future__ import annotations

from enum import StrEnum


class Direction(StrEnum):
    UP = "up"
    DOWN = "down"


class TickAccumulator:
    """Elapsed (UP) or remaining (DOWN) duration in whole milliseconds.

    Pure state: the value only changes through :meth:`advance` and
    :meth:`reset`. A DOWN accumulator never drops below zero.
    """

    def __init__(self, *, direction: Direction, seed_ms: int = 0) -> None:
        self._direction = Direction(direction)
        self._value_ms = max(0, int(seed_ms))

    @property
    def direction(self) -> Direction:
        return self._direction

    @property
    def value(self) -> int:
        return self._value_ms

    def advance(self, delta_ms: int) -> int:
        if delta_ms < 0:
            raise ValueError("delta_ms must be >= 0")
        if self._direction is Direction.UP:
            self._value_ms += int(delta_ms)
        else:
            self._value_ms = max(0, self._value_ms - int(delta_ms))
        return self._value_ms

    def reset(self, seed_ms: int = 0) -> None:
        self._value_ms = max(0, int(seed_ms))

    def is_exhausted(self) -> bool:
        return self._direction is Direction.DOWN and self._value_ms == 0
