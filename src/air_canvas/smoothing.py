"""Exponential moving average over the cursor point stream."""

from __future__ import annotations

from air_canvas.landmarks import Point

DEFAULT_ALPHA = 0.45


def ema(raw: Point, previous: Point, alpha: float) -> Point:
    """Blend a new sample into the previous smoothed value, per axis."""
    return Point(
        alpha * raw.x + (1.0 - alpha) * previous.x,
        alpha * raw.y + (1.0 - alpha) * previous.y,
    )


class EmaSmoother:
    """Keeps the smoothed cursor position across frames.

    A higher alpha follows new samples more closely (less lag, more
    jitter). `reseed` jumps straight to a raw point so a new stroke does
    not snap in from a stale position.
    """

    def __init__(self, alpha: float = DEFAULT_ALPHA, initial: Point = Point(0.0, 0.0)):
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"alpha must be in (0, 1], got {alpha}")
        self.alpha = alpha
        self._value = Point(float(initial[0]), float(initial[1]))

    def update(self, raw: Point) -> Point:
        self._value = ema(Point(*raw), self._value, self.alpha)
        return self._value

    def reseed(self, raw: Point) -> Point:
        self._value = Point(float(raw[0]), float(raw[1]))
        return self._value

    @property
    def value(self) -> Point:
        return self._value
