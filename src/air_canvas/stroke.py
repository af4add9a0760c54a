"""Stroke state machine and fist-triggered capture latch.

Turns the noisy per-frame "is the user pointing" signal into clean stroke
sessions:

- Pointing after idle opens a session (first point only, nothing drawn).
- Pointing while a session is open draws a segment and refills the
  debounce buffer.
- A non-pointing frame while the buffer is non-empty still draws a
  bridging segment, so a single misclassified frame does not break the line.
- Once the buffer is exhausted the session ends. Sessions shorter than
  `min_stroke_ms` are discarded as taps, longer ones are committed.
- Losing the hand commits an open session unconditionally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from air_canvas.gestures import Gesture
from air_canvas.landmarks import Point
from air_canvas.smoothing import EmaSmoother

logger = logging.getLogger("air_canvas.stroke")

DEFAULT_DEBOUNCE_FRAMES = 5
DEFAULT_MIN_STROKE_MS = 200.0


class StrokeState(Enum):
    IDLE = "idle"
    DRAWING = "drawing"
    HOLDING = "holding"  # inside the debounce window after pointing stopped


class StrokeOutcome(Enum):
    COMMITTED = "committed"
    DISCARDED = "discarded"


@dataclass
class StrokeSession:
    """One continuous pointer-down drawing gesture."""
    started_at: float
    last_point: Point
    segments: int = 0


@dataclass
class StrokeStep:
    """What the state machine decided for one frame."""
    segments: list[tuple[Point, Point]] = field(default_factory=list)
    outcome: Optional[StrokeOutcome] = None
    started: bool = False


class StrokeMachine:
    """Debounced stroke tracking over classified frames.

    The machine shares the cursor smoother with the frame processor: the
    processor blends the raw point in first, then `step` reads the smoothed
    value and reseeds it when a stroke starts or while idle.
    """

    def __init__(
        self,
        smoother: EmaSmoother,
        debounce_frames: int = DEFAULT_DEBOUNCE_FRAMES,
        min_stroke_ms: float = DEFAULT_MIN_STROKE_MS,
    ):
        if debounce_frames < 0:
            raise ValueError(f"debounce_frames must be >= 0, got {debounce_frames}")
        self.smoother = smoother
        self.debounce_frames = debounce_frames
        self.min_stroke_ms = min_stroke_ms

        self._state = StrokeState.IDLE
        self._buffer = 0
        self._session: Optional[StrokeSession] = None

    def step(self, gesture: Gesture, raw: Point, now: float) -> StrokeStep:
        """Advance one frame. Call after the smoother has seen `raw`."""
        result = StrokeStep()

        if gesture == Gesture.POINTING:
            self._buffer = self.debounce_frames
            if self._session is None:
                start = self.smoother.reseed(raw)
                self._session = StrokeSession(started_at=now, last_point=start)
                self._state = StrokeState.DRAWING
                result.started = True
                logger.debug("Stroke started at %.1f ms", now)
            else:
                self._extend(result)
                self._state = StrokeState.DRAWING
            return result

        if self._session is None:
            self.smoother.reseed(raw)
            return result

        if self._buffer > 0:
            self._buffer -= 1
            self._extend(result)
            self._state = StrokeState.HOLDING
            return result

        result.outcome = self._end(now)
        return result

    def hand_lost(self, now: float) -> Optional[StrokeOutcome]:
        """Close an open session because the hand left the frame.

        The stroke is always committed, regardless of its duration.
        """
        self._buffer = 0
        if self._session is None:
            return None

        logger.info(
            "Hand lost, committing stroke (%d segments, %.0f ms)",
            self._session.segments, now - self._session.started_at,
        )
        self._session = None
        self._state = StrokeState.IDLE
        return StrokeOutcome.COMMITTED

    def reset(self):
        """Drop any open session without committing it."""
        self._session = None
        self._buffer = 0
        self._state = StrokeState.IDLE

    def _extend(self, result: StrokeStep):
        point = self.smoother.value
        result.segments.append((self._session.last_point, point))
        self._session.last_point = point
        self._session.segments += 1

    def _end(self, now: float) -> StrokeOutcome:
        elapsed = now - self._session.started_at
        segments = self._session.segments
        self._session = None
        self._state = StrokeState.IDLE

        if elapsed < self.min_stroke_ms:
            logger.debug("Stroke discarded (%.0f ms < %.0f ms)", elapsed, self.min_stroke_ms)
            return StrokeOutcome.DISCARDED

        logger.info("Stroke committed (%d segments, %.0f ms)", segments, elapsed)
        return StrokeOutcome.COMMITTED

    @property
    def state(self) -> StrokeState:
        return self._state

    @property
    def buffer(self) -> int:
        return self._buffer

    @property
    def session(self) -> Optional[StrokeSession]:
        return self._session

    @property
    def is_drawing(self) -> bool:
        return self._session is not None


class FistTrigger:
    """Rising-edge detector: fires once per continuous run of fist frames."""

    def __init__(self):
        self._was_fist = False

    def update(self, gesture: Gesture) -> bool:
        is_fist = gesture == Gesture.FIST
        fired = is_fist and not self._was_fist
        self._was_fist = is_fist
        return fired

    def reset(self):
        self._was_fist = False

    @property
    def held(self) -> bool:
        return self._was_fist
