"""Per-frame orchestration: classify, smooth, track strokes, detect captures.

`FrameProcessor.process_frame` is a synchronous call that returns a
`FrameEffects` description instead of touching any renderer. The
`EffectExecutor` (or a remote client) carries the effects out.

Usage:
    processor = FrameProcessor(width=1280, height=720)
    effects = processor.process_frame(Frame.hand(landmarks), now_ms)
    executor.apply(effects)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from air_canvas.canvas import Brush, DrawCommand
from air_canvas.classifier import GestureClassifier
from air_canvas.gestures import Gesture, HandGeometry
from air_canvas.landmarks import INDEX_TIP, Frame, Point, mirror_landmarks
from air_canvas.smoothing import DEFAULT_ALPHA, EmaSmoother
from air_canvas.stroke import (
    DEFAULT_DEBOUNCE_FRAMES,
    DEFAULT_MIN_STROKE_MS,
    FistTrigger,
    StrokeMachine,
    StrokeOutcome,
    StrokeState,
)

logger = logging.getLogger("air_canvas.processor")


class StatusKind(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class Status:
    text: str
    kind: StatusKind


TRACKING = Status("Tracking Active", StatusKind.ACTIVE)
SEARCHING = Status("Searching for hand...", StatusKind.INACTIVE)


@dataclass
class FrameEffects:
    """Side effects requested by one processed frame."""
    timestamp: float
    frame_rate: Optional[int]
    gesture: Gesture
    status: Status
    stroke_state: StrokeState
    commands: list[DrawCommand] = field(default_factory=list)
    overlay: Optional[np.ndarray] = None  # mirrored landmarks for the skeleton
    cursor: Optional[Point] = None
    geometry: Optional[HandGeometry] = None
    stroke_outcome: Optional[StrokeOutcome] = None
    save_snapshot: bool = False
    trigger_capture: bool = False

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "frame_rate": self.frame_rate,
            "gesture": self.gesture.value,
            "status": {"text": self.status.text, "kind": self.status.kind.value},
            "stroke_state": self.stroke_state.value,
            "commands": [cmd.to_dict() for cmd in self.commands],
            "overlay": self.overlay[:, :2].round(4).tolist() if self.overlay is not None else None,
            "cursor": [round(self.cursor.x, 1), round(self.cursor.y, 1)] if self.cursor else None,
            "geometry": self.geometry.to_dict() if self.geometry else None,
            "stroke_outcome": self.stroke_outcome.value if self.stroke_outcome else None,
            "save_snapshot": self.save_snapshot,
            "trigger_capture": self.trigger_capture,
        }


class FrameProcessor:
    """Owns all per-session state and turns frames into effects.

    One instance per tracking session. Frames must be fed one at a time,
    in arrival order.
    """

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        brush: Optional[Brush] = None,
        smoothing_alpha: float = DEFAULT_ALPHA,
        debounce_frames: int = DEFAULT_DEBOUNCE_FRAMES,
        min_stroke_ms: float = DEFAULT_MIN_STROKE_MS,
        mirror: bool = True,
        classifier: Optional[GestureClassifier] = None,
    ):
        self.width = width
        self.height = height
        self.mirror = mirror
        self.brush = brush or Brush()
        self.classifier = classifier or GestureClassifier()

        self._alpha = smoothing_alpha
        self._debounce_frames = debounce_frames
        self._min_stroke_ms = min_stroke_ms

        self.smoother = EmaSmoother(alpha=smoothing_alpha)
        self.strokes = StrokeMachine(
            self.smoother,
            debounce_frames=debounce_frames,
            min_stroke_ms=min_stroke_ms,
        )
        self.fist = FistTrigger()

        self._last_time: Optional[float] = None
        self._frame_rate: Optional[int] = None
        self._gesture = Gesture.NONE
        self._frames = 0

    @classmethod
    def from_config(cls, config) -> FrameProcessor:
        return cls(
            width=config.canvas_width,
            height=config.canvas_height,
            brush=Brush(config.brush_color, config.brush_width),
            smoothing_alpha=config.smoothing_alpha,
            debounce_frames=config.debounce_frames,
            min_stroke_ms=config.min_stroke_ms,
            mirror=config.mirror,
        )

    def process_frame(self, frame: Frame, now: float) -> FrameEffects:
        """Process one frame.

        Args:
            frame: Hand or NoHand observation (landmarks already validated).
            now: Arrival time in milliseconds from a monotonic clock.
        """
        self._frames += 1
        frame_rate = self._update_frame_rate(now)

        if not frame.has_hand:
            return self._process_no_hand(now, frame_rate)

        landmarks = frame.landmarks
        result = self.classifier.classify_detailed(landmarks)
        gesture = result.gesture
        self._gesture = gesture

        overlay = mirror_landmarks(landmarks) if self.mirror else np.array(landmarks, copy=True)

        tip = landmarks[INDEX_TIP]
        x = 1.0 - float(tip[0]) if self.mirror else float(tip[0])
        raw = Point(x * self.width, float(tip[1]) * self.height)

        self.smoother.update(raw)
        step = self.strokes.step(gesture, raw, now)
        capture = self.fist.update(gesture)
        if capture:
            logger.info("Fist detected, requesting capture")

        brush = self.brush
        commands = [DrawCommand.line(a, b, brush, timestamp=now) for a, b in step.segments]

        return FrameEffects(
            timestamp=now,
            frame_rate=frame_rate,
            gesture=gesture,
            status=TRACKING,
            stroke_state=self.strokes.state,
            commands=commands,
            overlay=overlay,
            cursor=self.smoother.value,
            geometry=result.geometry,
            stroke_outcome=step.outcome,
            save_snapshot=step.outcome == StrokeOutcome.COMMITTED,
            trigger_capture=capture,
        )

    def _process_no_hand(self, now: float, frame_rate: Optional[int]) -> FrameEffects:
        # Fist latch untouched: fist, no hand, fist fires once
        outcome = self.strokes.hand_lost(now)
        self._gesture = Gesture.NONE
        return FrameEffects(
            timestamp=now,
            frame_rate=frame_rate,
            gesture=Gesture.NONE,
            status=SEARCHING,
            stroke_state=self.strokes.state,
            stroke_outcome=outcome,
            save_snapshot=outcome == StrokeOutcome.COMMITTED,
        )

    def _update_frame_rate(self, now: float) -> Optional[int]:
        last, self._last_time = self._last_time, now
        if last is None or now <= last:
            return None
        # Half up, not Python's half-to-even
        self._frame_rate = math.floor(1000.0 / (now - last) + 0.5)
        return self._frame_rate

    def set_brush(self, color: Optional[str] = None, width: Optional[int] = None) -> Brush:
        """Change brush color and/or width, effective from the next frame."""
        self.brush = Brush(
            color=color if color is not None else self.brush.color,
            width=width if width is not None else self.brush.width,
        )
        return self.brush

    def resize(self, width: int, height: int):
        self.width = width
        self.height = height

    def reset(self):
        """Return to the initial state, dropping any open stroke."""
        self.smoother = EmaSmoother(alpha=self._alpha)
        self.strokes = StrokeMachine(
            self.smoother,
            debounce_frames=self._debounce_frames,
            min_stroke_ms=self._min_stroke_ms,
        )
        self.fist.reset()
        self._last_time = None
        self._frame_rate = None
        self._gesture = Gesture.NONE
        self._frames = 0

    @property
    def gesture(self) -> Gesture:
        return self._gesture

    @property
    def frame_rate(self) -> Optional[int]:
        return self._frame_rate

    @property
    def frame_count(self) -> int:
        return self._frames
