"""Landmark session recording and replay.

A recording is the exact input the frame processor saw: one entry per
frame with its arrival time in milliseconds and either 21 (x, y) points or
null for a frame without a hand. Replaying it through a fresh processor
reproduces the strokes, snapshots and captures of the live session.

File layout (JSON):

    {"version": 1, "frame_count": 2, "duration_ms": 33.0,
     "frames": [{"timestamp": 0.0, "landmarks": [[x, y], ...]},
                {"timestamp": 33.0, "landmarks": null}]}
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from air_canvas.landmarks import NO_HAND, Frame

logger = logging.getLogger("air_canvas.recorder")

FORMAT_VERSION = 1

# Six decimals keep sub-pixel accuracy on a 4K canvas
_PRECISION = 6


def _clock_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class RecordedFrame:
    timestamp: float  # ms since the recording started
    landmarks: Optional[list[list[float]]] = None

    @classmethod
    def from_frame(cls, frame: Frame, timestamp: float) -> RecordedFrame:
        if not frame.has_hand:
            return cls(timestamp)
        points = np.asarray(frame.landmarks)[:, :2].round(_PRECISION)
        return cls(timestamp, points.tolist())

    def to_frame(self) -> Frame:
        """Rebuild the frame, re-running landmark validation."""
        if self.landmarks is None:
            return NO_HAND
        return Frame.hand(self.landmarks)

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "landmarks": self.landmarks}

    @classmethod
    def from_dict(cls, data: dict) -> RecordedFrame:
        return cls(float(data["timestamp"]), data.get("landmarks"))


def _duration(frames: list[RecordedFrame]) -> float:
    return frames[-1].timestamp if frames else 0.0


class FrameRecorder:
    """Collects frames between `start` and `stop`; frames outside are ignored."""

    def __init__(self):
        self._frames: list[RecordedFrame] = []
        self._origin: Optional[float] = None

    def start(self, now_ms: Optional[float] = None):
        self._frames = []
        self._origin = _clock_ms() if now_ms is None else now_ms
        logger.debug("Recording started")

    def stop(self) -> int:
        self._origin = None
        logger.debug("Recording stopped after %d frames", len(self._frames))
        return len(self._frames)

    def add_frame(self, frame: Frame, now_ms: Optional[float] = None):
        if self._origin is None:
            return
        now = _clock_ms() if now_ms is None else now_ms
        self._frames.append(RecordedFrame.from_frame(frame, now - self._origin))

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        return _duration(self._frames)

    def save(self, path: str | Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "version": FORMAT_VERSION,
            "frame_count": len(self._frames),
            "duration_ms": self.duration,
            "frames": [f.to_dict() for f in self._frames],
        }
        path.write_text(json.dumps(payload))
        logger.info("Saved %d frames to %s", len(self._frames), path)


class FramePlayer:
    """Feeds a saved recording back, as fast as possible or paced.

    Usage:
        player = FramePlayer.load("session.json")
        for recorded in player.play():
            processor.process_frame(recorded.to_frame(), recorded.timestamp)
    """

    def __init__(self, frames: list[RecordedFrame]):
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> FramePlayer:
        """Read a recording.

        Raises:
            ValueError: unsupported version or invalid JSON.
            KeyError: a frame entry without a timestamp.
        """
        data = json.loads(Path(path).read_text())
        if data.get("version") != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version: {data.get('version')!r}")
        return cls([RecordedFrame.from_dict(f) for f in data["frames"]])

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        return _duration(self._frames)

    def play(self) -> Iterator[RecordedFrame]:
        return iter(self._frames)

    def play_realtime(self, speed: float = 1.0) -> Iterator[RecordedFrame]:
        """Yield frames spaced by their recorded timestamps divided by `speed`."""
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        started = _clock_ms()
        for recorded in self._frames:
            wait = recorded.timestamp / speed - (_clock_ms() - started)
            if wait > 0:
                time.sleep(wait / 1000.0)
            yield recorded
