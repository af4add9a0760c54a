"""Gesture labels and the hand geometry they are derived from."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np

from air_canvas.landmarks import (
    INDEX_MCP, INDEX_PIP, INDEX_TIP,
    MIDDLE_MCP, MIDDLE_PIP, MIDDLE_TIP,
    PINKY_MCP, PINKY_PIP, PINKY_TIP,
    RING_MCP, RING_PIP, RING_TIP,
    THUMB_TIP, WRIST,
)


class Gesture(Enum):
    """Discrete hand gestures. The value doubles as the display label."""
    NONE = "None"
    POINTING = "Pointing"
    FIST = "Fist"
    OPEN_PALM = "Open Palm"
    UNKNOWN = "Unknown"


# Index, middle, ring, pinky (the thumb is not used by any rule)
FINGER_TIPS = [INDEX_TIP, MIDDLE_TIP, RING_TIP, PINKY_TIP]
FINGER_PIPS = [INDEX_PIP, MIDDLE_PIP, RING_PIP, PINKY_PIP]
FINGER_MCPS = [INDEX_MCP, MIDDLE_MCP, RING_MCP, PINKY_MCP]


@dataclass(frozen=True)
class HandGeometry:
    """Scale-related measurements of a hand, in normalized image units.

    These are computed for every classified frame but no gesture rule
    depends on them.
    """
    thumb_index_distance: float
    hand_scale: float

    @property
    def pinch_ratio(self) -> float:
        if self.hand_scale <= 0:
            return 0.0
        return self.thumb_index_distance / self.hand_scale

    def to_dict(self) -> dict:
        return {
            "thumb_index_distance": round(self.thumb_index_distance, 4),
            "hand_scale": round(self.hand_scale, 4),
        }


def _distance_2d(a: np.ndarray, b: np.ndarray) -> float:
    return math.hypot(float(a[0] - b[0]), float(a[1] - b[1]))


def measure_geometry(landmarks: np.ndarray) -> HandGeometry:
    """Thumb-to-index tip distance and wrist-to-index-MCP hand scale."""
    return HandGeometry(
        thumb_index_distance=_distance_2d(landmarks[THUMB_TIP], landmarks[INDEX_TIP]),
        hand_scale=_distance_2d(landmarks[WRIST], landmarks[INDEX_MCP]),
    )


def is_extended(landmarks: np.ndarray, tip: int, pip: int) -> bool:
    """A finger is extended when its tip is above (smaller y) its PIP joint."""
    return bool(landmarks[tip][1] < landmarks[pip][1])


def is_folded(landmarks: np.ndarray, tip: int, pip: int) -> bool:
    return bool(landmarks[tip][1] > landmarks[pip][1])


def extended_count(landmarks: np.ndarray) -> int:
    return sum(
        is_extended(landmarks, tip, pip)
        for tip, pip in zip(FINGER_TIPS, FINGER_PIPS)
    )


def tips_below_knuckles(landmarks: np.ndarray) -> bool:
    """True when no fingertip is raised above its MCP joint."""
    return all(
        landmarks[tip][1] >= landmarks[mcp][1]
        for tip, mcp in zip(FINGER_TIPS, FINGER_MCPS)
    )
