"""Hand landmark frames and boundary validation.

Landmarks follow the MediaPipe Hands convention: 21 points per hand,
normalized to [0, 1] in image space, with y growing downward.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np

WRIST = 0
THUMB_TIP = 4
INDEX_MCP, INDEX_PIP, INDEX_TIP = 5, 6, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_TIP = 9, 10, 12
RING_MCP, RING_PIP, RING_TIP = 13, 14, 16
PINKY_MCP, PINKY_PIP, PINKY_TIP = 17, 18, 20

NUM_LANDMARKS = 21

# Skeleton topology for the overlay (same edges MediaPipe draws)
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (5, 9), (9, 10), (10, 11), (11, 12),
    (9, 13), (13, 14), (14, 15), (15, 16),
    (13, 17), (0, 17), (17, 18), (18, 19), (19, 20),
]


class MalformedLandmarksError(ValueError):
    """Raised when a landmark set does not have the expected shape."""


class Point(NamedTuple):
    """A 2-D point in canvas pixel space."""
    x: float
    y: float


def parse_landmarks(data) -> np.ndarray:
    """Validate raw landmark data and convert it to a float array.

    Args:
        data: Nested sequence or array with 21 rows of (x, y) or (x, y, z).

    Returns:
        Array of shape (21, 2) or (21, 3), dtype float32.

    Raises:
        MalformedLandmarksError: wrong count, wrong row width, or
            non-numeric / non-finite values.
    """
    try:
        arr = np.asarray(data, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise MalformedLandmarksError(f"landmarks are not numeric: {e}") from e

    if arr.ndim != 2 or arr.shape[0] != NUM_LANDMARKS or arr.shape[1] not in (2, 3):
        raise MalformedLandmarksError(
            f"expected {NUM_LANDMARKS} landmarks of 2 or 3 values, got shape {arr.shape}"
        )
    if not np.all(np.isfinite(arr)):
        raise MalformedLandmarksError("landmarks contain NaN or infinite values")

    return arr


def mirror_landmarks(landmarks: np.ndarray) -> np.ndarray:
    """Return a copy with x flipped around the vertical center line."""
    mirrored = np.array(landmarks, dtype=np.float32, copy=True)
    mirrored[:, 0] = 1.0 - mirrored[:, 0]
    return mirrored


@dataclass(frozen=True)
class Frame:
    """One observation from the pose estimator.

    `landmarks` is None when no hand was found in the camera frame.
    """
    landmarks: Optional[np.ndarray] = None

    @classmethod
    def hand(cls, data) -> Frame:
        """Build a Hand frame, validating the landmarks at the boundary."""
        return cls(landmarks=parse_landmarks(data))

    @property
    def has_hand(self) -> bool:
        return self.landmarks is not None


NO_HAND = Frame()
