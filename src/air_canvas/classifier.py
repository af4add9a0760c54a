"""Rule-based gesture classification from a single landmark frame."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from air_canvas.gestures import (
    Gesture,
    HandGeometry,
    extended_count,
    is_extended,
    is_folded,
    measure_geometry,
    tips_below_knuckles,
)
from air_canvas.landmarks import (
    INDEX_PIP, INDEX_TIP,
    MIDDLE_PIP, MIDDLE_TIP,
    PINKY_PIP, PINKY_TIP,
    RING_PIP, RING_TIP,
)


@dataclass(frozen=True)
class Classification:
    """A gesture label plus the geometry measured while producing it."""
    gesture: Gesture
    geometry: Optional[HandGeometry] = None


def is_pointing(landmarks: np.ndarray) -> bool:
    """Index finger up, middle, ring and pinky folded. Thumb is ignored."""
    return (
        is_extended(landmarks, INDEX_TIP, INDEX_PIP)
        and is_folded(landmarks, MIDDLE_TIP, MIDDLE_PIP)
        and is_folded(landmarks, RING_TIP, RING_PIP)
        and is_folded(landmarks, PINKY_TIP, PINKY_PIP)
    )


def classify(landmarks: Optional[np.ndarray]) -> Gesture:
    """Map one validated landmark frame to a gesture.

    Rules are checked in priority order and the first match wins:
    pointing, fist, open palm, otherwise unknown.
    """
    if landmarks is None:
        return Gesture.NONE

    if is_pointing(landmarks):
        return Gesture.POINTING

    extended = extended_count(landmarks)

    if tips_below_knuckles(landmarks) and extended == 0:
        return Gesture.FIST

    if extended == 4:
        return Gesture.OPEN_PALM

    return Gesture.UNKNOWN


class GestureClassifier:
    """Classifies hand gestures from 21 validated landmarks.

    The classifier is stateless; the same landmarks always produce the
    same label. Input must already have passed `parse_landmarks`.
    """

    def classify(self, landmarks: Optional[np.ndarray]) -> Gesture:
        return classify(landmarks)

    def classify_detailed(self, landmarks: Optional[np.ndarray]) -> Classification:
        """Classify and also report the hand geometry.

        The geometry (pinch distance, hand scale) is informational only and
        never changes the label.
        """
        if landmarks is None:
            return Classification(gesture=Gesture.NONE)
        return Classification(
            gesture=classify(landmarks),
            geometry=measure_geometry(landmarks),
        )
