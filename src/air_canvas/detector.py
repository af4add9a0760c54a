"""Hand landmark source backed by MediaPipe Hands."""

import numpy as np

try:
    import mediapipe as mp
except ImportError:
    mp = None

from air_canvas.landmarks import NO_HAND, Frame


class HandDetector:
    """Produces one Frame per camera image.

    Only the first detected hand is used. Landmarks are (x, y) normalized
    to [0, 1] relative to the image dimensions.
    """

    def __init__(
        self,
        max_hands: int = 1,
        min_detection_confidence: float = 0.7,
        min_tracking_confidence: float = 0.7,
        model_complexity: int = 1,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install mediapipe"
            )

        self.max_hands = max_hands
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            max_num_hands=max_hands,
            model_complexity=model_complexity,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    @classmethod
    def from_config(cls, config) -> "HandDetector":
        return cls(
            max_hands=config.max_hands,
            min_detection_confidence=config.min_detection_confidence,
            min_tracking_confidence=config.min_tracking_confidence,
        )

    def detect(self, frame_rgb: np.ndarray) -> Frame:
        """Detect a hand in an RGB image (H, W, 3), uint8.

        Returns:
            A Hand frame for the first detected hand, or NO_HAND.
        """
        results = self._hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return NO_HAND

        hand_landmarks = results.multi_hand_landmarks[0]
        return Frame.hand([[lm.x, lm.y] for lm in hand_landmarks.landmark])

    def close(self):
        """Release MediaPipe resources."""
        self._hands.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
