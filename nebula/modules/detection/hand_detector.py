"""
MediaPipe Hands wrapper returning one hand's landmarks as a numpy array.
"""

import logging
from typing import Optional

import cv2
import numpy as np
import mediapipe as mp

logger = logging.getLogger(__name__)


class HandDetector:
    """Single-hand MediaPipe detector for the perception loop."""

    def __init__(self, config: dict):
        self._model_complexity = config.get("model_complexity", 1)
        self._min_detect_conf = config.get("min_detection_confidence", 0.6)
        self._min_track_conf = config.get("min_tracking_confidence", 0.6)
        self._hands = None

    def initialize(self):
        """Create the MediaPipe Hands solution."""
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=False,
            model_complexity=self._model_complexity,
            max_num_hands=1,
            min_detection_confidence=self._min_detect_conf,
            min_tracking_confidence=self._min_track_conf,
        )
        logger.info(
            "MediaPipe Hands initialized (complexity=%d, detect_conf=%.2f, track_conf=%.2f)",
            self._model_complexity, self._min_detect_conf, self._min_track_conf,
        )

    def detect(self, bgr_frame: np.ndarray) -> Optional[np.ndarray]:
        """Detect the first hand in a BGR frame.

        Returns:
            np.ndarray of shape (21, 3) with normalized coordinates, or None
        """
        if self._hands is None:
            self.initialize()

        rgb = cv2.cvtColor(bgr_frame, cv2.COLOR_BGR2RGB)
        rgb.flags.writeable = False
        results = self._hands.process(rgb)

        if not results or not results.multi_hand_landmarks:
            return None
        hand = results.multi_hand_landmarks[0]
        return np.array([[lm.x, lm.y, lm.z] for lm in hand.landmark], dtype=np.float32)

    def close(self):
        """Release MediaPipe resources."""
        if self._hands is not None:
            self._hands.close()
            self._hands = None
            logger.info("MediaPipe Hands closed")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, *args):
        self.close()
