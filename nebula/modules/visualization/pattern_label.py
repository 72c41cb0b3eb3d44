"""
On-screen pattern name shown after every pattern change.
"""

import time

import cv2
import numpy as np


class PatternLabel:
    """Fading pattern-name overlay driven by PATTERN_CHANGED events."""

    def __init__(self, config: dict = None, clock=time.monotonic):
        config = config or {}
        self._visible_duration = config.get("label_duration_sec", 2.5)
        self._fade_duration = config.get("label_fade_sec", 0.5)
        self._color = tuple(config.get("label_color", [255, 255, 255]))
        self._clock = clock

        self._text = None
        self._shown_at = 0.0

    def on_pattern_changed(self, name: str = "", **kwargs):
        """EventBus handler for PATTERN_CHANGED."""
        self.show(name)

    def show(self, text: str):
        self._text = text
        self._shown_at = self._clock()

    def opacity(self) -> float:
        """Current label opacity in [0, 1]; 0 once the label has expired."""
        if self._text is None:
            return 0.0
        elapsed = self._clock() - self._shown_at
        if elapsed > self._visible_duration:
            self._text = None
            return 0.0

        fade_start = self._visible_duration - self._fade_duration
        if elapsed > fade_start and self._fade_duration > 0:
            return max(0.0, 1.0 - (elapsed - fade_start) / self._fade_duration)
        return 1.0

    def render(self, frame: np.ndarray) -> np.ndarray:
        """Draw the label centered near the bottom of ``frame``."""
        opacity = self.opacity()
        if opacity <= 0.0:
            return frame

        h, w = frame.shape[:2]
        scale, thickness = 1.1, 2
        text_size = cv2.getTextSize(self._text, cv2.FONT_HERSHEY_SIMPLEX, scale, thickness)[0]
        x = (w - text_size[0]) // 2
        y = h - 60

        overlay = frame.copy()
        cv2.putText(overlay, self._text, (x, y), cv2.FONT_HERSHEY_SIMPLEX,
                    scale, self._color, thickness)
        cv2.addWeighted(overlay, opacity, frame, 1 - opacity, 0, frame)
        return frame

    @property
    def text(self):
        return self._text

    @property
    def is_active(self) -> bool:
        return self.opacity() > 0.0
