"""
Animation clock and ambient particle motion.

The clock accumulates scene time. While no transition runs, every particle
drifts along a smooth periodic path of (time, index); the step is scaled by
dt so the drift looks the same at any frame rate.
"""

import math
import logging

import numpy as np

logger = logging.getLogger(__name__)

JITTER_SCALE = 5.0


class AnimationClock:
    """Scene time accumulator plus the ambient jitter applied between transitions."""

    def __init__(self):
        self._time = 0.0
        self._index = np.zeros(0, dtype=np.float64)

    @property
    def time(self) -> float:
        return self._time

    def advance(self, dt: float) -> float:
        """Add ``dt`` seconds (negative or non-finite counts as 0). Returns the dt applied."""
        dt = float(dt)
        if not math.isfinite(dt):
            logger.warning("Non-finite frame dt %r ignored", dt)
            return 0.0
        dt = max(0.0, dt)
        self._time += dt
        return dt

    def apply_jitter(self, positions: np.ndarray, dt: float, intensity: float):
        """Nudge x and y of every particle in an (N, 3) view, in place."""
        count = positions.shape[0]
        if count == 0 or dt <= 0.0 or intensity <= 0.0:
            return
        if self._index.shape[0] != count:
            self._index = np.arange(count, dtype=np.float64)

        step = intensity * dt * JITTER_SCALE
        positions[:, 0] += (np.sin(self._time * 0.5 + self._index * 0.01) * step).astype(np.float32)
        positions[:, 1] += (np.cos(self._time * 0.3 + self._index * 0.02) * step).astype(np.float32)
