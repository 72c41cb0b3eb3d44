"""
Orbiting camera that eases towards the gesture zoom target.

Distance follows the target with first-order exponential smoothing; the
orbit position is derived from the smoothed distance, never from the raw
target, so zoom and orbit move together.
"""

import math
from typing import Tuple

from nebula.core.types import DEFAULT_CAMERA_Z

ORBIT_HEIGHT = 35.0
ORBIT_LIFT = 5.0
VERTICAL_RATIO = 0.75


class CameraRig:
    """Camera position driven by time and a zoom target; looks at the origin."""

    def __init__(self, follow_rate: float = 0.05, orbit_speed: float = 0.08,
                 distance: float = DEFAULT_CAMERA_Z):
        self.follow_rate = follow_rate
        self.orbit_speed = orbit_speed
        self._distance = distance
        self._position = (0.0, 0.0, distance)

    def update(self, target_distance: float, time: float) -> Tuple[float, float, float]:
        """Step towards ``target_distance`` and return the new (x, y, z)."""
        self._distance += (target_distance - self._distance) * self.follow_rate
        angle_x = time * self.orbit_speed
        angle_y = time * self.orbit_speed * VERTICAL_RATIO
        self._position = (
            math.cos(angle_x) * self._distance,
            math.sin(angle_y) * ORBIT_HEIGHT + ORBIT_LIFT,
            self._distance,
        )
        return self._position

    @property
    def distance(self) -> float:
        return self._distance

    @property
    def position(self) -> Tuple[float, float, float]:
        return self._position
