"""
Gesture Signal Mapper
=====================

Turns one frame of hand landmarks into control values:
    - a continuous camera zoom target, clamped to [min_z, max_z]
    - an edge-triggered "advance pattern" event, gated by a cooldown

Two heuristics exist for each output and one of each is chosen per
deployment through configuration:

    zoom_mode:    wrist_height | pinch
    advance_mode: pointing     | swipe

Landmarks use the MediaPipe hand order with normalized image coordinates
(y grows downwards). ``None`` means no hand in this frame.
"""

import math
import time
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from nebula.core.types import (
    ControlOutput, MIN_CAMERA_Z, MAX_CAMERA_Z, DEFAULT_CAMERA_Z,
)
from .debouncer import AdvanceDebouncer

logger = logging.getLogger(__name__)

# MediaPipe hand landmark indices read by the mapper
WRIST = 0
THUMB_TIP = 4
INDEX_PIP = 6
INDEX_TIP = 8
MIDDLE_TIP = 12
RING_TIP = 16
PINKY_TIP = 20
NUM_LANDMARKS = 21

ZOOM_MODES = ("wrist_height", "pinch")
ADVANCE_MODES = ("pointing", "swipe")

_BOUNDS = {
    "min_pinch": (0.0, 1.0),
    "max_pinch": (0.0, 1.0),
    "pip_margin": (0.0, 0.5),
    "finger_margin": (0.0, 0.5),
    "swipe_trigger": (0.01, 1.0),
    "swipe_reset": (-1.0, 0.0),
    "cooldown_sec": (0.0, 60.0),
}


def _clamp(name: str, value: float) -> float:
    low, high = _BOUNDS[name]
    clamped = min(high, max(low, value))
    if clamped != value:
        logger.warning("gesture.%s=%r out of range [%s, %s], clamped to %r",
                       name, value, low, high, clamped)
    return clamped


@dataclass
class GestureMapperConfig:
    """Gesture mapping configuration."""
    zoom_mode: str = "wrist_height"
    advance_mode: str = "pointing"

    min_z: float = MIN_CAMERA_Z
    max_z: float = MAX_CAMERA_Z

    # Pinch zoom: thumb-index distance range (normalized)
    min_pinch: float = 0.02
    max_pinch: float = 0.25

    # Pointing-up pose margins (normalized y)
    pip_margin: float = 0.05
    finger_margin: float = 0.03

    # Swipe: rightward wrist travel that fires, leftward step that resets
    swipe_trigger: float = 0.2
    swipe_reset: float = -0.02

    cooldown_sec: float = 2.0
    require_release: bool = True

    def __post_init__(self):
        if self.zoom_mode not in ZOOM_MODES:
            logger.warning("Unknown zoom_mode %r, using 'wrist_height'", self.zoom_mode)
            self.zoom_mode = "wrist_height"
        if self.advance_mode not in ADVANCE_MODES:
            logger.warning("Unknown advance_mode %r, using 'pointing'", self.advance_mode)
            self.advance_mode = "pointing"
        for name in _BOUNDS:
            setattr(self, name, float(_clamp(name, float(getattr(self, name)))))
        if self.max_z < self.min_z:
            logger.warning("gesture.min_z=%r > max_z=%r, swapped", self.min_z, self.max_z)
            self.min_z, self.max_z = self.max_z, self.min_z
        if self.max_pinch < self.min_pinch:
            logger.warning("gesture.min_pinch=%r > max_pinch=%r, swapped",
                           self.min_pinch, self.max_pinch)
            self.min_pinch, self.max_pinch = self.max_pinch, self.min_pinch

    @classmethod
    def from_dict(cls, config: dict) -> "GestureMapperConfig":
        """Create config from dictionary."""
        defaults = cls()
        return cls(
            zoom_mode=config.get("zoom_mode", defaults.zoom_mode),
            advance_mode=config.get("advance_mode", defaults.advance_mode),
            min_z=float(config.get("min_z", defaults.min_z)),
            max_z=float(config.get("max_z", defaults.max_z)),
            min_pinch=float(config.get("min_pinch", defaults.min_pinch)),
            max_pinch=float(config.get("max_pinch", defaults.max_pinch)),
            pip_margin=float(config.get("pip_margin", defaults.pip_margin)),
            finger_margin=float(config.get("finger_margin", defaults.finger_margin)),
            swipe_trigger=float(config.get("swipe_trigger", defaults.swipe_trigger)),
            swipe_reset=float(config.get("swipe_reset", defaults.swipe_reset)),
            cooldown_sec=float(config.get("cooldown_sec", defaults.cooldown_sec)),
            require_release=bool(config.get("require_release", defaults.require_release)),
        )


def to_landmark_array(landmarks) -> Optional[np.ndarray]:
    """Normalize landmark input to an (N, 3) float array.

    Accepts numpy arrays, sequences of (x, y[, z]) tuples, or objects with
    ``x``/``y``/``z`` attributes (MediaPipe landmarks, NamedTuples).
    Returns None for missing, short or non-finite input.
    """
    if landmarks is None:
        return None
    if hasattr(landmarks, "landmark"):
        landmarks = landmarks.landmark

    if isinstance(landmarks, np.ndarray):
        arr = landmarks.astype(np.float64, copy=False)
    else:
        points = list(landmarks)
        if not points:
            return None
        if hasattr(points[0], "x"):
            arr = np.array([[p.x, p.y, getattr(p, "z", 0.0)] for p in points],
                           dtype=np.float64)
        else:
            arr = np.array(points, dtype=np.float64)

    if arr.ndim != 2 or arr.shape[0] < NUM_LANDMARKS or arr.shape[1] < 2:
        return None
    if not np.all(np.isfinite(arr[:NUM_LANDMARKS, :2])):
        return None
    return arr


class GestureSignalMapper:
    """
    Maps hand landmarks to a zoom target and advance events.

    Called once per perception frame, independent of the render rate.

    Example:
        >>> mapper = GestureSignalMapper(GestureMapperConfig(advance_mode="swipe"))
        >>> out = mapper.map(landmarks)
        >>> if out.advance_event:
        ...     pipeline.advance_pattern()
    """

    def __init__(self, config: Optional[GestureMapperConfig] = None,
                 clock: Callable[[], float] = time.monotonic,
                 initial_zoom: float = DEFAULT_CAMERA_Z):
        self.config = config or GestureMapperConfig()
        self._clock = clock
        self._zoom_target = self._clamp_zoom(initial_zoom)
        self._debouncer = AdvanceDebouncer(
            cooldown_sec=self.config.cooldown_sec,
            require_release=self.config.require_release,
            clock=clock,
        )

        # Swipe accumulator
        self._swipe_distance = 0.0
        self._last_wrist_x: Optional[float] = None

    def map(self, landmarks, now: Optional[float] = None) -> ControlOutput:
        """
        Map one perception frame.

        Args:
            landmarks: (>=21, 2|3) landmarks of one hand, or None
            now: Monotonic timestamp; defaults to the mapper's clock

        Returns:
            ControlOutput with the (possibly unchanged) zoom target
        """
        now = self._clock() if now is None else now
        points = to_landmark_array(landmarks)

        if points is None:
            self._on_hand_lost()
            return ControlOutput(self._zoom_target, advance_event=False, hand_detected=False)

        if self.config.zoom_mode == "pinch":
            self._zoom_target = self._zoom_from_pinch(points)
        else:
            self._zoom_target = self._zoom_from_wrist(points)

        if self.config.advance_mode == "swipe":
            advance = self._update_swipe(points[WRIST, 0], now)
        else:
            advance = self._debouncer.try_fire(self.is_pointing_up(points), now)

        if advance:
            logger.info("Advance gesture detected (%s)", self.config.advance_mode)

        return ControlOutput(self._zoom_target, advance_event=advance, hand_detected=True)

    # =========================================================================
    # Zoom
    # =========================================================================

    def _clamp_zoom(self, z: float) -> float:
        return min(self.config.max_z, max(self.config.min_z, z))

    def _zoom_from_wrist(self, points: np.ndarray) -> float:
        """Higher hand -> farther camera. Wrist y is clamped to [0, 1] first."""
        y = min(1.0, max(0.0, float(points[WRIST, 1])))
        cfg = self.config
        return self._clamp_zoom(cfg.min_z + (1.0 - y) * (cfg.max_z - cfg.min_z))

    def _zoom_from_pinch(self, points: np.ndarray) -> float:
        """Wider thumb-index spread -> farther camera."""
        cfg = self.config
        dx = points[THUMB_TIP, 0] - points[INDEX_TIP, 0]
        dy = points[THUMB_TIP, 1] - points[INDEX_TIP, 1]
        distance = min(cfg.max_pinch, max(cfg.min_pinch, math.hypot(dx, dy)))
        span = cfg.max_pinch - cfg.min_pinch
        ratio = (distance - cfg.min_pinch) / span if span > 0 else 0.0
        return self._clamp_zoom(cfg.min_z + ratio * (cfg.max_z - cfg.min_z))

    # =========================================================================
    # Advance
    # =========================================================================

    def is_pointing_up(self, points: np.ndarray) -> bool:
        """Index tip clearly above its PIP joint and the other fingertips."""
        cfg = self.config
        tip_y = points[INDEX_TIP, 1]
        return bool(
            tip_y < points[INDEX_PIP, 1] - cfg.pip_margin
            and tip_y < points[MIDDLE_TIP, 1] - cfg.finger_margin
            and tip_y < points[RING_TIP, 1] - cfg.finger_margin
            and tip_y < points[PINKY_TIP, 1] - cfg.finger_margin
        )

    def _update_swipe(self, wrist_x: float, now: float) -> bool:
        """Accumulate rightward wrist travel; a leftward step resets it."""
        wrist_x = float(wrist_x)
        if self._last_wrist_x is None:
            self._last_wrist_x = wrist_x
            self._debouncer.try_fire(False, now)
            return False

        dx = wrist_x - self._last_wrist_x
        self._last_wrist_x = wrist_x

        if dx < self.config.swipe_reset:
            self._swipe_distance = 0.0
        elif dx > 0:
            self._swipe_distance += dx

        if self._swipe_distance <= self.config.swipe_trigger:
            self._debouncer.try_fire(False, now)
            return False

        # A swipe inside the cooldown is dropped, not carried over.
        fired = self._debouncer.try_fire(True, now)
        self._swipe_distance = 0.0
        self._last_wrist_x = None
        return fired

    def _on_hand_lost(self):
        """Drop partial gestures so a returning hand starts fresh."""
        self._swipe_distance = 0.0
        self._last_wrist_x = None
        self._debouncer.release()

    @property
    def zoom_target(self) -> float:
        return self._zoom_target

    @property
    def swipe_distance(self) -> float:
        return self._swipe_distance
