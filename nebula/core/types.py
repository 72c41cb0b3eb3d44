"""
Shared domain types for the Hand Nebula particle system.

Centralizes the pattern enum, control containers and per-frame results used
across modules to eliminate circular imports and keep naming consistent.
"""

import threading
from enum import Enum
from typing import Optional, Tuple

import numpy as np


# =============================================================================
# Camera zoom range
# =============================================================================

MIN_CAMERA_Z = 40.0
MAX_CAMERA_Z = 250.0
DEFAULT_CAMERA_Z = 100.0


# =============================================================================
# Patterns
# =============================================================================

class PatternId(Enum):
    """Closed set of named particle patterns."""
    SPHERE = "sphere"
    SPIRAL = "spiral"
    HELIX = "helix"
    GRID = "grid"
    TORUS = "torus"
    # Extended set
    VORTEX = "vortex"
    GALAXY = "galaxy"
    WAVE = "wave"
    MOBIUS = "mobius"
    SUPERNOVA = "supernova"
    CUBE_GRID = "cube_grid"

    @classmethod
    def from_string(cls, name: str) -> "PatternId":
        """Convert a config string to PatternId. Raises ValueError if unknown."""
        return cls(name.strip().lower())

    @property
    def display_name(self) -> str:
        return PATTERN_NAMES[self]

    @property
    def is_extended(self) -> bool:
        return self not in CANONICAL_PATTERNS

    @property
    def is_stochastic(self) -> bool:
        """True if the generator draws random offsets per particle."""
        return self in (PatternId.VORTEX, PatternId.GALAXY, PatternId.SUPERNOVA)


PATTERN_NAMES = {
    PatternId.SPHERE: "Cosmic Sphere",
    PatternId.SPIRAL: "Spiral Nebula",
    PatternId.HELIX: "Quantum Helix",
    PatternId.GRID: "Stardust Grid",
    PatternId.TORUS: "Celestial Torus",
    PatternId.VORTEX: "Cosmic Vortex",
    PatternId.GALAXY: "Spiral Galaxy",
    PatternId.WAVE: "Ocean Waves",
    PatternId.MOBIUS: "Mobius Strip",
    PatternId.SUPERNOVA: "Supernova",
    PatternId.CUBE_GRID: "Hollow Cube",
}

CANONICAL_PATTERNS: Tuple[PatternId, ...] = (
    PatternId.SPHERE,
    PatternId.SPIRAL,
    PatternId.HELIX,
    PatternId.GRID,
    PatternId.TORUS,
)

EXTENDED_PATTERNS: Tuple[PatternId, ...] = CANONICAL_PATTERNS + (
    PatternId.VORTEX,
    PatternId.GALAXY,
    PatternId.WAVE,
    PatternId.MOBIUS,
    PatternId.SUPERNOVA,
    PatternId.CUBE_GRID,
)

PATTERN_SETS = {
    "canonical": CANONICAL_PATTERNS,
    "extended": EXTENDED_PATTERNS,
}


# =============================================================================
# Control containers
# =============================================================================

class ControlOutput:
    """Result of mapping one perception frame to control values.

    Uses __slots__ since one is created per perception frame.
    """

    __slots__ = ("zoom_target", "advance_event", "hand_detected")

    def __init__(self, zoom_target: float, advance_event: bool = False,
                 hand_detected: bool = False):
        self.zoom_target = zoom_target
        self.advance_event = advance_event
        self.hand_detected = hand_detected

    def __repr__(self):
        return (f"ControlOutput(zoom={self.zoom_target:.1f}, "
                f"advance={self.advance_event}, hand={self.hand_detected})")


class ControlState:
    """Latest control values shared between the perception and render loops.

    The perception loop is the only writer, the render loop the only reader.
    Zoom is last-write-wins; an advance request is latched until consumed so
    an edge is never lost between two render ticks.
    """

    def __init__(self, target_zoom: float = DEFAULT_CAMERA_Z,
                 min_zoom: float = MIN_CAMERA_Z, max_zoom: float = MAX_CAMERA_Z):
        self._lock = threading.Lock()
        self._target_zoom = min(max_zoom, max(min_zoom, target_zoom))
        self._advance_pending = False
        self._hand_detected = False

    def apply(self, output: ControlOutput):
        """Store a mapper output (perception side)."""
        with self._lock:
            self._target_zoom = output.zoom_target
            self._hand_detected = output.hand_detected
            if output.advance_event:
                self._advance_pending = True

    def request_advance(self):
        """Latch an advance request from any external trigger."""
        with self._lock:
            self._advance_pending = True

    def consume_advance(self) -> bool:
        """Test-and-clear the latched advance request (render side)."""
        with self._lock:
            pending = self._advance_pending
            self._advance_pending = False
            return pending

    @property
    def target_zoom(self) -> float:
        with self._lock:
            return self._target_zoom

    @property
    def hand_detected(self) -> bool:
        with self._lock:
            return self._hand_detected


# =============================================================================
# Frame output
# =============================================================================

class FrameResult:
    """Everything the external renderer needs after one render tick."""

    __slots__ = (
        "frame_id", "time", "positions", "colors",
        "positions_dirty", "colors_dirty", "camera_position",
        "pattern", "transitioning", "progress", "hand_detected",
    )

    def __init__(self):
        self.frame_id = 0
        self.time = 0.0
        self.positions: Optional[np.ndarray] = None   # (3N,) float32
        self.colors: Optional[np.ndarray] = None      # (3N,) float32
        self.positions_dirty = False
        self.colors_dirty = False
        self.camera_position: Tuple[float, float, float] = (0.0, 0.0, DEFAULT_CAMERA_Z)
        self.pattern: Optional[PatternId] = None
        self.transitioning = False
        self.progress = 0.0
        self.hand_detected = False
