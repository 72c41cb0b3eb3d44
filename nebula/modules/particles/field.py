"""
Live particle buffers handed to the renderer.

Positions and colors are flat float32 arrays of length 3 * count, laid out
as x0 y0 z0 x1 y1 z1 ... (r, g, b for colors), matching GPU vertex upload.
Use the accessors instead of computing ``i * 3`` offsets by hand.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from nebula.core.types import PatternId
from nebula.modules.geometry.generator import materialize_pattern

logger = logging.getLogger(__name__)


class ParticleField:
    """Owns the per-particle position and color buffers.

    Only the render loop mutates a field; the gesture side never touches it.
    """

    def __init__(self, count: int, pattern: PatternId = PatternId.SPHERE,
                 rng: Optional[np.random.Generator] = None):
        self.positions = np.zeros(0, dtype=np.float32)
        self.colors = np.zeros(0, dtype=np.float32)
        self.current_pattern = pattern
        self.positions_dirty = False
        self.colors_dirty = False
        self.resize(count, pattern, rng)

    @property
    def count(self) -> int:
        return self.positions.shape[0] // 3

    def resize(self, count: int, pattern: Optional[PatternId] = None,
               rng: Optional[np.random.Generator] = None):
        """Rebuild both buffers for ``count`` particles showing ``pattern``."""
        pattern = pattern or self.current_pattern
        count = max(int(count), 0)
        self.positions, self.colors = materialize_pattern(pattern, count, rng)
        self.current_pattern = pattern
        self.mark_dirty(positions=True, colors=True)
        logger.info("Particle field built: %d particles, pattern=%s", count, pattern.value)

    def position_of(self, i: int) -> np.ndarray:
        """View of particle ``i``'s (x, y, z)."""
        return self.positions[i * 3:i * 3 + 3]

    def color_of(self, i: int) -> np.ndarray:
        """View of particle ``i``'s (r, g, b)."""
        return self.colors[i * 3:i * 3 + 3]

    def position_view(self) -> np.ndarray:
        """(count, 3) view over the position buffer."""
        return self.positions.reshape(-1, 3)

    def color_view(self) -> np.ndarray:
        """(count, 3) view over the color buffer."""
        return self.colors.reshape(-1, 3)

    def matches(self, positions: Optional[np.ndarray], colors: Optional[np.ndarray]) -> bool:
        """True if both arrays exist and have the live buffers' lengths."""
        return (
            positions is not None and colors is not None
            and positions.shape == self.positions.shape
            and colors.shape == self.colors.shape
        )

    def assign(self, positions: np.ndarray, colors: np.ndarray) -> bool:
        """Copy buffers in verbatim. Refuses (returns False) on length mismatch."""
        if not self.matches(positions, colors):
            logger.error(
                "Field assign length mismatch: positions %s vs %s, colors %s vs %s",
                getattr(positions, "shape", None), self.positions.shape,
                getattr(colors, "shape", None), self.colors.shape,
            )
            return False
        np.copyto(self.positions, positions)
        np.copyto(self.colors, colors)
        self.mark_dirty(positions=True, colors=True)
        return True

    def snapshot(self) -> Tuple[np.ndarray, np.ndarray]:
        """Independent copies of the displayed positions and colors."""
        return self.positions.copy(), self.colors.copy()

    def mark_dirty(self, positions: bool = False, colors: bool = False):
        self.positions_dirty = self.positions_dirty or positions
        self.colors_dirty = self.colors_dirty or colors

    def take_dirty_flags(self) -> Tuple[bool, bool]:
        """Return and clear the (positions, colors) needs-redraw flags."""
        flags = (self.positions_dirty, self.colors_dirty)
        self.positions_dirty = False
        self.colors_dirty = False
        return flags
