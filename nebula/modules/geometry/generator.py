"""
Pattern dispatch and whole-field materialization.

``generate`` is the single entry point for one particle; ``materialize_pattern``
fills the flat position/color buffers for a whole field and is only called
when a transition starts (or the field is rebuilt).
"""

import math
import logging
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from nebula.core.types import PatternId
from nebula.modules.utils.logger import log_timing
from .patterns import (
    ORIGIN, Point,
    create_sphere, create_spiral, create_helix, create_grid, create_torus,
)
from .extended_patterns import (
    create_vortex, create_galaxy, create_wave,
    create_mobius, create_supernova, create_cube_grid,
)
from .palette import sample_colors

logger = logging.getLogger(__name__)

GeneratorFn = Callable[[int, int, Optional[np.random.Generator]], Point]

GENERATORS: Dict[PatternId, GeneratorFn] = {
    PatternId.SPHERE: create_sphere,
    PatternId.SPIRAL: create_spiral,
    PatternId.HELIX: create_helix,
    PatternId.GRID: create_grid,
    PatternId.TORUS: create_torus,
    PatternId.VORTEX: create_vortex,
    PatternId.GALAXY: create_galaxy,
    PatternId.WAVE: create_wave,
    PatternId.MOBIUS: create_mobius,
    PatternId.SUPERNOVA: create_supernova,
    PatternId.CUBE_GRID: create_cube_grid,
}


def generate(pattern: PatternId, i: int, count: int,
             rng: Optional[np.random.Generator] = None) -> Point:
    """Position of particle ``i`` of ``count`` for ``pattern``.

    Never returns NaN or infinity; a non-finite result is replaced by the
    origin.

    Raises:
        KeyError: if ``pattern`` has no registered generator
    """
    x, y, z = GENERATORS[pattern](i, count, rng)
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        logger.debug("Non-finite point for %s i=%d count=%d, using origin",
                     pattern.value, i, count)
        return ORIGIN
    return (x, y, z)


@log_timing
def materialize_pattern(pattern: PatternId, count: int,
                        rng: Optional[np.random.Generator] = None
                        ) -> Tuple[np.ndarray, np.ndarray]:
    """Build flat float32 position and color buffers of length 3 * count.

    Positions come from ``generate`` for every index so that a committed
    field matches direct per-particle calls exactly.
    """
    count = max(int(count), 0)
    rng = rng if rng is not None else np.random.default_rng()

    points = np.empty((count, 3), dtype=np.float64)
    for i in range(count):
        points[i] = generate(pattern, i, count, rng)

    positions = points.astype(np.float32).reshape(-1)
    colors = sample_colors(pattern, count, rng).astype(np.float32).reshape(-1)
    return positions, colors
