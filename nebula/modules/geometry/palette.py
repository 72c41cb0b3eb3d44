"""
Per-pattern color palettes and randomized particle colors.

A particle's color is one of the pattern's four base colors, scaled by a
brightness factor in [0.85, 1.15]. The same factor multiplies all three
channels, so hue is preserved and channels never exceed 1.15.
"""

from typing import Dict, Optional, Tuple

import numpy as np

from nebula.core.types import PatternId

VARIATION_MIN = 0.85
VARIATION_SPAN = 0.3

Color = Tuple[float, float, float]


def hex_to_rgb(value: int) -> Color:
    """0xRRGGBB -> (r, g, b) floats in [0, 1]."""
    return (
        ((value >> 16) & 0xFF) / 255.0,
        ((value >> 8) & 0xFF) / 255.0,
        (value & 0xFF) / 255.0,
    )


_PALETTE_HEX: Dict[PatternId, Tuple[int, int, int, int]] = {
    PatternId.SPHERE: (0x0077FF, 0x00AAFF, 0x44CCFF, 0x0055CC),
    PatternId.SPIRAL: (0x8800CC, 0xCC00FF, 0x660099, 0xAA33FF),
    PatternId.HELIX: (0x00CC66, 0x33FF99, 0x99FF66, 0x008844),
    PatternId.GRID: (0xFF9900, 0xFFCC33, 0xFF6600, 0xFFAA55),
    PatternId.TORUS: (0xFF3399, 0xFF66AA, 0xFF0066, 0xCC0055),
    PatternId.VORTEX: (0x00FFCC, 0x00CCFF, 0x33FFEE, 0x0099AA),
    PatternId.GALAXY: (0xFFEEDD, 0xAABBFF, 0xFF99CC, 0x8866FF),
    PatternId.WAVE: (0x0066FF, 0x00CCEE, 0x66EEFF, 0x003399),
    PatternId.MOBIUS: (0xFFDD00, 0xFF8800, 0xFFEE66, 0xCC6600),
    PatternId.SUPERNOVA: (0xFF3300, 0xFFAA00, 0xFFFFCC, 0xFF0066),
    PatternId.CUBE_GRID: (0x66FF33, 0xCCFF00, 0x33CC99, 0x99FF99),
}

PALETTES: Dict[PatternId, np.ndarray] = {
    pattern: np.array([hex_to_rgb(h) for h in hexes], dtype=np.float64)
    for pattern, hexes in _PALETTE_HEX.items()
}


def palette_for(pattern: PatternId) -> np.ndarray:
    """(4, 3) array of base colors for a pattern."""
    return PALETTES[pattern]


def sample_color(pattern: PatternId, rng: Optional[np.random.Generator] = None) -> Color:
    """Random base color with a shared brightness variation."""
    rng = rng if rng is not None else np.random.default_rng()
    palette = PALETTES[pattern]
    base = palette[int(rng.integers(len(palette)))]
    variation = VARIATION_MIN + rng.random() * VARIATION_SPAN
    return (
        float(base[0] * variation),
        float(base[1] * variation),
        float(base[2] * variation),
    )


def sample_colors(pattern: PatternId, count: int,
                  rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """Vectorized sample_color for a whole field.

    Returns:
        np.ndarray of shape (count, 3), float64
    """
    rng = rng if rng is not None else np.random.default_rng()
    palette = PALETTES[pattern]
    if count <= 0:
        return np.zeros((0, 3), dtype=np.float64)
    picks = rng.integers(len(palette), size=count)
    variation = VARIATION_MIN + rng.random(count) * VARIATION_SPAN
    return palette[picks] * variation[:, None]
