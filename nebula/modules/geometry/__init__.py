"""Pattern generation and color palettes."""
from .generator import generate, materialize_pattern, GENERATORS
from .palette import sample_color, sample_colors, palette_for

__all__ = [
    "generate",
    "materialize_pattern",
    "GENERATORS",
    "sample_color",
    "sample_colors",
    "palette_for",
]
