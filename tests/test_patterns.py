"""
Tests for Pattern Generation
=============================
"""

import math
import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from nebula.core.types import PatternId, CANONICAL_PATTERNS, EXTENDED_PATTERNS
from nebula.modules.geometry.generator import generate, materialize_pattern, GENERATORS
from nebula.modules.geometry.patterns import (
    cube_side, square_side, create_grid, create_sphere, create_torus,
    SPHERE_RADIUS, TORUS_MAJOR, TORUS_MINOR,
)
from nebula.modules.geometry.extended_patterns import create_cube_grid
from nebula.modules.geometry.palette import (
    PALETTES, sample_color, sample_colors, palette_for, hex_to_rgb,
)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


class TestLatticeSides:
    """Test suite for integer lattice helpers."""

    @pytest.mark.parametrize("count,side", [
        (0, 1), (1, 1), (2, 2), (8, 2), (9, 3), (27, 3), (28, 4), (64, 4), (1000, 10),
    ])
    def test_cube_side(self, count, side):
        """Smallest cube holding count points, exact at perfect cubes."""
        assert cube_side(count) == side

    @pytest.mark.parametrize("count,side", [(1, 1), (4, 2), (5, 3), (100, 10), (101, 11)])
    def test_square_side(self, count, side):
        assert square_side(count) == side


class TestGeneratorRegistry:
    """Test suite for pattern dispatch."""

    def test_every_pattern_registered(self):
        """Each PatternId has a generator."""
        assert set(GENERATORS) == set(PatternId)

    def test_unknown_pattern_raises(self):
        with pytest.raises(KeyError):
            generate("bogus", 0, 10)

    def test_pattern_from_string(self):
        assert PatternId.from_string(" Galaxy ") == PatternId.GALAXY
        assert PatternId.from_string("cube_grid") == PatternId.CUBE_GRID
        with pytest.raises(ValueError):
            PatternId.from_string("blob")

    def test_extended_flag(self):
        assert not any(p.is_extended for p in CANONICAL_PATTERNS)
        assert all(p.is_extended for p in EXTENDED_PATTERNS[len(CANONICAL_PATTERNS):])

    @pytest.mark.parametrize("pattern", list(PatternId))
    @pytest.mark.parametrize("count", [1, 2, 7, 100])
    def test_outputs_are_finite(self, pattern, count, rng):
        """No pattern produces NaN or infinity, including a single particle."""
        for i in range(count):
            point = generate(pattern, i, count, rng)
            assert len(point) == 3
            assert all(math.isfinite(c) for c in point)

    @pytest.mark.parametrize("pattern", list(PatternId))
    def test_zero_count_returns_origin(self, pattern, rng):
        assert generate(pattern, 0, 0, rng) == (0.0, 0.0, 0.0)


class TestCanonicalPatterns:
    """Test suite for the five canonical shapes."""

    def test_sphere_radius(self):
        """Every sphere point lies on the radius-30 surface."""
        for i in range(200):
            x, y, z = create_sphere(i, 200)
            assert math.sqrt(x * x + y * y + z * z) == pytest.approx(SPHERE_RADIUS, rel=1e-9)

    def test_torus_surface(self):
        """Every torus point is TORUS_MINOR away from the central ring."""
        for i in range(200):
            x, y, z = create_torus(i, 200)
            ring_distance = math.hypot(x, y) - TORUS_MAJOR
            assert math.hypot(ring_distance, z) == pytest.approx(TORUS_MINOR, abs=1e-9)

    def test_grid_eight_particles(self):
        """Eight particles form the corners of a cube at +-15."""
        points = {create_grid(i, 8) for i in range(8)}

        assert len(points) == 8
        for point in points:
            assert all(abs(c) == pytest.approx(15.0) for c in point)

    def test_grid_odd_center_is_nudged(self):
        """The exact-origin point of an odd lattice is moved off-centre."""
        points = [create_grid(i, 27) for i in range(27)]
        spacing = 60.0 / 3

        assert (0.0, 0.0, 0.0) not in points
        assert points[13] == pytest.approx((spacing * 0.1,) * 3)
        assert len(set(points)) == 27

    def test_canonical_patterns_are_deterministic(self):
        """Canonical shapes do not depend on the random generator."""
        for pattern in CANONICAL_PATTERNS:
            a = [generate(pattern, i, 50, np.random.default_rng(1)) for i in range(50)]
            b = [generate(pattern, i, 50, np.random.default_rng(2)) for i in range(50)]
            assert a == b


class TestExtendedPatterns:
    """Test suite for the extended shapes."""

    @pytest.mark.parametrize("pattern", [PatternId.VORTEX, PatternId.GALAXY, PatternId.SUPERNOVA])
    def test_stochastic_reproducible_with_seed(self, pattern):
        a, _ = materialize_pattern(pattern, 200, np.random.default_rng(7))
        b, _ = materialize_pattern(pattern, 200, np.random.default_rng(7))
        c, _ = materialize_pattern(pattern, 200, np.random.default_rng(8))

        assert pattern.is_stochastic
        assert np.array_equal(a, b)
        assert not np.array_equal(a, c)

    def test_cube_grid_points_on_faces(self):
        """Every hollow-cube point sits on one of the six faces."""
        count = 60
        half = (cube_side(count) - 1) * (60.0 / cube_side(count)) / 2.0
        for i in range(count):
            point = create_cube_grid(i, count)
            assert max(abs(c) for c in point) == pytest.approx(half)

    def test_extended_set_contains_canonical(self):
        assert EXTENDED_PATTERNS[:5] == CANONICAL_PATTERNS
        assert len(EXTENDED_PATTERNS) == 11


class TestMaterialize:
    """Test suite for whole-field materialization."""

    def test_buffer_layout(self, rng):
        positions, colors = materialize_pattern(PatternId.HELIX, 123, rng)

        assert positions.dtype == np.float32
        assert colors.dtype == np.float32
        assert positions.shape == (369,)
        assert colors.shape == (369,)

    def test_matches_per_particle_generate(self, rng):
        """Buffer entries are exactly the float32 casts of generate()."""
        count = 64
        positions, _ = materialize_pattern(PatternId.TORUS, count, rng)
        for i in range(count):
            expected = np.array(generate(PatternId.TORUS, i, count), dtype=np.float32)
            assert np.array_equal(positions[i * 3:i * 3 + 3], expected)

    def test_empty_field(self, rng):
        positions, colors = materialize_pattern(PatternId.SPHERE, 0, rng)
        assert positions.shape == (0,)
        assert colors.shape == (0,)


class TestPalette:
    """Test suite for the palette sampler."""

    def test_hex_to_rgb(self):
        assert hex_to_rgb(0xFF0000) == (1.0, 0.0, 0.0)
        assert hex_to_rgb(0x0077FF) == pytest.approx((0.0, 0x77 / 255.0, 1.0))

    def test_every_pattern_has_four_colors(self):
        for pattern in PatternId:
            assert palette_for(pattern).shape == (4, 3)
        assert set(PALETTES) == set(PatternId)

    def test_sample_color_bounds(self, rng):
        """Channels stay within [0, 1.15]."""
        for pattern in PatternId:
            for _ in range(50):
                color = sample_color(pattern, rng)
                assert all(0.0 <= c <= 1.15 + 1e-9 for c in color)

    def test_sample_colors_preserve_hue(self, rng):
        """Each sampled color is a palette color scaled by one factor in [0.85, 1.15]."""
        palette = palette_for(PatternId.GRID)
        colors = sample_colors(PatternId.GRID, 200, rng)

        assert colors.shape == (200, 3)
        for color in colors:
            matched = False
            for base in palette:
                factors = color[base > 0] / base[base > 0]
                if np.allclose(factors, factors[0]) and np.allclose(color[base == 0], 0.0):
                    assert 0.85 - 1e-9 <= factors[0] <= 1.15 + 1e-9
                    matched = True
                    break
            assert matched

    def test_sample_colors_empty(self, rng):
        assert sample_colors(PatternId.SPHERE, 0, rng).shape == (0, 3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
