"""
Extended pattern set: vortex, galaxy, wave, Mobius strip, supernova and a
hollow cube grid.

Vortex, galaxy and supernova are stochastic: they draw per-particle offsets
from ``rng`` and two calls with differently seeded generators give different
points. Pass a seeded ``numpy.random.Generator`` for reproducible fields.
"""

import math
from typing import Optional

import numpy as np

from .patterns import (
    ORIGIN, TWO_PI, SQRT5, GRID_EXTENT, Point,
    cube_side, square_side, frac,
)


def _require_rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def create_vortex(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Funnel narrowing towards the bottom, with more turns near the tip."""
    if count <= 0:
        return ORIGIN
    rng = _require_rng(rng)
    height = 60.0
    max_radius = 35.0
    min_radius = 5.0
    rotations = 3.0

    level = i / count + 0.05 * rng.random()
    radius = min_radius + (max_radius - min_radius) * level
    angle = rotations * TWO_PI * (1.0 - level) + i * 0.1
    return (
        math.cos(angle) * radius,
        (level - 0.5) * height,
        math.sin(angle) * radius,
    )


def create_galaxy(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Four twisted arms in a thin disc, thicker at the core."""
    if count <= 0:
        return ORIGIN
    rng = _require_rng(rng)
    arms = 4
    arm_width = 0.15
    max_radius = 40.0
    thickness = 5.0
    twist = 2.5

    arm = i % arms
    per_arm = count // arms
    along = (i // arms) / per_arm if per_arm > 0 else 0.0

    offset = (rng.random() * 2.0 - 1.0) * arm_width
    angle = (TWO_PI / arms) * arm + twist * along + offset
    vertical = (rng.random() * 2.0 - 1.0) * thickness * (1.0 - along * 0.8)
    radial = along * max_radius
    return (
        math.cos(angle) * radial,
        vertical,
        math.sin(angle) * radial,
    )


def create_wave(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Square sheet displaced by two octaves of sine waves."""
    if count <= 0:
        return ORIGIN
    width = 60.0
    depth = 60.0
    amplitude = 10.0
    density = 0.1

    side = square_side(count)
    x = (i % side) * (width / side) - width / 2.0
    z = (i // side) * (depth / side) - depth / 2.0
    y = (math.sin(x * density) * math.cos(z * density) * amplitude
         + math.sin(x * density * 2.5) * math.cos(z * density * 2.1) * amplitude * 0.3)
    return (x, y, z)


def create_mobius(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Mobius strip with a single half twist."""
    if count <= 0:
        return ORIGIN
    radius = 25.0
    width = 10.0

    length_steps = math.sqrt(count)
    width_steps = count / length_steps
    u = (i % length_steps) / length_steps
    v = (math.floor(i / length_steps) % width_steps) / width_steps - 0.5

    theta = u * TWO_PI
    band = radius + width * v * math.cos(theta / 2.0)
    return (
        band * math.cos(theta),
        band * math.sin(theta),
        width * v * math.sin(theta / 2.0),
    )


def create_supernova(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Dense core plus an expanding shell along golden-angle directions."""
    if count <= 0:
        return ORIGIN
    rng = _require_rng(rng)
    max_radius = 40.0
    core_share = 0.2
    outer_density = 0.7

    phi = math.acos(max(-1.0, min(1.0, 1.0 - 2.0 * (i / count))))
    theta = TWO_PI * frac(i * (1.0 + SQRT5))

    sample = rng.random()
    if i < count * core_share:
        normalized = math.pow(sample, 0.5) * 0.3
    else:
        normalized = 0.3 + math.pow(sample, outer_density) * 0.7
    radius = normalized * max_radius
    return (
        math.sin(phi) * math.cos(theta) * radius,
        math.sin(phi) * math.sin(theta) * radius,
        math.cos(phi) * radius,
    )


def create_cube_grid(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Particles spread over the six faces of a cube."""
    if count <= 0:
        return ORIGIN
    side = cube_side(count)
    spacing = GRID_EXTENT / side
    half = (side - 1) * spacing / 2.0
    span = spacing * (side - 1)

    faces = 6
    per_face = max(count // faces, 1)
    face = (i // per_face) % faces
    on_face = i % per_face

    side_2d = square_side(per_face)
    rx = (on_face % side_2d) / ((side_2d - 1) or 1)
    ry = (on_face // side_2d) / ((side_2d - 1) or 1)
    a = rx * span - half
    b = ry * span - half

    if face == 0:
        return (a, b, half)
    if face == 1:
        return (a, b, -half)
    if face == 2:
        return (a, half, b)
    if face == 3:
        return (a, -half, b)
    if face == 4:
        return (half, a, b)
    return (-half, a, b)
