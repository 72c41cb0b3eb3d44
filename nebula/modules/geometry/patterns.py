"""
Canonical particle patterns: sphere, spiral, helix, grid and torus.

Every generator maps ``(i, count)`` to one 3-D point and takes an optional
random generator so all patterns share one call signature. The canonical
shapes are deterministic and never touch ``rng``.

Degenerate counts (0 or 1 particles) are guarded at every division and
fall back to the origin.
"""

import math
from typing import Optional, Tuple

import numpy as np

Point = Tuple[float, float, float]

ORIGIN: Point = (0.0, 0.0, 0.0)
TWO_PI = 2.0 * math.pi
SQRT5 = math.sqrt(5.0)

# Shape constants
SPHERE_RADIUS = 30.0
SPIRAL_ARMS = 3
SPIRAL_RADIUS = 40.0
SPIRAL_TURNS = 15.0
SPIRAL_PITCH = 0.7
SPIRAL_HEIGHT = 5.0
HELIX_STRANDS = 2
HELIX_RADIUS = 15.0
HELIX_HEIGHT = 60.0
GRID_EXTENT = 60.0
TORUS_MAJOR = 30.0
TORUS_MINOR = 10.0


def cube_side(count: int) -> int:
    """Smallest integer side length whose cube holds ``count`` points.

    Uses integer correction instead of a float cube root, which would round
    27 ** (1/3) up to 4.
    """
    if count <= 1:
        return 1
    side = int(round(count ** (1.0 / 3.0)))
    while side ** 3 < count:
        side += 1
    while side > 1 and (side - 1) ** 3 >= count:
        side -= 1
    return side


def square_side(count: int) -> int:
    """Smallest integer side length whose square holds ``count`` points."""
    if count <= 1:
        return 1
    side = math.isqrt(count)
    if side * side < count:
        side += 1
    return side


def frac(value: float) -> float:
    """Fractional part of a non-negative float."""
    return math.fmod(value, 1.0)


def create_sphere(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Surface sphere, uniform in latitude.

    The azimuth multiplier ``sqrt(count)`` wraps the index around the sphere
    many times; this is a visual approximation, not an equal-area sampler.
    """
    if count <= 0:
        return ORIGIN
    t = i / count
    phi = math.acos(max(-1.0, min(1.0, 2.0 * t - 1.0)))
    theta = TWO_PI * t * math.sqrt(count)
    return (
        math.sin(phi) * math.cos(theta) * SPHERE_RADIUS,
        math.sin(phi) * math.sin(theta) * SPHERE_RADIUS,
        math.cos(phi) * SPHERE_RADIUS,
    )


def create_spiral(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Three-armed planar spiral with non-linear pitch."""
    if count <= 0:
        return ORIGIN
    t = i / count
    arm = i % SPIRAL_ARMS
    angle_offset = (TWO_PI / SPIRAL_ARMS) * arm
    angle = math.pow(t, SPIRAL_PITCH) * SPIRAL_TURNS + angle_offset
    radius = t * SPIRAL_RADIUS
    height = math.sin(t * TWO_PI) * SPIRAL_HEIGHT
    return (
        math.cos(angle) * radius,
        math.sin(angle) * radius,
        height,
    )


def create_helix(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Two interleaved strands, half a turn apart."""
    if count <= 0:
        return ORIGIN
    strand = i % HELIX_STRANDS
    per_strand = count // HELIX_STRANDS
    t = (i // HELIX_STRANDS) / per_strand if per_strand > 0 else 0.0
    angle = t * math.pi * 10.0 + strand * math.pi
    return (
        math.cos(angle) * HELIX_RADIUS,
        math.sin(angle) * HELIX_RADIUS,
        (t - 0.5) * HELIX_HEIGHT,
    )


def create_grid(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Cubic lattice centred on the origin."""
    if count <= 0:
        return ORIGIN
    side = cube_side(count)
    spacing = GRID_EXTENT / side
    half = (side - 1) * spacing / 2.0
    iz = i // (side * side)
    iy = (i % (side * side)) // side
    ix = i % side
    mid = side // 2
    # Odd lattices have a point exactly at the origin; move it off-centre.
    if side % 2 != 0 and ix == mid and iy == mid and iz == mid:
        return (spacing * 0.1, spacing * 0.1, spacing * 0.1)
    return (
        ix * spacing - half,
        iy * spacing - half,
        iz * spacing - half,
    )


def create_torus(i: int, count: int, rng: Optional[np.random.Generator] = None) -> Point:
    """Torus surface; tube angle stepped by the irrational sqrt(5)."""
    if count <= 0:
        return ORIGIN
    u = (i / count) * TWO_PI
    v = frac(i * SQRT5) * TWO_PI
    ring = TORUS_MAJOR + TORUS_MINOR * math.cos(v)
    return (
        ring * math.cos(u),
        ring * math.sin(u),
        TORUS_MINOR * math.sin(v),
    )
