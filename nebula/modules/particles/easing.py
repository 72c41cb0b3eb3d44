"""Easing curves for pattern transitions."""


def cubic_in_out(t: float) -> float:
    """Cubic ease-in-out on [0, 1]; zero slope at both ends.

    Input outside [0, 1] is clamped.
    """
    t = min(1.0, max(0.0, t))
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 3) / 2.0
