"""Small scalar helpers used throughout the terrain and field code."""

import math


def linear_step(x: float, a: float, b: float) -> float:
    """Map ``x`` linearly from ``[a, b]`` to ``[0, 1]``, saturating outside."""
    if x < a:
        return 0.0
    if x > b:
        return 1.0
    return (x - a) / (b - a)


def clamp(x: float, a: float = 0.0, b: float = 1.0) -> float:
    """Clamp ``x`` to the interval ``[a, b]``."""
    if x < a:
        return a
    if x > b:
        return b
    return x


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between ``a`` and ``b``."""
    return a + t * (b - a)


def bilinear(a00: float, a10: float, a11: float, a01: float, u: float, v: float) -> float:
    """Bilinear interpolation of four corner values at local coordinates ``(u, v)``."""
    return (
        (1 - u) * (1 - v) * a00
        + (1 - u) * v * a01
        + u * (1 - v) * a10
        + u * v * a11
    )


def cubic_smooth(x: float, r: float) -> float:
    """Cubic falloff ``(1 - x/r)^3``."""
    k = 1.0 - x / r
    return k * k * k


def integer(x: float) -> int:
    """Integer cell index of ``x``: truncation for positives, one below it otherwise."""
    return int(x) if x > 0.0 else int(x) - 1


def ridge(z: float, r: float) -> float:
    """Fold ``z`` back down once it exceeds ``r``."""
    if z < r:
        return z
    return 2.0 * r - z


def degree_to_radian(a: float) -> float:
    """Convert degrees to radians."""
    return a * math.pi / 180.0


def radian_to_degree(a: float) -> float:
    """Convert radians to degrees."""
    return a * 180.0 / math.pi