"""Vectors, axis-aligned boxes and rays."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

from glaciersim.mathutils import clamp


@dataclass(frozen=True, slots=True)
class Vector2:
    """Immutable 2D vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, a: float) -> Vector2:
        return Vector2(self.x * a, self.y * a)

    def __rmul__(self, a: float) -> Vector2:
        return self * a

    def __truediv__(self, a: float) -> Vector2:
        return Vector2(self.x / a, self.y / a)

    def __neg__(self) -> Vector2:
        return Vector2(-self.x, -self.y)

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y)[index]

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def norm(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def squared_norm(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalized(self) -> Vector2:
        return self / self.norm()


@dataclass(frozen=True, slots=True)
class Vector3:
    """Immutable 3D vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, a: float) -> Vector3:
        return Vector3(self.x * a, self.y * a, self.z * a)

    def __rmul__(self, a: float) -> Vector3:
        return self * a

    def __truediv__(self, a: float) -> Vector3:
        return Vector3(self.x / a, self.y / a, self.z / a)

    def __neg__(self) -> Vector3:
        return Vector3(-self.x, -self.y, -self.z)

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z)[index]

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def norm(self) -> float:
        return math.sqrt(self.squared_norm())

    def squared_norm(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def normalized(self) -> Vector3:
        return self / self.norm()

    def dot(self, other: Vector3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector3) -> Vector3:
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> Vector3:
        """Colour from 8-bit channels to the unit cube."""
        return cls(r / 255.0, g / 255.0, b / 255.0)

    def to_rgb(self) -> Tuple[int, int, int]:
        """Colour as clamped 8-bit channels."""
        return (
            int(255.0 * clamp(self.x)),
            int(255.0 * clamp(self.y)),
            int(255.0 * clamp(self.z)),
        )


@dataclass(frozen=True, slots=True)
class Box2:
    """Axis-aligned 2D box."""

    bmin: Vector2 = field(default_factory=Vector2)
    bmax: Vector2 = field(default_factory=Vector2)

    @classmethod
    def around(cls, center: Vector2, radius: float) -> Box2:
        """Square box of half-side ``radius`` centred on ``center``."""
        r = Vector2(radius, radius)
        return cls(center - r, center + r)

    def center(self) -> Vector2:
        return 0.5 * (self.bmin + self.bmax)

    def radius(self) -> float:
        return 0.5 * (self.bmax - self.bmin).norm()

    def width(self) -> float:
        return self.bmax.x - self.bmin.x

    def height(self) -> float:
        return self.bmax.y - self.bmin.y

    def intersect(self, s0: Vector2, s1: Vector2) -> Optional[Tuple[float, float]]:
        """Parametric interval ``(tmin, tmax)`` of the line ``s0 + t (s1 - s0)``
        inside the box, or ``None`` if the line misses it."""
        epsilon = 1.0e-5
        tmin, tmax = -1e16, 1e16
        d = s1 - s0
        for axis in (0, 1):
            lo, hi = self.bmin[axis], self.bmax[axis]
            p, da = s0[axis], d[axis]
            if -epsilon <= da <= epsilon:
                if p < lo or p > hi:
                    return None
                continue
            exit_bound, entry_bound = (lo, hi) if da < 0 else (hi, lo)
            t = (exit_bound - p) / da
            if t < tmin:
                return None
            if t <= tmax:
                tmax = t
            t = (entry_bound - p) / da
            if t >= tmin:
                if t > tmax:
                    return None
                tmin = t
        return tmin, tmax


@dataclass(frozen=True, slots=True)
class Box3:
    """Axis-aligned 3D box."""

    bmin: Vector3 = field(default_factory=Vector3)
    bmax: Vector3 = field(default_factory=Vector3)

    def center(self) -> Vector3:
        return 0.5 * (self.bmin + self.bmax)

    def radius(self) -> float:
        return 0.5 * (self.bmax - self.bmin).norm()

    def width(self) -> float:
        return self.bmax.x - self.bmin.x

    def height(self) -> float:
        return self.bmax.y - self.bmin.y

    def depth(self) -> float:
        return self.bmax.z - self.bmin.z


@dataclass(frozen=True, slots=True)
class Ray:
    """Half line with an origin and a direction."""

    origin: Vector3 = field(default_factory=Vector3)
    direction: Vector3 = field(default_factory=Vector3)

    def __call__(self, t: float) -> Vector3:
        return self.origin + t * self.direction

    def reflect(self, p: Vector3, n: Vector3) -> Ray:
        return Ray(p, n - 2 * n * self.direction.dot(n))