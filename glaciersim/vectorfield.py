"""Regular grid of 2D vectors over a rectangular domain."""

from __future__ import annotations

from typing import List, Optional, Tuple, Union

from glaciersim.geometry import Box2, Vector2
from glaciersim.mathutils import bilinear

Key = Union[int, Tuple[int, int]]


def _spacing(extent: float, n: int) -> float:
    steps = n - 1
    if steps == 0:
        if extent == 0:
            return float("nan")
        return float("inf") if extent > 0 else float("-inf")
    return extent / steps


class VectorField2:
    """Vector values stored at the ``nx`` by ``ny`` vertices of a grid."""

    def __init__(
        self,
        domain: Optional[Box2] = None,
        nx: int = 0,
        ny: int = 0,
        value: Vector2 = Vector2(),
    ) -> None:
        explicit = domain is not None
        self.domain = domain if explicit else Box2(Vector2(0.0, 0.0), Vector2(1.0, 1.0))
        self.nx = nx
        self.ny = ny
        self._field: List[Vector2] = [value] * (nx * ny)
        if explicit:
            self.cell_size = Vector2(
                _spacing(self.domain.width(), nx), _spacing(self.domain.height(), ny)
            )
        else:
            self.cell_size = Vector2()

    @property
    def size_x(self) -> int:
        return self.nx

    @property
    def size_y(self) -> int:
        return self.ny

    def value_range(self) -> Tuple[Vector2, Vector2]:
        """Component-wise minimum and maximum over the field."""
        if not self._field:
            raise ValueError("empty vector field has no range")
        xs = [v.x for v in self._field]
        ys = [v.y for v in self._field]
        return Vector2(min(xs), min(ys)), Vector2(max(xs), max(ys))

    def vertex_index(self, i: int, j: int) -> int:
        return i + self.nx * j

    def valid_index(self, i: int, j: int) -> bool:
        """True if ``(i, j)`` is the lower corner of a full grid cell."""
        return 0 <= i < self.nx - 1 and 0 <= j < self.ny - 1

    def cell_coords(self, p: Vector2) -> Tuple[int, int, float, float]:
        """Cell indices and local coordinates of point ``p``."""
        q = p - self.domain.bmin
        u = q.x / self.cell_size.x
        v = q.y / self.cell_size.y
        i = int(u)
        j = int(v)
        return i, j, u - i, v - j

    def domain_coords(self, i: int, j: int) -> Vector2:
        return self.domain.bmin + Vector2(i * self.cell_size.x, j * self.cell_size.y)

    def _flat(self, key: Key) -> int:
        if isinstance(key, tuple):
            i, j = key
            if not (0 <= i < self.nx and 0 <= j < self.ny):
                raise IndexError(f"vertex ({i}, {j}) outside {self.nx}x{self.ny} grid")
            return self.vertex_index(i, j)
        if not 0 <= key < len(self._field):
            raise IndexError(f"index {key} outside field of {len(self._field)} values")
        return key

    def at(self, i: int, j: int) -> Vector2:
        return self._field[self._flat((i, j))]

    def __getitem__(self, key: Key) -> Vector2:
        return self._field[self._flat(key)]

    def __setitem__(self, key: Key, value: Vector2) -> None:
        self._field[self._flat(key)] = value

    def __len__(self) -> int:
        return len(self._field)

    def value(self, p: Vector2) -> Vector2:
        """Bilinearly interpolated vector at ``p``; zero outside the grid cells."""
        i, j, u, v = self.cell_coords(p)
        if not self.valid_index(i, j):
            return Vector2()
        a00 = self.at(i, j)
        a01 = self.at(i, j + 1)
        a10 = self.at(i + 1, j)
        a11 = self.at(i + 1, j + 1)
        return Vector2(
            bilinear(a00.x, a10.x, a11.x, a01.x, u, v),
            bilinear(a00.y, a10.y, a11.y, a01.y, u, v),
        )