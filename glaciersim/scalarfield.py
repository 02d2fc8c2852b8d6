"""Regular grid of scalar values (heights, thicknesses, rates) over a rectangle."""

from __future__ import annotations

import math
from functools import reduce
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

from glaciersim.geometry import Box2, Vector2, Vector3
from glaciersim.mathutils import bilinear, cubic_smooth, lerp
from glaciersim.palette import ColorPalette
from glaciersim.vectorfield import VectorField2

Key = Union[int, Tuple[int, int]]

_BLUR_KERNEL = (1.0, 8.0, 28.0, 56.0, 70.0, 56.0, 28.0, 8.0, 1.0)
_SMOOTH_KERNEL = np.array([[1.0, 2.0, 1.0], [2.0, 4.0, 2.0], [1.0, 2.0, 1.0]])
_SIXTEEN_BIT_MODES = ("I", "I;16", "I;16B", "I;16L", "I;16N")
_MAX_24BIT = 16777216.0 - 1.0


def _spacing(extent: float, n: int) -> float:
    steps = n - 1
    if steps == 0:
        if extent == 0:
            return float("nan")
        return float("inf") if extent > 0 else float("-inf")
    return extent / steps


def _linear_step_array(x: np.ndarray, a: float, b: float) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = (x - a) / (b - a)
    return np.where(x < a, 0.0, np.where(x > b, 1.0, scaled))


class ScalarField2:
    """Scalar values stored at the ``nx`` by ``ny`` vertices of a grid.

    Vertex ``(i, j)`` lives at flat index ``i + nx * j``.
    """

    def __init__(
        self,
        domain: Optional[Box2] = None,
        nx: int = 0,
        ny: int = 0,
        value: float = 0.0,
    ) -> None:
        explicit = domain is not None
        self.domain = domain if explicit else Box2(Vector2(0.0, 0.0), Vector2(1.0, 1.0))
        self.nx = nx
        self.ny = ny
        self._field = np.full(nx * ny, float(value), dtype=np.float64)
        if explicit:
            self.cell_size = Vector2(
                _spacing(self.domain.width(), nx), _spacing(self.domain.height(), ny)
            )
        else:
            self.cell_size = Vector2()

    @classmethod
    def from_image(
        cls,
        domain: Box2,
        image: Image.Image,
        a: float = 0.0,
        b: float = 1.0,
        grayscale: bool = True,
    ) -> ScalarField2:
        """Field sampled from an image, pixel intensities mapped linearly to ``[a, b]``.

        Grayscale images are read as 16-bit or 8-bit luminance; colour images
        pack their RGB channels into a single 24-bit value.
        """
        nx, ny = image.size
        result = cls(domain, nx, ny)
        if grayscale and image.mode in _SIXTEEN_BIT_MODES:
            t = np.asarray(image, dtype=np.float64) / 65535.0
        else:
            rgb = np.asarray(image.convert("RGB"), dtype=np.int64)
            r, g, bl = rgb[..., 0], rgb[..., 1], rgb[..., 2]
            if grayscale:
                t = ((r * 11 + g * 16 + bl * 5) // 32) / 255.0
            else:
                t = ((r << 16) | (g << 8) | bl) / _MAX_24BIT
        result._field = (a + t * (b - a)).reshape(-1).astype(np.float64)
        return result

    def copy(self) -> ScalarField2:
        """Independent copy of the field."""
        other = ScalarField2.__new__(ScalarField2)
        other.domain = self.domain
        other.nx = self.nx
        other.ny = self.ny
        other.cell_size = self.cell_size
        other._field = self._field.copy()
        return other

    @property
    def size_x(self) -> int:
        return self.nx

    @property
    def size_y(self) -> int:
        return self.ny

    @property
    def grid(self) -> np.ndarray:
        """Writable view of the values shaped ``(ny, nx)``."""
        return self._field.reshape(self.ny, self.nx)

    def __len__(self) -> int:
        return self._field.size

    def value_range(self) -> Tuple[float, float]:
        """Minimum and maximum value of the field."""
        if self._field.size == 0:
            raise ValueError("empty scalar field has no range")
        return float(self._field.min()), float(self._field.max())

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

    def cell_integer_coords(self, p: Vector2) -> Tuple[int, int]:
        """Cell indices of point ``p``."""
        q = p - self.domain.bmin
        return int(q.x / self.cell_size.x), int(q.y / self.cell_size.y)

    def domain_coords(self, i: int, j: int) -> Vector2:
        return self.domain.bmin + Vector2(i * self.cell_size.x, j * self.cell_size.y)

    def _flat(self, key: Key) -> int:
        if isinstance(key, tuple):
            i, j = key
            if not (0 <= i < self.nx and 0 <= j < self.ny):
                raise IndexError(f"vertex ({i}, {j}) outside {self.nx}x{self.ny} grid")
            return self.vertex_index(i, j)
        if not 0 <= key < self._field.size:
            raise IndexError(f"index {key} outside field of {self._field.size} values")
        return key

    def at(self, i: int, j: int) -> float:
        return float(self._field[self._flat((i, j))])

    def __getitem__(self, key: Key) -> float:
        return float(self._field[self._flat(key)])

    def __setitem__(self, key: Key, value: float) -> None:
        self._field[self._flat(key)] = value

    def value(self, p: Vector2) -> float:
        """Bilinearly interpolated value at ``p``; zero outside the grid cells."""
        i, j, u, v = self.cell_coords(p)
        if not self.valid_index(i, j):
            return 0.0
        return bilinear(
            self.at(i, j), self.at(i + 1, j), self.at(i + 1, j + 1), self.at(i, j + 1), u, v
        )

    def vertex(self, i: int, j: int) -> Vector3:
        """Position of vertex ``(i, j)`` with its value as elevation."""
        return Vector3(
            self.domain.bmin.x + i * self.cell_size.x,
            self.domain.bmin.y + j * self.cell_size.y,
            self.at(i, j),
        )

    def normal(self, i: int, j: int) -> Vector3:
        """Unit surface normal at vertex ``(i, j)``, area weighted over adjacent triangles."""
        v = self.vertex
        p = v(i, j)

        def tri(a: Vector3, b: Vector3) -> Vector3:
            return 0.5 * (a - p).cross(b - p)

        last_i, last_j = self.nx - 1, self.ny - 1
        if i == 0:
            if j == 0:
                parts = [tri(v(i + 1, j), v(i + 1, j + 1)), tri(v(i + 1, j + 1), v(i, j + 1))]
            elif j == last_j:
                parts = [tri(v(i, j - 1), v(i + 1, j))]
            else:
                parts = [
                    tri(v(i + 1, j), v(i + 1, j + 1)),
                    tri(v(i + 1, j + 1), v(i, j + 1)),
                    tri(v(i, j - 1), v(i + 1, j)),
                ]
        elif i == last_i:
            if j == 0:
                parts = [tri(v(i, j + 1), v(i - 1, j))]
            elif j == last_j:
                parts = [tri(v(i - 1, j - 1), v(i, j - 1)), tri(v(i - 1, j), v(i - 1, j - 1))]
            else:
                parts = [
                    tri(v(i, j + 1), v(i - 1, j)),
                    tri(v(i - 1, j), v(i - 1, j - 1)),
                    tri(v(i - 1, j - 1), v(i, j - 1)),
                ]
        elif j == 0:
            parts = [
                tri(v(i + 1, j), v(i + 1, j + 1)),
                tri(v(i + 1, j + 1), v(i, j + 1)),
                tri(v(i, j + 1), v(i - 1, j)),
            ]
        elif j == last_j:
            parts = [
                tri(v(i - 1, j), v(i - 1, j - 1)),
                tri(v(i - 1, j - 1), v(i, j - 1)),
                tri(v(i, j - 1), v(i + 1, j)),
            ]
        else:
            parts = [
                tri(v(i + 1, j), v(i + 1, j + 1)),
                tri(v(i + 1, j + 1), v(i, j + 1)),
                tri(v(i, j + 1), v(i - 1, j)),
                tri(v(i - 1, j), v(i - 1, j - 1)),
                tri(v(i - 1, j - 1), v(i, j - 1)),
                tri(v(i, j - 1), v(i + 1, j)),
            ]
        return reduce(lambda s, n: s + n, parts).normalized()

    def gradient(self, i: int, j: int) -> Vector2:
        """Finite difference gradient at vertex ``(i, j)``; one-sided on the borders."""
        cx, cy = self.cell_size.x, self.cell_size.y
        if i == 0:
            gx = (self.at(i + 1, j) - self.at(i, j)) / cx
        elif i == self.nx - 1:
            gx = (self.at(i, j) - self.at(i - 1, j)) / cx
        else:
            gx = (self.at(i + 1, j) - self.at(i - 1, j)) / (2.0 * cx)
        if j == 0:
            gy = (self.at(i, j + 1) - self.at(i, j)) / cy
        elif j == self.ny - 1:
            gy = (self.at(i, j) - self.at(i, j - 1)) / cy
        else:
            gy = (self.at(i, j + 1) - self.at(i, j - 1)) / (2.0 * cy)
        return Vector2(gx, gy)

    def gradient_field(self) -> VectorField2:
        """Gradient at every vertex."""
        result = VectorField2(self.domain, self.nx, self.ny)
        for j in range(self.ny):
            for i in range(self.nx):
                result[i, j] = self.gradient(i, j)
        return result

    def fill(self, d: float) -> None:
        self._field.fill(d)

    def smooth(self, n: int = 1) -> None:
        """Smooth with a 3x3 binomial kernel, renormalised on borders and corners.

        Every pass reads the unsmoothed values, so any ``n >= 1`` gives one pass.
        """
        if n <= 0:
            return
        g = self.grid
        padded = np.pad(g, 1)
        ones = np.pad(np.ones_like(g), 1)
        acc = np.zeros_like(g)
        weights = np.zeros_like(g)
        for dj in range(3):
            for di in range(3):
                k = _SMOOTH_KERNEL[dj, di]
                acc += k * padded[dj:dj + self.ny, di:di + self.nx]
                weights += k * ones[dj:dj + self.ny, di:di + self.nx]
        self._field = (acc / weights).reshape(-1)

    def gaussian_blur(self) -> None:
        """Separable 9-tap binomial blur, along ``j`` first and then along ``i``.

        Neighbours on the last row or column never contribute.
        """
        temp = self._blur_axis(self.grid, axis=0)
        self._field = self._blur_axis(temp, axis=1).reshape(-1)

    @staticmethod
    def _blur_axis(src: np.ndarray, axis: int) -> np.ndarray:
        n = src.shape[axis]
        out = np.zeros_like(src)
        weights = np.zeros(n)
        idx = np.arange(n)
        for d, k in zip(range(-4, 5), _BLUR_KERNEL):
            src_idx = idx + d
            mask = (src_idx >= 0) & (src_idx < n - 1)
            if axis == 0:
                out[mask, :] += k * src[src_idx[mask], :]
            else:
                out[:, mask] += k * src[:, src_idx[mask]]
            weights[mask] += k
        w = weights[:, None] if axis == 0 else weights[None, :]
        with np.errstate(divide="ignore", invalid="ignore"):
            return out / w

    def step(self, a: float, b: float) -> None:
        """Replace each value by its linear step between ``a`` and ``b``."""
        self._field = _linear_step_array(self._field, a, b)

    def normalize(self) -> None:
        """Rescale values to ``[0, 1]``; a constant field becomes all ones."""
        a, b = self.value_range()
        if a == b:
            self._field.fill(1.0)
        else:
            self._field = (self._field - a) / (b - a)

    def add_gaussian(self, center: Vector2, radius: float, height: float) -> None:
        """Add a cubic bump of ``height`` and ``radius`` centred on ``center``."""
        box = Box2.around(center, radius)
        ia, ja = self.cell_integer_coords(box.bmin)
        ib, jb = self.cell_integer_coords(box.bmax)

        left, right = max(ia, 0), min(ib, self.nx - 2)
        top, bottom = max(ja, 0), min(jb, self.ny - 2)
        if left > right or top > bottom:
            left = right = top = bottom = -1
            x0, y0, width, height_cells = 0, 0, 0, 0
        else:
            x0, y0 = left, top
            width, height_cells = right - left + 1, bottom - top + 1

        r2 = radius * radius
        for y in range(y0, y0 + height_cells + 1):
            for x in range(x0, x0 + width + 1):
                u = (center - self.domain_coords(x, y)).squared_norm()
                if u < r2:
                    self._field[self.vertex_index(x, y)] += height * cubic_smooth(u, r2)

    def set_resolution(self, nx: int, ny: int) -> ScalarField2:
        """Resampled copy of the field on an ``nx`` by ``ny`` grid over the same domain."""
        sampled = ScalarField2(self.domain, nx, ny)
        last_x, last_y = self.nx - 1, self.ny - 1

        sampled[0, 0] = self.at(0, 0)
        sampled[0, ny - 1] = self.at(0, last_y)
        sampled[nx - 1, 0] = self.at(last_x, 0)
        sampled[nx - 1, ny - 1] = self.at(last_x, last_y)

        for i in range(1, nx - 1):
            tx = last_x * (i / float(nx - 1))
            x0, x1 = int(math.floor(tx)), int(math.ceil(tx))
            sampled[i, 0] = lerp(self.at(x0, 0), self.at(x1, 0), tx - x0)
            sampled[i, ny - 1] = lerp(self.at(x0, last_y), self.at(x1, last_y), tx - x0)
        for j in range(1, ny - 1):
            ty = last_y * (j / float(ny - 1))
            y0, y1 = int(math.floor(ty)), int(math.ceil(ty))
            sampled[0, j] = lerp(self.at(0, y0), self.at(0, y1), ty - y0)
            sampled[nx - 1, j] = lerp(self.at(last_x, y0), self.at(last_x, y1), ty - y0)

        for j in range(1, ny - 1):
            for i in range(1, nx - 1):
                sampled[i, j] = self.value(sampled.domain_coords(i, j))
        return sampled

    def _range_or(self, a: Optional[float], b: Optional[float]) -> Tuple[float, float]:
        if a is not None and b is not None:
            return a, b
        lo, hi = self.value_range()
        if lo == hi:
            hi = lo + 1.0
        return lo, hi

    def create_image(
        self, a: Optional[float] = None, b: Optional[float] = None, grayscale: bool = True
    ) -> Image.Image:
        """RGB image of the values mapped from ``[a, b]`` (the field's range by default).

        Grayscale images use 8 bits; colour images spread 24 bits over the channels.
        """
        a, b = self._range_or(a, b)
        y = _linear_step_array(self.grid, a, b)
        if grayscale:
            c = (y * 255.0).astype(np.int64)
            rgb = np.stack([c, c, c], axis=-1)
        else:
            c = (y * _MAX_24BIT).astype(np.int64)
            rgb = np.stack([(c >> 16) & 255, (c >> 8) & 255, c & 255], axis=-1)
        return Image.fromarray(rgb.astype(np.uint8))

    def create_palette_image(
        self, palette: ColorPalette, a: Optional[float] = None, b: Optional[float] = None
    ) -> Image.Image:
        """RGB image colouring values mapped from ``[a, b]`` through ``palette``."""
        a, b = self._range_or(a, b)
        y = _linear_step_array(self.grid, a, b)
        rgb = np.empty((self.ny, self.nx, 3), dtype=np.uint8)
        for j in range(self.ny):
            for i in range(self.nx):
                rgb[j, i] = palette.color(float(y[j, i])).to_rgb()
        return Image.fromarray(rgb)

    def _operand(self, other: Union[ScalarField2, float]) -> Union[np.ndarray, float]:
        if isinstance(other, ScalarField2):
            if other._field.size != self._field.size:
                raise ValueError(
                    f"field sizes differ: {self._field.size} and {other._field.size}"
                )
            return other._field
        return float(other)

    def __iadd__(self, other: Union[ScalarField2, float]) -> ScalarField2:
        self._field += self._operand(other)
        return self

    def __imul__(self, d: float) -> ScalarField2:
        self._field *= float(d)
        return self

    def __add__(self, other: Union[ScalarField2, float]) -> ScalarField2:
        result = self.copy()
        result += other
        return result