"""Piecewise linear colour ramps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from glaciersim.geometry import Vector3
from glaciersim.mathutils import linear_step

_WHITE = Vector3(1.0, 1.0, 1.0)


@dataclass(frozen=True)
class ColorPalette:
    """Colours placed at increasing anchor values, interpolated linearly."""

    colors: Tuple[Vector3, ...] = field(default_factory=lambda: (_WHITE,))
    anchors: Tuple[float, ...] = field(default_factory=lambda: (0.0,))

    def __post_init__(self) -> None:
        object.__setattr__(self, "colors", tuple(self.colors))
        object.__setattr__(self, "anchors", tuple(self.anchors))

    def color(self, t: float) -> Vector3:
        """Colour of the ramp at value ``t``."""
        if not self.colors:
            return _WHITE
        if len(self.colors) == 1:
            return self.colors[0]
        if t < self.anchors[0]:
            return self.colors[0]
        if t > self.anchors[-1]:
            return self.colors[-1]
        for (c0, c1), (a0, a1) in zip(
            zip(self.colors, self.colors[1:]), zip(self.anchors, self.anchors[1:])
        ):
            if t < a1:
                s = linear_step(t, a0, a1)
                return (1 - s) * c0 + s * c1
        return _WHITE

    @classmethod
    def cool_warm(cls) -> ColorPalette:
        """Diverging blue-white-red ramp over ``[0, 1]``."""
        cool = Vector3(97, 130, 234) / 255.0
        white = Vector3(221, 220, 219) / 255.0
        warm = Vector3(220, 94, 75) / 255.0
        return cls((cool, white, warm), (0.0, 0.5, 1.0))

    @classmethod
    def relief(cls) -> ColorPalette:
        """Elevation ramp from green lowlands to snowy peaks."""
        colors = (
            Vector3(160, 220, 105) / 255.0,
            Vector3(1.0, 0.9, 0.45),
            Vector3(168 / 255.0, 155 / 255.0, 138 / 255.0),
            Vector3(0.95, 0.95, 0.95),
        )
        return cls(colors, (0.0, 150.0, 250.0, 400.0))