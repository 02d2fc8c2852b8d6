"""Perspective camera with orbit and pan controls."""

from __future__ import annotations

import math
from typing import Optional

from glaciersim.geometry import Box3, Ray, Vector3

_WORLD_UP = Vector3(0.0, 0.0, 1.0)


class Camera:
    """Look-at camera described by an eye, a target point and an up vector."""

    def __init__(
        self,
        eye: Optional[Vector3] = None,
        at: Optional[Vector3] = None,
        up: Optional[Vector3] = None,
        near: float = 1.0,
        far: Optional[float] = None,
    ) -> None:
        if far is None:
            # A fully default camera has a short far plane; an explicitly
            # placed one reaches much further.
            far = 1000.0 if eye is None and at is None else 100000.0
        self.eye = eye if eye is not None else Vector3()
        self.at = at if at is not None else Vector3(0.0, 1.0, 0.0)
        self.up = up if up is not None else _WORLD_UP
        self.near_plane = near
        self.far_plane = far
        # Aperture (inches) and focal length (millimetres).
        self.cah = 0.980
        self.cav = 0.735
        self.fl = 35.0

    def view_dir(self) -> Vector3:
        """Unit vector from the eye towards the target."""
        return (self.at - self.eye).normalized()

    def angle_of_view_h(self, w: float, h: float) -> float:
        """Horizontal angle of view in radians."""
        return 2.0 * math.atan(self.cah * 25.4 * 0.5 / self.fl)

    def angle_of_view_v(self, w: float, h: float) -> float:
        """Vertical angle of view in radians for a ``w`` by ``h`` viewport."""
        avh = self.angle_of_view_h(w, h)
        return 2.0 * math.atan(math.tan(avh / 2.0) * float(h) / float(w))

    def set_at(self, p: Vector3) -> None:
        """Retarget the camera and reset the up vector to world up."""
        self.at = p
        self.up = _WORLD_UP

    def set_planes(self, near: float, far: float) -> None:
        self.near_plane = near
        self.far_plane = far

    def up_down_round(self, a: float) -> None:
        """Orbit the eye vertically around the target by angle ``a``."""
        z = self.at - self.eye
        length = z.norm()
        z = z / length
        left = self.up.cross(z).normalized()
        z = z * math.cos(a) + self.up * math.sin(a)
        self.up = z.cross(left)
        self.eye = self.at - z * length

    def left_right_round(self, a: float) -> None:
        """Orbit the eye horizontally around the target by angle ``a``."""
        e = self.eye - self.at
        left = self.up.cross(e)
        c, s = math.cos(a), math.sin(a)
        e = Vector3(e.x * c - e.y * s, e.x * s + e.y * c, e.z)
        left = Vector3(left.x * c - left.y * s, left.x * s + left.y * c, 0.0)
        self.up = left.cross(-e).normalized()
        self.eye = self.at + e

    def back_forth(self, a: float, move_at: bool = False) -> None:
        """Move the eye (and optionally the target) along the view direction."""
        z = self.view_dir()
        self.eye = self.eye + a * z
        if move_at:
            self.at = self.at + a * z

    def up_down_plane(self, a: float) -> None:
        """Translate eye and target along the camera's vertical axis."""
        z = self.view_dir()
        left = _WORLD_UP.cross(z).normalized()
        offset = a * z.cross(left)
        self.eye = self.eye + offset
        self.at = self.at + offset

    def left_right_plane(self, a: float) -> None:
        """Translate eye and target sideways in the horizontal plane."""
        d = self.at - self.eye
        z = Vector3(d.x, d.y, 0.0).normalized()
        left = _WORLD_UP.cross(z).normalized()
        self.eye = self.eye + a * left
        self.at = self.at + a * left

    def pixel_to_ray(self, px: int, py: int, w: int, h: int) -> Ray:
        """Ray from the eye through pixel ``(px, py)`` of a ``w`` by ``h`` viewport."""
        view = self.view_dir()
        horizontal = view.cross(self.up).normalized()
        vertical = horizontal.cross(view).normalized()

        length = 1.0
        rad = self.angle_of_view_v(w, h)
        v_length = math.tan(rad / 2.0) * length
        h_length = v_length * (float(w) / float(h))
        vertical = vertical * v_length
        horizontal = horizontal * h_length

        x = (px - w / 2.0) / (w / 2.0)
        y = (h / 2.0 - py) / (h / 2.0)

        direction = (view * length + horizontal * x + vertical * y).normalized()
        return Ray(self.eye, direction)

    @classmethod
    def view(cls, box: Box3) -> Camera:
        """Camera framing ``box`` from above and to the side."""
        half = 0.5 * (box.bmax - box.bmin)
        r = Vector3(half.x, half.y, 0.0).norm()
        v = Vector3(2.0 * half.x, 2.0 * half.y, -r)
        center = box.center()
        return cls(center - v, center, _WORLD_UP, r, 3 * r)