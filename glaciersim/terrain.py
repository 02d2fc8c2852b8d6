"""Glacier terrain: bedrock, ice cover and the shallow-ice quantities derived from them."""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import numpy as np

from glaciersim.geometry import Box2, Box3, Ray, Vector2, Vector3
from glaciersim.scalarfield import ScalarField2

logger = logging.getLogger(__name__)

# Neighbour offsets (di, dj) in scan order, centre excluded.
_NEIGHBOURS = tuple(
    (di, dj) for di in (-1, 0, 1) for dj in (-1, 0, 1) if (di, dj) != (0, 0)
)


class GlacierTerrain:
    """Bedrock and ice thickness on a common grid, with ELA and accumulation maps."""

    G = 9.81  # gravity
    RHO = 910.0  # ice density
    GAMMA_D = 7.26e-5  # deformation constant
    GAMMA_S = 3.27  # sliding constant
    STABILITY = 0.125  # CFL factor of the adaptive time step

    def __init__(
        self, bedrock: Optional[ScalarField2] = None, ice: Optional[ScalarField2] = None
    ) -> None:
        if bedrock is None:
            if ice is not None:
                raise ValueError("an ice map needs a bedrock map")
            self.nx = 0
            self.ny = 0
            self.terrain_size = Vector2()
            self.bedrock = ScalarField2()
            self.ice = ScalarField2()
            self.ela = ScalarField2()
            self.beta = ScalarField2()
            self.diffusivity = ScalarField2()
        else:
            domain = bedrock.domain
            nx, ny = bedrock.nx, bedrock.ny
            self.nx = nx
            self.ny = ny
            self.terrain_size = Vector2(domain.width(), domain.height())
            self.bedrock = bedrock.copy()
            self.ice = ice.copy() if ice is not None else ScalarField2(domain, nx, ny)
            self.ela = ScalarField2(domain, nx, ny)
            self.beta = ScalarField2(domain, nx, ny, 1.0)
            self.diffusivity = ScalarField2(domain, nx, ny)

        self.accum_rate = 0.0
        self.ablate_rate = 0.0
        self.factor_udeform = 0.0
        self.factor_uslide = 0.0

    @classmethod
    def with_size(cls, nx: int, ny: int) -> GlacierTerrain:
        """Flat terrain of ``nx`` by ``ny`` cells over the unit square, with zero accumulation."""
        domain = Box2(Vector2(0.0, 0.0), Vector2(1.0, 1.0))
        terrain = cls(ScalarField2(domain, nx, ny))
        terrain.beta.fill(0.0)
        return terrain

    # Simulation setup

    def configure_simulation(
        self,
        ela_map: ScalarField2,
        accum_map: ScalarField2,
        accum_rate: float,
        ablate_rate: float,
        factor_udeform: float,
        factor_uslide: float,
    ) -> None:
        """Set the ELA and accumulation maps and the mass balance and flow factors."""
        self.ela = ela_map.copy()
        self.beta = accum_map.copy()
        self.accum_rate = accum_rate
        self.ablate_rate = ablate_rate
        self.factor_udeform = factor_udeform
        self.factor_uslide = factor_uslide
        logger.info(
            "Config simulation: accum rate %s, ablate rate %s, Udeform * %s, Uslide * %s",
            accum_rate,
            ablate_rate,
            factor_udeform,
            factor_uslide,
        )

    def reset_ice(self) -> None:
        """Remove all ice."""
        self.ice.fill(0.0)

    def set_ice_map(self, icemap: ScalarField2) -> None:
        """Copy ``icemap`` into the ice cover, starting at the grid origin."""
        if icemap.nx > self.ice.nx or icemap.ny > self.ice.ny:
            raise ValueError(
                f"ice map {icemap.nx}x{icemap.ny} larger than terrain "
                f"{self.ice.nx}x{self.ice.ny}"
            )
        self.ice.grid[: icemap.ny, : icemap.nx] = icemap.grid

    def remap_ice_surface(self, hires_bed: ScalarField2) -> ScalarField2:
        """Ice thickness over a finer bedrock, keeping the coarse ice surface.

        The coarse surface is upsampled, the fine bedrock subtracted, and small
        holes and gaps along the glacier margins are then filled in.
        """
        rx, ry = hires_bed.nx, hires_bed.ny
        domain = self.bedrock.domain

        surface = ScalarField2(domain, self.nx, self.ny, 0.0)
        ice_grid = self.ice.grid
        surface.grid[:] = np.where(ice_grid > 0, ice_grid + self.bedrock.grid, 0.0)
        surface_up = surface.set_resolution(rx, ry)

        result = ScalarField2(domain, rx, ry, 0.0)
        bed = hires_bed.grid
        ice_up = result.grid
        ice_up[:] = np.maximum(0.0, surface_up.grid - bed)

        passes = 2 * (rx // self.nx) * (ry // self.ny)
        for _ in range(passes):
            surf = bed + ice_up
            for i in range(1, rx - 1):
                for j in range(1, ry - 1):
                    self._fill_cell(i, j, surf, ice_up, bed)
        return result

    @staticmethod
    def _fill_cell(
        i: int, j: int, surf: np.ndarray, ice_up: np.ndarray, bed: np.ndarray
    ) -> None:
        centre = surf[j, i]
        hole = True
        neighbours = 0
        surface_height = 0.0
        for di, dj in _NEIGHBOURS:
            s = surf[j + dj, i + di]
            hole = s > centre
            if ice_up[j + dj, i + di] > 0:
                surface_height += s
                neighbours += 1
            if not hole:
                break

        b = bed[j, i]
        if hole:
            if neighbours:
                ice_up[j, i] = max(0.0, surface_height / neighbours - b)
            else:
                ice_up[j, i] = 0.0
        elif ice_up[j, i] <= 0 and neighbours >= 3:
            if ice_up[j, i - 1] > 0 and ice_up[j, i + 1] <= 0 and surf[j, i + 1] > surf[j, i - 1]:
                ice_up[j, i] = max(0.0, surf[j, i - 1] - b)
            if ice_up[j, i + 1] > 0 and ice_up[j, i - 1] <= 0 and surf[j, i - 1] > surf[j, i + 1]:
                ice_up[j, i] = max(0.0, surf[j, i + 1] - b)
            if ice_up[j - 1, i] > 0 and ice_up[j + 1, i] <= 0 and surf[j + 1, i] > surf[j - 1, i]:
                ice_up[j, i] = max(0.0, surf[j - 1, i] - b)
            if ice_up[j + 1, i] > 0 and ice_up[j - 1, i] <= 0 and surf[j - 1, i] > surf[j + 1, i]:
                ice_up[j, i] = max(0.0, surf[j + 1, i] - b)

    # Fields and sampling

    def heightfield(self) -> ScalarField2:
        """Bedrock plus ice."""
        return self.bedrock + self.ice

    def bedrock_at(self, p: Vector2) -> float:
        return self.bedrock.value(p)

    def ice_at(self, p: Vector2) -> float:
        return self.ice.value(p)

    def height_at(self, p: Vector2) -> float:
        return self.bedrock.value(p) + self.ice.value(p)

    def height(self, i: int, j: int) -> float:
        return self.bedrock.at(i, j) + self.ice.at(i, j)

    # Physical magnitudes

    def terrain_area(self) -> float:
        return self.terrain_size.x * self.terrain_size.y

    def cell_width(self) -> float:
        return self.terrain_size.x / self.nx

    def cell_height(self) -> float:
        return self.terrain_size.y / self.ny

    def cell_area(self) -> float:
        return self.cell_width() * self.cell_height()

    def is_empty(self) -> bool:
        return self.nx <= 0 or self.ny <= 0

    def vertex_index(self, i: int, j: int) -> int:
        return i + self.nx * j

    def domain(self) -> Box2:
        return self.bedrock.domain

    def bounding_box(self) -> Box3:
        """Box spanning the domain and the bedrock elevation range."""
        dom = self.domain()
        hmin, hmax = self.bedrock.value_range()
        return Box3(Vector3(dom.bmin.x, dom.bmin.y, hmin), Vector3(dom.bmax.x, dom.bmax.y, hmax))

    def ice_volume(self) -> float:
        return self.cell_area() * float(np.sum(self.ice.grid[: self.ny, : self.nx]))

    def ela_value(self, i: int, j: int) -> float:
        return self.ela.at(i, j)

    def above_ela(self, i: int, j: int) -> bool:
        return self.height(i, j) > self.ela.at(i, j)

    def accum_area(self, i: int, j: int) -> bool:
        return self.above_ela(i, j)

    def ice_thickness(self, i: int, j: int) -> float:
        return self.ice.at(i, j)

    def ice_gradient(self, i: int, j: int) -> Vector2:
        """Surface slope; centred differences inside, one-sided on the borders."""
        here = self.height(i, j)
        dip = self.height(i + 1, j) if i < self.nx - 1 else here
        dim = self.height(i - 1, j) if i > 0 else here
        dx = 2 * self.cell_width() if 0 < i < self.nx - 1 else self.cell_width()
        djp = self.height(i, j + 1) if j < self.ny - 1 else here
        djm = self.height(i, j - 1) if j > 0 else here
        dy = 2 * self.cell_height() if 0 < j < self.ny - 1 else self.cell_height()
        return Vector2((dip - dim) / dx, (djp - djm) / dy)

    def ice_stress(self, i: int, j: int) -> float:
        return self.RHO * self.G * self.ice_thickness(i, j) * self.ice_gradient(i, j).norm()

    def ice_speed(self, i: int, j: int) -> float:
        return self.ice_speed_deform(i, j) + self.ice_speed_slide(i, j)

    def ice_speed_deform(self, i: int, j: int) -> float:
        h = self.ice_thickness(i, j)
        s = self.ice_gradient(i, j).norm()
        return self.factor_udeform * self.GAMMA_D * h ** 4 * s * s

    def ice_speed_slide(self, i: int, j: int) -> float:
        h = self.ice_thickness(i, j)
        s = self.ice_gradient(i, j).norm()
        return self.factor_uslide * self.GAMMA_S * h * h * s * s

    def ice_velocity(self, i: int, j: int) -> Vector2:
        """Velocity along the surface gradient; NaN where the surface is flat."""
        grad = self.ice_gradient(i, j)
        n = grad.norm()
        if n == 0.0:
            return Vector2(math.nan, math.nan)
        return self.ice_speed(i, j) * grad / n

    def diffusion_term(self, i: int, j: int) -> float:
        return self.diffusivity.at(i, j)

    def diffusion_term_raw(self, i: int, j: int) -> float:
        return self.ice_thickness(i, j) * self.ice_speed(i, j)

    def yearly_ice(self, with_ice: bool) -> float:
        """Total positive mass balance over the terrain, optionally counting the ice surface."""
        n = self.nx * self.ny
        bed = self.bedrock.grid.reshape(-1)[:n]
        ice = self.ice.grid.reshape(-1)[:n]
        ela = self.ela.grid.reshape(-1)[:n]
        beta = self.beta.grid.reshape(-1)[:n]
        surface = bed + (ice if with_ice else 0.0)
        balance = np.maximum(0.0, self.accum_rate * beta * (surface - ela))
        return float(np.sum(balance)) * self.cell_area()

    def glaciated_area(self) -> float:
        n = self.nx * self.ny
        cells = int(np.count_nonzero(self.ice.grid.reshape(-1)[:n] > 0))
        return cells * self.cell_area()

    def adaptive_timestep(self) -> float:
        """Stable explicit time step for the current diffusivity."""
        dx = self.cell_width()
        dy = self.cell_height()
        values = self.diffusivity.grid
        dmax = max(0.0, float(values.max())) if values.size else 0.0
        return self.STABILITY * min(dx * dx, dy * dy) / max(dmax, 1.0)

    # Queries

    def intersect(self, ray: Ray) -> Optional[Tuple[float, Vector3]]:
        """Ray parameter and point where ``ray`` first goes below the surface, by marching."""
        r0 = ray(0)
        r1 = ray(1)
        hit = self.domain().intersect(Vector2(r0.x, r0.y), Vector2(r1.x, r1.y))
        if hit is None:
            return None
        ta, tb = hit

        t = 0.0 if ta < 0.0 else ta + 0.0001
        while t < tb:
            p = ray(t)
            h = self.height_at(Vector2(p.x, p.y))
            if h > p.z:
                return t, Vector3(p.x, p.y, h)
            t += 1.0
        return None