"""
Geometry interface consumed by sources and transport operators.

The kernel only asks three questions of a geometry:
  which_cell(r)               -> cell handle
  what_is_at(r)               -> (material index, unique id)
  distance_to_boundary(r, u)  -> distance along u to the next surface

OUTSIDE_MAT is returned by what_is_at() for points outside the modelled
domain. Sources and operators hold a borrowed reference to the geometry;
whoever assembles the run owns it and must keep it alive.

Two simple realisations are provided so the kernel can be exercised end
to end:

  CylinderGeometry: core cylinder inside a reflector shell, centred at
                    the origin, z-axis is the cylinder axis
  BoxGeometry:      one axis-aligned box of a single material
"""
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .constants import INFINITY, OUTSIDE_MAT, SURFACE_TOL

# Cell handles of CylinderGeometry
CORE = 0
REFLECTOR = 1
OUTSIDE = -1


class Geometry(ABC):
    """Boundary-query interface of the external geometry."""

    @abstractmethod
    def which_cell(self, r) -> int:
        """Cell handle containing *r* (OUTSIDE when outside the domain)."""

    @abstractmethod
    def what_is_at(self, r) -> Tuple[int, int]:
        """(material index, unique id) at *r*; OUTSIDE_MAT outside."""

    @abstractmethod
    def distance_to_boundary(self, r, direction) -> float:
        """Distance to the nearest boundary.

        In CORE: nearest of core wall, top and bottom.
        In REFLECTOR: core surfaces hit from outside and the outer
        surfaces.
        """
        x, y, z = float(r[0]), float(r[1]), float(r[2])
        ux, uy, uz = float(direction[0]), float(direction[1]), float(direction[2])
        cell = self.which_cell(r)

        if cell == CORE:
            return min(
                _dist_to_cylinder(x, y, ux, uy, self.core_radius, outward=True),
                _dist_to_plane_z(z, uz, self.core_half_height),
                _dist_to_plane_z(z, uz, -self.core_half_height),
            )

        elif cell == REFLECTOR:
            best_d = min(
                _dist_to_cylinder(x, y, ux, uy, self.outer_radius, outward=True),
                _dist_to_plane_z(z, uz, self.outer_half_height),
                _dist_to_plane_z(z, uz, -self.outer_half_height),
            )

            d_core_r = _dist_to_cylinder(x, y, ux, uy, self.core_radius, outward=False)
            if d_core_r < best_d and abs(z + uz * d_core_r) < self.core_half_height:
                best_d = d_core_r

            for z_plane in (self.core_half_height, -self.core_half_height):
                d_plane = _dist_to_plane_z(z, uz, z_plane)
                if d_plane < best_d:
                    x_at = x + ux * d_plane
                    y_at = y + uy * d_plane
                    if x_at * x_at + y_at * y_at < self.core_radius**2:
                        best_d = d_plane

            return best_d

        return INFINITY


@dataclass
class BoxGeometry(Geometry):
    """Axis-aligned box [lower, upper] filled with one material."""
    lower: Tuple[float, float, float] = (-1.0, -1.0, -1.0)
    upper: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    material: int = 1

    def __post_init__(self):
        lo = np.asarray(self.lower, dtype=np.float64)
        hi = np.asarray(self.upper, dtype=np.float64)
        if lo.shape != (3,) or hi.shape != (3,) or np.any(hi <= lo):
            raise ValueError(f"Invalid box bounds {self.lower} .. {self.upper}")
        self.lower = tuple(float(v) for v in lo)
        self.upper = tuple(float(v) for v in hi)

    @property
    def volume(self):
        return float(np.prod(np.subtract(self.upper, self.lower)))

    def which_cell(self, r) -> int:
        for i in range(3):
            if not self.lower[i] < r[i] < self.upper[i]:
                return OUTSIDE
        return CORE

    def what_is_at(self, r) -> Tuple[int, int]:
        if self.which_cell(r) == OUTSIDE:
            return OUTSIDE_MAT, OUTSIDE
        return self.material, CORE

    def distance_to_boundary(self, r, direction) -> float:
        if self.which_cell(r) == OUTSIDE:
            return INFINITY
        d = INFINITY
        for i in range(3):
            u = float(direction[i])
            if u > 0.0:
                d = min(d, (self.upper[i] - r[i]) / u)
            elif u < 0.0:
                d = min(d, (self.lower[i] - r[i]) / u)
        return d


def _dist_to_cylinder(x, y, ux, uy, R, outward=True):
    """Distance to the z-aligned cylinder of radius R.

    Solves (x + ux*t)^2 + (y + uy*t)^2 = R^2, i.e.
    a*t^2 + 2*b*t + c = 0 with a = ux^2 + uy^2, b = x*ux + y*uy,
    c = x^2 + y^2 - R^2.

    outward=True  -> particle inside, wants the exit distance
    outward=False -> particle outside, wants the entry distance
    """
    a = ux * ux + uy * uy
    if a < 1e-20:
        return INFINITY  # parallel to the axis

    b = x * ux + y * uy
    c = x * x + y * y - R * R
    disc = b * b - a * c
    if disc < 0.0:
        return INFINITY

    sqrt_disc = math.sqrt(disc)
    t1 = (-b - sqrt_disc) / a
    t2 = (-b + sqrt_disc) / a

    if outward:
        if c < 0.0:
            return t2 if t2 > SURFACE_TOL else INFINITY
        if t1 > SURFACE_TOL:
            return t1
        return t2 if t2 > SURFACE_TOL else INFINITY

    if c > 0.0 and t1 > SURFACE_TOL:
        return t1
    return INFINITY


def _dist_to_plane_z(z, uz, z_plane):
    """Distance along uz to the plane z = z_plane."""
    if abs(uz) < 1e-20:
        return INFINITY
    t = (z_plane - z) / uz
    return t if t > SURFACE_TOL else INFINITY
