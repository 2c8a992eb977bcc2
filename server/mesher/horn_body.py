"""
Horn body sweep.

Each axial station of the profile becomes one ring of ``resolution``
points; consecutive rings are joined by quads split into two triangles.

Winding conventions (x is the horn axis, rings run counter-clockwise in
the (y, z) plane):
  outward shell  (a, b, c), (b, d, c)
  inward shell   (a, c, b), (b, c, d)
where a, b are neighbours on station i and c, d the same slots on i + 1.

A double wall whose end carries a plate stops its outer shell at the back
face of that plate; the plate then closes the wall.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .constants import DEFAULT_AXIAL_NORMAL, EPSILON, MIN_PROFILE_POINTS
from .contract import AxialProfile, CrossSectionMode, HornGeometry, HornValidationError, Mesh
from .cross_section import edge_shares_for, get_sampler
from .morph import morph_cross_section, morph_factor_at
from .profile import dimensions_at, trim_end, trim_start

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class HornBody:
    mesh: Mesh
    # Innermost rings at each end, (resolution, 2) arrays of (y, z).
    throat_loop: np.ndarray
    mouth_loop: np.ndarray
    throat_x: float
    mouth_x: float
    throat_dims: Tuple[float, float]
    mouth_dims: Tuple[float, float]
    mouth_mode: CrossSectionMode
    double_wall: bool
    # Outer shell end rings and where they sit; None on a single wall.
    outer_throat_loop: Optional[np.ndarray] = None
    outer_mouth_loop: Optional[np.ndarray] = None
    outer_throat_x: Optional[float] = None
    outer_mouth_x: Optional[float] = None
    # Outside of the wall in the mouth plane; a horn flange is sized from it.
    mouth_outline: Optional[np.ndarray] = None
    mouth_outline_dims: Optional[Tuple[float, float]] = None


class StationShaper:
    """Per-station loop source, resolved once per build.

    Rectangular edge shares come from the mouth size and hold for every
    station of both shells, so corners keep their slots along the sweep.
    """

    def __init__(self, geometry: HornGeometry, resolution: int, mouth_dims: Tuple[float, float]):
        self.resolution = int(resolution)
        self.shape_profile = geometry.shape_profile or None
        self.source = geometry.throat_shape or geometry.mode
        self.target = geometry.mouth_shape or geometry.mode
        self.sampler = get_sampler(geometry.mode)
        cornered = [m for m in (geometry.mode, self.source, self.target) if m.has_corners]
        self.edge_shares = (
            edge_shares_for(cornered[0], 0.5 * mouth_dims[0], 0.5 * mouth_dims[1], self.resolution)
            if cornered else None
        )

    def mode_at(self, x: float) -> CrossSectionMode:
        if self.shape_profile is None:
            return self.sampler.mode
        return self.target if morph_factor_at(self.shape_profile, x) >= 0.5 else self.source

    def loop(self, x: float, half_width: float, half_height: float) -> np.ndarray:
        if self.shape_profile is None:
            return self.sampler.sample(half_width, half_height, self.resolution, self.edge_shares)
        factor = morph_factor_at(self.shape_profile, x)
        return morph_cross_section(
            self.source, self.target, factor, half_width, half_height, self.resolution,
            edge_shares=self.edge_shares,
        )


def radial_normals(loop: np.ndarray, inward: bool = False) -> np.ndarray:
    """In-plane unit normals (0, y, z)/|(y, z)|; near-zero rings get the axial default."""
    y, z = loop[:, 0], loop[:, 1]
    lengths = np.hypot(y, z)
    normals = np.tile(np.asarray(DEFAULT_AXIAL_NORMAL, dtype=float), (len(loop), 1))
    ok = lengths > EPSILON
    sign = -1.0 if inward else 1.0
    normals[ok, 0] = 0.0
    normals[ok, 1] = sign * y[ok] / lengths[ok]
    normals[ok, 2] = sign * z[ok] / lengths[ok]
    degenerate = int(np.count_nonzero(~ok))
    if degenerate:
        logger.debug("[Mesher] %d degenerate ring vertices use the default axial normal.", degenerate)
    return normals


def shell_triangles(stations: int, resolution: int, base: int = 0, outward: bool = True) -> np.ndarray:
    i = np.arange(stations - 1)[:, None]
    j = np.arange(resolution)[None, :]
    a = base + i * resolution + j
    b = base + i * resolution + (j + 1) % resolution
    c = a + resolution
    d = b + resolution
    if outward:
        first, second = (a, b, c), (b, d, c)
    else:
        first, second = (a, c, b), (b, c, d)
    quads = np.stack([np.stack(first, axis=-1), np.stack(second, axis=-1)], axis=2)
    return quads.reshape(-1, 3)


def _band_triangles(inner_base: int, outer_base: int, resolution: int, facing_throat: bool) -> np.ndarray:
    j = np.arange(resolution)
    p = inner_base + j
    p1 = inner_base + (j + 1) % resolution
    q = outer_base + j
    q1 = outer_base + (j + 1) % resolution
    if facing_throat:
        first, second = (p, p1, q), (p1, q1, q)
    else:
        first, second = (p, q, p1), (p1, q, q1)
    return np.stack([np.stack(first, axis=-1), np.stack(second, axis=-1)], axis=1).reshape(-1, 3)


def _cap_triangles(center: int, ring_base: int, resolution: int, facing_throat: bool) -> np.ndarray:
    j = np.arange(resolution)
    p = ring_base + j
    p1 = ring_base + (j + 1) % resolution
    c = np.full(resolution, center)
    tri = (c, p1, p) if facing_throat else (c, p, p1)
    return np.stack(tri, axis=-1)


def _ring_positions(xs: np.ndarray, rings: List[np.ndarray]) -> np.ndarray:
    out = np.empty((len(rings) * len(rings[0]), 3))
    n = len(rings[0])
    for k, (x, ring) in enumerate(zip(xs, rings)):
        out[k * n:(k + 1) * n, 0] = x
        out[k * n:(k + 1) * n, 1:] = ring
    return out


def _station_dims(geometry: HornGeometry, profile: AxialProfile, xs: np.ndarray) -> List[Tuple[float, float]]:
    return [
        dimensions_at(profile, geometry.width_profile, geometry.height_profile, x,
                      geometry.width, geometry.height)
        for x in xs
    ]


def build_horn_body(
    geometry: HornGeometry,
    profile: AxialProfile,
    resolution: int,
    close_throat: bool = False,
    close_mouth: bool = False,
    outer_inset: Tuple[float, float] = (0.0, 0.0),
) -> HornBody:
    """Sweep ``profile`` into a triangulated shell.

    ``close_throat`` / ``close_mouth`` ask for the open end to be closed: a
    centre fan on a single wall, an annular band between the shells on a
    double wall. The caller decides the policy (mounts close their own end).

    ``outer_inset`` (throat, mouth) shortens the outer shell of a double wall
    at each end by the thickness of the plate that closes it there. An end
    with an inset is never closed by a band.
    """
    xs = np.array([p.x for p in profile], dtype=float)
    dims = _station_dims(geometry, profile, xs)
    shaper = StationShaper(geometry, resolution, dims[-1])
    stations = len(xs)
    thickness = float(geometry.wall_thickness or 0.0)
    double_wall = thickness > 0.0

    rings = [shaper.loop(x, 0.5 * w, 0.5 * h) for x, (w, h) in zip(xs, dims)]
    positions = [_ring_positions(xs, rings)]
    normals = [np.vstack([radial_normals(r, inward=double_wall) for r in rings])]
    n_ring = stations * resolution
    triangles = [shell_triangles(stations, resolution, 0, outward=not double_wall)]
    outer: Optional[List[np.ndarray]] = None
    outer_xs = xs
    mouth_outline, mouth_outline_dims = rings[-1], dims[-1]

    if double_wall:
        throat_inset, mouth_inset = (max(float(v), 0.0) for v in outer_inset)
        outer_profile = trim_end(trim_start(profile, throat_inset), mouth_inset)
        if len(outer_profile) < MIN_PROFILE_POINTS:
            raise HornValidationError(
                "Mount plates leave no outer wall: "
                f"{len(outer_profile)} point(s) left, need {MIN_PROFILE_POINTS}."
            )
        outer_xs = np.array([p.x for p in outer_profile], dtype=float)
        outer_dims = _station_dims(geometry, profile, outer_xs)
        outer = [shaper.loop(x, 0.5 * w + thickness, 0.5 * h + thickness) for x, (w, h) in zip(outer_xs, outer_dims)]
        outer_stations = len(outer_xs)
        positions.append(_ring_positions(outer_xs, outer))
        normals.append(np.vstack([radial_normals(r) for r in outer]))
        triangles.append(shell_triangles(outer_stations, resolution, n_ring, outward=True))

        last_inner = (stations - 1) * resolution
        last_outer = n_ring + (outer_stations - 1) * resolution
        if close_throat and throat_inset == 0.0:
            triangles.append(_band_triangles(0, n_ring, resolution, facing_throat=True))
        if close_mouth and mouth_inset == 0.0:
            triangles.append(_band_triangles(last_inner, last_outer, resolution, facing_throat=False))

        mouth_w, mouth_h = dims[-1]
        mouth_outline_dims = (mouth_w + 2.0 * thickness, mouth_h + 2.0 * thickness)
        mouth_outline = (
            outer[-1] if mouth_inset == 0.0
            else shaper.loop(xs[-1], 0.5 * mouth_outline_dims[0], 0.5 * mouth_outline_dims[1])
        )
    else:
        next_index = n_ring
        if close_throat:
            positions.append(np.array([[xs[0], 0.0, 0.0]]))
            normals.append(np.array([[-1.0, 0.0, 0.0]]))
            triangles.append(_cap_triangles(next_index, 0, resolution, facing_throat=True))
            next_index += 1
        if close_mouth:
            positions.append(np.array([[xs[-1], 0.0, 0.0]]))
            normals.append(np.array([[1.0, 0.0, 0.0]]))
            triangles.append(_cap_triangles(next_index, (stations - 1) * resolution, resolution,
                                            facing_throat=False))

    mesh = Mesh.from_arrays(np.vstack(positions), np.vstack(triangles), np.vstack(normals))
    logger.debug(
        "[Mesher] Body: %d stations x %d, double_wall=%s, %d vertices, %d triangles",
        stations, resolution, double_wall, mesh.vertex_count, mesh.triangle_count,
    )
    return HornBody(
        mesh=mesh,
        throat_loop=rings[0],
        mouth_loop=rings[-1],
        throat_x=float(xs[0]),
        mouth_x=float(xs[-1]),
        throat_dims=dims[0],
        mouth_dims=dims[-1],
        mouth_mode=shaper.mode_at(float(xs[-1])),
        double_wall=double_wall,
        outer_throat_loop=outer[0] if outer else None,
        outer_mouth_loop=outer[-1] if outer else None,
        outer_throat_x=float(outer_xs[0]) if outer else None,
        outer_mouth_x=float(outer_xs[-1]) if outer else None,
        mouth_outline=mouth_outline,
        mouth_outline_dims=mouth_outline_dims,
    )
