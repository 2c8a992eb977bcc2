"""
Mounting flanges at the throat (driver) and mouth (horn).

A flange is a planar face cut by the horn opening and its bolt holes,
triangulated through the constrained triangulation port and optionally
extruded into a plate. The plate grows into the horn body: the driver
plate towards +x from the throat plane, the horn plate towards -x from the
mouth plane, so the outer faces sit on the trimmed profile ends.

On a double wall the plate closes the wall: its front face is cut by the
inner opening, its back face by the outer shell, which ends there.

If a face cannot be triangulated with its holes, the flange is rebuilt as
a strip between the opening and the outer boundary without bolt holes, and
the degradation is reported on the result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .constants import HOLE_RESOLUTION, MIN_BOLT_COUNT, OUTER_EDGE_MULTIPLIER
from .contract import (
    CrossSectionMode,
    DriverMountConfig,
    HornMountConfig,
    Mesh,
    MeshDegradation,
    TriangulationError,
)
from .cross_section import EllipseSampler, get_sampler, polygon_perimeter, signed_area
from .triangulation import orient_ccw, triangulate

logger = logging.getLogger(__name__)

_CIRCLE = EllipseSampler()


@dataclass(eq=False)
class MountBuild:
    mesh: Mesh
    plane_x: float
    bolt_centers: np.ndarray
    degraded: Optional[MeshDegradation] = None
    # Planes where the plate shares vertices with the body.
    weld_planes: Tuple[float, ...] = ()


@dataclass(eq=False)
class _Face:
    vertices: np.ndarray        # (n, 2)
    triangles: np.ndarray       # (m, 3), counter-clockwise
    loops: List[np.ndarray]     # vertex indices of every boundary loop
    degraded: Optional[MeshDegradation] = None


# ---------------------------------------------------------------------------
# Bolt layout
# ---------------------------------------------------------------------------

def bolt_circle_centers(radius: float, count: int) -> np.ndarray:
    """Centres at angles 2*pi*k/count starting on +y."""
    if count <= 0:
        return np.zeros((0, 2))
    angles = 2.0 * math.pi * np.arange(count) / count
    return np.column_stack((radius * np.cos(angles), radius * np.sin(angles)))


def horn_mount_bolt_count(perimeter: float, bolt_spacing: float) -> int:
    return max(MIN_BOLT_COUNT, int(math.ceil(perimeter / bolt_spacing)))


def points_along_loop(loop: np.ndarray, count: int) -> np.ndarray:
    """``count`` points at even arc length along a closed loop, from its first point."""
    closed = np.vstack([loop, loop[:1]])
    seg = np.linalg.norm(np.diff(closed, axis=0), axis=1)
    cumulative = np.concatenate(([0.0], np.cumsum(seg)))
    targets = cumulative[-1] * np.arange(count) / count
    return np.column_stack((
        np.interp(targets, cumulative, closed[:, 0]),
        np.interp(targets, cumulative, closed[:, 1]),
    ))


def horn_bolt_centers(
    mouth_loop: np.ndarray,
    mouth_dims: Tuple[float, float],
    mouth_mode: CrossSectionMode,
    mid_scale: float,
    count: int,
) -> np.ndarray:
    """Bolt centres halfway between the mouth opening and the flange edge."""
    if mouth_mode.has_corners:
        return points_along_loop(mouth_loop * mid_scale, count)
    width, height = mouth_dims
    return get_sampler(mouth_mode).sample(0.5 * width * mid_scale, 0.5 * height * mid_scale, count)


def _bolt_holes(centers: np.ndarray, hole_diameter: float) -> List[np.ndarray]:
    if hole_diameter <= 0.0:
        return []
    r = 0.5 * hole_diameter
    angles = 2.0 * math.pi * np.arange(HOLE_RESOLUTION) / HOLE_RESOLUTION
    ring = np.column_stack((r * np.cos(angles), r * np.sin(angles)))
    return [ring + c for c in centers]


# ---------------------------------------------------------------------------
# Face and plate
# ---------------------------------------------------------------------------

def _ccw(loop: np.ndarray) -> np.ndarray:
    loop = np.asarray(loop, dtype=float)
    return loop if signed_area(loop) >= 0.0 else loop[::-1]


def _arc_fractions(loop: np.ndarray) -> np.ndarray:
    seg = np.linalg.norm(np.roll(loop, -1, axis=0) - loop, axis=1)
    cumulative = np.concatenate(([0.0], np.cumsum(seg)))
    return cumulative / cumulative[-1]


def _strip_triangles(outer: np.ndarray, inner: np.ndarray) -> np.ndarray:
    """Zip two closed loops that start at the same angle, outer indices first."""
    n, m = len(outer), len(inner)
    t_outer, t_inner = _arc_fractions(outer), _arc_fractions(inner)
    i = j = 0
    triangles = []
    while i < n or j < m:
        if j == m or (i < n and t_outer[i + 1] <= t_inner[j + 1]):
            triangles.append((i, (i + 1) % n, n + j % m))
            i += 1
        else:
            triangles.append((i % n, n + (j + 1) % m, n + j))
            j += 1
    return np.array(triangles, dtype=np.int64)


def _fallback_face(outer: np.ndarray, opening: np.ndarray, degraded: MeshDegradation) -> _Face:
    """Strip between the opening and the outer boundary; no bolt holes."""
    opening = _ccw(opening)
    vertices = np.vstack([outer, opening])
    triangles = orient_ccw(vertices, _strip_triangles(outer, opening))
    n = len(outer)
    return _Face(
        vertices=vertices,
        triangles=triangles,
        loops=[np.arange(n), np.arange(n, n + len(opening))],
        degraded=degraded,
    )


def _constrained_face(outer: np.ndarray, holes: Sequence[np.ndarray]) -> _Face:
    # Holes run opposite to the outer boundary.
    reversed_holes = [_ccw(h)[::-1] for h in holes]
    vertices, triangles = triangulate(outer, reversed_holes).unwrap()
    loops = [np.arange(len(outer))]
    start = len(outer)
    for hole in reversed_holes:
        loops.append(np.arange(start, start + len(hole)))
        start += len(hole)
    return _Face(vertices=vertices, triangles=triangles, loops=loops)


def mount_faces(
    component: str,
    outer: np.ndarray,
    openings: Sequence[np.ndarray],
    bolt_holes: Sequence[np.ndarray],
) -> List[_Face]:
    """One face per opening, all sharing the outer boundary and bolt holes.

    Loop order on every face: outer boundary, opening, then bolt holes. If
    any face fails, every face falls back so the plate sides still match.
    """
    outer = _ccw(outer)
    try:
        return [_constrained_face(outer, [opening] + list(bolt_holes)) for opening in openings]
    except TriangulationError as exc:
        logger.warning(
            "[Mount] %s: constrained triangulation failed (%s); building the flange without bolt holes.",
            component, exc,
        )
        degraded = MeshDegradation(component=component, reason=str(exc))
        return [_fallback_face(outer, opening, degraded) for opening in openings]


def _side_walls(
    front_tris: np.ndarray,
    loop_pairs: Sequence[Tuple[np.ndarray, np.ndarray]],
    offset: int,
) -> np.ndarray:
    directed = set()
    for a, b, c in front_tris:
        directed.update(((int(a), int(b)), (int(b), int(c)), (int(c), int(a))))

    walls = []
    for front_loop, back_loop in loop_pairs:
        count = len(front_loop)
        for k in range(count):
            u, v = int(front_loop[k]), int(front_loop[(k + 1) % count])
            bu, bv = int(back_loop[k]) + offset, int(back_loop[(k + 1) % count]) + offset
            if (u, v) not in directed:
                u, v, bu, bv = v, u, bv, bu
            walls.append((v, u, bu))
            walls.append((v, bu, bv))
    return np.array(walls, dtype=np.int64).reshape(-1, 3)


def extrude_face(
    face: _Face,
    plane_x: float,
    thickness: float,
    direction: float,
    front_normal: float,
    back_face: Optional[_Face] = None,
) -> Mesh:
    """Place ``face`` on the plane x = ``plane_x`` and extrude it by ``thickness``.

    ``front_normal`` (+1 or -1) is the x direction the front face points to;
    the plate grows along ``direction``. Zero thickness gives the flat face.
    A ``back_face`` with a different opening closes a double wall: no side
    wall is built along the openings, the horn shells stand there instead.
    """
    n = len(face.vertices)
    front_tris = face.triangles if front_normal > 0 else face.triangles[:, [0, 2, 1]]
    front = np.column_stack((np.full(n, float(plane_x)), face.vertices))
    front_normals = np.tile([front_normal, 0.0, 0.0], (n, 1))
    if thickness <= 0.0:
        return Mesh.from_arrays(front, front_tris, front_normals)

    if back_face is None:
        back_face = face
        loop_pairs = list(zip(face.loops, face.loops))
    else:
        loop_pairs = [pair for k, pair in enumerate(zip(face.loops, back_face.loops)) if k != 1]
    m = len(back_face.vertices)
    back = np.column_stack((np.full(m, plane_x + direction * thickness), back_face.vertices))
    back_tris = (back_face.triangles[:, [0, 2, 1]] if front_normal > 0 else back_face.triangles) + n
    sides = _side_walls(front_tris, loop_pairs, n)
    return Mesh.from_arrays(
        np.vstack([front, back]),
        np.vstack([front_tris, back_tris, sides]),
        np.vstack([front_normals, np.tile([-front_normal, 0.0, 0.0], (m, 1))]),
    )


def _openings(opening: np.ndarray, wall_loop: Optional[np.ndarray], thickness: float) -> List[np.ndarray]:
    """Front (and back) opening of a plate; see ``extrude_face``."""
    if wall_loop is None:
        return [opening]
    if thickness > 0.0:
        return [opening, wall_loop]
    # A flat face meets the wall where the outer shell ends.
    return [wall_loop]


def _plate(
    component: str,
    outer: np.ndarray,
    opening: np.ndarray,
    wall_loop: Optional[np.ndarray],
    bolt_holes: List[np.ndarray],
    plane_x: float,
    thickness: float,
    direction: float,
    front_normal: float,
) -> Tuple[Mesh, Tuple[float, ...], Optional[MeshDegradation]]:
    faces = mount_faces(component, outer, _openings(opening, wall_loop, thickness), bolt_holes)
    back_face = faces[1] if len(faces) > 1 else None
    mesh = extrude_face(faces[0], plane_x, thickness, direction, front_normal, back_face=back_face)
    planes = (float(plane_x),)
    if back_face is not None:
        planes += (float(plane_x + direction * thickness),)
    return mesh, planes, faces[0].degraded


# ---------------------------------------------------------------------------
# Public builders
# ---------------------------------------------------------------------------

def build_driver_mount(
    config: DriverMountConfig,
    throat_x: float,
    throat_loop: np.ndarray,
    resolution: int,
    wall_loop: Optional[np.ndarray] = None,
) -> MountBuild:
    """Circular flange around the throat opening with bolts on a bolt circle.

    ``wall_loop`` is the outer shell ring of a double wall at the plate's
    back face (or at the throat plane for a flat face).
    """
    outer_radius = 0.5 * config.outer_diameter
    outer = _CIRCLE.sample(outer_radius, outer_radius, resolution * OUTER_EDGE_MULTIPLIER)
    centers = bolt_circle_centers(0.5 * config.bolt_circle_diameter, int(config.bolt_count))
    holes = _bolt_holes(centers, config.bolt_hole_diameter)

    mesh, planes, degraded = _plate(
        "driver_mount", outer, throat_loop, wall_loop, holes,
        throat_x, config.thickness, direction=1.0, front_normal=-1.0,
    )
    logger.debug(
        "[Mount] Driver flange at x=%.3f: %d bolts, %d triangles%s",
        throat_x, len(centers), mesh.triangle_count, " (degraded)" if degraded else "",
    )
    return MountBuild(mesh=mesh, plane_x=float(throat_x), bolt_centers=centers,
                      degraded=degraded, weld_planes=planes)


def build_horn_mount(
    config: HornMountConfig,
    mouth_x: float,
    mouth_loop: np.ndarray,
    mouth_dims: Tuple[float, float],
    mouth_mode: CrossSectionMode,
    wall_loop: Optional[np.ndarray] = None,
    outline: Optional[np.ndarray] = None,
    outline_dims: Optional[Tuple[float, float]] = None,
) -> MountBuild:
    """Flange following the mouth shape, widened by ``width_extension``.

    The flange edge and bolt line are measured from ``outline`` (the outside
    of a double wall in the mouth plane), defaulting to the mouth opening.
    """
    if outline is None:
        outline, outline_dims = mouth_loop, mouth_dims
    outline = np.asarray(outline, dtype=float)
    width, height = outline_dims or mouth_dims
    scale = 1.0 + config.width_extension / max(width, height)
    outer = outline * scale
    count = horn_mount_bolt_count(polygon_perimeter(outer), config.bolt_spacing)
    centers = horn_bolt_centers(outline, (width, height), mouth_mode, 0.5 * (1.0 + scale), count)
    holes = _bolt_holes(centers, config.bolt_hole_diameter)

    mesh, planes, degraded = _plate(
        "horn_mount", outer, mouth_loop, wall_loop, holes,
        mouth_x, config.thickness, direction=-1.0, front_normal=1.0,
    )
    logger.debug(
        "[Mount] Horn flange at x=%.3f: scale=%.4f, %d bolts, %d triangles%s",
        mouth_x, scale, count, mesh.triangle_count, " (degraded)" if degraded else "",
    )
    return MountBuild(mesh=mesh, plane_x=float(mouth_x), bolt_centers=centers,
                      degraded=degraded, weld_planes=planes)
