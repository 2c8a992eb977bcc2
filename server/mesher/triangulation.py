"""
Constrained triangulation of a planar face with holes.

``triangulate(outer, holes)`` is the only entry point the mount builder
uses. It never raises: failures come back as an unsuccessful
``TriangulationResult`` so the caller can apply its fallback.

The backend is a gmsh plane surface whose boundary lines are pinned to two
nodes each, so every input point survives as a mesh node and no boundary
segment is split. gmsh may add interior nodes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from matplotlib.path import Path

from .constants import EPSILON, MIN_POLYGON_POINTS
from .contract import TriangulationError
from .cross_section import signed_area
from .deps import GMSH_AVAILABLE
from .gmsh_utils import GmshMeshingError, gmsh_session

logger = logging.getLogger(__name__)

GMSH_TRIANGLE = 2
GMSH_DELAUNAY = 5


@dataclass(eq=False)
class TriangulationResult:
    success: bool
    vertices: np.ndarray      # (n, 2); outer loop first, then each hole, then interior nodes
    triangles: np.ndarray     # (m, 3), counter-clockwise
    error: Optional[str] = None

    @classmethod
    def failure(cls, reason: str) -> "TriangulationResult":
        return cls(False, np.zeros((0, 2)), np.zeros((0, 3), dtype=np.int64), reason)

    def unwrap(self) -> Tuple[np.ndarray, np.ndarray]:
        if not self.success:
            raise TriangulationError(self.error or "triangulation failed")
        return self.vertices, self.triangles


def _closed_path(points: np.ndarray) -> Path:
    return Path(np.vstack([points, points[:1]]), closed=True)


def check_loops(outer: np.ndarray, holes: Sequence[np.ndarray]) -> Optional[str]:
    """Reason the loops cannot be triangulated as a face with holes, or None."""
    if len(outer) < MIN_POLYGON_POINTS:
        return f"outer boundary has {len(outer)} points, need {MIN_POLYGON_POINTS}"
    if abs(signed_area(outer)) < EPSILON:
        return "outer boundary has zero area"

    outer_path = _closed_path(outer)
    hole_paths: List[Path] = []
    for k, hole in enumerate(holes):
        if len(hole) < MIN_POLYGON_POINTS:
            return f"hole {k} has {len(hole)} points, need {MIN_POLYGON_POINTS}"
        if abs(signed_area(hole)) < EPSILON:
            return f"hole {k} has zero area"
        if not np.all(outer_path.contains_points(hole)):
            return f"hole {k} is not inside the outer boundary"
        path = _closed_path(hole)
        if outer_path.intersects_path(path, filled=False):
            return f"hole {k} crosses the outer boundary"
        for j, other in enumerate(hole_paths):
            if other.intersects_path(path, filled=True):
                return f"holes {j} and {k} overlap"
        hole_paths.append(path)
    return None


def _edge_sizes(loop: np.ndarray) -> np.ndarray:
    forward = np.linalg.norm(np.roll(loop, -1, axis=0) - loop, axis=1)
    backward = np.roll(forward, 1)
    return 0.5 * (forward + backward)


def _gmsh_triangulate(loops: List[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
    with gmsh_session("MountFace") as gmsh:
        gmsh.option.setNumber("Mesh.Algorithm", GMSH_DELAUNAY)
        gmsh.option.setNumber("Mesh.MeshSizeFromCurvature", 0)
        gmsh.option.setNumber("Mesh.MeshSizeExtendFromBoundary", 1)

        point_tags: List[int] = []
        line_tags: List[int] = []
        curve_loops: List[int] = []
        for loop in loops:
            sizes = _edge_sizes(loop)
            tags = [
                gmsh.model.geo.addPoint(float(y), float(z), 0.0, float(size))
                for (y, z), size in zip(loop, sizes)
            ]
            lines = [gmsh.model.geo.addLine(tags[k], tags[(k + 1) % len(tags)]) for k in range(len(tags))]
            curve_loops.append(gmsh.model.geo.addCurveLoop(lines))
            point_tags.extend(tags)
            line_tags.extend(lines)

        surface = gmsh.model.geo.addPlaneSurface(curve_loops)
        gmsh.model.geo.synchronize()
        for line in line_tags:
            gmsh.model.mesh.setTransfiniteCurve(line, 2)
        gmsh.model.mesh.generate(2)

        index_of: Dict[int, int] = {}
        for k, tag in enumerate(point_tags):
            node_tags, _, _ = gmsh.model.mesh.getNodes(0, tag)
            if len(node_tags) != 1:
                raise GmshMeshingError(f"boundary point {k} has {len(node_tags)} mesh nodes")
            index_of[int(node_tags[0])] = k

        all_tags, all_coords, _ = gmsh.model.mesh.getNodes()
        coords = np.asarray(all_coords, dtype=float).reshape(-1, 3)
        extra: List[np.ndarray] = []
        for tag, xyz in zip(all_tags, coords):
            tag = int(tag)
            if tag not in index_of:
                index_of[tag] = len(point_tags) + len(extra)
                extra.append(xyz[:2])

        elem_types, _, elem_nodes = gmsh.model.mesh.getElements(2, surface)
        triangles = None
        for etype, nodes in zip(elem_types, elem_nodes):
            if etype == GMSH_TRIANGLE:
                triangles = np.array([index_of[int(n)] for n in nodes], dtype=np.int64).reshape(-1, 3)
                break
        if triangles is None or len(triangles) == 0:
            raise GmshMeshingError("gmsh produced no triangles for the face")

    vertices = np.vstack(loops + ([np.array(extra)] if extra else []))
    return vertices, triangles


def orient_ccw(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    a, b, c = (vertices[triangles[:, k]] for k in range(3))
    cross = (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])
    out = triangles.copy()
    flip = cross < 0.0
    out[flip] = out[flip][:, [0, 2, 1]]
    return out


def triangulate(outer: np.ndarray, holes: Sequence[np.ndarray] = ()) -> TriangulationResult:
    """Triangulate ``outer`` minus ``holes`` (all (n, 2) closed loops)."""
    outer = np.asarray(outer, dtype=float)
    hole_list = [np.asarray(h, dtype=float) for h in holes]

    problem = check_loops(outer, hole_list)
    if problem is not None:
        return TriangulationResult.failure(problem)
    if not GMSH_AVAILABLE:
        return TriangulationResult.failure("gmsh unavailable")

    try:
        vertices, triangles = _gmsh_triangulate([outer] + hole_list)
    except Exception as exc:
        logger.debug("[Gmsh] Face triangulation failed: %s", exc)
        return TriangulationResult.failure(f"gmsh triangulation failed: {exc}")

    return TriangulationResult(True, vertices, orient_ccw(vertices, triangles))
