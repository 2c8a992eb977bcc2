"""
Merging and welding of independently built mesh fragments.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Union

import numpy as np
from scipy.spatial import cKDTree

from .contract import Mesh

logger = logging.getLogger(__name__)

Planes = Union[float, Sequence[float]]


def _normals_or_zeros(mesh: Mesh) -> np.ndarray:
    return mesh.normals if mesh.normals is not None else np.zeros_like(mesh.vertices)


def merge_meshes(meshes: Sequence[Mesh]) -> Mesh:
    """Concatenate fragments in order, offsetting each one's indices."""
    meshes = list(meshes)
    if not meshes:
        return Mesh.empty()
    if len(meshes) == 1:
        return meshes[0]

    offsets = np.cumsum([0] + [m.vertex_count for m in meshes[:-1]])
    vertices = np.concatenate([m.vertices for m in meshes])
    indices = np.concatenate([m.indices.astype(np.int64) + off for m, off in zip(meshes, offsets)])
    normals: Optional[np.ndarray] = None
    if any(m.normals is not None for m in meshes):
        normals = np.concatenate([_normals_or_zeros(m) for m in meshes])
    return Mesh(vertices, indices, normals)


def _near_planes(xs: np.ndarray, planes: np.ndarray, tolerance: float) -> np.ndarray:
    return np.nonzero(np.any(np.abs(xs[:, None] - planes[None, :]) <= tolerance, axis=1))[0]


def interface_index_map(mesh_a: Mesh, mesh_b: Mesh, plane_x: Planes, tolerance: float) -> np.ndarray:
    """Where each vertex of B lands once B is appended to A.

    B vertices within ``tolerance`` of the plane x = ``plane_x`` (or of any
    of several planes) that have an A vertex within ``tolerance`` map to that
    A vertex; every other B vertex gets the next free index after A's
    vertices.
    """
    a_pos, b_pos = mesh_a.positions, mesh_b.positions
    target = np.full(mesh_b.vertex_count, -1, dtype=np.int64)
    planes = np.atleast_1d(np.asarray(plane_x, dtype=float))

    a_near = _near_planes(a_pos[:, 0], planes, tolerance)
    b_near = _near_planes(b_pos[:, 0], planes, tolerance)
    if len(a_near) and len(b_near):
        tree = cKDTree(a_pos[a_near])
        dist, idx = tree.query(b_pos[b_near], k=1, distance_upper_bound=tolerance)
        hit = np.isfinite(dist) & (dist <= tolerance)
        target[b_near[hit]] = a_near[idx[hit]]

    fresh = target < 0
    target[fresh] = mesh_a.vertex_count + np.arange(int(np.count_nonzero(fresh)))
    return target


def weld_at_interface(mesh_a: Mesh, mesh_b: Mesh, plane_x: Planes, tolerance: float) -> Mesh:
    """Append B to A, sharing the vertices where the two meet on the plane."""
    target = interface_index_map(mesh_a, mesh_b, plane_x, tolerance)
    fresh = target >= mesh_a.vertex_count
    welded = mesh_b.vertex_count - int(np.count_nonzero(fresh))

    vertices = np.concatenate([mesh_a.vertices, mesh_b.positions[fresh].reshape(-1)])
    indices = np.concatenate([mesh_a.indices.astype(np.int64), target[mesh_b.indices.astype(np.int64)]])
    normals = None
    if mesh_a.normals is not None or mesh_b.normals is not None:
        b_normals = _normals_or_zeros(mesh_b).reshape(-1, 3)[fresh].reshape(-1)
        normals = np.concatenate([_normals_or_zeros(mesh_a), b_normals])

    logger.debug("[Mesher] Welded %d vertices at x=%s", welded, plane_x)
    return Mesh(vertices, indices, normals)


def weld_vertices(mesh: Mesh, tolerance: float) -> Mesh:
    """Merge vertices that fall into the same ``tolerance`` grid cell.

    Vertex order follows first occurrence; triangles that collapse are
    dropped.
    """
    if mesh.vertex_count == 0:
        return mesh
    keys = np.round(mesh.positions / tolerance).astype(np.int64)
    _, first, inverse = np.unique(keys, axis=0, return_index=True, return_inverse=True)
    order = np.argsort(first)
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    remap = rank[np.asarray(inverse).reshape(-1)]
    keep_vertices = first[order]

    tris = remap[mesh.triangles.astype(np.int64)]
    valid = (tris[:, 0] != tris[:, 1]) & (tris[:, 1] != tris[:, 2]) & (tris[:, 0] != tris[:, 2])
    dropped = int(np.count_nonzero(~valid))
    if dropped:
        logger.debug("[Mesher] Grid weld dropped %d collapsed triangles", dropped)

    normals = None
    if mesh.normals is not None:
        normals = mesh.normals.reshape(-1, 3)[keep_vertices]
    return Mesh.from_arrays(mesh.positions[keep_vertices], tris[valid], normals)


def boundary_edges(mesh: Mesh) -> np.ndarray:
    """Undirected edges used by exactly one triangle, as an (k, 2) array."""
    if mesh.triangle_count == 0:
        return np.zeros((0, 2), dtype=np.int64)
    tris = mesh.triangles.astype(np.int64)
    edges = np.vstack([tris[:, [0, 1]], tris[:, [1, 2]], tris[:, [2, 0]]])
    edges.sort(axis=1)
    unique, counts = np.unique(edges, axis=0, return_counts=True)
    return unique[counts == 1]


def combine(fragments: List[Mesh], planes: List[Optional[Planes]], tolerance: float) -> Mesh:
    """Weld each fragment onto the running mesh at its plane(s), or just append it."""
    if not fragments:
        return Mesh.empty()
    merged = fragments[0]
    for fragment, plane in zip(fragments[1:], planes[1:]):
        if plane is None:
            merged = merge_meshes([merged, fragment])
        else:
            merged = weld_at_interface(merged, fragment, plane, tolerance)
    return merged
