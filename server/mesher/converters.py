"""
Mesh exporters for viewers and legacy finite-element tools.
"""

from __future__ import annotations

from typing import Any, Dict, List

import numpy as np

from .contract import Mesh

# Boundary groups written by the Elmer exporter. Element lists are not
# populated: the mesher does not tag triangles by surface.
ELMER_BOUNDARY_NAMES = ("walls", "throat", "mouth")


def mesh_to_renderer(mesh: Mesh) -> Dict[str, np.ndarray]:
    """Buffers for a WebGL-style viewer (positions, indices, normals)."""
    return {
        "positions": mesh.vertices.astype(np.float32),
        "indices": mesh.indices.astype(np.uint32),
        "normals": (mesh.normals if mesh.normals is not None else np.zeros_like(mesh.vertices)).astype(np.float32),
    }


def mesh_to_payload(mesh: Mesh) -> Dict[str, List[float]]:
    """JSON-friendly flat lists."""
    return {
        "vertices": mesh.vertices.tolist(),
        "indices": mesh.indices.astype(int).tolist(),
        "normals": [] if mesh.normals is None else mesh.normals.tolist(),
    }


def mesh_to_msh(mesh: Mesh) -> str:
    """Gmsh MSH 2.2 ASCII with 1-based nodes and 3-node triangle elements."""
    lines = ["$MeshFormat", "2.2 0 8", "$EndMeshFormat", "$Nodes", str(mesh.vertex_count)]
    for i, (x, y, z) in enumerate(mesh.positions.tolist(), start=1):
        lines.append(f"{i} {x!r} {y!r} {z!r}")
    lines.append("$EndNodes")

    lines.append("$Elements")
    lines.append(str(mesh.triangle_count))
    for i, (a, b, c) in enumerate((mesh.triangles.astype(np.int64) + 1).tolist(), start=1):
        lines.append(f"{i} 2 2 0 1 {a} {b} {c}")
    lines.append("$EndElements")
    return "\n".join(lines)


def mesh_to_elmer(mesh: Mesh) -> Dict[str, Any]:
    nodes = [
        {"id": i, "x": x, "y": y, "z": z}
        for i, (x, y, z) in enumerate(mesh.positions.tolist(), start=1)
    ]
    elements = [
        {"id": i, "type": "triangle", "nodes": [a, b, c], "material": 1}
        for i, (a, b, c) in enumerate((mesh.triangles.astype(np.int64) + 1).tolist(), start=1)
    ]
    boundaries = [
        {"id": i, "name": name, "elements": []}
        for i, name in enumerate(ELMER_BOUNDARY_NAMES, start=1)
    ]
    return {"nodes": nodes, "elements": elements, "boundaries": boundaries}
