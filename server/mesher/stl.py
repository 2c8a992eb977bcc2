"""
Binary STL serialization.

Layout: 80-byte header, uint32 triangle count, then per triangle a facet
normal, three vertices (float32 each, little endian) and a uint16
attribute that is always zero. Facet normals are recomputed from each
triangle's own vertices; stored per-vertex normals are never used.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Union

import numpy as np

from .constants import STL_HEADER_SIZE, STL_HEADER_TEXT
from .contract import Mesh

_FACET_DTYPE = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attribute", "<u2"),
])


def _header(text: str) -> bytes:
    raw = text.encode("ascii", errors="replace")[:STL_HEADER_SIZE]
    return raw.ljust(STL_HEADER_SIZE, b"\0")


def facet_normals(mesh: Mesh) -> np.ndarray:
    """Unit normal of every triangle; zero for degenerate ones."""
    corners = mesh.positions[mesh.triangles.astype(np.int64)]
    cross = np.cross(corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0])
    lengths = np.linalg.norm(cross, axis=1)
    out = np.zeros_like(cross)
    ok = lengths > 0.0
    out[ok] = cross[ok] / lengths[ok, None]
    return out


def mesh_to_stl(mesh: Mesh, header: str = STL_HEADER_TEXT) -> bytes:
    facets = np.zeros(mesh.triangle_count, dtype=_FACET_DTYPE)
    if mesh.triangle_count:
        facets["normal"] = facet_normals(mesh)
        facets["vertices"] = mesh.positions[mesh.triangles.astype(np.int64)]
    return _header(header) + struct.pack("<I", mesh.triangle_count) + facets.tobytes()


def write_stl(mesh: Mesh, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.write_bytes(mesh_to_stl(mesh))
    return path


def read_stl_triangle_count(data: bytes) -> int:
    if len(data) < STL_HEADER_SIZE + 4:
        raise ValueError("Buffer is too short to be a binary STL.")
    (count,) = struct.unpack_from("<I", data, STL_HEADER_SIZE)
    return int(count)


def read_stl_facets(data: bytes) -> np.ndarray:
    """Structured array of (normal, vertices, attribute) records."""
    count = read_stl_triangle_count(data)
    expected = STL_HEADER_SIZE + 4 + count * _FACET_DTYPE.itemsize
    if len(data) != expected:
        raise ValueError(f"Binary STL length {len(data)} does not match {count} facets ({expected}).")
    return np.frombuffer(data, dtype=_FACET_DTYPE, count=count, offset=STL_HEADER_SIZE + 4)
