"""
End-to-end horn mesh pipeline.

validate -> effective profile -> body -> mounts -> interface weld -> stats
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .contract import (
    HornGeometry,
    Mesh,
    MeshDegradation,
    MeshOptions,
    normalize_mesh_options,
)
from .horn_body import HornBody, build_horn_body
from .mesh_ops import combine
from .mounts import MountBuild, build_driver_mount, build_horn_mount
from .profile import effective_profile
from .validation import calculate_mesh_statistics, validate_geometry

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class HornMeshResult:
    mesh: Mesh
    body: HornBody
    driver_mount: Optional[MountBuild]
    horn_mount: Optional[MountBuild]
    degraded: Tuple[MeshDegradation, ...]
    stats: Dict[str, Any]


def build_horn_mesh(
    geometry: HornGeometry,
    options: Union[MeshOptions, Dict[str, Any], None] = None,
) -> HornMeshResult:
    """
    Build the complete horn surface for ``geometry``.

    Raises:
        HornValidationError: malformed geometry or options, before any
            geometry work.
    """
    started = time.monotonic()
    opts = normalize_mesh_options(options)
    validate_geometry(geometry)

    profile, offsets = effective_profile(geometry)
    double_wall = float(geometry.wall_thickness or 0.0) > 0.0
    driver_plate = offsets.driver_mount_offset or 0.0
    horn_plate = offsets.horn_mount_offset or 0.0
    # Unmounted ends close on request, and a double wall always seals the gap
    # between its shells. A plate closes its own end; a flat mount face on a
    # double wall meets the outer shell, so the band still joins the shells.
    close_throat = (opts.cap_ends or double_wall) if not geometry.has_driver_mount else (
        double_wall and driver_plate == 0.0
    )
    close_mouth = (opts.cap_ends or double_wall) if not geometry.has_horn_mount else (
        double_wall and horn_plate == 0.0
    )

    body = build_horn_body(
        geometry,
        profile,
        opts.resolution,
        close_throat=close_throat,
        close_mouth=close_mouth,
        outer_inset=(driver_plate, horn_plate),
    )

    fragments: List[Mesh] = [body.mesh]
    planes: List[Optional[Tuple[float, ...]]] = [None]
    degraded: List[MeshDegradation] = []

    driver_mount: Optional[MountBuild] = None
    if geometry.has_driver_mount:
        driver_mount = build_driver_mount(
            geometry.driver_mount, body.throat_x, body.throat_loop, opts.resolution,
            wall_loop=body.outer_throat_loop,
        )
        fragments.append(driver_mount.mesh)
        planes.append(driver_mount.weld_planes)
        if driver_mount.degraded is not None:
            degraded.append(driver_mount.degraded)

    horn_mount: Optional[MountBuild] = None
    if geometry.has_horn_mount:
        horn_mount = build_horn_mount(
            geometry.horn_mount, body.mouth_x, body.mouth_loop, body.mouth_dims, body.mouth_mode,
            wall_loop=body.outer_mouth_loop,
            outline=body.mouth_outline,
            outline_dims=body.mouth_outline_dims,
        )
        fragments.append(horn_mount.mesh)
        planes.append(horn_mount.weld_planes)
        if horn_mount.degraded is not None:
            degraded.append(horn_mount.degraded)

    mesh = combine(fragments, planes, opts.weld_tolerance)
    stats = calculate_mesh_statistics(mesh)
    stats["driver_mount_offset"] = offsets.driver_mount_offset
    stats["horn_mount_offset"] = offsets.horn_mount_offset
    stats["elapsed_seconds"] = time.monotonic() - started

    logger.info(
        "[Mesher] Built %s horn: %d vertices, %d triangles, %d open edges, %.3fs%s",
        geometry.mode.value,
        mesh.vertex_count,
        mesh.triangle_count,
        stats["boundary_edges"],
        stats["elapsed_seconds"],
        f" ({len(degraded)} degraded)" if degraded else "",
    )
    return HornMeshResult(
        mesh=mesh,
        body=body,
        driver_mount=driver_mount,
        horn_mount=horn_mount,
        degraded=tuple(degraded),
        stats=stats,
    )
