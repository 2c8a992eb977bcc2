"""
Input validation and mesh quality statistics.

Geometry validation runs before any meshing and reports every problem it
finds in one HornValidationError. Statistics are informational only.
"""

import math
from typing import Any, Dict, List, Optional

import numpy as np

from .constants import MIN_PROFILE_POINTS
from .contract import AxialProfile, HornGeometry, HornValidationError, Mesh
from .mesh_ops import boundary_edges


def _check_profile(
    profile: Optional[AxialProfile],
    name: str,
    min_points: int,
    errors: List[str],
) -> None:
    if profile is None:
        return
    if len(profile) < min_points:
        errors.append(f"{name} must have at least {min_points} points, got {len(profile)}")
        return
    for k, point in enumerate(profile):
        if not (math.isfinite(point.x) and math.isfinite(point.y)):
            errors.append(f"{name}[{k}] must be finite")
            return
        if point.y <= 0.0:
            errors.append(f"{name}[{k}].y must be positive, got {point.y}")
            return
    for k in range(1, len(profile)):
        if profile[k].x < profile[k - 1].x:
            errors.append(f"{name} x positions must be non-decreasing (index {k})")
            return


def _positive(value: Optional[float], name: str, errors: List[str]) -> None:
    if value is not None and not (math.isfinite(value) and value > 0.0):
        errors.append(f"{name} must be positive, got {value}")


def _non_negative(value: Optional[float], name: str, errors: List[str]) -> None:
    if value is not None and not (math.isfinite(value) and value >= 0.0):
        errors.append(f"{name} must be non-negative, got {value}")


def _end_size(profile: Optional[AxialProfile], base: AxialProfile, index: int,
              override: Optional[float]) -> float:
    if override is not None:
        return float(override)
    if profile:
        return 2.0 * profile[index].y
    return 2.0 * base[index].y


def validate_geometry(geometry: HornGeometry) -> None:
    """Raise HornValidationError listing every structural problem found."""
    errors: List[str] = []

    _check_profile(geometry.profile, "profile", MIN_PROFILE_POINTS, errors)
    _check_profile(geometry.width_profile, "width_profile", 1, errors)
    _check_profile(geometry.height_profile, "height_profile", 1, errors)

    _positive(geometry.width, "width", errors)
    _positive(geometry.height, "height", errors)
    _positive(geometry.throat_width, "throat_width", errors)
    _positive(geometry.throat_height, "throat_height", errors)
    _non_negative(geometry.wall_thickness, "wall_thickness", errors)

    if geometry.shape_profile is not None:
        if len(geometry.shape_profile) == 0:
            errors.append("shape_profile must not be empty when given")
        for k, point in enumerate(geometry.shape_profile):
            if not 0.0 <= point.morphing_factor <= 1.0:
                errors.append(f"shape_profile[{k}].morphing_factor must be within [0, 1]")
                break
            if k and point.x < geometry.shape_profile[k - 1].x:
                errors.append("shape_profile x positions must be non-decreasing")
                break

    if geometry.has_driver_mount:
        mount = geometry.driver_mount
        _positive(mount.outer_diameter, "driver_mount.outer_diameter", errors)
        _non_negative(mount.bolt_hole_diameter, "driver_mount.bolt_hole_diameter", errors)
        _non_negative(mount.bolt_circle_diameter, "driver_mount.bolt_circle_diameter", errors)
        _non_negative(mount.thickness, "driver_mount.thickness", errors)
        if int(mount.bolt_count) != mount.bolt_count or mount.bolt_count < 0:
            errors.append(f"driver_mount.bolt_count must be a non-negative integer, got {mount.bolt_count}")

    if geometry.has_horn_mount:
        mount = geometry.horn_mount
        _positive(mount.width_extension, "horn_mount.width_extension", errors)
        _positive(mount.bolt_spacing, "horn_mount.bolt_spacing", errors)
        _non_negative(mount.bolt_hole_diameter, "horn_mount.bolt_hole_diameter", errors)
        _non_negative(mount.thickness, "horn_mount.thickness", errors)

    if not errors:
        profile = geometry.profile
        throat_w = _end_size(geometry.width_profile, profile, 0, geometry.throat_width)
        throat_h = _end_size(geometry.height_profile, profile, 0, geometry.throat_height)
        mouth_w = _end_size(geometry.width_profile, profile, -1, geometry.width if not geometry.width_profile else None)
        mouth_h = _end_size(geometry.height_profile, profile, -1, geometry.height if not geometry.height_profile else None)
        if throat_w >= mouth_w and throat_h >= mouth_h:
            errors.append(
                f"Throat ({throat_w:g} x {throat_h:g}) must be smaller than mouth ({mouth_w:g} x {mouth_h:g})"
            )

    if errors:
        raise HornValidationError("Invalid horn geometry: " + "; ".join(errors) + ".")


def calculate_mesh_statistics(mesh: Mesh) -> Dict[str, Any]:
    """
    Mesh size and quality figures.

    Returns:
        Dictionary with:
        - num_vertices, num_elements
        - min/max/mean_edge_length (0.0 for an empty mesh)
        - boundary_edges: edges used by a single triangle
        - watertight: no boundary edges
        - bounds: [[xmin, ymin, zmin], [xmax, ymax, zmax]] or None
    """
    stats: Dict[str, Any] = {
        "num_vertices": mesh.vertex_count,
        "num_elements": mesh.triangle_count,
        "min_edge_length": 0.0,
        "max_edge_length": 0.0,
        "mean_edge_length": 0.0,
        "boundary_edges": 0,
        "watertight": False,
        "bounds": None,
    }
    if mesh.vertex_count:
        pos = mesh.positions
        stats["bounds"] = [pos.min(axis=0).tolist(), pos.max(axis=0).tolist()]
    if mesh.triangle_count == 0:
        return stats

    corners = mesh.positions[mesh.triangles.astype(np.int64)]
    edge_lengths = np.concatenate([
        np.linalg.norm(corners[:, 1] - corners[:, 0], axis=1),
        np.linalg.norm(corners[:, 2] - corners[:, 1], axis=1),
        np.linalg.norm(corners[:, 0] - corners[:, 2], axis=1),
    ])
    open_edges = len(boundary_edges(mesh))
    stats.update({
        "min_edge_length": float(edge_lengths.min()),
        "max_edge_length": float(edge_lengths.max()),
        "mean_edge_length": float(edge_lengths.mean()),
        "boundary_edges": open_edges,
        "watertight": open_edges == 0,
    })
    return stats
