"""
Value types, options and error taxonomy for the horn mesher.

Everything here is constructed fresh per build call; nothing is shared
between calls.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union

import numpy as np

from .constants import DEFAULT_RESOLUTION, DEFAULT_WELD_TOLERANCE, MIN_RESOLUTION

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class HornValidationError(ValueError):
    """Structurally invalid geometry or options, raised before any meshing."""


class TriangulationError(RuntimeError):
    """Constrained triangulation could not produce a face. Never escapes a mount build."""


class MeshInvariantError(ValueError):
    pass


# ---------------------------------------------------------------------------
# Cross-section vocabulary
# ---------------------------------------------------------------------------

MORPHED_SHAPE = "morphed"

# "circle" is the equal-axis ellipse; the declared vocabulary has no separate variant.
_MODE_ALIASES = {
    "circle": "ellipse",
    "circular": "ellipse",
    "rect": "rectangular",
    "rectangle": "rectangular",
}


class CrossSectionMode(Enum):
    """Closed set of cross-section families."""
    ELLIPSE = "ellipse"
    SUPERELLIPSE = "superellipse"
    RECTANGULAR = "rectangular"

    @classmethod
    def parse(cls, value: Any) -> "CrossSectionMode":
        if isinstance(value, cls):
            return value
        tag = str(value or "").strip().lower()
        tag = _MODE_ALIASES.get(tag, tag)
        try:
            return cls(tag)
        except ValueError:
            supported = ", ".join(sorted(m.value for m in cls))
            raise HornValidationError(
                f"Unsupported cross-section mode '{value}'. Supported modes: {supported}."
            ) from None

    @property
    def has_corners(self) -> bool:
        return self is CrossSectionMode.RECTANGULAR


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProfilePoint:
    x: float
    y: float


AxialProfile = Tuple[ProfilePoint, ...]
ProfileLike = Iterable[Union[ProfilePoint, Dict[str, float], Sequence[float]]]


def as_profile(points: Optional[ProfileLike]) -> Optional[AxialProfile]:
    """Coerce dicts, (x, y) pairs or ProfilePoints into an immutable profile."""
    if points is None:
        return None
    out = []
    for item in points:
        if isinstance(item, ProfilePoint):
            out.append(item)
        elif isinstance(item, dict):
            out.append(ProfilePoint(float(item["x"]), float(item["y"])))
        else:
            x, y = item
            out.append(ProfilePoint(float(x), float(y)))
    return tuple(out)


@dataclass(frozen=True)
class ShapePoint:
    x: float
    shape: Optional[CrossSectionMode]  # None means a morphed station
    morphing_factor: float
    width: float
    height: float

    @property
    def is_morphed(self) -> bool:
        return self.shape is None


def as_shape_point(value: Union[ShapePoint, Dict[str, Any]]) -> ShapePoint:
    if isinstance(value, ShapePoint):
        return value
    raw_shape = value.get("shape", MORPHED_SHAPE)
    shape = None if str(raw_shape).strip().lower() == MORPHED_SHAPE else CrossSectionMode.parse(raw_shape)
    return ShapePoint(
        x=float(value["x"]),
        shape=shape,
        morphing_factor=float(value.get("morphingFactor", value.get("morphing_factor", 0.0))),
        width=float(value.get("width", 0.0)),
        height=float(value.get("height", 0.0)),
    )


@dataclass(frozen=True)
class DriverMountConfig:
    enabled: bool = False
    outer_diameter: float = 0.0
    bolt_hole_diameter: float = 0.0
    bolt_circle_diameter: float = 0.0
    bolt_count: int = 4
    thickness: float = 0.0


@dataclass(frozen=True)
class HornMountConfig:
    enabled: bool = False
    width_extension: float = 0.0
    bolt_spacing: float = 100.0
    bolt_hole_diameter: float = 0.0
    thickness: float = 0.0


@dataclass(frozen=True)
class HornGeometry:
    mode: CrossSectionMode
    profile: AxialProfile
    width_profile: Optional[AxialProfile] = None
    height_profile: Optional[AxialProfile] = None
    shape_profile: Optional[Tuple[ShapePoint, ...]] = None
    width: Optional[float] = None
    height: Optional[float] = None
    throat_width: Optional[float] = None
    throat_height: Optional[float] = None
    throat_shape: Optional[CrossSectionMode] = None
    mouth_shape: Optional[CrossSectionMode] = None
    wall_thickness: float = 0.0
    driver_mount: Optional[DriverMountConfig] = None
    horn_mount: Optional[HornMountConfig] = None

    @classmethod
    def create(cls, mode: Any, profile: ProfileLike, **kwargs: Any) -> "HornGeometry":
        """Build a geometry from loose Python values (tag strings, dicts, pairs)."""
        for key in ("width_profile", "height_profile"):
            if key in kwargs:
                kwargs[key] = as_profile(kwargs[key])
        if kwargs.get("shape_profile") is not None:
            kwargs["shape_profile"] = tuple(as_shape_point(p) for p in kwargs["shape_profile"])
        for key in ("throat_shape", "mouth_shape"):
            if kwargs.get(key) is not None:
                kwargs[key] = CrossSectionMode.parse(kwargs[key])
        return cls(mode=CrossSectionMode.parse(mode), profile=as_profile(profile), **kwargs)

    @property
    def has_driver_mount(self) -> bool:
        return bool(self.driver_mount is not None and self.driver_mount.enabled)

    @property
    def has_horn_mount(self) -> bool:
        return bool(self.horn_mount is not None and self.horn_mount.enabled)


@dataclass(frozen=True)
class MountOffsets:
    driver_mount_offset: Optional[float] = None
    horn_mount_offset: Optional[float] = None


# ---------------------------------------------------------------------------
# Mesh buffers
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Mesh:
    """Flat triangle buffers: xyz per vertex, three indices per triangle."""
    vertices: np.ndarray
    indices: np.ndarray
    normals: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        vertices = np.ascontiguousarray(self.vertices, dtype=np.float64).reshape(-1)
        raw_indices = np.asarray(self.indices, dtype=np.int64).reshape(-1)
        if vertices.size % 3 != 0:
            raise MeshInvariantError(f"vertex buffer length {vertices.size} is not a multiple of 3")
        if raw_indices.size % 3 != 0:
            raise MeshInvariantError(f"index buffer length {raw_indices.size} is not a multiple of 3")
        n_vertices = vertices.size // 3
        if raw_indices.size and (raw_indices.min() < 0 or raw_indices.max() >= n_vertices):
            raise MeshInvariantError(
                f"index out of range for {n_vertices} vertices "
                f"(min={int(raw_indices.min())}, max={int(raw_indices.max())})"
            )
        self.vertices = vertices
        self.indices = raw_indices.astype(np.uint32)
        if self.normals is not None:
            normals = np.ascontiguousarray(self.normals, dtype=np.float64).reshape(-1)
            if normals.size != vertices.size:
                raise MeshInvariantError(
                    f"normal buffer length {normals.size} does not match vertex buffer length {vertices.size}"
                )
            self.normals = normals

    @classmethod
    def empty(cls) -> "Mesh":
        return cls(np.zeros(0), np.zeros(0, dtype=np.uint32), np.zeros(0))

    @classmethod
    def from_arrays(
        cls,
        positions: np.ndarray,
        triangles: np.ndarray,
        normals: Optional[np.ndarray] = None,
    ) -> "Mesh":
        return cls(np.asarray(positions).reshape(-1), np.asarray(triangles).reshape(-1),
                   None if normals is None else np.asarray(normals).reshape(-1))

    @property
    def positions(self) -> np.ndarray:
        return self.vertices.reshape(-1, 3)

    @property
    def triangles(self) -> np.ndarray:
        return self.indices.reshape(-1, 3)

    @property
    def vertex_count(self) -> int:
        return self.vertices.size // 3

    @property
    def triangle_count(self) -> int:
        return self.indices.size // 3

    @property
    def is_empty(self) -> bool:
        return self.triangle_count == 0


@dataclass(frozen=True)
class MeshDegradation:
    """A fragment that was built with a fallback instead of the requested geometry."""
    component: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"component": self.component, "reason": self.reason}


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

def _env_number(name: str, default: float, cast=float):
    raw = os.environ.get(name)
    if raw is None or not str(raw).strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning("[Mesher] Ignoring invalid %s=%r; using %s.", name, raw, default)
        return default


DEFAULT_MESH_RESOLUTION = _env_number("HORN_MESH_RESOLUTION", DEFAULT_RESOLUTION, int)
DEFAULT_MESH_WELD_TOLERANCE = _env_number("HORN_WELD_TOLERANCE", DEFAULT_WELD_TOLERANCE, float)


@dataclass(frozen=True)
class MeshOptions:
    resolution: int = DEFAULT_MESH_RESOLUTION
    # Accepted for interface compatibility; no algorithm reads them.
    element_size: Optional[float] = None
    curvature_refine: bool = False
    cap_ends: bool = False
    weld_tolerance: float = DEFAULT_MESH_WELD_TOLERANCE


def normalize_mesh_options(value: Union[MeshOptions, Dict[str, Any], None]) -> MeshOptions:
    if value is None:
        options = MeshOptions()
    elif isinstance(value, MeshOptions):
        options = value
    else:
        options = MeshOptions(
            resolution=value.get("resolution", DEFAULT_MESH_RESOLUTION),
            element_size=value.get("elementSize", value.get("element_size")),
            curvature_refine=bool(value.get("curvatureRefine", value.get("curvature_refine", False))),
            cap_ends=bool(value.get("capEnds", value.get("cap_ends", False))),
            weld_tolerance=value.get("weldTolerance", value.get("weld_tolerance", DEFAULT_MESH_WELD_TOLERANCE)),
        )

    if isinstance(options.resolution, bool) or int(options.resolution) != options.resolution:
        raise HornValidationError(f"resolution must be an integer, got {options.resolution!r}.")
    if int(options.resolution) < MIN_RESOLUTION:
        raise HornValidationError(f"resolution must be >= {MIN_RESOLUTION}, got {options.resolution}.")
    if not float(options.weld_tolerance) > 0.0:
        raise HornValidationError("weld_tolerance must be positive.")
    if options.element_size is not None and not float(options.element_size) > 0.0:
        raise HornValidationError("element_size must be positive when given.")

    return MeshOptions(
        resolution=int(options.resolution),
        element_size=None if options.element_size is None else float(options.element_size),
        curvature_refine=bool(options.curvature_refine),
        cap_ends=bool(options.cap_ends),
        weld_tolerance=float(options.weld_tolerance),
    )
