"""
Shared Pydantic request models for the Horn Mesher API.

Field names follow the browser app's geometry objects (camelCase).
"""

from pydantic import BaseModel, field_validator
from typing import Dict, List, Optional, Any

from mesher.contract import (
    MORPHED_SHAPE,
    CrossSectionMode,
    DriverMountConfig,
    HornGeometry,
    HornMountConfig,
    ProfilePoint,
    ShapePoint,
)
from mesher.constants import MIN_RESOLUTION


def _mode_tag(value: Any) -> str:
    """Canonical mode tag; raises ValueError for unsupported tags."""
    return CrossSectionMode.parse(value).value


class ProfilePointRequest(BaseModel):
    x: float
    y: float


class ShapePointRequest(BaseModel):
    x: float
    shape: str = MORPHED_SHAPE
    morphingFactor: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @field_validator("shape")
    @classmethod
    def validate_shape(cls, value: str) -> str:
        raw = str(value or "").strip().lower()
        if raw == MORPHED_SHAPE:
            return raw
        return _mode_tag(raw)

    @field_validator("morphingFactor")
    @classmethod
    def validate_factor(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("morphingFactor must be within [0, 1].")
        return value

    def to_shape_point(self) -> ShapePoint:
        return ShapePoint(
            x=self.x,
            shape=None if self.shape == MORPHED_SHAPE else CrossSectionMode(self.shape),
            morphing_factor=self.morphingFactor,
            width=self.width,
            height=self.height,
        )


class DriverMountRequest(BaseModel):
    enabled: bool = False
    outerDiameter: float = 0.0
    boltHoleDiameter: float = 0.0
    boltCircleDiameter: float = 0.0
    boltCount: int = 4
    thickness: float = 0.0

    @field_validator("outerDiameter", "boltHoleDiameter", "boltCircleDiameter", "thickness", "boltCount")
    @classmethod
    def validate_non_negative(cls, value):
        if value < 0:
            raise ValueError("driver mount dimensions must be non-negative.")
        return value

    def to_config(self) -> DriverMountConfig:
        return DriverMountConfig(
            enabled=self.enabled,
            outer_diameter=self.outerDiameter,
            bolt_hole_diameter=self.boltHoleDiameter,
            bolt_circle_diameter=self.boltCircleDiameter,
            bolt_count=self.boltCount,
            thickness=self.thickness,
        )


class HornMountRequest(BaseModel):
    enabled: bool = False
    widthExtension: float = 0.0
    boltSpacing: float = 100.0
    boltHoleDiameter: float = 0.0
    thickness: float = 0.0

    @field_validator("boltSpacing")
    @classmethod
    def validate_spacing(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("boltSpacing must be positive.")
        return value

    @field_validator("widthExtension", "boltHoleDiameter", "thickness")
    @classmethod
    def validate_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("horn mount dimensions must be non-negative.")
        return value

    def to_config(self) -> HornMountConfig:
        return HornMountConfig(
            enabled=self.enabled,
            width_extension=self.widthExtension,
            bolt_spacing=self.boltSpacing,
            bolt_hole_diameter=self.boltHoleDiameter,
            thickness=self.thickness,
        )


def _profile(points: Optional[List[ProfilePointRequest]]):
    if points is None:
        return None
    return tuple(ProfilePoint(p.x, p.y) for p in points)


class HornGeometryRequest(BaseModel):
    mode: str = "ellipse"
    profile: List[ProfilePointRequest]
    widthProfile: Optional[List[ProfilePointRequest]] = None
    heightProfile: Optional[List[ProfilePointRequest]] = None
    shapeProfile: Optional[List[ShapePointRequest]] = None
    width: Optional[float] = None
    height: Optional[float] = None
    throatWidth: Optional[float] = None
    throatHeight: Optional[float] = None
    throatShape: Optional[str] = None
    mouthShape: Optional[str] = None
    wallThickness: float = 0.0
    driverMount: Optional[DriverMountRequest] = None
    hornMount: Optional[HornMountRequest] = None

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, value: str) -> str:
        return _mode_tag(value)

    @field_validator("throatShape", "mouthShape")
    @classmethod
    def validate_end_shape(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _mode_tag(value)

    @field_validator("profile")
    @classmethod
    def validate_profile(cls, value: List[ProfilePointRequest]) -> List[ProfilePointRequest]:
        if len(value) < 2:
            raise ValueError("profile must contain at least 2 points.")
        return value

    @field_validator("width", "height", "throatWidth", "throatHeight")
    @classmethod
    def validate_positive(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value <= 0:
            raise ValueError("dimensions must be positive.")
        return value

    @field_validator("wallThickness")
    @classmethod
    def validate_wall(cls, value: float) -> float:
        if value < 0:
            raise ValueError("wallThickness must be non-negative.")
        return value

    def to_geometry(self) -> HornGeometry:
        return HornGeometry(
            mode=CrossSectionMode(self.mode),
            profile=_profile(self.profile),
            width_profile=_profile(self.widthProfile),
            height_profile=_profile(self.heightProfile),
            shape_profile=(
                None if self.shapeProfile is None
                else tuple(p.to_shape_point() for p in self.shapeProfile)
            ),
            width=self.width,
            height=self.height,
            throat_width=self.throatWidth,
            throat_height=self.throatHeight,
            throat_shape=None if self.throatShape is None else CrossSectionMode(self.throatShape),
            mouth_shape=None if self.mouthShape is None else CrossSectionMode(self.mouthShape),
            wall_thickness=self.wallThickness,
            driver_mount=None if self.driverMount is None else self.driverMount.to_config(),
            horn_mount=None if self.hornMount is None else self.hornMount.to_config(),
        )


class MeshOptionsRequest(BaseModel):
    resolution: Optional[int] = None
    elementSize: Optional[float] = None
    curvatureRefine: bool = False
    capEnds: bool = False
    weldTolerance: Optional[float] = None

    @field_validator("resolution")
    @classmethod
    def validate_resolution(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < MIN_RESOLUTION:
            raise ValueError(f"resolution must be >= {MIN_RESOLUTION}.")
        return value

    def to_options(self) -> Dict[str, Any]:
        """Only the fields that were set; the rest fall back to MeshOptions defaults."""
        return self.model_dump(exclude_none=True)


class HornMeshRequest(BaseModel):
    geometry: HornGeometryRequest
    options: MeshOptionsRequest = MeshOptionsRequest()
    include_msh: bool = False
    filename: str = "horn"
