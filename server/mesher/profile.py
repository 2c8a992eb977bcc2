"""
Axial profile sampling: interpolation, mount trimming and per-station size.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .constants import MIN_PROFILE_POINTS
from .contract import (
    AxialProfile,
    HornGeometry,
    HornValidationError,
    MountOffsets,
    ProfilePoint,
)

logger = logging.getLogger(__name__)


def value_at(profile: AxialProfile, x: float) -> float:
    """Linearly interpolated radius at ``x``, clamped to the profile ends."""
    if not profile:
        raise HornValidationError("Cannot interpolate an empty profile.")
    if len(profile) == 1:
        return profile[0].y

    if x <= profile[0].x:
        return profile[0].y
    if x >= profile[-1].x:
        return profile[-1].y

    lower, upper = profile[0], profile[-1]
    for a, b in zip(profile, profile[1:]):
        if a.x <= x <= b.x:
            lower, upper = a, b
            break

    span = upper.x - lower.x
    if span == 0.0:
        return lower.y
    t = (x - lower.x) / span
    return lower.y + t * (upper.y - lower.y)


def trim_start(profile: AxialProfile, offset: float) -> AxialProfile:
    """Drop ``offset`` mm from the throat end, re-anchored at the new start."""
    if not profile or offset <= 0.0:
        return profile

    new_start = profile[0].x + offset
    trimmed: List[ProfilePoint] = []
    if new_start < profile[-1].x:
        trimmed.append(ProfilePoint(new_start, value_at(profile, new_start)))
    trimmed.extend(p for p in profile if p.x > new_start)
    return tuple(trimmed)


def trim_end(profile: AxialProfile, offset: float) -> AxialProfile:
    """Drop ``offset`` mm from the mouth end, re-anchored at the new end."""
    if not profile or offset <= 0.0:
        return profile

    new_end = profile[-1].x - offset
    trimmed: List[ProfilePoint] = [p for p in profile if p.x < new_end]
    if new_end > profile[0].x:
        trimmed.append(ProfilePoint(new_end, value_at(profile, new_end)))
    return tuple(trimmed)


def dimensions_at(
    profile: AxialProfile,
    width_profile: Optional[AxialProfile],
    height_profile: Optional[AxialProfile],
    x: float,
    default_width: Optional[float] = None,
    default_height: Optional[float] = None,
) -> Tuple[float, float]:
    """Full (width, height) at ``x``.

    A per-axis profile wins, then the explicit default, then twice the base
    radius.
    """
    base_radius = value_at(profile, x)
    if width_profile:
        width = 2.0 * value_at(width_profile, x)
    elif default_width is not None:
        width = float(default_width)
    else:
        width = 2.0 * base_radius

    if height_profile:
        height = 2.0 * value_at(height_profile, x)
    elif default_height is not None:
        height = float(default_height)
    else:
        height = 2.0 * base_radius
    return width, height


def effective_profile(geometry: HornGeometry) -> Tuple[AxialProfile, MountOffsets]:
    """Profile left for the horn body once mount thicknesses are taken out of it."""
    profile = geometry.profile
    driver_offset = None
    horn_offset = None

    if geometry.has_driver_mount and geometry.driver_mount.thickness > 0:
        driver_offset = float(geometry.driver_mount.thickness)
        profile = trim_start(profile, driver_offset)
    if geometry.has_horn_mount and geometry.horn_mount.thickness > 0:
        horn_offset = float(geometry.horn_mount.thickness)
        profile = trim_end(profile, horn_offset)

    if len(profile) < MIN_PROFILE_POINTS:
        raise HornValidationError(
            "Mount thickness consumes the horn profile: "
            f"{len(profile)} point(s) left after trimming, need {MIN_PROFILE_POINTS}."
        )
    if driver_offset or horn_offset:
        logger.debug(
            "[Mesher] Profile trimmed for mounts: driver=%s horn=%s -> x=[%.3f, %.3f]",
            driver_offset, horn_offset, profile[0].x, profile[-1].x,
        )
    return profile, MountOffsets(driver_mount_offset=driver_offset, horn_mount_offset=horn_offset)
