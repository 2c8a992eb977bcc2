"""
Blending between two cross-section families.

Both shapes are sampled at the station size, brought to a common resolution
and interpolated point-for-point. Rectangular loops are resampled along their
edges so the four corners stay exact; smooth loops are resampled in polar
angle.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .constants import CORNER_COS_TOLERANCE, TOP_ANGLE, TWO_PI
from .contract import CrossSectionMode, ProfilePoint, ShapePoint
from .cross_section import RectangularSampler, get_sampler
from .profile import value_at

logger = logging.getLogger(__name__)

_RECTANGLE = RectangularSampler()


def detect_corners(points: np.ndarray, tolerance: float = CORNER_COS_TOLERANCE) -> List[int]:
    """Indices where the incoming and outgoing edges meet at a right angle."""
    pts = np.asarray(points, dtype=float)
    incoming = pts - np.roll(pts, 1, axis=0)
    outgoing = np.roll(pts, -1, axis=0) - pts
    norms = np.linalg.norm(incoming, axis=1) * np.linalg.norm(outgoing, axis=1)
    valid = norms > 0.0
    cosines = np.ones(len(pts))
    cosines[valid] = np.einsum("ij,ij->i", incoming[valid], outgoing[valid]) / norms[valid]
    return [int(i) for i in np.nonzero(np.abs(cosines) < tolerance)[0]]


def _resample_polar(points: np.ndarray, resolution: int) -> np.ndarray:
    angles = np.arctan2(points[:, 1], points[:, 0])
    radii = np.hypot(points[:, 0], points[:, 1])
    targets = TOP_ANGLE + TWO_PI * np.arange(resolution) / resolution
    r = np.interp(targets, angles, radii, period=TWO_PI)
    return np.column_stack((r * np.cos(targets), r * np.sin(targets)))


def _resample_rectangular(points: np.ndarray, resolution: int) -> Optional[np.ndarray]:
    corners = detect_corners(points)
    if len(corners) != 4:
        return None
    corner_pts = points[corners]
    half_width = float(np.max(np.abs(corner_pts[:, 0])))
    half_height = float(np.max(np.abs(corner_pts[:, 1])))
    return _RECTANGLE.sample(half_width, half_height, resolution)


def normalize_loop(points: np.ndarray, resolution: int, rectangular: bool = False) -> np.ndarray:
    """Bring a closed top-start loop to ``resolution`` points.

    A loop that already has ``resolution`` points is returned unchanged.
    """
    pts = np.asarray(points, dtype=float)
    if len(pts) == resolution:
        return pts.copy()

    if rectangular:
        resampled = _resample_rectangular(pts, resolution)
        if resampled is not None:
            return resampled
        logger.debug("[Morph] No four right-angle corners found; resampling %d points by angle.", len(pts))
    return _resample_polar(pts, resolution)


def morph_cross_section(
    source_mode,
    target_mode,
    factor: float,
    half_width: float,
    half_height: float,
    resolution: int,
    source_dims: Optional[Tuple[float, float]] = None,
    target_dims: Optional[Tuple[float, float]] = None,
    edge_shares: Optional[Sequence[int]] = None,
) -> np.ndarray:
    """Loop part-way between two shapes.

    ``source_dims`` and ``target_dims`` are (half_width, half_height) of each
    end and default to ``half_width`` x ``half_height``. ``factor`` 0
    reproduces the source sampler, 1 the target sampler, point for point.
    ``edge_shares`` pins the rectangular edge layout across a sweep.
    Easing is the caller's concern.
    """
    source = CrossSectionMode.parse(source_mode)
    target = CrossSectionMode.parse(target_mode)
    src_hw, src_hh = source_dims or (half_width, half_height)
    dst_hw, dst_hh = target_dims or (half_width, half_height)
    if source is target and (src_hw, src_hh) == (dst_hw, dst_hh):
        return get_sampler(source).sample(src_hw, src_hh, resolution, edge_shares)

    t = min(max(float(factor), 0.0), 1.0)
    # Each end at its own size: rectangular edge shares depend on the aspect ratio.
    a = normalize_loop(get_sampler(source).sample(src_hw, src_hh, resolution, edge_shares), resolution,
                       source.has_corners)
    b = normalize_loop(get_sampler(target).sample(dst_hw, dst_hh, resolution, edge_shares), resolution,
                       target.has_corners)
    if a.shape != b.shape:
        raise ValueError(f"Normalized loops differ in resolution: {len(a)} vs {len(b)}.")

    return (1.0 - t) * a + t * b


def morph_factor_at(shape_profile: Sequence[ShapePoint], x: float) -> float:
    """Morph factor scheduled at axial position ``x``, clamped to [0, 1]."""
    schedule = tuple(ProfilePoint(p.x, p.morphing_factor) for p in shape_profile)
    return min(max(value_at(schedule, x), 0.0), 1.0)
