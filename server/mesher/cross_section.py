"""
Cross-section loops for one shape family at one size.

Every sampler returns an (r, 2) array of (y, z) points that starts at the
top of the section (90 degrees) and runs counter-clockwise in the (y, z)
plane, so loops sampled at adjacent stations stay index-correspondent.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .constants import SUPERELLIPSE_EXPONENT, TOP_ANGLE, TWO_PI
from .contract import CrossSectionMode, HornValidationError


# ---------------------------------------------------------------------------
# Loop helpers
# ---------------------------------------------------------------------------

def polygon_perimeter(points: np.ndarray) -> float:
    """Length of the closed loop through ``points``."""
    pts = np.asarray(points, dtype=float)
    if len(pts) < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.roll(pts, -1, axis=0) - pts, axis=1)))


def signed_area(points: np.ndarray) -> float:
    """Shoelace area; positive for counter-clockwise loops."""
    pts = np.asarray(points, dtype=float)
    if len(pts) < 3:
        return 0.0
    y, z = pts[:, 0], pts[:, 1]
    return 0.5 * float(np.dot(y, np.roll(z, -1)) - np.dot(np.roll(y, -1), z))


def _check_size(half_width: float, half_height: float, resolution: int) -> None:
    if not (math.isfinite(half_width) and math.isfinite(half_height)):
        raise HornValidationError("Cross-section dimensions must be finite.")
    if half_width <= 0.0 or half_height <= 0.0:
        raise HornValidationError(
            f"Cross-section dimensions must be positive, got {half_width} x {half_height}."
        )
    if int(resolution) != resolution or resolution < 1:
        raise HornValidationError(f"Cross-section resolution must be a positive integer, got {resolution}.")


def _loop_angles(resolution: int) -> np.ndarray:
    return TOP_ANGLE + TWO_PI * np.arange(resolution) / resolution


# ---------------------------------------------------------------------------
# Samplers
# ---------------------------------------------------------------------------

EdgeShares = Sequence[int]


class CrossSectionSampler:
    mode: CrossSectionMode

    def sample(
        self,
        half_width: float,
        half_height: float,
        resolution: int,
        edge_shares: Optional[EdgeShares] = None,
    ) -> np.ndarray:
        """Loop of ``resolution`` points; ``edge_shares`` only matters for cornered shapes."""
        _check_size(half_width, half_height, resolution)
        return self._sample(float(half_width), float(half_height), int(resolution), edge_shares)

    def _sample(self, half_width, half_height, resolution, edge_shares):
        raise NotImplementedError


class EllipseSampler(CrossSectionSampler):
    mode = CrossSectionMode.ELLIPSE

    def _sample(self, half_width, half_height, resolution, edge_shares):
        theta = _loop_angles(resolution)
        return np.column_stack((half_width * np.cos(theta), half_height * np.sin(theta)))


class SuperellipseSampler(CrossSectionSampler):
    mode = CrossSectionMode.SUPERELLIPSE

    def __init__(self, exponent: float = SUPERELLIPSE_EXPONENT):
        self.exponent = float(exponent)

    def _sample(self, half_width, half_height, resolution, edge_shares):
        theta = _loop_angles(resolution)
        power = 2.0 / self.exponent
        c, s = np.cos(theta), np.sin(theta)
        return np.column_stack((
            half_width * np.sign(c) * np.abs(c) ** power,
            half_height * np.sign(s) * np.abs(s) ** power,
        ))


class RectangularSampler(CrossSectionSampler):
    """Exact corners plus edge points distributed by edge length.

    Edges are walked counter-clockwise from the top-right corner: top, left,
    bottom, right. The loop starts at the top centre, which always carries a
    point when the top edge has any; otherwise at the top-left corner.

    Passing the same ``edge_shares`` for every station of a sweep keeps the
    corners in the same slots whatever the aspect ratio of each station.

    Resolutions below four have fixed layouts:
    1 -> top-left corner; 2 -> top-left and bottom-right corners;
    3 -> top centre, bottom-left and bottom-right corners.
    """
    mode = CrossSectionMode.RECTANGULAR

    @staticmethod
    def distribute_edge_points(count: int, half_width: float, half_height: float) -> List[int]:
        """Split ``count`` points over (top, left, bottom, right) by largest remainder."""
        lengths = [2.0 * half_width, 2.0 * half_height, 2.0 * half_width, 2.0 * half_height]
        perimeter = sum(lengths)
        quotas = [count * length / perimeter for length in lengths]
        shares = [int(math.floor(q)) for q in quotas]
        remaining = count - sum(shares)
        # Ties go to the earlier edge in walk order.
        order = sorted(range(4), key=lambda i: (-(quotas[i] - shares[i]), i))
        for i in order[:remaining]:
            shares[i] += 1
        return shares

    @staticmethod
    def _top_edge(half_width: float, half_height: float, share: int) -> List[Tuple[float, float]]:
        # Centre point plus the rest split evenly over the two halves, right half first.
        right = share // 2
        left = share - 1 - right
        points = [(half_width * (1.0 - j / (right + 1)), half_height) for j in range(1, right + 1)]
        points.append((0.0, half_height))
        points.extend((-half_width * j / (left + 1), half_height) for j in range(1, left + 1))
        return points

    def _sample(self, half_width, half_height, resolution, edge_shares):
        hw, hh = half_width, half_height
        if resolution == 1:
            return np.array([[-hw, hh]])
        if resolution == 2:
            return np.array([[-hw, hh], [hw, -hh]])
        if resolution == 3:
            return np.array([[0.0, hh], [-hw, -hh], [hw, -hh]])

        if edge_shares is None:
            shares = self.distribute_edge_points(resolution - 4, hw, hh)
        else:
            shares = [int(s) for s in edge_shares]
            if len(shares) != 4 or min(shares) < 0 or sum(shares) != resolution - 4:
                raise HornValidationError(
                    f"Edge shares {list(edge_shares)} do not place {resolution - 4} points on 4 edges."
                )

        corners = [(hw, hh), (-hw, hh), (-hw, -hh), (hw, -hh)]
        loop: List[Tuple[float, float]] = [corners[0]]
        if shares[0]:
            top = self._top_edge(hw, hh, shares[0])
            start = 1 + shares[0] // 2
            loop.extend(top)
        else:
            start = 1
        for edge in range(1, 4):
            corner, nxt, share = corners[edge], corners[(edge + 1) % 4], shares[edge]
            loop.append(corner)
            for j in range(1, share + 1):
                t = j / (share + 1)
                loop.append((corner[0] + t * (nxt[0] - corner[0]), corner[1] + t * (nxt[1] - corner[1])))

        points = np.array(loop, dtype=float)
        return np.roll(points, -start, axis=0)


def edge_shares_for(mode, half_width: float, half_height: float, resolution: int) -> Optional[List[int]]:
    """Edge layout to hold fixed over a sweep, or None for shapes without corners."""
    if not CrossSectionMode.parse(mode).has_corners or resolution < 4:
        return None
    return RectangularSampler.distribute_edge_points(resolution - 4, half_width, half_height)


SAMPLERS: Dict[CrossSectionMode, CrossSectionSampler] = {
    CrossSectionMode.ELLIPSE: EllipseSampler(),
    CrossSectionMode.SUPERELLIPSE: SuperellipseSampler(),
    CrossSectionMode.RECTANGULAR: RectangularSampler(),
}


def get_sampler(mode) -> CrossSectionSampler:
    return SAMPLERS[CrossSectionMode.parse(mode)]


def sample_cross_section(
    mode,
    half_width: float,
    half_height: float,
    resolution: int,
    edge_shares: Optional[EdgeShares] = None,
) -> np.ndarray:
    """Closed loop of ``resolution`` (y, z) points for ``mode`` at the given half sizes."""
    return get_sampler(mode).sample(half_width, half_height, resolution, edge_shares)
