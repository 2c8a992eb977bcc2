"""
Numeric constants shared by the horn mesher.

Lengths are millimetres. Counts are per closed loop.
"""

import math

EPSILON = 1e-10
TWO_PI = 2.0 * math.pi
TOP_ANGLE = 0.5 * math.pi

# Shape exponent of the superellipse cross-section (|y/a|^n + |z/b|^n = 1).
SUPERELLIPSE_EXPONENT = 2.5

# Points on each bolt-hole circle of a mounting flange.
HOLE_RESOLUTION = 16

# Driver flange outer circle carries this many times the body resolution.
OUTER_EDGE_MULTIPLIER = 2

MIN_BOLT_COUNT = 4
MIN_POLYGON_POINTS = 3
MIN_RESOLUTION = 3
MIN_PROFILE_POINTS = 2

# |cos| between consecutive edges below this counts as a right-angle corner.
CORNER_COS_TOLERANCE = 1e-3

DEFAULT_AXIAL_NORMAL = (1.0, 0.0, 0.0)
DEFAULT_WELD_TOLERANCE = 1e-3
DEFAULT_RESOLUTION = 50

STL_HEADER_TEXT = "Binary STL exported from Horn Profile Viewer"
STL_HEADER_SIZE = 80
