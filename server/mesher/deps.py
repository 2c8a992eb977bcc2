"""
Optional and versioned runtime dependencies of the mesher.

gmsh backs the constrained triangulation of mount faces; without it the
mesher still runs and reports degraded flanges. scipy is required for
interface welding and is only reported here.
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from importlib import metadata
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Version = Tuple[int, int, int]


@dataclass(frozen=True)
class VersionRange:
    minimum: Version
    maximum_exclusive: Optional[Version] = None

    def contains(self, version: Optional[Version]) -> bool:
        if version is None or version < self.minimum:
            return False
        return self.maximum_exclusive is None or version < self.maximum_exclusive

    def __str__(self) -> str:
        text = ">=" + ".".join(str(p) for p in _trim(self.minimum))
        if self.maximum_exclusive is not None:
            text += ",<" + ".".join(str(p) for p in _trim(self.maximum_exclusive))
        return text


def _trim(version: Version) -> Tuple[int, ...]:
    parts = list(version)
    while len(parts) > 2 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


PYTHON_RANGE = VersionRange((3, 10, 0), (3, 15, 0))
GMSH_RANGE = VersionRange((4, 11, 0), (5, 0, 0))
SCIPY_RANGE = VersionRange((1, 10, 0))

SUPPORTED_DEPENDENCY_MATRIX: Dict[str, Dict[str, str]] = {
    "python": {"range": str(PYTHON_RANGE)},
    "gmsh_python": {"range": str(GMSH_RANGE), "required_for": "mount flange hole cut-outs"},
    "scipy": {"range": str(SCIPY_RANGE), "required_for": "interface welding"},
}


def _parse_version_tuple(raw: Optional[str]) -> Optional[Version]:
    """First three integers of a version string, zero padded."""
    if raw is None:
        return None
    numbers = [int(item) for item in re.findall(r"\d+", str(raw))[:3]]
    if not numbers:
        return None
    numbers += [0] * (3 - len(numbers))
    return (numbers[0], numbers[1], numbers[2])


def _distribution_version(name: str) -> Optional[str]:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None


PYTHON_VERSION = "{}.{}.{}".format(*sys.version_info[:3])
PYTHON_SUPPORTED = PYTHON_RANGE.contains(tuple(sys.version_info[:3]))

try:
    import gmsh  # type: ignore
    GMSH_AVAILABLE = True
except (ImportError, OSError):
    # The wheel ships native libraries; a missing system lib surfaces as OSError.
    gmsh = None
    GMSH_AVAILABLE = False

GMSH_VERSION = (getattr(gmsh, "__version__", None) or _distribution_version("gmsh")) if GMSH_AVAILABLE else None
GMSH_SUPPORTED = GMSH_AVAILABLE and PYTHON_SUPPORTED and GMSH_RANGE.contains(_parse_version_tuple(GMSH_VERSION))

SCIPY_VERSION = _distribution_version("scipy")

if not PYTHON_SUPPORTED:
    logger.warning("Unsupported Python runtime %s; supported range is %s.", PYTHON_VERSION, PYTHON_RANGE)
if not GMSH_AVAILABLE:
    logger.warning(
        "gmsh Python API not available; mount flanges will be built without bolt holes (install gmsh %s).",
        GMSH_RANGE,
    )
elif not GMSH_SUPPORTED:
    logger.warning(
        "Unsupported gmsh Python package version %s; supported range is %s.",
        GMSH_VERSION or "unknown", GMSH_RANGE,
    )


def get_dependency_status() -> Dict[str, Any]:
    return {
        "supportedMatrix": SUPPORTED_DEPENDENCY_MATRIX,
        "runtime": {
            "python": {"version": PYTHON_VERSION, "supported": PYTHON_SUPPORTED},
            "gmsh_python": {
                "available": GMSH_AVAILABLE,
                "version": GMSH_VERSION,
                "supported": GMSH_SUPPORTED,
                "ready": GMSH_AVAILABLE and GMSH_SUPPORTED,
            },
            "scipy": {
                "available": SCIPY_VERSION is not None,
                "version": SCIPY_VERSION,
                "supported": SCIPY_RANGE.contains(_parse_version_tuple(SCIPY_VERSION)),
            },
        },
    }
