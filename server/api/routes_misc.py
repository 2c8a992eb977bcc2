"""
Miscellaneous routes: service info and health.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter

from mesher.deps import GMSH_AVAILABLE, GMSH_SUPPORTED, get_dependency_status

logger = logging.getLogger(__name__)

router = APIRouter()

SERVICE_NAME = "Horn Mesher"
SERVICE_VERSION = "1.0.0"


@router.get("/")
async def root() -> Dict[str, Any]:
    """Root endpoint."""
    return {
        "name": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "holeCutoutsAvailable": GMSH_AVAILABLE,
    }


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Health check endpoint."""
    logger.info("Health check requested")
    return {
        "status": "ok",
        "triangulator": "gmsh" if GMSH_AVAILABLE else "unavailable",
        "triangulatorReady": GMSH_AVAILABLE and GMSH_SUPPORTED,
        "dependencies": get_dependency_status(),
        "timestamp": datetime.now().isoformat(),
    }
