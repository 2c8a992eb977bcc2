"""
Mesh building routes: horn geometry to triangulated surface and binary STL.
"""

import base64
import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from mesher.converters import mesh_to_msh, mesh_to_payload
from mesher.gmsh_utils import parse_msh_stats
from mesher.horn_mesher import HornMeshResult, build_horn_mesh
from mesher.stl import mesh_to_stl
from models import HornMeshRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def run_horn_build(request: HornMeshRequest) -> HornMeshResult:
    """Build the mesh and map mesher errors onto HTTP status codes."""
    try:
        geometry = request.geometry.to_geometry()
        # Run directly on the request thread; the gmsh API fails in worker threads.
        return build_horn_mesh(geometry, request.options.to_options())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("[Mesher] Horn build failed")
        raise HTTPException(status_code=500, detail=f"Horn build failed: {exc}") from exc


@router.post("/api/mesh/horn")
async def build_horn(request: HornMeshRequest) -> Dict[str, Any]:
    """
    Build the horn surface and return flat buffers plus a base64 binary STL.
    """
    result = run_horn_build(request)
    response: Dict[str, Any] = mesh_to_payload(result.mesh)
    response.update({
        "stats": result.stats,
        "degraded": [notice.to_dict() for notice in result.degraded],
        "stl": base64.b64encode(mesh_to_stl(result.mesh)).decode("ascii"),
        "generatedBy": "horn-mesher",
    })
    if request.include_msh:
        msh = mesh_to_msh(result.mesh)
        response["msh"] = msh
        response["mshStats"] = parse_msh_stats(msh)
    return response


@router.post("/api/mesh/stl")
async def export_horn_stl(request: HornMeshRequest) -> Response:
    """Build the horn surface and return it as a binary STL download."""
    result = run_horn_build(request)
    filename = (request.filename or "horn").strip() or "horn"
    headers = {"Content-Disposition": f'attachment; filename="{filename}.stl"'}
    if result.degraded:
        headers["X-Mesh-Degraded"] = ",".join(notice.component for notice in result.degraded)
    return Response(content=mesh_to_stl(result.mesh), media_type="model/stl", headers=headers)
