"""
Horn Mesher Backend
FastAPI application for building horn waveguide meshes
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes_mesh import router as mesh_router
from api.routes_misc import SERVICE_NAME, SERVICE_VERSION, router as misc_router
from mesher.deps import GMSH_AVAILABLE

app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION)

# Enable CORS for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(misc_router)
app.include_router(mesh_router)


if __name__ == "__main__":
    import uvicorn
    print("Starting Horn Mesher Backend...")
    print(f"Hole cut-outs available: {GMSH_AVAILABLE}")
    if not GMSH_AVAILABLE:
        print("Warning: gmsh not installed. Mount flanges will be built without bolt holes.")
    uvicorn.run(app, host="0.0.0.0", port=8000)
