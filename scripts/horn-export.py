#!/usr/bin/env python3
"""
Export a horn geometry JSON file to binary STL (and optionally MSH 2.2).

  python scripts/horn-export.py <geometry.json> [output_dir] [--resolution N] [--msh] [--cap-ends]

The JSON document uses the same fields as the /api/mesh/horn request's
"geometry" object.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "server"))

from pydantic import ValidationError  # noqa: E402

from mesher.converters import mesh_to_msh  # noqa: E402
from mesher.horn_mesher import build_horn_mesh  # noqa: E402
from mesher.stl import write_stl  # noqa: E402
from models import HornGeometryRequest  # noqa: E402

logger = logging.getLogger("horn-export")


def export_geometry(
    geometry_path: str,
    output_dir: Optional[str] = None,
    resolution: Optional[int] = None,
    write_msh: bool = False,
    cap_ends: bool = False,
) -> bool:
    """Build the horn described by ``geometry_path`` and write its outputs."""
    path = Path(geometry_path)
    if not path.exists():
        logger.error("File not found: %s", path)
        return False

    try:
        request = HornGeometryRequest.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.error("Invalid geometry file %s: %s", path, exc)
        return False

    options = {"capEnds": cap_ends}
    if resolution is not None:
        options["resolution"] = resolution

    try:
        result = build_horn_mesh(request.to_geometry(), options)
    except ValueError as exc:
        logger.error("Invalid geometry %s: %s", path, exc)
        return False

    out = Path(output_dir) if output_dir else path.parent
    out.mkdir(parents=True, exist_ok=True)
    stl_path = write_stl(result.mesh, out / f"{path.stem}.stl")
    print(f"Generated: {stl_path}")

    if write_msh:
        msh_path = out / f"{path.stem}.msh"
        msh_path.write_text(mesh_to_msh(result.mesh), encoding="utf-8")
        print(f"Generated: {msh_path}")

    for notice in result.degraded:
        logger.warning("%s degraded: %s", notice.component, notice.reason)
    print(
        f"{result.mesh.vertex_count} vertices, {result.mesh.triangle_count} triangles, "
        f"{result.stats['boundary_edges']} open edges"
    )
    return True


def main() -> int:
    parser = argparse.ArgumentParser(description="Export a horn geometry to binary STL")
    parser.add_argument("geometry", help="Horn geometry JSON file")
    parser.add_argument("output_dir", nargs="?", default=None,
                        help="Output directory (default: next to the input)")
    parser.add_argument("--resolution", type=int, default=None,
                        help="Points per cross-section ring (default: HORN_MESH_RESOLUTION or 50)")
    parser.add_argument("--msh", action="store_true", help="Also write a Gmsh MSH 2.2 file")
    parser.add_argument("--cap-ends", action="store_true", help="Close ends that carry no mount")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ok = export_geometry(args.geometry, args.output_dir, args.resolution, args.msh, args.cap_ends)
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
