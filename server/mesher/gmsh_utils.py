from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from .deps import GMSH_AVAILABLE, gmsh

gmsh_lock = threading.Lock()


class GmshMeshingError(RuntimeError):
    pass


@contextmanager
def gmsh_session(model_name: str) -> Iterator[object]:
    """Hold the process-wide gmsh lock with a fresh model.

    gmsh is initialised here only if nobody else did, and finalised on exit
    in that case.
    """
    if not GMSH_AVAILABLE:
        raise GmshMeshingError("gmsh Python API is not available.")

    with gmsh_lock:
        initialized_here = False
        try:
            if not gmsh.isInitialized():
                gmsh.initialize()
                initialized_here = True
            gmsh.option.setNumber("General.Terminal", 0)
            gmsh.clear()
            gmsh.model.add(model_name)
            yield gmsh
        finally:
            if initialized_here and gmsh.isInitialized():
                gmsh.finalize()


_COUNTED_SECTIONS = {"$Nodes": "nodeCount", "$Elements": "elementCount"}


def parse_msh_stats(msh_text: str) -> Dict[str, int]:
    """Node and element totals from the section headers of an MSH 2.2 or 4.1 file."""
    stats = {key: 0 for key in _COUNTED_SECTIONS.values()}
    lines = iter(msh_text.splitlines())
    for line in lines:
        key = _COUNTED_SECTIONS.get(line.strip())
        if key is None:
            continue
        header = next(lines, "").split()
        # 2.2 writes the bare count; 4.1 writes numBlocks first.
        count = header[0] if len(header) == 1 else header[1] if len(header) > 1 else ""
        stats[key] = int(count) if count.isdigit() else 0
    return stats
