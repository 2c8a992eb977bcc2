import unittest

import numpy as np

from mesher.contract import Mesh
from mesher.converters import ELMER_BOUNDARY_NAMES, mesh_to_elmer, mesh_to_msh, mesh_to_payload, mesh_to_renderer
from mesher.gmsh_utils import parse_msh_stats


def _quad():
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.5, 0.0]])
    return Mesh.from_arrays(positions, [[0, 1, 2], [0, 2, 3]])


class ConverterTest(unittest.TestCase):
    def test_renderer_buffers(self):
        buffers = mesh_to_renderer(_quad())
        self.assertEqual(buffers["positions"].dtype, np.float32)
        self.assertEqual(buffers["indices"].dtype, np.uint32)
        self.assertEqual(buffers["normals"].shape, buffers["positions"].shape)
        np.testing.assert_array_equal(buffers["normals"], 0.0)

    def test_payload_is_plain_lists(self):
        payload = mesh_to_payload(_quad())
        self.assertEqual(payload["indices"], [0, 1, 2, 0, 2, 3])
        self.assertIsInstance(payload["vertices"][0], float)
        self.assertEqual(payload["normals"], [])

    def test_msh_22_layout(self):
        text = mesh_to_msh(_quad())
        lines = text.splitlines()
        self.assertEqual(lines[:3], ["$MeshFormat", "2.2 0 8", "$EndMeshFormat"])
        self.assertIn("4 0.0 1.5 0.0", lines)
        self.assertIn("2 2 2 0 1 1 3 4", lines)
        self.assertEqual(parse_msh_stats(text), {"nodeCount": 4, "elementCount": 2})

    def test_elmer_groups(self):
        elmer = mesh_to_elmer(_quad())
        self.assertEqual(len(elmer["nodes"]), 4)
        self.assertEqual(elmer["elements"][1]["nodes"], [1, 3, 4])
        self.assertEqual(elmer["elements"][0]["material"], 1)
        self.assertEqual([b["name"] for b in elmer["boundaries"]], list(ELMER_BOUNDARY_NAMES))
        self.assertTrue(all(b["elements"] == [] for b in elmer["boundaries"]))


class MshStatsTest(unittest.TestCase):
    def test_msh4_uses_the_total_count(self):
        text = "\n".join(["$Nodes", "1 12 1 12", "$EndNodes", "$Elements", "1 20 1 20", "$EndElements"])
        self.assertEqual(parse_msh_stats(text), {"nodeCount": 12, "elementCount": 20})

    def test_missing_sections_count_zero(self):
        self.assertEqual(parse_msh_stats(""), {"nodeCount": 0, "elementCount": 0})


if __name__ == "__main__":
    unittest.main()
