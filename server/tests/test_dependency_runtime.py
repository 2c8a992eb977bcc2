import asyncio
import unittest
from unittest.mock import patch

from api import routes_misc
from mesher import deps


class DependencyRuntimeTest(unittest.TestCase):
    def test_health_reports_dependency_payload(self):
        dependency_status = {
            "supportedMatrix": {
                "python": {"range": ">=3.10,<3.15"},
                "gmsh_python": {"range": ">=4.11,<5.0", "required_for": "mount flange hole cut-outs"},
            },
            "runtime": {
                "python": {"version": "3.13.1", "supported": True},
                "gmsh_python": {"available": True, "version": "4.13.1", "supported": True, "ready": True},
                "scipy": {"available": True, "version": "1.14.0"},
            },
        }

        with patch("api.routes_misc.get_dependency_status", return_value=dependency_status), patch(
            "api.routes_misc.GMSH_AVAILABLE", True
        ), patch("api.routes_misc.GMSH_SUPPORTED", True):
            response = asyncio.run(routes_misc.health_check())

        self.assertEqual(response["status"], "ok")
        self.assertEqual(response["dependencies"], dependency_status)
        self.assertEqual(response["triangulator"], "gmsh")
        self.assertTrue(response["triangulatorReady"])

    def test_health_without_gmsh(self):
        with patch("api.routes_misc.GMSH_AVAILABLE", False), patch("api.routes_misc.GMSH_SUPPORTED", False):
            response = asyncio.run(routes_misc.health_check())
        self.assertEqual(response["triangulator"], "unavailable")
        self.assertFalse(response["triangulatorReady"])

    def test_root_reports_service(self):
        response = asyncio.run(routes_misc.root())
        self.assertEqual(response["name"], "Horn Mesher")
        self.assertEqual(response["status"], "running")

    def test_dependency_status_shape(self):
        status = deps.get_dependency_status()
        self.assertIn("gmsh_python", status["supportedMatrix"])
        runtime = status["runtime"]
        self.assertEqual(set(runtime), {"python", "gmsh_python", "scipy"})
        self.assertIsInstance(runtime["python"]["supported"], bool)
        self.assertTrue(runtime["scipy"]["available"])

    def test_version_parsing(self):
        self.assertEqual(deps._parse_version_tuple("4.13.1"), (4, 13, 1))
        self.assertEqual(deps._parse_version_tuple("4.11"), (4, 11, 0))
        self.assertIsNone(deps._parse_version_tuple(None))
        self.assertIsNone(deps._parse_version_tuple("dev"))
        self.assertTrue(deps.GMSH_RANGE.contains((4, 12, 0)))
        self.assertFalse(deps.GMSH_RANGE.contains((5, 0, 0)))
        self.assertFalse(deps.GMSH_RANGE.contains(None))
        self.assertEqual(str(deps.GMSH_RANGE), ">=4.11,<5.0")


if __name__ == "__main__":
    unittest.main()
