import unittest

import numpy as np

from mesher.contract import (
    DriverMountConfig,
    HornGeometry,
    HornMountConfig,
    HornValidationError,
    Mesh,
    ShapePoint,
)
from mesher.validation import calculate_mesh_statistics, validate_geometry

PROFILE = [(0.0, 25.0), (200.0, 100.0)]


class ValidateGeometryTest(unittest.TestCase):
    def test_valid_geometry_passes(self):
        validate_geometry(HornGeometry.create("ellipse", PROFILE))

    def test_single_point_profile_is_rejected(self):
        with self.assertRaises(HornValidationError) as ctx:
            validate_geometry(HornGeometry.create("ellipse", [(0.0, 25.0)]))
        self.assertIn("at least 2 points", str(ctx.exception))

    def test_decreasing_x_is_rejected(self):
        with self.assertRaises(HornValidationError) as ctx:
            validate_geometry(HornGeometry.create("ellipse", [(0.0, 25.0), (100.0, 50.0), (90.0, 60.0)]))
        self.assertIn("non-decreasing", str(ctx.exception))

    def test_non_positive_radius_is_rejected(self):
        with self.assertRaises(HornValidationError):
            validate_geometry(HornGeometry.create("ellipse", [(0.0, 0.0), (100.0, 50.0)]))

    def test_throat_not_smaller_than_mouth(self):
        with self.assertRaises(HornValidationError) as ctx:
            validate_geometry(HornGeometry.create("ellipse", [(0.0, 100.0), (200.0, 25.0)]))
        self.assertIn("Throat", str(ctx.exception))

    def test_one_axis_growing_is_enough(self):
        geometry = HornGeometry.create(
            "rectangular",
            [(0.0, 50.0), (200.0, 50.0)],
            width_profile=[(0.0, 20.0), (200.0, 80.0)],
        )
        validate_geometry(geometry)

    def test_errors_are_collected(self):
        geometry = HornGeometry.create(
            "ellipse", PROFILE, width=-1.0, wall_thickness=-2.0,
        )
        with self.assertRaises(HornValidationError) as ctx:
            validate_geometry(geometry)
        message = str(ctx.exception)
        self.assertIn("width must be positive", message)
        self.assertIn("wall_thickness must be non-negative", message)

    def test_enabled_mounts_are_checked(self):
        geometry = HornGeometry.create(
            "ellipse",
            PROFILE,
            driver_mount=DriverMountConfig(enabled=True, outer_diameter=0.0),
            horn_mount=HornMountConfig(enabled=True, bolt_spacing=0.0),
        )
        with self.assertRaises(HornValidationError) as ctx:
            validate_geometry(geometry)
        self.assertIn("driver_mount.outer_diameter", str(ctx.exception))
        self.assertIn("horn_mount.bolt_spacing", str(ctx.exception))

    def test_horn_mount_needs_a_width_extension(self):
        geometry = HornGeometry.create(
            "ellipse", PROFILE, horn_mount=HornMountConfig(enabled=True, width_extension=0.0)
        )
        with self.assertRaises(HornValidationError) as ctx:
            validate_geometry(geometry)
        self.assertIn("horn_mount.width_extension must be positive", str(ctx.exception))

    def test_disabled_mounts_are_ignored(self):
        geometry = HornGeometry.create(
            "ellipse", PROFILE, driver_mount=DriverMountConfig(enabled=False, outer_diameter=-5.0)
        )
        validate_geometry(geometry)

    def test_morph_factor_range(self):
        geometry = HornGeometry.create(
            "ellipse",
            PROFILE,
            shape_profile=[ShapePoint(x=0.0, shape=None, morphing_factor=1.5, width=0.0, height=0.0)],
        )
        with self.assertRaises(HornValidationError):
            validate_geometry(geometry)


class MeshStatisticsTest(unittest.TestCase):
    def test_statistics_of_a_right_triangle(self):
        positions = np.array([[0.0, 0.0, 0.0], [3.0, 0.0, 0.0], [0.0, 4.0, 0.0]])
        stats = calculate_mesh_statistics(Mesh.from_arrays(positions, [[0, 1, 2]]))
        self.assertEqual(stats["num_vertices"], 3)
        self.assertEqual(stats["num_elements"], 1)
        self.assertAlmostEqual(stats["min_edge_length"], 3.0)
        self.assertAlmostEqual(stats["max_edge_length"], 5.0)
        self.assertAlmostEqual(stats["mean_edge_length"], 4.0)
        self.assertEqual(stats["boundary_edges"], 3)
        self.assertFalse(stats["watertight"])
        self.assertEqual(stats["bounds"], [[0.0, 0.0, 0.0], [3.0, 4.0, 0.0]])

    def test_empty_mesh(self):
        stats = calculate_mesh_statistics(Mesh.empty())
        self.assertEqual(stats["num_elements"], 0)
        self.assertIsNone(stats["bounds"])


if __name__ == "__main__":
    unittest.main()
