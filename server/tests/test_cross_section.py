import unittest

import numpy as np

from mesher.contract import CrossSectionMode, HornValidationError
from mesher.cross_section import (
    RectangularSampler,
    edge_shares_for,
    get_sampler,
    polygon_perimeter,
    sample_cross_section,
    signed_area,
)


class CrossSectionSamplerTest(unittest.TestCase):
    def test_every_mode_fills_its_bounding_box(self):
        for mode in CrossSectionMode:
            for resolution in (8, 16, 48):
                loop = sample_cross_section(mode, 40.0, 25.0, resolution)
                self.assertEqual(loop.shape, (resolution, 2), mode)
                self.assertTrue(np.all(np.isfinite(loop)))
                self.assertAlmostEqual(np.max(np.abs(loop[:, 0])), 40.0, places=6, msg=mode)
                self.assertAlmostEqual(np.max(np.abs(loop[:, 1])), 25.0, places=6, msg=mode)

    def test_loops_run_counter_clockwise_from_the_top(self):
        for mode in CrossSectionMode:
            loop = sample_cross_section(mode, 30.0, 30.0, 32)
            self.assertGreater(signed_area(loop), 0.0, mode)
            self.assertGreater(loop[0, 1], 0.0, mode)

    def test_ellipse_starts_at_top_centre(self):
        loop = sample_cross_section("ellipse", 10.0, 5.0, 4)
        np.testing.assert_allclose(loop[0], [0.0, 5.0], atol=1e-12)
        np.testing.assert_allclose(loop[1], [-10.0, 0.0], atol=1e-12)

    def test_circle_tag_is_an_ellipse(self):
        self.assertIs(get_sampler("circle").mode, CrossSectionMode.ELLIPSE)
        loop = sample_cross_section("circle", 12.0, 12.0, 64)
        np.testing.assert_allclose(np.hypot(loop[:, 0], loop[:, 1]), 12.0)

    def test_superellipse_bulges_past_the_ellipse(self):
        ellipse = sample_cross_section("ellipse", 10.0, 10.0, 8)
        superellipse = sample_cross_section("superellipse", 10.0, 10.0, 8)
        diagonal = 1  # 135 degrees
        self.assertGreater(np.hypot(*superellipse[diagonal]), np.hypot(*ellipse[diagonal]))

    def test_unknown_tag_is_rejected(self):
        with self.assertRaises(HornValidationError):
            sample_cross_section("stereographic", 10.0, 10.0, 8)

    def test_non_positive_dimensions_are_rejected(self):
        for hw, hh in ((0.0, 5.0), (5.0, -1.0), (float("nan"), 5.0)):
            with self.assertRaises(HornValidationError):
                sample_cross_section("ellipse", hw, hh, 8)

    def test_perimeter_of_unit_square(self):
        square = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
        self.assertAlmostEqual(polygon_perimeter(square), 4.0)
        self.assertAlmostEqual(signed_area(square), 1.0)
        self.assertAlmostEqual(signed_area(square[::-1]), -1.0)


class RectangularSamplerTest(unittest.TestCase):
    def _on_edge(self, point, hw, hh, tol=1e-9):
        y, z = point
        on_vertical = abs(abs(y) - hw) < tol and abs(z) <= hh + tol
        on_horizontal = abs(abs(z) - hh) < tol and abs(y) <= hw + tol
        return on_vertical or on_horizontal

    def test_edge_shares_follow_edge_length(self):
        self.assertEqual(RectangularSampler.distribute_edge_points(20, 40.0, 30.0), [6, 4, 6, 4])
        self.assertEqual(sum(RectangularSampler.distribute_edge_points(37, 12.5, 80.0)), 37)
        self.assertEqual(RectangularSampler.distribute_edge_points(0, 1.0, 1.0), [0, 0, 0, 0])

    def test_80_by_60_at_24_points(self):
        loop = sample_cross_section(CrossSectionMode.RECTANGULAR, 40.0, 30.0, 24)
        self.assertEqual(len(loop), 24)
        for corner in ((40.0, 30.0), (-40.0, 30.0), (-40.0, -30.0), (40.0, -30.0)):
            distances = np.linalg.norm(loop - np.array(corner), axis=1)
            self.assertLess(distances.min(), 1e-9, corner)
        for point in loop:
            self.assertTrue(self._on_edge(point, 40.0, 30.0))

    def test_exactly_four_corners_for_larger_resolutions(self):
        for resolution in (4, 5, 9, 24, 51):
            loop = sample_cross_section("rectangular", 25.0, 10.0, resolution)
            corners = [
                p for p in loop
                if abs(abs(p[0]) - 25.0) < 1e-9 and abs(abs(p[1]) - 10.0) < 1e-9
            ]
            self.assertEqual(len(corners), 4, resolution)
            self.assertTrue(all(self._on_edge(p, 25.0, 10.0) for p in loop))

    def test_loop_starts_at_the_top_centre(self):
        for resolution in (23, 24):
            loop = sample_cross_section("rectangular", 40.0, 30.0, resolution)
            np.testing.assert_allclose(loop[0], [0.0, 30.0], atol=1e-12, err_msg=str(resolution))
            self.assertGreater(signed_area(loop), 0.0)

    def test_empty_top_edge_starts_at_the_top_left_corner(self):
        loop = sample_cross_section("rectangular", 40.0, 30.0, 12, edge_shares=[0, 4, 0, 4])
        np.testing.assert_allclose(loop[0], [-40.0, 30.0])
        np.testing.assert_allclose(loop[-1], [40.0, 30.0])

    def test_pinned_shares_keep_corner_slots_across_aspect_ratios(self):
        shares = edge_shares_for("rectangular", 40.0, 30.0, 24)
        self.assertEqual(shares, [6, 4, 6, 4])
        self.assertIsNone(edge_shares_for("ellipse", 40.0, 30.0, 24))

        def corner_slots(loop, hw, hh):
            return [
                i for i, (y, z) in enumerate(loop)
                if abs(abs(y) - hw) < 1e-9 and abs(abs(z) - hh) < 1e-9
            ]

        wide = sample_cross_section("rectangular", 40.0, 30.0, 24, edge_shares=shares)
        tall = sample_cross_section("rectangular", 5.0, 20.0, 24, edge_shares=shares)
        self.assertEqual(corner_slots(wide, 40.0, 30.0), corner_slots(tall, 5.0, 20.0))
        self.assertNotEqual(
            corner_slots(tall, 5.0, 20.0),
            corner_slots(sample_cross_section("rectangular", 5.0, 20.0, 24), 5.0, 20.0),
        )

    def test_edge_shares_must_fill_the_loop(self):
        for shares in ([6, 4, 6], [6, 4, 6, 5], [-1, 11, 6, 4]):
            with self.assertRaises(HornValidationError):
                sample_cross_section("rectangular", 40.0, 30.0, 24, edge_shares=shares)
        # Smooth shapes ignore them.
        sample_cross_section("ellipse", 40.0, 30.0, 24, edge_shares=[1, 2, 3])

    def test_small_resolutions_use_fixed_layouts(self):
        np.testing.assert_allclose(sample_cross_section("rectangular", 2.0, 1.0, 1), [[-2.0, 1.0]])
        np.testing.assert_allclose(
            sample_cross_section("rectangular", 2.0, 1.0, 2), [[-2.0, 1.0], [2.0, -1.0]]
        )
        np.testing.assert_allclose(
            sample_cross_section("rectangular", 2.0, 1.0, 3),
            [[0.0, 1.0], [-2.0, -1.0], [2.0, -1.0]],
        )


if __name__ == "__main__":
    unittest.main()
