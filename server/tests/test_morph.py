import itertools
import unittest

import numpy as np

from mesher.contract import CrossSectionMode, ShapePoint
from mesher.cross_section import sample_cross_section
from mesher.morph import detect_corners, morph_cross_section, morph_factor_at, normalize_loop


class MorphCrossSectionTest(unittest.TestCase):
    def test_same_mode_is_the_sampler_output(self):
        for factor in (0.0, 0.3, 1.0):
            loop = morph_cross_section("superellipse", "superellipse", factor, 20.0, 10.0, 24)
            np.testing.assert_allclose(loop, sample_cross_section("superellipse", 20.0, 10.0, 24))

    def test_factor_zero_and_one_reproduce_the_end_shapes(self):
        source = morph_cross_section("ellipse", "rectangular", 0.0, 30.0, 20.0, 32)
        target = morph_cross_section("ellipse", "rectangular", 1.0, 30.0, 20.0, 32)
        np.testing.assert_allclose(source, sample_cross_section("ellipse", 30.0, 20.0, 32), atol=1e-9)
        np.testing.assert_allclose(target, sample_cross_section("rectangular", 30.0, 20.0, 32), atol=1e-9)

    def test_every_mode_pair_reproduces_its_end_shapes(self):
        for source, target in itertools.product(CrossSectionMode, repeat=2):
            with self.subTest(source=source.value, target=target.value):
                start = morph_cross_section(source, target, 0.0, 30.0, 20.0, 32)
                end = morph_cross_section(source, target, 1.0, 30.0, 20.0, 32)
                np.testing.assert_allclose(start, sample_cross_section(source, 30.0, 20.0, 32), atol=1e-9)
                np.testing.assert_allclose(end, sample_cross_section(target, 30.0, 20.0, 32), atol=1e-9)

    def test_pinned_edge_shares_reach_both_ends(self):
        shares = [6, 6, 6, 6]
        start = morph_cross_section("rectangular", "ellipse", 0.0, 30.0, 20.0, 28, edge_shares=shares)
        np.testing.assert_allclose(
            start, sample_cross_section("rectangular", 30.0, 20.0, 28, edge_shares=shares), atol=1e-9
        )

    def test_factor_is_clamped(self):
        below = morph_cross_section("ellipse", "superellipse", -2.0, 10.0, 10.0, 16)
        above = morph_cross_section("ellipse", "superellipse", 5.0, 10.0, 10.0, 16)
        np.testing.assert_allclose(below, sample_cross_section("ellipse", 10.0, 10.0, 16), atol=1e-9)
        np.testing.assert_allclose(above, sample_cross_section("superellipse", 10.0, 10.0, 16), atol=1e-9)

    def test_halfway_lies_between_the_two_shapes(self):
        ellipse = sample_cross_section("ellipse", 10.0, 10.0, 8)
        superellipse = sample_cross_section("superellipse", 10.0, 10.0, 8)
        half = morph_cross_section(CrossSectionMode.ELLIPSE, CrossSectionMode.SUPERELLIPSE, 0.5, 10.0, 10.0, 8)
        np.testing.assert_allclose(half, 0.5 * (ellipse + superellipse), atol=1e-9)
        self.assertEqual(half.shape, (8, 2))

    def test_end_sizes_are_blended_too(self):
        loop = morph_cross_section(
            "rectangular", "rectangular", 0.5, 1.0, 1.0, 12,
            source_dims=(10.0, 10.0), target_dims=(20.0, 20.0),
        )
        np.testing.assert_allclose(loop, sample_cross_section("rectangular", 15.0, 15.0, 12), atol=1e-9)


class NormalizeLoopTest(unittest.TestCase):
    def test_matching_length_is_returned_unchanged(self):
        loop = sample_cross_section("ellipse", 3.0, 2.0, 12)
        out = normalize_loop(loop, 12)
        np.testing.assert_array_equal(out, loop)
        self.assertIsNot(out, loop)

    def test_rectangular_resample_keeps_exact_corners(self):
        loop = sample_cross_section("rectangular", 5.0, 2.0, 12)
        out = normalize_loop(loop, 20, rectangular=True)
        self.assertEqual(len(out), 20)
        np.testing.assert_allclose(out, sample_cross_section("rectangular", 5.0, 2.0, 20))

    def test_polar_resample_stays_on_a_circle(self):
        loop = sample_cross_section("ellipse", 4.0, 4.0, 64)
        out = normalize_loop(loop, 10)
        self.assertEqual(len(out), 10)
        np.testing.assert_allclose(np.hypot(out[:, 0], out[:, 1]), 4.0, rtol=1e-2)
        np.testing.assert_allclose(out[0], [0.0, 4.0], atol=1e-2)

    def test_detect_corners_finds_the_rectangle_corners(self):
        loop = sample_cross_section("rectangular", 5.0, 2.0, 16)
        corners = detect_corners(loop)
        self.assertEqual(len(corners), 4)
        for index in corners:
            self.assertAlmostEqual(abs(loop[index, 0]), 5.0)
            self.assertAlmostEqual(abs(loop[index, 1]), 2.0)
        self.assertEqual(detect_corners(sample_cross_section("ellipse", 5.0, 2.0, 16)), [])


class MorphFactorTest(unittest.TestCase):
    def test_factor_is_interpolated_along_the_schedule(self):
        schedule = (
            ShapePoint(x=0.0, shape=None, morphing_factor=0.0, width=0.0, height=0.0),
            ShapePoint(x=100.0, shape=None, morphing_factor=1.0, width=0.0, height=0.0),
        )
        self.assertAlmostEqual(morph_factor_at(schedule, 25.0), 0.25)
        self.assertEqual(morph_factor_at(schedule, -5.0), 0.0)
        self.assertEqual(morph_factor_at(schedule, 150.0), 1.0)


if __name__ == "__main__":
    unittest.main()
