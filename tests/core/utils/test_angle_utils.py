"""
Unit tests for angle wrapping utilities.

Tests cover:
    - Wrapping into the half-open interval (-π, π]
    - The ±π boundary
    - Shortest angular difference used for bearing innovations
"""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from sensor_fusion.utils import angle_diff, wrap_angle, wrap_angle_array


class TestWrapAngle(unittest.TestCase):
    """Test scalar angle wrapping."""

    def test_inside_range_unchanged(self):
        for angle in [0.0, 0.5, -0.5, 3.0, -3.0]:
            self.assertAlmostEqual(wrap_angle(angle), angle, places=12)

    def test_multiple_turns(self):
        self.assertAlmostEqual(wrap_angle(3.5 * np.pi), -0.5 * np.pi, places=12)
        self.assertAlmostEqual(wrap_angle(-3.5 * np.pi), 0.5 * np.pi, places=12)
        self.assertAlmostEqual(wrap_angle(2 * np.pi + 0.1), 0.1, places=12)

    def test_boundary(self):
        """-π maps to +π; +π stays."""
        self.assertAlmostEqual(wrap_angle(np.pi), np.pi, places=12)
        self.assertAlmostEqual(wrap_angle(-np.pi), np.pi, places=12)

    def test_result_in_half_open_interval(self):
        rng = np.random.default_rng(0)
        for angle in rng.uniform(-50, 50, size=200):
            wrapped = wrap_angle(angle)
            self.assertGreater(wrapped, -np.pi)
            self.assertLessEqual(wrapped, np.pi)
            # Same direction
            self.assertAlmostEqual(np.cos(wrapped), np.cos(angle), places=9)
            self.assertAlmostEqual(np.sin(wrapped), np.sin(angle), places=9)


class TestWrapAngleArray(unittest.TestCase):
    """Test vectorized angle wrapping."""

    def test_matches_scalar(self):
        angles = np.linspace(-20, 20, 101)
        expected = np.array([wrap_angle(a) for a in angles])
        assert_allclose(wrap_angle_array(angles), expected, atol=1e-12)

    def test_boundary(self):
        assert_allclose(wrap_angle_array(np.array([-np.pi, np.pi])), [np.pi, np.pi])


class TestAngleDiff(unittest.TestCase):
    """Test shortest angular difference."""

    def test_across_discontinuity(self):
        """+179° vs -179° is a 2° difference, not 358°."""
        a = np.deg2rad(179.0)
        b = np.deg2rad(-179.0)
        self.assertAlmostEqual(angle_diff(a, b), np.deg2rad(-2.0), places=12)
        self.assertAlmostEqual(angle_diff(b, a), np.deg2rad(2.0), places=12)

    def test_nearly_opposite_angles(self):
        self.assertEqual(round(angle_diff(np.pi - 0.1, -np.pi + 0.1), 6), -0.2)

    def test_array_inputs(self):
        a = np.array([0.1, np.pi - 0.1])
        b = np.array([0.0, -np.pi + 0.1])
        assert_allclose(angle_diff(a, b), [0.1, -0.2], atol=1e-12)


if __name__ == "__main__":
    unittest.main()
