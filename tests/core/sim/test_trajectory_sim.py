"""Unit tests for sensor_fusion.sim."""

import unittest

import numpy as np
from numpy.testing import assert_allclose

from sensor_fusion.config import FilterConfig
from sensor_fusion.fusion import SensorKind
from sensor_fusion.sim import generate_records, measure, simulate_ctrv_truth, simulate_cv_truth


class TestSimulateTruth(unittest.TestCase):
    """Test ground truth generators."""

    def test_cv_without_noise(self):
        timestamps, truth = simulate_cv_truth(5, 0.1, x0=(0.0, 0.0, 1.0, 2.0), start_timestamp=1000)
        assert_allclose(timestamps, [1000, 101000, 201000, 301000, 401000])
        assert_allclose(truth[:, 0], [0.0, 0.1, 0.2, 0.3, 0.4], atol=1e-12)
        assert_allclose(truth[:, 1], [0.0, 0.2, 0.4, 0.6, 0.8], atol=1e-12)
        assert_allclose(truth[:, 4], np.arctan2(2.0, 1.0))
        assert_allclose(truth[:, 5], 0.0, atol=1e-12)

    def test_cv_noise_is_reproducible(self):
        _, a = simulate_cv_truth(50, 0.05, accel_std=1.0, rng=np.random.default_rng(1))
        _, b = simulate_cv_truth(50, 0.05, accel_std=1.0, rng=np.random.default_rng(1))
        assert_allclose(a, b)
        self.assertGreater(np.std(np.diff(a[:, 2])), 0.0)

    def test_ctrv_circle(self):
        """Unit speed and yaw rate close a circle after 2π seconds."""
        n = 101
        dt = 2 * np.pi / (n - 1)
        _, truth = simulate_ctrv_truth(n, dt, x0=(0.0, 0.0, 1.0, 0.0, 1.0))
        assert_allclose(truth[-1, :2], [0.0, 0.0], atol=1e-9)
        assert_allclose(np.hypot(truth[:, 2], truth[:, 3]), 1.0)
        self.assertTrue(np.all(truth[:, 4] > -np.pi))
        self.assertTrue(np.all(truth[:, 4] <= np.pi))
        assert_allclose(truth[:, 5], 1.0)

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            simulate_cv_truth(0, 0.1)
        with self.assertRaises(ValueError):
            simulate_ctrv_truth(10, 0.0)


class TestMeasure(unittest.TestCase):
    """Test noisy measurement draws."""

    def test_laser_statistics(self):
        config = FilterConfig()
        rng = np.random.default_rng(0)
        row = np.array([3.0, 4.0, 1.0, 0.0, 0.0, 0.0])
        samples = np.array([measure(row, SensorKind.LASER, config, rng) for _ in range(4000)])
        assert_allclose(samples.mean(axis=0), [3.0, 4.0], atol=0.02)
        assert_allclose(samples.std(axis=0), [0.15, 0.15], atol=0.01)

    def test_radar_statistics(self):
        config = FilterConfig()
        rng = np.random.default_rng(1)
        row = np.array([3.0, 4.0, 1.0, 0.0, 0.0, 0.0])
        samples = np.array([measure(row, SensorKind.RADAR, config, rng) for _ in range(4000)])
        assert_allclose(samples.mean(axis=0), [5.0, np.arctan2(4.0, 3.0), 0.6], atol=0.03)
        assert_allclose(samples.std(axis=0), [0.3, 0.03, 0.3], rtol=0.1)

    def test_radar_bearing_wrapped(self):
        config = FilterConfig()
        rng = np.random.default_rng(2)
        row = np.array([-5.0, 1e-6, 0.0, 0.0, 0.0, 0.0])
        for _ in range(200):
            phi = measure(row, SensorKind.RADAR, config, rng)[1]
            self.assertGreater(phi, -np.pi)
            self.assertLessEqual(phi, np.pi)


class TestGenerateRecords(unittest.TestCase):
    """Test measurement stream generation."""

    def setUp(self):
        self.timestamps, self.truth = simulate_cv_truth(6, 0.05)

    def test_alternate(self):
        records = generate_records(self.truth, self.timestamps, seed=0)
        self.assertEqual([r.sensor.value for r in records], ["L", "R", "L", "R", "L", "R"])
        for record, row, t in zip(records, self.truth, self.timestamps):
            assert_allclose(record.ground_truth, row)
            self.assertEqual(record.timestamp, t)

    def test_single_sensor_patterns(self):
        self.assertTrue(all(r.sensor is SensorKind.LASER
                            for r in generate_records(self.truth, self.timestamps, pattern="laser")))
        self.assertTrue(all(r.sensor is SensorKind.RADAR
                            for r in generate_records(self.truth, self.timestamps, pattern="radar")))

    def test_both(self):
        records = generate_records(self.truth, self.timestamps, pattern="both")
        self.assertEqual(len(records), 12)
        self.assertEqual(records[0].timestamp, records[1].timestamp)

    def test_seed_reproducible(self):
        a = generate_records(self.truth, self.timestamps, seed=3)
        b = generate_records(self.truth, self.timestamps, seed=3)
        for ra, rb in zip(a, b):
            assert_allclose(ra.z, rb.z)

    def test_invalid_inputs(self):
        with self.assertRaises(ValueError):
            generate_records(self.truth, self.timestamps, pattern="zigzag")
        with self.assertRaises(ValueError):
            generate_records(self.truth[:, :4], self.timestamps)
        with self.assertRaises(ValueError):
            generate_records(self.truth, self.timestamps[:-1])


if __name__ == "__main__":
    unittest.main()
