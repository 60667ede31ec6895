"""Unit tests for sensor_fusion.fusion.types and sensor_fusion.fusion.parsing.

Tests the immutable measurement record and the L/R measurement text format.
"""

import os
import tempfile
import unittest

import numpy as np
from numpy.testing import assert_allclose

from sensor_fusion.fusion import (
    MeasurementRecord,
    SensorKind,
    format_measurement,
    iter_measurements,
    load_measurements,
    parse_measurement_line,
)


LASER_LINE = "L\t3.122427e-01\t5.803398e-01\t1477010443000000\t6.000000e-01\t6.000000e-01\t5.199937e+00\t0\t0\t6.911322e-03"
RADAR_LINE = "R\t1.014892e+00\t5.543292e-01\t4.892807e+00\t1477010443050000\t8.599968e-01\t6.000449e-01\t5.199747e+00\t1.796856e-03\t3.455661e-04\t1.382155e-02"


class TestSensorKind(unittest.TestCase):
    """Test sensor kind enumeration."""

    def test_tags(self):
        self.assertIs(SensorKind("L"), SensorKind.LASER)
        self.assertIs(SensorKind("R"), SensorKind.RADAR)

    def test_measurement_dim(self):
        self.assertEqual(SensorKind.LASER.measurement_dim, 2)
        self.assertEqual(SensorKind.RADAR.measurement_dim, 3)


class TestMeasurementRecord(unittest.TestCase):
    """Test record validation and immutability."""

    def test_valid_laser(self):
        record = MeasurementRecord(SensorKind.LASER, np.array([1.0, 2.0]), 100)
        assert_allclose(record.z, [1.0, 2.0])
        self.assertEqual(record.timestamp, 100)
        self.assertFalse(record.has_ground_truth)

    def test_arrays_are_copied_and_read_only(self):
        z = np.array([1.0, 2.0])
        record = MeasurementRecord(SensorKind.LASER, z, 0)
        z[0] = 99.0
        self.assertEqual(record.z[0], 1.0)
        with self.assertRaises(ValueError):
            record.z[0] = 5.0

    def test_frozen(self):
        record = MeasurementRecord(SensorKind.LASER, np.array([1.0, 2.0]), 0)
        with self.assertRaises(Exception):
            record.timestamp = 5

    def test_wrong_dimension_raises(self):
        with self.assertRaises(ValueError):
            MeasurementRecord(SensorKind.RADAR, np.array([1.0, 2.0]), 0)
        with self.assertRaises(ValueError):
            MeasurementRecord(SensorKind.LASER, np.array([1.0, 2.0, 3.0]), 0)

    def test_non_array_raises(self):
        with self.assertRaises(TypeError):
            MeasurementRecord(SensorKind.LASER, [1.0, 2.0], 0)

    def test_non_finite_raises(self):
        with self.assertRaises(ValueError):
            MeasurementRecord(SensorKind.LASER, np.array([np.nan, 2.0]), 0)

    def test_bad_sensor_raises(self):
        with self.assertRaises(TypeError):
            MeasurementRecord("L", np.array([1.0, 2.0]), 0)

    def test_bad_timestamp_raises(self):
        with self.assertRaises(TypeError):
            MeasurementRecord(SensorKind.LASER, np.array([1.0, 2.0]), 1.5)
        with self.assertRaises(ValueError):
            MeasurementRecord(SensorKind.LASER, np.array([1.0, 2.0]), -1)

    def test_ground_truth_length(self):
        with self.assertRaises(ValueError):
            MeasurementRecord(SensorKind.LASER, np.array([1.0, 2.0]), 0, ground_truth=np.zeros(4))
        record = MeasurementRecord(SensorKind.LASER, np.array([1.0, 2.0]), 0, ground_truth=np.zeros(6))
        self.assertTrue(record.has_ground_truth)


class TestParseMeasurementLine(unittest.TestCase):
    """Test parsing of single lines."""

    def test_laser_with_ground_truth(self):
        record = parse_measurement_line(LASER_LINE)
        self.assertIs(record.sensor, SensorKind.LASER)
        assert_allclose(record.z, [0.3122427, 0.5803398])
        self.assertEqual(record.timestamp, 1477010443000000)
        assert_allclose(record.ground_truth[:3], [0.6, 0.6, 5.199937])

    def test_radar_with_ground_truth(self):
        record = parse_measurement_line(RADAR_LINE)
        self.assertIs(record.sensor, SensorKind.RADAR)
        assert_allclose(record.z, [1.014892, 0.5543292, 4.892807])
        self.assertEqual(record.timestamp, 1477010443050000)
        self.assertEqual(len(record.ground_truth), 6)

    def test_without_ground_truth(self):
        record = parse_measurement_line("R 1.0 0.5 2.0 42")
        self.assertFalse(record.has_ground_truth)
        self.assertEqual(record.timestamp, 42)

    def test_unknown_tag_raises(self):
        with self.assertRaises(ValueError):
            parse_measurement_line("X 1.0 2.0 0")

    def test_wrong_field_count_raises(self):
        with self.assertRaises(ValueError):
            parse_measurement_line("L 1.0 0")
        with self.assertRaises(ValueError):
            parse_measurement_line("L 1.0 2.0 0 1 2 3")

    def test_non_numeric_raises(self):
        with self.assertRaises(ValueError):
            parse_measurement_line("L 1.0 abc 0")
        with self.assertRaises(ValueError):
            parse_measurement_line("L 1.0 2.0 1.5e6")

    def test_format_then_parse(self):
        record = parse_measurement_line(RADAR_LINE)
        again = parse_measurement_line(format_measurement(record))
        self.assertIs(again.sensor, record.sensor)
        self.assertEqual(again.timestamp, record.timestamp)
        assert_allclose(again.z, record.z, atol=1e-6)
        assert_allclose(again.ground_truth, record.ground_truth, atol=1e-6)


class TestLoadMeasurements(unittest.TestCase):
    """Test reading whole files."""

    def test_skips_blank_and_comment_lines(self):
        lines = ["# header", "", LASER_LINE, "   ", RADAR_LINE]
        records = list(iter_measurements(lines))
        self.assertEqual([r.sensor for r in records], [SensorKind.LASER, SensorKind.RADAR])

    def test_error_reports_line_number(self):
        lines = [LASER_LINE, "# comment", "L 1.0 oops 5"]
        with self.assertRaisesRegex(ValueError, "line 3"):
            list(iter_measurements(lines))

    def test_load_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "data.txt")
            with open(path, "w") as f:
                f.write(LASER_LINE + "\n" + RADAR_LINE + "\n")
            records = load_measurements(path)
        self.assertEqual(len(records), 2)
        self.assertLess(records[0].timestamp, records[1].timestamp)


if __name__ == "__main__":
    unittest.main()
