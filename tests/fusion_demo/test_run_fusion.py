"""Tests for the laser/radar fusion batch driver.

Runs small simulated measurement files end to end through
fusion_demo.run_fusion and the dataset generator script.
"""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout

import numpy as np
from numpy.testing import assert_allclose

from fusion_demo.run_fusion import format_report, main, run_fusion, write_estimates
from scripts.generate_laser_radar_dataset import generate_laser_radar_dataset
from sensor_fusion.config import FilterConfig
from sensor_fusion.fusion import MeasurementRecord, SensorKind, format_measurement, load_measurements
from sensor_fusion.sim import generate_records, simulate_ctrv_truth


def make_records(n=60, seed=0):
    timestamps, truth = simulate_ctrv_truth(
        n, 0.05, x0=(5.0, 2.0, 3.0, 0.2, 0.1), start_timestamp=1477010443000000
    )
    return generate_records(truth, timestamps, pattern="alternate", seed=seed)


class TestRunFusion(unittest.TestCase):
    """Test run_fusion on in-memory records."""

    def test_ukf_results(self):
        records = make_records()
        results = run_fusion(records, filter_name="ukf", verbose=False)

        self.assertEqual(results['filter'], "ukf")
        self.assertEqual(results['estimates'].shape, (60, 5))
        self.assertEqual(results['cartesian'].shape, (60, 4))
        self.assertEqual(results['rmse_history'].shape, (60, 4))
        self.assertEqual(results['n_skipped'], 0)
        self.assertEqual(results['timestep'], 59)
        # First record initializes, no NIS yet
        self.assertTrue(np.isnan(results['nis_laser'][0]))
        self.assertTrue(np.isnan(results['nis_radar'][0]))
        self.assertFalse(np.isnan(results['nis_radar'][-1]))
        assert_allclose(results['rmse'], results['rmse_history'][-1])
        self.assertTrue(np.all(results['rmse'] < 2.0))

    def test_ekf_radar_disabled(self):
        records = make_records()
        results = run_fusion(records, filter_name="ekf", config=FilterConfig(use_radar=False), verbose=False)

        self.assertEqual(results['estimates'].shape, (30, 4))
        self.assertEqual(results['n_skipped'], 30)
        self.assertTrue(np.all(np.isnan(results['nis_radar'])))
        self.assertEqual(results['consistency']['radar']['updates'], 0)
        self.assertEqual(results['consistency']['laser']['updates'], 29)
        self.assertTrue(np.all(results['sensors'] == "L"))

    def test_records_without_ground_truth(self):
        records = [
            MeasurementRecord(SensorKind.LASER, np.array([1.0, 1.0]), 0),
            MeasurementRecord(SensorKind.LASER, np.array([1.1, 1.0]), 50000),
        ]
        results = run_fusion(records, filter_name="ekf", verbose=False)
        self.assertEqual(len(results['timestamps']), 2)
        self.assertTrue(np.all(np.isnan(results['rmse'])))
        self.assertTrue(np.all(np.isnan(results['ground_truth'])))

    def test_unknown_filter_raises(self):
        with self.assertRaises(ValueError):
            run_fusion(make_records(4), filter_name="kf", verbose=False)

    def test_report_wording(self):
        results = run_fusion(make_records(), filter_name="ukf", verbose=False)
        lines = format_report(results)
        self.assertTrue(lines[0].startswith("Final NIS(laser): "))
        self.assertTrue(lines[0].endswith("are out of 95% NIS range!"))
        # 30 laser records, the first one only initializes
        self.assertIn("samples out of 29", lines[0])
        self.assertTrue(lines[1].startswith("Final NIS(radar): "))
        self.assertEqual(lines[2], "Final RMSE:")
        self.assertTrue(lines[3].startswith("RMSE(px)="))


class TestWriteEstimates(unittest.TestCase):
    """Test the estimates table."""

    def test_table_layout(self):
        results = run_fusion(make_records(20), filter_name="ukf", verbose=False)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "out", "estimates.txt")
            write_estimates(path, results)
            with open(path) as f:
                header = f.readline()
            table = np.genfromtxt(path, delimiter=",")

        self.assertTrue(header.startswith("# px, py, v, yaw, yawrate, nis_laser, nis_radar"))
        self.assertTrue(header.strip().endswith("rmse_vy"))
        self.assertEqual(table.shape, (20, 17))
        assert_allclose(table[:, :5], results['estimates'], atol=1e-5)


class TestMain(unittest.TestCase):
    """Test the command-line entry point."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.input_path = os.path.join(self.tmp.name, "measurements.txt")
        with open(self.input_path, "w") as f:
            f.write("# simulated\n")
            for record in make_records(40, seed=3):
                f.write(format_measurement(record) + "\n")

    def tearDown(self):
        self.tmp.cleanup()

    def test_ekf_end_to_end(self):
        output_path = os.path.join(self.tmp.name, "ekf.txt")
        stdout = io.StringIO()
        with redirect_stdout(stdout):
            code = main(["--input", self.input_path, "--output", output_path,
                         "--filter", "ekf", "--std-a", "1.0", "--quiet"])
        self.assertEqual(code, 0)
        self.assertIn("Final NIS(radar)", stdout.getvalue())
        self.assertIn("RMSE(vx)=", stdout.getvalue())
        self.assertEqual(np.genfromtxt(output_path, delimiter=",").shape, (40, 16))

    def test_config_file_and_switches(self):
        config_path = os.path.join(self.tmp.name, "config.json")
        FilterConfig(std_a=1.5).save_json(config_path)
        output_path = os.path.join(self.tmp.name, "ukf.txt")
        with redirect_stdout(io.StringIO()):
            code = main(["--input", self.input_path, "--output", output_path,
                         "--config", config_path, "--no-radar", "--quiet"])
        self.assertEqual(code, 0)
        self.assertEqual(np.genfromtxt(output_path, delimiter=",").shape, (20, 17))

    def test_malformed_input_reports_line(self):
        bad_path = os.path.join(self.tmp.name, "bad.txt")
        with open(bad_path, "w") as f:
            f.write("L 1.0 2.0 0\nL 1.0 x 5\n")
        stderr = io.StringIO()
        with redirect_stdout(io.StringIO()), redirect_stderr(stderr):
            code = main(["--input", bad_path, "--quiet"])
        self.assertEqual(code, 1)
        self.assertIn("line 2", stderr.getvalue())

    def test_decreasing_timestamps_rejected(self):
        bad_path = os.path.join(self.tmp.name, "unordered.txt")
        with open(bad_path, "w") as f:
            f.write("L 1.0 2.0 100\nL 1.0 2.0 50\n")
        stderr = io.StringIO()
        with redirect_stdout(io.StringIO()), redirect_stderr(stderr):
            code = main(["--input", bad_path, "--quiet"])
        self.assertEqual(code, 1)
        self.assertIn("older", stderr.getvalue())

    def test_both_sensors_disabled_rejected(self):
        stderr = io.StringIO()
        with redirect_stdout(io.StringIO()), redirect_stderr(stderr):
            code = main(["--input", self.input_path, "--no-laser", "--no-radar", "--quiet"])
        self.assertEqual(code, 1)


class TestDatasetGenerator(unittest.TestCase):
    """Test the synthetic dataset script."""

    def test_generate_and_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            with redirect_stdout(io.StringIO()):
                path = generate_laser_radar_dataset(output_dir=tmp, n_steps=50, seed=1)
            records = load_measurements(path)
            config = FilterConfig.from_json(os.path.join(tmp, "config.json"))
            with open(os.path.join(tmp, "dataset.json")) as f:
                info = json.load(f)

        self.assertEqual(len(records), 50)
        self.assertEqual(info["n_records"], 50)
        self.assertTrue(all(r.has_ground_truth for r in records))
        self.assertEqual(config.std_a, 0.6)

        results = run_fusion(records, filter_name="ukf", config=config, verbose=False)
        self.assertEqual(results['timestep'], 49)


if __name__ == "__main__":
    unittest.main()
