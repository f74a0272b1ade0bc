import os
import shutil
import tempfile
import unittest

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import numpy as np
import pandas as pd

from orientation_ekf import OrientationEstimator
from orientation_ekf.playback import (
    ACCEL_COLUMNS,
    GYRO_COLUMNS,
    MAG_COLUMNS,
    load_imu_log,
    replay_log,
)
from orientation_ekf.plots import plot_orientation


def rest_log(n=50, with_timestamp=True):
    data = {}
    if with_timestamp:
        data["timestamp"] = np.arange(n) * 0.02
    for name, value in zip(ACCEL_COLUMNS, (0.0, 0.0, 9.81)):
        data[name] = np.full(n, value)
    for name in GYRO_COLUMNS:
        data[name] = np.zeros(n)
    for name, value in zip(MAG_COLUMNS, (0.0, 20.0, 0.0)):
        data[name] = np.full(n, value)
    return pd.DataFrame(data)


class TestPlayback(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmpdir)

    def write(self, df, name="imu.csv"):
        path = os.path.join(self.tmpdir, name)
        df.to_csv(path, index=False)
        return path

    def test_replay_at_rest(self):
        df = load_imu_log(self.write(rest_log()))
        results = replay_log(OrientationEstimator(), df)

        self.assertEqual(len(results), 50)
        self.assertEqual(
            list(results.columns),
            ["time", "q0", "q1", "q2", "q3", "angle", "axis_x", "axis_y", "axis_z", "roll", "pitch", "yaw"],
        )
        np.testing.assert_allclose(results["angle"].values, 0.0, atol=1e-9)
        np.testing.assert_allclose(results["q0"].values, 1.0)

    def test_header_whitespace_is_ignored(self):
        df = rest_log(5)
        df.columns = [f" {c} " for c in df.columns]
        loaded = load_imu_log(self.write(df))
        self.assertIn("ax_ms2", loaded.columns)

    def test_missing_timestamp_is_synthesized(self):
        loaded = load_imu_log(self.write(rest_log(4, with_timestamp=False)))
        np.testing.assert_allclose(loaded["timestamp"].values, [0.1, 0.2, 0.3, 0.4])

    def test_missing_columns(self):
        df = rest_log(3).drop(columns=["mz_uT"])
        with self.assertRaises(ValueError):
            load_imu_log(self.write(df))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_imu_log(os.path.join(self.tmpdir, "nope.csv"))

    def test_nan_rows_skip_that_sensor(self):
        df = rest_log(10)
        df.loc[0, MAG_COLUMNS] = np.nan
        est = OrientationEstimator()
        replay_log(est, df)
        # the first accelerometer row has no magnetometer reading yet
        self.assertEqual(est.stats["skipped_corrections"], 1)
        self.assertEqual(est.stats["corrections"], 9)

    def test_plot_is_saved(self):
        results = replay_log(OrientationEstimator(), rest_log(20))
        path = os.path.join(self.tmpdir, "orientation.png")
        fig = plot_orientation(results, truth=results[["time", "roll", "pitch", "yaw"]], save_path=path)
        self.assertTrue(os.path.exists(path))
        self.assertEqual(len(fig.axes), 4)
        plt.close(fig)


if __name__ == "__main__":
    unittest.main()
