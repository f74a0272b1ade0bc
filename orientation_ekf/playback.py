"""
Replay recorded IMU logs through an OrientationEstimator.

Expected CSV columns (surrounding whitespace in headers is ignored)::

    timestamp, ax_ms2, ay_ms2, az_ms2, gx_rads, gy_rads, gz_rads, mx_uT, my_uT, mz_uT

``timestamp`` is in seconds. Without it a 0.1 s sample interval is assumed.
"""

import logging
from pathlib import Path
from typing import Union

import numpy as np
import pandas as pd

from .estimator import OrientationEstimator
from .util.angles import quaternion_to_euler

logger = logging.getLogger(__name__)

ACCEL_COLUMNS = ["ax_ms2", "ay_ms2", "az_ms2"]
GYRO_COLUMNS = ["gx_rads", "gy_rads", "gz_rads"]
MAG_COLUMNS = ["mx_uT", "my_uT", "mz_uT"]
DEFAULT_SAMPLE_INTERVAL_S = 0.1


def load_imu_log(file_path: Union[str, Path]) -> pd.DataFrame:
    """
    Read an IMU log into a DataFrame with a ``timestamp`` column in seconds.

    Raises:
        FileNotFoundError: ``file_path`` does not exist.
        ValueError: required sensor columns are missing.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"IMU log not found: {file_path}")

    df = pd.read_csv(path)
    # Remove potential surrounding whitespace from column headers
    df.columns = df.columns.str.strip()

    missing = [c for c in ACCEL_COLUMNS + GYRO_COLUMNS + MAG_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"IMU log {path.name} is missing columns: {missing}")

    if "timestamp" not in df.columns:
        logger.info("'timestamp' column missing in %s, using %.1fs sample interval",
                    path.name, DEFAULT_SAMPLE_INTERVAL_S)
        df["timestamp"] = (np.arange(len(df)) + 1) * DEFAULT_SAMPLE_INTERVAL_S

    logger.info("Loaded %d IMU samples from %s", len(df), path)
    return df


def replay_log(estimator: OrientationEstimator, df: pd.DataFrame) -> pd.DataFrame:
    """
    Feed every row of ``df`` through the estimator callbacks
    (gyroscope, then magnetometer, then accelerometer) and record the output.

    Rows with NaN in a sensor group skip that sensor.

    Returns:
        DataFrame with columns time, q0..q3, angle, axis_x..axis_z, roll, pitch, yaw.
    """
    unit = estimator.config.timestamp_unit_s
    results = {
        "time": [], "q0": [], "q1": [], "q2": [], "q3": [],
        "angle": [], "axis_x": [], "axis_y": [], "axis_z": [],
        "roll": [], "pitch": [], "yaw": [],
    }

    for _, row in df.iterrows():
        t = float(row["timestamp"])
        ts = int(round(t / unit))

        gyro = row[GYRO_COLUMNS].to_numpy(dtype=float)
        mag = row[MAG_COLUMNS].to_numpy(dtype=float)
        accel = row[ACCEL_COLUMNS].to_numpy(dtype=float)

        if not np.any(np.isnan(gyro)):
            estimator.on_angular_velocity_sample(*gyro, ts)
        if not np.any(np.isnan(mag)):
            estimator.on_magnetic_field_sample(*mag, ts)
        if not np.any(np.isnan(accel)):
            estimator.on_specific_force_sample(*accel, ts)

        if estimator.failed:
            logger.error("Estimator failed at t=%.3fs, stopping replay", t)
            break

        q = estimator.quaternion
        roll, pitch, yaw = quaternion_to_euler(q)
        results["time"].append(t)
        for i in range(4):
            results[f"q{i}"].append(q[i])
        results["angle"].append(estimator.rotation_angle)
        for i, name in enumerate(("axis_x", "axis_y", "axis_z")):
            results[name].append(estimator.rotation_axis[i])
        results["roll"].append(roll)
        results["pitch"].append(pitch)
        results["yaw"].append(yaw)

    return pd.DataFrame(results)
