"""
IMU Log Generator
=================

Simulates a gyroscope / accelerometer / magnetometer triad on a rigid body
swinging about a tilted axis and writes the readings to a CSV log that
``filter_sim.py`` replays through the orientation estimator.

GROUND FRAME: +X = east, +Y = magnetic north, +Z = up.
"""

import sys
from pathlib import Path

import numpy as np
import pandas as pd

from orientation_ekf.sensors import (
    Accelerometer3Axis,
    Gyroscope3Axis,
    HarmonicProfile,
    Magnetometer3Axis,
    SimulatedIMU,
)
from orientation_ekf.util import euler_from_dcm

DATA_DIR = Path(__file__).parent / "data"


def sensor_data_sim(duration=20.0, dt=0.01):
    imu = SimulatedIMU(
        gyro=Gyroscope3Axis(white_noise_std=0.002, bias_instability_std=1e-4, seed=42),
        accel=Accelerometer3Axis(white_noise_std=0.03, seed=43),
        mag=Magnetometer3Axis(white_noise_std=0.3, update_rate_hz=25.0, seed=44),
    )
    profile = HarmonicProfile(axis=[1.0, 0.5, 0.2], amplitude_rad=np.radians(40.0), freq_hz=0.1)

    n_steps = int(round(duration / dt))
    print(f"\nSimulating {duration} seconds at {1 / dt:.0f} Hz ({n_steps} steps)...")

    rows = []
    for i in range(n_steps):
        t = i * dt
        dcm, omega = profile.get_state(t)
        readings = {kind: np.full(3, np.nan) for kind in ("accel", "gyro", "mag")}
        for sample in imu.update_sim(t, dt, dcm, omega):
            readings[sample.kind] = sample.values
        roll, pitch, yaw = euler_from_dcm(dcm)
        rows.append([t, *readings["accel"], *readings["gyro"], *readings["mag"], roll, pitch, yaw])

    columns = [
        "timestamp",
        "ax_ms2", "ay_ms2", "az_ms2",
        "gx_rads", "gy_rads", "gz_rads",
        "mx_uT", "my_uT", "mz_uT",
        "roll", "pitch", "yaw",
    ]
    return pd.DataFrame(rows, columns=columns)


def main():
    DATA_DIR.mkdir(exist_ok=True)
    df = sensor_data_sim()
    csv_path = DATA_DIR / "imu_sim_log.csv"
    df.to_csv(csv_path, index=False)
    print(f"[OK] Wrote {len(df)} rows to {csv_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
