# -*- coding: utf-8 -*-
"""
Filename: imu.py
Description: Simulated gyroscope / accelerometer / magnetometer triad.
             Turns rigid-body truth into timestamped samples and dispatches
             them to an OrientationEstimator in timestamp order, the way a
             single-threaded sensor event queue would.

GROUND FRAME: +X = east, +Y = magnetic north, +Z = up.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .sensor_framework import SimulatedSensor, SensorSpec


# sensors sharing a timestamp are dispatched in this order: predict first,
# then refresh the magnetometer cache, then correct
DISPATCH_PRIORITY = {"gyro": 0, "mag": 1, "accel": 2}


class Gyroscope3Axis(SimulatedSensor):
    """3-axis rate gyroscope, body frame angular velocity."""
    SPEC = SensorSpec(
        dimension=3,
        units="rad/s",
        description="Body angular velocity",
        labels=["wx", "wy", "wz"]
    )

    def __init__(self, sensor_id: str = "gyro", **kwargs):
        super().__init__(sensor_id, self.SPEC, **kwargs)


class Accelerometer3Axis(SimulatedSensor):
    """3-axis accelerometer, body frame specific force."""
    SPEC = SensorSpec(
        dimension=3,
        units="m/s^2",
        description="Body specific force",
        labels=["ax", "ay", "az"]
    )

    def __init__(self, sensor_id: str = "accel", **kwargs):
        super().__init__(sensor_id, self.SPEC, **kwargs)


class Magnetometer3Axis(SimulatedSensor):
    """3-axis magnetometer, body frame magnetic flux density."""
    SPEC = SensorSpec(
        dimension=3,
        units="uT",
        description="Body magnetic field",
        labels=["mx", "my", "mz"]
    )

    def __init__(self, sensor_id: str = "mag", **kwargs):
        super().__init__(sensor_id, self.SPEC, **kwargs)


@dataclass
class SensorSample:
    """One reading as delivered by the sensor feed."""
    kind: str               # 'gyro', 'accel' or 'mag'
    values: np.ndarray
    timestamp: int          # integer count of the estimator's timestamp unit

    def sort_key(self) -> Tuple[int, int]:
        return self.timestamp, DISPATCH_PRIORITY.get(self.kind, len(DISPATCH_PRIORITY))


class SimulatedIMU:
    """
    High-level IMU controller in SIMULATION mode.
    Encapsulates a triad of Gyroscope, Accelerometer and Magnetometer.
    """
    def __init__(
        self,
        gyro: Optional[Gyroscope3Axis] = None,
        accel: Optional[Accelerometer3Axis] = None,
        mag: Optional[Magnetometer3Axis] = None,
        gravity: float = 9.81,
        mag_field_ground: Optional[np.ndarray] = None,
        timestamp_unit_s: float = 1e-6,
    ):
        self.gyro = gyro if gyro is not None else Gyroscope3Axis()
        self.accel = accel if accel is not None else Accelerometer3Axis()
        self.mag = mag if mag is not None else Magnetometer3Axis()
        self.gravity = gravity
        # uT, field pointing north
        self.mag_field_ground = (
            np.array([0.0, 20.0, 0.0]) if mag_field_ground is None
            else np.array(mag_field_ground, dtype=float)
        )
        self.timestamp_unit_s = timestamp_unit_s

    def to_timestamp(self, t: float) -> int:
        return int(round(t / self.timestamp_unit_s))

    def update_sim(
        self,
        t: float,
        dt: float,
        dcm_body_to_ground: np.ndarray,
        omega_body: np.ndarray,
        accel_ground: Optional[np.ndarray] = None,
    ) -> List[SensorSample]:
        """
        Drive the simulation to time ``t`` and collect the sensors due at ``t``.

        Args:
            t (float): Simulation time (s).
            dt (float): Integration step (s), used by the bias random walk.
            dcm_body_to_ground (np.ndarray): 3x3 attitude truth.
            omega_body (np.ndarray): Angular velocity in body frame (rad/s).
            accel_ground (np.ndarray): Linear acceleration in ground frame (m/s^2), zero if None.

        Returns:
            Samples sorted in dispatch order.
        """
        R_gb = np.asarray(dcm_body_to_ground, dtype=float).T
        ts = self.to_timestamp(t)
        samples = []

        w = self.gyro.step(np.asarray(omega_body, dtype=float), dt, t)
        if w is not None:
            samples.append(SensorSample("gyro", w, ts))

        # an accelerometer at rest measures +g along ground up
        accel = np.zeros(3) if accel_ground is None else np.asarray(accel_ground, dtype=float)
        f_true = R_gb @ (accel + np.array([0.0, 0.0, self.gravity]))
        f = self.accel.step(f_true, dt, t)
        if f is not None:
            samples.append(SensorSample("accel", f, ts))

        m = self.mag.step(R_gb @ self.mag_field_ground, dt, t)
        if m is not None:
            samples.append(SensorSample("mag", m, ts))

        samples.sort(key=SensorSample.sort_key)
        return samples


def dispatch(estimator, samples: List[SensorSample]):
    """Deliver samples to the estimator callbacks, one at a time, in timestamp order."""
    for sample in sorted(samples, key=SensorSample.sort_key):
        x, y, z = (float(v) for v in sample.values)
        if sample.kind == "gyro":
            estimator.on_angular_velocity_sample(x, y, z, sample.timestamp)
        elif sample.kind == "accel":
            estimator.on_specific_force_sample(x, y, z, sample.timestamp)
        elif sample.kind == "mag":
            estimator.on_magnetic_field_sample(x, y, z, sample.timestamp)
        else:
            raise ValueError(f"Unknown sample kind: {sample.kind}")
