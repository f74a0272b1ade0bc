# -*- coding: utf-8 -*-
"""
Filename: config.py
Description: Construction-time constants of the orientation estimator.
             Noise matrices, reference directions, numeric precision and the
             timestamp unit are fixed for the lifetime of an estimator.

GROUND FRAME: +X = east, +Y = magnetic north, +Z = up.
An accelerometer at rest measures the specific force (0, 0, +g).
"""

from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

Vector3 = Tuple[float, float, float]


@dataclass
class EstimatorConfig:
    """
    Attributes:
        dtype: Floating point type used for every filter array (float64 or float32).
        process_noise: Base process noise, either a scalar (diagonal) or a 4x4
            matrix. Scaled linearly by deltaT in each predict step.
        accel_noise_var: Variance of each unit-gravity-direction component.
        mag_noise_var: Variance of each unit-magnetic-direction component.
        initial_covariance: Scalar (diagonal) or 4x4 initial P.
        gravity_reference: Ground-frame direction of the specific force at rest.
        magnetic_reference: Ground-frame direction of the local magnetic field.
        default_axis: Axis reported for the identity rotation.
        timestamp_unit_s: Seconds per timestamp count (1e-6 = microseconds).
        joseph_form: Use the Joseph form covariance update in corrections.
    """
    dtype: type = np.float64
    process_noise: Union[float, np.ndarray] = 1e-3
    accel_noise_var: float = 1e-2
    mag_noise_var: float = 5e-2
    initial_covariance: Union[float, np.ndarray] = 1.0
    gravity_reference: Vector3 = (0.0, 0.0, 1.0)
    magnetic_reference: Vector3 = (0.0, 1.0, 0.0)
    default_axis: Vector3 = (0.0, 0.0, 1.0)
    timestamp_unit_s: float = 1e-6
    joseph_form: bool = False

    def __post_init__(self):
        self.validate()

    @property
    def epsilon(self) -> float:
        return float(np.finfo(self.dtype).eps)

    def validate(self):
        """Reject inconsistent settings with ValueError."""
        if np.dtype(self.dtype) not in (np.dtype(np.float32), np.dtype(np.float64)):
            raise ValueError(f"dtype must be float32 or float64, got {self.dtype}")
        if self.accel_noise_var <= 0.0 or self.mag_noise_var <= 0.0:
            raise ValueError("Measurement noise variances must be positive")
        if self.timestamp_unit_s <= 0.0:
            raise ValueError("timestamp_unit_s must be positive")
        for name in ("gravity_reference", "magnetic_reference", "default_axis"):
            vec = np.asarray(getattr(self, name), dtype=float)
            if vec.shape != (3,) or np.linalg.norm(vec) < 1e-9:
                raise ValueError(f"{name} must be a non-zero 3-vector, got {vec}")
        # both matrices must at least be buildable
        self.base_process_noise()
        self.initial_P()

    def _square(self, value, name: str) -> np.ndarray:
        if np.isscalar(value):
            if value < 0.0:
                raise ValueError(f"{name} must be non-negative")
            return np.eye(4, dtype=self.dtype) * value
        mat = np.asarray(value, dtype=self.dtype)
        if mat.shape != (4, 4):
            raise ValueError(f"{name} must be a scalar or 4x4 matrix, got shape {mat.shape}")
        if not np.allclose(mat, mat.T):
            raise ValueError(f"{name} must be symmetric")
        return mat

    def base_process_noise(self) -> np.ndarray:
        """Q_base, per second of elapsed time."""
        return self._square(self.process_noise, "process_noise")

    def initial_P(self) -> np.ndarray:
        return self._square(self.initial_covariance, "initial_covariance")

    def measurement_noise(self) -> np.ndarray:
        """6x6 diagonal R: accelerometer half then magnetometer half."""
        return np.diag(
            [self.accel_noise_var] * 3 + [self.mag_noise_var] * 3
        ).astype(self.dtype)

