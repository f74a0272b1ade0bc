"""EKF attitude estimation from gyroscope, accelerometer and magnetometer streams.

Example::

    from orientation_ekf import OrientationEstimator, EstimatorConfig

    est = OrientationEstimator(EstimatorConfig(timestamp_unit_s=1e-6))
    est.add_orientation_listener(lambda axis, angle: print(axis, angle))
    est.on_angular_velocity_sample(0.0, 0.0, 0.1, 0)

"""

from .config import EstimatorConfig
from .errors import (
    OrientationEstimatorError,
    NumericInstabilityError,
    DegenerateStateError,
)
from .estimator import OrientationEstimator, LatestValue

__all__ = [
    "EstimatorConfig",
    "OrientationEstimator",
    "LatestValue",
    "OrientationEstimatorError",
    "NumericInstabilityError",
    "DegenerateStateError",
]

__version__ = "0.1.0"
