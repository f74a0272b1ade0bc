"""Sensor Fusion / Kalman Filter package.

Most client code should import conveniently from here rather than diving into
individual submodules. The generic EKF engine and state definitions live in
``ekf.py``, the IMU process/observation models in ``models.py`` and the
quaternion normalization / sign correction in ``conditioning.py``.

Example::

    from orientation_ekf.filters import (
        State,
        ExtendedKalmanFilter,
        ProcessModel,
        ObservationModel,
        condition_state,
    )

"""

# re-export commonly used EKF classes and functions from submodules
from .ekf import State, ExtendedKalmanFilter, condition_covariance
from .models import ProcessModel, ObservationModel, rotate_to_body, rotate_to_body_jacobian
from .conditioning import condition_state, shortest_path

__all__ = [
    # State and EKF engine
    "State",
    "ExtendedKalmanFilter",
    "condition_covariance",
    # IMU models
    "ProcessModel",
    "ObservationModel",
    "rotate_to_body",
    "rotate_to_body_jacobian",
    # Conditioning
    "condition_state",
    "shortest_path",
]
