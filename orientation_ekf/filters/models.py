import logging
from typing import Optional, Tuple

import numpy as np

from ..util.angles import quaternion_multiply, quaternion_right_matrix

"""
-------------------------------------------------------------------------------
IMU PROCESS AND OBSERVATION MODELS (4-DOF QUATERNION STATE)
-------------------------------------------------------------------------------
State: x = [q0, q1, q2, q3], scalar first, rotating body vectors into the
ground frame (+X east, +Y magnetic north, +Z up).

Process:      q_k+1 = q_k * dq(w, dt),   dq = exp(0.5 * [0, w] * dt)
Observation:  z = [a / |a|, m / |m|]     (body frame)
              h(q) = [R(q)^T g_ref, R(q)^T m_ref]
-------------------------------------------------------------------------------
"""

logger = logging.getLogger(__name__)


class ProcessModel:
    """
    Gyroscope driven quaternion kinematics.
    Evaluates f(x, u), its Jacobian F and the process noise Q for one
    angular velocity sample.
    """
    def __init__(self, base_noise: np.ndarray, dtype=np.float64):
        self.dtype = np.dtype(dtype)
        self.base_noise = np.asarray(base_noise, dtype=self.dtype)
        self.eps = float(np.finfo(self.dtype).eps)

    def delta_quaternion(self, omega: np.ndarray, dt: float) -> np.ndarray:
        """Incremental rotation for a constant body rate over ``dt`` seconds."""
        omega = np.asarray(omega, dtype=float)
        rate = np.linalg.norm(omega)
        half_angle = 0.5 * rate * dt
        if rate * dt < self.eps:
            return np.array([1.0, 0.0, 0.0, 0.0], dtype=self.dtype)
        axis = omega / rate
        return np.concatenate(([np.cos(half_angle)], np.sin(half_angle) * axis)).astype(self.dtype)

    def evaluate(
        self,
        x: np.ndarray,
        wx: float,
        wy: float,
        wz: float,
        dt: float,
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Calculates the process value f(x, u), transition matrix F and process
        noise covariance Q.

        A non-positive or non-finite ``dt`` yields the identity process
        (x unchanged, F = I, Q = 0).
        """
        x = np.asarray(x, dtype=self.dtype)
        if not np.isfinite(dt) or dt <= 0.0:
            return x.copy(), np.eye(4, dtype=self.dtype), np.zeros((4, 4), dtype=self.dtype)

        dq = self.delta_quaternion(np.array([wx, wy, wz]), dt)
        process_value = quaternion_multiply(x, dq).astype(self.dtype)
        F = quaternion_right_matrix(dq).astype(self.dtype)
        Q = (self.base_noise * dt).astype(self.dtype)
        return process_value, F, Q


def rotate_to_body(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    R(q)^T v in homogeneous quadratic form.
    Equal to the inverse rotation of ``v`` for unit ``q``; kept homogeneous
    so that ``rotate_to_body_jacobian`` is its exact derivative everywhere.
    """
    q0, q1, q2, q3 = q[0], q[1], q[2], q[3]
    vx, vy, vz = v[0], v[1], v[2]
    return np.array([
        (q0*q0 + q1*q1 - q2*q2 - q3*q3)*vx + 2*(q1*q2 + q0*q3)*vy + 2*(q1*q3 - q0*q2)*vz,
        2*(q1*q2 - q0*q3)*vx + (q0*q0 - q1*q1 + q2*q2 - q3*q3)*vy + 2*(q2*q3 + q0*q1)*vz,
        2*(q1*q3 + q0*q2)*vx + 2*(q2*q3 - q0*q1)*vy + (q0*q0 - q1*q1 - q2*q2 + q3*q3)*vz,
    ])


def rotate_to_body_jacobian(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """3x4 Jacobian of ``rotate_to_body(q, v)`` with respect to q."""
    q0, q1, q2, q3 = q[0], q[1], q[2], q[3]
    vx, vy, vz = v[0], v[1], v[2]
    return 2.0 * np.array([
        [ q0*vx + q3*vy - q2*vz,  q1*vx + q2*vy + q3*vz, -q2*vx + q1*vy - q0*vz, -q3*vx + q0*vy + q1*vz],
        [-q3*vx + q0*vy + q1*vz,  q2*vx - q1*vy + q0*vz,  q1*vx + q2*vy + q3*vz, -q0*vx - q3*vy + q2*vz],
        [ q2*vx - q1*vy + q0*vz,  q3*vx - q0*vy - q1*vz,  q0*vx + q3*vy - q2*vz,  q1*vx + q2*vy + q3*vz],
    ])


class ObservationModel:
    """
    Gravity + magnetic field direction observation.

    Both sensors are used purely as direction references: the accelerometer
    anchors pitch/roll, the magnetometer anchors yaw.
    """
    def __init__(
        self,
        gravity_reference: np.ndarray,
        magnetic_reference: np.ndarray,
        R: np.ndarray,
        dtype=np.float64,
    ):
        self.dtype = np.dtype(dtype)
        self.eps = float(np.finfo(self.dtype).eps)
        self.gravity_reference = self._unit(gravity_reference)
        self.magnetic_reference = self._unit(magnetic_reference)
        self.R = np.asarray(R, dtype=self.dtype)
        if self.gravity_reference is None or self.magnetic_reference is None:
            raise ValueError("Reference directions must be non-zero vectors")
        if self.R.shape != (6, 6):
            raise ValueError(f"R must be 6x6, got {self.R.shape}")

    def _unit(self, v) -> Optional[np.ndarray]:
        v = np.asarray(v, dtype=float).reshape(3)
        norm = np.linalg.norm(v)
        if not np.isfinite(norm) or norm < self.eps:
            return None
        return v / norm

    def observation(self, accel: np.ndarray, mag: np.ndarray) -> Optional[np.ndarray]:
        """
        z = [a/|a|, m/|m|], or None when either vector has no usable direction.
        """
        a_hat = self._unit(accel)
        m_hat = self._unit(mag)
        if a_hat is None or m_hat is None:
            return None
        return np.concatenate((a_hat, m_hat)).astype(self.dtype)

    def predicted_observation(self, x: np.ndarray) -> np.ndarray:
        """h(x): ground references expressed in the body frame."""
        return np.concatenate((
            rotate_to_body(x, self.gravity_reference),
            rotate_to_body(x, self.magnetic_reference),
        )).astype(self.dtype)

    def jacobian(self, x: np.ndarray) -> np.ndarray:
        """H: 6x4 derivative of h(x)."""
        return np.vstack((
            rotate_to_body_jacobian(x, self.gravity_reference),
            rotate_to_body_jacobian(x, self.magnetic_reference),
        )).astype(self.dtype)

    def evaluate(
        self,
        x: np.ndarray,
        ax: float, ay: float, az: float,
        mx: float, my: float, mz: float,
    ) -> Optional[Tuple[np.ndarray, np.ndarray, np.ndarray]]:
        """
        Calculates the observation z, predicted observation h(x) and
        observation matrix H. Returns None for an unusable measurement.
        """
        z = self.observation(np.array([ax, ay, az]), np.array([mx, my, mz]))
        if z is None:
            logger.debug("Zero-length accelerometer or magnetometer vector, no observation")
            return None
        x = np.asarray(x, dtype=float)
        return z, self.predicted_observation(x), self.jacobian(x)
