import numpy as np
from typing import Tuple, Optional

from ..errors import DegenerateStateError

"""
ROTATION HELPERS
Quaternions are scalar first, q = [q0, q1, q2, q3], and rotate body vectors
into the ground frame. DCMs follow the same body -> ground convention.
"""

def _skew(v: np.ndarray) -> np.ndarray:
    """Cross product matrix: _skew(a) @ b == a x b."""
    return np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0],
    ])

def _elementary(axis: int, angle: float) -> np.ndarray:
    """Right-handed rotation by ``angle`` about coordinate axis 0, 1 or 2."""
    c, s = np.cos(angle), np.sin(angle)
    i, j = (axis + 1) % 3, (axis + 2) % 3
    R = np.eye(3)
    R[i, i] = R[j, j] = c
    R[i, j], R[j, i] = -s, s
    return R

def dcm_from_euler(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """
    DCM (body -> ground) from Euler angles (rad).
    Rotation order: yaw (Z) -> pitch (Y) -> roll (X)
    """
    return _elementary(2, yaw) @ _elementary(1, pitch) @ _elementary(0, roll)

def euler_from_dcm(dcm: np.ndarray) -> Tuple[float, float, float]:
    """(roll, pitch, yaw) of a body -> ground DCM. Pitch is clipped to +-90 deg."""
    roll = np.arctan2(dcm[2, 1], dcm[2, 2])
    pitch = np.arcsin(np.clip(-dcm[2, 0], -1.0, 1.0))
    yaw = np.arctan2(dcm[1, 0], dcm[0, 0])
    return roll, pitch, yaw

def quat_from_dcm(dcm: np.ndarray) -> np.ndarray:
    """
    Quaternion of a DCM (Shepperd). The largest of 4*q_i^2 is recovered from
    the diagonal and the other components from the off-diagonal terms, so
    the division is never by a small number.
    """
    d = np.asarray(dcm, dtype=float)
    t = np.trace(d)
    squares = 1.0 + np.array([t, 2 * d[0, 0] - t, 2 * d[1, 1] - t, 2 * d[2, 2] - t])  # 4 * q_i^2
    k = int(np.argmax(squares))

    sums = {
        (0, 1): d[2, 1] - d[1, 2], (0, 2): d[0, 2] - d[2, 0], (0, 3): d[1, 0] - d[0, 1],
        (1, 2): d[0, 1] + d[1, 0], (1, 3): d[0, 2] + d[2, 0], (2, 3): d[1, 2] + d[2, 1],
    }
    q = np.empty(4)
    q[k] = 0.5 * np.sqrt(squares[k])
    for i in range(4):
        if i != k:
            q[i] = sums[(min(i, k), max(i, k))] / (4.0 * q[k])
    return q if q[0] >= 0.0 else -q

""" QUATERNION UTILITIES """

def quaternion_identity(dtype=np.float64) -> np.ndarray:
    """Identity rotation [1, 0, 0, 0]."""
    return np.array([1.0, 0.0, 0.0, 0.0], dtype=dtype)

def quaternion_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a * b."""
    a0, av = a[0], np.asarray(a[1:4])
    b0, bv = b[0], np.asarray(b[1:4])
    return np.concatenate((
        [a0 * b0 - np.dot(av, bv)],
        a0 * bv + b0 * av + np.cross(av, bv),
    ))

def quaternion_right_matrix(p: np.ndarray) -> np.ndarray:
    """
    4x4 matrix M(p) such that q * p == M(p) @ q.
    This is also the Jacobian of q * p with respect to q.
    """
    p0, pv = p[0], np.asarray(p[1:4], dtype=float)
    M = np.empty((4, 4))
    M[0, 0] = p0
    M[0, 1:] = -pv
    M[1:, 0] = pv
    M[1:, 1:] = p0 * np.eye(3) - _skew(pv)
    return M

def quaternion_conjugate(q: np.ndarray) -> np.ndarray:
    """Inverse rotation of a unit quaternion."""
    return np.concatenate(([q[0]], -np.asarray(q[1:4])))

def quaternion_norm(q: np.ndarray) -> float:
    return float(np.linalg.norm(q))

def quaternion_normalize(q: np.ndarray, eps: Optional[float] = None) -> np.ndarray:
    """
    Normalize quaternion to unit norm.

    Raises DegenerateStateError when the norm is below ``eps`` (defaults to
    the machine epsilon of the quaternion's dtype) instead of dividing by ~0.
    """
    q = np.asarray(q)
    if eps is None:
        eps = float(np.finfo(q.dtype if np.issubdtype(q.dtype, np.floating) else np.float64).eps)
    norm = quaternion_norm(q)
    if not np.isfinite(norm) or norm < eps:
        raise DegenerateStateError(f"Quaternion norm {norm:.3e} is degenerate: {q}")
    return q / norm

def quaternion_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Quaternion for a rotation of ``angle`` (rad) about ``axis``."""
    axis = np.asarray(axis, dtype=float)
    axis = axis / np.linalg.norm(axis)
    half = 0.5 * angle
    return np.concatenate(([np.cos(half)], np.sin(half) * axis))

def quaternion_from_rotation_vector(rotvec: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """
    Quaternion exponential of a rotation vector (axis * angle).
    Returns identity for vectors shorter than ``eps``.
    """
    rotvec = np.asarray(rotvec, dtype=float)
    angle = np.linalg.norm(rotvec)
    if angle < eps:
        return quaternion_identity()
    return quaternion_from_axis_angle(rotvec / angle, angle)

def quaternion_to_axis_angle(
    q: np.ndarray,
    eps: float = 1e-12,
    default_axis: Tuple[float, float, float] = (0.0, 0.0, 1.0),
) -> Tuple[np.ndarray, float]:
    """
    Convert a unit quaternion to (axis, angle).

    angle = 2 * acos(clamp(q0, -1, 1)). When the vector part is shorter than
    ``eps`` the axis is undefined and ``default_axis`` is reported with an
    angle of 0.
    """
    q = np.asarray(q)
    vec = np.asarray(q[1:4], dtype=float)
    vec_norm = np.linalg.norm(vec)
    if vec_norm < eps:
        return np.array(default_axis, dtype=float), 0.0
    angle = 2.0 * np.arccos(np.clip(float(q[0]), -1.0, 1.0))
    return vec / vec_norm, float(angle)

def quaternion_angle_between(q1: np.ndarray, q2: np.ndarray) -> float:
    """Smallest rotation angle (rad) between two unit quaternions."""
    d = abs(float(np.dot(q1, q2)))
    return float(2.0 * np.arccos(np.clip(d, -1.0, 1.0)))

def quaternion_to_rotation_matrix(q: np.ndarray) -> np.ndarray:
    """Body -> ground DCM: (q0^2 - |v|^2) I + 2 v v^T + 2 q0 [v]x."""
    q = quaternion_normalize(np.asarray(q, dtype=float))
    q0, v = q[0], q[1:4]
    return (q0 * q0 - v @ v) * np.eye(3) + 2.0 * np.outer(v, v) + 2.0 * q0 * _skew(v)

def quaternion_to_euler(q: np.ndarray) -> Tuple[float, float, float]:
    """Convert quaternion to Euler angles (roll, pitch, yaw) via the DCM."""
    return euler_from_dcm(quaternion_to_rotation_matrix(q))
