import logging
from typing import Optional, Tuple

import numpy as np

from ..errors import NumericInstabilityError

"""
-------------------------------------------------------------------------------
OBJECT ORIENTED EXTENDED KALMAN FILTER (EKF) ENGINE
-------------------------------------------------------------------------------
Architecture:
1. State:           Holds the estimate (x), its uncertainty (P) and the
                    previous a priori / a posteriori snapshots.
2. EKF (Engine):    Performs the recursive estimation. It knows Math, not
                    Physics: callers evaluate f(x), F, Q, z, h(x), H, R.

Conventions:
- State Vector (x): n-vector (1-D numpy array)
- Covariance (P):   n x n numpy array
- Measurement (z):  m-vector
-------------------------------------------------------------------------------
"""

logger = logging.getLogger(__name__)


# =============================================================================
# STATE CLASS
# =============================================================================

class State:
    """
    The System State.
    Encapsulates the state vector 'x', the covariance matrix 'P' and the
    snapshots of the previous a priori ('x_pre') and a posteriori ('x_post')
    estimates used for quaternion sign correction.
    """
    def __init__(
        self,
        x0: np.ndarray,
        P0: Optional[np.ndarray] = None,
        dtype=np.float64,
    ):
        self.dtype = np.dtype(dtype)
        self.x = np.array(x0, dtype=self.dtype).reshape(-1)
        self.dim = self.x.shape[0]
        if P0 is None:
            P0 = np.eye(self.dim)
        self.P = np.array(P0, dtype=self.dtype)
        if self.P.shape != (self.dim, self.dim):
            raise ValueError(f"P0 shape {self.P.shape} doesn't match state dimension {self.dim}")
        self.x_pre = self.x.copy()
        self.x_post = self.x.copy()

    def __repr__(self):
        return f"State(x={self.x}, trace(P)={np.trace(self.P):.3e})"


def condition_covariance(P: np.ndarray) -> np.ndarray:
    """
    Restore symmetry and positive semi-definiteness lost to round-off.
    Negative eigenvalues are clamped to zero.
    """
    P = 0.5 * (P + P.T)
    eigvals, eigvecs = np.linalg.eigh(P)
    if eigvals.min() < 0.0:
        logger.debug("Clamped covariance eigenvalue %.3e to 0", eigvals.min())
        eigvals = np.clip(eigvals, 0.0, None)
        P = (eigvecs * eigvals) @ eigvecs.T
        P = 0.5 * (P + P.T)
    return P


class ExtendedKalmanFilter:
    """
    The Math Engine.
    A pure implementation of the Discrete Extended Kalman Filter, generic over
    any process/observation model with matching dimensions.
    """
    def __init__(self, state: State, joseph_form: bool = False):
        self.state = state
        self.joseph_form = joseph_form
        self.eps = float(np.finfo(state.dtype).eps)

    def _as(self, value, shape: Tuple[int, ...], name: str) -> np.ndarray:
        arr = np.asarray(value, dtype=self.state.dtype)
        if len(shape) == 1 and arr.size == shape[0]:
            arr = arr.reshape(shape)
        if arr.shape != shape:
            raise ValueError(f"{name} has shape {arr.shape}, expected {shape}")
        return arr

    def predict(self, process_value: np.ndarray, F: np.ndarray, Q: np.ndarray):
        """
        Time Update Step (A Priori).

        Args:
            process_value: The already evaluated nonlinear process f(x, u).
            F: Jacobian of f with respect to x.
            Q: Process Noise Covariance Matrix.

        Returns:
            (x, P) after the prediction.

        Raises:
            NumericInstabilityError: f(x, u), F or Q holds NaN or inf. x and
                P are left untouched.
        """
        n = self.state.dim
        x_pred = self._as(process_value, (n,), "process_value")
        F = self._as(F, (n, n), "F")
        Q = self._as(Q, (n, n), "Q")
        if not (np.all(np.isfinite(x_pred)) and np.all(np.isfinite(F)) and np.all(np.isfinite(Q))):
            raise NumericInstabilityError("Non-finite process value, F or Q")

        # x_k|k-1 = f(x_k-1|k-1, u_k-1)
        self.state.x = x_pred.copy()
        # P_k|k-1 = F * P * F^T + Q
        self.state.P = condition_covariance(F @ self.state.P @ F.T + Q)
        return self.state.x, self.state.P

    def correct(self, z: np.ndarray, h: np.ndarray, H: np.ndarray, R: np.ndarray):
        """
        Measurement Update Step (A Posteriori).

        Args:
            z: Observation vector (m).
            h: Predicted observation h(x) (m).
            H: Observation Jacobian (m x n).
            R: Measurement noise covariance (m x m).

        Returns:
            (x, P) after the correction.

        Raises:
            NumericInstabilityError: S is singular or ill-conditioned, or the
                gain is not finite. x and P are left untouched.
        """
        n = self.state.dim
        z = np.asarray(z, dtype=self.state.dtype).reshape(-1)
        m = z.shape[0]
        h = self._as(h, (m,), "h")
        H = self._as(H, (m, n), "H")
        R = self._as(R, (m, m), "R")
        P = self.state.P

        # 1. Innovation (Residual): y = z - h(x)
        y = z - h

        # 2. Innovation Covariance: S = H * P * H^T + R
        S = H @ P @ H.T + R

        # 3. Kalman Gain: K = P * H^T * S^-1, solved instead of inverted
        try:
            cond = np.linalg.cond(S)
            if not np.isfinite(cond) or cond > 1.0 / self.eps:
                raise NumericInstabilityError(f"Innovation covariance ill-conditioned (cond={cond:.3e})")
            K = np.linalg.solve(S, H @ P).T
        except np.linalg.LinAlgError as e:
            raise NumericInstabilityError(f"Singular innovation covariance: {e}") from e
        if not np.all(np.isfinite(K)):
            raise NumericInstabilityError("Kalman gain is not finite")

        # 4. State: x = x + K * y
        self.state.x = (self.state.x + K @ y).astype(self.state.dtype)

        # 5. Covariance: P = (I - K * H) * P
        I_KH = np.eye(n, dtype=self.state.dtype) - K @ H
        if self.joseph_form:
            P_new = I_KH @ P @ I_KH.T + K @ R @ K.T
        else:
            P_new = I_KH @ P
        self.state.P = condition_covariance(P_new)
        return self.state.x, self.state.P

    def __repr__(self):
        return f"EKF(State={self.state.x}, P={self.state.P})"
