# -*- coding: utf-8 -*-
"""
Filename: estimator.py
Description: Attitude estimator driven by asynchronous gyroscope,
             accelerometer and magnetometer callbacks.

             gyro sample  -> ProcessModel -> predict -> conditioning -> output
             mag sample   -> latest-value cache
             accel sample -> ObservationModel(accel, cached mag) -> correct
                          -> conditioning -> output

All entry points share one re-entrant lock, so sensor callbacks delivered on
several threads are serialized. Errors raised inside the filter never leave
the callbacks: numeric instability skips the prediction or correction, a
degenerate state puts the estimator in the failed state and notifies failure
listeners. Listener exceptions are logged and isolated.
"""

import logging
import threading
from typing import Callable, Generic, List, Optional, TypeVar

import numpy as np

from .config import EstimatorConfig
from .errors import DegenerateStateError, NumericInstabilityError
from .filters.conditioning import condition_state
from .filters.ekf import ExtendedKalmanFilter, State
from .filters.models import ObservationModel, ProcessModel
from .util.angles import quaternion_identity, quaternion_to_axis_angle

logger = logging.getLogger(__name__)

T = TypeVar("T")

OrientationListener = Callable[[np.ndarray, float], None]
FailureListener = Callable[[DegenerateStateError], None]


class LatestValue(Generic[T]):
    """Latest-value-wins cell with an explicit "has been set" flag."""
    def __init__(self):
        self._value: Optional[T] = None
        self._is_set = False

    @property
    def is_set(self) -> bool:
        return self._is_set

    def set(self, value: T):
        self._value = value
        self._is_set = True

    def get(self) -> T:
        if not self._is_set:
            raise LookupError("No value has been observed yet")
        return self._value

    def clear(self):
        self._value = None
        self._is_set = False


class OrientationEstimator:
    """
    EKF orientation estimator exposing plain synchronous sensor callbacks.

    Attributes:
        config (EstimatorConfig): Construction-time constants.
        filter (ExtendedKalmanFilter): Owns the quaternion state and covariance.
        rotation_axis (np.ndarray): Latest output axis (unit 3-vector).
        rotation_angle (float): Latest output angle (rad).
        failed (bool): True once a degenerate state was detected.
    """
    def __init__(self, config: Optional[EstimatorConfig] = None):
        self.config = config if config is not None else EstimatorConfig()
        self.dtype = np.dtype(self.config.dtype)
        self.eps = self.config.epsilon

        self.process_model = ProcessModel(self.config.base_process_noise(), dtype=self.dtype)
        self.observation_model = ObservationModel(
            self.config.gravity_reference,
            self.config.magnetic_reference,
            self.config.measurement_noise(),
            dtype=self.dtype,
        )

        self._lock = threading.RLock()
        self._orientation_listeners: List[OrientationListener] = []
        self._failure_listeners: List[FailureListener] = []
        self._init_state()

    def _init_state(self):
        state = State(quaternion_identity(self.dtype), self.config.initial_P(), dtype=self.dtype)
        self.filter = ExtendedKalmanFilter(state, joseph_form=self.config.joseph_form)
        self.mag_cache: LatestValue[np.ndarray] = LatestValue()

        self.last_gyro_timestamp: Optional[int] = None
        self.last_acc_timestamp: Optional[int] = None
        self.last_mag_timestamp: Optional[int] = None

        self.rotation_axis = np.array(self.config.default_axis, dtype=float)
        self.rotation_axis /= np.linalg.norm(self.rotation_axis)
        self.rotation_angle = 0.0
        self.failed = False
        self.failure: Optional[DegenerateStateError] = None

        self.stats = {
            "predictions": 0,
            "identity_predictions": 0,
            "corrections": 0,
            "skipped_corrections": 0,
            "rejected_samples": 0,
        }

    # --- LISTENERS ---
    def add_orientation_listener(self, listener: OrientationListener):
        """
        ``listener(axis, angle)`` is called at the end of every cycle, after
        the state has been updated. An exception raised by a listener is
        logged and does not reach the sensor callback; the remaining
        listeners still run.
        """
        with self._lock:
            self._orientation_listeners.append(listener)

    def add_failure_listener(self, listener: FailureListener):
        """
        ``listener(error)`` is called once when the estimator fails.
        Exceptions are logged and isolated like orientation listeners.
        """
        with self._lock:
            self._failure_listeners.append(listener)

    # --- READ ACCESS ---
    @property
    def quaternion(self) -> np.ndarray:
        with self._lock:
            return self.filter.state.x.copy()

    @property
    def covariance(self) -> np.ndarray:
        with self._lock:
            return self.filter.state.P.copy()

    def reset(self):
        """Restore the initial state and forget all timestamps and cached readings."""
        with self._lock:
            self._init_state()
            logger.info("Orientation estimator reset")

    # --- SENSOR CALLBACKS ---
    def on_angular_velocity_sample(self, wx: float, wy: float, wz: float, timestamp: int):
        """
        Gyroscope sample (rad/s). Predicts the state forward by the time
        elapsed since the previous gyroscope sample. A rate with a NaN or inf
        component, or whose norm overflows, is rejected: the cycle runs as an
        identity predict and the gyroscope timestamp is not advanced.
        """
        with self._lock:
            if self._dropped("gyroscope"):
                return
            if self._finite_rate(wx, wy, wz):
                dt = self._gyro_delta_t(timestamp)
            else:
                dt = 0.0
            try:
                if dt > 0.0 and self._predict(wx, wy, wz, dt):
                    self.stats["predictions"] += 1
                else:
                    self.stats["identity_predictions"] += 1
                condition_state(self.filter.state, "pre", self.eps)
            except DegenerateStateError as e:
                self._fail(e)
                return
            self._publish()

    def on_specific_force_sample(self, ax: float, ay: float, az: float, timestamp: int):
        """
        Accelerometer sample. Corrects the state with the latest magnetometer
        reading; skipped until a magnetometer reading has been observed.
        """
        with self._lock:
            if self._dropped("accelerometer"):
                return
            if not self._accept("acc", timestamp):
                return
            if not self.mag_cache.is_set:
                logger.debug("No magnetometer reading yet, correction deferred")
                self.stats["skipped_corrections"] += 1
                return

            mx, my, mz = self.mag_cache.get()
            try:
                observed = self.observation_model.evaluate(
                    self.filter.state.x, ax, ay, az, mx, my, mz
                )
                if observed is None:
                    self.stats["skipped_corrections"] += 1
                    return
                z, h, H = observed
                try:
                    self.filter.correct(z, h, H, self.observation_model.R)
                except NumericInstabilityError as e:
                    logger.warning("Skipping correction: %s", e)
                    self.stats["skipped_corrections"] += 1
                    return
                self.stats["corrections"] += 1
                condition_state(self.filter.state, "post", self.eps)
            except DegenerateStateError as e:
                self._fail(e)
                return
            self._publish()

    def on_magnetic_field_sample(self, mx: float, my: float, mz: float, timestamp: int):
        """Magnetometer sample. Only updates the cached reading."""
        with self._lock:
            if self._dropped("magnetometer"):
                return
            if not self._accept("mag", timestamp):
                return
            self.mag_cache.set(np.array([mx, my, mz], dtype=float))

    # --- INTERNALS ---
    def _dropped(self, source: str) -> bool:
        if self.failed:
            logger.warning("Estimator failed, dropping %s sample until reset()", source)
            return True
        return False

    def _finite_rate(self, wx, wy, wz) -> bool:
        w = np.array([wx, wy, wz], dtype=float)
        with np.errstate(over="ignore", invalid="ignore"):
            finite = bool(np.all(np.isfinite(w))) and bool(np.isfinite(np.linalg.norm(w)))
        if not finite:
            logger.warning("Rejected non-finite gyroscope sample (%s, %s, %s), identity predict", wx, wy, wz)
            self.stats["rejected_samples"] += 1
        return finite

    def _predict(self, wx, wy, wz, dt: float) -> bool:
        """Run the process model; False when it produced non-finite values."""
        with np.errstate(over="ignore", invalid="ignore"):
            process_value, F, Q = self.process_model.evaluate(self.filter.state.x, wx, wy, wz, dt)
        try:
            self.filter.predict(process_value, F, Q)
        except NumericInstabilityError as e:
            logger.warning("Skipping prediction: %s", e)
            return False
        return True

    def _gyro_delta_t(self, timestamp) -> float:
        """Seconds since the previous gyroscope sample; 0 for the first or a non-monotonic one."""
        last = self.last_gyro_timestamp
        if last is None:
            self.last_gyro_timestamp = timestamp
            return 0.0
        dt = (timestamp - last) * self.config.timestamp_unit_s
        if not np.isfinite(dt) or dt <= 0.0:
            logger.debug("Non-increasing gyroscope timestamp %s (last %s), identity predict", timestamp, last)
            self.stats["rejected_samples"] += 1
            return 0.0
        self.last_gyro_timestamp = timestamp
        return float(dt)

    def _accept(self, stream: str, timestamp) -> bool:
        attr = f"last_{stream}_timestamp"
        last = getattr(self, attr)
        if last is not None and not timestamp > last:
            logger.debug("Rejected %s sample with timestamp %s (last %s)", stream, timestamp, last)
            self.stats["rejected_samples"] += 1
            return False
        setattr(self, attr, timestamp)
        return True

    def _publish(self):
        axis, angle = quaternion_to_axis_angle(
            self.filter.state.x, eps=self.eps, default_axis=self.config.default_axis
        )
        axis = axis / np.linalg.norm(axis)
        self.rotation_axis = axis
        self.rotation_angle = angle
        for listener in list(self._orientation_listeners):
            try:
                listener(axis.copy(), angle)
            except Exception:
                logger.exception("Orientation listener %r raised", listener)

    def _fail(self, error: DegenerateStateError):
        logger.error("Degenerate orientation state, estimator stopped: %s", error)
        self.failed = True
        self.failure = error
        for listener in list(self._failure_listeners):
            try:
                listener(error)
            except Exception:
                logger.exception("Failure listener %r raised", listener)
