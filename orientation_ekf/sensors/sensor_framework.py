# -*- coding: utf-8 -*-
"""
Filename: sensor_framework.py
Description: Simulated 3-axis inertial sensors standing in for the physical
             sensor feed of the orientation estimator. A sensor turns
             kinematic truth into readings at its own rate, corrupted by a
             configurable error model, and remembers a window of past output.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np


@dataclass
class SensorSpec:
    """Output format of a sensor."""
    dimension: int
    units: str
    description: str
    labels: List[str]  # one per axis, e.g. ['wx', 'wy', 'wz']


@dataclass
class ErrorModel:
    """
    Per-axis corruption applied to the true signal:

        truth -> scale -> + bias (random walk) -> + white noise
              -> saturation -> quantization

    Vector parameters are broadcast to the sensor dimension.
    """
    dimension: int
    scale_factors: Optional[np.ndarray] = None
    initial_bias: Optional[np.ndarray] = None
    bias_instability_std: Optional[np.ndarray] = None
    white_noise_std: Optional[np.ndarray] = None
    saturation_limit: Optional[float] = None
    quantization_bits: Optional[int] = None
    quantization_range: Optional[float] = None
    bias: np.ndarray = field(init=False)

    def __post_init__(self):
        self.scale_factors = self._per_axis(self.scale_factors, 1.0)
        self.bias = self._per_axis(self.initial_bias, 0.0)
        self.bias_instability_std = self._per_axis(self.bias_instability_std, 0.0)
        self.white_noise_std = self._per_axis(self.white_noise_std, 0.0)

    def _per_axis(self, value, default: float) -> np.ndarray:
        if value is None:
            value = default
        return np.broadcast_to(np.asarray(value, dtype=float), (self.dimension,)).copy()

    @property
    def lsb(self) -> float:
        """Quantization step: full range (2 * range) over 2^bits counts. 0 when disabled."""
        if not self.quantization_bits or not self.quantization_range:
            return 0.0
        return 2.0 * self.quantization_range / 2 ** self.quantization_bits

    def apply(self, truth: np.ndarray, dt: float, rng: np.random.Generator) -> np.ndarray:
        # bias random walk: b += sigma * sqrt(dt) * N(0, 1)
        if np.any(self.bias_instability_std > 0.0):
            self.bias = self.bias + self.bias_instability_std * np.sqrt(dt) * rng.standard_normal(self.dimension)

        out = self.scale_factors * truth + self.bias
        if np.any(self.white_noise_std > 0.0):
            out = out + self.white_noise_std * rng.standard_normal(self.dimension)

        if self.saturation_limit:
            limit = abs(self.saturation_limit)
            out = np.clip(out, -limit, limit)

        step = self.lsb
        if step > 0.0:
            limit = abs(self.quantization_range)
            out = np.clip(np.round(out / step) * step, -limit, limit)
        return out


# ==============================================================================
# SENSORS
# ==============================================================================

class BaseSensor:
    """
    Rate gating and output history shared by all sensors.

    Attributes:
        sensor_id (str): Name used in logs and plots.
        spec (SensorSpec): Output format.
        update_rate_hz (float, optional): Output rate. None means every step.
        history (deque): Last ``buffer_size`` (time, value) pairs.
    """
    # slack on the update period so 0.01 s steps are not starved by round-off
    RATE_TOLERANCE_S = 1e-9

    def __init__(
        self,
        sensor_id: str,
        spec: SensorSpec,
        buffer_size: int = 100,
        update_rate_hz: Optional[float] = None
    ):
        if update_rate_hz is not None and update_rate_hz <= 0.0:
            raise ValueError(f"update_rate_hz must be positive, got {update_rate_hz}")
        self.sensor_id = sensor_id
        self.spec = spec
        self.update_rate_hz = update_rate_hz
        self.history = deque(maxlen=buffer_size)
        self._last_output_time: Optional[float] = None

    @property
    def period(self) -> float:
        return 0.0 if self.update_rate_hz is None else 1.0 / self.update_rate_hz

    def should_update(self, t: float) -> bool:
        """True when a reading is due at time ``t``; the first call always is."""
        last = self._last_output_time
        if last is not None and t - last < self.period - self.RATE_TOLERANCE_S:
            return False
        self._last_output_time = t
        return True

    def record(self, value: np.ndarray, t: float):
        if value.shape != (self.spec.dimension,):
            raise ValueError(
                f"{self.sensor_id}: expected {self.spec.dimension} values, got shape {value.shape}"
            )
        self.history.append((t, value.copy()))

    def get_history_matrix(self) -> np.ndarray:
        """Recorded readings as an (N x D) array."""
        return self.get_history_with_timestamps()[1]

    def get_history_with_timestamps(self) -> Tuple[np.ndarray, np.ndarray]:
        if not self.history:
            return np.empty(0), np.empty((0, self.spec.dimension))
        times, values = zip(*self.history)
        return np.array(times), np.vstack(values)


class SimulatedSensor(BaseSensor):
    """
    Sensor driven by simulated truth. Error model keyword arguments
    (``white_noise_std``, ``bias_instability_std``, ``initial_bias``,
    ``scale_factors``, ``saturation_limit``, ``quantization_bits``,
    ``quantization_range``) are forwarded to ``ErrorModel``.
    """
    def __init__(
        self,
        sensor_id: str,
        spec: SensorSpec,
        update_rate_hz: Optional[float] = None,
        buffer_size: int = 100,
        seed: Optional[int] = None,
        **error_kwargs
    ):
        super().__init__(sensor_id, spec, buffer_size=buffer_size, update_rate_hz=update_rate_hz)
        self.errors = ErrorModel(spec.dimension, **error_kwargs)
        self.rng = np.random.default_rng(seed)

    def step(self, true_signal: np.ndarray, dt: float, t: float) -> Optional[np.ndarray]:
        """
        Reading for time ``t``, or None while the sensor is between updates.
        """
        if not self.should_update(t):
            return None
        truth = np.asarray(true_signal, dtype=float)
        if truth.shape != (self.spec.dimension,):
            raise ValueError(
                f"{self.sensor_id}: expected {self.spec.dimension} values, got shape {truth.shape}"
            )
        reading = self.errors.apply(truth, dt, self.rng)
        self.record(reading, t)
        return reading
