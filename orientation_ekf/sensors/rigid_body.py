# -*- coding: utf-8 -*-
"""
Filename: rigid_body.py
Description: Attitude truth for driving the IMU simulation. A profile
             rotates the body about one fixed body axis by angle(t) and
             reports the body-to-ground DCM with the matching body rate.
"""

from typing import Tuple

import numpy as np


def axis_angle_dcm(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotation matrix of ``angle`` (rad) about the unit vector ``axis`` (Rodrigues)."""
    x, y, z = axis
    skew = np.array([
        [0.0, -z, y],
        [z, 0.0, -x],
        [-y, x, 0.0],
    ])
    return np.eye(3) + np.sin(angle) * skew + (1.0 - np.cos(angle)) * (skew @ skew)


class MotionProfile:
    """
    Rotation about a fixed axis starting from ``initial_dcm``.
    Subclasses supply angle(t) and its rate through ``get_kinematics``.
    """
    def __init__(self, axis=(0.0, 0.0, 1.0), initial_dcm=None):
        axis = np.asarray(axis, dtype=float)
        self.axis = axis / np.linalg.norm(axis)
        self.initial_dcm = np.eye(3) if initial_dcm is None else np.asarray(initial_dcm, dtype=float)

    def get_kinematics(self, t: float) -> Tuple[float, float]:
        """(angle, rate) at time ``t``."""
        raise NotImplementedError

    def get_state(self, t: float) -> Tuple[np.ndarray, np.ndarray]:
        """(dcm_body_to_ground, omega_body) at time ``t``."""
        angle, rate = self.get_kinematics(t)
        # the axis is fixed in the body, so the body rate lies along it
        return self.initial_dcm @ axis_angle_dcm(self.axis, angle), rate * self.axis


class HarmonicProfile(MotionProfile):
    """Pendulum swing: angle = A sin(2 pi f t + phase)."""
    def __init__(self, axis, amplitude_rad, freq_hz, phase=0.0, **kwargs):
        super().__init__(axis, **kwargs)
        self.amplitude = amplitude_rad
        self.omega = 2.0 * np.pi * freq_hz
        self.phase = phase

    def get_kinematics(self, t: float):
        arg = self.omega * t + self.phase
        return self.amplitude * np.sin(arg), self.amplitude * self.omega * np.cos(arg)


class SteadyRateProfile(MotionProfile):
    """Turntable: constant rate from ``start_angle``."""
    def __init__(self, axis, rate_rads, start_angle=0.0, **kwargs):
        super().__init__(axis, **kwargs)
        self.rate = rate_rads
        self.start_angle = start_angle

    def get_kinematics(self, t: float):
        return self.start_angle + self.rate * t, self.rate
