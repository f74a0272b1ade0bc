"""Sensors package.

Most client code should import conveniently from here rather than diving into
individual submodules. The sensor base classes are in ``sensor_framework.py``,
the IMU triad and its dispatcher are in ``imu.py`` and the motion profiles
used to generate truth are in ``rigid_body.py``.

Example::

    from orientation_ekf.sensors import SimulatedIMU, SteadyRateProfile, dispatch

"""

# re-export commonly used sensor classes from submodules

from .sensor_framework import (
    SensorSpec,
    ErrorModel,
    BaseSensor,
    SimulatedSensor
)

from .imu import (
    Gyroscope3Axis,
    Accelerometer3Axis,
    Magnetometer3Axis,
    SensorSample,
    SimulatedIMU,
    dispatch
)

from .rigid_body import (
    axis_angle_dcm,
    MotionProfile,
    HarmonicProfile,
    SteadyRateProfile
)

__all__ = [
    # framework
    "SensorSpec",
    "ErrorModel",
    "BaseSensor",
    "SimulatedSensor",
    # IMU sensors
    "Gyroscope3Axis",
    "Accelerometer3Axis",
    "Magnetometer3Axis",
    "SensorSample",
    "SimulatedIMU",
    "dispatch",
    # motion
    "axis_angle_dcm",
    "MotionProfile",
    "HarmonicProfile",
    "SteadyRateProfile"
]
