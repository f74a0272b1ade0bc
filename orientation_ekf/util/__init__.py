"""Utility helpers package.

Most client code should import conveniently from here rather than diving into
individual submodules. The quaternion/euler functions live in ``angles.py``.

Example::

    from orientation_ekf.util import quaternion_multiply, quaternion_to_axis_angle

"""

# re-export commonly used symbols from submodules
from .angles import (
    dcm_from_euler,
    euler_from_dcm,
    quat_from_dcm,
    quaternion_identity,
    quaternion_multiply,
    quaternion_right_matrix,
    quaternion_conjugate,
    quaternion_norm,
    quaternion_normalize,
    quaternion_from_axis_angle,
    quaternion_from_rotation_vector,
    quaternion_to_axis_angle,
    quaternion_angle_between,
    quaternion_to_rotation_matrix,
    quaternion_to_euler,
)

__all__ = [
    # dcm
    "dcm_from_euler",
    "euler_from_dcm",
    "quat_from_dcm",
    # quaternions
    "quaternion_identity",
    "quaternion_multiply",
    "quaternion_right_matrix",
    "quaternion_conjugate",
    "quaternion_norm",
    "quaternion_normalize",
    "quaternion_from_axis_angle",
    "quaternion_from_rotation_vector",
    "quaternion_to_axis_angle",
    "quaternion_angle_between",
    "quaternion_to_rotation_matrix",
    "quaternion_to_euler",
]
