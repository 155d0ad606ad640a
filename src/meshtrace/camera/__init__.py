"""Camera module.

Components:
    transform: Quaternion helpers and the rigid ``Transform``
    pinhole: Pinhole camera generating one primary ray per pixel
"""

from .pinhole import PinholeCamera
from .transform import (
    IDENTITY_QUAT,
    Transform,
    quat_conjugate,
    quat_from_axis_angle,
    quat_from_basis,
    quat_multiply,
    quat_rotate,
)

__all__ = [
    "PinholeCamera",
    "IDENTITY_QUAT",
    "Transform",
    "quat_conjugate",
    "quat_from_axis_angle",
    "quat_from_basis",
    "quat_multiply",
    "quat_rotate",
]
