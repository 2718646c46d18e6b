"""Camera module for view and eye-ray generation.

Components:
    pinhole: Pinhole (perspective) camera, its basis and eye rays
"""

from .pinhole import Camera, CameraBasis, eye_ray_direction

__all__ = [
    "Camera",
    "CameraBasis",
    "eye_ray_direction",
]
