"""Pinhole camera model for perspective eye-ray generation.

The camera builds an orthonormal basis (u, v, w) from its view parameters:
- w: points from look_at toward the eye (opposite the view direction)
- u: points right in the image plane
- v: points up in the image plane

Pixels are addressed by (row, column) with row 0 at the top of the image.
For pixel (i, j) the eye ray direction is

    alpha = tan_x * (j / half_width - 1)
    beta  = tan_y * (1 - i / half_height)
    direction = normalize(alpha * u + beta * v - w)

The basis and projection constants are computed once on the Python side
(CameraBasis) and passed to the rendering kernel as arguments, where
eye_ray_direction() evaluates the formula per pixel.

Example:
    >>> camera = Camera(
    ...     position=(0.0, 0.0, 5.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     width=640,
    ...     height=480,
    ...     fov_y=45.0,
    ... )
    >>> basis = camera.basis()
    >>> ray = basis.eye_ray(240, 320)  # ray through the image center
"""

import math
from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from whitted.core import algebra
from whitted.core.algebra import Vec3
from whitted.core.ray import Ray, vec3
from whitted.errors import DegenerateVectorError

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        position: Eye position in world space (x, y, z).
        look_at: Point the camera is looking at (x, y, z).
        up: Up direction for camera orientation (typically (0, 1, 0)).
        width: Image width in pixels.
        height: Image height in pixels.
        fov_y: Vertical field of view in degrees.
    """

    position: tuple[float, float, float]
    look_at: tuple[float, float, float]
    up: tuple[float, float, float]
    width: int
    height: int
    fov_y: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions must be positive, got {self.width}x{self.height}"
            )
        if not 0.0 < self.fov_y < 180.0:
            raise ValueError(f"fov_y must be in (0, 180) degrees, got {self.fov_y}")

    def basis(self) -> "CameraBasis":
        """Compute the orthonormal basis and projection constants.

        Raises:
            ValueError: If the eye coincides with look_at, or up is
                parallel to the view direction.
        """
        eye = algebra.as_vec3(self.position)
        try:
            w = algebra.normalize(algebra.subtract(eye, algebra.as_vec3(self.look_at)))
        except DegenerateVectorError as exc:
            raise ValueError("Camera position and look_at must differ") from exc
        try:
            u = algebra.normalize(algebra.cross(algebra.as_vec3(self.up), w))
        except DegenerateVectorError as exc:
            raise ValueError("Camera up vector must not be parallel to the view direction") from exc
        v = algebra.cross(w, u)

        half_width = self.width / 2.0
        half_height = self.height / 2.0
        tan_y = math.tan(math.radians(self.fov_y) / 2.0)
        tan_x = tan_y * (half_width / half_height)

        return CameraBasis(
            eye=eye,
            u=u,
            v=v,
            w=w,
            half_width=half_width,
            half_height=half_height,
            tan_x=tan_x,
            tan_y=tan_y,
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the camera as a JSON-friendly dictionary."""
        return {
            "position": list(self.position),
            "look_at": list(self.look_at),
            "up": list(self.up),
            "width": self.width,
            "height": self.height,
            "fov_y": self.fov_y,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Camera":
        """Build a camera from a dictionary produced by to_dict()."""
        return cls(
            position=tuple(data["position"]),
            look_at=tuple(data.get("look_at", (0.0, 0.0, 0.0))),
            up=tuple(data.get("up", (0.0, 1.0, 0.0))),
            width=int(data["width"]),
            height=int(data["height"]),
            fov_y=float(data["fov_y"]),
        )


@dataclass(frozen=True)
class CameraBasis:
    """Eye basis and projection constants derived from a Camera.

    Attributes:
        eye: Eye position.
        u: Right direction (unit).
        v: Up direction (unit).
        w: Backward direction, opposite the view direction (unit).
        half_width: Half the image width in pixels.
        half_height: Half the image height in pixels.
        tan_x: Horizontal half-angle tangent.
        tan_y: Vertical half-angle tangent.
    """

    eye: Vec3
    u: Vec3
    v: Vec3
    w: Vec3
    half_width: float
    half_height: float
    tan_x: float
    tan_y: float

    def eye_ray(self, row: float, col: float) -> Ray:
        """Primary ray through pixel (row, col); row 0 is the top of the image."""
        alpha = self.tan_x * (col / self.half_width - 1.0)
        beta = self.tan_y * (1.0 - row / self.half_height)
        direction = algebra.subtract(
            algebra.add(algebra.scale(self.u, alpha), algebra.scale(self.v, beta)),
            self.w,
        )
        return Ray(self.eye, algebra.normalize(direction))


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def eye_ray_direction(
    row: ti.f64,
    col: ti.f64,
    u: vec3,
    v: vec3,
    w: vec3,
    half_width: ti.f64,
    half_height: ti.f64,
    tan_x: ti.f64,
    tan_y: ti.f64,
) -> vec3:
    """Unit direction of the primary ray through pixel (row, col).

    Kernel-side counterpart of CameraBasis.eye_ray().
    """
    alpha = tan_x * (col / half_width - 1.0)
    beta = tan_y * (1.0 - row / half_height)
    return tm.normalize(alpha * u + beta * v - w)
