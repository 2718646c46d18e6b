"""Ray and intersection types plus in-kernel vector utilities.

This module provides both halves of the ray abstraction:

- Python-side value types (Ray, Intersection) used by the public API
  and by tests to describe single rays and their hits.
- Taichi-side double-precision vector/matrix types, the HitRecord struct
  and @ti.func helpers used inside rendering kernels: homogeneous
  coordinate conversion, reflection and a closed-form 3x3 inverse that
  reports singular systems instead of dividing by zero.

Example:
    >>> from whitted.core.ray import Ray
    >>> ray = Ray.create((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
    >>> ray.at(2.0)
    array([0., 0., 3.])
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from whitted.core import algebra
from whitted.core.algebra import Vec3

# Double-precision Taichi types used by every kernel in the package
vec3 = ti.types.vector(3, ti.f64)
vec4 = ti.types.vector(4, ti.f64)
mat3 = ti.types.matrix(3, 3, ti.f64)
mat4 = ti.types.matrix(4, 4, ti.f64)


# =============================================================================
# Python-side Value Types
# =============================================================================


@dataclass(frozen=True)
class Ray:
    """A ray with an origin point and a direction.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction of the ray. Not required to be unit
            length; callers normalize where distances matter.
    """

    origin: Vec3
    direction: Vec3

    @classmethod
    def create(cls, origin, direction) -> "Ray":
        """Build a ray from any pair of 3-element sequences."""
        return cls(algebra.as_vec3(origin), algebra.as_vec3(direction))

    def at(self, t: float) -> Vec3:
        """Point origin + t * direction."""
        return algebra.add(self.origin, algebra.scale(self.direction, t))

    def normalized(self) -> "Ray":
        """Same ray with a unit-length direction."""
        return Ray(self.origin, algebra.normalize(self.direction))


@dataclass(frozen=True)
class Intersection:
    """Result of a successful ray-shape intersection.

    Attributes:
        point: World-space point where the ray meets the surface.
        normal: Unit surface normal at the point.
        distance: Non-negative distance from the ray origin to the point.
    """

    point: Vec3
    normal: Vec3
    distance: float


# =============================================================================
# Taichi-side Hit Record
# =============================================================================


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection inside a kernel.

    Attributes:
        hit: 1 if the ray intersected a surface, 0 otherwise.
        distance: Distance from the ray origin to the hit point.
        point: World-space hit point.
        normal: Unit surface normal at the hit point.
        material_id: Material of the surface that was hit, -1 if none.
    """

    hit: ti.i32
    distance: ti.f64
    point: vec3
    normal: vec3
    material_id: ti.i32


@ti.func
def miss_record() -> HitRecord:
    """A HitRecord describing no intersection."""
    return HitRecord(
        hit=0,
        distance=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )


# =============================================================================
# In-kernel Vector Utilities
# =============================================================================


@ti.func
def ray_at(origin: vec3, direction: vec3, t: ti.f64) -> vec3:
    """Point origin + t * direction."""
    return origin + t * direction


@ti.func
def point4(p: vec3) -> vec4:
    """Homogeneous point (w = 1); affected by translation."""
    return vec4(p[0], p[1], p[2], 1.0)


@ti.func
def direction4(d: vec3) -> vec4:
    """Homogeneous direction (w = 0); unaffected by translation."""
    return vec4(d[0], d[1], d[2], 0.0)


@ti.func
def xyz(h: vec4) -> vec3:
    """Drop the homogeneous coordinate."""
    return vec3(h[0], h[1], h[2])


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Mirror an incident direction about a unit normal.

    Args:
        incident: The incoming direction (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        incident - 2 * dot(incident, normal) * normal
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def det3(m: mat3) -> ti.f64:
    """Determinant of a 3x3 matrix by cofactor expansion along row 0."""
    return (
        m[0, 0] * (m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1])
        - m[0, 1] * (m[1, 0] * m[2, 2] - m[1, 2] * m[2, 0])
        + m[0, 2] * (m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0])
    )


@ti.func
def inverse3(m: mat3):
    """Closed-form inverse of a 3x3 matrix.

    Kernels cannot raise, so a singular matrix is reported through the
    returned flag rather than by producing NaN or Infinity.

    Returns:
        A tuple (inverse, ok). ok is 0 when the determinant is zero, in
        which case inverse is the zero matrix.
    """
    det = det3(m)
    inv = ti.Matrix.zero(ti.f64, 3, 3)
    ok = 0
    if det != 0.0:
        ok = 1
        adj = ti.Matrix(
            [
                [
                    m[1, 1] * m[2, 2] - m[1, 2] * m[2, 1],
                    m[0, 2] * m[2, 1] - m[0, 1] * m[2, 2],
                    m[0, 1] * m[1, 2] - m[0, 2] * m[1, 1],
                ],
                [
                    m[1, 2] * m[2, 0] - m[1, 0] * m[2, 2],
                    m[0, 0] * m[2, 2] - m[0, 2] * m[2, 0],
                    m[0, 2] * m[1, 0] - m[0, 0] * m[1, 2],
                ],
                [
                    m[1, 0] * m[2, 1] - m[1, 1] * m[2, 0],
                    m[0, 1] * m[2, 0] - m[0, 0] * m[2, 1],
                    m[0, 0] * m[1, 1] - m[0, 1] * m[1, 0],
                ],
            ]
        )
        inv = adj / det
    return inv, ok


# =============================================================================
# Kernel <-> Python Transfer
# =============================================================================

# Hit results returned from probe kernels: (hit, distance, point.xyz, normal.xyz)
packed_hit = ti.types.vector(8, ti.f64)


@ti.func
def pack_hit(rec: HitRecord) -> packed_hit:
    """Flatten a HitRecord so a kernel can return it to Python."""
    return packed_hit(
        ti.cast(rec.hit, ti.f64),
        rec.distance,
        rec.point[0],
        rec.point[1],
        rec.point[2],
        rec.normal[0],
        rec.normal[1],
        rec.normal[2],
    )


def unpack_hit(packed) -> Intersection | None:
    """Turn a packed hit returned by a probe kernel into an Intersection."""
    if packed[0] == 0.0:
        return None
    return Intersection(
        point=algebra.vec3(packed[2], packed[3], packed[4]),
        normal=algebra.vec3(packed[5], packed[6], packed[7]),
        distance=float(packed[1]),
    )


def to_taichi_vec3(v: Vec3) -> "ti.Vector":
    """Convert a Python-side vector into a kernel argument."""
    return vec3(float(v[0]), float(v[1]), float(v[2]))


def to_taichi_mat(m) -> "ti.Matrix":
    """Convert a Python-side matrix into a kernel argument."""
    return ti.Matrix([[float(x) for x in row] for row in m])
