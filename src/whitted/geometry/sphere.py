"""Sphere and ellipsoid primitive with transform-based intersection.

Every sphere is the canonical unit sphere at the origin placed in the
world by an affine transform T * R * S (translation to the center,
rotation about an arbitrary axis, non-uniform scale times the radius).
The transform, its inverse and the inverse's transpose are computed once
at construction and never change.

Ray-sphere intersection works in the sphere's local space:
1. Transform the ray by the inverse (w = 1 for the origin, w = 0 for the
   direction so translation does not move it).
2. Solve |s + t*d|^2 = 1 with the robust quadratic formula.
3. Map the local hit back with the forward transform for the point and
   with the inverse transpose for the normal (inverse-transpose rule).

Since the local direction is generally not unit length, the reported
distance is the Euclidean distance from the ray origin to the world hit
point, not the root t.

Example:
    >>> ellipsoid = Sphere.create(
    ...     material, center=(0.0, 1.0, 0.0), radius=0.5, scale=(2.0, 1.0, 1.0)
    ... )
    >>> hit = ellipsoid.intersect(Ray.create((0, 1, 5), (0, 0, -1)))
"""

from typing import TYPE_CHECKING, Any

import taichi as ti
import taichi.math as tm

from whitted.core import algebra
from whitted.core.algebra import Mat4
from whitted.core.ray import (
    HitRecord,
    Intersection,
    Ray,
    direction4,
    mat4,
    miss_record,
    pack_hit,
    packed_hit,
    point4,
    ray_at,
    to_taichi_mat,
    to_taichi_vec3,
    unpack_hit,
    vec3,
    xyz,
)

if TYPE_CHECKING:
    from whitted.lighting.material import Material


@ti.dataclass
class SphereFrame:
    """Kernel-side transform data of a sphere.

    Attributes:
        transform: Local (unit sphere) to world transform.
        inverse: World to local transform.
        inverse_transpose: Transpose of inverse, used to map normals.
    """

    transform: mat4
    inverse: mat4
    inverse_transpose: mat4


# =============================================================================
# Transform Construction (Python-side)
# =============================================================================


def sphere_transform(
    center=(0.0, 0.0, 0.0),
    radius: float = 1.0,
    scale=(1.0, 1.0, 1.0),
    rotation_axis=(0.0, 1.0, 0.0),
    rotation_degrees: float = 0.0,
) -> Mat4:
    """Build the local-to-world transform T(center) * R(axis, angle) * S(radius * scale).

    Raises:
        DegenerateVectorError: If rotation_degrees is non-zero and the axis
            has zero length.
    """
    factors = algebra.scale(algebra.as_vec3(scale), radius)
    transforms = [algebra.translation(algebra.as_vec3(center))]
    if rotation_degrees != 0.0:
        transforms.append(algebra.rotation(algebra.as_vec3(rotation_axis), rotation_degrees))
    transforms.append(algebra.scaling(factors))
    return algebra.compose(*transforms)


class Sphere:
    """A sphere or ellipsoid defined by a material and an affine transform.

    Attributes:
        material: Shared, read-only surface material.
        transform: Local-to-world 4x4 matrix.
        inverse: World-to-local 4x4 matrix.
        inverse_transpose: Transpose of inverse.
    """

    kind = "sphere"

    def __init__(self, material: "Material", transform: Mat4 = algebra.IDENTITY4) -> None:
        """Create a sphere from a raw transform of the unit sphere.

        Raises:
            SingularMatrixError: If the transform is not invertible
                (for example a zero scale factor).
        """
        self._material = material
        self.transform = algebra.mat4(transform)
        self.inverse = algebra.inverse(self.transform)
        self.inverse_transpose = algebra.transpose(self.inverse)

    @classmethod
    def create(
        cls,
        material: "Material",
        center=(0.0, 0.0, 0.0),
        radius: float = 1.0,
        scale=(1.0, 1.0, 1.0),
        rotation_axis=(0.0, 1.0, 0.0),
        rotation_degrees: float = 0.0,
    ) -> "Sphere":
        """Create a sphere from center, radius and optional scale/rotation."""
        return cls(
            material,
            sphere_transform(center, radius, scale, rotation_axis, rotation_degrees),
        )

    @property
    def material(self) -> "Material":
        """The material of the sphere's surface."""
        return self._material

    def intersect(self, ray: Ray) -> Intersection | None:
        """Intersect a single ray with this sphere.

        Runs the same kernel-side routine used for rendering, so Taichi
        must be initialized.

        Returns:
            The closest intersection in front of the ray origin, or None.
        """
        packed = _probe_sphere(
            to_taichi_vec3(ray.origin),
            to_taichi_vec3(ray.direction),
            to_taichi_mat(self.transform),
            to_taichi_mat(self.inverse),
            to_taichi_mat(self.inverse_transpose),
        )
        return unpack_hit(packed)

    def to_dict(self) -> dict[str, Any]:
        """Export the geometry as a JSON-friendly dictionary."""
        return {"type": self.kind, "transform": self.transform.tolist()}

    def __repr__(self) -> str:
        center = self.transform[:3, 3].tolist()
        return f"Sphere(center={center})"


# =============================================================================
# Ray-Sphere Intersection (Taichi-compatible)
# =============================================================================


@ti.func
def _solve_quadratic_robust(h: ti.f64, a: ti.f64, c: ti.f64, sqrt_d: ti.f64):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the quarter discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids catastrophic cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if q == 0.0:
        # h and the discriminant are both zero; the single root is 0
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(origin: vec3, direction: vec3, sphere: SphereFrame) -> HitRecord:
    """Test for ray-sphere intersection.

    With s and d the ray origin and direction in unit-sphere space, the
    hit satisfies a*t^2 + b*t + c = 0 where

        a = dot(d, d), b = 2 * dot(d, s), c = dot(s, s) - 1

    The smaller non-negative root is used; when both roots are negative
    the sphere is behind the ray and there is no hit.

    Args:
        origin: World-space ray origin.
        direction: World-space ray direction (need not be normalized).
        sphere: The sphere's transforms.

    Returns:
        A HitRecord; material_id is left at -1 for the caller to fill in.
    """
    local_start = xyz(sphere.inverse @ point4(origin))
    local_dir = xyz(sphere.inverse @ direction4(direction))

    a = tm.dot(local_dir, local_dir)
    h = tm.dot(local_dir, local_start)
    c = tm.dot(local_start, local_start) - 1.0

    result = miss_record()

    discriminant = h * h - a * c
    if a > 0.0 and discriminant >= 0.0:
        t0, t1 = _solve_quadratic_robust(h, a, c, ti.sqrt(discriminant))

        t = t0
        if t < 0.0:
            t = t1

        if t >= 0.0:
            local_hit = ray_at(local_start, local_dir, t)
            world_point = xyz(sphere.transform @ point4(local_hit))
            world_normal = tm.normalize(xyz(sphere.inverse_transpose @ direction4(local_hit)))
            result.hit = 1
            result.distance = tm.length(world_point - origin)
            result.point = world_point
            result.normal = world_normal

    return result


@ti.kernel
def _probe_sphere(
    origin: vec3,
    direction: vec3,
    transform: mat4,
    inverse: mat4,
    inverse_transpose: mat4,
) -> packed_hit:
    """Intersect one ray with one sphere (used by Sphere.intersect)."""
    frame = SphereFrame(transform=transform, inverse=inverse, inverse_transpose=inverse_transpose)
    return pack_hit(hit_sphere(origin, direction, frame))
