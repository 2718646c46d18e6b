"""Bounded planar quad primitive with ray-quad intersection.

A quad is given by four coplanar corners A, B, C, D in winding order. Its
frame is derived once at construction:

- U = normalize(B - A), V = normalize(D - A)
- normal = normalize(U x V)

The corners must be coplanar and form a convex, consistently wound
polygon. The angle at A bounds the patch along A->B and A->D; the two
remaining edges B->C and C->D are bounded by half-plane tests against
their outward in-plane normals.

Ray-quad intersection solves the basis-change system

    [U | V | -d] * (p, q, t) = s - A

with the closed-form 3x3 inverse. A singular system (ray parallel to
the plane) is a miss. The hit is accepted when p > 0, q > 0, t > 0 and the
point lies inside both boundary half-planes. The reported normal is the
plane normal regardless of which side the ray arrives from.

Example:
    >>> floor = Quad(
    ...     material,
    ...     a=(-3.0, -4.0, 0.0),
    ...     b=(4.0, -4.0, 0.0),
    ...     c=(4.0, -4.0, -4.0),
    ...     d=(-3.0, -4.0, -4.0),
    ... )
    >>> floor.normal
    array([0., 1., 0.])
"""

from typing import TYPE_CHECKING, Any

import taichi as ti
import taichi.math as tm

from whitted.core import algebra
from whitted.core.algebra import Vec3
from whitted.core.ray import (
    HitRecord,
    Intersection,
    Ray,
    inverse3,
    miss_record,
    pack_hit,
    packed_hit,
    ray_at,
    to_taichi_vec3,
    unpack_hit,
    vec3,
)
from whitted.errors import DegenerateVectorError, InvalidQuadError, NonCoplanarQuadError

if TYPE_CHECKING:
    from whitted.lighting.material import Material

# Relative tolerance on the out-of-plane component of C - A
COPLANAR_TOLERANCE = 1e-9


@ti.dataclass
class QuadFrame:
    """Kernel-side data of a quad.

    Attributes:
        origin: Corner A.
        u: Unit direction from A to B.
        v: Unit direction from A to D.
        normal: Unit plane normal, U x V.
        side_b: Outward in-plane normal of edge B->C.
        limit_b: dot(side_b, B - A); inside points satisfy
            dot(side_b, P - A) <= limit_b.
        side_d: Outward in-plane normal of edge C->D.
        limit_d: dot(side_d, D - A).
    """

    origin: vec3
    u: vec3
    v: vec3
    normal: vec3
    side_b: vec3
    limit_b: ti.f64
    side_d: vec3
    limit_d: ti.f64


class Quad:
    """A bounded planar patch defined by four corners and a material.

    Attributes:
        a, b, c, d: The corners in winding order.
        u: Unit direction from A to B.
        v: Unit direction from A to D.
        normal: Unit plane normal.
    """

    kind = "quad"

    def __init__(self, material: "Material", a, b, c, d) -> None:
        """Create a quad and precompute its intersection frame.

        Raises:
            InvalidQuadError: If two corners coincide, the edges at A are
                parallel, or the corners are not convex and consistently
                wound.
            NonCoplanarQuadError: If C does not lie in the plane of A, B, D.
        """
        self._material = material
        self.a = algebra.as_vec3(a)
        self.b = algebra.as_vec3(b)
        self.c = algebra.as_vec3(c)
        self.d = algebra.as_vec3(d)

        try:
            self.u = algebra.normalize(algebra.subtract(self.b, self.a))
            self.v = algebra.normalize(algebra.subtract(self.d, self.a))
            self.normal = algebra.normalize(algebra.cross(self.u, self.v))
        except DegenerateVectorError as exc:
            raise InvalidQuadError(
                "Quad corners must be distinct and the edges at A must not be parallel"
            ) from exc

        self._check_coplanar()
        self._check_convex()

        self.side_b = algebra.cross(algebra.subtract(self.c, self.b), self.normal)
        self.limit_b = algebra.dot(self.side_b, algebra.subtract(self.b, self.a))
        self.side_d = algebra.cross(algebra.subtract(self.d, self.c), self.normal)
        self.limit_d = algebra.dot(self.side_d, algebra.subtract(self.d, self.a))

    def _check_coplanar(self) -> None:
        # Coordinates of C - A in the (U, V, normal) basis
        ac = algebra.subtract(self.c, self.a)
        basis = algebra.from_columns(self.u, self.v, self.normal)
        coords = algebra.mat_vec(algebra.inverse(basis), ac)
        tolerance = COPLANAR_TOLERANCE * max(1.0, algebra.magnitude(ac))
        if abs(coords[2]) > tolerance:
            raise NonCoplanarQuadError(
                f"Corner C is {abs(coords[2]):.3g} away from the plane of A, B, D"
            )

    def _check_convex(self) -> None:
        corners = (self.a, self.b, self.c, self.d)
        for i in range(4):
            first = algebra.subtract(corners[(i + 1) % 4], corners[i])
            second = algebra.subtract(corners[(i + 2) % 4], corners[(i + 1) % 4])
            if algebra.dot(algebra.cross(first, second), self.normal) <= 0.0:
                raise InvalidQuadError(
                    "Quad corners must form a convex, consistently wound polygon"
                )

    @property
    def material(self) -> "Material":
        """The material of the quad's surface."""
        return self._material

    @property
    def corners(self) -> tuple[Vec3, Vec3, Vec3, Vec3]:
        """The four corners in winding order."""
        return self.a, self.b, self.c, self.d

    def intersect(self, ray: Ray) -> Intersection | None:
        """Intersect a single ray with this quad.

        Runs the same kernel-side routine used for rendering, so Taichi
        must be initialized.

        Returns:
            The intersection in front of the ray origin, or None.
        """
        packed = _probe_quad(
            to_taichi_vec3(ray.origin),
            to_taichi_vec3(ray.direction),
            to_taichi_vec3(self.a),
            to_taichi_vec3(self.u),
            to_taichi_vec3(self.v),
            to_taichi_vec3(self.normal),
            to_taichi_vec3(self.side_b),
            self.limit_b,
            to_taichi_vec3(self.side_d),
            self.limit_d,
        )
        return unpack_hit(packed)

    def to_dict(self) -> dict[str, Any]:
        """Export the geometry as a JSON-friendly dictionary."""
        return {
            "type": self.kind,
            "a": self.a.tolist(),
            "b": self.b.tolist(),
            "c": self.c.tolist(),
            "d": self.d.tolist(),
        }

    def __repr__(self) -> str:
        return f"Quad(a={self.a.tolist()}, normal={self.normal.tolist()})"


# =============================================================================
# Ray-Quad Intersection (Taichi-compatible)
# =============================================================================


@ti.func
def hit_quad(origin: vec3, direction: vec3, quad: QuadFrame) -> HitRecord:
    """Test for ray-quad intersection.

    Writes the ray as s + t*d = A + p*U + q*V and solves for (p, q, t).
    Since U and V are unit vectors, p and q are in-plane distances from A.

    Args:
        origin: World-space ray origin s.
        direction: World-space ray direction d.
        quad: The quad's precomputed frame.

    Returns:
        A HitRecord with distance = t; material_id is left at -1.
    """
    system = ti.Matrix(
        [
            [quad.u[0], quad.v[0], -direction[0]],
            [quad.u[1], quad.v[1], -direction[1]],
            [quad.u[2], quad.v[2], -direction[2]],
        ]
    )
    inv, ok = inverse3(system)

    result = miss_record()

    if ok == 1:
        solution = inv @ (origin - quad.origin)
        p = solution[0]
        q = solution[1]
        t = solution[2]
        if p > 0.0 and q > 0.0 and t > 0.0:
            point = ray_at(origin, direction, t)
            local = point - quad.origin
            if tm.dot(quad.side_b, local) <= quad.limit_b and tm.dot(quad.side_d, local) <= quad.limit_d:
                result.hit = 1
                result.distance = t
                result.point = point
                result.normal = quad.normal

    return result


@ti.kernel
def _probe_quad(
    origin: vec3,
    direction: vec3,
    corner: vec3,
    u: vec3,
    v: vec3,
    normal: vec3,
    side_b: vec3,
    limit_b: ti.f64,
    side_d: vec3,
    limit_d: ti.f64,
) -> packed_hit:
    """Intersect one ray with one quad (used by Quad.intersect)."""
    frame = QuadFrame(
        origin=corner,
        u=u,
        v=v,
        normal=normal,
        side_b=side_b,
        limit_b=limit_b,
        side_d=side_d,
        limit_d=limit_d,
    )
    return pack_hit(hit_quad(origin, direction, frame))
