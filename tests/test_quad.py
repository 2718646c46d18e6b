"""Unit tests for quad construction and intersection.

Tests cover:
- Frame derivation (U, V, normal)
- Rejection of degenerate, non-coplanar and non-convex corners
- Rays hitting the interior from either side
- Rays missing outside the bounds, behind the origin, or parallel to the plane
- Non-rectangular convex quads
"""

import math

import numpy as np
import pytest

from whitted.core.ray import Ray
from whitted.errors import InvalidQuadError, NonCoplanarQuadError
from whitted.geometry.quad import Quad

# Unit square in the z = 0 plane, normal +Z
SQUARE = ((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0))

# Floor of the sample scene, normal +Y
FLOOR = ((-3.0, -4.0, 0.0), (4.0, -4.0, 0.0), (4.0, -4.0, -4.0), (-3.0, -4.0, -4.0))


def _square(material) -> Quad:
    return Quad(material, *SQUARE)


class TestQuadConstruction:
    """Tests for the quad frame and validation."""

    def test_frame(self, red_material):
        """Test U, V and the normal of the unit square."""
        quad = _square(red_material)
        np.testing.assert_array_equal(quad.u, [1.0, 0.0, 0.0])
        np.testing.assert_array_equal(quad.v, [0.0, 1.0, 0.0])
        np.testing.assert_array_equal(quad.normal, [0.0, 0.0, 1.0])

    def test_floor_normal_points_up(self, red_material):
        """Test the floor winding gives an upward normal."""
        quad = Quad(red_material, *FLOOR)
        np.testing.assert_allclose(quad.normal, [0.0, 1.0, 0.0], atol=1e-12)

    def test_corners_and_material(self, red_material):
        """Test the stored corners and shared material."""
        quad = _square(red_material)
        assert quad.material is red_material
        for corner, expected in zip(quad.corners, SQUARE):
            np.testing.assert_array_equal(corner, expected)

    def test_non_coplanar_raises(self, red_material):
        """Test that lifting C off the plane is rejected."""
        with pytest.raises(NonCoplanarQuadError):
            Quad(red_material, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.5), (0.0, 1.0, 0.0))

    def test_non_coplanar_is_invalid_quad(self):
        """Test that the non-coplanar error is a kind of invalid quad."""
        assert issubclass(NonCoplanarQuadError, InvalidQuadError)
        assert issubclass(InvalidQuadError, ValueError)

    def test_tiny_rounding_is_tolerated(self, red_material):
        """Test that C within the relative tolerance is accepted."""
        Quad(red_material, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 1e-12), (0.0, 1.0, 0.0))

    def test_non_convex_raises(self, red_material):
        """Test that a dart-shaped quad is rejected."""
        with pytest.raises(InvalidQuadError):
            Quad(red_material, (0.0, 0.0, 0.0), (2.0, 0.0, 0.0), (0.5, 0.5, 0.0), (0.0, 2.0, 0.0))

    def test_self_intersecting_raises(self, red_material):
        """Test that a bow-tie ordering is rejected."""
        with pytest.raises(InvalidQuadError):
            Quad(red_material, (0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (1.0, 1.0, 0.0))

    def test_coincident_corners_raise(self, red_material):
        """Test that A == B is rejected."""
        with pytest.raises(InvalidQuadError):
            Quad(red_material, (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0))

    def test_to_dict(self, red_material):
        """Test the geometry dictionary."""
        data = _square(red_material).to_dict()
        assert data["type"] == "quad"
        assert data["c"] == [1.0, 1.0, 0.0]


class TestQuadIntersection:
    """Tests for ray-quad intersection."""

    def test_interior_hit_from_front(self, red_material):
        """Test a ray straight down onto the center."""
        hit = _square(red_material).intersect(Ray.create((0.5, 0.5, 3.0), (0.0, 0.0, -1.0)))
        assert hit is not None
        np.testing.assert_allclose(hit.point, [0.5, 0.5, 0.0], atol=1e-12)
        np.testing.assert_array_equal(hit.normal, [0.0, 0.0, 1.0])
        assert math.isclose(hit.distance, 3.0)

    def test_hit_from_back_keeps_plane_normal(self, red_material):
        """Test that the normal is not flipped for rays from behind."""
        hit = _square(red_material).intersect(Ray.create((0.25, 0.75, -2.0), (0.0, 0.0, 1.0)))
        assert hit is not None
        np.testing.assert_allclose(hit.point, [0.25, 0.75, 0.0], atol=1e-12)
        np.testing.assert_array_equal(hit.normal, [0.0, 0.0, 1.0])

    def test_distance_is_ray_parameter(self, red_material):
        """Test that the reported distance is t for the given direction."""
        hit = _square(red_material).intersect(Ray.create((0.5, 0.5, 3.0), (0.0, 0.0, -2.0)))
        assert hit is not None
        assert math.isclose(hit.distance, 1.5)

    def test_oblique_hit(self, red_material):
        """Test a slanted ray landing inside the square."""
        direction = np.array([0.2, 0.1, -1.0])
        hit = _square(red_material).intersect(Ray.create((0.3, 0.3, 1.0), direction))
        assert hit is not None
        np.testing.assert_allclose(hit.point, [0.5, 0.4, 0.0], atol=1e-12)

    @pytest.mark.parametrize(
        "origin",
        [(1.5, 0.5, 1.0), (-0.5, 0.5, 1.0), (0.5, 1.5, 1.0), (0.5, -0.5, 1.0), (2.0, 2.0, 1.0)],
    )
    def test_outside_bounds_misses(self, red_material, origin):
        """Test rays landing on the plane outside each edge."""
        assert _square(red_material).intersect(Ray.create(origin, (0.0, 0.0, -1.0))) is None

    def test_quad_behind_ray_misses(self, red_material):
        """Test that t <= 0 is not a hit."""
        assert _square(red_material).intersect(Ray.create((0.5, 0.5, 1.0), (0.0, 0.0, 1.0))) is None

    def test_in_plane_ray_misses(self, red_material):
        """Test that a ray parallel to the plane is a miss, not an error."""
        ray = Ray.create((-1.0, 0.5, 0.0), (1.0, 0.0, 0.0))
        assert _square(red_material).intersect(ray) is None

    def test_parallel_offset_ray_misses(self, red_material):
        """Test a ray parallel to and above the plane."""
        ray = Ray.create((-1.0, 0.5, 1.0), (1.0, 0.0, 0.0))
        assert _square(red_material).intersect(ray) is None

    def test_floor_hit(self, red_material):
        """Test a ray from above landing on the sample floor."""
        quad = Quad(red_material, *FLOOR)
        hit = quad.intersect(Ray.create((0.0, 2.0, -2.0), (0.0, -1.0, 0.0)))
        assert hit is not None
        np.testing.assert_allclose(hit.point, [0.0, -4.0, -2.0], atol=1e-12)
        np.testing.assert_allclose(hit.normal, [0.0, 1.0, 0.0], atol=1e-12)
        assert math.isclose(hit.distance, 6.0)


class TestTrapezoidIntersection:
    """Tests for a convex quad whose far edges are not parallel to U and V."""

    TRAPEZOID = ((0.0, 0.0, 0.0), (4.0, 0.0, 0.0), (3.0, 2.0, 0.0), (1.0, 2.0, 0.0))

    def test_inside_hits(self, red_material):
        """Test a point well inside the trapezoid."""
        quad = Quad(red_material, *self.TRAPEZOID)
        assert quad.intersect(Ray.create((2.0, 1.0, 1.0), (0.0, 0.0, -1.0))) is not None

    def test_outside_slanted_edge_misses(self, red_material):
        """Test a point beyond edge B->C but inside the U bound."""
        quad = Quad(red_material, *self.TRAPEZOID)
        assert quad.intersect(Ray.create((3.8, 1.5, 1.0), (0.0, 0.0, -1.0))) is None

    def test_outside_top_edge_misses(self, red_material):
        """Test a point above edge C->D."""
        quad = Quad(red_material, *self.TRAPEZOID)
        assert quad.intersect(Ray.create((2.0, 2.5, 1.0), (0.0, 0.0, -1.0))) is None
