"""Tests for the recursive integrator kernels.

This module drives the integrator directly (without RayTracer):
- Kernel-side settings from RenderOptions and CameraBasis
- Single-ray tracing against the uploaded scene
- Whole-image rendering into a NumPy buffer
- Numerical sanity of a stochastic render

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np

from whitted.camera.pinhole import Camera
from whitted.core.options import RenderOptions
from whitted.core.ray import Ray


def _upload_lit_sphere(material):
    from whitted.scene.manager import Scene

    scene = Scene()
    scene.add_sphere(material)
    scene.add_directional_light(color=(1.0, 1.0, 1.0), direction=(0.0, 0.0, 1.0))
    scene.upload()


class TestSettings:
    """Test copying settings into the kernel-side fields."""

    def test_configure_options(self):
        """Test that every option reaches its field."""
        from whitted.core import integrator

        integrator.configure_options(
            RenderOptions(
                max_depth=3,
                num_shadow_rays=5,
                primary_reflection_rays=2,
                shadow_jitter=0.5,
                reflection_jitter=0.01,
                ray_epsilon=0.002,
            )
        )
        assert integrator._max_depth[None] == 3
        assert integrator._num_shadow_rays[None] == 5
        assert integrator._primary_reflection_rays[None] == 2
        assert integrator._shadow_jitter[None] == 0.5
        assert integrator._reflection_jitter[None] == 0.01
        assert integrator._ray_epsilon[None] == 0.002

    def test_configure_camera(self):
        """Test that the camera basis reaches its fields."""
        from whitted.core import integrator

        basis = Camera((0, 0, 5), (0, 0, 0), (0, 1, 0), 20, 10, 60.0).basis()
        integrator.configure_camera(basis)
        np.testing.assert_array_equal(integrator._camera_eye[None].to_numpy(), [0.0, 0.0, 5.0])
        np.testing.assert_allclose(integrator._camera_w[None].to_numpy(), basis.w)
        assert integrator._camera_half_width[None] == 10.0
        assert integrator._camera_tan_x[None] == basis.tan_x


class TestTraceRay:
    """Test single-ray tracing."""

    def test_apex_color(self, red_material):
        """Test the lit apex of a unit sphere."""
        from whitted.core import integrator

        _upload_lit_sphere(red_material)
        integrator.configure_options(RenderOptions(max_depth=0, shadow_jitter=0.0))

        color = integrator.trace_ray(Ray.create((0, 0, 5), (0, 0, -1)))
        np.testing.assert_allclose(color, [0.8, 0.55, 0.3], atol=1e-12)

    def test_direction_is_normalized(self, red_material):
        """Test that a long direction vector gives the same color."""
        from whitted.core import integrator

        _upload_lit_sphere(red_material)
        integrator.configure_options(RenderOptions(max_depth=0, shadow_jitter=0.0))

        short = integrator.trace_ray(Ray.create((0, 0, 5), (0, 0, -1)))
        long = integrator.trace_ray(Ray.create((0, 0, 5), (0, 0, -40)))
        np.testing.assert_allclose(short, long, atol=1e-12)

    def test_same_seed_same_color(self, red_material):
        """Test that jittered single-ray traces are reproducible."""
        from whitted.core import integrator

        _upload_lit_sphere(red_material)
        integrator.configure_options(RenderOptions(max_depth=0, num_shadow_rays=4, shadow_jitter=2.0))

        ray = Ray.create((0.3, 0.2, 5), (0, 0, -1))
        first = integrator.trace_ray(ray, seed=17)
        second = integrator.trace_ray(ray, seed=17)
        np.testing.assert_array_equal(first, second)


class TestRenderInto:
    """Test whole-image rendering."""

    def _render(self, material, options, width=16, height=12):
        from whitted.core import integrator

        _upload_lit_sphere(material)
        integrator.configure_options(options)
        integrator.configure_camera(Camera((0, 0, 5), (0, 0, 0), (0, 1, 0), width, height, 30.0).basis())
        buffer = np.full((height, width, 3), -1.0)
        integrator.render_into(buffer, seed=options.seed)
        return buffer

    def test_every_pixel_is_written(self, red_material):
        """Test that the whole buffer is overwritten."""
        buffer = self._render(red_material, RenderOptions(max_depth=0))
        assert np.all(buffer >= 0.0)

    def test_no_nan_or_inf(self, red_material):
        """Test numerical sanity with jitter and reflections enabled."""
        buffer = self._render(red_material, RenderOptions(max_depth=3, num_shadow_rays=3, shadow_jitter=0.5))
        assert np.all(np.isfinite(buffer))

    def test_left_right_symmetry(self, red_material):
        """Test mirror symmetry of an unjittered image of a centered sphere."""
        buffer = self._render(
            red_material,
            RenderOptions(max_depth=0, shadow_jitter=0.0, reflection_jitter=0.0),
            width=16,
            height=16,
        )
        # Column j mirrors column 16 - j about the center column 8
        np.testing.assert_allclose(buffer[:, 1:8], buffer[:, 15:8:-1], atol=1e-12)
