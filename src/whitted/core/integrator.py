"""Whitted-style recursive ray tracing integrator.

For a ray at recursion depth k the color is resolved as:

1. Find the closest intersection; a miss is black.
2. Start from the material's ambient + emission.
3. For every light, cast num_shadow_rays jittered shadow probes toward
   it. Each unblocked probe adds 1/num_shadow_rays of the Blinn-Phong
   contribution.
4. While k < max_depth, follow the mirror reflection: at depth 0 the
   reflection is sampled with primary_reflection_rays jittered rays,
   deeper hits use a single ray. Each reflected color is weighted by the
   material's specular color.

Taichi functions cannot recurse, so step 4 is realized iteratively:
depth 0 fans out into reflection branches and each branch is a chain of
single reflections carrying a throughput weight (the product of the
specular colors along the chain). Depth strictly increases along a
chain, so tracing always terminates after at most max_depth bounces.

Rendering is a single kernel parallel over pixels. Each pixel draws its
jitter from its own counter-based generator (see whitted.core.sampler),
so the image depends only on the scene, the camera and the seed.

This module creates Taichi fields when imported, so it must be imported
after whitted.runtime.init_runtime().

Example:
    >>> configure_camera(camera.basis())
    >>> configure_options(RenderOptions(max_depth=2))
    >>> buffer = np.zeros((camera.height, camera.width, 3))
    >>> render_into(buffer, seed=0)
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from whitted.camera.pinhole import CameraBasis, eye_ray_direction
from whitted.core import algebra
from whitted.core.algebra import Vec3
from whitted.core.options import RenderOptions
from whitted.core.ray import HitRecord, Ray, reflect, to_taichi_vec3, vec3
from whitted.core.sampler import centered_random, pixel_state, random_jitter
from whitted.lighting.lights import (
    light_attenuation,
    light_occlusion_distance,
    light_offset,
)
from whitted.lighting.shading import blinn_phong
from whitted.scene.intersection import (
    MaterialRecord,
    get_light,
    get_material,
    intersect_scene,
    num_lights,
)

# =============================================================================
# Render Settings
# =============================================================================

_max_depth = ti.field(dtype=ti.i32, shape=())
_num_shadow_rays = ti.field(dtype=ti.i32, shape=())
_primary_reflection_rays = ti.field(dtype=ti.i32, shape=())
_shadow_jitter = ti.field(dtype=ti.f64, shape=())
_reflection_jitter = ti.field(dtype=ti.f64, shape=())
_ray_epsilon = ti.field(dtype=ti.f64, shape=())


def configure_options(options: RenderOptions) -> None:
    """Copy engine options into the kernel-side settings."""
    _max_depth[None] = options.max_depth
    _num_shadow_rays[None] = options.num_shadow_rays
    _primary_reflection_rays[None] = options.primary_reflection_rays
    _shadow_jitter[None] = options.shadow_jitter
    _reflection_jitter[None] = options.reflection_jitter
    _ray_epsilon[None] = options.ray_epsilon


# =============================================================================
# Camera Settings
# =============================================================================

_camera_eye = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_u = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_v = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_w = ti.Vector.field(3, dtype=ti.f64, shape=())
_camera_half_width = ti.field(dtype=ti.f64, shape=())
_camera_half_height = ti.field(dtype=ti.f64, shape=())
_camera_tan_x = ti.field(dtype=ti.f64, shape=())
_camera_tan_y = ti.field(dtype=ti.f64, shape=())


def configure_camera(basis: CameraBasis) -> None:
    """Copy a camera basis into the kernel-side settings."""
    _camera_eye[None] = to_taichi_vec3(basis.eye)
    _camera_u[None] = to_taichi_vec3(basis.u)
    _camera_v[None] = to_taichi_vec3(basis.v)
    _camera_w[None] = to_taichi_vec3(basis.w)
    _camera_half_width[None] = basis.half_width
    _camera_half_height[None] = basis.half_height
    _camera_tan_x[None] = basis.tan_x
    _camera_tan_y[None] = basis.tan_y


# =============================================================================
# Shading
# =============================================================================


@ti.func
def _direct_light(point: vec3, normal: vec3, direction: vec3, material: MaterialRecord, state: ti.u32):
    """Sum of the soft-shadowed Blinn-Phong contributions of every light.

    Returns:
        A tuple (color, new_state).
    """
    s = state
    color = vec3(0.0, 0.0, 0.0)
    n_probes = _num_shadow_rays[None]
    weight = 1.0 / ti.cast(n_probes, ti.f64)
    epsilon = _ray_epsilon[None]

    for light_index in range(num_lights[None]):
        light = get_light(light_index)
        offset = light_offset(light, point)
        distance = tm.length(offset)
        occlusion = light_occlusion_distance(light, offset)
        attenuation = light_attenuation(light, distance)

        for _ in range(n_probes):
            s, jitter = random_jitter(s, _shadow_jitter[None])
            probe = offset + jitter
            probe_length = tm.length(probe)
            if probe_length > 0.0:
                light_dir = probe / probe_length
                shadow = intersect_scene(point + epsilon * light_dir, light_dir)
                if shadow.hit == 0 or shadow.distance >= occlusion:
                    color += weight * blinn_phong(
                        light.color,
                        attenuation,
                        light_dir,
                        normal,
                        direction,
                        material.diffuse,
                        material.specular,
                        material.shininess,
                    )

    return color, s


@ti.func
def _local_color(hit: HitRecord, direction: vec3, state: ti.u32):
    """Ambient + emission + direct lighting at an intersection.

    Returns:
        A tuple (color, new_state).
    """
    material = get_material(hit.material_id)
    direct, s = _direct_light(hit.point, hit.normal, direction, material, state)
    return material.ambient + material.emission + direct, s


@ti.func
def _reflection_ray(point: vec3, normal: vec3, reflected: vec3, state: ti.u32):
    """Jittered reflection ray leaving an intersection.

    The direction is the mirror direction nudged along the normal by a
    uniform amount in [-reflection_jitter / 2, reflection_jitter / 2), then
    renormalized. The origin is pushed off the surface along the mirror
    direction.

    Returns:
        A tuple (origin, direction, new_state).
    """
    s, r = centered_random(state, _reflection_jitter[None])
    direction = tm.normalize(reflected + r * normal)
    origin = point + _ray_epsilon[None] * reflected
    return origin, direction, s


# =============================================================================
# Ray Tracing Core
# =============================================================================


@ti.func
def _trace_chain(origin: vec3, direction: vec3, depth: ti.i32, state: ti.u32):
    """Color of a ray at depth >= 1, following single reflections.

    Equivalent to the recursion color(k) = local(k) + specular * color(k + 1)
    for k < max_depth, unrolled into a loop with a throughput weight.

    Returns:
        A tuple (color, new_state).
    """
    s = state
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    level = depth
    max_depth = _max_depth[None]

    # Active flag for chain continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(ti.max(1, max_depth - depth + 1)):
        if active == 1:
            hit = intersect_scene(ray_origin, ray_direction)
            if hit.hit == 0:
                active = 0
            else:
                local, s = _local_color(hit, ray_direction, s)
                radiance += throughput * local

                if level < max_depth:
                    material = get_material(hit.material_id)
                    reflected = reflect(ray_direction, hit.normal)
                    next_origin, next_direction, s = _reflection_ray(
                        hit.point, hit.normal, reflected, s
                    )
                    throughput *= material.specular
                    ray_origin = next_origin
                    ray_direction = next_direction
                    level += 1
                else:
                    active = 0

    return radiance, s


@ti.func
def trace(origin: vec3, direction: vec3, depth: ti.i32, state: ti.u32):
    """Resolve the color of a ray at the given recursion depth.

    Args:
        origin: Ray origin.
        direction: Unit ray direction.
        depth: Recursion depth of the ray; primary rays have depth 0.
        state: Jitter generator state.

    Returns:
        A tuple (color, new_state). The color is not clamped.
    """
    s = state
    color = vec3(0.0, 0.0, 0.0)
    hit = intersect_scene(origin, direction)

    if hit.hit == 1:
        local, s = _local_color(hit, direction, s)
        color = local

        if depth < _max_depth[None]:
            material = get_material(hit.material_id)
            reflected = reflect(direction, hit.normal)
            n_rays = 1
            if depth == 0:
                n_rays = _primary_reflection_rays[None]
            weight = 1.0 / ti.cast(n_rays, ti.f64)

            for _ in range(n_rays):
                ray_origin, ray_direction, s = _reflection_ray(hit.point, hit.normal, reflected, s)
                bounce, s = _trace_chain(ray_origin, ray_direction, depth + 1, s)
                color += weight * material.specular * bounce

    return color, s


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_kernel(buffer: ti.types.ndarray(), width: ti.i32, height: ti.i32, seed: ti.i32):
    """Trace one eye ray per pixel into a (height, width, 3) buffer."""
    for i, j in ti.ndrange(height, width):
        state = pixel_state(seed, i * width + j)
        direction = eye_ray_direction(
            ti.cast(i, ti.f64),
            ti.cast(j, ti.f64),
            _camera_u[None],
            _camera_v[None],
            _camera_w[None],
            _camera_half_width[None],
            _camera_half_height[None],
            _camera_tan_x[None],
            _camera_tan_y[None],
        )
        color, state = trace(_camera_eye[None], direction, 0, state)
        for c in ti.static(range(3)):
            buffer[i, j, c] = color[c]


# Result slot of single-ray traces
_single_result = ti.Vector.field(3, dtype=ti.f64, shape=())


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, depth: ti.i32, seed: ti.i32):
    # One-iteration outer loop keeps the shape scans serial
    for _ in range(1):
        color, _state = trace(origin, direction, depth, pixel_state(seed, 0))
        _single_result[None] = color


# =============================================================================
# Public Rendering API
# =============================================================================


def render_into(buffer: np.ndarray, seed: int = 0) -> None:
    """Render the configured camera view of the uploaded scene.

    Args:
        buffer: Float64 array of shape (height, width, 3), overwritten
            with unclamped colors, row 0 at the top.
        seed: Jitter generator seed.
    """
    height, width = buffer.shape[:2]
    _render_kernel(buffer, width, height, seed)


def trace_ray(ray: Ray, depth: int = 0, seed: int = 0) -> Vec3:
    """Resolve the color of a single ray against the uploaded scene.

    The ray direction is normalized first.
    """
    unit = ray.normalized()
    _trace_single_ray(to_taichi_vec3(unit.origin), to_taichi_vec3(unit.direction), depth, seed)
    color = _single_result[None]
    return algebra.vec3(color[0], color[1], color[2])
