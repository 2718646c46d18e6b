"""Scene tables and closest-hit traversal for the render kernel.

The scene is stored in Taichi fields (Structure of Arrays layout):

- a shape table listing every shape in insertion order with its kind,
  its slot in the per-kind table and its material ID
- per-kind tables holding sphere transforms and quad frames
- a material table and a light table

Traversal is a linear scan of the shape table in insertion order that
keeps the strictly closest hit, so on an exact distance tie the shape
added first wins.

This module creates Taichi fields when imported, so it must be imported
after whitted.runtime.init_runtime().

Example:
    >>> init_runtime(arch="cpu")
    >>> from whitted.scene import intersection
    >>> intersection.clear_scene()
    >>> material_id = intersection.add_material(material)
    >>> intersection.add_sphere(sphere, material_id)
    >>> hit = intersection.closest_intersection(ray)
"""

import taichi as ti

from whitted.core.ray import (
    HitRecord,
    Intersection,
    Ray,
    miss_record,
    pack_hit,
    to_taichi_mat,
    to_taichi_vec3,
    unpack_hit,
    vec3,
)
from whitted.geometry.quad import Quad, QuadFrame, hit_quad
from whitted.geometry.sphere import Sphere, SphereFrame, hit_sphere
from whitted.lighting.lights import Light, LightRecord, light_record_values
from whitted.lighting.material import Material

# Shape kind tags stored in the shape table
SHAPE_SPHERE = 0
SHAPE_QUAD = 1

# Capacities of the scene tables
MAX_SHAPES = 2048
MAX_SPHERES = 1024
MAX_QUADS = 1024
MAX_MATERIALS = 256
MAX_LIGHTS = 64


@ti.dataclass
class MaterialRecord:
    """A material as seen by the render kernel."""

    ambient: vec3
    emission: vec3
    diffuse: vec3
    specular: vec3
    shininess: ti.f64


# Shape table: insertion order defines tie resolution
shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_slots = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_material_ids = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
num_shapes = ti.field(dtype=ti.i32, shape=())

# Sphere storage: transform, inverse and inverse transpose
sphere_transforms = ti.Matrix.field(4, 4, dtype=ti.f64, shape=MAX_SPHERES)
sphere_inverses = ti.Matrix.field(4, 4, dtype=ti.f64, shape=MAX_SPHERES)
sphere_inverse_transposes = ti.Matrix.field(4, 4, dtype=ti.f64, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Quad storage: corner A, in-plane basis, normal and boundary half-planes
quad_origins = ti.Vector.field(3, dtype=ti.f64, shape=MAX_QUADS)
quad_us = ti.Vector.field(3, dtype=ti.f64, shape=MAX_QUADS)
quad_vs = ti.Vector.field(3, dtype=ti.f64, shape=MAX_QUADS)
quad_normals = ti.Vector.field(3, dtype=ti.f64, shape=MAX_QUADS)
quad_sides_b = ti.Vector.field(3, dtype=ti.f64, shape=MAX_QUADS)
quad_limits_b = ti.field(dtype=ti.f64, shape=MAX_QUADS)
quad_sides_d = ti.Vector.field(3, dtype=ti.f64, shape=MAX_QUADS)
quad_limits_d = ti.field(dtype=ti.f64, shape=MAX_QUADS)
num_quads = ti.field(dtype=ti.i32, shape=())

# Material storage
material_ambients = ti.Vector.field(3, dtype=ti.f64, shape=MAX_MATERIALS)
material_emissions = ti.Vector.field(3, dtype=ti.f64, shape=MAX_MATERIALS)
material_diffuses = ti.Vector.field(3, dtype=ti.f64, shape=MAX_MATERIALS)
material_speculars = ti.Vector.field(3, dtype=ti.f64, shape=MAX_MATERIALS)
material_shininesses = ti.field(dtype=ti.f64, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())

# Light storage
light_kinds = ti.field(dtype=ti.i32, shape=MAX_LIGHTS)
light_colors = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LIGHTS)
light_vectors = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LIGHTS)
light_attenuations = ti.Vector.field(3, dtype=ti.f64, shape=MAX_LIGHTS)
num_lights = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Remove all shapes, materials and lights.

    Resets the table counts to zero. The actual field data is not cleared
    but will be overwritten when new entries are added.
    """
    num_shapes[None] = 0
    num_spheres[None] = 0
    num_quads[None] = 0
    num_materials[None] = 0
    num_lights[None] = 0


def add_material(material: Material) -> int:
    """Add a material to the material table.

    Returns:
        The material ID.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")
    material_ambients[idx] = vec3(*material.ambient)
    material_emissions[idx] = vec3(*material.emission)
    material_diffuses[idx] = vec3(*material.diffuse)
    material_speculars[idx] = vec3(*material.specular)
    material_shininesses[idx] = material.shininess
    num_materials[None] = idx + 1
    return idx


def _add_shape(kind: int, slot: int, material_id: int) -> int:
    idx = num_shapes[None]
    if idx >= MAX_SHAPES:
        raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")
    if material_id < 0 or material_id >= num_materials[None]:
        raise ValueError(f"Invalid material_id: {material_id}")
    shape_kinds[idx] = kind
    shape_slots[idx] = slot
    shape_material_ids[idx] = material_id
    num_shapes[None] = idx + 1
    return idx


def add_sphere(sphere: Sphere, material_id: int) -> int:
    """Add a sphere to the scene.

    Returns:
        The index of the shape in the shape table.

    Raises:
        RuntimeError: If the maximum number of spheres or shapes is exceeded.
        ValueError: If material_id is invalid.
    """
    slot = num_spheres[None]
    if slot >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    shape_index = _add_shape(SHAPE_SPHERE, slot, material_id)
    sphere_transforms[slot] = to_taichi_mat(sphere.transform)
    sphere_inverses[slot] = to_taichi_mat(sphere.inverse)
    sphere_inverse_transposes[slot] = to_taichi_mat(sphere.inverse_transpose)
    num_spheres[None] = slot + 1
    return shape_index


def add_quad(quad: Quad, material_id: int) -> int:
    """Add a quad to the scene.

    Returns:
        The index of the shape in the shape table.

    Raises:
        RuntimeError: If the maximum number of quads or shapes is exceeded.
        ValueError: If material_id is invalid.
    """
    slot = num_quads[None]
    if slot >= MAX_QUADS:
        raise RuntimeError(f"Maximum number of quads ({MAX_QUADS}) exceeded")
    shape_index = _add_shape(SHAPE_QUAD, slot, material_id)
    quad_origins[slot] = to_taichi_vec3(quad.a)
    quad_us[slot] = to_taichi_vec3(quad.u)
    quad_vs[slot] = to_taichi_vec3(quad.v)
    quad_normals[slot] = to_taichi_vec3(quad.normal)
    quad_sides_b[slot] = to_taichi_vec3(quad.side_b)
    quad_limits_b[slot] = quad.limit_b
    quad_sides_d[slot] = to_taichi_vec3(quad.side_d)
    quad_limits_d[slot] = quad.limit_d
    num_quads[None] = slot + 1
    return shape_index


def add_light(light: Light) -> int:
    """Add a light to the light table.

    Returns:
        The index of the light.

    Raises:
        RuntimeError: If the maximum number of lights is exceeded.
    """
    idx = num_lights[None]
    if idx >= MAX_LIGHTS:
        raise RuntimeError(f"Maximum number of lights ({MAX_LIGHTS}) exceeded")
    kind, color, vector, attenuation = light_record_values(light)
    light_kinds[idx] = kind
    light_colors[idx] = to_taichi_vec3(color)
    light_vectors[idx] = to_taichi_vec3(vector)
    light_attenuations[idx] = to_taichi_vec3(attenuation)
    num_lights[None] = idx + 1
    return idx


def get_shape_count() -> int:
    """Get the number of shapes in the scene."""
    return int(num_shapes[None])


def get_light_count() -> int:
    """Get the number of lights in the scene."""
    return int(num_lights[None])


def get_material_count() -> int:
    """Get the number of materials in the scene."""
    return int(num_materials[None])


# =============================================================================
# Kernel-side Table Access (Taichi-compatible)
# =============================================================================


@ti.func
def get_material(material_id: ti.i32) -> MaterialRecord:
    """Look up a material by ID."""
    return MaterialRecord(
        ambient=material_ambients[material_id],
        emission=material_emissions[material_id],
        diffuse=material_diffuses[material_id],
        specular=material_speculars[material_id],
        shininess=material_shininesses[material_id],
    )


@ti.func
def get_light(index: ti.i32) -> LightRecord:
    """Look up a light by index."""
    return LightRecord(
        kind=light_kinds[index],
        color=light_colors[index],
        vector=light_vectors[index],
        attenuation=light_attenuations[index],
    )


@ti.func
def _hit_shape(origin: vec3, direction: vec3, index: ti.i32) -> HitRecord:
    slot = shape_slots[index]
    rec = miss_record()
    if shape_kinds[index] == SHAPE_SPHERE:
        frame = SphereFrame(
            transform=sphere_transforms[slot],
            inverse=sphere_inverses[slot],
            inverse_transpose=sphere_inverse_transposes[slot],
        )
        rec = hit_sphere(origin, direction, frame)
    else:
        frame = QuadFrame(
            origin=quad_origins[slot],
            u=quad_us[slot],
            v=quad_vs[slot],
            normal=quad_normals[slot],
            side_b=quad_sides_b[slot],
            limit_b=quad_limits_b[slot],
            side_d=quad_sides_d[slot],
            limit_d=quad_limits_d[slot],
        )
        rec = hit_quad(origin, direction, frame)
    return rec


@ti.func
def intersect_scene(origin: vec3, direction: vec3) -> HitRecord:
    """Closest intersection of a ray with every shape in the scene.

    Shapes are tested in insertion order and a later hit replaces the
    current one only when it is strictly closer.

    Args:
        origin: The starting point of the ray.
        direction: The direction of the ray.

    Returns:
        The closest HitRecord with its material_id set, or a miss record.
    """
    result = miss_record()
    for i in range(num_shapes[None]):
        rec = _hit_shape(origin, direction, i)
        if rec.hit == 1 and (result.hit == 0 or rec.distance < result.distance):
            result = rec
            result.material_id = shape_material_ids[i]
    return result


# Result slot of single-ray scene probes
_probe_result = ti.Vector.field(8, dtype=ti.f64, shape=())


@ti.kernel
def _probe_scene(origin: vec3, direction: vec3):
    # Keeps the shape scan inside a one-iteration outer loop so it runs serially
    for _ in range(1):
        _probe_result[None] = pack_hit(intersect_scene(origin, direction))


def closest_intersection(ray: Ray) -> Intersection | None:
    """Closest intersection of a single ray with the uploaded scene."""
    _probe_scene(to_taichi_vec3(ray.origin), to_taichi_vec3(ray.direction))
    return unpack_hit(_probe_result[None])
