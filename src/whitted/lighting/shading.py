"""Blinn-Phong local illumination.

For a unit direction to the light l, surface normal n and incoming ray
direction r, the contribution of one light is

    h = normalize(l - r)
    diffuse  = max(0, n . l) * material.diffuse
    specular = max(0, n . h)^shininess * material.specular
    result   = light_color * (diffuse + specular) / attenuation

When n . l <= 0 the surface faces away from the light and both terms are
zero. Ambient and emission are not part of this function; the integrator
adds them once per intersection.

Example:
    >>> color = shade(lamp, light_dir, normal, ray_direction, material, distance)
"""

import taichi as ti
import taichi.math as tm

from whitted.core import algebra
from whitted.core.algebra import Vec3
from whitted.core.ray import to_taichi_vec3, vec3
from whitted.lighting.lights import Light
from whitted.lighting.material import Material


@ti.func
def blinn_phong(
    light_color: vec3,
    attenuation: ti.f64,
    light_dir: vec3,
    normal: vec3,
    ray_direction: vec3,
    diffuse: vec3,
    specular: vec3,
    shininess: ti.f64,
) -> vec3:
    """Blinn-Phong contribution of a single light.

    Args:
        light_color: Light intensity (RGB).
        attenuation: Divisor from the light's attenuation model. A
            non-positive value yields no contribution.
        light_dir: Unit direction from the surface toward the light.
        normal: Unit surface normal.
        ray_direction: Unit direction of the ray that hit the surface.
        diffuse: Material diffuse reflectance.
        specular: Material specular reflectance.
        shininess: Material specular exponent.

    Returns:
        The reflected color, zero when the surface faces away.
    """
    result = vec3(0.0, 0.0, 0.0)
    n_dot_l = tm.dot(normal, light_dir)

    if n_dot_l > 0.0 and attenuation > 0.0:
        color = n_dot_l * diffuse

        half_vector = light_dir - ray_direction
        half_length = tm.length(half_vector)
        if half_length > 0.0:
            n_dot_h = tm.dot(normal, half_vector / half_length)
            if n_dot_h > 0.0:
                color += ti.pow(n_dot_h, shininess) * specular

        result = light_color * color / attenuation

    return result


@ti.kernel
def _probe_shade(
    light_color: vec3,
    attenuation: ti.f64,
    light_dir: vec3,
    normal: vec3,
    ray_direction: vec3,
    diffuse: vec3,
    specular: vec3,
    shininess: ti.f64,
) -> vec3:
    return blinn_phong(
        light_color, attenuation, light_dir, normal, ray_direction, diffuse, specular, shininess
    )


def shade(
    light: Light,
    light_dir,
    normal,
    ray_direction,
    material: Material,
    distance: float,
) -> Vec3:
    """Evaluate the Blinn-Phong contribution of one light from Python.

    Runs the same kernel-side function used for rendering, so Taichi must
    be initialized.

    Args:
        light: The light source.
        light_dir: Unit direction from the surface toward the light.
        normal: Unit surface normal.
        ray_direction: Unit direction of the incoming ray.
        material: Surface material.
        distance: Distance to the light, fed to its attenuation model.

    Returns:
        The reflected color (RGB), without ambient or emission.
    """
    result = _probe_shade(
        to_taichi_vec3(algebra.as_vec3(light.color)),
        float(light.attenuation_at(distance)),
        to_taichi_vec3(algebra.as_vec3(light_dir)),
        to_taichi_vec3(algebra.as_vec3(normal)),
        to_taichi_vec3(algebra.as_vec3(ray_direction)),
        to_taichi_vec3(algebra.as_vec3(material.diffuse)),
        to_taichi_vec3(algebra.as_vec3(material.specular)),
        float(material.shininess),
    )
    return algebra.vec3(result[0], result[1], result[2])
