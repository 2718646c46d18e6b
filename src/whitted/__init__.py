"""Recursive Whitted-style ray tracer built on Taichi.

This package renders static scenes of spheres, ellipsoids and bounded
quads lit by point and directional lights, with Blinn-Phong shading,
jittered soft shadows and bounded mirror reflection. Rendering runs as
a double-precision Taichi kernel parallel over pixels.

Subpackages:
    core: Vector/matrix algebra, rays, jitter sampling, options, the
        integrator and the RayTracer engine
    geometry: Sphere/ellipsoid and quad primitives with intersection
    lighting: Materials, lights and Blinn-Phong shading
    scene: Scene tables, the Scene builder and the sample scene
    camera: Pinhole camera with eye-ray generation
    preview: 8-bit conversion and PNG export

Taichi must be initialized before importing modules that own Taichi
fields (scene.intersection, scene.manager, scene.sample_scene,
core.integrator, core.renderer):

    >>> from whitted.runtime import init_runtime
    >>> init_runtime(arch="cpu")
    >>> from whitted.core.renderer import RayTracer
"""

__version__ = "0.1.0"
