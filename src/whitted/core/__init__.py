"""Core rendering module.

Components:
    algebra: Immutable double-precision vector/matrix algebra (NumPy)
    ray: Ray and Intersection types, Taichi types and in-kernel helpers
    sampler: Counter-based jitter generator for kernels
    options: RenderOptions engine configuration
    integrator: Recursive color resolution and render kernels
    renderer: RayTracer engine object
"""

from .options import RenderOptions
from .ray import HitRecord, Intersection, Ray

# Note: integrator and renderer are NOT imported here because they create
# Taichi fields at import time. Import them after whitted.runtime.init_runtime():
#   from whitted.core.renderer import RayTracer

__all__ = [
    "Ray",
    "Intersection",
    "HitRecord",
    "RenderOptions",
]
