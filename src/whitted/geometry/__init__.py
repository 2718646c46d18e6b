"""Geometry module for shape primitives.

Components:
    sphere: Sphere/ellipsoid primitive intersected in unit-sphere space
    quad: Bounded planar quad intersected by a basis-change solve

All intersection routines are implemented as Taichi functions (@ti.func)
and exposed to Python through each shape's intersect() method.
"""

from .quad import Quad, QuadFrame, hit_quad
from .sphere import Sphere, SphereFrame, hit_sphere, sphere_transform

__all__ = [
    "Sphere",
    "SphereFrame",
    "hit_sphere",
    "sphere_transform",
    "Quad",
    "QuadFrame",
    "hit_quad",
]
