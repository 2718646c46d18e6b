"""Lighting module: materials, light sources and Blinn-Phong shading.

Components:
    material: Immutable Blinn-Phong Material
    lights: PointLight and DirectionalLight with kernel-side evaluation
    shading: Blinn-Phong contribution of a single light
"""

from .lights import DirectionalLight, Light, PointLight, light_from_dict
from .material import Material
from .shading import blinn_phong, shade

__all__ = [
    "Material",
    "PointLight",
    "DirectionalLight",
    "Light",
    "light_from_dict",
    "blinn_phong",
    "shade",
]
