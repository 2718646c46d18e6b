"""Point and directional light sources.

Each light exposes the same small capability set, on the Python side as
methods and inside kernels as @ti.func helpers over a LightRecord:

- offset_from(point): un-normalized vector from the point toward the
  light. For a point light its magnitude is the distance to the light.
- attenuation_at(distance): scalar divisor applied to the light color.
- occlusion distance: hits closer than this along a shadow probe block
  the light. It is the magnitude of the offset for both kinds, so a
  directional light is treated as sitting |direction| away.

Lights are immutable value objects; the scene uploads them into the
light table read by the render kernel.

Example:
    >>> lamp = PointLight(color=(0.2, 0.4, 0.2), position=(0.0, 5.0, 3.0))
    >>> lamp.offset_from((0.0, 0.0, 3.0))
    array([0., 5., 0.])
"""

from dataclasses import dataclass
from typing import Any

import taichi as ti
import taichi.math as tm

from whitted.core import algebra
from whitted.core.algebra import Vec3
from whitted.core.ray import vec3

# Light kind tags stored in the light table
LIGHT_POINT = 0
LIGHT_DIRECTIONAL = 1


def _triple(name: str, values) -> tuple[float, float, float]:
    triple = tuple(float(x) for x in values)
    if len(triple) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(triple)}")
    return triple


# =============================================================================
# Light Data Structures
# =============================================================================


@dataclass(frozen=True)
class PointLight:
    """A light radiating from a single position.

    Attributes:
        color: Light intensity (RGB).
        position: World-space position of the light.
        attenuation: Coefficients (a, b, c) of a + b*d + c*d^2.
    """

    color: tuple[float, float, float]
    position: tuple[float, float, float]
    attenuation: tuple[float, float, float] = (1.0, 0.0, 0.0)

    kind = "point"
    tag = LIGHT_POINT

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", _triple("color", self.color))
        object.__setattr__(self, "position", _triple("position", self.position))
        object.__setattr__(self, "attenuation", _triple("attenuation", self.attenuation))
        if any(k < 0.0 for k in self.attenuation):
            raise ValueError(f"Attenuation coefficients must be >= 0, got {self.attenuation}")
        if not any(k > 0.0 for k in self.attenuation):
            raise ValueError("At least one attenuation coefficient must be positive")

    def offset_from(self, point) -> Vec3:
        """Vector from point to the light position (not normalized)."""
        return algebra.subtract(algebra.as_vec3(self.position), algebra.as_vec3(point))

    def attenuation_at(self, distance: float) -> float:
        """a + b*distance + c*distance^2."""
        a, b, c = self.attenuation
        return a + b * distance + c * distance * distance

    def occlusion_distance(self, offset) -> float:
        """Hits closer than the light itself block it."""
        return algebra.magnitude(algebra.as_vec3(offset))

    def to_dict(self) -> dict[str, Any]:
        """Export the light as a JSON-friendly dictionary."""
        return {
            "type": self.kind,
            "color": list(self.color),
            "position": list(self.position),
            "attenuation": list(self.attenuation),
        }


@dataclass(frozen=True)
class DirectionalLight:
    """A light shining from a constant direction with no falloff.

    Attributes:
        color: Light intensity (RGB).
        direction: Direction from the scene toward the light. Need not be
            unit length but must be non-zero. Its length is the distance
            beyond which hits no longer shadow the light.
    """

    color: tuple[float, float, float]
    direction: tuple[float, float, float]

    kind = "directional"
    tag = LIGHT_DIRECTIONAL

    def __post_init__(self) -> None:
        object.__setattr__(self, "color", _triple("color", self.color))
        object.__setattr__(self, "direction", _triple("direction", self.direction))
        if not any(self.direction):
            raise ValueError("Directional light direction must be non-zero")

    def offset_from(self, point) -> Vec3:
        """The constant direction toward the light."""
        return algebra.as_vec3(self.direction)

    def attenuation_at(self, distance: float) -> float:
        """Directional lights do not attenuate."""
        return 1.0

    def occlusion_distance(self, offset) -> float:
        """Magnitude of the constant offset."""
        return algebra.magnitude(algebra.as_vec3(offset))

    def to_dict(self) -> dict[str, Any]:
        """Export the light as a JSON-friendly dictionary."""
        return {
            "type": self.kind,
            "color": list(self.color),
            "direction": list(self.direction),
        }


Light = PointLight | DirectionalLight


def light_from_dict(data: dict[str, Any]) -> Light:
    """Build a light from a dictionary with a "type" of "point" or "directional".

    Raises:
        ValueError: If the type is unknown or a parameter is invalid.
    """
    kind = data.get("type")
    if kind == PointLight.kind:
        return PointLight(
            color=tuple(data["color"]),
            position=tuple(data["position"]),
            attenuation=tuple(data.get("attenuation", (1.0, 0.0, 0.0))),
        )
    if kind == DirectionalLight.kind:
        return DirectionalLight(color=tuple(data["color"]), direction=tuple(data["direction"]))
    raise ValueError(f"Unknown light type: {kind!r}")


# =============================================================================
# Kernel-side Light Evaluation (Taichi-compatible)
# =============================================================================


@ti.dataclass
class LightRecord:
    """A light as seen by the render kernel.

    Attributes:
        kind: LIGHT_POINT or LIGHT_DIRECTIONAL.
        color: Light intensity (RGB).
        vector: Position for point lights, direction for directional ones.
        attenuation: (a, b, c) coefficients; ignored for directional lights.
    """

    kind: ti.i32
    color: vec3
    vector: vec3
    attenuation: vec3


def light_record_values(light: Light) -> tuple[int, Vec3, Vec3, Vec3]:
    """Flatten a light into (kind, color, vector, attenuation) table values."""
    if isinstance(light, PointLight):
        return (
            LIGHT_POINT,
            algebra.as_vec3(light.color),
            algebra.as_vec3(light.position),
            algebra.as_vec3(light.attenuation),
        )
    return (
        LIGHT_DIRECTIONAL,
        algebra.as_vec3(light.color),
        algebra.as_vec3(light.direction),
        algebra.ONES,
    )


@ti.func
def light_offset(light: LightRecord, point: vec3) -> vec3:
    """Kernel counterpart of offset_from()."""
    offset = light.vector
    if light.kind == LIGHT_POINT:
        offset = light.vector - point
    return offset


@ti.func
def light_attenuation(light: LightRecord, distance: ti.f64) -> ti.f64:
    """Kernel counterpart of attenuation_at()."""
    result = 1.0
    if light.kind == LIGHT_POINT:
        k = light.attenuation
        result = k[0] + k[1] * distance + k[2] * distance * distance
    return result


@ti.func
def light_occlusion_distance(light: LightRecord, offset: vec3) -> ti.f64:
    """Kernel counterpart of occlusion_distance()."""
    return tm.length(offset)
