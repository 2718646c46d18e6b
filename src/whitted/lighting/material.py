"""Blinn-Phong surface material.

A material describes how a surface responds to light:

- ambient: constant term added once per intersection
- emission: light emitted by the surface itself
- diffuse: Lambertian reflectance, weighted by max(0, n . l)
- specular: highlight reflectance and the tint of mirror reflections
- shininess: Blinn-Phong exponent of the highlight

Materials are immutable and may be shared by any number of shapes.

Example:
    >>> green = Material(
    ...     ambient=(0.3, 0.3, 0.3),
    ...     diffuse=(0.2, 0.4, 0.2),
    ...     specular=(0.2, 0.35, 0.2),
    ...     shininess=15.0,
    ... )
"""

from dataclasses import dataclass
from typing import Any

BLACK = (0.0, 0.0, 0.0)


def _color(name: str, values) -> tuple[float, float, float]:
    color = tuple(float(x) for x in values)
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    return color


@dataclass(frozen=True)
class Material:
    """Surface reflectance parameters.

    Attributes:
        ambient: Ambient color (RGB).
        diffuse: Diffuse reflectance (RGB).
        specular: Specular reflectance (RGB); also scales mirror reflections.
        shininess: Specular exponent, must be positive.
        emission: Emitted color (RGB).
    """

    ambient: tuple[float, float, float] = BLACK
    diffuse: tuple[float, float, float] = BLACK
    specular: tuple[float, float, float] = BLACK
    shininess: float = 1.0
    emission: tuple[float, float, float] = BLACK

    def __post_init__(self) -> None:
        for name in ("ambient", "diffuse", "specular", "emission"):
            # Normalize sequences (lists, arrays) to float tuples
            object.__setattr__(self, name, _color(name, getattr(self, name)))
        if not self.shininess > 0.0:
            raise ValueError(f"shininess must be > 0, got {self.shininess}")

    def to_dict(self) -> dict[str, Any]:
        """Export the material as a JSON-friendly dictionary."""
        return {
            "ambient": list(self.ambient),
            "diffuse": list(self.diffuse),
            "specular": list(self.specular),
            "shininess": self.shininess,
            "emission": list(self.emission),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Material":
        """Build a material from a dictionary produced by to_dict().

        Missing colors default to black.
        """
        return cls(
            ambient=tuple(data.get("ambient", BLACK)),
            diffuse=tuple(data.get("diffuse", BLACK)),
            specular=tuple(data.get("specular", BLACK)),
            shininess=float(data.get("shininess", 1.0)),
            emission=tuple(data.get("emission", BLACK)),
        )
