"""Scene builder coordinating shapes, materials and lights.

A Scene is assembled on the Python side, where every shape and light is
validated as it is added, and uploaded into the kernel-side tables of
whitted.scene.intersection right before rendering. A failure names the
offending element by kind and position, so a malformed scene never
reaches the render kernel.

Materials are shared by reference: shapes built with the same Material
object use a single entry of the material table.

Scenes round-trip through plain dictionaries (and therefore JSON):

    {
        "materials": [{"ambient": [...], "diffuse": [...], ...}],
        "shapes": [
            {"type": "sphere", "material": 0, "center": [...], "radius": 0.5},
            {"type": "quad", "material": 1, "a": [...], "b": [...], ...}
        ],
        "lights": [
            {"type": "point", "color": [...], "position": [...]},
            {"type": "directional", "color": [...], "direction": [...]}
        ]
    }

This module depends on the kernel-side scene tables, so it must be
imported after whitted.runtime.init_runtime().

Example:
    >>> scene = Scene()
    >>> shiny = Material(ambient=(0.1, 0.1, 0.1), diffuse=(0.5, 0.2, 0.2), shininess=20.0)
    >>> scene.add_sphere(shiny, center=(0.0, 0.0, -1.0), radius=0.5)
    >>> scene.add_point_light(color=(1.0, 1.0, 1.0), position=(0.0, 5.0, 0.0))
    >>> scene.upload()
"""

import logging
from typing import Any

from whitted.core import algebra
from whitted.core.ray import Intersection, Ray
from whitted.errors import RayTracerError, SceneValidationError
from whitted.geometry.quad import Quad
from whitted.geometry.sphere import Sphere
from whitted.lighting.lights import DirectionalLight, Light, PointLight, light_from_dict
from whitted.lighting.material import Material
from whitted.scene.intersection import (
    MAX_LIGHTS,
    MAX_MATERIALS,
    MAX_QUADS,
    MAX_SHAPES,
    MAX_SPHERES,
    add_light,
    add_material,
    add_quad,
    add_sphere,
    clear_scene,
)

logger = logging.getLogger(__name__)

Shape = Sphere | Quad


class Scene:
    """An ordered collection of shapes plus a collection of lights.

    Shape order matters only for exact distance ties, where the shape
    added first wins.

    Attributes:
        shapes: Shapes in insertion order.
        lights: Lights in insertion order.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.shapes: list[Shape] = []
        self.lights: list[Light] = []

    def clear(self) -> None:
        """Remove every shape and light."""
        self.shapes.clear()
        self.lights.clear()

    @property
    def materials(self) -> list[Material]:
        """Distinct materials used by the shapes, in first-use order."""
        seen: dict[int, Material] = {}
        for shape in self.shapes:
            seen.setdefault(id(shape.material), shape.material)
        return list(seen.values())

    # =========================================================================
    # Shape Management
    # =========================================================================

    def add_sphere(
        self,
        material: Material,
        center=(0.0, 0.0, 0.0),
        radius: float = 1.0,
        scale=(1.0, 1.0, 1.0),
        rotation_axis=(0.0, 1.0, 0.0),
        rotation_degrees: float = 0.0,
    ) -> Sphere:
        """Add a sphere (or ellipsoid, with a non-uniform scale).

        Raises:
            SceneValidationError: If the parameters do not describe an
                invertible transform or the radius is not positive.
        """
        index = len(self.shapes)
        try:
            if not radius > 0.0:
                raise ValueError(f"radius must be > 0, got {radius}")
            sphere = Sphere.create(
                material,
                center=center,
                radius=radius,
                scale=scale,
                rotation_axis=rotation_axis,
                rotation_degrees=rotation_degrees,
            )
        except (RayTracerError, ValueError) as exc:
            raise SceneValidationError(Sphere.kind, index, str(exc)) from exc
        return self.add_shape(sphere)

    def add_quad(self, material: Material, a, b, c, d) -> Quad:
        """Add a quad from four corners in winding order.

        Raises:
            SceneValidationError: If the corners are not coplanar, not
                convex or degenerate.
        """
        index = len(self.shapes)
        try:
            quad = Quad(material, a, b, c, d)
        except (RayTracerError, ValueError) as exc:
            raise SceneValidationError(Quad.kind, index, str(exc)) from exc
        return self.add_shape(quad)

    def add_shape(self, shape: Shape) -> Shape:
        """Add an already constructed shape.

        Raises:
            SceneValidationError: If the object is not a known shape or
                has no Material.
        """
        index = len(self.shapes)
        if not isinstance(shape, (Sphere, Quad)):
            raise SceneValidationError("shape", index, f"unsupported shape {shape!r}")
        if not isinstance(shape.material, Material):
            raise SceneValidationError(shape.kind, index, "shape has no Material")
        self.shapes.append(shape)
        return shape

    def intersect(self, ray: Ray) -> tuple[Shape, Intersection] | None:
        """Closest shape hit by a ray, computed shape by shape.

        Returns:
            (shape, intersection) for the strictly closest hit, or None.
        """
        closest = None
        for shape in self.shapes:
            hit = shape.intersect(ray)
            if hit is not None and (closest is None or hit.distance < closest[1].distance):
                closest = (shape, hit)
        return closest

    # =========================================================================
    # Light Management
    # =========================================================================

    def add_light(self, light: Light) -> Light:
        """Add a light.

        Raises:
            SceneValidationError: If the object is not a known light.
        """
        if not isinstance(light, (PointLight, DirectionalLight)):
            raise SceneValidationError("light", len(self.lights), f"unsupported light {light!r}")
        self.lights.append(light)
        return light

    def add_point_light(self, color, position, attenuation=(1.0, 0.0, 0.0)) -> PointLight:
        """Add a point light.

        Raises:
            SceneValidationError: If a parameter is invalid.
        """
        try:
            light = PointLight(color=color, position=position, attenuation=attenuation)
        except ValueError as exc:
            raise SceneValidationError(PointLight.kind, len(self.lights), str(exc)) from exc
        return self.add_light(light)

    def add_directional_light(self, color, direction) -> DirectionalLight:
        """Add a directional light.

        Raises:
            SceneValidationError: If a parameter is invalid.
        """
        try:
            light = DirectionalLight(color=color, direction=direction)
        except ValueError as exc:
            raise SceneValidationError(DirectionalLight.kind, len(self.lights), str(exc)) from exc
        return self.add_light(light)

    # =========================================================================
    # Upload
    # =========================================================================

    def validate(self) -> None:
        """Check that the scene fits in the kernel-side tables.

        Raises:
            SceneValidationError: Naming the first element that does not fit.
        """
        limits = (
            ("shape", len(self.shapes), MAX_SHAPES),
            ("material", len(self.materials), MAX_MATERIALS),
            ("light", len(self.lights), MAX_LIGHTS),
            (Sphere.kind, sum(isinstance(s, Sphere) for s in self.shapes), MAX_SPHERES),
            (Quad.kind, sum(isinstance(s, Quad) for s in self.shapes), MAX_QUADS),
        )
        for kind, count, limit in limits:
            if count > limit:
                raise SceneValidationError(kind, limit, f"at most {limit} {kind}s are supported")

    def upload(self) -> None:
        """Replace the kernel-side tables with this scene.

        Raises:
            SceneValidationError: If the scene does not fit in the tables.
        """
        self.validate()
        clear_scene()

        material_ids: dict[int, int] = {}
        for material in self.materials:
            material_ids[id(material)] = add_material(material)

        for shape in self.shapes:
            material_id = material_ids[id(shape.material)]
            if isinstance(shape, Sphere):
                add_sphere(shape, material_id)
            else:
                add_quad(shape, material_id)

        for light in self.lights:
            add_light(light)

        logger.debug(
            "Uploaded scene: %d shapes, %d materials, %d lights",
            len(self.shapes),
            len(material_ids),
            len(self.lights),
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Export the scene as a JSON-friendly dictionary."""
        materials = self.materials
        index_of = {id(material): i for i, material in enumerate(materials)}
        shapes = []
        for shape in self.shapes:
            entry = shape.to_dict()
            entry["material"] = index_of[id(shape.material)]
            shapes.append(entry)
        return {
            "materials": [material.to_dict() for material in materials],
            "shapes": shapes,
            "lights": [light.to_dict() for light in self.lights],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        """Build a scene from a dictionary.

        Spheres are given either by "center"/"radius" (with optional
        "scale", "rotation_axis" and "rotation_degrees") or by a raw 4x4
        "transform". Quads are given by corners "a", "b", "c", "d".

        Raises:
            SceneValidationError: Naming the first invalid material, shape
                or light.
        """
        scene = cls()

        materials = []
        for i, entry in enumerate(data.get("materials", [])):
            try:
                materials.append(Material.from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                raise SceneValidationError("material", i, str(exc)) from exc

        for i, entry in enumerate(data.get("shapes", [])):
            kind = entry.get("type", "shape")
            try:
                material = materials[entry["material"]]
                if kind == Sphere.kind and "transform" in entry:
                    scene.add_shape(Sphere(material, algebra.mat4(entry["transform"])))
                elif kind == Sphere.kind:
                    scene.add_sphere(
                        material,
                        center=entry.get("center", (0.0, 0.0, 0.0)),
                        radius=entry.get("radius", 1.0),
                        scale=entry.get("scale", (1.0, 1.0, 1.0)),
                        rotation_axis=entry.get("rotation_axis", (0.0, 1.0, 0.0)),
                        rotation_degrees=entry.get("rotation_degrees", 0.0),
                    )
                elif kind == Quad.kind:
                    scene.add_quad(material, entry["a"], entry["b"], entry["c"], entry["d"])
                else:
                    raise ValueError(f"Unknown shape type: {kind!r}")
            except SceneValidationError:
                raise
            except (RayTracerError, KeyError, IndexError, TypeError, ValueError) as exc:
                raise SceneValidationError(kind, i, str(exc)) from exc

        for i, entry in enumerate(data.get("lights", [])):
            try:
                scene.add_light(light_from_dict(entry))
            except (KeyError, TypeError, ValueError) as exc:
                raise SceneValidationError(entry.get("type", "light"), i, str(exc)) from exc

        return scene

    def __repr__(self) -> str:
        return f"Scene(shapes={len(self.shapes)}, lights={len(self.lights)})"
