"""Ray tracing engine entry point.

RayTracer ties a camera and engine options to the integrator kernels:

- render(scene): unclamped float64 color buffer of shape (H, W, 3)
- draw(scene): the same image converted to 8-bit channels
- find_color(ray, scene, depth): color of a single ray, for tests and
  debugging

Each call uploads the scene first, so a malformed scene is reported
before any kernel runs.

This module depends on the integrator's Taichi fields, so it must be
imported after whitted.runtime.init_runtime().

Example:
    >>> init_runtime(arch="cpu")
    >>> from whitted.core.renderer import RayTracer
    >>> from whitted.scene.sample_scene import create_sample_scene
    >>> scene, camera, options = create_sample_scene()
    >>> tracer = RayTracer(camera, options)
    >>> image = tracer.draw(scene)  # uint8, shape (400, 400, 3)
"""

import logging
import time

import numpy as np
import numpy.typing as npt

from whitted.camera.pinhole import Camera, CameraBasis
from whitted.core import integrator
from whitted.core.algebra import Vec3
from whitted.core.options import RenderOptions
from whitted.core.ray import Ray
from whitted.preview.export import to_rgb8
from whitted.scene.manager import Scene

logger = logging.getLogger(__name__)


class RayTracer:
    """A Whitted-style ray tracer for a fixed camera and option set.

    Attributes:
        camera: The camera the image is rendered from.
        options: Engine options (recursion depth, sampling, seed).
    """

    def __init__(self, camera: Camera, options: RenderOptions | None = None) -> None:
        """Initialize the ray tracer.

        Raises:
            ValueError: If the camera basis is degenerate.
        """
        self.camera = camera
        self.options = options if options is not None else RenderOptions()
        self._basis = camera.basis()

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.camera.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.camera.height

    @property
    def basis(self) -> CameraBasis:
        """Camera basis and projection constants."""
        return self._basis

    def primary_ray(self, row: int, col: int) -> Ray:
        """Eye ray through pixel (row, col); row 0 is the top of the image."""
        return self._basis.eye_ray(row, col)

    def _prepare(self, scene: Scene) -> None:
        scene.upload()
        integrator.configure_camera(self._basis)
        integrator.configure_options(self.options)

    def render(self, scene: Scene) -> npt.NDArray[np.float64]:
        """Render the scene into an unclamped color buffer.

        Args:
            scene: The scene to render.

        Returns:
            Float64 array of shape (height, width, 3), row 0 at the top.

        Raises:
            SceneValidationError: If the scene cannot be uploaded.
        """
        logger.debug(
            "Rendering %dx%d, %d shapes, %d lights, options=%s",
            self.width,
            self.height,
            len(scene.shapes),
            len(scene.lights),
            self.options,
        )
        self._prepare(scene)

        buffer = np.zeros((self.height, self.width, 3), dtype=np.float64)
        start_time = time.perf_counter()
        integrator.render_into(buffer, seed=self.options.seed)
        elapsed = time.perf_counter() - start_time

        logger.info("Rendered %dx%d image in %.3fs", self.width, self.height, elapsed)
        return buffer

    def draw(self, scene: Scene) -> npt.NDArray[np.uint8]:
        """Render the scene into an 8-bit RGB image.

        Returns:
            uint8 array of shape (height, width, 3) with every channel
            equal to clamp(floor(color * 256), 0, 255).
        """
        return to_rgb8(self.render(scene))

    def find_color(self, ray: Ray, scene: Scene, depth: int = 0) -> Vec3:
        """Resolve the unclamped color of a single ray.

        Uses the same integrator as render(); jitter is drawn from the
        generator seeded by options.seed.

        Args:
            ray: The ray to trace; its direction is normalized first.
            scene: The scene to trace against.
            depth: Recursion depth of the ray. Depth 0 fans out into
                primary_reflection_rays reflection rays.

        Raises:
            ValueError: If depth is negative.
        """
        if depth < 0:
            raise ValueError(f"depth must be >= 0, got {depth}")
        self._prepare(scene)
        return integrator.trace_ray(ray, depth=depth, seed=self.options.seed)
