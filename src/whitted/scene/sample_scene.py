"""Built-in demonstration scene.

A grid of shiny green spheres resting above a reddish floor quad, lit by
two colored point lights:

- grid_size x grid_size spheres of radius 0.5 at
  (1.5 * (i - grid_size // 2), -2, -2 * j)
- one floor quad at y = -4 spanning x in [-3, 4] and z in [-4, 0]
- point lights at (0, 5, 3) and (-6, 1, 3), unattenuated
- camera at (0, 2, 6) looking at the origin with a 50 degree field of view

Example:
    >>> init_runtime(arch="cpu")
    >>> from whitted.scene.sample_scene import create_sample_scene
    >>> scene, camera, options = create_sample_scene()
    >>> image = RayTracer(camera, options).draw(scene)
"""

from dataclasses import dataclass

from whitted.camera.pinhole import Camera
from whitted.core.options import RenderOptions
from whitted.lighting.material import Material
from whitted.scene.manager import Scene

# =============================================================================
# Sample Scene Parameters
# =============================================================================


@dataclass
class SampleSceneParams:
    """Parameters for customizing the sample scene.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        grid_size: Number of spheres along each side of the grid.
        sphere_radius: Radius of every sphere.
    """

    width: int = 400
    height: int = 400
    grid_size: int = 5
    sphere_radius: float = 0.5


SPHERE_MATERIAL = Material(
    ambient=(0.3, 0.3, 0.3),
    diffuse=(0.2, 0.4, 0.2),
    specular=(0.2, 0.35, 0.2),
    shininess=15.0,
)

FLOOR_MATERIAL = Material(
    ambient=(0.4, 0.2, 0.2),
    diffuse=(0.4, 0.2, 0.2),
    specular=(0.4, 0.2, 0.2),
    shininess=5.0,
)

SAMPLE_OPTIONS = RenderOptions(max_depth=2, num_shadow_rays=1, sampling_factor=1)


def create_sample_scene(
    params: SampleSceneParams | None = None,
) -> tuple[Scene, Camera, RenderOptions]:
    """Create the demonstration scene with its camera and engine options.

    Args:
        params: Optional SampleSceneParams; defaults reproduce the
            400x400 reference render.

    Returns:
        A tuple of (Scene, Camera, RenderOptions).
    """
    if params is None:
        params = SampleSceneParams()

    scene = Scene()

    half = params.grid_size // 2
    for i in range(params.grid_size):
        for j in range(params.grid_size):
            scene.add_sphere(
                SPHERE_MATERIAL,
                center=(1.5 * (i - half), -2.0, -2.0 * j),
                radius=params.sphere_radius,
            )

    scene.add_quad(
        FLOOR_MATERIAL,
        a=(-3.0, -4.0, 0.0),
        b=(4.0, -4.0, 0.0),
        c=(4.0, -4.0, -4.0),
        d=(-3.0, -4.0, -4.0),
    )

    scene.add_point_light(color=(0.2, 0.4, 0.2), position=(0.0, 5.0, 3.0))
    scene.add_point_light(color=(0.4, 0.3, 0.3), position=(-6.0, 1.0, 3.0))

    camera = Camera(
        position=(0.0, 2.0, 6.0),
        look_at=(0.0, 0.0, 0.0),
        up=(0.0, 1.0, 0.0),
        width=params.width,
        height=params.height,
        fov_y=50.0,
    )

    return scene, camera, SAMPLE_OPTIONS
