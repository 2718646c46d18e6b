#!/usr/bin/env python3
"""Render a scene with the Whitted ray tracer.

Renders either the built-in sample scene (a grid of spheres above a floor
quad lit by two point lights) or a scene loaded from a JSON file, saves
it as a PNG and reports the elapsed render time.

A scene file holds the scene dictionary plus optional "camera" and
"options" blocks:

    {
        "camera": {"position": [0, 2, 6], "width": 400, "height": 400, "fov_y": 50},
        "options": {"max_depth": 2, "num_shadow_rays": 4},
        "materials": [...],
        "shapes": [...],
        "lights": [...]
    }

Usage:
    python -m examples.render_scene [options]

Options:
    --scene FILE          Scene JSON file (default: built-in sample scene)
    --output OUTPUT       Output file path (default: scene.png)
    --width WIDTH         Override the image width in pixels
    --height HEIGHT       Override the image height in pixels
    --max-depth DEPTH     Override the reflection depth
    --shadow-rays N       Override the shadow rays per light
    --seed SEED           Override the jitter seed
    --arch {cpu,gpu}      Taichi backend (default: cpu)
    --verbose             Log debug output
    --quiet               Only log warnings and errors

Example:
    python -m examples.render_scene --width 200 --height 200 --shadow-rays 8
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger("render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene with the Whitted ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="Scene JSON file (default: built-in sample scene)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="scene.png",
        help="Output file path (default: scene.png)",
    )
    parser.add_argument("--width", type=int, default=None, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=None, help="Image height in pixels")
    parser.add_argument("--max-depth", type=int, default=None, help="Reflection depth")
    parser.add_argument("--shadow-rays", type=int, default=None, help="Shadow rays per light")
    parser.add_argument("--seed", type=int, default=None, help="Jitter seed")
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Log debug output")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args(argv)


def load_scene_file(path: str | Path):
    """Load a scene, camera and options from a JSON scene file.

    Returns:
        A tuple of (Scene, Camera, RenderOptions).
    """
    # Lazy imports to allow Taichi initialization first
    from whitted.camera.pinhole import Camera
    from whitted.core.options import RenderOptions
    from whitted.scene.manager import Scene

    with open(path, encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)

    camera = Camera.from_dict(data["camera"])
    options = RenderOptions.from_dict(data.get("options", {}))
    return Scene.from_dict(data), camera, options


def apply_overrides(camera, options, args: argparse.Namespace):
    """Apply command-line overrides to the camera and options."""
    camera_changes = {}
    if args.width is not None:
        camera_changes["width"] = args.width
    if args.height is not None:
        camera_changes["height"] = args.height

    option_changes = {}
    if args.max_depth is not None:
        option_changes["max_depth"] = args.max_depth
    if args.shadow_rays is not None:
        option_changes["num_shadow_rays"] = args.shadow_rays
    if args.seed is not None:
        option_changes["seed"] = args.seed

    return (
        dataclasses.replace(camera, **camera_changes),
        dataclasses.replace(options, **option_changes),
    )


def render_scene(args: argparse.Namespace) -> Path:
    """Render the requested scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from whitted.core.renderer import RayTracer
    from whitted.preview.export import save_png
    from whitted.scene.sample_scene import create_sample_scene

    if args.scene is None:
        scene, camera, options = create_sample_scene()
    else:
        scene, camera, options = load_scene_file(args.scene)
    camera, options = apply_overrides(camera, options, args)

    logger.info("Rendering %r at %dx%d", scene, camera.width, camera.height)
    tracer = RayTracer(camera, options)

    start_time = time.perf_counter()
    image = tracer.draw(scene)
    elapsed = time.perf_counter() - start_time

    output_file = save_png(image, args.output)
    logger.info("Saved to: %s", output_file.absolute())
    print(f"Done in {elapsed:.2f}s")
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    from whitted.runtime import init_runtime

    init_runtime(arch=args.arch)

    try:
        render_scene(args)
        return 0
    except (OSError, ValueError, KeyError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
