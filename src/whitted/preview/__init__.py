"""Preview module for image output.

Components:
    export: 8-bit conversion and PNG export (Pillow)
"""

from whitted.preview.export import compute_rmse, save_png, to_rgb8

__all__ = [
    "to_rgb8",
    "save_png",
    "compute_rmse",
]
