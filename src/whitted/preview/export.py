"""Image export utilities for rendered images.

The renderer produces unclamped linear colors. Export converts them to
8-bit channels with

    channel = clamp(floor(color * 256), 0, 255)

so 1.0 and above map to 255 and values below 1/256 map to 0. No tone
mapping or gamma correction is applied.

Example:
    >>> from whitted.preview.export import save_png
    >>> image = tracer.draw(scene)
    >>> save_png(image, "output.png")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def to_rgb8(buffer: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a float color buffer to 8-bit channels.

    Args:
        buffer: Color array of shape (H, W, 3); values are not required to
            lie in [0, 1].

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    scaled = np.floor(np.asarray(buffer, dtype=np.float64) * 256.0)
    return np.clip(scaled, 0.0, 255.0).astype(np.uint8)


def save_png(image: npt.NDArray, filepath: str | Path) -> Path:
    """Save an image as an 8-bit RGB PNG file.

    Args:
        image: Either an 8-bit image from RayTracer.draw() or a float
            buffer from RayTracer.render(), which is converted with
            to_rgb8() first.
        filepath: Output file path (should end in .png).

    Returns:
        The path of the written file.

    Raises:
        ValueError: If the image is not of shape (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")
    if image.dtype != np.uint8:
        image = to_rgb8(image)

    path = Path(filepath)
    PILImage.fromarray(image).save(path)
    return path


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
