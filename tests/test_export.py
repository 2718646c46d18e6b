"""Tests for the export module.

Tests cover:
- 8-bit conversion with clamping
- PNG export of 8-bit and float images
- RMSE computation
- The command-line renderer
"""

import os
import tempfile

import numpy as np
import pytest
from PIL import Image as PILImage

from whitted.preview.export import compute_rmse, save_png, to_rgb8


class TestToRgb8:
    """Test conversion of float buffers to 8-bit channels."""

    def test_output_type_and_shape(self):
        """Test that output is uint8 with the input shape."""
        result = to_rgb8(np.random.rand(10, 12, 3))
        assert result.dtype == np.uint8
        assert result.shape == (10, 12, 3)

    def test_floor_of_scaled_value(self):
        """Test floor(c * 256) for in-range values."""
        image = np.array([[[0.0, 0.5, 0.8], [0.55, 0.3, 1.0 / 256.0]]])
        result = to_rgb8(image)
        np.testing.assert_array_equal(result[0, 0], [0, 128, 204])
        np.testing.assert_array_equal(result[0, 1], [140, 76, 1])

    def test_clamps_out_of_range(self):
        """Test that negatives map to 0 and values >= 1 map to 255."""
        image = np.array([[[-0.5, 1.0, 7.3]]])
        np.testing.assert_array_equal(to_rgb8(image)[0, 0], [0, 255, 255])

    def test_just_below_one(self):
        """Test that 255/256 is the smallest value reaching 255."""
        image = np.array([[[255.0 / 256.0, 254.99 / 256.0, 0.999]]])
        np.testing.assert_array_equal(to_rgb8(image)[0, 0], [255, 254, 255])


class TestSavePng:
    """Test PNG export."""

    def test_save_uint8_image(self):
        """Test that an 8-bit image is written unchanged."""
        image = np.zeros((16, 32, 3), dtype=np.uint8)
        image[:, :, 0] = 200
        image[4, 5] = [1, 2, 3]

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            path = save_png(image, filepath)
            assert os.path.exists(path)

            img = PILImage.open(path)
            assert img.size == (32, 16)  # PIL size is (width, height)
            assert img.mode == "RGB"
            np.testing.assert_array_equal(np.asarray(img), image)
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    def test_save_float_buffer(self):
        """Test that float buffers are converted before writing."""
        image = np.zeros((8, 8, 3), dtype=np.float64)
        image[:, :, 1] = np.linspace(0.0, 2.0, 8)

        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as f:
            filepath = f.name

        try:
            save_png(image, filepath)
            written = np.asarray(PILImage.open(filepath))
            np.testing.assert_array_equal(written, to_rgb8(image))
        finally:
            if os.path.exists(filepath):
                os.remove(filepath)

    @pytest.mark.parametrize("shape", [(8, 8), (8, 8, 4), (8, 8, 1)])
    def test_wrong_shape_raises(self, shape):
        """Test that only (H, W, 3) images are accepted."""
        with pytest.raises(ValueError, match="shape"):
            save_png(np.zeros(shape, dtype=np.uint8), "unused.png")


class TestComputeRmse:
    """Test RMSE computation."""

    def test_rmse_identical_images(self):
        """Test RMSE of identical images is zero."""
        image = np.random.rand(10, 10, 3)
        assert np.isclose(compute_rmse(image, image), 0.0)

    def test_rmse_different_images(self):
        """Test RMSE of all zeros vs all ones is 1."""
        image_a = np.zeros((10, 10, 3))
        image_b = np.ones((10, 10, 3))
        assert np.isclose(compute_rmse(image_a, image_b), 1.0)

    def test_rmse_shape_mismatch_raises(self):
        """Test that RMSE raises for shape mismatch."""
        with pytest.raises(ValueError, match="shapes must match"):
            compute_rmse(np.zeros((10, 10, 3)), np.zeros((20, 20, 3)))


class TestRenderScript:
    """Test the command-line renderer end to end."""

    def test_renders_scene_file(self, tmp_path):
        """Test rendering a JSON scene file to a PNG."""
        import json

        from examples.render_scene import parse_args, render_scene

        scene_file = tmp_path / "scene.json"
        scene_file.write_text(
            json.dumps(
                {
                    "camera": {"position": [0, 0, 5], "width": 12, "height": 8, "fov_y": 30},
                    "options": {"max_depth": 1, "num_shadow_rays": 2},
                    "materials": [{"ambient": [0.2, 0.2, 0.2], "diffuse": [0.5, 0.5, 0.5]}],
                    "shapes": [{"type": "sphere", "material": 0, "center": [0, 0, 0], "radius": 1}],
                    "lights": [{"type": "directional", "color": [1, 1, 1], "direction": [0, 0, 1]}],
                }
            )
        )
        output = tmp_path / "out.png"

        path = render_scene(parse_args(["--scene", str(scene_file), "--output", str(output)]))
        assert path == output
        img = PILImage.open(output)
        assert img.size == (12, 8)
        assert np.asarray(img).max() > 0

    def test_bad_scene_file_raises(self, tmp_path):
        """Test that an invalid scene is reported before rendering."""
        import json

        from examples.render_scene import parse_args, render_scene
        from whitted.errors import SceneValidationError

        scene_file = tmp_path / "bad.json"
        scene_file.write_text(
            json.dumps(
                {
                    "camera": {"position": [0, 0, 5], "width": 4, "height": 4, "fov_y": 30},
                    "materials": [{}],
                    "shapes": [{"type": "torus", "material": 0}],
                }
            )
        )

        args = parse_args(["--scene", str(scene_file), "--output", str(tmp_path / "x.png")])
        with pytest.raises(SceneValidationError, match="torus #0"):
            render_scene(args)
