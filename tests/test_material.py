"""Unit tests for materials and engine options."""

import dataclasses

import pytest

from whitted.core.options import RenderOptions
from whitted.lighting.material import BLACK, Material


class TestMaterial:
    """Tests for Blinn-Phong materials."""

    def test_defaults_are_black(self):
        """Test that unspecified colors are black."""
        material = Material()
        assert material.ambient == BLACK
        assert material.emission == BLACK
        assert material.shininess == 1.0

    def test_colors_are_normalized_to_float_tuples(self):
        """Test that lists of ints become float tuples."""
        material = Material(diffuse=[1, 0, 0])
        assert material.diffuse == (1.0, 0.0, 0.0)
        assert all(isinstance(c, float) for c in material.diffuse)

    def test_is_immutable(self):
        """Test that materials cannot be modified."""
        material = Material()
        with pytest.raises(dataclasses.FrozenInstanceError):
            material.shininess = 5.0

    @pytest.mark.parametrize("shininess", [0.0, -1.0])
    def test_non_positive_shininess_raises(self, shininess):
        """Test that the specular exponent must be positive."""
        with pytest.raises(ValueError):
            Material(shininess=shininess)

    def test_wrong_component_count_raises(self):
        """Test that colors need three components."""
        with pytest.raises(ValueError):
            Material(ambient=(0.1, 0.2))

    def test_round_trip(self, red_material):
        """Test that from_dict(to_dict()) reproduces the material."""
        assert Material.from_dict(red_material.to_dict()) == red_material

    def test_from_dict_defaults(self):
        """Test that missing keys fall back to the defaults."""
        assert Material.from_dict({"diffuse": [0.5, 0.5, 0.5]}) == Material(diffuse=(0.5, 0.5, 0.5))


class TestRenderOptions:
    """Tests for engine options."""

    def test_defaults(self):
        """Test the default recursion and sampling settings."""
        options = RenderOptions()
        assert options.max_depth == 2
        assert options.num_shadow_rays == 1
        assert options.sampling_factor == 1
        assert options.primary_reflection_rays == 4

    @pytest.mark.parametrize(
        "changes",
        [
            {"max_depth": -1},
            {"num_shadow_rays": 0},
            {"sampling_factor": 0},
            {"primary_reflection_rays": 0},
            {"shadow_jitter": -0.1},
            {"reflection_jitter": -0.1},
            {"ray_epsilon": 0.0},
        ],
    )
    def test_invalid_values_raise(self, changes):
        """Test that out-of-range options are rejected."""
        with pytest.raises(ValueError):
            RenderOptions(**changes)

    def test_zero_depth_is_allowed(self):
        """Test that reflections can be disabled."""
        assert RenderOptions(max_depth=0).max_depth == 0

    def test_round_trip(self):
        """Test to_dict and from_dict."""
        options = RenderOptions(max_depth=3, num_shadow_rays=8, seed=9)
        assert RenderOptions.from_dict(options.to_dict()) == options

    def test_from_dict_ignores_unknown_keys(self):
        """Test that extra keys in scene files are skipped."""
        options = RenderOptions.from_dict({"max_depth": 1, "exposure": 2.0})
        assert options.max_depth == 1
