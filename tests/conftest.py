"""Pytest configuration for ray tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts. Double precision
    is required by every kernel in the package.
    """
    from whitted.runtime import init_runtime

    init_runtime(arch="cpu", seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear the kernel-side scene tables before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so the scene tables are created after Taichi is initialized
    from whitted.scene.intersection import clear_scene

    clear_scene()
    yield
    clear_scene()


@pytest.fixture
def red_material():
    """A plain material with distinct channels."""
    from whitted.lighting.material import Material

    return Material(
        ambient=(0.1, 0.05, 0.0),
        diffuse=(0.5, 0.3, 0.1),
        specular=(0.2, 0.2, 0.2),
        shininess=10.0,
    )
