"""Scene module for scene assembly and ray-scene queries.

Components:
    intersection: Kernel-side shape, material and light tables with the
        closest-hit scan
    manager: Scene builder with validation and (de)serialization
    sample_scene: Built-in demonstration scene

Nothing is imported here because every component depends on Taichi
fields, which may only be created after whitted.runtime.init_runtime().
"""
