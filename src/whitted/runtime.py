"""Taichi runtime initialization.

All geometry in this package is computed in double precision, so Taichi
must be initialized with ``default_fp=ti.f64`` before any module that owns
Taichi fields (scene tables, light tables, probes) is imported.

Example:
    >>> from whitted.runtime import init_runtime
    >>> init_runtime(arch="cpu")
    >>> from whitted.scene.manager import Scene  # safe to import now
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

_ARCHES = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
}


def init_runtime(arch: str = "cpu", seed: int = 0, debug: bool = False) -> str:
    """Initialize Taichi for double-precision rendering.

    A GPU request falls back to the CPU backend when no usable GPU is
    available, as the double-precision kernels are portable across both.

    Args:
        arch: Backend name, "cpu" or "gpu".
        seed: Seed for Taichi's own random generator. Rendering uses its
            own counter-based generator seeded from RenderOptions.seed.
        debug: Enable Taichi debug mode (bounds checking).

    Returns:
        The name of the backend actually initialized.

    Raises:
        ValueError: If arch is not a known backend name.
    """
    if arch not in _ARCHES:
        raise ValueError(f"Unknown backend {arch!r}; expected one of {sorted(_ARCHES)}")

    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, default_fp=ti.f64, random_seed=seed, debug=debug)
            logger.info("Taichi initialized on GPU backend")
            return "gpu"
        except Exception as exc:
            logger.warning("GPU backend unavailable (%s); falling back to CPU", exc)

    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=seed, debug=debug)
    logger.info("Taichi initialized on CPU backend")
    return "cpu"
