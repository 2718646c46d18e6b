"""Engine configuration for the recursive ray tracer."""

from dataclasses import asdict, dataclass, fields
from typing import Any


@dataclass(frozen=True)
class RenderOptions:
    """Options controlling recursion depth and stochastic sampling.

    Attributes:
        max_depth: Maximum reflection recursion depth. 0 disables reflections.
        num_shadow_rays: Jittered shadow probes cast per light per hit.
        sampling_factor: Reserved for supersampling; validated and stored
            but not used by the renderer.
        primary_reflection_rays: Reflection rays cast from primary hits
            (depth 0). Deeper hits always cast a single reflection ray.
        shadow_jitter: Width of the uniform per-component jitter added to
            the un-normalized direction to a light.
        reflection_jitter: Width of the uniform jitter applied along the
            normal before renormalizing a reflection direction.
        ray_epsilon: Offset of secondary ray origins along their direction,
            avoids re-hitting the surface they start on.
        seed: Seed of the per-pixel jitter generator.
    """

    max_depth: int = 2
    num_shadow_rays: int = 1
    sampling_factor: int = 1
    primary_reflection_rays: int = 4
    shadow_jitter: float = 0.25
    reflection_jitter: float = 0.001
    ray_epsilon: float = 0.001
    seed: int = 0

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.num_shadow_rays <= 0:
            raise ValueError(f"num_shadow_rays must be > 0, got {self.num_shadow_rays}")
        if self.sampling_factor < 1:
            raise ValueError(f"sampling_factor must be >= 1, got {self.sampling_factor}")
        if self.primary_reflection_rays < 1:
            raise ValueError(
                f"primary_reflection_rays must be >= 1, got {self.primary_reflection_rays}"
            )
        if self.shadow_jitter < 0.0 or self.reflection_jitter < 0.0:
            raise ValueError("Jitter magnitudes must be non-negative")
        if self.ray_epsilon <= 0.0:
            raise ValueError(f"ray_epsilon must be > 0, got {self.ray_epsilon}")

    def to_dict(self) -> dict[str, Any]:
        """Export the options as a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderOptions":
        """Build options from a dictionary, ignoring unknown keys.

        Raises:
            ValueError: If any value is out of range.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
