"""Tunable constants for the voxel simulation.

The numeric defaults reproduce the look of the original animation: a
0.2-unit cube grid, a muscle cycle of about 1.33 s, and five relaxation
passes per frame.  None of these are derived from a physical model, so
they live here rather than inline in the solver.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping

from .errors import ConfigError


@dataclass(frozen=True)
class SimulationConfig:
    """Geometry, oscillation and solver settings shared by every component."""

    cube_size: float = 0.2
    adjacency_tolerance: float = 0.01
    floor_tolerance: float = 0.01
    correction_tolerance: float = 0.001
    max_iterations: int = 5
    scale_baseline: float = 0.6
    scale_amplitude: float = 0.4
    angular_frequency: float = 1.5 * math.pi
    base_radius: float = 2.0
    placement_tolerance: float | None = field(default=None)

    def __post_init__(self) -> None:
        if self.cube_size <= 0:
            raise ConfigError(f"cube_size must be positive, got {self.cube_size}")
        if self.max_iterations < 1:
            raise ConfigError(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )
        if self.base_radius <= 0:
            raise ConfigError(f"base_radius must be positive, got {self.base_radius}")
        if self.placement_tolerance is None:
            object.__setattr__(self, "placement_tolerance", self.cube_size / 2)

    @property
    def half_cube(self) -> float:
        return self.cube_size / 2

    @property
    def floor_height(self) -> float:
        """Lowest allowed cell-centre height (one half-cube above the dish)."""
        return self.cube_size / 2

    @property
    def cycle_seconds(self) -> float:
        return 2 * math.pi / self.angular_frequency

    def with_overrides(self, **overrides: Any) -> SimulationConfig:
        """Return a copy with *overrides* applied."""
        try:
            return replace(self, **overrides)
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> SimulationConfig:
        """Build a config from a plain dict, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**dict(mapping))


DEFAULT_CONFIG = SimulationConfig()
