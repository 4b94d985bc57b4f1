"""Muscle oscillation: actuator scale as a function of elapsed time."""

from __future__ import annotations

import math

from ..core.cell import Cell
from ..core.config import DEFAULT_CONFIG, SimulationConfig


def actuator_scale(
    elapsed: float,
    baseline: float = 0.6,
    amplitude: float = 0.4,
    angular_frequency: float = 1.5 * math.pi,
) -> float:
    """``baseline + amplitude * sin(angular_frequency * elapsed)``.

    With the defaults the scale swings over ``[0.2, 1.0]`` once every
    ~1.33 seconds.
    """
    return baseline + amplitude * math.sin(angular_frequency * elapsed)


def cell_scale(cell: Cell, elapsed: float, config: SimulationConfig = DEFAULT_CONFIG) -> float:
    """Scale of *cell* at *elapsed*: actuators oscillate, others stay at 1."""
    if not cell.is_actuator:
        return 1.0
    return actuator_scale(
        elapsed,
        baseline=config.scale_baseline,
        amplitude=config.scale_amplitude,
        angular_frequency=config.angular_frequency,
    )
