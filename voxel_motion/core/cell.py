"""Cell model for voxel structures."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np


class CellType(str, enum.Enum):
    STRUCTURAL = "structural"
    ACTUATOR = "actuator"
    ANCHOR = "anchor"


@dataclass
class Cell:
    """A single unit cube placed on the grid.

    ``rest_position`` is grid-aligned and never changes once placed.
    ``position`` and ``scale`` are the animated pose, written only by the
    solver while simulation is active.
    """

    id: int
    type: CellType
    rest_position: np.ndarray  # shape (3,)
    position: np.ndarray = field(default=None)  # type: ignore[assignment]
    scale: float = 1.0

    def __post_init__(self) -> None:
        self.type = CellType(self.type)
        self.rest_position = np.asarray(self.rest_position, dtype=float)
        if self.position is None:
            self.position = self.rest_position.copy()
        else:
            self.position = np.asarray(self.position, dtype=float)

    @property
    def is_anchor(self) -> bool:
        return self.type is CellType.ANCHOR

    @property
    def is_actuator(self) -> bool:
        return self.type is CellType.ACTUATOR

    def reset(self) -> None:
        """Return to the rest pose."""
        self.position = self.rest_position.copy()
        self.scale = 1.0
