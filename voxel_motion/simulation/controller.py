"""Simulation controller: the Idle/Active state machine.

The controller owns everything that only exists while a simulation is
running (adjacency map, snapshot, clock, frame history) and drives one
solve per :meth:`SimulationController.tick`.  It never mutates rest
positions or registry membership; it locks the registry so the editor
cannot either.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from ..core.cell import Cell
from ..core.config import SimulationConfig
from ..core.errors import SimulationStateError
from ..core.registry import CellRegistry
from .adjacency import AdjacencyMap, build_adjacency
from .oscillator import cell_scale
from .solver import PropagationSolver

logger = logging.getLogger(__name__)


class SimulationState(enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class Snapshot:
    """Rest pose captured at simulation entry."""

    positions: dict[int, np.ndarray] = field(default_factory=dict)
    scales: dict[int, float] = field(default_factory=dict)

    @classmethod
    def capture(cls, cells: Mapping[int, Cell]) -> Snapshot:
        return cls(
            positions={cid: c.rest_position.copy() for cid, c in cells.items()},
            scales={cid: 1.0 for cid in cells},
        )

    def restore(self, cells: Mapping[int, Cell]) -> None:
        for cid, cell in cells.items():
            if cid in self.positions:
                cell.position = self.positions[cid].copy()
                cell.scale = self.scales[cid]
            else:
                cell.reset()


@dataclass
class FrameOutput:
    """Everything the rendering backend needs for one frame."""

    frame: int
    elapsed: float
    positions: dict[int, np.ndarray]
    scales: dict[int, float]
    anchors: frozenset[int]
    base_visible: bool = False


class SimulationController:
    """Owns the cell registry and runs the per-frame solve while active.

    Typical host usage::

        controller.enter()
        while running:
            output = controller.tick(seconds_since_entry)
            render(output)
        controller.exit()
    """

    def __init__(
        self,
        registry: CellRegistry,
        config: SimulationConfig | None = None,
        solver: PropagationSolver | None = None,
        history_limit: int | None = None,
    ) -> None:
        self.registry = registry
        self.history_limit = history_limit
        self.config = config or registry.config
        self.solver = solver or PropagationSolver(self.config)
        self.state = SimulationState.IDLE
        self.base_visible = True
        self.adjacency: AdjacencyMap | None = None
        self.snapshot: Snapshot | None = None
        self.elapsed = 0.0
        self.frame_count = 0
        self.history: list[FrameOutput] = []

    @property
    def is_active(self) -> bool:
        return self.state is SimulationState.ACTIVE

    # ------------------------------------------------------------------
    # Mode transitions
    # ------------------------------------------------------------------

    def enter(self) -> bool:
        """Start simulating.  Returns ``False`` (and changes nothing) if refused."""
        if self.is_active:
            logger.warning("Simulation already active; ignoring enter request")
            return False
        if len(self.registry) == 0:
            logger.warning("Cannot simulate an empty structure")
            return False

        cells = self.registry.cells
        self.registry.lock()
        self.base_visible = False
        self.snapshot = Snapshot.capture(cells)
        self.adjacency = build_adjacency(
            cells.values(),
            self.config.cube_size,
            self.config.adjacency_tolerance,
        )
        self.elapsed = 0.0
        self.frame_count = 0
        self.history = []
        self.state = SimulationState.ACTIVE
        logger.info("Simulation started with %d cells", len(cells))
        return True

    def exit(self) -> bool:
        """Stop simulating and restore the rest pose."""
        if not self.is_active:
            return False
        if self.snapshot is not None:
            self.snapshot.restore(self.registry.cells)
        self.base_visible = True
        self.adjacency = None
        self.snapshot = None
        self.elapsed = 0.0
        self.state = SimulationState.IDLE
        self.registry.unlock()
        logger.info("Simulation stopped after %d frames", self.frame_count)
        return True

    def toggle(self) -> bool:
        """Flip between Idle and Active.  Returns whether simulation is active."""
        if self.is_active:
            self.exit()
        else:
            self.enter()
        return self.is_active

    # ------------------------------------------------------------------
    # Per-frame work
    # ------------------------------------------------------------------

    def tick(self, elapsed: float) -> FrameOutput:
        """Solve the pose for *elapsed* seconds since entry."""
        if not self.is_active or self.adjacency is None:
            raise SimulationStateError("tick() called while simulation is idle")

        self.elapsed = elapsed
        cells = self.registry.cells
        for cell in cells.values():
            cell.scale = cell_scale(cell, elapsed, self.config)
        anchors = self.solver.solve(cells, self.adjacency)

        output = FrameOutput(
            frame=self.frame_count,
            elapsed=elapsed,
            positions={cid: c.position.copy() for cid, c in cells.items()},
            scales={cid: c.scale for cid, c in cells.items()},
            anchors=frozenset(anchors),
            base_visible=self.base_visible,
        )
        self.frame_count += 1
        self.history.append(output)
        if self.history_limit is not None and len(self.history) > self.history_limit:
            del self.history[: len(self.history) - self.history_limit]
        return output

    def step(self, delta_time: float = 1.0 / 60.0) -> FrameOutput:
        """Advance the internal clock by *delta_time* and tick."""
        return self.tick(self.elapsed + delta_time)

    def run(self, num_frames: int, delta_time: float = 1.0 / 60.0) -> list[FrameOutput]:
        """Run *num_frames* steps.  Returns the full history."""
        for _ in range(num_frames):
            self.step(delta_time)
        return self.history
