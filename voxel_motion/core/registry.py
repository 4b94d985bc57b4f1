"""Cell registry: the authoritative set of placed cells.

The registry is the single mutation entry point for the editor.  It
enforces the placement invariants (one cell per grid slot, cells on the
dish, at most one anchor block) and refuses edits while a simulation
holds the lock.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Iterator, Sequence

import numpy as np

from .cell import Cell, CellType
from .config import DEFAULT_CONFIG, SimulationConfig
from .errors import PlacementError, RegistryLockedError

logger = logging.getLogger(__name__)

GridIndex = tuple[int, int, int]

# Float slack when comparing a position against its grid slot.
GRID_EPSILON = 1e-6


class CellRegistry:
    """Arena of :class:`Cell` records addressed by small integer ids."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG
        self.cells: dict[int, Cell] = {}
        self._next_id = 0
        self._locked = False

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(list(self.cells.values()))

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self.cells

    def get(self, cell_id: int) -> Cell | None:
        return self.cells.get(cell_id)

    def anchor(self) -> Cell | None:
        """Return the anchor block, if one is placed."""
        for cell in self.cells.values():
            if cell.is_anchor:
                return cell
        return None

    def cell_at(self, position: Sequence[float] | np.ndarray) -> Cell | None:
        """Return the cell whose rest position is within the placement radius."""
        p = np.asarray(position, dtype=float)
        for cell in self.cells.values():
            if np.linalg.norm(cell.rest_position - p) < self.config.placement_tolerance:
                return cell
        return None

    # ------------------------------------------------------------------
    # Locking (held by the simulation controller while active)
    # ------------------------------------------------------------------

    @property
    def locked(self) -> bool:
        return self._locked

    def lock(self) -> None:
        self._locked = True

    def unlock(self) -> None:
        self._locked = False

    def _check_unlocked(self, action: str) -> None:
        if self._locked:
            raise RegistryLockedError(f"Cannot {action} cells while simulating")

    # ------------------------------------------------------------------
    # Grid helpers
    # ------------------------------------------------------------------

    def grid_to_world(self, index: GridIndex) -> np.ndarray:
        """Centre of the grid slot ``(i, j, k)``; ``j=0`` rests on the dish."""
        s = self.config.cube_size
        i, j, k = index
        return np.array([i * s, s / 2 + j * s, k * s], dtype=float)

    def snap_to_grid(self, point: Sequence[float] | np.ndarray) -> np.ndarray:
        """Snap an arbitrary point to the nearest grid slot centre."""
        s = self.config.cube_size
        x, y, z = (float(v) for v in np.asarray(point, dtype=float))
        j = max(0, round((y - s / 2) / s))
        return self.grid_to_world((round(x / s), j, round(z / s)))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(
        self,
        cell_type: CellType | str,
        rest_position: Sequence[float] | np.ndarray,
        cell_id: int | None = None,
    ) -> Cell:
        """Place a cell and return it.

        Placing an anchor block removes any previously placed anchor.
        """
        self._check_unlocked("add")
        cell_type = CellType(cell_type)
        pos = self._validate_position(np.asarray(rest_position, dtype=float))

        if cell_type is CellType.ANCHOR:
            previous = self.anchor()
            if previous is not None:
                logger.debug("Replacing anchor cell %d", previous.id)
                del self.cells[previous.id]

        cid = cell_id if cell_id is not None else self._next_id
        if cid in self.cells:
            raise PlacementError(f"Cell id {cid} is already in use")
        self._next_id = max(self._next_id, cid + 1)
        cell = Cell(id=cid, type=cell_type, rest_position=pos)
        self.cells[cid] = cell
        logger.debug("Added %s cell %d at %s", cell_type.value, cid, pos)
        return cell

    def add_at(self, cell_type: CellType | str, index: GridIndex) -> Cell:
        """Place a cell at grid slot *index*."""
        return self.add(cell_type, self.grid_to_world(index))

    def remove(self, cell_id: int) -> None:
        self._check_unlocked("remove")
        if self.cells.pop(cell_id, None) is not None:
            logger.debug("Removed cell %d", cell_id)

    def _validate_position(self, pos: np.ndarray) -> np.ndarray:
        """Check *pos* and return its exact grid-slot centre."""
        cfg = self.config
        if pos[1] < cfg.floor_height - GRID_EPSILON:
            raise PlacementError(f"Position {pos} is below the dish floor")
        snapped = self.snap_to_grid(pos)
        if np.any(np.abs(snapped - pos) > GRID_EPSILON):
            raise PlacementError(f"Position {pos} is not aligned to the cube grid")
        pos = snapped
        if math.hypot(pos[0], pos[2]) > cfg.base_radius:
            raise PlacementError(
                f"Position {pos} lies outside the dish (radius {cfg.base_radius})"
            )
        existing = self.cell_at(pos)
        if existing is not None:
            raise PlacementError(
                f"Position {pos} is occupied by cell {existing.id}"
            )
        return pos

    # ── Factory helpers ──────────────────────────────────────────────

    @classmethod
    def from_layout(
        cls,
        layout: Iterable[tuple[CellType | str, GridIndex]],
        config: SimulationConfig | None = None,
    ) -> CellRegistry:
        """Create a registry from ``(cell_type, grid_index)`` records."""
        registry = cls(config)
        for cell_type, index in layout:
            registry.add_at(cell_type, index)
        return registry
