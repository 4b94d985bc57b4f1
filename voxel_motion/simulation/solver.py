"""Propagation solver: per-frame geometric relaxation of the structure.

Each relaxation pass pins the anchors, places every reachable cell by a
breadth-first walk so that scaled neighbours touch face to face, sweeps
components that no anchor reaches, and finally runs a correction pass
over every edge.  The whole pass is repeated ``max_iterations`` times per
frame; there is no convergence test.

This is a deterministic approximation for animation, not a physical
solve.  Cells missing from the cell map (an edge pointing at a deleted
cell) are skipped rather than failing the frame.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Mapping

import numpy as np

from ..core.cell import Cell
from ..core.config import DEFAULT_CONFIG, SimulationConfig
from .adjacency import AdjacencyMap
from .anchors import select_anchors

logger = logging.getLogger(__name__)


class PropagationSolver:
    """Breadth-first position propagation with an edge correction pass."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self.config = config or DEFAULT_CONFIG

    # ------------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------------

    def expected_distance(self, a: Cell, b: Cell) -> float:
        """Centre distance at which *a* and *b* touch face to face."""
        return self.config.half_cube * (a.scale + b.scale)

    def _clamp_floor(self, cell: Cell) -> None:
        floor = self.config.floor_height
        if cell.position[1] < floor:
            cell.position[1] = floor

    def _pin(self, cells: Mapping[int, Cell], anchors: Iterable[int]) -> None:
        for cid in anchors:
            cell = cells.get(cid)
            if cell is not None:
                cell.position = cell.rest_position.copy()

    def anchors(self, cells: Mapping[int, Cell], adjacency: AdjacencyMap) -> set[int]:
        return select_anchors(
            cells, adjacency,
            floor_height=self.config.floor_height,
            tolerance=self.config.floor_tolerance,
        )

    # ------------------------------------------------------------------
    # Frame entry point
    # ------------------------------------------------------------------

    def solve(self, cells: Mapping[int, Cell], adjacency: AdjacencyMap) -> set[int]:
        """Run the full relaxation budget for one frame.

        Cell scales must already be set for this frame.  Returns the
        anchor set of the final pass.
        """
        anchors: set[int] = set()
        for _ in range(self.config.max_iterations):
            anchors = self.relax(cells, adjacency)
        return anchors

    def relax(self, cells: Mapping[int, Cell], adjacency: AdjacencyMap) -> set[int]:
        """One relaxation pass: pin, propagate, sweep, correct."""
        anchors = self.anchors(cells, adjacency)
        self._pin(cells, anchors)
        processed = self.propagate(cells, adjacency, anchors)
        self.sweep(cells, adjacency, anchors, processed)
        self.correct(cells, adjacency, anchors)
        return anchors

    # ------------------------------------------------------------------
    # Breadth-first placement
    # ------------------------------------------------------------------

    def propagate(
        self,
        cells: Mapping[int, Cell],
        adjacency: AdjacencyMap,
        anchors: set[int],
    ) -> set[int]:
        """Place every cell reachable from *anchors*; return the processed ids."""
        seeds = sorted(cid for cid in anchors if cid in cells)
        processed = set(seeds)
        self._walk(cells, adjacency, anchors, processed, deque(seeds))
        return processed

    def sweep(
        self,
        cells: Mapping[int, Cell],
        adjacency: AdjacencyMap,
        anchors: set[int],
        processed: set[int],
    ) -> None:
        """Make each unanchored component rigid around an arbitrary seed.

        The seed keeps its current position, so floating components stay
        wherever earlier frames left them.
        """
        for cid in sorted(cells):
            if cid in processed:
                continue
            processed.add(cid)
            self._walk(cells, adjacency, anchors, processed, deque([cid]))

    def _walk(
        self,
        cells: Mapping[int, Cell],
        adjacency: AdjacencyMap,
        anchors: set[int],
        processed: set[int],
        queue: deque[int],
    ) -> None:
        while queue:
            cid = queue.popleft()
            cell = cells.get(cid)
            if cell is None:
                continue
            for nid, direction in adjacency.get(cid, []):
                if nid in processed or nid in anchors:
                    continue
                neighbor = cells.get(nid)
                if neighbor is None:
                    logger.debug("Skipping edge %d -> %d: cell missing", cid, nid)
                    continue
                neighbor.position = (
                    cell.position + direction * self.expected_distance(cell, neighbor)
                )
                self._clamp_floor(neighbor)
                processed.add(nid)
                queue.append(nid)

    # ------------------------------------------------------------------
    # Correction
    # ------------------------------------------------------------------

    def correct(
        self,
        cells: Mapping[int, Cell],
        adjacency: AdjacencyMap,
        anchors: set[int],
    ) -> int:
        """Nudge cells so every edge has its face-to-face distance.

        Anchors are re-pinned first and never moved; when one endpoint is
        an anchor the other endpoint is moved.  Returns the number of
        cells repositioned.
        """
        self._pin(cells, anchors)
        tol = self.config.correction_tolerance
        moved = 0
        for cid in sorted(adjacency):
            a = cells.get(cid)
            if a is None:
                continue
            for nid, direction in adjacency[cid]:
                b = cells.get(nid)
                if b is None:
                    logger.debug("Skipping edge %d -> %d: cell missing", cid, nid)
                    continue
                a_fixed = cid in anchors
                b_fixed = nid in anchors
                if a_fixed and b_fixed:
                    continue
                expected = self.expected_distance(a, b)
                actual = float(np.linalg.norm(b.position - a.position))
                if abs(actual - expected) <= tol:
                    continue
                if b_fixed:
                    a.position = b.position - direction * expected
                    self._clamp_floor(a)
                else:
                    b.position = a.position + direction * expected
                    self._clamp_floor(b)
                moved += 1
        return moved
