"""Anchor selection: which cells are held fixed during a relaxation pass."""

from __future__ import annotations

from typing import Mapping

from ..core.cell import Cell
from .adjacency import AdjacencyMap


def select_anchors(
    cells: Mapping[int, Cell],
    adjacency: AdjacencyMap,
    floor_height: float,
    tolerance: float = 0.01,
) -> set[int]:
    """Return the ids of the cells held fixed.

    Anchor blocks take priority.  Without one, every non-actuator cell
    whose rest position sits on the dish floor is an anchor; actuators
    stay free so a muscle touching the floor can still push.  A cell
    with no adjacency edges is always an anchor.
    """
    anchors = {cid for cid, c in cells.items() if c.is_anchor}
    if not anchors:
        anchors = {
            cid for cid, c in cells.items()
            if not c.is_actuator
            and abs(c.rest_position[1] - floor_height) <= tolerance
        }
    anchors.update(cid for cid in cells if not adjacency.get(cid))
    return anchors
