"""Face-adjacency graph over the placed cells.

Two cells are connected along a face direction ``d`` when the rest
position of one equals the other's plus ``d * cube_size``.  The graph is
built once per simulation entry from rest positions only.
"""

from __future__ import annotations

from typing import Iterable, NamedTuple

import numpy as np

from ..core.cell import Cell

FACE_DIRECTIONS: tuple[tuple[float, float, float], ...] = (
    (1.0, 0.0, 0.0),
    (-1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, -1.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.0, 0.0, -1.0),
)


class Edge(NamedTuple):
    neighbor_id: int
    direction: np.ndarray  # unit axis vector, shape (3,)


AdjacencyMap = dict[int, list[Edge]]


def build_adjacency(
    cells: Iterable[Cell],
    cube_size: float,
    tolerance: float = 0.01,
) -> AdjacencyMap:
    """Return ``{cell_id: [Edge, ...]}`` for every cell.

    Brute-force all-pairs check; every cell gets an entry, possibly empty.
    Each direction of a connection is recorded independently.
    """
    cell_list = list(cells)
    directions = [np.array(d) for d in FACE_DIRECTIONS]
    adjacency: AdjacencyMap = {c.id: [] for c in cell_list}
    for a in cell_list:
        for b in cell_list:
            if a.id == b.id:
                continue
            offset = b.rest_position - a.rest_position
            for d in directions:
                if np.all(np.abs(offset - d * cube_size) <= tolerance):
                    adjacency[a.id].append(Edge(b.id, d))
                    break
    return adjacency
