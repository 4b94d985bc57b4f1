"""Preset structures for demos and the editor.

Each factory returns a layout: a list of ``(CellType, (i, j, k))``
records in grid coordinates, where ``j=0`` rests on the dish.  Feed a
layout to :meth:`CellRegistry.from_layout`.
"""

from __future__ import annotations

from typing import Callable

from ..core.cell import CellType

Layout = list[tuple[CellType, tuple[int, int, int]]]

S = CellType.STRUCTURAL
A = CellType.ACTUATOR
K = CellType.ANCHOR


def worm(length: int = 6) -> Layout:
    """Raised body on a single floor pad; every other body cell is a muscle."""
    layout: Layout = [(S, (0, 0, 0))]
    for i in range(length):
        layout.append((A if i % 2 else S, (i, 1, 0)))
    return layout


def tower(height: int = 5) -> Layout:
    """Vertical column with a muscle in the middle; it bobs up and down."""
    mid = height // 2
    return [(A if j == mid else S, (0, j, 0)) for j in range(height)]


def bridge(span: int = 5, height: int = 2) -> Layout:
    """Two legs joined by a beam with a muscle at its centre."""
    layout: Layout = []
    for j in range(height):
        layout.append((S, (0, j, 0)))
        layout.append((S, (span - 1, j, 0)))
    centre = (span - 1) // 2
    for i in range(span):
        layout.append((A if i == centre else S, (i, height, 0)))
    return layout


def pendulum(length: int = 4, lift: int = 5) -> Layout:
    """Anchor block held off the floor with a sideways arm of muscles."""
    layout: Layout = [(K, (0, lift, 0))]
    for i in range(1, length + 1):
        layout.append((A if i % 2 else S, (i, lift, 0)))
    return layout


PRESETS: dict[str, Callable[[], Layout]] = {
    "Worm": worm,
    "Tower": tower,
    "Bridge": bridge,
    "Pendulum": pendulum,
}
