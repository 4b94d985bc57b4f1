"""Live animation demo.

Opens a matplotlib window animating a preset structure in real time.
Press ``s`` to stop or restart the simulation.

Run with:
    python -m voxel_motion.examples.live_demo Tower
"""

from __future__ import annotations

import logging
import sys

import matplotlib.pyplot as plt

from ..core.registry import CellRegistry
from ..logging_config import setup_logging
from ..simulation.controller import SimulationController
from ..simulation.structures import PRESETS
from ..visualization.renderer import VoxelRenderer


def main(argv: list[str] | None = None) -> None:
    setup_logging(logging.DEBUG)
    args = sys.argv[1:] if argv is None else argv
    name = args[0] if args else "Tower"
    if name not in PRESETS:
        raise SystemExit(f"Unknown preset {name!r}; choose from {', '.join(PRESETS)}")

    registry = CellRegistry.from_layout(PRESETS[name]())
    controller = SimulationController(registry, history_limit=1)
    renderer = VoxelRenderer(controller)
    _anim = renderer.animate(num_frames=10_000, fps=30, title=name)
    plt.show()


if __name__ == "__main__":
    main()
