"""Worm demo.

Builds the preset worm (a raised body on a single floor pad with
alternating muscles), runs one full muscle cycle at 30 fps and renders
the rest pose next to the most contracted and most extended frames.
"""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt

from ..core.registry import CellRegistry
from ..logging_config import setup_logging
from ..simulation.controller import SimulationController
from ..simulation.structures import worm
from ..visualization.renderer import VoxelRenderer


def main() -> None:
    setup_logging(logging.INFO)

    registry = CellRegistry.from_layout(worm(6))
    controller = SimulationController(registry)
    renderer = VoxelRenderer(controller)

    fig = plt.figure(figsize=(18, 6))
    ax_rest = fig.add_subplot(1, 3, 1, projection="3d")
    renderer.render_frame(title="Rest pose", ax=ax_rest)

    controller.enter()
    fps = 30
    frames = int(round(controller.config.cycle_seconds * fps))
    history = controller.run(frames, delta_time=1.0 / fps)

    # Scale of the first actuator identifies contraction/extension.
    actuator = next(c.id for c in registry if c.is_actuator)
    contracted = min(history, key=lambda f: f.scales[actuator])
    extended = max(history, key=lambda f: f.scales[actuator])

    ax_c = fig.add_subplot(1, 3, 2, projection="3d")
    renderer.render_frame(contracted, title=f"Contracted (t={contracted.elapsed:.2f}s)", ax=ax_c)
    ax_e = fig.add_subplot(1, 3, 3, projection="3d")
    renderer.render_frame(extended, title=f"Extended (t={extended.elapsed:.2f}s)", ax=ax_e)

    controller.exit()
    plt.tight_layout()
    plt.savefig("worm_demo.png", dpi=150)
    plt.show()


if __name__ == "__main__":
    main()
