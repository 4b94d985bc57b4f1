"""Matplotlib 3D rendering for voxel structures."""

from __future__ import annotations

from typing import Any, Mapping

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.animation import FuncAnimation

from ..core.cell import CellType
from ..simulation.controller import FrameOutput, SimulationController
from ..simulation.loop import FrameLoop

CELL_COLORS: dict[CellType, str] = {
    CellType.STRUCTURAL: "#8fa3bf",
    CellType.ACTUATOR: "#ef553b",
    CellType.ANCHOR: "#f2c14e",
}


class VoxelRenderer:
    """Draws the cells of a controller's registry as scaled cubes.

    The renderer only reads positions and scales; all motion comes from
    the controller.  Press ``s`` in an animation window to toggle
    simulation mode.
    """

    def __init__(self, controller: SimulationController) -> None:
        self.controller = controller

    @property
    def config(self):
        return self.controller.config

    def _pose(
        self, output: FrameOutput | None
    ) -> tuple[Mapping[int, np.ndarray], Mapping[int, float], bool]:
        if output is not None:
            return output.positions, output.scales, output.base_visible
        cells = self.controller.registry.cells
        return (
            {cid: c.position for cid, c in cells.items()},
            {cid: c.scale for cid, c in cells.items()},
            self.controller.base_visible,
        )

    def _draw_base(self, ax: Any) -> None:
        r = self.config.base_radius
        theta = np.linspace(0, 2 * np.pi, 64)
        radii = np.linspace(0, r, 2)
        t, rr = np.meshgrid(theta, radii)
        ax.plot_surface(rr * np.cos(t), np.zeros_like(t), rr * np.sin(t),
                        color="lightgray", alpha=0.3, linewidth=0)

    def render_frame(
        self,
        output: FrameOutput | None = None,
        *,
        title: str = "Voxel Structure",
        ax: Any = None,
    ) -> Any:
        """Draw one pose.  With no *output*, draws the registry's current pose."""
        if ax is None:
            fig = plt.figure(figsize=(8, 8))
            ax = fig.add_subplot(projection="3d")

        positions, scales, base_visible = self._pose(output)
        cells = self.controller.registry.cells
        size = self.config.cube_size

        if base_visible:
            self._draw_base(ax)

        for cid, pos in positions.items():
            cell = cells.get(cid)
            if cell is None:
                continue
            edge = size * scales.get(cid, 1.0)
            # World y is up; matplotlib's z axis is up.
            ax.bar3d(
                pos[0] - edge / 2, pos[2] - edge / 2, pos[1] - edge / 2,
                edge, edge, edge,
                color=CELL_COLORS[cell.type], edgecolor="black",
                linewidth=0.3, shade=True,
            )

        r = self.config.base_radius
        ax.set_xlim(-r, r)
        ax.set_ylim(-r, r)
        ax.set_zlim(0, r)
        ax.set_xlabel("x")
        ax.set_ylabel("z")
        ax.set_zlabel("y")
        ax.set_title(title)
        return ax

    def animate(
        self,
        num_frames: int,
        *,
        fps: int = 30,
        title: str = "Voxel Simulation",
        loop: FrameLoop | None = None,
    ) -> FuncAnimation:
        """Animate the simulation with a wall-clock :class:`FrameLoop`.

        Starts simulation if it is not already running.
        """
        fig = plt.figure(figsize=(8, 8))
        ax = fig.add_subplot(projection="3d")
        frame_loop = loop or FrameLoop(self.controller)
        if not frame_loop.running:
            frame_loop.start()

        def update(frame: int) -> Any:
            output = frame_loop.frame(frame_loop.token)
            ax.cla()
            if output is None:
                self.render_frame(title=f"{title} (paused)", ax=ax)
            else:
                self.render_frame(
                    output, title=f"{title} — t={output.elapsed:.2f}s", ax=ax
                )
            return (ax,)

        def on_key(event: Any) -> None:
            if event.key == "s":
                frame_loop.toggle()

        fig.canvas.mpl_connect("key_press_event", on_key)
        anim = FuncAnimation(fig, update, frames=num_frames,
                             interval=int(1000 / fps), blit=False)
        return anim
