"""Interactive Streamlit editor and simulator for voxel structures.

Run with:
    streamlit run app.py
"""

from __future__ import annotations

import json
from typing import Any, Mapping

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import streamlit as st
import streamlit.components.v1 as components

from voxel_motion.core.cell import CellType
from voxel_motion.core.errors import PlacementError, RegistryLockedError
from voxel_motion.core.registry import CellRegistry
from voxel_motion.logging_config import setup_logging
from voxel_motion.simulation.controller import FrameOutput, SimulationController
from voxel_motion.simulation.structures import PRESETS
from voxel_motion.visualization.renderer import CELL_COLORS

# ═══════════════════════════════════════════════════════════════════════
#  Dark plotly theme
# ═══════════════════════════════════════════════════════════════════════

_LAYOUT_DEFAULTS = dict(
    template="plotly_dark",
    paper_bgcolor="#0e1117",
    plot_bgcolor="#0e1117",
    font=dict(color="#fafafa"),
    margin=dict(l=0, r=0, t=50, b=0),
    height=600,
    showlegend=True,
)

# Corner offsets and triangle indices of a unit cube centred at the origin.
_CUBE_CORNERS = np.array([
    [-1, -1, -1], [1, -1, -1], [1, 1, -1], [-1, 1, -1],
    [-1, -1, 1], [1, -1, 1], [1, 1, 1], [-1, 1, 1],
], dtype=float) / 2
_CUBE_I = [0, 0, 4, 4, 0, 0, 1, 1, 0, 0, 3, 3]
_CUBE_J = [1, 2, 5, 6, 1, 5, 2, 6, 3, 7, 2, 6]
_CUBE_K = [2, 3, 6, 7, 5, 4, 6, 5, 7, 4, 6, 7]


# ═══════════════════════════════════════════════════════════════════════
#  Plotly rendering helpers
# ═══════════════════════════════════════════════════════════════════════


def _cube_mesh(
    centres: list[np.ndarray],
    edges: list[float],
    color: str,
    name: str,
) -> go.Mesh3d:
    """One Mesh3d holding every cube of a given type.

    World y is up; plotly's z axis is up, so y and z are swapped.
    """
    xs: list[float] = []
    ys: list[float] = []
    zs: list[float] = []
    ii: list[int] = []
    jj: list[int] = []
    kk: list[int] = []
    for n, (c, e) in enumerate(zip(centres, edges)):
        corners = c + _CUBE_CORNERS * e
        xs += corners[:, 0].tolist()
        ys += corners[:, 2].tolist()
        zs += corners[:, 1].tolist()
        ii += [i + 8 * n for i in _CUBE_I]
        jj += [j + 8 * n for j in _CUBE_J]
        kk += [k + 8 * n for k in _CUBE_K]
    return go.Mesh3d(
        x=xs, y=ys, z=zs, i=ii, j=jj, k=kk,
        color=color, opacity=1.0, flatshading=True, name=name,
        showlegend=True, hoverinfo="name",
    )


def _base_trace(radius: float) -> go.Surface:
    theta = np.linspace(0, 2 * np.pi, 64)
    radii = np.linspace(0, radius, 2)
    t, r = np.meshgrid(theta, radii)
    return go.Surface(
        x=r * np.cos(t), y=r * np.sin(t), z=np.zeros_like(t),
        colorscale=[[0, "#444"], [1, "#444"]], showscale=False,
        opacity=0.4, hoverinfo="skip", name="Dish",
    )


def _structure_figure(
    registry: CellRegistry,
    positions: Mapping[int, np.ndarray],
    scales: Mapping[int, float],
    base_visible: bool,
    title: str,
) -> go.Figure:
    cfg = registry.config
    by_type: dict[CellType, tuple[list[np.ndarray], list[float]]] = {
        t: ([], []) for t in CellType
    }
    for cid, pos in positions.items():
        cell = registry.get(cid)
        if cell is None:
            continue
        centres, edges = by_type[cell.type]
        centres.append(np.asarray(pos, dtype=float))
        edges.append(cfg.cube_size * scales.get(cid, 1.0))

    traces: list[Any] = []
    if base_visible:
        traces.append(_base_trace(cfg.base_radius))
    for cell_type, (centres, edges) in by_type.items():
        if centres:
            traces.append(_cube_mesh(centres, edges, CELL_COLORS[cell_type],
                                     cell_type.value.title()))

    r = cfg.base_radius
    fig = go.Figure(data=traces)
    fig.update_layout(
        **_LAYOUT_DEFAULTS,
        title=title,
        scene=dict(
            xaxis=dict(range=[-r, r], title="x"),
            yaxis=dict(range=[-r, r], title="z"),
            zaxis=dict(range=[0, r], title="y"),
            aspectmode="manual",
            aspectratio=dict(x=1, y=1, z=0.5),
        ),
        uirevision="stable",
    )
    return fig


def _registry_figure(registry: CellRegistry, base_visible: bool) -> go.Figure:
    return _structure_figure(
        registry,
        {c.id: c.position for c in registry},
        {c.id: c.scale for c in registry},
        base_visible,
        title=f"Structure — {len(registry)} cells",
    )


def _frame_to_json(registry: CellRegistry, output: FrameOutput) -> dict:
    fig = _structure_figure(
        registry, output.positions, output.scales, output.base_visible,
        title=f"Simulating — t = {output.elapsed:.2f}s",
    )
    return json.loads(fig.to_json())


def _build_animation_html(
    frames_json: list[dict],
    play_speed_ms: int,
    height: int = 600,
) -> str:
    """Self-contained HTML that plays a batch of frames with Plotly.react()."""
    data_json = json.dumps(frames_json)

    return f"""<!DOCTYPE html>
<html><head>
<script src="https://cdn.plot.ly/plotly-2.35.2.min.js"></script>
<style>
  html, body {{ margin:0; padding:0; background:#0e1117; overflow:hidden; }}
  #chart {{ width:100%; height:{height}px; }}
</style>
</head><body>
<div id="chart"></div>
<script>
(function() {{
  var frames = {data_json};
  Plotly.newPlot('chart', frames[0].data, frames[0].layout,
                 {{responsive:true, displayModeBar:false}});
  if (frames.length < 2) return;
  var idx = 0;
  setInterval(function() {{
    idx++;
    if (idx >= frames.length) return;
    Plotly.react('chart', frames[idx].data, frames[idx].layout);
  }}, {play_speed_ms});
}})();
</script>
</body></html>"""


def _cell_table(registry: CellRegistry) -> pd.DataFrame:
    rows = []
    for c in registry:
        rows.append({
            "id": c.id,
            "type": c.type.value,
            "rest x": round(float(c.rest_position[0]), 3),
            "rest y": round(float(c.rest_position[1]), 3),
            "rest z": round(float(c.rest_position[2]), 3),
            "scale": round(c.scale, 3),
        })
    return pd.DataFrame(rows, columns=["id", "type", "rest x", "rest y", "rest z", "scale"])


# ═══════════════════════════════════════════════════════════════════════
#  Editor and simulation panels
# ═══════════════════════════════════════════════════════════════════════


def _new_controller(preset: str | None) -> SimulationController:
    if preset is None:
        registry = CellRegistry()
    else:
        registry = CellRegistry.from_layout(PRESETS[preset]())
    return SimulationController(registry, history_limit=1)


def _editor_sidebar(controller: SimulationController) -> None:
    registry = controller.registry

    st.sidebar.header("Structure")
    preset = st.sidebar.selectbox("Preset", list(PRESETS.keys()))
    c1, c2 = st.sidebar.columns(2)
    if c1.button("Load preset", use_container_width=True,
                 disabled=controller.is_active):
        st.session_state.controller = _new_controller(preset)
        st.rerun()
    if c2.button("Clear", use_container_width=True,
                 disabled=controller.is_active):
        st.session_state.controller = _new_controller(None)
        st.rerun()

    st.sidebar.header("Add cell")
    cell_type = st.sidebar.radio(
        "Type", [t.value for t in CellType], horizontal=True,
        format_func=str.title,
    )
    gi, gj, gk = st.sidebar.columns(3)
    i = gi.number_input("i", -9, 9, 0, step=1)
    j = gj.number_input("j", 0, 9, 0, step=1)
    k = gk.number_input("k", -9, 9, 0, step=1)
    if st.sidebar.button("Add", use_container_width=True,
                         disabled=controller.is_active):
        try:
            registry.add_at(cell_type, (int(i), int(j), int(k)))
        except (PlacementError, RegistryLockedError) as exc:
            st.sidebar.error(str(exc))

    if len(registry):
        st.sidebar.header("Remove cell")
        cid = st.sidebar.selectbox("Cell id", sorted(c.id for c in registry))
        if st.sidebar.button("Remove", use_container_width=True,
                             disabled=controller.is_active):
            try:
                registry.remove(cid)
            except RegistryLockedError as exc:
                st.sidebar.error(str(exc))


def _simulation_panel(controller: SimulationController, play_speed: int) -> None:
    """Batch-computes frames and plays them in the browser.

    ``run_every`` on the enclosing fragment triggers the next batch.
    """
    registry = controller.registry
    if not controller.is_active:
        st.plotly_chart(_registry_figure(registry, controller.base_visible),
                        use_container_width=True, key="chart_structure")
        return

    batch = max(5, min(30, int(8000 / play_speed)))
    dt = play_speed / 1000.0
    frames: list[dict] = []
    for _ in range(batch):
        frames.append(_frame_to_json(registry, controller.step(dt)))

    st.caption(f"**Frames {controller.frame_count - batch + 1}–{controller.frame_count}**")
    components.html(_build_animation_html(frames, play_speed), height=650)


def main() -> None:
    st.set_page_config(
        page_title="Voxel Motion",
        page_icon="\U0001f9ca",
        layout="wide",
    )
    setup_logging()

    st.markdown("<h1 style='margin-bottom:0'>Voxel Motion</h1>",
                unsafe_allow_html=True)
    st.caption("Build a structure from cells, then watch the muscles move it")

    if "controller" not in st.session_state:
        st.session_state.controller = _new_controller("Worm")
    controller: SimulationController = st.session_state.controller

    _editor_sidebar(controller)

    st.sidebar.header("Playback")
    play_speed = st.sidebar.slider("Frame interval (ms)", 33, 500, 66, 1)

    simulate = st.toggle("Simulate", value=controller.is_active)
    if simulate and not controller.is_active:
        if not controller.enter():
            st.warning("Add at least one cell before simulating.")
    elif not simulate and controller.is_active:
        controller.exit()

    if controller.is_active:
        batch = max(5, min(30, int(8000 / play_speed)))
        _interval = batch * play_speed / 1000.0
    else:
        _interval = None

    @st.fragment(run_every=_interval)
    def _panel():
        _simulation_panel(controller, play_speed)

    _panel()

    with st.expander("Cells", expanded=False):
        st.dataframe(_cell_table(controller.registry), use_container_width=True,
                     hide_index=True)


if __name__ == "__main__":
    main()
