"""Tests for the simulation controller, frame loop and preset structures."""

from __future__ import annotations

import numpy as np
import pytest

from voxel_motion.core.cell import CellType
from voxel_motion.core.errors import RegistryLockedError, SimulationStateError
from voxel_motion.core.registry import CellRegistry
from voxel_motion.simulation.controller import SimulationController, SimulationState
from voxel_motion.simulation.loop import FrameLoop
from voxel_motion.simulation.structures import PRESETS, pendulum, tower, worm


def _worm_controller(**kwargs) -> SimulationController:
    return SimulationController(CellRegistry.from_layout(worm(6)), **kwargs)


class FakeTimer:
    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


# ── Controller ───────────────────────────────────────────────────────

class TestSimulationController:
    def test_refuses_empty_structure(self):
        ctl = SimulationController(CellRegistry())
        assert ctl.enter() is False
        assert ctl.state is SimulationState.IDLE
        assert ctl.base_visible
        assert ctl.adjacency is None

    def test_enter_sets_up_state(self):
        ctl = _worm_controller()
        assert ctl.enter()
        assert ctl.is_active
        assert not ctl.base_visible
        assert ctl.registry.locked
        assert set(ctl.adjacency) == set(ctl.registry.cells)
        assert ctl.snapshot is not None
        assert ctl.elapsed == 0.0

    def test_enter_twice_is_refused(self):
        ctl = _worm_controller()
        assert ctl.enter()
        assert ctl.enter() is False
        assert ctl.is_active

    def test_edits_blocked_while_active(self):
        ctl = _worm_controller()
        ctl.enter()
        with pytest.raises(RegistryLockedError):
            ctl.registry.add_at(CellType.STRUCTURAL, (0, 0, 3))
        ctl.exit()
        ctl.registry.add_at(CellType.STRUCTURAL, (0, 0, 3))

    def test_tick_while_idle_raises(self):
        ctl = _worm_controller()
        with pytest.raises(SimulationStateError):
            ctl.tick(0.1)

    def test_restore_round_trip(self):
        ctl = _worm_controller()
        rest = {c.id: c.rest_position.copy() for c in ctl.registry}
        ctl.enter()
        ctl.run(20, delta_time=0.05)
        moved = any(
            not np.allclose(c.position, rest[c.id]) for c in ctl.registry
        )
        assert moved
        ctl.exit()
        for c in ctl.registry:
            assert np.array_equal(c.position, rest[c.id])
            assert np.array_equal(c.rest_position, rest[c.id])
            assert c.scale == 1.0
        assert ctl.base_visible
        assert ctl.adjacency is None
        assert ctl.snapshot is None
        assert not ctl.registry.locked

    def test_exit_while_idle_is_noop(self):
        ctl = _worm_controller()
        assert ctl.exit() is False

    def test_reenter_starts_fresh(self):
        ctl = _worm_controller()
        ctl.enter()
        ctl.run(5, delta_time=0.1)
        ctl.exit()
        ctl.enter()
        assert ctl.frame_count == 0
        assert ctl.history == []
        assert ctl.elapsed == 0.0
        out = ctl.step(0.1)
        assert out.frame == 0
        assert abs(out.elapsed - 0.1) < 1e-12

    def test_run_records_history(self):
        ctl = _worm_controller()
        ctl.enter()
        history = ctl.run(3, delta_time=0.5)
        assert len(history) == 3
        assert [f.frame for f in history] == [0, 1, 2]
        assert [f.elapsed for f in history] == [0.5, 1.0, 1.5]
        assert all(not f.base_visible for f in history)

    def test_history_limit(self):
        ctl = _worm_controller(history_limit=2)
        ctl.enter()
        ctl.run(5, delta_time=0.1)
        assert len(ctl.history) == 2
        assert ctl.history[-1].frame == 4

    def test_output_is_a_copy(self):
        ctl = _worm_controller()
        ctl.enter()
        out = ctl.tick(0.2)
        out.positions[0][0] = 99.0
        assert ctl.registry.get(0).position[0] != 99.0

    def test_toggle(self):
        ctl = _worm_controller()
        assert ctl.toggle() is True
        assert ctl.toggle() is False
        assert ctl.state is SimulationState.IDLE


# ── Frame loop ───────────────────────────────────────────────────────

class TestFrameLoop:
    def test_frame_uses_wall_clock(self):
        timer = FakeTimer()
        loop = FrameLoop(_worm_controller(), timer=timer)
        token = loop.start()
        assert token is not None
        timer.now += 0.25
        out = loop.frame(token)
        assert out is not None
        assert abs(out.elapsed - 0.25) < 1e-12

    def test_start_refused_on_empty(self):
        loop = FrameLoop(SimulationController(CellRegistry()))
        assert loop.start() is None
        assert not loop.running
        assert loop.frame() is None

    def test_cancel_stops_pending_callbacks(self):
        ctl = _worm_controller()
        loop = FrameLoop(ctl, timer=FakeTimer())
        token = loop.start()
        loop.cancel()
        assert not ctl.is_active
        assert loop.frame(token) is None
        assert ctl.frame_count == 0

    def test_stale_token_after_restart(self):
        ctl = _worm_controller()
        loop = FrameLoop(ctl, timer=FakeTimer())
        old = loop.start()
        loop.cancel()
        new = loop.start()
        assert new != old
        assert loop.frame(old) is None
        assert loop.frame(new) is not None
        assert ctl.frame_count == 1

    def test_controller_stopped_outside_loop(self):
        ctl = _worm_controller()
        loop = FrameLoop(ctl, timer=FakeTimer())
        token = loop.start()
        ctl.exit()
        assert loop.frame(token) is None
        assert not loop.running
        assert ctl.frame_count == 0
        # A fresh start still works afterwards
        assert loop.frame(loop.start()) is not None

    def test_on_frame_callback(self):
        seen = []
        loop = FrameLoop(_worm_controller(), timer=FakeTimer(),
                         on_frame=seen.append)
        loop.start()
        loop.frame()
        loop.frame()
        assert [f.frame for f in seen] == [0, 1]

    def test_toggle(self):
        ctl = _worm_controller()
        loop = FrameLoop(ctl, timer=FakeTimer())
        assert loop.toggle() is True
        assert ctl.is_active
        assert loop.toggle() is False
        assert not ctl.is_active


# ── Preset structures ────────────────────────────────────────────────

class TestStructures:
    def test_presets_build(self):
        for name, factory in PRESETS.items():
            reg = CellRegistry.from_layout(factory())
            assert len(reg) > 0, name
            assert any(c.is_actuator for c in reg), name

    def test_tower(self):
        reg = CellRegistry.from_layout(tower(5))
        ys = sorted(round(float(c.rest_position[1]), 6) for c in reg)
        assert ys == [0.1, 0.3, 0.5, 0.7, 0.9]
        assert reg.get(2).is_actuator

    def test_pendulum_has_raised_anchor(self):
        reg = CellRegistry.from_layout(pendulum(4, lift=5))
        anchor = reg.anchor()
        assert anchor is not None
        assert abs(anchor.rest_position[1] - 1.1) < 1e-9
