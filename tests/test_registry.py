"""Tests for cells, the cell registry and configuration."""

from __future__ import annotations

import numpy as np
import pytest

from voxel_motion.core.cell import Cell, CellType
from voxel_motion.core.config import SimulationConfig
from voxel_motion.core.errors import ConfigError, PlacementError, RegistryLockedError
from voxel_motion.core.registry import CellRegistry


class TestCell:
    def test_position_defaults_to_rest(self):
        c = Cell(id=0, type=CellType.STRUCTURAL, rest_position=(0, 0.1, 0))
        assert np.allclose(c.position, [0, 0.1, 0])
        c.position[0] = 5.0
        # Position is a copy, not a view of rest_position
        assert c.rest_position[0] == 0.0

    def test_type_from_string(self):
        c = Cell(id=0, type="actuator", rest_position=(0, 0.1, 0))
        assert c.type is CellType.ACTUATOR
        assert c.is_actuator
        assert not c.is_anchor

    def test_reset(self):
        c = Cell(id=0, type=CellType.ACTUATOR, rest_position=(0, 0.1, 0))
        c.position = np.array([1.0, 2.0, 3.0])
        c.scale = 0.4
        c.reset()
        assert np.allclose(c.position, c.rest_position)
        assert c.scale == 1.0


class TestCellRegistry:
    def test_add_assigns_ids(self):
        reg = CellRegistry()
        a = reg.add(CellType.STRUCTURAL, (0, 0.1, 0))
        b = reg.add(CellType.ACTUATOR, (0.2, 0.1, 0))
        assert (a.id, b.id) == (0, 1)
        assert len(reg) == 2
        assert 1 in reg

    def test_collision_rejected(self):
        reg = CellRegistry()
        reg.add(CellType.STRUCTURAL, (0, 0.1, 0))
        with pytest.raises(PlacementError):
            reg.add(CellType.ACTUATOR, (0, 0.1, 0))
        assert len(reg) == 1

    def test_off_grid_rejected(self):
        reg = CellRegistry()
        reg.add(CellType.STRUCTURAL, (0, 0.1, 0))
        with pytest.raises(PlacementError):
            reg.add(CellType.ACTUATOR, (0, 0.1, 0.23))
        with pytest.raises(PlacementError):
            reg.add(CellType.ACTUATOR, (0.01, 0.1, 0.2))
        assert len(reg) == 1

    def test_grid_position_stored_exactly(self):
        reg = CellRegistry()
        c = reg.add(CellType.STRUCTURAL, (0.2 + 1e-9, 0.30000000000000004, 0))
        assert np.array_equal(c.rest_position, reg.grid_to_world((1, 1, 0)))

    def test_just_below_floor_rejected(self):
        reg = CellRegistry()
        with pytest.raises(PlacementError):
            reg.add(CellType.STRUCTURAL, (0, 0.095, 0))
        assert len(reg) == 0

    def test_below_floor_rejected(self):
        reg = CellRegistry()
        with pytest.raises(PlacementError):
            reg.add(CellType.STRUCTURAL, (0, -0.1, 0))

    def test_outside_dish_rejected(self):
        reg = CellRegistry(SimulationConfig(base_radius=1.0))
        with pytest.raises(PlacementError):
            reg.add(CellType.STRUCTURAL, (1.2, 0.1, 0))

    def test_second_anchor_replaces_first(self):
        reg = CellRegistry()
        first = reg.add(CellType.ANCHOR, (0, 0.1, 0))
        second = reg.add(CellType.ANCHOR, (0.4, 0.1, 0))
        assert first.id not in reg
        assert reg.anchor() is second
        assert sum(1 for c in reg if c.is_anchor) == 1

    def test_remove_missing_is_noop(self):
        reg = CellRegistry()
        reg.add(CellType.STRUCTURAL, (0, 0.1, 0))
        reg.remove(42)
        assert len(reg) == 1

    def test_locked_registry_refuses_edits(self):
        reg = CellRegistry()
        c = reg.add(CellType.STRUCTURAL, (0, 0.1, 0))
        reg.lock()
        with pytest.raises(RegistryLockedError):
            reg.add(CellType.STRUCTURAL, (0.2, 0.1, 0))
        with pytest.raises(RegistryLockedError):
            reg.remove(c.id)
        reg.unlock()
        reg.remove(c.id)
        assert len(reg) == 0

    def test_grid_to_world(self):
        reg = CellRegistry()
        assert np.allclose(reg.grid_to_world((0, 0, 0)), [0, 0.1, 0])
        assert np.allclose(reg.grid_to_world((2, 1, -1)), [0.4, 0.3, -0.2])

    def test_snap_to_grid(self):
        reg = CellRegistry()
        assert np.allclose(reg.snap_to_grid((0.21, 0.05, -0.19)), [0.2, 0.1, -0.2])
        assert np.allclose(reg.snap_to_grid((0.0, 0.52, 0.0)), [0.0, 0.5, 0.0])

    def test_cell_at(self):
        reg = CellRegistry()
        c = reg.add_at(CellType.STRUCTURAL, (1, 0, 0))
        assert reg.cell_at((0.2, 0.1, 0.0)) is c
        assert reg.cell_at((0.6, 0.1, 0.0)) is None

    def test_from_layout(self):
        reg = CellRegistry.from_layout([
            (CellType.STRUCTURAL, (0, 0, 0)),
            ("actuator", (0, 1, 0)),
        ])
        assert len(reg) == 2
        assert reg.get(1).type is CellType.ACTUATOR


class TestSimulationConfig:
    def test_defaults(self):
        cfg = SimulationConfig()
        assert cfg.cube_size == 0.2
        assert cfg.max_iterations == 5
        assert abs(cfg.floor_height - 0.1) < 1e-12
        assert abs(cfg.placement_tolerance - 0.1) < 1e-12
        assert abs(cfg.cycle_seconds - 4 / 3) < 1e-9

    def test_from_mapping_rejects_unknown(self):
        with pytest.raises(ConfigError):
            SimulationConfig.from_mapping({"cube_size": 0.2, "gravity": 9.8})

    def test_from_mapping(self):
        cfg = SimulationConfig.from_mapping({"max_iterations": 3})
        assert cfg.max_iterations == 3

    def test_invalid_values(self):
        with pytest.raises(ConfigError):
            SimulationConfig(cube_size=0)
        with pytest.raises(ConfigError):
            SimulationConfig(max_iterations=0)

    def test_with_overrides(self):
        cfg = SimulationConfig().with_overrides(scale_amplitude=0.2)
        assert cfg.scale_amplitude == 0.2
        with pytest.raises(ConfigError):
            SimulationConfig().with_overrides(unknown=1)
