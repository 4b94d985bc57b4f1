"""Exception types raised at the editing and configuration seams.

The per-frame solver never raises; these cover misuse of the registry and
controller from the outside.
"""

from __future__ import annotations


class VoxelMotionError(Exception):
    """Base class for all package errors."""


class ConfigError(VoxelMotionError, ValueError):
    """Invalid configuration key or value."""


class PlacementError(VoxelMotionError, ValueError):
    """A cell cannot be placed at the requested position."""


class RegistryLockedError(VoxelMotionError, RuntimeError):
    """The cell set was edited while simulation is active."""


class SimulationStateError(VoxelMotionError, RuntimeError):
    """An operation was invoked in the wrong simulation state."""
