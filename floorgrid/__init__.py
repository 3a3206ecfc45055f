"""Grid reliability engine for floor-plan render surfaces."""

from floorgrid.grid.engine import GridEngine
from floorgrid.grid.model import FidelityTier, GridLayerState
from floorgrid.grid.monitor import MonitoringState
from floorgrid.runtime.config import MonitorOptions

__all__ = [
    "FidelityTier",
    "GridEngine",
    "GridLayerState",
    "MonitorOptions",
    "MonitoringState",
]
