"""Contracts the grid engine consumes from its host."""

from floorgrid.api.logging import LoggingConfig
from floorgrid.api.surface import REQUIRED_SURFACE_OPERATIONS, RenderSurface
from floorgrid.api.telemetry import GridNotice, NoticeSink, TelemetrySink

__all__ = [
    "GridNotice",
    "LoggingConfig",
    "NoticeSink",
    "REQUIRED_SURFACE_OPERATIONS",
    "RenderSurface",
    "TelemetrySink",
]
