"""Grid health reports, diagnostics events and telemetry adapters."""

from floorgrid.diagnostics.event import DiagnosticEvent
from floorgrid.diagnostics.hub import DiagnosticHub
from floorgrid.diagnostics.report import (
    CanvasInfo,
    DiagnosticIssue,
    DiagnosticsReport,
    GridInfo,
    HealthStatus,
    run_diagnostics,
)
from floorgrid.diagnostics.telemetry import (
    GuardedTelemetry,
    LoggingTelemetry,
    guard_notices,
    guard_telemetry,
)

__all__ = [
    "CanvasInfo",
    "DiagnosticEvent",
    "DiagnosticHub",
    "DiagnosticIssue",
    "DiagnosticsReport",
    "GridInfo",
    "GuardedTelemetry",
    "HealthStatus",
    "LoggingTelemetry",
    "guard_notices",
    "guard_telemetry",
    "run_diagnostics",
]
