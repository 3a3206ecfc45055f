"""Periodic grid health monitor driven by the scheduler."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from floorgrid.api.surface import RenderSurface
from floorgrid.api.telemetry import GridNotice, NoticeSink, TelemetrySink
from floorgrid.diagnostics.report import DiagnosticsReport, HealthStatus, run_diagnostics
from floorgrid.grid.model import GridLayerState, exclusive
from floorgrid.grid.registry import GridRegistry
from floorgrid.grid.repair import RepairEngine, apply_fixes
from floorgrid.grid.validator import validate_surface
from floorgrid.runtime.config import MonitorOptions
from floorgrid.runtime.retry import is_on_cooldown
from floorgrid.runtime.scheduler import Scheduler
from floorgrid.runtime.time import Clock

_LOG = logging.getLogger(__name__)

RECOVERY_MILESTONES: tuple[int, ...] = (3, 10)


class MonitorPhase(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    CHECKING = "checking"
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    CRITICAL = "critical"
    STOPPED = "stopped"


_RUNNING_PHASES = frozenset(
    {
        MonitorPhase.ACTIVE,
        MonitorPhase.CHECKING,
        MonitorPhase.HEALTHY,
        MonitorPhase.DEGRADED,
        MonitorPhase.CRITICAL,
    }
)


@dataclass(slots=True)
class MonitoringState:
    """Caller-owned handle for one monitored surface."""

    phase: MonitorPhase = MonitorPhase.IDLE
    timer_handle: int | None = None
    repair_attempts: int = 0
    consecutive_errors: int = 0
    last_repair_at: float | None = None
    started_at: float | None = None
    tick_count: int = 0
    recovery_total: int = 0
    options: MonitorOptions = field(default_factory=MonitorOptions)
    last_report: DiagnosticsReport | None = None
    layer: GridLayerState | None = field(default=None, repr=False)

    @property
    def is_active(self) -> bool:
        return self.phase in _RUNNING_PHASES


class GridMonitor:
    """Runs the check/repair loop for any number of caller-owned monitoring states."""

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        clock: Clock,
        repair: RepairEngine,
        registry: GridRegistry,
        telemetry: TelemetrySink,
        notify: NoticeSink,
    ) -> None:
        self._scheduler = scheduler
        self._clock = clock
        self._repair = repair
        self._registry = registry
        self._telemetry = telemetry
        self._notify = notify

    def start(
        self,
        state: MonitoringState,
        surface: RenderSurface | None,
        layer: GridLayerState,
        options: MonitorOptions | None = None,
    ) -> bool:
        if state.is_active:
            _LOG.debug("grid monitoring already active timer=%s", state.timer_handle)
            return False
        if surface is None or not validate_surface(surface):
            self._telemetry.capture_issue(
                "cannot start monitoring with invalid surface",
                "monitoring-start",
                {"level": "warning", "surface_present": surface is not None},
            )
            return False
        resolved = options or MonitorOptions()
        state.options = resolved
        state.repair_attempts = 0
        state.consecutive_errors = 0
        state.last_repair_at = None
        state.tick_count = 0
        state.recovery_total = 0
        state.last_report = None
        state.layer = layer
        state.started_at = self._clock.now_ms()
        state.timer_handle = self._scheduler.call_every(
            resolved.check_interval_ms,
            lambda: self.tick(state, surface, layer),
        )
        state.phase = MonitorPhase.ACTIVE
        self._telemetry.log_info(
            "grid monitoring started",
            {
                "check_interval_ms": resolved.check_interval_ms,
                "auto_repair": resolved.auto_repair,
                "use_emergency_fallback": resolved.use_emergency_fallback,
                "max_repair_attempts": resolved.max_repair_attempts,
                "grid_object_count": len(layer.objects),
            },
        )
        return True

    def stop(self, state: MonitoringState) -> bool:
        if not state.is_active:
            return False
        if state.timer_handle is not None:
            self._scheduler.cancel(state.timer_handle)
        state.timer_handle = None
        state.phase = MonitorPhase.STOPPED
        self._telemetry.log_info("grid monitoring stopped", {"ticks": state.tick_count})
        return True

    def tick(self, state: MonitoringState, surface: RenderSurface, layer: GridLayerState) -> bool:
        """One health check; returns True when the grid ends the tick healthy."""
        if not state.is_active:
            return False
        state.tick_count += 1
        state.phase = MonitorPhase.CHECKING
        with exclusive(layer) as claimed:
            if not claimed:
                # Another creation or repair owns the layer; check next tick.
                state.phase = MonitorPhase.DEGRADED
                return False
            try:
                return self._check(state, surface, layer)
            except Exception as exc:
                # Ticks run inside the host's timer loop and must never raise into it.
                _LOG.warning("grid health check failed: %s", exc, exc_info=True)
                self._telemetry.capture_issue(exc, "health-check-failed", {"tick": state.tick_count})
                state.phase = MonitorPhase.DEGRADED
                self._count_error(state, surface, layer)
                return False

    def status(self, state: MonitoringState) -> dict[str, Any]:
        now = self._clock.now_ms()
        return {
            "phase": state.phase.value,
            "is_monitoring": state.is_active,
            "repair_attempts": state.repair_attempts,
            "consecutive_errors": state.consecutive_errors,
            "last_repair_at": state.last_repair_at,
            "monitoring_duration_ms": 0.0 if state.started_at is None else now - state.started_at,
            "grid_object_count": 0 if state.layer is None else len(state.layer.objects),
            "tier": None if state.layer is None else state.layer.tier.label,
            "last_health_check": None if state.last_report is None else state.last_report.to_dict(),
        }

    def _check(self, state: MonitoringState, surface: RenderSurface, layer: GridLayerState) -> bool:
        options = state.options
        if not validate_surface(surface):
            self._telemetry.capture_issue(
                "surface became invalid during monitoring",
                "health-check",
                {"level": "warning", "tick": state.tick_count},
            )
            state.phase = MonitorPhase.DEGRADED
            self._count_error(state, surface, layer)
            return False

        report = self._diagnose(state, surface, layer)
        if report.healthy:
            if state.consecutive_errors:
                self._telemetry.log_info("grid issues resolved", {"tick": state.tick_count})
            state.phase = MonitorPhase.HEALTHY
            state.repair_attempts = 0
            state.consecutive_errors = 0
            return True

        critical = report.status >= HealthStatus.CRITICAL
        state.phase = MonitorPhase.CRITICAL if critical else MonitorPhase.DEGRADED
        now = self._clock.now_ms()
        if not options.auto_repair:
            self._count_error(state, surface, layer)
            return False
        if is_on_cooldown(state.last_repair_at, options.repair_cooldown_ms, now):
            return False

        state.repair_attempts += 1
        state.last_repair_at = now
        self._register_recovery_attempt(state)
        _LOG.warning(
            "grid %s, attempting repair attempt=%d issues=%s",
            report.status.label,
            state.repair_attempts,
            report.codes(),
        )
        fixed = apply_fixes(surface, layer.objects)
        report = self._diagnose(state, surface, layer)
        if (
            not report.healthy
            and options.use_emergency_fallback
            and state.repair_attempts <= options.max_repair_attempts
            and (critical or not fixed)
            and not is_on_cooldown(layer.last_attempt_at, self._repair.config.creation_cooldown_ms, now)
        ):
            self._repair.escalate(surface, layer)
            report = self._diagnose(state, surface, layer)

        if report.healthy:
            state.phase = MonitorPhase.HEALTHY
            state.repair_attempts = 0
            state.consecutive_errors = 0
            return True
        self._count_error(state, surface, layer)
        return False

    def _diagnose(
        self, state: MonitoringState, surface: RenderSurface, layer: GridLayerState
    ) -> DiagnosticsReport:
        report = run_diagnostics(surface, layer.objects, registry=self._registry)
        state.last_report = report
        return report

    def _count_error(self, state: MonitoringState, surface: RenderSurface, layer: GridLayerState) -> None:
        state.consecutive_errors += 1
        threshold = state.options.consecutive_error_threshold
        if state.consecutive_errors == 1:
            self._telemetry.log_warn("grid issue detected", {"tick": state.tick_count})
        if state.consecutive_errors < threshold:
            return
        self._telemetry.capture_issue(
            f"persistent grid issues after {state.consecutive_errors} consecutive checks",
            "persistent-grid-failure",
            {
                "level": "error",
                "tier": layer.tier.label,
                "last_status": None if state.last_report is None else state.last_report.status.label,
            },
        )
        if validate_surface(surface):
            # Layer is already claimed by the surrounding tick.
            self._repair.fallback_to_minimal(surface, layer)
            self._notify(
                GridNotice(
                    level="warning",
                    message="Grid had persistent issues. Created a simplified grid.",
                    notice_id="grid-emergency-fallback",
                )
            )
        state.consecutive_errors = 0
        state.repair_attempts = 0

    def _register_recovery_attempt(self, state: MonitoringState) -> None:
        state.recovery_total += 1
        if state.recovery_total in RECOVERY_MILESTONES:
            self._telemetry.capture_issue(
                f"grid recovery attempted {state.recovery_total} times",
                "grid-recovery-attempts",
                {
                    "level": "error" if state.recovery_total >= RECOVERY_MILESTONES[-1] else "warning",
                    "consecutive_errors": state.consecutive_errors,
                },
            )
