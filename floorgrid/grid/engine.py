"""Public entry point: create, ensure, repair and monitor grid layers."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from floorgrid.api.surface import RenderSurface
from floorgrid.api.telemetry import GridNotice, NoticeSink, TelemetrySink
from floorgrid.diagnostics.report import DiagnosticsReport, run_diagnostics
from floorgrid.diagnostics.telemetry import guard_notices, guard_telemetry
from floorgrid.grid.factory import FactoryResult, GridObjectFactory
from floorgrid.grid.ladder import EscalationLadder, build_ladder
from floorgrid.grid.model import FidelityTier, GridHandle, GridLayerState, exclusive, release, try_claim
from floorgrid.grid.monitor import GridMonitor, MonitoringState
from floorgrid.grid.registry import GridRegistry
from floorgrid.grid.repair import RepairEngine, apply_fixes
from floorgrid.grid.validator import count_attached, surface_dimensions, validate_surface, verify_grid_exists
from floorgrid.runtime.config import EngineConfig, GridConfig, MonitorOptions, get_engine_config
from floorgrid.runtime.errors import GridContractError, GridInputError, RetryExhaustedError, TransientRenderError
from floorgrid.runtime.retry import DeferredRetry, is_on_cooldown
from floorgrid.runtime.scheduler import Scheduler
from floorgrid.runtime.time import Clock, SchedulerClock

_LOG = logging.getLogger(__name__)


class GridEngine:
    """Grid reliability engine for any number of surfaces.

    Each surface is paired with a caller-owned `GridLayerState`; each
    monitored surface additionally with a caller-owned `MonitoringState`.
    The engine itself holds no per-surface state besides the ownership
    registry, so independent grids never share mutable globals.
    """

    def __init__(
        self,
        *,
        scheduler: Scheduler | None = None,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
        telemetry: TelemetrySink | None = None,
        notify: NoticeSink | None = None,
        registry: GridRegistry | None = None,
    ) -> None:
        resolved = config or get_engine_config()
        self._scheduler = scheduler or Scheduler()
        self._clock = clock or SchedulerClock(self._scheduler)
        self._config: GridConfig = resolved.grid
        self._monitor_defaults: MonitorOptions = resolved.monitor
        self._telemetry = guard_telemetry(telemetry)
        self._notify = guard_notices(notify)
        self._registry = registry or GridRegistry()
        self._factory = GridObjectFactory(self._registry)
        self._repair = RepairEngine(
            factory=self._factory,
            ladder=build_ladder(self._config),
            config=self._config,
            clock=self._clock,
            telemetry=self._telemetry,
            notify=self._notify,
        )
        self._monitor = GridMonitor(
            scheduler=self._scheduler,
            clock=self._clock,
            repair=self._repair,
            registry=self._registry,
            telemetry=self._telemetry,
            notify=self._notify,
        )

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def registry(self) -> GridRegistry:
        return self._registry

    @property
    def config(self) -> GridConfig:
        return self._config

    @property
    def ladder(self) -> EscalationLadder:
        return self._repair.ladder

    def create_grid(
        self,
        surface: RenderSurface | None,
        state: GridLayerState | None = None,
        *,
        force: bool = False,
    ) -> list[GridHandle]:
        """Build a fresh grid layer on `surface`.

        Without `force`, calls inside the creation cooldown and calls made
        while another creation or repair is running return the current
        handles untouched. Invalid surfaces yield an empty list.

        When the first attempt fails, the layer stays claimed and later
        attempts run from scheduler timers with exponential backoff; the
        returned list then reflects the layer as it stands right now.
        """
        layer = state if state is not None else GridLayerState()
        if surface is None or not validate_surface(surface):
            self._report_invalid_surface(surface, "grid-create")
            return []
        if not try_claim(layer):
            _LOG.debug("grid creation skipped: layer busy")
            return list(layer.objects)
        now = self._clock.now_ms()
        if not force and is_on_cooldown(layer.last_attempt_at, self._config.creation_cooldown_ms, now):
            release(layer)
            _LOG.debug(
                "grid creation skipped: cooldown (%.0fms since last attempt)",
                now - (layer.last_attempt_at or now),
            )
            return list(layer.objects)
        self._start_creation(surface, layer, force=force)
        return list(layer.objects)

    def ensure_grid(self, surface: RenderSurface | None, state: GridLayerState) -> list[GridHandle]:
        """Return a verified grid, creating or fixing it only when needed."""
        if surface is None or not validate_surface(surface):
            self._report_invalid_surface(surface, "grid-ensure")
            return []
        if state.objects and count_attached(surface, state.objects) == len(state.objects):
            return list(state.objects)
        if state.objects:
            with exclusive(state) as claimed:
                if not claimed:
                    return list(state.objects)
                apply_fixes(surface, state.objects)
                if count_attached(surface, state.objects) == len(state.objects):
                    return list(state.objects)
        return self.create_grid(surface, state)

    def force_repair(self, surface: RenderSurface | None, state: GridLayerState) -> bool:
        """Repair now, bypassing cooldowns. Returns whether a grid is present afterwards."""
        if not state.has_been_created:
            raise GridContractError("force_repair called before a grid was created for this layer")
        if surface is None or not validate_surface(surface):
            self._report_invalid_surface(surface, "manual-repair")
            return False
        with exclusive(state) as claimed:
            if not claimed:
                _LOG.debug("manual repair skipped: layer busy")
                return False
            _LOG.info("manual grid repair initiated tier=%s", state.tier.label)
            apply_fixes(surface, state.objects)
            healthy = bool(state.objects) and count_attached(surface, state.objects) == len(state.objects)
            if not healthy:
                healthy = self._repair.recover(surface, state)
            state.last_attempt_at = self._clock.now_ms()
        if healthy:
            self._notify(GridNotice(level="success", message="Grid repair complete", notice_id="grid-repair"))
        return healthy

    def clear_grid(self, surface: RenderSurface | None, state: GridLayerState) -> int:
        """Detach and forget every grid object of `state`, abandoning any pending retry."""
        if state.pending_retry is not None and state.pending_retry.cancel():
            state.pending_retry = None
            release(state)
        if surface is None:
            self._registry.release_all(state.objects)
            state.objects = []
            return 0
        with exclusive(state) as claimed:
            if not claimed:
                return 0
            removed = self._factory.clear(surface, state.objects)
            state.objects = []
            return removed

    def start_monitoring(
        self,
        monitoring: MonitoringState,
        surface: RenderSurface | None,
        state: GridLayerState,
        options: MonitorOptions | None = None,
    ) -> bool:
        return self._monitor.start(monitoring, surface, state, options or self._monitor_defaults)

    def stop_monitoring(self, monitoring: MonitoringState) -> bool:
        return self._monitor.stop(monitoring)

    def check_now(
        self,
        monitoring: MonitoringState,
        surface: RenderSurface,
        state: GridLayerState,
    ) -> DiagnosticsReport | None:
        """Run one monitor tick immediately; None when monitoring is not active."""
        if not monitoring.is_active:
            return None
        self._monitor.tick(monitoring, surface, state)
        return monitoring.last_report

    def monitoring_status(self, monitoring: MonitoringState) -> dict[str, Any]:
        return self._monitor.status(monitoring)

    def run_diagnostics(
        self,
        surface: RenderSurface | None,
        handles: Sequence[GridHandle],
        verbose: bool = False,
    ) -> DiagnosticsReport:
        return run_diagnostics(surface, handles, verbose, registry=self._registry)

    def _start_creation(self, surface: RenderSurface, layer: GridLayerState, *, force: bool) -> None:
        """Run the first build attempt; failed attempts continue from scheduler timers.

        The caller's claim on `layer` is held until the retry settles.
        """
        layer.last_attempt_at = self._clock.now_ms()
        if force or not layer.has_been_created:
            # Explicit recreation starts a new recovery episode.
            layer.tier = FidelityTier.NORMAL
        spec = self._repair.ladder.spec_for(layer.tier)

        def attempt() -> FactoryResult:
            if not validate_surface(surface):
                raise GridInputError("surface became invalid between creation attempts")
            result = self._repair.build_tier(surface, layer, spec)
            if not verify_grid_exists(surface, layer.objects):
                raise TransientRenderError(
                    f"no grid objects attached at tier {spec.tier.label} ({result.failures} failures)"
                )
            return result

        def succeeded(result: FactoryResult) -> None:
            _LOG.info(
                "grid created tier=%s objects=%d failures=%d",
                spec.tier.label,
                result.created,
                result.failures,
            )
            self._settle(layer)

        def failed(error: BaseException) -> None:
            dims = surface_dimensions(surface)
            self._telemetry.capture_issue(
                error,
                "grid-create-failed",
                {
                    "level": "error",
                    "tier": spec.tier.label,
                    "attempts": error.attempts if isinstance(error, RetryExhaustedError) else retry.attempts,
                    "dimensions": None if dims is None else f"{dims[0]:.0f}x{dims[1]:.0f}",
                },
            )
            if not isinstance(error, GridInputError):
                self._repair.recover(surface, layer)
            self._settle(layer)

        retry: DeferredRetry[FactoryResult] = DeferredRetry(
            self._scheduler,
            attempt,
            self._config.retry_max_attempts,
            self._config.retry_base_delay_ms,
            on_success=succeeded,
            on_failure=failed,
        )
        layer.pending_retry = retry
        retry.start()

    def _settle(self, layer: GridLayerState) -> None:
        layer.pending_retry = None
        layer.created_at = self._clock.now_ms()
        release(layer)

    def _report_invalid_surface(self, surface: RenderSurface | None, category: str) -> None:
        dims = None if surface is None else surface_dimensions(surface)
        self._telemetry.capture_issue(
            "invalid surface",
            category,
            {
                "level": "warning",
                "surface_present": surface is not None,
                "dimensions": None if dims is None else f"{dims[0]}x{dims[1]}",
            },
        )
