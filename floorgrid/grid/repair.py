"""In-place fixes and tiered rebuilds for damaged grid layers."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from floorgrid.api.surface import RenderSurface
from floorgrid.api.telemetry import GridNotice, NoticeSink, TelemetrySink
from floorgrid.grid.factory import FactoryResult, GridObjectFactory, attach_existing
from floorgrid.grid.geometry import generate_grid
from floorgrid.grid.ladder import EscalationLadder, TierSpec
from floorgrid.grid.model import GridHandle, GridLayerState
from floorgrid.grid.validator import is_attached, is_visible, surface_dimensions, verify_grid_exists
from floorgrid.runtime.config import GridConfig
from floorgrid.runtime.errors import RECOVERABLE_RENDER_ERRORS, UnrecoverableGridFailure, log_recoverable
from floorgrid.runtime.time import Clock

_LOG = logging.getLogger(__name__)


def apply_fixes(surface: RenderSurface, handles: Sequence[GridHandle]) -> bool:
    """Re-attach every handle the surface no longer contains and unhide hidden ones.

    Returns True iff at least one handle was re-attached or made visible again.
    """
    reattached = 0
    unhidden = 0
    for handle in handles:
        if not is_visible(handle) and _unhide(handle):
            unhidden += 1
        if is_attached(surface, handle):
            continue
        if attach_existing(surface, handle):
            reattached += 1
    if reattached or unhidden:
        try:
            surface.request_render()
        except RECOVERABLE_RENDER_ERRORS:
            log_recoverable(_LOG, "surface render request failed after fixes")
        _LOG.info(
            "grid fixes re-attached=%d unhidden=%d of %d",
            reattached,
            unhidden,
            len(handles),
        )
    return (reattached + unhidden) > 0


def _unhide(handle: GridHandle) -> bool:
    try:
        handle.shape.visible = True  # type: ignore[attr-defined]
    except RECOVERABLE_RENDER_ERRORS:
        log_recoverable(_LOG, f"grid unhide failed handle={handle.handle_id}")
        return False
    return True


class RepairEngine:
    """Drives the escalation ladder for one engine instance.

    Callers hold the layer's in-progress guard; nothing here re-enters.
    """

    def __init__(
        self,
        *,
        factory: GridObjectFactory,
        ladder: EscalationLadder,
        config: GridConfig,
        clock: Clock,
        telemetry: TelemetrySink,
        notify: NoticeSink,
    ) -> None:
        self._factory = factory
        self._ladder = ladder
        self._config = config
        self._clock = clock
        self._telemetry = telemetry
        self._notify = notify

    @property
    def ladder(self) -> EscalationLadder:
        return self._ladder

    @property
    def config(self) -> GridConfig:
        return self._config

    def build_tier(self, surface: RenderSurface, state: GridLayerState, spec: TierSpec) -> FactoryResult:
        """Clear the current layer, then build `spec` in its place.

        Every call is a full recreation and restarts the creation cooldown.
        """
        state.last_attempt_at = self._clock.now_ms()
        state.attempt_count += 1
        self._factory.clear(surface, state.objects)
        state.objects = []
        width, height = surface_dimensions(surface) or (0.0, 0.0)
        if spec.marker_only:
            w = width if width > 0.0 else self._config.min_width
            h = height if height > 0.0 else self._config.min_height
            result = self._factory.build_marker(surface, w, h, self._config.style.marker_color)
        else:
            geometry = generate_grid(
                width,
                height,
                spec.small_spacing,
                spec.large_spacing,
                max_lines=spec.max_lines,
                style=self._config.style,
                min_width=self._config.min_width,
                min_height=self._config.min_height,
            )
            result = self._factory.build(surface, geometry, spec.tier)
        state.objects = list(result.handles)
        state.tier = spec.tier
        return result

    def escalate(self, surface: RenderSurface, state: GridLayerState) -> bool:
        """Rebuild one rung below the current tier (the last rung repeats)."""
        spec = self._ladder.next_after(state.tier) or self._ladder.last
        previous = state.tier
        result = self.build_tier(surface, state, spec)
        ok = verify_grid_exists(surface, state.objects)
        self._telemetry.log_warn(
            "grid escalated",
            {
                "from_tier": previous.label,
                "to_tier": spec.tier.label,
                "created": result.created,
                "failures": result.failures,
                "ok": ok,
            },
        )
        return ok

    def recover(self, surface: RenderSurface, state: GridLayerState) -> bool:
        """Escalate rung by rung until a grid verifies or the ladder runs out."""
        while True:
            if self.escalate(surface, state):
                return True
            if state.tier >= self._ladder.last.tier:
                break
        self._report_unrecoverable(surface, state)
        return False

    def fallback_to_minimal(self, surface: RenderSurface, state: GridLayerState) -> bool:
        """Jump straight to the last rung regardless of the current tier."""
        previous = state.tier
        self.build_tier(surface, state, self._ladder.last)
        ok = verify_grid_exists(surface, state.objects)
        self._telemetry.log_warn(
            "grid forced to minimal fallback",
            {"from_tier": previous.label, "ok": ok},
        )
        if not ok:
            self._report_unrecoverable(surface, state)
        return ok

    def _report_unrecoverable(self, surface: RenderSurface, state: GridLayerState) -> None:
        dims = surface_dimensions(surface)
        self._telemetry.capture_issue(
            UnrecoverableGridFailure("all grid fallback tiers failed"),
            "grid-unrecoverable",
            {
                "level": "critical",
                "tier": state.tier.label,
                "attempt_count": state.attempt_count,
                "dimensions": None if dims is None else f"{dims[0]:.0f}x{dims[1]:.0f}",
            },
        )
        self._notify(
            GridNotice(
                level="error",
                message="The grid could not be restored. Drawing still works without it.",
                notice_id="grid-unrecoverable",
            )
        )
