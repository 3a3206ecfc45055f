"""Grid health report generation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from floorgrid.api.surface import RenderSurface
from floorgrid.diagnostics.event import utc_now_iso
from floorgrid.grid.model import GridHandle
from floorgrid.grid.registry import GridRegistry
from floorgrid.grid.validator import (
    has_valid_dimensions,
    is_attached,
    is_visible,
    missing_operations,
    surface_dimensions,
)
from floorgrid.runtime.errors import RECOVERABLE_RENDER_ERRORS, log_recoverable

_LOG = logging.getLogger(__name__)


class HealthStatus(IntEnum):
    """Report severity. Ordering is significant: the worst issue wins."""

    OK = 0
    WARNING = 1
    ERROR = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class DiagnosticIssue:
    code: str
    severity: HealthStatus
    message: str


@dataclass(frozen=True, slots=True)
class CanvasInfo:
    width: float | None
    height: float | None
    object_count: int | None
    missing_operations: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class GridInfo:
    handle_count: int = 0
    attached_count: int = 0
    line_tier_counts: dict[str, int] = field(default_factory=dict)
    fidelity_tier_counts: dict[str, int] = field(default_factory=dict)
    detached_ids: tuple[int, ...] = ()
    hidden_count: int = 0

    @property
    def detached_count(self) -> int:
        return self.handle_count - self.attached_count


@dataclass(frozen=True, slots=True)
class DiagnosticsReport:
    status: HealthStatus
    generated_at: str
    canvas: CanvasInfo | None
    grid: GridInfo
    warnings: tuple[DiagnosticIssue, ...] = ()

    @property
    def healthy(self) -> bool:
        return self.status is HealthStatus.OK

    def codes(self) -> tuple[str, ...]:
        return tuple(issue.code for issue in self.warnings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.label,
            "generated_at": self.generated_at,
            "canvas": None
            if self.canvas is None
            else {
                "width": self.canvas.width,
                "height": self.canvas.height,
                "object_count": self.canvas.object_count,
                "missing_operations": list(self.canvas.missing_operations),
            },
            "grid": {
                "handle_count": self.grid.handle_count,
                "attached_count": self.grid.attached_count,
                "detached_count": self.grid.detached_count,
                "line_tiers": dict(self.grid.line_tier_counts),
                "fidelity_tiers": dict(self.grid.fidelity_tier_counts),
                "detached_ids": list(self.grid.detached_ids),
                "hidden_count": self.grid.hidden_count,
            },
            "warnings": [
                {"code": issue.code, "severity": issue.severity.label, "message": issue.message}
                for issue in self.warnings
            ],
        }


def run_diagnostics(
    surface: RenderSurface | None,
    handles: Sequence[GridHandle],
    verbose: bool = False,
    *,
    registry: GridRegistry | None = None,
) -> DiagnosticsReport:
    """Build a fresh health report for `handles` on `surface`."""
    generated_at = utc_now_iso()
    if surface is None:
        return DiagnosticsReport(
            status=HealthStatus.ERROR,
            generated_at=generated_at,
            canvas=None,
            grid=GridInfo(handle_count=len(handles)),
            warnings=(DiagnosticIssue("surface-missing", HealthStatus.ERROR, "surface is null"),),
        )

    issues: list[DiagnosticIssue] = []
    missing = missing_operations(surface)
    if missing:
        issues.append(
            DiagnosticIssue(
                "surface-operations-missing",
                HealthStatus.CRITICAL,
                f"surface lacks required operations: {', '.join(missing)}",
            )
        )
    dims = surface_dimensions(surface)
    if not has_valid_dimensions(surface):
        issues.append(
            DiagnosticIssue(
                "invalid-dimensions",
                HealthStatus.ERROR,
                f"invalid surface dimensions: {dims[0] if dims else None}x{dims[1] if dims else None}",
            )
        )

    if registry is not None:
        unknown = [h for h in handles if not registry.owns(h)]
        if unknown:
            issues.append(
                DiagnosticIssue(
                    "unrecognized-handles",
                    HealthStatus.WARNING,
                    f"{len(unknown)} handles are not tracked as grid objects",
                )
            )

    attached: list[GridHandle] = []
    detached_ids: list[int] = []
    if not handles:
        issues.append(DiagnosticIssue("no-grid-objects", HealthStatus.WARNING, "no grid objects"))
    else:
        can_check = "contains" not in missing
        for handle in handles:
            if can_check and is_attached(surface, handle):
                attached.append(handle)
            else:
                detached_ids.append(handle.handle_id)
        if not attached:
            issues.append(
                DiagnosticIssue(
                    "grid-detached",
                    HealthStatus.ERROR,
                    f"none of {len(handles)} grid objects are attached",
                )
            )
        elif detached_ids:
            issues.append(
                DiagnosticIssue(
                    "grid-partially-detached",
                    HealthStatus.WARNING,
                    f"{len(detached_ids)} of {len(handles)} grid objects are detached",
                )
            )

    hidden = [handle for handle in attached if not is_visible(handle)]
    if hidden and len(hidden) == len(attached):
        issues.append(
            DiagnosticIssue("grid-hidden", HealthStatus.ERROR, f"all {len(hidden)} attached grid objects are hidden")
        )
    elif hidden:
        issues.append(
            DiagnosticIssue(
                "grid-partially-hidden",
                HealthStatus.WARNING,
                f"{len(hidden)} of {len(attached)} attached grid objects are hidden",
            )
        )

    line_tiers: dict[str, int] = {}
    fidelity_tiers: dict[str, int] = {}
    for handle in attached:
        line_tiers[handle.line_tier.value] = line_tiers.get(handle.line_tier.value, 0) + 1
        fidelity_tiers[handle.tier.label] = fidelity_tiers.get(handle.tier.label, 0) + 1

    status = max((issue.severity for issue in issues), default=HealthStatus.OK)
    report = DiagnosticsReport(
        status=status,
        generated_at=generated_at,
        canvas=CanvasInfo(
            width=dims[0] if dims else None,
            height=dims[1] if dims else None,
            object_count=_object_count(surface) if "get_objects" not in missing else None,
            missing_operations=missing,
        ),
        grid=GridInfo(
            handle_count=len(handles),
            attached_count=len(attached),
            line_tier_counts=line_tiers,
            fidelity_tier_counts=fidelity_tiers,
            detached_ids=tuple(detached_ids) if verbose else (),
            hidden_count=len(hidden),
        ),
        warnings=tuple(issues),
    )
    if verbose:
        _LOG.debug("grid diagnostics %s", report.to_dict())
    return report


def _object_count(surface: RenderSurface) -> int | None:
    try:
        return len(surface.get_objects())
    except RECOVERABLE_RENDER_ERRORS:
        log_recoverable(_LOG, "surface object listing failed")
        return None
