"""Side-effect-free health predicates over surfaces and grid handles."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from floorgrid.api.surface import REQUIRED_SURFACE_OPERATIONS, RenderSurface
from floorgrid.grid.model import GridHandle
from floorgrid.grid.registry import GridRegistry
from floorgrid.runtime.errors import RECOVERABLE_RENDER_ERRORS, log_recoverable

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HandleValidation:
    valid: bool
    issues: tuple[str, ...] = ()
    tier_counts: dict[str, int] = field(default_factory=dict)


def missing_operations(surface: object) -> tuple[str, ...]:
    """Names of required surface operations that are absent or not callable."""
    return tuple(
        name for name in REQUIRED_SURFACE_OPERATIONS if not callable(getattr(surface, name, None))
    )


def surface_dimensions(surface: object) -> tuple[float, float] | None:
    """Return (width, height) when both are readable numbers, else None."""
    try:
        width = float(surface.width)  # type: ignore[attr-defined]
        height = float(surface.height)  # type: ignore[attr-defined]
    except (AttributeError, TypeError, ValueError):
        return None
    return width, height


def has_valid_dimensions(surface: object) -> bool:
    dims = surface_dimensions(surface)
    if dims is None:
        return False
    width, height = dims
    return math.isfinite(width) and math.isfinite(height) and width > 0.0 and height > 0.0


def validate_surface(surface: RenderSurface | None) -> bool:
    if surface is None:
        return False
    if missing_operations(surface):
        return False
    return has_valid_dimensions(surface)


def validate_handles(
    handles: Sequence[object],
    registry: GridRegistry | None = None,
) -> HandleValidation:
    """Check that a handle list is non-empty and every entry is a known grid handle."""
    if not handles:
        return HandleValidation(valid=False, issues=("no grid handles",))
    issues: list[str] = []
    tier_counts: dict[str, int] = {}
    for index, handle in enumerate(handles):
        if not isinstance(handle, GridHandle):
            issues.append(f"entry {index} is not a grid handle")
            continue
        if registry is not None and not registry.owns(handle):
            issues.append(f"handle {handle.handle_id} is not registered")
            continue
        key = handle.line_tier.value
        tier_counts[key] = tier_counts.get(key, 0) + 1
    return HandleValidation(valid=not issues, issues=tuple(issues), tier_counts=tier_counts)


def is_visible(handle: GridHandle) -> bool:
    """False only when the shape exposes a `visible` flag that is switched off."""
    return getattr(handle.shape, "visible", True) is not False


def is_attached(surface: RenderSurface, handle: GridHandle) -> bool:
    try:
        return bool(surface.contains(handle.shape))
    except RECOVERABLE_RENDER_ERRORS:
        log_recoverable(_LOG, f"containment check failed handle={handle.handle_id}")
        return False


def count_attached(surface: RenderSurface, handles: Sequence[GridHandle]) -> int:
    return sum(1 for handle in handles if is_attached(surface, handle))


def verify_grid_exists(surface: RenderSurface | None, handles: Sequence[GridHandle]) -> bool:
    """True when at least one handle is currently attached to `surface`."""
    if surface is None or not handles:
        return False
    return any(is_attached(surface, handle) for handle in handles)
