"""Materializes grid geometry into attached surface objects."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from floorgrid.api.surface import RenderSurface
from floorgrid.grid.geometry import line_segments
from floorgrid.grid.model import FidelityTier, GridGeometry, GridHandle, LineTier
from floorgrid.grid.registry import GridRegistry
from floorgrid.rendering.shapes import LineShape, RectShape
from floorgrid.runtime.errors import RECOVERABLE_RENDER_ERRORS, log_recoverable

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FactoryResult:
    handles: tuple[GridHandle, ...]
    failures: int = 0

    @property
    def created(self) -> int:
        return len(self.handles)


class GridObjectFactory:
    """Creates, attaches and detaches grid-owned objects."""

    def __init__(self, registry: GridRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> GridRegistry:
        return self._registry

    def build(
        self,
        surface: RenderSurface,
        geometry: GridGeometry,
        tier: FidelityTier,
    ) -> FactoryResult:
        """Attach one line object per geometry line; failures are isolated per line."""
        segments = line_segments(geometry)
        handles: list[GridHandle] = []
        failures = 0
        for line, (x1, y1, x2, y2) in zip(geometry.lines, segments.tolist(), strict=True):
            shape = LineShape(
                x1=x1,
                y1=y1,
                x2=x2,
                y2=y2,
                stroke=line.color,
                stroke_width=line.stroke_width,
            )
            handle = self._registry.register(
                shape,
                tier=tier,
                line_tier=line.tier,
                orientation=line.orientation,
            )
            if attach_existing(surface, handle):
                handles.append(handle)
            else:
                self._registry.release(handle)
                failures += 1
        _request_render(surface)
        if failures:
            _LOG.warning(
                "grid build tier=%s created=%d failed=%d",
                tier.label,
                len(handles),
                failures,
            )
        return FactoryResult(handles=tuple(handles), failures=failures)

    def build_marker(
        self,
        surface: RenderSurface,
        width: float,
        height: float,
        fill: str,
    ) -> FactoryResult:
        """Attach the single background marker used by the minimal tier."""
        shape = RectShape(x=0.0, y=0.0, width=float(width), height=float(height), fill=fill)
        handle = self._registry.register(
            shape,
            tier=FidelityTier.MINIMAL,
            line_tier=LineTier.MARKER,
        )
        if not attach_existing(surface, handle):
            self._registry.release(handle)
            return FactoryResult(handles=(), failures=1)
        _request_render(surface)
        return FactoryResult(handles=(handle,), failures=0)

    def clear(self, surface: RenderSurface, handles: Iterable[GridHandle]) -> int:
        """Detach and release every handle. Returns how many were detached."""
        removed = 0
        for handle in tuple(handles):
            try:
                if surface.contains(handle.shape):
                    surface.remove(handle.shape)
                    removed += 1
            except RECOVERABLE_RENDER_ERRORS:
                log_recoverable(_LOG, f"grid detach failed handle={handle.handle_id}")
            finally:
                self._registry.release(handle)
        return removed


def attach_existing(surface: RenderSurface, handle: GridHandle) -> bool:
    """Attach a handle's shape behind user content. False when `add` failed."""
    try:
        surface.add(handle.shape)
    except RECOVERABLE_RENDER_ERRORS:
        log_recoverable(_LOG, f"grid attach failed handle={handle.handle_id}")
        return False
    try:
        surface.send_to_back(handle.shape)
    except RECOVERABLE_RENDER_ERRORS:
        # Attached but out of order; still counts as present.
        log_recoverable(_LOG, f"grid reorder failed handle={handle.handle_id}")
    return True


def _request_render(surface: RenderSurface) -> None:
    try:
        surface.request_render()
    except RECOVERABLE_RENDER_ERRORS:
        log_recoverable(_LOG, "surface render request failed")
