"""Render surface contract consumed by the grid engine."""

from __future__ import annotations

from typing import Protocol

REQUIRED_SURFACE_OPERATIONS: tuple[str, ...] = (
    "add",
    "remove",
    "contains",
    "get_objects",
    "send_to_back",
    "request_render",
)


class RenderSurface(Protocol):
    """Drawing surface the grid is painted onto.

    Objects passed in are opaque to the surface contract; the engine only
    relies on identity for `contains` and `remove`.
    """

    @property
    def width(self) -> float: ...

    @property
    def height(self) -> float: ...

    def add(self, obj: object) -> None:
        """Attach an object."""

    def remove(self, obj: object) -> None:
        """Detach an object."""

    def contains(self, obj: object) -> bool:
        """Return whether `obj` is currently attached."""

    def get_objects(self) -> list[object]:
        """Return attached objects in paint order."""

    def send_to_back(self, obj: object) -> None:
        """Move `obj` behind every other attached object."""

    def request_render(self) -> None:
        """Schedule one redraw."""
