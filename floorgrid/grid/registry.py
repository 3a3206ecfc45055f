"""Side table recording which render objects the grid engine owns."""

from __future__ import annotations

from collections.abc import Iterable

from floorgrid.grid.model import FidelityTier, GridHandle, LineTier, Orientation


class GridRegistry:
    """Maps opaque handle ids to grid handles and render objects back to ids.

    Ownership lives here rather than on the render object, so any surface
    implementation can host the grid unchanged.
    """

    def __init__(self) -> None:
        self._next_id = 1
        self._handles: dict[int, GridHandle] = {}
        self._by_shape: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def register(
        self,
        shape: object,
        *,
        tier: FidelityTier,
        line_tier: LineTier,
        orientation: Orientation | None = None,
    ) -> GridHandle:
        existing = self.lookup(shape)
        if existing is not None:
            return existing
        handle = GridHandle(
            handle_id=self._next_id,
            shape=shape,
            tier=tier,
            line_tier=line_tier,
            orientation=orientation,
        )
        self._next_id += 1
        self._handles[handle.handle_id] = handle
        self._by_shape[id(shape)] = handle.handle_id
        return handle

    def lookup(self, shape: object) -> GridHandle | None:
        handle_id = self._by_shape.get(id(shape))
        if handle_id is None:
            return None
        handle = self._handles.get(handle_id)
        # id() values are recycled once a shape is collected.
        if handle is None or handle.shape is not shape:
            return None
        return handle

    def get(self, handle_id: int) -> GridHandle | None:
        return self._handles.get(handle_id)

    def owns(self, handle: object) -> bool:
        if not isinstance(handle, GridHandle):
            return False
        return self._handles.get(handle.handle_id) is handle

    def is_grid_object(self, shape: object) -> bool:
        return self.lookup(shape) is not None

    def release(self, handle: GridHandle) -> None:
        if self._handles.get(handle.handle_id) is not handle:
            return
        del self._handles[handle.handle_id]
        self._by_shape.pop(id(handle.shape), None)

    def release_all(self, handles: Iterable[GridHandle]) -> None:
        for handle in tuple(handles):
            self.release(handle)
