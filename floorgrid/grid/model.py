"""Grid layer data model."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from floorgrid.runtime.retry import DeferredRetry


class Orientation(Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class LineTier(Enum):
    SMALL = "small"
    LARGE = "large"
    MARKER = "marker"


class FidelityTier(IntEnum):
    """Reconstruction fidelity; higher values are simpler fallbacks."""

    NORMAL = 0
    RELIABLE = 1
    EMERGENCY = 2
    MINIMAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class GridLine:
    orientation: Orientation
    position: float
    tier: LineTier
    color: str
    stroke_width: float


@dataclass(frozen=True, slots=True)
class GridGeometry:
    """Generator output; spacings are the effective ones after density capping."""

    width: float
    height: float
    small_spacing: float
    large_spacing: float
    lines: tuple[GridLine, ...]

    def count(self, orientation: Orientation) -> int:
        return sum(1 for line in self.lines if line.orientation is orientation)


@dataclass(frozen=True, slots=True)
class GridHandle:
    """Engine-side tag for one attached grid object."""

    handle_id: int
    shape: object
    tier: FidelityTier
    line_tier: LineTier
    orientation: Orientation | None = None


@dataclass(slots=True)
class GridLayerState:
    """Per-surface grid bookkeeping. Owned by the caller, mutated by the engine."""

    objects: list[GridHandle] = field(default_factory=list)
    created_at: float | None = None
    attempt_count: int = 0
    last_attempt_at: float | None = None
    tier: FidelityTier = FidelityTier.NORMAL
    in_progress: bool = False
    pending_retry: DeferredRetry[Any] | None = field(default=None, repr=False, compare=False)

    @property
    def has_been_created(self) -> bool:
        return self.created_at is not None


def try_claim(state: GridLayerState) -> bool:
    """Mark the layer busy. False when another creation or repair holds it."""
    if state.in_progress:
        return False
    state.in_progress = True
    return True


def release(state: GridLayerState) -> None:
    state.in_progress = False


@contextmanager
def exclusive(state: GridLayerState) -> Iterator[bool]:
    """Claim the layer for one synchronous mutation; yields False when already claimed."""
    if not try_claim(state):
        yield False
        return
    try:
        yield True
    finally:
        release(state)
