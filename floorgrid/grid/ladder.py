"""Ordered fallback tiers used when the grid cannot be restored in place."""

from __future__ import annotations

from dataclasses import dataclass

from floorgrid.grid.model import FidelityTier
from floorgrid.runtime.config import GridConfig


@dataclass(frozen=True, slots=True)
class TierSpec:
    tier: FidelityTier
    small_spacing: float
    large_spacing: float
    max_lines: int
    marker_only: bool = False


@dataclass(frozen=True, slots=True)
class EscalationLadder:
    rungs: tuple[TierSpec, ...]

    def __post_init__(self) -> None:
        tiers = [rung.tier for rung in self.rungs]
        if not tiers or tiers != sorted(tiers):
            raise ValueError("ladder rungs must be non-empty and ordered by tier")

    def spec_for(self, tier: FidelityTier) -> TierSpec:
        for rung in self.rungs:
            if rung.tier is tier:
                return rung
        raise KeyError(tier)

    def next_after(self, tier: FidelityTier) -> TierSpec | None:
        for rung in self.rungs:
            if rung.tier > tier:
                return rung
        return None

    @property
    def last(self) -> TierSpec:
        return self.rungs[-1]


def build_ladder(config: GridConfig) -> EscalationLadder:
    large = config.large_spacing
    return EscalationLadder(
        rungs=(
            TierSpec(FidelityTier.NORMAL, config.small_spacing, large, config.max_lines),
            TierSpec(FidelityTier.RELIABLE, config.small_spacing, large, config.reliable_max_lines),
            # Large lines only, with an explicit count cap.
            TierSpec(FidelityTier.EMERGENCY, large, large, config.emergency_max_lines),
            TierSpec(FidelityTier.MINIMAL, large, large, 1, marker_only=True),
        )
    )
