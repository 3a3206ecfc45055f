"""Grid line placement with clamping and density capping."""

from __future__ import annotations

import logging
import math

import numpy as np

from floorgrid.grid.model import GridGeometry, GridLine, LineTier, Orientation
from floorgrid.runtime.config import GridStyle
from floorgrid.runtime.errors import GridInputError

_LOG = logging.getLogger(__name__)

MIN_LINE_CAP = 4
_EPS = 1e-9


def generate_grid(
    width: float,
    height: float,
    small_spacing: float,
    large_spacing: float,
    *,
    max_lines: int,
    style: GridStyle | None = None,
    min_width: float = 100.0,
    min_height: float = 100.0,
) -> GridGeometry:
    """Emit vertical and horizontal lines covering [0, width] x [0, height].

    Degenerate dimensions are clamped to the minimums. When the line count
    would exceed `max_lines` the effective spacing is widened: first through
    divisors of the large/small ratio, then by dropping small lines and
    stretching the large spacing.
    """
    ratio = _spacing_ratio(small_spacing, large_spacing)
    style = style or GridStyle()
    w = _clamp_dimension(width, min_width)
    h = _clamp_dimension(height, min_height)
    cap = max(MIN_LINE_CAP, int(max_lines))

    small_eff, large_eff = _fit_spacing(w, h, float(small_spacing), ratio, cap)
    if small_eff != small_spacing:
        _LOG.debug(
            "grid density capped: %.0fx%.0f spacing %.1f -> %.1f (large %.1f)",
            w,
            h,
            small_spacing,
            small_eff,
            large_eff,
        )

    lines = _axis_lines(Orientation.VERTICAL, w, small_eff, large_eff, style) + _axis_lines(
        Orientation.HORIZONTAL, h, small_eff, large_eff, style
    )
    return GridGeometry(
        width=w,
        height=h,
        small_spacing=small_eff,
        large_spacing=large_eff,
        lines=lines,
    )


def line_count(width: float, height: float, spacing: float) -> int:
    """Number of boundary-inclusive lines at `spacing` on both axes."""
    return _positions_on_axis(width, spacing) + _positions_on_axis(height, spacing)


def line_segments(geometry: GridGeometry) -> np.ndarray:
    """Return an (n, 4) array of x1, y1, x2, y2 for every line, in line order."""
    segments = np.zeros((len(geometry.lines), 4), dtype=np.float32)
    for idx, line in enumerate(geometry.lines):
        if line.orientation is Orientation.VERTICAL:
            segments[idx] = (line.position, 0.0, line.position, geometry.height)
        else:
            segments[idx] = (0.0, line.position, geometry.width, line.position)
    return segments


def _spacing_ratio(small_spacing: float, large_spacing: float) -> int:
    if not (math.isfinite(small_spacing) and math.isfinite(large_spacing)):
        raise GridInputError("grid spacing must be finite")
    if small_spacing <= 0.0 or large_spacing <= 0.0:
        raise GridInputError(f"grid spacing must be > 0, got {small_spacing}/{large_spacing}")
    ratio = large_spacing / small_spacing
    rounded = round(ratio)
    if rounded < 1 or abs(ratio - rounded) > 1e-6:
        raise GridInputError(
            f"large spacing {large_spacing} is not a multiple of small spacing {small_spacing}"
        )
    return int(rounded)


def _clamp_dimension(value: float, minimum: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return float(minimum)
    if not math.isfinite(number) or number <= 0.0:
        return float(minimum)
    return number


def _positions_on_axis(extent: float, spacing: float) -> int:
    return int(math.floor(extent / spacing + _EPS)) + 1


def _divisors(value: int) -> list[int]:
    small = [d for d in range(1, math.isqrt(value) + 1) if value % d == 0]
    return sorted(set(small + [value // d for d in small]))


def _fit_spacing(
    width: float, height: float, small: float, ratio: int, cap: int
) -> tuple[float, float]:
    large = small * ratio
    # Widening the small spacing by a divisor of the ratio keeps large lines on the lattice.
    for divisor in _divisors(ratio):
        spacing = small * divisor
        if line_count(width, height, spacing) <= cap:
            return spacing, large
    factor = max(1, math.ceil((width + height) / (large * (cap - 2))))
    while line_count(width, height, large * factor) > cap:
        factor += 1
    spacing = large * factor
    return spacing, spacing


def _axis_lines(
    orientation: Orientation,
    extent: float,
    small: float,
    large: float,
    style: GridStyle,
) -> tuple[GridLine, ...]:
    count = _positions_on_axis(extent, small)
    step = max(1, round(large / small))
    indices = np.arange(count, dtype=np.int64)
    positions = np.minimum(indices.astype(np.float64) * small, extent)
    is_large = (indices % step) == 0
    lines: list[GridLine] = []
    for position, large_line in zip(positions.tolist(), is_large.tolist(), strict=True):
        if large_line:
            lines.append(
                GridLine(
                    orientation=orientation,
                    position=position,
                    tier=LineTier.LARGE,
                    color=style.large_color,
                    stroke_width=style.large_stroke_width,
                )
            )
        else:
            lines.append(
                GridLine(
                    orientation=orientation,
                    position=position,
                    tier=LineTier.SMALL,
                    color=style.small_color,
                    stroke_width=style.small_stroke_width,
                )
            )
    return tuple(lines)
