"""Surface-agnostic shapes for grid lines and the minimal-tier marker."""

from __future__ import annotations

from dataclasses import dataclass


# eq=False keeps identity semantics: two identical lines are still two objects.
@dataclass(slots=True, eq=False)
class LineShape:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    stroke_width: float
    selectable: bool = False
    evented: bool = False
    visible: bool = True


@dataclass(slots=True, eq=False)
class RectShape:
    x: float
    y: float
    width: float
    height: float
    fill: str
    selectable: bool = False
    evented: bool = False
    visible: bool = True
