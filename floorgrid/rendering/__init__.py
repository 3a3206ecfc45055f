"""Render objects the grid engine places on a surface."""

from floorgrid.rendering.shapes import LineShape, RectShape

__all__ = ["LineShape", "RectShape"]
