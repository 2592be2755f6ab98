"""Conversions between editor pixels, millimetres and PDF points.

Editor geometry is stored in CSS pixels (96 per inch). Every value that
crosses from the editor into the printed document goes through here.
"""

from __future__ import annotations

from reportlab.lib.units import mm

# Editor pixel -> millimetre (96 px per 25.4 mm).
PX_TO_MM = 25.4 / 96
# Editor pixel -> point, used for font sizes.
PX_TO_PT = 0.75
# Millimetre -> point, 2.83465.
MM_TO_PT = mm

A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0


def px_to_mm(px: float) -> float:
    return px * PX_TO_MM


def px_to_pt(px: float) -> float:
    return px * PX_TO_PT


def mm_to_pt(value_mm: float) -> float:
    return value_mm * MM_TO_PT


def mm_to_px(value_mm: float) -> float:
    """Inverse of :func:`px_to_mm`, used to size the editor canvas."""

    return value_mm / PX_TO_MM
