"""Pimaco A4 adhesive label sheets."""

from __future__ import annotations

from .types import LabelTemplateConfig, PageFormat

TEMPLATES = (
    LabelTemplateConfig(
        id="pimaco-6080",
        name="Pimaco 6080 (38.1 x 21.2 mm)",
        width_mm=38.1,
        height_mm=21.2,
        cols=5,
        rows=13,
        gap_x_mm=2.5,
        gap_y_mm=0.0,
        page_format=PageFormat.FIXED_SHEET,
        margin_top_mm=15.7,
        margin_left_mm=4.7,
        margin_right_mm=4.7,
        margin_bottom_mm=15.7,
    ),
    LabelTemplateConfig(
        id="pimaco-6082",
        name="Pimaco 6082 (63.5 x 38.1 mm)",
        width_mm=63.5,
        height_mm=38.1,
        cols=3,
        rows=7,
        gap_x_mm=2.5,
        gap_y_mm=0.0,
        page_format=PageFormat.FIXED_SHEET,
        margin_top_mm=10.7,
        margin_left_mm=4.7,
        margin_right_mm=4.7,
        margin_bottom_mm=10.7,
    ),
)
