"""Single-label thermal roll stock."""

from __future__ import annotations

from .types import LabelTemplateConfig, PageFormat

TEMPLATES = (
    LabelTemplateConfig(
        id="thermal-50x30",
        name="Thermal small (50 x 30 mm)",
        width_mm=50.0,
        height_mm=30.0,
        cols=1,
        rows=1,
        gap_x_mm=2.0,
        gap_y_mm=2.0,
        page_format=PageFormat.CUSTOM_SINGLE,
    ),
    LabelTemplateConfig(
        id="thermal-70x40",
        name="Thermal medium (70 x 40 mm)",
        width_mm=70.0,
        height_mm=40.0,
        cols=1,
        rows=1,
        gap_x_mm=2.0,
        gap_y_mm=2.0,
        page_format=PageFormat.CUSTOM_SINGLE,
    ),
)
