from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class PageFormat(StrEnum):
    FIXED_SHEET = "fixedSheet"
    CUSTOM_SINGLE = "customSingle"


@dataclass(frozen=True)
class LabelTemplateConfig:
    """Physical description of a label stock, all lengths in millimetres."""

    id: str
    name: str
    width_mm: float
    height_mm: float
    cols: int
    rows: int
    gap_x_mm: float
    gap_y_mm: float
    page_format: PageFormat
    margin_top_mm: float | None = None
    margin_left_mm: float | None = None
    margin_right_mm: float | None = None
    margin_bottom_mm: float | None = None

    @property
    def is_sheet(self) -> bool:
        return self.page_format is PageFormat.FIXED_SHEET


@dataclass(frozen=True)
class LabelGeometry:
    """One label cell on a page, top-left origin, millimetres."""

    left: float
    top: float
    right: float
    bottom: float
    page_index: int
    on_new_page: bool

    @property
    def width(self) -> float:
        return max(self.right - self.left, 0.0)

    @property
    def height(self) -> float:
        return max(self.bottom - self.top, 0.0)
