"""Page geometry planning for label stocks.

``plan_tiling`` is a pure function of the label stock and the tiling flag.
``SheetCursor`` walks the resulting grid cell by cell, row-major, and
reports when a new page starts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from label_templates import LabelGeometry, LabelTemplateConfig, PageFormat
from units import A4_HEIGHT_MM, A4_WIDTH_MM

# Outer page margin when single labels are tiled onto an A4 sheet.
TILE_PAGE_MARGIN_MM = 10.0
# Used for tiled gaps that are missing or not positive.
DEFAULT_TILE_GAP_MM = 2.0
# Margin for sheet templates that do not declare one.
DEFAULT_SHEET_MARGIN_MM = 10.0

_EPSILON = 1e-6


@dataclass(frozen=True)
class TilingPlan:
    cols: int
    rows: int
    margin_top: float
    margin_left: float
    margin_bottom: float
    page_width_mm: float
    page_height_mm: float
    label_width_mm: float
    label_height_mm: float
    gap_x_mm: float
    gap_y_mm: float
    single_per_page: bool = False

    @property
    def printable_bottom(self) -> float:
        return self.page_height_mm - self.margin_bottom

    @property
    def rows_per_page(self) -> int:
        """Grid rows whose bottom edge stays above the bottom margin.

        The first row always counts, even for a label taller than the page.
        """

        rows = 1
        while rows < self.rows:
            _, top = self.cell_origin(rows, 0)
            if top + self.label_height_mm > self.printable_bottom + _EPSILON:
                break
            rows += 1
        return rows

    @property
    def labels_per_page(self) -> int:
        return self.cols * self.rows_per_page

    @property
    def orientation(self) -> str:
        return "portrait" if self.page_height_mm >= self.page_width_mm else "landscape"

    def cell_origin(self, row: int, col: int) -> tuple[float, float]:
        left = self.margin_left + col * (self.label_width_mm + self.gap_x_mm)
        top = self.margin_top + row * (self.label_height_mm + self.gap_y_mm)
        return left, top

    def page_count(self, label_count: int, skip: int = 0) -> int:
        if label_count <= 0:
            return 0
        if self.single_per_page:
            return label_count
        return math.ceil((label_count + skip) / self.labels_per_page)


def _tiled_gap(value: float) -> float:
    return value if value > 0 else DEFAULT_TILE_GAP_MM


def _grid_count(available: float, size: float, gap: float) -> int:
    return max(int(math.floor((available + gap) / (size + gap) + _EPSILON)), 1)


def plan_tiling(config: LabelTemplateConfig, tile_on_a4: bool = False) -> TilingPlan:
    """Return the effective page grid for ``config``."""

    if config.page_format is PageFormat.FIXED_SHEET:
        margin_top = (
            config.margin_top_mm
            if config.margin_top_mm is not None
            else DEFAULT_SHEET_MARGIN_MM
        )
        margin_left = (
            config.margin_left_mm
            if config.margin_left_mm is not None
            else DEFAULT_SHEET_MARGIN_MM
        )
        margin_bottom = (
            config.margin_bottom_mm
            if config.margin_bottom_mm is not None
            else margin_top
        )
        return TilingPlan(
            cols=config.cols,
            rows=config.rows,
            margin_top=margin_top,
            margin_left=margin_left,
            margin_bottom=margin_bottom,
            page_width_mm=A4_WIDTH_MM,
            page_height_mm=A4_HEIGHT_MM,
            label_width_mm=config.width_mm,
            label_height_mm=config.height_mm,
            gap_x_mm=config.gap_x_mm,
            gap_y_mm=config.gap_y_mm,
        )

    if not tile_on_a4:
        gap_x = max(config.gap_x_mm, 0.0)
        gap_y = max(config.gap_y_mm, 0.0)
        return TilingPlan(
            cols=1,
            rows=1,
            margin_top=gap_y,
            margin_left=gap_x,
            margin_bottom=gap_y,
            page_width_mm=config.width_mm + 2 * gap_x,
            page_height_mm=config.height_mm + 2 * gap_y,
            label_width_mm=config.width_mm,
            label_height_mm=config.height_mm,
            gap_x_mm=gap_x,
            gap_y_mm=gap_y,
            single_per_page=True,
        )

    gap_x = _tiled_gap(config.gap_x_mm)
    gap_y = _tiled_gap(config.gap_y_mm)
    printable_width = A4_WIDTH_MM - 2 * TILE_PAGE_MARGIN_MM
    printable_height = A4_HEIGHT_MM - 2 * TILE_PAGE_MARGIN_MM
    return TilingPlan(
        cols=_grid_count(printable_width, config.width_mm, gap_x),
        rows=_grid_count(printable_height, config.height_mm, gap_y),
        margin_top=TILE_PAGE_MARGIN_MM,
        margin_left=TILE_PAGE_MARGIN_MM,
        margin_bottom=TILE_PAGE_MARGIN_MM,
        page_width_mm=A4_WIDTH_MM,
        page_height_mm=A4_HEIGHT_MM,
        label_width_mm=config.width_mm,
        label_height_mm=config.height_mm,
        gap_x_mm=gap_x,
        gap_y_mm=gap_y,
    )


class SheetCursor:
    """Hand out label cells in row-major order across pages."""

    _row: int
    _col: int
    _page: int
    _started: bool

    def __init__(self, plan: TilingPlan) -> None:
        self.plan = plan
        self.reset()

    def reset(self) -> None:
        self._row = 0
        self._col = 0
        self._page = 0
        self._started = False

    def next_label_geometry(self) -> LabelGeometry:
        on_new_page = not self._started
        if self._started:
            self._col += 1
            if self._col >= self.plan.cols:
                self._col = 0
                self._row += 1
            if self.plan.single_per_page or self._row >= self.plan.rows_per_page:
                self._row = 0
                self._col = 0
                self._page += 1
                on_new_page = True
        self._started = True

        left, top = self.plan.cell_origin(self._row, self._col)
        return LabelGeometry(
            left=left,
            top=top,
            right=left + self.plan.label_width_mm,
            bottom=top + self.plan.label_height_mm,
            page_index=self._page,
            on_new_page=on_new_page,
        )
