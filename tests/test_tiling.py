import unittest

from label_templates import LabelTemplateConfig, PageFormat, get_template
from tiling import (
    DEFAULT_SHEET_MARGIN_MM,
    TILE_PAGE_MARGIN_MM,
    SheetCursor,
    plan_tiling,
)


def _single(width: float, height: float, gap: float = 2.0) -> LabelTemplateConfig:
    return LabelTemplateConfig(
        id="custom",
        name="Custom",
        width_mm=width,
        height_mm=height,
        cols=1,
        rows=1,
        gap_x_mm=gap,
        gap_y_mm=gap,
        page_format=PageFormat.CUSTOM_SINGLE,
    )


class PlanTilingTests(unittest.TestCase):
    def test_tiled_thermal_fits_three_by_eight(self) -> None:
        plan = plan_tiling(get_template("thermal-50x30"), tile_on_a4=True)
        self.assertEqual((plan.cols, plan.rows), (3, 8))
        self.assertEqual(plan.labels_per_page, 24)
        self.assertEqual(plan.margin_top, TILE_PAGE_MARGIN_MM)
        self.assertEqual((plan.page_width_mm, plan.page_height_mm), (210.0, 297.0))
        self.assertFalse(plan.single_per_page)

    def test_untiled_single_label_page(self) -> None:
        plan = plan_tiling(get_template("thermal-50x30"), tile_on_a4=False)
        self.assertTrue(plan.single_per_page)
        self.assertEqual(plan.labels_per_page, 1)
        self.assertAlmostEqual(plan.page_width_mm, 54.0)
        self.assertAlmostEqual(plan.page_height_mm, 34.0)
        self.assertEqual(plan.orientation, "landscape")

    def test_fixed_sheet_uses_declared_grid(self) -> None:
        plan = plan_tiling(get_template("pimaco-6080"))
        self.assertEqual((plan.cols, plan.rows), (5, 13))
        self.assertAlmostEqual(plan.margin_top, 15.7)
        self.assertAlmostEqual(plan.margin_bottom, 15.7)
        self.assertAlmostEqual(plan.margin_left, 4.7)
        self.assertEqual(plan.orientation, "portrait")

    def test_fixed_sheet_ignores_tile_flag(self) -> None:
        config = get_template("pimaco-6082")
        self.assertEqual(plan_tiling(config, True), plan_tiling(config, False))

    def test_sheet_without_margins_uses_default(self) -> None:
        config = LabelTemplateConfig(
            id="sheet",
            name="Sheet",
            width_mm=60,
            height_mm=30,
            cols=3,
            rows=8,
            gap_x_mm=2,
            gap_y_mm=2,
            page_format=PageFormat.FIXED_SHEET,
        )
        plan = plan_tiling(config)
        self.assertEqual(plan.margin_top, DEFAULT_SHEET_MARGIN_MM)
        self.assertEqual(plan.margin_left, DEFAULT_SHEET_MARGIN_MM)

    def test_zero_gap_is_replaced_when_tiling(self) -> None:
        plan = plan_tiling(_single(50, 30, gap=0), tile_on_a4=True)
        self.assertEqual(plan.gap_x_mm, 2.0)
        self.assertEqual(plan.gap_y_mm, 2.0)

    def test_oversized_label_still_gets_one_cell(self) -> None:
        plan = plan_tiling(_single(300, 400), tile_on_a4=True)
        self.assertEqual((plan.cols, plan.rows), (1, 1))

    def test_page_count(self) -> None:
        plan = plan_tiling(get_template("pimaco-6080"))
        self.assertEqual(plan.page_count(0), 0)
        self.assertEqual(plan.page_count(60), 1)
        self.assertEqual(plan.page_count(61), 2)
        self.assertEqual(plan.page_count(57, skip=3), 1)
        self.assertEqual(plan.page_count(58, skip=3), 2)
        self.assertEqual(plan_tiling(get_template("pimaco-6082")).page_count(21), 1)
        single = plan_tiling(get_template("thermal-50x30"))
        self.assertEqual(single.page_count(5, skip=3), 5)


class SheetCursorTests(unittest.TestCase):
    def test_row_major_order(self) -> None:
        cursor = SheetCursor(plan_tiling(get_template("thermal-50x30"), tile_on_a4=True))
        cells = [cursor.next_label_geometry() for _ in range(4)]
        self.assertEqual((cells[0].left, cells[0].top), (10.0, 10.0))
        self.assertTrue(cells[0].on_new_page)
        self.assertAlmostEqual(cells[1].left, 62.0)
        self.assertAlmostEqual(cells[2].left, 114.0)
        self.assertAlmostEqual(cells[3].left, 10.0)
        self.assertAlmostEqual(cells[3].top, 42.0)
        self.assertFalse(any(cell.on_new_page for cell in cells[1:]))
        self.assertAlmostEqual(cells[0].width, 50.0)
        self.assertAlmostEqual(cells[0].height, 30.0)

    def test_new_page_after_full_sheet(self) -> None:
        cursor = SheetCursor(plan_tiling(get_template("thermal-50x30"), tile_on_a4=True))
        cells = [cursor.next_label_geometry() for _ in range(25)]
        self.assertEqual(cells[23].page_index, 0)
        self.assertEqual(cells[24].page_index, 1)
        self.assertTrue(cells[24].on_new_page)
        self.assertEqual((cells[24].left, cells[24].top), (10.0, 10.0))

    def test_row_past_bottom_margin_starts_new_page(self) -> None:
        plan = plan_tiling(get_template("pimaco-6080"))
        self.assertEqual(plan.rows_per_page, 12)
        self.assertEqual(plan.labels_per_page, 60)
        cursor = SheetCursor(plan)
        cells = [cursor.next_label_geometry() for _ in range(61)]
        self.assertTrue(all(cell.page_index == 0 for cell in cells[:60]))
        self.assertEqual(cells[60].page_index, 1)
        self.assertTrue(cells[60].on_new_page)
        for cell in cells[:60]:
            self.assertLessEqual(cell.bottom, 297.0 - 15.7 + 1e-6)

    def test_full_pimaco_6082_sheet_fits_one_page(self) -> None:
        plan = plan_tiling(get_template("pimaco-6082"))
        self.assertEqual(plan.rows_per_page, 7)
        cursor = SheetCursor(plan)
        cells = [cursor.next_label_geometry() for _ in range(22)]
        self.assertTrue(all(cell.page_index == 0 for cell in cells[:21]))
        self.assertEqual(cells[21].page_index, 1)

    def test_single_per_page(self) -> None:
        cursor = SheetCursor(plan_tiling(get_template("thermal-70x40")))
        cells = [cursor.next_label_geometry() for _ in range(3)]
        self.assertEqual([cell.page_index for cell in cells], [0, 1, 2])
        self.assertTrue(all(cell.on_new_page for cell in cells))
        self.assertEqual((cells[2].left, cells[2].top), (2.0, 2.0))

    def test_reset(self) -> None:
        cursor = SheetCursor(plan_tiling(get_template("pimaco-6082")))
        cursor.next_label_geometry()
        cursor.next_label_geometry()
        cursor.reset()
        cell = cursor.next_label_geometry()
        self.assertEqual(cell.page_index, 0)
        self.assertTrue(cell.on_new_page)
        self.assertAlmostEqual(cell.left, 4.7)
