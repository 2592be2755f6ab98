import unittest

from units import MM_TO_PT, PX_TO_MM, mm_to_pt, mm_to_px, px_to_mm, px_to_pt


class UnitConversionTests(unittest.TestCase):
    def test_px_to_mm_uses_96_dpi(self) -> None:
        self.assertAlmostEqual(px_to_mm(96), 25.4)
        self.assertAlmostEqual(PX_TO_MM, 0.2645833, places=6)

    def test_px_to_pt(self) -> None:
        self.assertAlmostEqual(px_to_pt(16), 12.0)
        self.assertEqual(px_to_pt(0), 0)

    def test_mm_to_pt(self) -> None:
        self.assertAlmostEqual(mm_to_pt(25.4), 72.0)
        self.assertAlmostEqual(MM_TO_PT, 2.83465, places=4)

    def test_px_to_mm_to_pt_matches_px_to_pt(self) -> None:
        self.assertAlmostEqual(mm_to_pt(px_to_mm(40)), px_to_pt(40))

    def test_mm_to_px_inverts_px_to_mm(self) -> None:
        self.assertAlmostEqual(mm_to_px(px_to_mm(37.0)), 37.0)
        self.assertAlmostEqual(mm_to_px(25.4), 96.0)
