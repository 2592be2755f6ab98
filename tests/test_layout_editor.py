import unittest
from typing import Sequence

from domain_types import PrintableRecord, RecordAttribute
from errors import TemplatePersistenceError
from label_templates import get_template
from layout_editor import (
    DEFAULT_QR_SIZE_PX,
    EDITOR_PADDING_PX,
    ELEMENT_GAP_PX,
    MIN_ELEMENT_SIZE_PX,
    LayoutEditor,
    clamp_zoom,
    default_layout,
    editable_properties,
    estimated_height_px,
)
from layout_model import ElementKind, RecordBinding
from notifications import CollectingNotifier, NoticeLevel
from template_store import InMemoryTemplateStore, SavedLayoutTemplate


def _records() -> list[PrintableRecord]:
    return [
        PrintableRecord(
            id="ASSET001",
            tag="TI-NB-001",
            name="Notebook",
            attributes=[RecordAttribute("location", "Office 1")],
        ),
        PrintableRecord(
            id="ASSET002",
            tag="TI-MN-005",
            name="Monitor",
            attributes=[RecordAttribute("location", "Office 2")],
        ),
    ]


class _BrokenStore(InMemoryTemplateStore):
    def save(self, tenant_id: str, templates: Sequence[SavedLayoutTemplate]) -> None:
        raise TemplatePersistenceError("disk full")


class _Ids:
    def __init__(self) -> None:
        self.count = 0

    def __call__(self, kind: ElementKind) -> str:
        self.count += 1
        return f"{kind.value}-{self.count}"


class LayoutEditorZoomTests(unittest.TestCase):
    def setUp(self) -> None:
        self.editor = LayoutEditor(get_template("thermal-50x30"))

    def test_clamp_zoom(self) -> None:
        self.assertEqual(clamp_zoom(10), 3.0)
        self.assertEqual(clamp_zoom(0.1), 0.5)
        self.assertEqual(clamp_zoom(1.3), 1.25)

    def test_zoom_in_and_out_stop_at_bounds(self) -> None:
        self.editor.set_zoom(3.0)
        self.assertEqual(self.editor.zoom_in(), 3.0)
        self.editor.set_zoom(0.5)
        self.assertEqual(self.editor.zoom_out(), 0.5)
        self.assertEqual(self.editor.zoom_in(), 0.75)

    def test_zoom_does_not_touch_geometry(self) -> None:
        element_id = self.editor.add_element("text")
        before = self.editor.layout.get(element_id).to_dict()
        self.editor.set_zoom(2.5)
        self.assertEqual(self.editor.layout.get(element_id).to_dict(), before)


class LayoutEditorElementTests(unittest.TestCase):
    def setUp(self) -> None:
        self.editor = LayoutEditor(get_template("thermal-50x30"), id_factory=_Ids())

    def test_first_element_starts_at_padding(self) -> None:
        element_id = self.editor.add_element("custom", content="Hello")
        element = self.editor.layout.get(element_id)
        self.assertEqual(element.position_y, EDITOR_PADDING_PX)
        self.assertEqual(element.content, "Hello")
        self.assertEqual(self.editor.selected_id, element_id)

    def test_new_element_is_placed_below_existing(self) -> None:
        first = self.editor.layout.get(self.editor.add_element("qr"))
        second = self.editor.layout.get(self.editor.add_element("text"))
        self.assertEqual(first.width_px, DEFAULT_QR_SIZE_PX)
        self.assertAlmostEqual(
            second.position_y,
            first.position_y + estimated_height_px(first) + ELEMENT_GAP_PX,
        )

    def test_attribute_requires_key(self) -> None:
        with self.assertRaises(ValueError):
            self.editor.add_element("attribute")
        element_id = self.editor.add_element("attribute", attribute_key="location")
        self.assertEqual(self.editor.layout.get(element_id).content, "location")

    def test_update_element(self) -> None:
        element_id = self.editor.add_element("text")
        element = self.editor.update_element(
            element_id,
            {"content": "Fragile", "font_size_px": "18", "text_align": "center", "visible": "false"},
        )
        self.assertEqual(element.content, "Fragile")
        self.assertEqual(element.font_size_px, 18.0)
        self.assertEqual(element.text_align, "center")
        self.assertFalse(element.visible)

    def test_update_rejects_read_only_and_negative_sizes(self) -> None:
        element_id = self.editor.add_element("text")
        with self.assertRaises(ValueError):
            self.editor.update_element(element_id, {"id": "other"})
        with self.assertRaises(ValueError):
            self.editor.update_element(element_id, {"width_px": -1})
        with self.assertRaises(KeyError):
            self.editor.update_element("missing", {"content": "x"})

    def test_remove_selected_element_clears_selection(self) -> None:
        element_id = self.editor.add_element("logo")
        self.editor.remove_element(element_id)
        self.assertIsNone(self.editor.selected_id)
        self.assertIsNone(self.editor.selected)
        self.assertEqual(len(self.editor.layout), 0)

    def test_property_panels_differ_by_kind(self) -> None:
        qr = self.editor.layout.get(self.editor.add_element("qr"))
        text = self.editor.layout.get(self.editor.add_element("text"))
        self.assertNotIn("font_size_px", editable_properties(qr))
        self.assertNotIn("content", editable_properties(qr))
        self.assertIn("content", editable_properties(text))
        self.assertIn("font_size_px", editable_properties(text))
        text.binding = RecordBinding.NAME
        self.assertNotIn("content", editable_properties(text))

    def test_default_layout(self) -> None:
        layout = default_layout(get_template("thermal-50x30"))
        self.assertEqual([e.id for e in layout], ["record-qr", "record-name", "record-tag"])
        self.assertIs(layout.get("record-name").binding, RecordBinding.NAME)
        self.assertIs(layout.get("record-tag").binding, RecordBinding.TAG)


class LayoutEditorDragTests(unittest.TestCase):
    def setUp(self) -> None:
        self.editor = LayoutEditor(get_template("thermal-50x30"), id_factory=_Ids())
        self.element_id = self.editor.add_element("text")
        self.element = self.editor.layout.get(self.element_id)

    def test_move_divides_by_zoom(self) -> None:
        self.editor.set_zoom(2.0)
        start_x, start_y = self.element.position_x, self.element.position_y
        self.editor.pointer_down(self.element_id, 100, 100)
        self.editor.pointer_move(140, 120)
        self.assertAlmostEqual(self.element.position_x, start_x + 20)
        self.assertAlmostEqual(self.element.position_y, start_y + 10)

    def test_zoom_change_mid_drag_uses_zoom_at_start(self) -> None:
        self.editor.set_zoom(2.0)
        start_x = self.element.position_x
        self.editor.pointer_down(self.element_id, 0, 0)
        self.editor.set_zoom(1.0)
        self.editor.pointer_move(40, 0)
        self.assertAlmostEqual(self.element.position_x, start_x + 20)

    def test_pointer_up_releases_capture(self) -> None:
        self.editor.pointer_down(self.element_id, 0, 0)
        self.editor.pointer_up()
        before = self.element.position_x
        self.assertIsNone(self.editor.pointer_move(50, 50))
        self.assertEqual(self.element.position_x, before)

    def test_pointer_leave_ends_drag(self) -> None:
        self.editor.pointer_down(self.element_id, 0, 0)
        self.editor.pointer_leave()
        self.assertIsNone(self.editor.drag)

    def test_unclamped_drag_can_leave_label(self) -> None:
        self.editor.pointer_down(self.element_id, 0, 0)
        self.editor.pointer_move(-500, -500)
        self.assertLess(self.element.position_x, 0)
        self.assertLess(self.element.position_y, 0)

    def test_clamped_drag_stays_inside_label(self) -> None:
        self.editor.clamp = True
        self.editor.pointer_down(self.element_id, 0, 0)
        self.editor.pointer_move(-500, -500)
        self.assertEqual(self.element.position_x, 0)
        self.assertEqual(self.element.position_y, 0)
        self.editor.pointer_move(5000, 5000)
        self.assertLessEqual(
            self.element.position_x + self.element.width_px,
            self.editor.label_width_px + 1e-6,
        )

    def test_resize_keeps_minimum_size(self) -> None:
        self.editor.pointer_down(self.element_id, 0, 0, mode="resize")
        self.editor.pointer_move(-1000, -1000)
        self.assertEqual(self.element.width_px, MIN_ELEMENT_SIZE_PX)
        self.assertEqual(self.element.height_px, MIN_ELEMENT_SIZE_PX)

    def test_pointer_down_on_unknown_element(self) -> None:
        with self.assertRaises(KeyError):
            self.editor.pointer_down("missing", 0, 0)


class LayoutEditorPreviewTests(unittest.TestCase):
    def setUp(self) -> None:
        config = get_template("thermal-50x30")
        self.editor = LayoutEditor(config, default_layout(config), base_ui="https://assets.example")
        self.editor.add_element("attribute", attribute_key="location")
        self.editor.set_preview_records(_records())

    def test_preview_resolves_first_record(self) -> None:
        name = self.editor.layout.get("record-name")
        self.assertEqual(name.resolved_value, "Notebook")
        self.assertEqual(
            self.editor.layout.get("record-qr").content,
            "https://assets.example/public/asset/TI-NB-001",
        )

    def test_switch_changes_only_resolved_values(self) -> None:
        geometry = [
            (e.id, e.position_x, e.position_y, e.width_px, e.height_px)
            for e in self.editor.layout
        ]
        record = self.editor.switch_preview_record(1)
        self.assertEqual(record.id, "ASSET002")
        self.assertEqual(self.editor.preview_index, 1)
        self.assertEqual(
            [(e.id, e.position_x, e.position_y, e.width_px, e.height_px) for e in self.editor.layout],
            geometry,
        )
        values = {e.id: e.resolved_value for e in self.editor.layout}
        self.assertEqual(values["record-name"], "Monitor")
        self.assertEqual(values["record-tag"], "TAG: TI-MN-005")
        self.assertIn("Office 2", values.values())

    def test_switch_out_of_range(self) -> None:
        with self.assertRaises(IndexError):
            self.editor.switch_preview_record(5)
        self.assertEqual(self.editor.preview_index, 0)

    def test_apply_returns_detached_copy(self) -> None:
        layout = self.editor.apply()
        layout.get("record-name").position_x = 999
        self.assertNotEqual(self.editor.layout.get("record-name").position_x, 999)


class LayoutEditorTemplateTests(unittest.TestCase):
    def setUp(self) -> None:
        config = get_template("pimaco-6082")
        self.notifier = CollectingNotifier()
        self.editor = LayoutEditor(config, default_layout(config), notifier=self.notifier)

    def test_save_and_load_template(self) -> None:
        store = InMemoryTemplateStore()
        saved = self.editor.save_as_template(store, "tenant-a", "Shelf labels", tile_on_a4=True)
        assert saved is not None
        self.assertEqual(saved.base_template_config_id, "pimaco-6082")

        self.editor.remove_element("record-tag")
        self.editor.load_template(store.get("tenant-a", "Shelf labels"))
        self.assertEqual(len(self.editor.layout), 3)
        self.assertEqual(store.load("tenant-b"), [])

    def test_failed_save_keeps_layout_and_notifies(self) -> None:
        before = self.editor.layout.to_json()
        result = self.editor.save_as_template(_BrokenStore(), "tenant-a", "Shelf labels")
        self.assertIsNone(result)
        self.assertEqual(self.editor.layout.to_json(), before)
        self.assertEqual(self.notifier.notices[-1].level, NoticeLevel.ERROR)
        self.assertIn("disk full", self.notifier.notices[-1].message)

    def test_template_name_is_required(self) -> None:
        with self.assertRaises(ValueError):
            self.editor.save_as_template(InMemoryTemplateStore(), "tenant-a", "  ")


if __name__ == "__main__":
    unittest.main()
