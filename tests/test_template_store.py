import tempfile
import unittest
from pathlib import Path

from errors import TemplatePersistenceError
from label_templates import get_template
from layout_editor import default_layout
from template_store import (
    InMemoryTemplateStore,
    JsonFileTemplateStore,
    SavedLayoutTemplate,
    deserialize_templates,
    serialize_templates,
)


def _template(name: str, tenant: str = "tenant-a") -> SavedLayoutTemplate:
    return SavedLayoutTemplate(
        name=name,
        tenant_id=tenant,
        base_template_config_id="thermal-50x30",
        elements=default_layout(get_template("thermal-50x30")),
        tile_on_a4=True,
    )


class SerializationTests(unittest.TestCase):
    def test_round_trip(self) -> None:
        templates = [_template("Shelf"), _template("Box")]
        restored = deserialize_templates(serialize_templates(templates))
        self.assertEqual([t.name for t in restored], ["Shelf", "Box"])
        self.assertEqual(restored[0].elements, templates[0].elements)
        self.assertTrue(restored[0].tile_on_a4)
        self.assertEqual(restored[0].id, templates[0].id)

    def test_serialization_is_byte_stable(self) -> None:
        text = serialize_templates([_template("Shelf")])
        self.assertEqual(serialize_templates(deserialize_templates(text)), text)

    def test_rejects_non_list_payload(self) -> None:
        with self.assertRaises(ValueError):
            deserialize_templates('{"name": "Shelf"}')


class InMemoryTemplateStoreTests(unittest.TestCase):
    def test_tenants_are_isolated(self) -> None:
        store = InMemoryTemplateStore()
        store.put(_template("Shelf", "tenant-a"))
        self.assertEqual([t.name for t in store.load("tenant-a")], ["Shelf"])
        self.assertEqual(store.load("tenant-b"), [])

    def test_put_replaces_by_id(self) -> None:
        store = InMemoryTemplateStore()
        template = _template("Shelf")
        store.put(template)
        template.name = "Shelf v2"
        store.put(template)
        self.assertEqual([t.name for t in store.load("tenant-a")], ["Shelf v2"])

    def test_delete(self) -> None:
        store = InMemoryTemplateStore()
        template = _template("Shelf")
        store.put(template)
        self.assertTrue(store.delete("tenant-a", template.id))
        self.assertFalse(store.delete("tenant-a", template.id))
        self.assertEqual(store.load("tenant-a"), [])

    def test_get_unknown_raises(self) -> None:
        with self.assertRaises(TemplatePersistenceError):
            InMemoryTemplateStore().get("tenant-a", "missing")

    def test_unserializable_layout_is_rejected(self) -> None:
        store = InMemoryTemplateStore()
        store.put(_template("Shelf"))
        broken = _template("Box")
        broken.elements.get("record-name").content = b"raw"  # pyright: ignore[reportAttributeAccessIssue]
        with self.assertRaises(TemplatePersistenceError):
            store.put(broken)
        self.assertEqual([t.name for t in store.load("tenant-a")], ["Shelf"])


class JsonFileTemplateStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.directory = Path(self._tmp.name) / "layouts"
        self.store = JsonFileTemplateStore(self.directory)

    def test_missing_file_loads_empty(self) -> None:
        self.assertEqual(self.store.load("tenant-a"), [])

    def test_save_and_reload(self) -> None:
        self.store.put(_template("Shelf"))
        reopened = JsonFileTemplateStore(self.directory)
        loaded = reopened.get("tenant-a", "Shelf")
        self.assertEqual(loaded.base_template_config_id, "thermal-50x30")
        self.assertEqual(len(loaded.elements), 3)
        self.assertEqual(
            sorted(p.name for p in self.directory.iterdir()),
            ["label_templates_tenant-a.json"],
        )

    def test_tenant_id_is_sanitised(self) -> None:
        path = self.store.path_for("../evil tenant")
        self.assertEqual(path.parent, self.directory)
        self.assertEqual(path.name, "label_templates_.._evil_tenant.json")

    def test_corrupt_file_raises(self) -> None:
        self.directory.mkdir(parents=True)
        self.store.path_for("tenant-a").write_text("{not json", encoding="utf-8")
        with self.assertRaises(TemplatePersistenceError):
            self.store.load("tenant-a")
