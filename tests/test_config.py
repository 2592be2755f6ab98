import os
import unittest
from pathlib import Path
from unittest.mock import patch

from config import AppSettings
from record_source import RecordApiClient, StaticRecordSource
from template_store import JsonFileTemplateStore


class AppSettingsTests(unittest.TestCase):
    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self) -> None:
        settings = AppSettings.from_env()
        self.assertEqual(settings.public_base_url, "")
        self.assertEqual(settings.tenant_id, "default")
        self.assertEqual(settings.template_dir, Path("label_layouts"))
        self.assertIsInstance(settings.record_source(), StaticRecordSource)
        self.assertIsInstance(settings.template_store(), JsonFileTemplateStore)

    @patch.dict(
        os.environ,
        {
            "LABELS_PUBLIC_BASE_URL": "https://assets.example/",
            "LABELS_RECORDS_URL": "https://records.example/api/items",
            "LABELS_API_TOKEN": "secret",
            "LABELS_TENANT_ID": "  ",
        },
        clear=True,
    )
    def test_from_env(self) -> None:
        settings = AppSettings.from_env()
        self.assertEqual(settings.public_base_url, "https://assets.example")
        self.assertEqual(settings.tenant_id, "default")
        source = settings.record_source()
        self.assertIsInstance(source, RecordApiClient)

    @patch.dict(os.environ, {"LABELS_PUBLIC_BASE_URL": "assets.example"}, clear=True)
    def test_invalid_url_names_variable(self) -> None:
        with self.assertRaises(RuntimeError) as ctx:
            AppSettings.from_env()
        self.assertIn("LABELS_PUBLIC_BASE_URL", str(ctx.exception))
