"""Environment-driven settings for the CLI and the web UI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from record_source import RecordApiClient, RecordSource, StaticRecordSource
from template_store import JsonFileTemplateStore

DEFAULT_TEMPLATE_DIR = "label_layouts"
DEFAULT_TENANT_ID = "default"


def _check_url(name: str, value: str) -> str:
    value = value.strip()
    if not value:
        return ""
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise RuntimeError(f"{name} must be an http(s) URL, got '{value}'.")
    return value.rstrip("/")


@dataclass(frozen=True)
class AppSettings:
    public_base_url: str = ""
    template_dir: Path = Path(DEFAULT_TEMPLATE_DIR)
    tenant_id: str = DEFAULT_TENANT_ID
    records_url: str = ""
    records_file: str = ""
    api_token: str = ""
    secret_key: str = "label-designer-ui"

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            public_base_url=_check_url(
                "LABELS_PUBLIC_BASE_URL", os.getenv("LABELS_PUBLIC_BASE_URL", "")
            ),
            template_dir=Path(os.getenv("LABELS_TEMPLATE_DIR", DEFAULT_TEMPLATE_DIR)),
            tenant_id=os.getenv("LABELS_TENANT_ID", DEFAULT_TENANT_ID).strip()
            or DEFAULT_TENANT_ID,
            records_url=_check_url("LABELS_RECORDS_URL", os.getenv("LABELS_RECORDS_URL", "")),
            records_file=os.getenv("LABELS_RECORDS_FILE", "").strip(),
            api_token=os.getenv("LABELS_API_TOKEN", ""),
            secret_key=os.getenv("FLASK_SECRET_KEY", "label-designer-ui"),
        )

    def record_source(self) -> RecordSource:
        """HTTP source if configured, else a JSON file, else sample records."""

        if self.records_url:
            return RecordApiClient(base_url=self.records_url, token=self.api_token)
        if self.records_file:
            return StaticRecordSource.from_json_file(self.records_file)
        return StaticRecordSource()

    def template_store(self) -> JsonFileTemplateStore:
        return JsonFileTemplateStore(self.template_dir)
