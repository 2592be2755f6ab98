"""Durable, tenant-scoped storage of named label layouts."""

from __future__ import annotations

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Sequence
from uuid import uuid4

from errors import TemplatePersistenceError
from layout_model import LayoutModel

logger = logging.getLogger(__name__)


@dataclass
class SavedLayoutTemplate:
    name: str
    tenant_id: str
    base_template_config_id: str
    elements: LayoutModel
    tile_on_a4: bool = False
    id: str = field(default_factory=lambda: uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tenant_id": self.tenant_id,
            "base_template_config_id": self.base_template_config_id,
            "elements": self.elements.to_list(),
            "tile_on_a4": self.tile_on_a4,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedLayoutTemplate":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            tenant_id=str(data["tenant_id"]),
            base_template_config_id=str(data["base_template_config_id"]),
            elements=LayoutModel.from_list(data.get("elements") or []),
            tile_on_a4=bool(data.get("tile_on_a4", False)),
        )


def serialize_templates(templates: Sequence[SavedLayoutTemplate]) -> str:
    """Stable JSON text: unchanged templates always produce the same bytes."""

    return json.dumps(
        [template.to_dict() for template in templates],
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
    ) + "\n"


def deserialize_templates(text: str) -> list[SavedLayoutTemplate]:
    payload = json.loads(text)
    if not isinstance(payload, list):
        raise ValueError("Template file must contain a JSON list.")
    return [SavedLayoutTemplate.from_dict(item) for item in payload]


class TemplateStore(ABC):
    """Load/save/delete named layouts for one tenant at a time."""

    @abstractmethod
    def load(self, tenant_id: str) -> list[SavedLayoutTemplate]:
        """Return the tenant's templates in saved order."""

    @abstractmethod
    def save(self, tenant_id: str, templates: Sequence[SavedLayoutTemplate]) -> None:
        """Replace the tenant's templates with ``templates``."""

    def delete(self, tenant_id: str, template_id: str) -> bool:
        templates = self.load(tenant_id)
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            return False
        self.save(tenant_id, remaining)
        return True

    def put(self, template: SavedLayoutTemplate) -> None:
        """Insert ``template`` or replace the stored one with the same id."""

        templates = self.load(template.tenant_id)
        for idx, existing in enumerate(templates):
            if existing.id == template.id:
                templates[idx] = template
                break
        else:
            templates.append(template)
        self.save(template.tenant_id, templates)

    def get(self, tenant_id: str, template_id: str) -> SavedLayoutTemplate:
        for template in self.load(tenant_id):
            if template.id == template_id or template.name == template_id:
                return template
        raise TemplatePersistenceError(
            f"No saved layout '{template_id}' for tenant '{tenant_id}'."
        )


class InMemoryTemplateStore(TemplateStore):
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def load(self, tenant_id: str) -> list[SavedLayoutTemplate]:
        text = self._data.get(tenant_id)
        if text is None:
            return []
        return deserialize_templates(text)

    def save(self, tenant_id: str, templates: Sequence[SavedLayoutTemplate]) -> None:
        try:
            self._data[tenant_id] = serialize_templates(templates)
        except (TypeError, ValueError) as exc:
            raise TemplatePersistenceError(
                f"Could not save layouts for tenant '{tenant_id}': {exc}"
            ) from exc

    def raw(self, tenant_id: str) -> str | None:
        return self._data.get(tenant_id)


_TENANT_RE = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileTemplateStore(TemplateStore):
    """One JSON file per tenant inside ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, tenant_id: str) -> Path:
        safe = _TENANT_RE.sub("_", tenant_id.strip()) or "default"
        return self.directory / f"label_templates_{safe}.json"

    def load(self, tenant_id: str) -> list[SavedLayoutTemplate]:
        path = self.path_for(tenant_id)
        if not path.exists():
            return []
        try:
            return deserialize_templates(path.read_text(encoding="utf-8"))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise TemplatePersistenceError(
                f"Could not read saved layouts from '{path}': {exc}"
            ) from exc

    def save(self, tenant_id: str, templates: Sequence[SavedLayoutTemplate]) -> None:
        path = self.path_for(tenant_id)
        try:
            text = serialize_templates(templates)
            path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=".tmp-",
                suffix=".json",
                delete=False,
            ) as handle:
                handle.write(text)
            os.replace(handle.name, path)
        except (OSError, TypeError, ValueError) as exc:
            raise TemplatePersistenceError(
                f"Could not save layouts to '{path}': {exc}"
            ) from exc
        logger.info("Saved %d layout(s) for tenant %s", len(templates), tenant_id)
