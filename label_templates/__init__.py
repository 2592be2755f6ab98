"""Catalog of label stocks the designer can print onto."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from errors import UnknownTemplateError

from .types import LabelGeometry, LabelTemplateConfig, PageFormat

__all__ = [
    "LabelGeometry",
    "LabelTemplateConfig",
    "PageFormat",
    "get_template",
    "list_templates",
]

_TEMPLATE_MODULES = ("pimaco", "thermal")


def _load_catalog() -> dict[str, LabelTemplateConfig]:
    catalog: dict[str, LabelTemplateConfig] = {}
    for name in _TEMPLATE_MODULES:
        module = import_module(f"{__name__}.{name}")
        for config in getattr(module, "TEMPLATES", ()):
            if not isinstance(config, LabelTemplateConfig):
                raise TypeError(
                    f"Template module '{name}' exports a non-template entry"
                )
            catalog[config.id] = config
    return catalog


_CATALOG = _load_catalog()


def get_template(template_id: str) -> LabelTemplateConfig:
    """Return the catalog entry for ``template_id``."""

    key = (template_id or "").strip().lower()
    config = _CATALOG.get(key)
    if config is None:
        available = ", ".join(sorted(_CATALOG))
        raise UnknownTemplateError(
            f"Unknown template '{template_id}'. Available templates: {available}"
        )
    return config


def list_templates() -> Iterable[LabelTemplateConfig]:
    """Return catalog entries ordered by id."""

    return [_CATALOG[key] for key in sorted(_CATALOG)]
