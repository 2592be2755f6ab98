"""Resolve record-bound element values for a specific record."""

from __future__ import annotations

from domain_types import PrintableRecord
from layout_model import ElementKind, LabelElement, RecordBinding

__all__ = [
    "build_public_asset_url",
    "qr_payload",
    "resolve_element_text",
]


def build_public_asset_url(base_ui: str, tag: str) -> str:
    """Construct the public page URL that a record's QR code points to."""

    base_clean = (base_ui or "").rstrip("/")
    if not base_clean:
        return tag
    return f"{base_clean}/public/asset/{tag}"


def qr_payload(record: PrintableRecord, base_ui: str) -> str:
    return build_public_asset_url(base_ui, record.tag)


def resolve_element_text(element: LabelElement, record: PrintableRecord | None) -> str:
    """Return the text a text-like element shows for ``record``.

    Attribute keys missing on the record resolve to an empty string.
    """

    if element.kind is ElementKind.ATTRIBUTE:
        if record is None:
            return element.resolved_value
        return record.attribute(element.content) or ""

    if record is not None:
        if element.binding is RecordBinding.NAME:
            return record.name
        if element.binding is RecordBinding.TAG:
            return f"TAG: {record.tag}"
    return element.content
