"""Interactive editing session over a label layout.

The editor owns one :class:`LayoutModel` plus the session state that goes
with it: the selected element, the zoom level, the active drag capture and
the record currently shown in the preview. Pointer handlers receive
screen coordinates; zoom is purely a view transform and never changes
stored element geometry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import StrEnum
from typing import Any, Callable, Mapping, Sequence
from uuid import uuid4

from domain_types import PrintableRecord
from errors import TemplatePersistenceError
from label_data import qr_payload
from label_templates import LabelTemplateConfig
from layout_model import (
    ElementKind,
    LabelElement,
    LayoutModel,
    RecordBinding,
    TextAlign,
)
from notifications import LoggingNotifier, Notice, NoticeLevel, Notifier
from template_store import SavedLayoutTemplate, TemplateStore
from units import mm_to_px

logger = logging.getLogger(__name__)

MIN_ZOOM = 0.5
MAX_ZOOM = 3.0
ZOOM_STEP = 0.25

DEFAULT_FONT_SIZE_PX = 12.0
DEFAULT_FONT_FAMILY = "Helvetica"
DEFAULT_QR_SIZE_PX = round(mm_to_px(15))
DEFAULT_LOGO_SIZE_PX = (80.0, 40.0)
ELEMENT_GAP_PX = 4.0
EDITOR_PADDING_PX = 4.0
MIN_ELEMENT_SIZE_PX = 4.0
LINE_HEIGHT_FACTOR = 1.2

_READ_ONLY_FIELDS = frozenset({"id", "kind", "resolved_value"})
_ELEMENT_FIELDS = {f.name for f in fields(LabelElement)}


class DragMode(StrEnum):
    MOVE = "move"
    RESIZE = "resize"


@dataclass(frozen=True)
class DragCapture:
    """Pointer state captured on pointer-down, released on pointer-up."""

    element_id: str
    mode: DragMode
    start_pointer_x: float
    start_pointer_y: float
    start_x: float
    start_y: float
    zoom_at_start: float


def clamp_zoom(level: float) -> float:
    """Snap ``level`` to the zoom step grid inside [MIN_ZOOM, MAX_ZOOM]."""

    snapped = round(level / ZOOM_STEP) * ZOOM_STEP
    return min(max(snapped, MIN_ZOOM), MAX_ZOOM)


def estimated_height_px(element: LabelElement) -> float:
    """Box height used for stacking; auto-height text counts as one line."""

    if element.auto_height:
        return element.font_size_px * LINE_HEIGHT_FACTOR
    return element.height_px


# Kind-specific defaults for new elements.

def _text_defaults(editor: "LayoutEditor", content: str | None, _key: str | None) -> dict[str, Any]:
    return {
        "content": content if content is not None else "Text",
        "width_px": editor.text_width_px,
        "height_px": 0.0,
    }


def _custom_defaults(editor: "LayoutEditor", content: str | None, _key: str | None) -> dict[str, Any]:
    return {
        "content": content if content is not None else "Custom text",
        "width_px": editor.text_width_px,
        "height_px": 0.0,
    }


def _attribute_defaults(editor: "LayoutEditor", content: str | None, key: str | None) -> dict[str, Any]:
    attribute_key = key or content
    if not attribute_key:
        raise ValueError("Attribute elements need an attribute key.")
    return {
        "content": attribute_key,
        "width_px": editor.text_width_px,
        "height_px": 0.0,
    }


def _qr_defaults(editor: "LayoutEditor", content: str | None, _key: str | None) -> dict[str, Any]:
    record = editor.preview_record
    payload = qr_payload(record, editor.base_ui) if record else (content or "")
    return {
        "content": payload,
        "width_px": float(DEFAULT_QR_SIZE_PX),
        "height_px": float(DEFAULT_QR_SIZE_PX),
    }


def _logo_defaults(editor: "LayoutEditor", content: str | None, _key: str | None) -> dict[str, Any]:
    width, height = DEFAULT_LOGO_SIZE_PX
    return {"content": content or "", "width_px": width, "height_px": height}


_ELEMENT_DEFAULTS: dict[ElementKind, Callable[["LayoutEditor", str | None, str | None], dict[str, Any]]] = {
    ElementKind.TEXT: _text_defaults,
    ElementKind.CUSTOM: _custom_defaults,
    ElementKind.ATTRIBUTE: _attribute_defaults,
    ElementKind.QR: _qr_defaults,
    ElementKind.LOGO: _logo_defaults,
}


# Property panels: which fields the side panel offers per kind.

_COMMON_PROPERTIES = ("position_x", "position_y", "width_px", "height_px", "visible")
_TYPOGRAPHY = ("font_size_px", "font_family", "text_align")


def _text_panel(element: LabelElement) -> tuple[str, ...]:
    if element.binding is not RecordBinding.NONE:
        return _TYPOGRAPHY + _COMMON_PROPERTIES
    return ("content",) + _TYPOGRAPHY + _COMMON_PROPERTIES


def _attribute_panel(_element: LabelElement) -> tuple[str, ...]:
    return ("content",) + _TYPOGRAPHY + _COMMON_PROPERTIES


def _qr_panel(_element: LabelElement) -> tuple[str, ...]:
    return _COMMON_PROPERTIES


def _logo_panel(_element: LabelElement) -> tuple[str, ...]:
    return ("content",) + _COMMON_PROPERTIES


_PROPERTY_PANELS: dict[ElementKind, Callable[[LabelElement], tuple[str, ...]]] = {
    ElementKind.TEXT: _text_panel,
    ElementKind.CUSTOM: _text_panel,
    ElementKind.ATTRIBUTE: _attribute_panel,
    ElementKind.QR: _qr_panel,
    ElementKind.LOGO: _logo_panel,
}


def editable_properties(element: LabelElement) -> tuple[str, ...]:
    return _PROPERTY_PANELS[element.kind](element)


def _coerce(name: str, value: Any) -> Any:
    if name == "text_align":
        return TextAlign(value)
    if name == "binding":
        return RecordBinding(value)
    if name == "visible":
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
    if name in {"content", "font_family"}:
        return "" if value is None else str(value)
    return float(value)


def default_layout(config: LabelTemplateConfig) -> LayoutModel:
    """QR code on the left, record name and tag stacked on the right."""

    label_w = mm_to_px(config.width_mm)
    label_h = mm_to_px(config.height_mm)
    qr_size = float(min(DEFAULT_QR_SIZE_PX, max(label_h - 2 * EDITOR_PADDING_PX, MIN_ELEMENT_SIZE_PX)))
    text_x = EDITOR_PADDING_PX + qr_size + EDITOR_PADDING_PX
    text_w = max(label_w - text_x - EDITOR_PADDING_PX, MIN_ELEMENT_SIZE_PX)
    name_size = 14.0
    return LayoutModel(
        [
            LabelElement(
                id="record-qr",
                kind=ElementKind.QR,
                position_x=EDITOR_PADDING_PX,
                position_y=EDITOR_PADDING_PX,
                width_px=qr_size,
                height_px=qr_size,
            ),
            LabelElement(
                id="record-name",
                kind=ElementKind.TEXT,
                position_x=text_x,
                position_y=EDITOR_PADDING_PX,
                width_px=text_w,
                font_size_px=name_size,
                binding=RecordBinding.NAME,
            ),
            LabelElement(
                id="record-tag",
                kind=ElementKind.TEXT,
                position_x=text_x,
                position_y=EDITOR_PADDING_PX + 2 * name_size * LINE_HEIGHT_FACTOR + ELEMENT_GAP_PX,
                width_px=text_w,
                font_size_px=11.0,
                binding=RecordBinding.TAG,
            ),
        ]
    )


class LayoutEditor:
    """Editing session for one label layout."""

    def __init__(
        self,
        template_config: LabelTemplateConfig,
        layout: LayoutModel | None = None,
        *,
        clamp: bool = False,
        base_ui: str = "",
        id_factory: Callable[[ElementKind], str] | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.template_config = template_config
        self.layout = layout.copy() if layout is not None else LayoutModel()
        self.clamp = clamp
        self.base_ui = base_ui
        self._id_factory = id_factory or (lambda kind: f"{kind.value}-{uuid4().hex[:8]}")
        self._notifier = notifier or LoggingNotifier()
        self.selected_id: str | None = None
        self.zoom = 1.0
        self.drag: DragCapture | None = None
        self._preview_records: list[PrintableRecord] = []
        self._preview_index = 0

    # Canvas geometry

    @property
    def label_width_px(self) -> float:
        return mm_to_px(self.template_config.width_mm)

    @property
    def label_height_px(self) -> float:
        return mm_to_px(self.template_config.height_mm)

    @property
    def text_width_px(self) -> float:
        return max(self.label_width_px - 2 * EDITOR_PADDING_PX, MIN_ELEMENT_SIZE_PX)

    def set_template_config(self, config: LabelTemplateConfig) -> None:
        self.template_config = config
        if self.clamp:
            for element in self.layout:
                self._clamp_position(element)

    # Element operations

    @property
    def selected(self) -> LabelElement | None:
        if self.selected_id is None:
            return None
        return self.layout.get(self.selected_id)

    def select(self, element_id: str | None) -> None:
        if element_id is not None:
            self.layout.get(element_id)
        self.selected_id = element_id

    def next_free_y(self) -> float:
        """Top edge for a new element, below the lowest existing bottom edge."""

        bottoms = [e.position_y + estimated_height_px(e) for e in self.layout]
        if not bottoms:
            return EDITOR_PADDING_PX
        return max(bottoms) + ELEMENT_GAP_PX

    def add_element(
        self,
        kind: ElementKind | str,
        content: str | None = None,
        attribute_key: str | None = None,
    ) -> str:
        kind = ElementKind(kind)
        defaults = _ELEMENT_DEFAULTS[kind](self, content, attribute_key)
        element = LabelElement(
            id=self._id_factory(kind),
            kind=kind,
            position_x=EDITOR_PADDING_PX,
            position_y=self.next_free_y(),
            font_size_px=DEFAULT_FONT_SIZE_PX,
            font_family=DEFAULT_FONT_FAMILY,
            **defaults,
        )
        if self.clamp:
            self._clamp_position(element)
        self.layout.append(element)
        self._resolve_element(element)
        self.selected_id = element.id
        logger.debug("Added %s element %s", kind.value, element.id)
        return element.id

    def update_element(self, element_id: str, changes: Mapping[str, Any]) -> LabelElement:
        """Merge ``changes`` into the element."""

        element = self.layout.get(element_id)
        coerced: dict[str, Any] = {}
        for name, value in changes.items():
            if name in _READ_ONLY_FIELDS or name not in _ELEMENT_FIELDS:
                raise ValueError(f"Field '{name}' cannot be edited.")
            coerced[name] = _coerce(name, value)

        for name in ("width_px", "height_px"):
            if name in coerced and coerced[name] < 0:
                raise ValueError(f"{name} must not be negative.")

        for name, value in coerced.items():
            setattr(element, name, value)
        if self.clamp and {"position_x", "position_y", "width_px", "height_px"} & coerced.keys():
            self._clamp_position(element)
        self._resolve_element(element)
        return element

    def remove_element(self, element_id: str) -> LabelElement:
        element = self.layout.remove(element_id)
        if self.selected_id == element_id:
            self.selected_id = None
        if self.drag is not None and self.drag.element_id == element_id:
            self.drag = None
        return element

    # Zoom

    def set_zoom(self, level: float) -> float:
        self.zoom = clamp_zoom(level)
        return self.zoom

    def zoom_in(self) -> float:
        return self.set_zoom(self.zoom + ZOOM_STEP)

    def zoom_out(self) -> float:
        return self.set_zoom(self.zoom - ZOOM_STEP)

    # Preview record

    @property
    def preview_records(self) -> list[PrintableRecord]:
        return list(self._preview_records)

    @property
    def preview_index(self) -> int:
        return self._preview_index

    @property
    def preview_record(self) -> PrintableRecord | None:
        if not self._preview_records:
            return None
        return self._preview_records[self._preview_index]

    def set_preview_records(self, records: Sequence[PrintableRecord]) -> None:
        self._preview_records = list(records)
        self._preview_index = 0
        self._resolve_all()

    def switch_preview_record(self, index: int) -> PrintableRecord:
        if not 0 <= index < len(self._preview_records):
            raise IndexError(
                f"Preview record {index} out of range (0-{len(self._preview_records) - 1})."
            )
        self._preview_index = index
        self._resolve_all()
        return self._preview_records[index]

    def _resolve_all(self) -> None:
        for element in self.layout:
            self._resolve_element(element)

    def _resolve_element(self, element: LabelElement) -> None:
        record = self.preview_record
        if record is None:
            return
        if element.kind is ElementKind.ATTRIBUTE:
            element.resolved_value = record.attribute(element.content) or ""
        elif element.kind is ElementKind.QR:
            element.content = qr_payload(record, self.base_ui)
        elif element.binding is RecordBinding.NAME:
            element.resolved_value = record.name
        elif element.binding is RecordBinding.TAG:
            element.resolved_value = f"TAG: {record.tag}"

    # Pointer interaction

    def pointer_down(
        self,
        element_id: str,
        pointer_x: float,
        pointer_y: float,
        mode: DragMode | str = DragMode.MOVE,
    ) -> DragCapture:
        """Start dragging ``element_id``; any earlier capture is replaced."""

        element = self.layout.get(element_id)
        mode = DragMode(mode)
        if mode is DragMode.MOVE:
            start_x, start_y = element.position_x, element.position_y
        else:
            start_x, start_y = element.width_px, estimated_height_px(element)
        self.drag = DragCapture(
            element_id=element_id,
            mode=mode,
            start_pointer_x=pointer_x,
            start_pointer_y=pointer_y,
            start_x=start_x,
            start_y=start_y,
            zoom_at_start=self.zoom,
        )
        self.selected_id = element_id
        return self.drag

    def pointer_move(self, pointer_x: float, pointer_y: float) -> LabelElement | None:
        capture = self.drag
        if capture is None:
            return None
        element = self.layout.get(capture.element_id)
        dx = (pointer_x - capture.start_pointer_x) / capture.zoom_at_start
        dy = (pointer_y - capture.start_pointer_y) / capture.zoom_at_start

        if capture.mode is DragMode.MOVE:
            element.position_x = capture.start_x + dx
            element.position_y = capture.start_y + dy
        else:
            element.width_px = max(capture.start_x + dx, MIN_ELEMENT_SIZE_PX)
            element.height_px = max(capture.start_y + dy, MIN_ELEMENT_SIZE_PX)
        if self.clamp:
            self._clamp_position(element)
        return element

    def pointer_up(self) -> None:
        self.drag = None

    # Leaving the canvas ends the drag the same way releasing does.
    pointer_leave = pointer_up

    def _clamp_position(self, element: LabelElement) -> None:
        max_x = max(self.label_width_px - element.width_px, 0.0)
        max_y = max(self.label_height_px - estimated_height_px(element), 0.0)
        element.position_x = min(max(element.position_x, 0.0), max_x)
        element.position_y = min(max(element.position_y, 0.0), max_y)

    # Finalising and templates

    def apply(self) -> LayoutModel:
        """Return a detached copy of the layout for document generation."""

        return self.layout.copy()

    def load_layout(self, layout: LayoutModel) -> None:
        self.layout = layout.copy()
        self.selected_id = None
        self.drag = None
        self._resolve_all()

    def load_template(self, template: SavedLayoutTemplate) -> None:
        self.load_layout(template.elements)

    def save_as_template(
        self,
        store: TemplateStore,
        tenant_id: str,
        name: str,
        *,
        tile_on_a4: bool = False,
    ) -> SavedLayoutTemplate | None:
        """Persist a snapshot of the layout; returns None if the store failed."""

        name = (name or "").strip()
        if not name:
            raise ValueError("Template name is required.")
        template = SavedLayoutTemplate(
            name=name,
            tenant_id=tenant_id,
            base_template_config_id=self.template_config.id,
            elements=self.layout.copy(),
            tile_on_a4=tile_on_a4,
        )
        try:
            store.put(template)
        except TemplatePersistenceError as exc:
            self._notifier.notify(
                Notice(
                    title="Template not saved",
                    message=str(exc),
                    level=NoticeLevel.ERROR,
                )
            )
            return None
        self._notifier.notify(Notice(title="Template saved", message=f"Saved layout '{name}'."))
        return template
