"""Serializable label layout: an ordered list of positioned elements."""

from __future__ import annotations

import copy
import json
from dataclasses import asdict, dataclass, field, fields
from enum import StrEnum
from typing import Any, Iterator, Sequence


class ElementKind(StrEnum):
    TEXT = "text"
    QR = "qr"
    LOGO = "logo"
    CUSTOM = "custom"
    ATTRIBUTE = "attribute"

    @property
    def is_text_like(self) -> bool:
        return self in _TEXT_KINDS


_TEXT_KINDS = frozenset({ElementKind.TEXT, ElementKind.CUSTOM, ElementKind.ATTRIBUTE})


class TextAlign(StrEnum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class RecordBinding(StrEnum):
    """Which record field feeds a ``text`` element, if any."""

    NONE = "none"
    NAME = "name"
    TAG = "tag"


@dataclass
class LabelElement:
    id: str
    kind: ElementKind
    content: str = ""
    position_x: float = 0.0
    position_y: float = 0.0
    width_px: float = 0.0
    # 0 on text-like kinds means "natural height".
    height_px: float = 0.0
    font_size_px: float = 12.0
    font_family: str = "Helvetica"
    text_align: TextAlign = TextAlign.LEFT
    visible: bool = True
    binding: RecordBinding = RecordBinding.NONE
    resolved_value: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        self.kind = ElementKind(self.kind)
        self.text_align = TextAlign(self.text_align)
        self.binding = RecordBinding(self.binding)

    @property
    def auto_height(self) -> bool:
        return self.kind.is_text_like and self.height_px <= 0

    @property
    def is_record_bound(self) -> bool:
        return (
            self.kind in (ElementKind.ATTRIBUTE, ElementKind.QR)
            or self.binding is not RecordBinding.NONE
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("resolved_value")
        data["kind"] = self.kind.value
        data["text_align"] = self.text_align.value
        data["binding"] = self.binding.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LabelElement":
        known = {f.name for f in fields(cls)} - {"resolved_value"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown element fields: {', '.join(sorted(unknown))}")
        return cls(**data)


class LayoutModel:
    """Ordered label elements; list order is z-order (last drawn on top)."""

    def __init__(self, elements: Sequence[LabelElement] = ()) -> None:
        self._elements: list[LabelElement] = list(elements)

    def __iter__(self) -> Iterator[LabelElement]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LayoutModel):
            return NotImplemented
        return self._elements == other._elements

    def __repr__(self) -> str:
        return f"LayoutModel({self._elements!r})"

    @property
    def elements(self) -> list[LabelElement]:
        return self._elements

    def get(self, element_id: str) -> LabelElement:
        for element in self._elements:
            if element.id == element_id:
                return element
        raise KeyError(element_id)

    def append(self, element: LabelElement) -> None:
        if any(e.id == element.id for e in self._elements):
            raise ValueError(f"Duplicate element id '{element.id}'")
        self._elements.append(element)

    def remove(self, element_id: str) -> LabelElement:
        element = self.get(element_id)
        self._elements.remove(element)
        return element

    def visible_elements(self) -> list[LabelElement]:
        return [e for e in self._elements if e.visible]

    def copy(self) -> "LayoutModel":
        return LayoutModel(copy.deepcopy(self._elements))

    def to_list(self) -> list[dict[str, Any]]:
        return [element.to_dict() for element in self._elements]

    @classmethod
    def from_list(cls, items: Sequence[dict[str, Any]]) -> "LayoutModel":
        return cls([LabelElement.from_dict(dict(item)) for item in items])

    def to_json(self) -> str:
        return json.dumps(self.to_list(), indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "LayoutModel":
        return cls.from_list(json.loads(text))
