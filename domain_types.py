from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RecordAttribute:
    key: str
    value: str


@dataclass(frozen=True)
class PrintableRecord:
    id: str
    tag: str
    name: str
    attributes: list[RecordAttribute] = field(default_factory=list[RecordAttribute])
    category: str = ""
    location: str = ""

    def attribute(self, key: str) -> str | None:
        """Return the first value stored under ``key`` or ``None``."""

        for attr in self.attributes:
            if attr.key == key:
                return attr.value
        return None
