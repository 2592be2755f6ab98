"""Sources of printable records: in-memory/JSON files and an HTTP API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, Sequence

import httpx

from domain_types import PrintableRecord, RecordAttribute

logger = logging.getLogger(__name__)

# Default timeout (in seconds) for record API requests.
DEFAULT_TIMEOUT = 30


class RecordSource(Protocol):
    def list_records(self) -> list[PrintableRecord]: ...


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _parse_attributes(value: Any) -> list[RecordAttribute]:
    if isinstance(value, Mapping):
        return [RecordAttribute(_as_str(k), _as_str(v)) for k, v in value.items()]
    attributes: list[RecordAttribute] = []
    for item in value or []:
        if not isinstance(item, Mapping):
            continue
        key = _as_str(item.get("key")).strip()
        if key:
            attributes.append(RecordAttribute(key, _as_str(item.get("value"))))
    return attributes


def record_from_dict(data: Mapping[str, Any]) -> PrintableRecord:
    """Build a record from an API/JSON payload.

    ``attributes`` may be a list of ``{key, value}`` pairs or a mapping.
    """

    record_id = _as_str(data.get("id")).strip()
    if not record_id:
        raise ValueError("Record payload is missing an id.")
    return PrintableRecord(
        id=record_id,
        tag=_as_str(data.get("tag")).strip(),
        name=_as_str(data.get("name")).strip(),
        attributes=_parse_attributes(data.get("attributes")),
        category=_as_str(data.get("category")).strip(),
        location=_as_str(data.get("location")).strip(),
    )


def _sample(record_id: str, name: str, tag: str, category: str, location: str) -> PrintableRecord:
    return PrintableRecord(
        id=record_id,
        tag=tag,
        name=name,
        attributes=[
            RecordAttribute("category", category),
            RecordAttribute("location", location),
        ],
        category=category,
        location=location,
    )


SAMPLE_RECORDS: tuple[PrintableRecord, ...] = (
    _sample("ASSET001", "Notebook Dell Latitude 7400", "TI-NB-001", "Electronics", "Office 1"),
    _sample("ASSET002", 'Monitor LG 27"', "TI-MN-005", "Electronics", "Office 2"),
    _sample("ASSET003", "Office chair", "MOB-CAD-012", "Furniture", "Meeting room"),
    _sample("ASSET004", "Projector Epson PowerLite", "TI-PROJ-002", "Electronics", "Training room"),
    _sample("ASSET005", "Keyboard Dell", "TI-TEC-010", "Electronics", "Office 1"),
    _sample("ASSET006", "Mouse Logitech", "TI-MOU-015", "Electronics", "Office 1"),
    _sample("ASSET007", "Office desk", "MOB-MES-001", "Furniture", "Meeting room"),
    _sample("ASSET008", "Drawer unit", "MOB-GAV-002", "Furniture", "Meeting room"),
    _sample("ASSET009", "Manual pallet jack", "ALM-PAL-001", "Tools", "Warehouse"),
)


@dataclass
class StaticRecordSource:
    """Serve a fixed list of records."""

    records: Sequence[PrintableRecord] = SAMPLE_RECORDS

    def list_records(self) -> list[PrintableRecord]:
        return list(self.records)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "StaticRecordSource":
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(payload, Mapping):
            payload = payload.get("items") or []
        return cls(records=[record_from_dict(item) for item in payload])


@dataclass
class RecordApiClient:
    """Fetch records from a paginated JSON endpoint.

    The endpoint answers ``GET <base_url>?page=N&page_size=M`` with
    ``{"items": [...], "total": T}``.
    """

    base_url: str
    token: str = ""
    timeout: int = DEFAULT_TIMEOUT
    page_size: int = 100
    transport: httpx.BaseTransport | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        base_clean = (self.base_url or "").rstrip("/")
        if not base_clean:
            raise RuntimeError("Record API URL is required.")
        self.base_url = base_clean

    def _client(self) -> httpx.Client:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.Client(
            headers=headers,
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
        )

    def list_records(self) -> list[PrintableRecord]:
        records: list[PrintableRecord] = []
        page = 1
        with self._client() as client:
            while True:
                response = client.get(
                    self.base_url,
                    params={"page": page, "page_size": self.page_size},
                )
                if response.status_code != HTTPStatus.OK:
                    raise RuntimeError(
                        f"Record request failed ({response.status_code}): "
                        f"{response.text[:200]}"
                    )
                payload = response.json()
                items = list(payload.get("items") or [])
                records.extend(self._convert(items))

                total = int(payload.get("total") or 0)
                if not items or len(items) < self.page_size:
                    break
                if total and page * self.page_size >= total:
                    break
                page += 1
        logger.debug("Fetched %d records from %s", len(records), self.base_url)
        return records

    def _convert(self, items: Iterable[Any]) -> list[PrintableRecord]:
        converted: list[PrintableRecord] = []
        for item in items:
            if not isinstance(item, Mapping):
                continue
            try:
                converted.append(record_from_dict(item))
            except ValueError as exc:
                logger.warning("Skipping record payload: %s", exc)
        return converted
