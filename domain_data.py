"""Filtering, pagination and lookup over a record source."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from domain_types import PrintableRecord
from record_source import RecordSource

__all__ = [
    "collect_records",
    "collect_records_by_ids",
    "filter_records",
]


def filter_records(
    records: Sequence[PrintableRecord],
    *,
    search: Optional[str] = None,
    name_pattern: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
) -> List[PrintableRecord]:
    """Apply the user's filters.

    ``search`` is a case-insensitive substring of the name or tag;
    ``name_pattern`` is a case-insensitive regex over the name.
    """

    name_re = None
    if name_pattern:
        try:
            name_re = re.compile(name_pattern, re.IGNORECASE)
        except re.error as exc:
            raise ValueError(
                f"Invalid name pattern regex '{name_pattern}': {exc}"
            ) from exc

    needle = (search or "").strip().lower()
    filtered: List[PrintableRecord] = []
    for record in records:
        if needle and needle not in record.name.lower() and needle not in record.tag.lower():
            continue
        if name_re and not name_re.search(record.name):
            continue
        if category and record.category != category:
            continue
        if location and record.location != location:
            continue
        filtered.append(record)
    return filtered


def collect_records(
    source: RecordSource,
    *,
    search: Optional[str] = None,
    name_pattern: Optional[str] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> tuple[List[PrintableRecord], int]:
    """Return one page of filtered records and the filtered total."""

    filtered = filter_records(
        source.list_records(),
        search=search,
        name_pattern=name_pattern,
        category=category,
        location=location,
    )
    total = len(filtered)
    if not limit:
        return filtered, total
    start = (max(page, 1) - 1) * limit
    return filtered[start:start + limit], total


def collect_records_by_ids(
    source: RecordSource,
    record_ids: Iterable[str],
) -> List[PrintableRecord]:
    """Return records in the order of ``record_ids``, skipping unknown ids."""

    by_id = {record.id: record for record in source.list_records()}
    return [by_id[record_id] for record_id in record_ids if record_id in by_id]
