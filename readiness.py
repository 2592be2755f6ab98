"""Per-record QR raster generation and the readiness gate.

One background task is launched per selected record id. Each task's
completion writes exactly one entry into the readiness map; the gate is
open only when every currently selected id has a usable raster.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Iterable, Sequence

from domain_types import PrintableRecord
from label_data import qr_payload
from notifications import LoggingNotifier, Notice, NoticeLevel, Notifier
from qr_images import QR_RASTER_SIZE_PX, generate_qr_png

logger = logging.getLogger(__name__)

RasterGenerator = Callable[[str, int], bytes]


class RasterStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class RasterEntry:
    status: RasterStatus
    png: bytes = b""
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is RasterStatus.READY and bool(self.png)


_PENDING = RasterEntry(RasterStatus.PENDING)


class ReadinessCoordinator:
    """Track QR raster generation for the current record selection."""

    def __init__(
        self,
        generator: RasterGenerator = generate_qr_png,
        *,
        base_ui: str = "",
        size_px: int = QR_RASTER_SIZE_PX,
        executor: Executor | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._generator = generator
        self._base_ui = base_ui
        self._size_px = size_px
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="qr-raster"
        )
        self._notifier = notifier or LoggingNotifier()
        self._entries: dict[str, RasterEntry] = {}
        self._selection: dict[str, PrintableRecord] = {}
        self._changed = threading.Condition()

    @property
    def selected_ids(self) -> list[str]:
        with self._changed:
            return list(self._selection)

    @property
    def selected_records(self) -> list[PrintableRecord]:
        with self._changed:
            return list(self._selection.values())

    def select(self, records: Sequence[PrintableRecord]) -> None:
        """Replace the selection, launching tasks for records not seen yet."""

        with self._changed:
            self._selection = {record.id: record for record in records}
            to_launch = [r for r in records if r.id not in self._entries]
            for record in to_launch:
                self._entries[record.id] = _PENDING
        self._launch(to_launch)

    def add(self, record: PrintableRecord) -> None:
        with self._changed:
            self._selection[record.id] = record
            launch = record.id not in self._entries
            if launch:
                self._entries[record.id] = _PENDING
        if launch:
            self._launch([record])

    def remove(self, record_id: str) -> None:
        """Drop ``record_id`` from the selection; its entry is kept."""

        with self._changed:
            self._selection.pop(record_id, None)
            self._changed.notify_all()

    def reset(self) -> None:
        """Forget the selection and every generated raster."""

        with self._changed:
            self._selection = {}
            self._entries = {}
            self._changed.notify_all()

    def retry_failed(self) -> int:
        with self._changed:
            failed = [
                record
                for record_id, record in self._selection.items()
                if self._entries.get(record_id, _PENDING).status is RasterStatus.FAILED
            ]
            for record in failed:
                self._entries[record.id] = _PENDING
        self._launch(failed)
        return len(failed)

    def entry(self, record_id: str) -> RasterEntry | None:
        with self._changed:
            return self._entries.get(record_id)

    def snapshot(self) -> dict[str, RasterEntry]:
        """Return the entries of the selected records."""

        with self._changed:
            return {
                record_id: self._entries.get(record_id, _PENDING)
                for record_id in self._selection
            }

    def pending_ids(self) -> list[str]:
        return [
            record_id
            for record_id, entry in self.snapshot().items()
            if entry.status is RasterStatus.PENDING
        ]

    def failed_ids(self) -> list[str]:
        return [
            record_id
            for record_id, entry in self.snapshot().items()
            if entry.status is RasterStatus.FAILED
        ]

    def is_ready(self, *, allow_failures: bool = False) -> bool:
        """Return True when every selected record has a usable raster.

        With ``allow_failures`` a record whose generation failed also
        counts as settled; pending records never do.
        """

        snapshot = self.snapshot()
        if not snapshot:
            return False
        for entry in snapshot.values():
            if entry.ok:
                continue
            if allow_failures and entry.status is RasterStatus.FAILED:
                continue
            return False
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no selected record is pending."""

        with self._changed:
            return self._changed.wait_for(
                lambda: all(
                    self._entries.get(record_id, _PENDING).status
                    is not RasterStatus.PENDING
                    for record_id in self._selection
                ),
                timeout=timeout,
            )

    def record_completion(
        self,
        record_id: str,
        png: bytes | None = None,
        error: str = "",
    ) -> None:
        """Store the outcome of ``record_id``'s generation task."""

        if png:
            entry = RasterEntry(RasterStatus.READY, png=png)
        else:
            entry = RasterEntry(RasterStatus.FAILED, error=error or "empty raster")
        with self._changed:
            self._entries[record_id] = entry
            selected = record_id in self._selection
            self._changed.notify_all()

        if entry.status is RasterStatus.FAILED and selected:
            self._notifier.notify(
                Notice(
                    title="QR code unavailable",
                    message=f"Could not generate the QR code for {record_id}: {entry.error}",
                    level=NoticeLevel.WARNING,
                )
            )

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _launch(self, records: Iterable[PrintableRecord]) -> None:
        for record in records:
            payload = qr_payload(record, self._base_ui)
            logger.debug("Generating QR raster for %s", record.id)
            future = self._executor.submit(self._generator, payload, self._size_px)
            future.add_done_callback(
                lambda done, record_id=record.id: self._on_done(record_id, done)
            )

    def _on_done(self, record_id: str, future: Future[bytes]) -> None:
        if future.cancelled():
            self.record_completion(record_id, error="cancelled")
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("QR raster for %s failed: %s", record_id, exc)
            self.record_completion(record_id, error=str(exc))
            return
        self.record_completion(record_id, png=future.result())
