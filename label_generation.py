"""Rendering of label layouts into paginated PDF documents."""

from __future__ import annotations

import base64
import binascii
import logging
import os
import threading
from dataclasses import dataclass, field
from datetime import date
from io import BytesIO
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Callable, Mapping, Sequence

import fitz
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import getAscent
from reportlab.pdfgen import canvas

from domain_types import PrintableRecord
from errors import (
    CatastrophicAssemblyFailure,
    EmptyLayoutError,
    EmptySelectionError,
    GenerationInProgressError,
    NotReadyError,
)
from fonts import SANS_FONT, font_settings
from label_data import resolve_element_text
from label_templates import LabelGeometry, LabelTemplateConfig
from label_templates.utils import (
    center_baseline,
    fit_text_to_box,
    line_height,
    shrink_fit,
    wrap_text_to_width,
)
from layout_model import ElementKind, LabelElement, LayoutModel, TextAlign
from notifications import LoggingNotifier, Notice, NoticeLevel, Notifier
from readiness import RasterEntry, RasterStatus, ReadinessCoordinator
from tiling import SheetCursor, TilingPlan, plan_tiling
from units import mm_to_pt, px_to_mm

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "labels"
PLACEHOLDER_TEXT = "QR unavailable"
LOGO_PLACEHOLDER_TEXT = "Logo unavailable"
PLACEHOLDER_GREY = 0.6


def default_output_name(today: date | None = None) -> str:
    """Return ``labels_YYYY-MM-DD.pdf`` for ``today``."""

    today = today or date.today()
    return f"{OUTPUT_PREFIX}_{today.isoformat()}.pdf"


@dataclass(frozen=True)
class RenderIssue:
    """A per-record problem that was substituted instead of aborting."""

    record_id: str
    element_id: str
    reason: str


@dataclass
class GenerationResult:
    output_path: str
    page_count: int
    label_count: int
    issues: list[RenderIssue] = field(default_factory=list[RenderIssue])


@dataclass(frozen=True)
class TextBlock:
    lines: list[str]
    font_name: str
    font_size: float

    @property
    def height_pt(self) -> float:
        return len(self.lines) * line_height(self.font_size)


def layout_text_block(element: LabelElement, text: str) -> TextBlock:
    """Wrap ``text`` for ``element``'s box.

    Auto-height elements keep every wrapped line; fixed-height boxes
    shrink the font until the block fits.
    """

    font = font_settings(element.font_family, element.font_size_px)
    width_pt = mm_to_pt(px_to_mm(element.width_px))
    if width_pt <= 0:
        return TextBlock(text.splitlines(), font.font_name, font.size)
    if element.auto_height:
        lines = wrap_text_to_width(text, font.font_name, font.size, width_pt)
        return TextBlock(lines, font.font_name, font.size)
    height_pt = mm_to_pt(px_to_mm(element.height_px))
    lines, size = fit_text_to_box(text, font.font_name, font.size, width_pt, height_pt)
    return TextBlock(lines, font.font_name, size)


def decode_data_url(value: str) -> bytes | None:
    """Return the bytes of a base64 ``data:`` URL, or None if it is empty."""

    value = (value or "").strip()
    if not value:
        return None
    if value.startswith("data:"):
        header, _, value = value.partition(",")
        if ";base64" not in header:
            raise ValueError("Only base64 data URLs are supported.")
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Invalid base64 image data: {exc}") from exc


def open_image(data: bytes) -> ImageReader:
    """Return a reader for PNG/JPEG ``data``; ValueError if it is not an image."""

    try:
        reader = ImageReader(BytesIO(data))
        reader.getSize()
    except (OSError, ValueError) as exc:
        raise ValueError(f"not a readable image ({exc})") from exc
    return reader


def prepare_logo(logo: bytes | None) -> tuple[ImageReader | None, str]:
    """Open a job-level logo once; returns ``(reader, error)``."""

    if logo is None:
        return None, ""
    try:
        return open_image(logo), ""
    except ValueError as exc:
        return None, str(exc)


@dataclass
class _DrawContext:
    canvas_obj: canvas.Canvas
    page_height_mm: float
    cell: LabelGeometry
    record: PrintableRecord | None
    raster: RasterEntry | None
    logo: ImageReader | None
    issues: list[RenderIssue]
    # Set when a job logo was given but could not be read.
    logo_error: str = ""

    def x_pt(self, offset_px: float) -> float:
        return mm_to_pt(self.cell.left + px_to_mm(offset_px))

    def y_pt(self, offset_px: float) -> float:
        """PDF y (bottom-up) of a point ``offset_px`` below the cell top."""

        return mm_to_pt(self.page_height_mm - self.cell.top - px_to_mm(offset_px))

    def report(self, element: LabelElement, reason: str) -> None:
        record_id = self.record.id if self.record else ""
        self.issues.append(RenderIssue(record_id, element.id, reason))


_ALIGNED_DRAW = {
    TextAlign.LEFT: "drawString",
    TextAlign.CENTER: "drawCentredString",
    TextAlign.RIGHT: "drawRightString",
}


def _draw_text(ctx: _DrawContext, element: LabelElement) -> None:
    if (
        element.kind is ElementKind.ATTRIBUTE
        and ctx.record is not None
        and ctx.record.attribute(element.content) is None
    ):
        ctx.report(element, f"attribute '{element.content}' missing")
    text = resolve_element_text(element, ctx.record)
    if not text.strip():
        return

    block = layout_text_block(element, text)
    if not block.lines:
        return

    left = ctx.x_pt(element.position_x)
    width = mm_to_pt(px_to_mm(element.width_px))
    anchor_x = {
        TextAlign.LEFT: left,
        TextAlign.CENTER: left + width / 2.0,
        TextAlign.RIGHT: left + width,
    }[element.text_align]
    draw = getattr(ctx.canvas_obj, _ALIGNED_DRAW[element.text_align])

    top = ctx.y_pt(element.position_y)
    baseline = top - getAscent(block.font_name, block.font_size)
    ctx.canvas_obj.setFont(block.font_name, block.font_size)
    for line in block.lines:
        draw(anchor_x, baseline, line)
        baseline -= line_height(block.font_size)


def _draw_placeholder(
    ctx: _DrawContext,
    left: float,
    bottom: float,
    width: float,
    height: float,
    text: str,
) -> None:
    c = ctx.canvas_obj
    c.saveState()
    c.setStrokeGray(PLACEHOLDER_GREY)
    c.setFillGray(PLACEHOLDER_GREY)
    c.setLineWidth(0.5)
    c.rect(left, bottom, width, height, stroke=1, fill=0)
    font_size = shrink_fit(
        text,
        width * 0.9,
        max_font=8.0,
        min_font=2.0,
        font_name=SANS_FONT,
    )
    baseline = center_baseline(1, font_size, bottom + height, bottom, 0.0)
    c.setFont(SANS_FONT, font_size)
    c.drawCentredString(left + width / 2.0, baseline, text)
    c.restoreState()


def _draw_qr(ctx: _DrawContext, element: LabelElement) -> None:
    size = mm_to_pt(px_to_mm(min(element.width_px, element.height_px)))
    if size <= 0:
        return
    left = ctx.x_pt(element.position_x)
    bottom = ctx.y_pt(element.position_y) - size

    raster = ctx.raster
    if raster is None or not raster.ok:
        reason = raster.error if raster is not None and raster.error else "no QR raster"
        ctx.report(element, f"QR unavailable: {reason}")
        _draw_placeholder(ctx, left, bottom, size, size, PLACEHOLDER_TEXT)
        return

    ctx.canvas_obj.drawImage(
        ImageReader(BytesIO(raster.png)),
        left,
        bottom,
        width=size,
        height=size,
        mask="auto",
    )


def _element_logo(ctx: _DrawContext, element: LabelElement) -> ImageReader | None:
    """Job logo if one was given, else the element's own data URL.

    Raises ValueError when the image cannot be read.
    """

    if ctx.logo is not None:
        return ctx.logo
    if ctx.logo_error:
        raise ValueError(ctx.logo_error)
    data = decode_data_url(element.content)
    if not data:
        return None
    return open_image(data)


def _draw_logo(ctx: _DrawContext, element: LabelElement) -> None:
    width = mm_to_pt(px_to_mm(element.width_px))
    height = mm_to_pt(px_to_mm(element.height_px))
    if width <= 0 or height <= 0:
        return
    left = ctx.x_pt(element.position_x)
    bottom = ctx.y_pt(element.position_y) - height

    try:
        reader = _element_logo(ctx, element)
    except ValueError as exc:
        ctx.report(element, f"logo unreadable: {exc}")
        _draw_placeholder(ctx, left, bottom, width, height, LOGO_PLACEHOLDER_TEXT)
        return
    if reader is None:
        return

    ctx.canvas_obj.drawImage(
        reader,
        left,
        bottom,
        width=width,
        height=height,
        preserveAspectRatio=True,
        anchor="nw",
        mask="auto",
    )


_ELEMENT_DRAWERS: dict[ElementKind, Callable[[_DrawContext, LabelElement], None]] = {
    ElementKind.TEXT: _draw_text,
    ElementKind.CUSTOM: _draw_text,
    ElementKind.ATTRIBUTE: _draw_text,
    ElementKind.QR: _draw_qr,
    ElementKind.LOGO: _draw_logo,
}


def draw_label(ctx: _DrawContext, layout: LayoutModel) -> None:
    """Draw every visible element of ``layout`` into ``ctx.cell``."""

    for element in layout.visible_elements():
        _ELEMENT_DRAWERS[element.kind](ctx, element)


def _draw_outline(canvas_obj: canvas.Canvas, cell: LabelGeometry, page_height_mm: float) -> None:
    canvas_obj.saveState()
    canvas_obj.setLineWidth(0.5)
    canvas_obj.setStrokeGray(0.75)
    canvas_obj.rect(
        mm_to_pt(cell.left),
        mm_to_pt(page_height_mm - cell.bottom),
        mm_to_pt(cell.width),
        mm_to_pt(cell.height),
    )
    canvas_obj.restoreState()


class DocumentRenderer:
    """Assemble label PDFs; one generation at a time per instance."""

    def __init__(self, notifier: Notifier | None = None) -> None:
        self._notifier = notifier or LoggingNotifier()
        self._busy = threading.Lock()

    @property
    def is_generating(self) -> bool:
        return self._busy.locked()

    def generate(
        self,
        output_path: str | os.PathLike[str] | None,
        records: Sequence[PrintableRecord],
        layout: LayoutModel,
        config: LabelTemplateConfig,
        readiness: ReadinessCoordinator,
        *,
        tile_on_a4: bool = False,
        logo: bytes | None = None,
        skip: int = 0,
        draw_outline: bool = False,
    ) -> GenerationResult:
        """Render ``records`` with ``layout`` onto ``config``'s page grid.

        Raises the blocking errors (empty layout, empty selection, not
        ready) before anything is written. Per-record problems are
        substituted and reported in the result.
        """

        if not self._busy.acquire(blocking=False):
            raise GenerationInProgressError()
        try:
            if not layout.visible_elements():
                raise EmptyLayoutError()
            if not records:
                raise EmptySelectionError()
            rasters = self._check_ready(records, readiness)

            logo_reader, logo_error = prepare_logo(logo)
            if logo_error:
                self._notifier.notify(
                    Notice(
                        title="Logo unavailable",
                        message=f"The logo file is {logo_error}.",
                        level=NoticeLevel.WARNING,
                    )
                )

            path = Path(output_path or default_output_name())
            plan = plan_tiling(config, tile_on_a4)
            result = self._assemble(
                path,
                records,
                layout,
                plan,
                rasters,
                (logo_reader, logo_error),
                max(skip, 0),
                draw_outline,
            )
        finally:
            self._busy.release()

        for issue in result.issues:
            self._notifier.notify(
                Notice(
                    title="Label rendered with substitutes",
                    message=f"{issue.record_id}: {issue.reason}",
                    level=NoticeLevel.WARNING,
                )
            )
        self._notifier.notify(
            Notice(
                title="PDF generated",
                message=f"{result.label_count} label(s) on {result.page_count} page(s).",
            )
        )
        return result

    def _check_ready(
        self,
        records: Sequence[PrintableRecord],
        readiness: ReadinessCoordinator,
    ) -> Mapping[str, RasterEntry]:
        gate_open = readiness.is_ready(allow_failures=True)
        snapshot = readiness.snapshot()
        pending = [
            record.id
            for record in records
            if record.id not in snapshot
            or snapshot[record.id].status is RasterStatus.PENDING
        ]
        if pending or not gate_open:
            raise NotReadyError(pending or readiness.pending_ids())
        return snapshot

    def _assemble(
        self,
        path: Path,
        records: Sequence[PrintableRecord],
        layout: LayoutModel,
        plan: TilingPlan,
        rasters: Mapping[str, RasterEntry],
        logo: tuple[ImageReader | None, str],
        skip: int,
        draw_outline: bool,
    ) -> GenerationResult:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = NamedTemporaryFile(
                delete=False, dir=path.parent, prefix=".tmp-", suffix=".pdf"
            )
            tmp_file.close()
        except OSError as exc:
            raise CatastrophicAssemblyFailure(
                f"Cannot write to '{path.parent}': {exc}"
            ) from exc

        issues: list[RenderIssue] = []
        try:
            page_size = (mm_to_pt(plan.page_width_mm), mm_to_pt(plan.page_height_mm))
            canvas_obj = canvas.Canvas(tmp_file.name, pagesize=page_size)
            canvas_obj.setTitle(path.stem)

            cursor = SheetCursor(plan)
            if not plan.single_per_page:
                for _ in range(skip):
                    cursor.next_label_geometry()

            page_index = 0
            for record in records:
                geometry = cursor.next_label_geometry()
                if geometry.page_index > page_index:
                    canvas_obj.showPage()
                    page_index = geometry.page_index

                ctx = _DrawContext(
                    canvas_obj=canvas_obj,
                    page_height_mm=plan.page_height_mm,
                    cell=geometry,
                    record=record,
                    raster=rasters.get(record.id),
                    logo=logo[0],
                    issues=issues,
                    logo_error=logo[1],
                )
                draw_label(ctx, layout)
                if draw_outline:
                    _draw_outline(canvas_obj, geometry, plan.page_height_mm)

            canvas_obj.showPage()
            canvas_obj.save()
            os.replace(tmp_file.name, path)
        except Exception as exc:
            try:
                os.remove(tmp_file.name)
            except OSError:
                pass
            logger.exception("Label document assembly failed")
            raise CatastrophicAssemblyFailure(
                f"Could not assemble the label document: {exc}"
            ) from exc

        logger.info("Wrote %s (%d pages)", path, page_index + 1)
        return GenerationResult(
            output_path=str(path),
            page_count=page_index + 1,
            label_count=len(records),
            issues=issues,
        )


def render_label_preview(
    layout: LayoutModel,
    config: LabelTemplateConfig,
    record: PrintableRecord | None,
    raster: RasterEntry | None = None,
    *,
    logo: bytes | None = None,
    dpi: int = 150,
) -> bytes:
    """Return PNG bytes of a single label, as the editor preview shows it."""

    logo_reader, logo_error = prepare_logo(logo)
    buffer = BytesIO()
    page_size = (mm_to_pt(config.width_mm), mm_to_pt(config.height_mm))
    canvas_obj = canvas.Canvas(buffer, pagesize=page_size)
    cell = LabelGeometry(
        left=0.0,
        top=0.0,
        right=config.width_mm,
        bottom=config.height_mm,
        page_index=0,
        on_new_page=True,
    )
    ctx = _DrawContext(
        canvas_obj=canvas_obj,
        page_height_mm=config.height_mm,
        cell=cell,
        record=record,
        raster=raster,
        logo=logo_reader,
        issues=[],
        logo_error=logo_error,
    )
    draw_label(ctx, layout)
    canvas_obj.showPage()
    canvas_obj.save()

    pdf_bytes = buffer.getvalue()
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        page = doc.load_page(0)
        pix = page.get_pixmap(dpi=dpi)
        return pix.tobytes("png")
