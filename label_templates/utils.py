"""Text measuring helpers shared by the document renderer."""

from __future__ import annotations

from typing import List

from reportlab.pdfbase.pdfmetrics import stringWidth

LINE_SPACING = 1.2


def line_height(font_size: float) -> float:
    return font_size * LINE_SPACING


def wrap_text_to_width(
    text: str,
    font_name: str,
    font_size: float,
    max_width_pt: float,
) -> List[str]:
    """Wrap text into lines that fit within the specified width.

    Explicit newlines start a new line. A single word wider than the
    available width is broken between characters.
    """

    if not text or max_width_pt <= 0:
        return []

    lines: List[str] = []
    for paragraph in text.splitlines():
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current: List[str] = []
        for word in words:
            tentative = " ".join(current + [word])
            if stringWidth(tentative, font_name, font_size) <= max_width_pt:
                current.append(word)
                continue

            if current:
                lines.append(" ".join(current))
                current = []

            if stringWidth(word, font_name, font_size) <= max_width_pt:
                current = [word]
                continue

            partial = ""
            for ch in word:
                candidate = partial + ch
                if partial and stringWidth(candidate, font_name, font_size) > max_width_pt:
                    lines.append(partial)
                    partial = ch
                else:
                    partial = candidate
            current = [partial] if partial else []

        if current:
            lines.append(" ".join(current))

    while lines and not lines[-1]:
        lines.pop()
    return lines


def fit_text_to_box(
    text: str,
    font_name: str,
    font_size: float,
    max_width_pt: float,
    max_height_pt: float,
    *,
    min_font_size: float = 4.0,
    step: float = 0.5,
) -> tuple[List[str], float]:
    """Wrap ``text`` and shrink the font until the block fits the box height.

    Returns ``(lines, chosen_font_size)``. When even ``min_font_size`` does
    not fit, the lines that fit at that size are returned (at least one).
    """

    size = font_size
    min_font = min(max(min_font_size, 0.5), font_size)
    while True:
        lines = wrap_text_to_width(text, font_name, size, max_width_pt)
        if not lines or len(lines) * line_height(size) <= max_height_pt:
            return lines, size
        if size - step < min_font:
            break
        size -= step

    lines = wrap_text_to_width(text, font_name, min_font, max_width_pt)
    fitting = max(int(max_height_pt // line_height(min_font)), 1)
    return lines[:fitting], min_font


def shrink_fit(
    text: str,
    max_width_pt: float,
    max_font: float,
    min_font: float,
    font_name: str,
    step: float = 0.5,
) -> float:
    """Return the largest font size that fits within ``max_width_pt``."""

    size = max_font
    step = max(step, 0.25)
    while (
        size >= min_font
        and stringWidth(text, font_name, size) > max_width_pt
    ):
        size -= step
    return max(size, min_font)


def center_baseline(
    line_count: int,
    font_size: float,
    area_top: float,
    area_bottom: float,
    gap: float,
) -> float:
    """Return a baseline that vertically centers text inside the given area.

    Coordinates grow upwards (PDF space). ``gap`` is the vertical space
    between lines.
    """

    if line_count <= 0 or area_top <= area_bottom:
        return area_top

    area_height = area_top - area_bottom
    block_height = (line_count * font_size) + max(0, line_count - 1) * gap
    offset = max((area_height - block_height) / 2.0, 0)
    # drawString places the baseline, not the glyph top.
    ascent_estimate = font_size * 0.7
    baseline = area_top - offset - ascent_estimate
    return max(area_bottom, min(baseline, area_top))
