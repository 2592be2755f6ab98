"""Map editor font families onto the PDF core fonts."""

from __future__ import annotations

from dataclasses import dataclass

from units import px_to_pt

SANS_FONT = "Helvetica"
SERIF_FONT = "Times-Roman"
MONO_FONT = "Courier"

# Checked in order; the first substring found wins.
_FAMILY_HINTS: tuple[tuple[str, str], ...] = (
    ("times", SERIF_FONT),
    ("courier", MONO_FONT),
)


@dataclass(frozen=True)
class FontSettings:
    """Resolved font name/size pair registered with ReportLab."""

    font_name: str
    size: float


def _font_key(name: str) -> str:
    return " ".join((name or "").strip().lower().split())


def resolve_font_name(family: str) -> str:
    """Return the embeddable font for a free-form CSS family string."""

    key = _font_key(family)
    for hint, font_name in _FAMILY_HINTS:
        if hint in key:
            return font_name
    return SANS_FONT


def font_settings(family: str, size_px: float) -> FontSettings:
    return FontSettings(font_name=resolve_font_name(family), size=px_to_pt(size_px))


__all__ = [
    "FontSettings",
    "MONO_FONT",
    "SANS_FONT",
    "SERIF_FONT",
    "font_settings",
    "resolve_font_name",
]
