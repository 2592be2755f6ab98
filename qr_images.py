"""QR code rasterisation."""

from __future__ import annotations

from io import BytesIO

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_H

QR_RASTER_SIZE_PX = 150


def generate_qr_png(payload: str, size_px: int = QR_RASTER_SIZE_PX) -> bytes:
    """Return a square PNG of ``size_px`` encoding ``payload``."""

    if not payload:
        raise ValueError("QR payload is empty.")
    if size_px <= 0:
        raise ValueError(f"QR size must be positive, got {size_px}.")

    qr = qrcode.QRCode(border=0, error_correction=ERROR_CORRECT_H)
    qr.add_data(payload)
    qr.make(fit=True)

    buffer = BytesIO()
    qr.make_image().save(buffer, kind="PNG")
    buffer.seek(0)

    with Image.open(buffer) as image:
        resized = image.convert("L").resize((size_px, size_px), Image.Resampling.NEAREST)
    out = BytesIO()
    resized.save(out, format="PNG")
    return out.getvalue()
