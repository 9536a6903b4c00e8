"""QR rendering for pairing payloads."""

from __future__ import annotations

import io

import qrcode
from qrcode.image.pil import PilImage

QR_BOX_SIZE = 10
QR_BORDER = 2


def render_qr_png(payload: str, *, box_size: int = QR_BOX_SIZE, border: int = QR_BORDER) -> bytes:
    """Render *payload* as a scannable QR code and return the PNG bytes."""
    qr = qrcode.QRCode(box_size=box_size, border=border, image_factory=PilImage)
    qr.add_data(payload)
    qr.make(fit=True)

    buf = io.BytesIO()
    qr.make_image().save(buf, format="PNG")
    return buf.getvalue()
