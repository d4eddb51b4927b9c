"""
QR code rendering.

Staff print or display these codes at tables and terminals. Images are PNG
encoded as data URLs so they can be embedded directly in the dashboard.
"""

from __future__ import annotations

import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from shared.config.settings import settings


class QrRenderer:
    """Render URLs as base64 PNG data URLs."""

    def __init__(self, box_size: int | None = None, border: int | None = None):
        self.box_size = max(1, min(int(box_size or settings.qr_box_size), 20))
        self.border = max(1, min(int(border or settings.qr_border), 8))

    def render_png(self, data: str) -> bytes:
        if not data:
            raise ValueError("QR payload must not be empty")
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(data)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")
        buf = BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    def render_data_url(self, data: str) -> str:
        encoded = base64.b64encode(self.render_png(data)).decode("ascii")
        return f"data:image/png;base64,{encoded}"
