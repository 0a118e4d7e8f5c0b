from __future__ import annotations

import base64
import io
import json
from typing import Any, Protocol

import qrcode
import qrcode.image.svg
from qrcode.exceptions import DataOverflowError

from ..core.constants import QR_IMAGE_WIDTH
from ..core.exceptions import QRRenderError


class QRRenderer(Protocol):
    def render_png_data_url(self, text: str, *, width: int = QR_IMAGE_WIDTH, margin: int = 2) -> str:
        raise NotImplementedError


class QRCodeImageRenderer(QRRenderer):
    """Renders code strings into scannable images with the `qrcode` library."""

    def __init__(self, *, dark: str = "black", light: str = "white"):
        self._dark = dark
        self._light = light

    @staticmethod
    def _build(text: str, *, width: int, margin: int) -> qrcode.QRCode:
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=margin,
        )
        qr.add_data(text)
        qr.make(fit=True)
        # Pick the largest box size that keeps the image within `width` pixels.
        qr.box_size = max(1, int(width) // (qr.modules_count + 2 * margin))
        return qr

    def render_png(self, text: str, *, width: int = QR_IMAGE_WIDTH, margin: int = 2, dark: str | None = None, light: str | None = None) -> bytes:
        try:
            qr = self._build(text, width=width, margin=margin)
            img = qr.make_image(fill_color=dark or self._dark, back_color=light or self._light)
            buf = io.BytesIO()
            img.save(buf, format="PNG")
        except (DataOverflowError, ValueError, OSError) as exc:
            raise QRRenderError(f"Error generando imagen QR: {exc}") from exc
        return buf.getvalue()

    def render_png_data_url(self, text: str, *, width: int = QR_IMAGE_WIDTH, margin: int = 2) -> str:
        png = self.render_png(text, width=width, margin=margin)
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")

    def render_svg(self, text: str, *, width: int = QR_IMAGE_WIDTH, margin: int = 1) -> str:
        try:
            qr = self._build(text, width=width, margin=margin)
            img = qr.make_image(image_factory=qrcode.image.svg.SvgPathImage)
            return img.to_string(encoding="unicode")
        except (DataOverflowError, ValueError) as exc:
            raise QRRenderError(f"Error generando SVG QR: {exc}") from exc

    def render_custom(self, data: Any, *, width: int = 256, margin: int = 1, dark: str = "#000000", light: str = "#FFFFFF") -> str:
        """Arbitrary payload (dicts are JSON encoded) as a PNG data URL."""

        text = json.dumps(data) if isinstance(data, (dict, list)) else str(data)
        png = self.render_png(text, width=width, margin=margin, dark=dark, light=light)
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
