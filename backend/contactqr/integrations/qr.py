"""QR code rendering for vCard payloads (qrcode + Pillow)."""

import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from ..config import settings


def render_qr_png(payload: str, box_size: int | None = None, border: int | None = None) -> bytes:
    """Render ``payload`` as a black-on-white PNG QR code.

    The smallest QR version that fits is picked automatically; medium error
    correction keeps Hangul-heavy payloads readable at small print sizes.
    """
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=box_size or settings.qr_box_size,
        border=settings.qr_border if border is None else border,
    )
    qr.add_data(payload.encode("utf-8"))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_qr_data_url(payload: str, box_size: int | None = None) -> str:
    encoded = base64.b64encode(render_qr_png(payload, box_size=box_size)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
