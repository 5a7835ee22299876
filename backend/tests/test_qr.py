"""Tests for QR rendering."""

import base64
from io import BytesIO

from PIL import Image

from contactqr.contacts.schemas import ContactRecord
from contactqr.integrations.qr import render_qr_data_url, render_qr_png
from contactqr.vcard.formatter import VCardMode, format_vcard

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


class TestRenderQrPng:
    def test_returns_square_png(self, hong):
        png = render_qr_png(format_vcard(hong, VCardMode.MINIMAL))
        assert png.startswith(PNG_MAGIC)
        img = Image.open(BytesIO(png))
        assert img.size[0] == img.size[1]

    def test_box_size_scales_image(self, hong):
        payload = format_vcard(hong, VCardMode.MINIMAL)
        small = Image.open(BytesIO(render_qr_png(payload, box_size=2)))
        large = Image.open(BytesIO(render_qr_png(payload, box_size=8)))
        assert large.size[0] == small.size[0] * 4

    def test_minimal_payload_is_smaller_than_full(self, hong):
        contact = hong.model_copy(update={"email": "hgd@abc.kr", "company": "ABC"})
        minimal = Image.open(BytesIO(render_qr_png(format_vcard(contact, VCardMode.MINIMAL), box_size=1, border=0)))
        full = Image.open(BytesIO(render_qr_png(format_vcard(contact, VCardMode.FULL), box_size=1, border=0)))
        assert minimal.size[0] < full.size[0]


class TestRenderQrDataUrl:
    def test_data_url_wraps_png(self):
        url = render_qr_data_url(format_vcard(ContactRecord(first_name="John")))
        assert url.startswith("data:image/png;base64,")
        assert base64.b64decode(url.split(",", 1)[1]).startswith(PNG_MAGIC)
