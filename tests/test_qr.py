"""Tests for sinalverde.session.qr."""

import io

from PIL import Image

from sinalverde.session import PairingPayload, render_qr_png


def test_renders_png():
    data = render_qr_png("2@Zm9vYmFy,aGVsbG8=,d29ybGQ=")
    assert data.startswith(b"\x89PNG\r\n\x1a\n")

    image = Image.open(io.BytesIO(data))
    assert image.format == "PNG"
    assert image.size[0] == image.size[1]


def test_box_size_scales_image():
    small = Image.open(io.BytesIO(render_qr_png("payload", box_size=2)))
    large = Image.open(io.BytesIO(render_qr_png("payload", box_size=8)))
    assert large.size[0] > small.size[0]


def test_data_uri():
    payload = PairingPayload(raw="2@abc", image=render_qr_png("2@abc"))
    assert payload.data_uri.startswith("data:image/png;base64,iVBORw0KGgo")


def test_data_uri_without_image():
    assert PairingPayload(raw="2@abc").data_uri is None
