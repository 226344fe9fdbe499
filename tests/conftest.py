from __future__ import annotations

from io import BytesIO
from typing import Callable

import pytest
from PIL import Image
from reportlab.pdfgen import canvas

from fieldpress import config
from pdf_helpers import build_pdf


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def sample_pdf() -> bytes:
    return build_pdf(["Test PDF Content"])


@pytest.fixture
def three_page_pdf() -> bytes:
    return build_pdf(["Page One", "Page Two", "Page Three"])


@pytest.fixture
def form_pdf() -> bytes:
    buf = BytesIO()
    canv = canvas.Canvas(buf, pagesize=(600, 800))
    canv.drawString(50, 750, "Application")
    canv.acroForm.textfield(name="applicant", value="Jane Roe", x=50, y=650, width=200, height=24)
    canv.acroForm.checkbox(name="agree", checked=True, x=50, y=600, size=18)
    canv.showPage()
    canv.save()
    return buf.getvalue()


def _image_bytes(image_format: str, mode: str, color) -> bytes:
    buf = BytesIO()
    Image.new(mode, (60, 20), color).save(buf, format=image_format)
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG", "RGBA", (0, 0, 255, 255))


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG", "RGB", (200, 30, 30))


@pytest.fixture
def gif_bytes() -> bytes:
    return _image_bytes("GIF", "P", 1)


@pytest.fixture(autouse=True)
def out_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "OUT_DIR", tmp_path / "out")
    return tmp_path / "out"
