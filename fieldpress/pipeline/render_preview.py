from __future__ import annotations

import logging
from io import BytesIO
from typing import Optional

import fitz  # PyMuPDF
from PIL import Image

from .. import config
from ..errors import InvalidDocument, PageNotFound


logger = logging.getLogger(__name__)


def _viewport(rect: fitz.Rect, scale: float, width: Optional[int], height: Optional[int]) -> fitz.Matrix:
    # explicit pixel sizes win over scale; a single dimension keeps the aspect ratio
    if width and height:
        return fitz.Matrix(width / rect.width, height / rect.height)
    if width:
        zoom = width / rect.width
        return fitz.Matrix(zoom, zoom)
    if height:
        zoom = height / rect.height
        return fitz.Matrix(zoom, zoom)
    return fitz.Matrix(scale, scale)


def _open(pdf_bytes: bytes) -> fitz.Document:
    try:
        return fitz.open(stream=pdf_bytes, filetype="pdf")
    except (RuntimeError, ValueError) as exc:
        raise InvalidDocument(f"Could not open PDF for rendering: {exc}") from exc


def render_page_to_image(
    pdf_bytes: bytes,
    page_index: int,
    scale: Optional[float] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> bytes:
    scale = float(scale if scale is not None else config.RENDER_SCALE)

    with _open(pdf_bytes) as doc:
        if page_index < 0 or page_index >= doc.page_count:
            raise PageNotFound(page_index, doc.page_count)
        page = doc.load_page(page_index)
        matrix = _viewport(page.rect, scale, width, height)
        pix = page.get_pixmap(matrix=matrix, alpha=False)
        logger.debug("Rendered page %d at %dx%d", page_index, pix.width, pix.height)
        return pix.tobytes("png")


def generate_thumbnail(
    pdf_bytes: bytes,
    max_width: Optional[int] = None,
    max_height: Optional[int] = None,
) -> bytes:
    """
    Render the first page and shrink it into ``max_width`` x ``max_height``
    keeping its aspect ratio. Pages already smaller than the box keep their
    rendered size.
    """
    max_width = int(max_width or config.THUMBNAIL_MAX_WIDTH)
    max_height = int(max_height or config.THUMBNAIL_MAX_HEIGHT)

    page_png = render_page_to_image(pdf_bytes, 0, scale=config.THUMBNAIL_RENDER_SCALE)
    with Image.open(BytesIO(page_png)) as image:
        image.thumbnail((max_width, max_height))
        out = BytesIO()
        image.save(out, format="PNG")
    return out.getvalue()
