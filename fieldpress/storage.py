from __future__ import annotations

import hashlib
import logging
import os
import re
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import Iterator, Tuple

import fitz  # PyMuPDF
from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.errors import PyPdfError
from reportlab.pdfgen import canvas
from slugify import slugify

from . import config
from .errors import InvalidDocument, PageNotFound, SerializationFailure
from .models import PageGeometry, PdfInfo


logger = logging.getLogger(__name__)

ARTIFACT_NAMES = {
    "composed": "{slug}_composed.pdf",
    "merged": "{slug}_merged.pdf",
    "extracted": "{slug}_pages.pdf",
    "watermarked": "{slug}_watermarked.pdf",
    "certified": "{slug}_certified.pdf",
    "flattened": "{slug}_flattened.pdf",
    "optimized": "{slug}_optimized.pdf",
    "page_image": "{slug}_page{page}.png",
    "thumbnail": "thumbnails/{slug}.png",
}


class Document:
    """
    Editable in-memory PDF. One handle belongs to one operation: it is
    loaded, mutated through overlays, serialized once and dropped.
    """

    def __init__(self, writer: PdfWriter) -> None:
        self.writer = writer

    @property
    def page_count(self) -> int:
        return len(self.writer.pages)

    def page(self, page_index: int) -> PageObject:
        if page_index < 0 or page_index >= self.page_count:
            raise PageNotFound(page_index, self.page_count)
        return self.writer.pages[page_index]

    def page_geometry(self, page_index: int) -> PageGeometry:
        box = self.page(page_index).mediabox
        return PageGeometry(page_index=page_index, width=float(box.width), height=float(box.height))

    def add_blank_page(self, width: float, height: float) -> int:
        self.writer.add_blank_page(width=width, height=height)
        return self.page_count - 1

    @contextmanager
    def overlay(self, page_index: int) -> Iterator[canvas.Canvas]:
        """
        Yield a reportlab canvas covering the target page in page coordinates;
        whatever is drawn on it is stamped over the page when the block exits
        cleanly.
        """
        page = self.page(page_index)
        # page coordinates are absolute; an offset mediabox must not clip the overlay
        box = page.mediabox
        width, height = float(box.right), float(box.top)

        buf = BytesIO()
        canv = canvas.Canvas(buf, pagesize=(width, height))
        yield canv
        canv.showPage()
        canv.save()

        overlay_page = PdfReader(BytesIO(buf.getvalue())).pages[0]
        page.merge_page(overlay_page)


def load(data: bytes) -> Document:
    reader = _read(data)
    try:
        writer = PdfWriter(clone_from=reader)
    except (PyPdfError, ValueError, KeyError) as exc:
        raise InvalidDocument(f"Could not open PDF: {exc}") from exc
    return Document(writer)


def create() -> Document:
    return Document(PdfWriter())


def save(document: Document, compress: bool = False) -> bytes:
    buf = BytesIO()
    try:
        document.writer.write(buf)
    except (PyPdfError, ValueError, TypeError) as exc:
        raise SerializationFailure(f"Could not serialize PDF: {exc}") from exc
    data = buf.getvalue()
    if compress and document.page_count:
        data = _compress(data)
    return data


def _compress(data: bytes) -> bytes:
    try:
        with fitz.open(stream=data, filetype="pdf") as pdf:
            return pdf.tobytes(garbage=3, deflate=True, use_objstms=1)
    except (RuntimeError, ValueError) as exc:
        raise SerializationFailure(f"Could not compress PDF: {exc}") from exc


def _read(data: bytes) -> PdfReader:
    if not data:
        raise InvalidDocument("PDF is empty")
    try:
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted:
            raise InvalidDocument("Encrypted PDFs are not supported")
        # forces the page tree to be parsed
        len(reader.pages)
    except (PyPdfError, ValueError, KeyError, AttributeError) as exc:
        raise InvalidDocument(f"Could not parse PDF: {exc}") from exc
    return reader


def get_pdf_info(data: bytes) -> PdfInfo:
    reader = _read(data)
    pages = [
        PageGeometry(page_index=index, width=float(page.mediabox.width), height=float(page.mediabox.height))
        for index, page in enumerate(reader.pages)
    ]
    metadata = reader.metadata
    return PdfInfo(
        page_count=len(pages),
        pages=pages,
        title=metadata.title if metadata else None,
        author=metadata.author if metadata else None,
        creation_date=metadata.creation_date if metadata else None,
    )


def get_page_dimensions(data: bytes, page_index: int) -> Tuple[float, float]:
    geometry = load(data).page_geometry(page_index)
    return geometry.width, geometry.height


def slug_from_name(name: str) -> str:
    slug = slugify(os.path.splitext(name)[0] or name)
    slug = re.sub(r"[^a-z0-9-]+", "-", slug.lower()).strip("-")
    if not slug:
        slug = hashlib.md5(name.encode("utf-8")).hexdigest()[:12]
    if ".." in slug or "/" in slug or "\\" in slug:
        raise ValueError("Invalid slug generated from name")
    return slug


def artifact_path(name: str, artifact_type: str, base_dir: Path | None = None, **fields: object) -> Path:
    root = base_dir or config.OUT_DIR
    filename = ARTIFACT_NAMES[artifact_type].format(slug=slug_from_name(name), **fields)
    path = root / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def write_artifact(path: Path, data: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("Wrote %s (%d bytes)", path, len(data))
    return path
