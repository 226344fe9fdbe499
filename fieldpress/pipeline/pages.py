from __future__ import annotations

import logging
from io import BytesIO
from typing import Dict, List, Optional, Sequence

import fitz  # PyMuPDF
from pypdf import PdfReader

from .. import config
from ..errors import SerializationFailure
from ..models import CertificateData, OptimizeReport, WatermarkOptions
from ..storage import Document, create, load, save
from .layout import check_encodable, to_unit_rgb


logger = logging.getLogger(__name__)


def _fresh_reader(document: Document) -> PdfReader:
    # a separate reader per copy keeps repeated pages as distinct objects
    return PdfReader(BytesIO(save(document)))


def merge(documents: Sequence[Document]) -> Document:
    merged = create()
    if not documents:
        logger.warning("Merging an empty document list yields a 0-page PDF")
        return merged
    for document in documents:
        reader = _fresh_reader(document)
        for page in reader.pages:
            merged.writer.add_page(page)
    logger.debug("Merged %d documents into %d pages", len(documents), merged.page_count)
    return merged


def extract(document: Document, page_indices: Sequence[int]) -> Document:
    """Copy the requested pages in the order given; repeats are allowed."""
    for index in page_indices:
        document.page(index)

    data = save(document)
    readers: List[PdfReader] = []
    copies: Dict[int, int] = {}
    extracted = create()
    for index in page_indices:
        copy_no = copies.get(index, 0)
        copies[index] = copy_no + 1
        while len(readers) <= copy_no:
            readers.append(PdfReader(BytesIO(data)))
        extracted.writer.add_page(readers[copy_no].pages[index])
    return extracted


def watermark(document: Document, text: str, options: Optional[WatermarkOptions] = None) -> Document:
    options = options or WatermarkOptions()
    check_encodable(text, config.FONT_REGULAR)
    for page_index in range(document.page_count):
        box = document.page(page_index).mediabox
        center_x = (float(box.left) + float(box.right)) / 2.0
        center_y = (float(box.bottom) + float(box.top)) / 2.0
        with document.overlay(page_index) as canv:
            canv.saveState()
            canv.translate(center_x, center_y)
            canv.rotate(options.rotation)
            canv.setFillColorRGB(*options.color, alpha=options.opacity)
            canv.setFont(config.FONT_REGULAR, options.font_size)
            canv.drawCentredString(0, 0, text)
            canv.restoreState()
    logger.debug("Watermarked %d pages", document.page_count)
    return document


def _timestamp(value) -> str:
    return value.strftime(config.TIMESTAMP_FORMAT)


def append_certificate(document: Document, data: CertificateData) -> Document:
    """Append one summary page with document details and the signer trail."""
    signer_text = [part for signer in data.signers for part in (signer.name, signer.email)]
    for value in [data.document_title, data.document_id, *signer_text]:
        check_encodable(value, config.FONT_REGULAR)

    width, height = config.CERTIFICATE_PAGE_SIZE
    page_index = document.add_blank_page(width, height)
    black = (0.0, 0.0, 0.0)
    muted = to_unit_rgb(config.CERTIFICATE_MUTED_COLOR)

    with document.overlay(page_index) as canv:
        y = height - 50

        def line(x: float, text: str, font: str, size: float, color) -> None:
            canv.setFont(font, size)
            canv.setFillColorRGB(*color)
            canv.drawString(x, y, text)

        line(50, config.CERTIFICATE_TITLE, config.FONT_BOLD, 24, black)
        y -= 40
        line(50, f"Document: {data.document_title}", config.FONT_REGULAR, 12, black)
        y -= 25
        line(50, f"Completed: {_timestamp(data.completed_date)}", config.FONT_REGULAR, 12, black)
        y -= 25
        line(50, f"Document ID: {data.document_id}", config.FONT_REGULAR, 10, muted)
        y -= 40
        line(50, "Signers:", config.FONT_REGULAR, 12, black)
        y -= 25
        for signer in data.signers:
            line(
                70,
                f"• {signer.name} ({signer.email}) - Signed: {_timestamp(signer.signed_at)}",
                config.FONT_REGULAR,
                10,
                black,
            )
            y -= 20

    logger.debug("Appended certificate page with %d signers", len(data.signers))
    return document


def _has_form_widgets(document: Document) -> bool:
    for page in document.writer.pages:
        annots = page.get("/Annots")
        if annots is None:
            continue
        for annot in annots.get_object():
            if annot.get_object().get("/Subtype") == "/Widget":
                return True
    return False


def flatten(document: Document) -> Document:
    """Burn interactive form widgets into static page content."""
    if not _has_form_widgets(document):
        logger.debug("No form fields to flatten")
        return document
    try:
        with fitz.open(stream=save(document), filetype="pdf") as pdf:
            pdf.bake(annots=False, widgets=True)
            flattened = pdf.tobytes(garbage=1, deflate=True)
    except (RuntimeError, ValueError) as exc:
        raise SerializationFailure(f"Could not flatten PDF: {exc}") from exc
    return load(flattened)


def optimize(document: Document) -> bytes:
    return save(document, compress=True)


# --- byte-level operations ------------------------------------------------

def merge_pdfs(pdf_buffers: Sequence[bytes]) -> bytes:
    return save(merge([load(data) for data in pdf_buffers]))


def extract_pages(pdf_bytes: bytes, page_indices: Sequence[int]) -> bytes:
    return save(extract(load(pdf_bytes), page_indices))


def add_watermark(pdf_bytes: bytes, text: str, options: Optional[WatermarkOptions] = None) -> bytes:
    return save(watermark(load(pdf_bytes), text, options))


def add_certificate(pdf_bytes: bytes, data: CertificateData) -> bytes:
    return save(append_certificate(load(pdf_bytes), data))


def flatten_pdf(pdf_bytes: bytes) -> bytes:
    return save(flatten(load(pdf_bytes)))


def optimize_pdf(pdf_bytes: bytes) -> bytes:
    return optimize(load(pdf_bytes))


def optimize_report(original: bytes, optimized: bytes) -> OptimizeReport:
    return OptimizeReport(original_size=len(original), optimized_size=len(optimized))
