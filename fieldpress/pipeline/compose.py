from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from ..models import (
    CheckboxField,
    DateField,
    DropdownField,
    FieldBatch,
    FieldPlacement,
    RadioGroupField,
    SignatureField,
    TableField,
    TextareaField,
    TextField,
)
from ..storage import Document, load, save
from .render_fields import draw_field


logger = logging.getLogger(__name__)


def apply_fields(document: Document, fields: Iterable[FieldPlacement]) -> Document:
    """
    Draw ``fields`` onto ``document`` in the order given.

    Every page index is checked before anything is drawn. Fields that share
    a page are painted onto one overlay in order, so later fields sit on top
    of earlier ones.
    """
    by_page: Dict[int, List[FieldPlacement]] = {}
    for placement in fields:
        document.page(placement.page)
        by_page.setdefault(placement.page, []).append(placement)

    for page_index, page_fields in by_page.items():
        with document.overlay(page_index) as canv:
            for placement in page_fields:
                draw_field(canv, placement)
    return document


def render_field(document: Document, field: FieldPlacement) -> Document:
    return apply_fields(document, [field])


def compose(document: Document, batch: FieldBatch) -> Document:
    """Apply a batch category by category: signatures first, tables last."""
    apply_fields(document, batch.ordered())
    logger.info("Composed %d fields onto %d-page document", len(batch), document.page_count)
    return document


def add_field(pdf_bytes: bytes, field: FieldPlacement) -> bytes:
    document = load(pdf_bytes)
    render_field(document, field)
    return save(document)


def add_multiple_fields(pdf_bytes: bytes, batch: FieldBatch) -> bytes:
    document = load(pdf_bytes)
    compose(document, batch)
    return save(document)


def add_signature(pdf_bytes: bytes, field: SignatureField) -> bytes:
    return add_field(pdf_bytes, field)


def add_text_field(pdf_bytes: bytes, field: TextField) -> bytes:
    return add_field(pdf_bytes, field)


def add_date_field(pdf_bytes: bytes, field: DateField) -> bytes:
    return add_field(pdf_bytes, field)


def add_checkbox(pdf_bytes: bytes, field: CheckboxField) -> bytes:
    return add_field(pdf_bytes, field)


def add_radio_group(pdf_bytes: bytes, field: RadioGroupField) -> bytes:
    return add_field(pdf_bytes, field)


def add_dropdown(pdf_bytes: bytes, field: DropdownField) -> bytes:
    return add_field(pdf_bytes, field)


def add_textarea(pdf_bytes: bytes, field: TextareaField) -> bytes:
    return add_field(pdf_bytes, field)


def add_table(pdf_bytes: bytes, field: TableField) -> bytes:
    return add_field(pdf_bytes, field)
