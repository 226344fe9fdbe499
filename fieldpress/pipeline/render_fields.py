from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime, timezone
from io import BytesIO
from typing import Callable, Dict, Optional, Union

from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .. import config
from ..errors import MalformedField, UnsupportedImageFormat
from ..models import (
    CellValue,
    CheckboxField,
    CheckStyle,
    ColumnType,
    DateField,
    DateFormat,
    DropdownField,
    FieldPlacement,
    Orientation,
    RadioGroupField,
    SignatureField,
    TableField,
    TextareaField,
    TextField,
)
from .layout import RGB, check_encodable, distribute_column_widths, measure_width, to_unit_rgb, truncate_to_width, wrap


logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:image/(png|jpeg|jpg);base64,", re.IGNORECASE)


def _box(canv: canvas.Canvas, x: float, y: float, w: float, h: float, fill: Optional[RGB], border: RGB, border_width: float) -> None:
    canv.setStrokeColorRGB(*border)
    canv.setLineWidth(border_width)
    if fill is not None:
        canv.setFillColorRGB(*fill)
    canv.rect(x, y, w, h, stroke=1 if border_width > 0 else 0, fill=1 if fill is not None else 0)


def _segment(canv: canvas.Canvas, x1: float, y1: float, x2: float, y2: float, color: RGB, width: float) -> None:
    canv.setStrokeColorRGB(*color)
    canv.setLineWidth(width)
    canv.line(x1, y1, x2, y2)


def _text(canv: canvas.Canvas, x: float, y: float, text: str, font_name: str, font_size: float, color: RGB) -> None:
    check_encodable(text, font_name)
    canv.setFont(font_name, font_size)
    canv.setFillColorRGB(*color)
    canv.drawString(x, y, text)


def _x_mark(canv: canvas.Canvas, x: float, y: float, w: float, h: float, color: RGB) -> None:
    padding = min(w, h) * 0.2
    line_width = max(1.0, min(w, h) * 0.1)
    _segment(canv, x + padding, y + h - padding, x + w - padding, y + padding, color, line_width)
    _segment(canv, x + w - padding, y + h - padding, x + padding, y + padding, color, line_width)


def _check_mark(canv: canvas.Canvas, x: float, y: float, w: float, h: float, color: RGB) -> None:
    padding = min(w, h) * 0.2
    line_width = max(1.0, min(w, h) * 0.1)
    start_x, start_y = x + padding, y + h * 0.5
    mid_x, mid_y = x + w * 0.35, y + padding
    end_x, end_y = x + w - padding, y + h - padding
    # short down-stroke, then the long up-stroke
    _segment(canv, start_x, start_y, mid_x, mid_y, color, line_width)
    _segment(canv, mid_x, mid_y, end_x, end_y, color, line_width)


# --- signature ------------------------------------------------------------

def decode_image_data(image_data: Union[bytes, str]) -> bytes:
    if isinstance(image_data, (bytes, bytearray)):
        return bytes(image_data)
    payload = _DATA_URL_PREFIX.sub("", image_data.strip(), count=1)
    try:
        return base64.b64decode(payload)
    except (binascii.Error, ValueError) as exc:
        raise UnsupportedImageFormat() from exc


def load_signature_image(raw: bytes) -> Image.Image:
    """Decode PNG first, then JPEG; anything else is rejected."""
    for image_format in ("PNG", "JPEG"):
        try:
            image = Image.open(BytesIO(raw), formats=[image_format])
            image.load()
        except (UnidentifiedImageError, OSError):
            continue
        if image.mode not in ("RGB", "RGBA", "L"):
            image = image.convert("RGBA")
        return image
    raise UnsupportedImageFormat()


def draw_signature(canv: canvas.Canvas, field: SignatureField) -> None:
    image = load_signature_image(decode_image_data(field.image_data))
    canv.drawImage(ImageReader(image), field.x, field.y, width=field.width, height=field.height, mask="auto")


# --- text & date ----------------------------------------------------------

def draw_text(canv: canvas.Canvas, field: TextField) -> None:
    _text(canv, field.x, field.y, field.text, config.FONT_REGULAR, field.font_size, field.color)


def format_date(date_format: DateFormat, now: Optional[datetime] = None) -> str:
    if date_format == DateFormat.LOCALE:
        local = now or datetime.now()
        return local.strftime("%x")
    if date_format == DateFormat.SHORT:
        local = now or datetime.now()
        return f"{local.month}/{local.day}/{local.year}"
    utc = now.astimezone(timezone.utc) if now and now.tzinfo else (now or datetime.now(timezone.utc))
    return utc.strftime("%Y-%m-%d")


def date_as_text(field: DateField, now: Optional[datetime] = None) -> TextField:
    return TextField(
        page=field.page,
        x=field.x,
        y=field.y,
        text=format_date(field.format, now),
        font_size=field.font_size,
        color=field.color,
    )


def draw_date(canv: canvas.Canvas, field: DateField) -> None:
    draw_text(canv, date_as_text(field))


# --- checkbox -------------------------------------------------------------

def draw_checkbox(canv: canvas.Canvas, field: CheckboxField) -> None:
    _box(canv, field.x, field.y, field.width, field.height, field.background_color, field.border_color, field.border_width)
    if not field.checked:
        return
    if field.style == CheckStyle.CHECKMARK:
        _check_mark(canv, field.x, field.y, field.width, field.height, field.check_color)
    else:
        _x_mark(canv, field.x, field.y, field.width, field.height, field.check_color)


# --- radio group ----------------------------------------------------------

def draw_radio_group(canv: canvas.Canvas, field: RadioGroupField) -> None:
    radius = float(config.RADIO_RADIUS)
    font = config.FONT_REGULAR
    vertical = field.orientation != Orientation.HORIZONTAL

    current_x = field.x
    current_y = field.y + field.height - field.font_size

    for option in field.options:
        cx = current_x + radius
        cy = current_y - radius + field.font_size / 2

        canv.setStrokeColorRGB(0, 0, 0)
        canv.setLineWidth(1)
        canv.circle(cx, cy, radius, stroke=1, fill=0)

        if option.value == field.selected_value:
            canv.setFillColorRGB(0, 0, 0)
            canv.circle(cx, cy, radius - 3, stroke=0, fill=1)

        _text(canv, current_x + radius * 2 + 5, current_y, option.label, font, field.font_size, field.text_color)

        if vertical:
            current_y -= field.option_spacing
        else:
            label_width = measure_width(font, option.label, field.font_size)
            current_x += radius * 2 + 10 + label_width + field.option_spacing


# --- dropdown -------------------------------------------------------------

def draw_dropdown(canv: canvas.Canvas, field: DropdownField) -> None:
    font = config.FONT_REGULAR
    _box(canv, field.x, field.y, field.width, field.height, field.background_color, field.border_color, 1)

    selected = field.selected_option()
    placeholder = field.placeholder if field.placeholder is not None else config.DROPDOWN_PLACEHOLDER
    display = (selected.label if selected else "") or placeholder
    max_width = field.width - float(config.DROPDOWN_INDICATOR_RESERVE)
    display = truncate_to_width(display, max_width, font, field.font_size)

    color = field.text_color if selected else to_unit_rgb(config.PLACEHOLDER_COLOR)
    text_y = field.y + (field.height - field.font_size) / 2
    _text(canv, field.x + 5, text_y, display, font, field.font_size, color)

    arrow_x = field.x + field.width - 15
    arrow_y = field.y + field.height / 2
    indicator = to_unit_rgb(config.INDICATOR_COLOR)
    _segment(canv, arrow_x - 4, arrow_y + 2, arrow_x, arrow_y - 2, indicator, 1.5)
    _segment(canv, arrow_x, arrow_y - 2, arrow_x + 4, arrow_y + 2, indicator, 1.5)


# --- textarea -------------------------------------------------------------

def draw_textarea(canv: canvas.Canvas, field: TextareaField) -> None:
    font = config.FONT_REGULAR
    padding = float(config.TEXTAREA_PADDING)
    _box(canv, field.x, field.y, field.width, field.height, field.background_color, field.border_color, 1)

    lines = wrap(field.text, field.width - padding * 2, font, field.font_size)
    advance = field.line_height * field.font_size
    current_y = field.y + field.height - padding - field.font_size
    min_y = field.y + padding

    drawn = 0
    for line in lines:
        if current_y < min_y:
            break
        if line.strip():
            _text(canv, field.x + padding, current_y, line, font, field.font_size, field.text_color)
        current_y -= advance
        drawn += 1

    if drawn < len(lines):
        logger.debug("Textarea on page %d dropped %d overflowing lines", field.page, len(lines) - drawn)


# --- table ----------------------------------------------------------------

def _cell_text(value: CellValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_checked(value: CellValue) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def _table_checkbox(canv: canvas.Canvas, x: float, y: float, col_w: float, row_h: float, checked: bool, color: RGB) -> None:
    size = min(row_h - 8, 14)
    box_x = x + (col_w - size) / 2
    box_y = y + (row_h - size) / 2
    _box(canv, box_x, box_y, size, size, None, color, 1)
    if checked:
        _x_mark(canv, box_x, box_y, size, size, color)


def draw_table(canv: canvas.Canvas, field: TableField) -> None:
    font = config.FONT_REGULAR
    font_bold = config.FONT_BOLD
    pad = float(config.TABLE_CELL_PADDING)
    border_width = float(config.TABLE_BORDER_WIDTH)
    row_h = field.row_height
    size = field.font_size

    col_widths = distribute_column_widths(field.width, field.columns)
    table_top = field.y + field.height
    text_dy = (row_h - size) / 2

    if field.show_header:
        current_x = field.x
        current_y = table_top - row_h
        for column, col_w in zip(field.columns, col_widths):
            _box(canv, current_x, current_y, col_w, row_h, field.header_background_color, field.border_color, border_width)
            label = truncate_to_width(column.name, col_w - pad * 2, font_bold, size)
            label_w = measure_width(font_bold, label, size)
            text_x = max(current_x + pad, current_x + (col_w - label_w) / 2)
            _text(canv, text_x, current_y + text_dy, label, font_bold, size, field.header_text_color)
            current_x += col_w

    body_top = table_top - row_h if field.show_header else table_top

    for row_index, row in enumerate(field.rows):
        current_x = field.x
        current_y = body_top - (row_index + 1) * row_h

        for column, col_w in zip(field.columns, col_widths):
            _box(canv, current_x, current_y, col_w, row_h, field.background_color, field.border_color, border_width)
            value = row.values.get(column.id)

            if value is None or value == "":
                current_x += col_w
                continue

            if column.type == ColumnType.CHECKBOX:
                _table_checkbox(canv, current_x, current_y, col_w, row_h, _is_checked(value), field.border_color)
            else:
                text = truncate_to_width(_cell_text(value), col_w - pad * 2, font, size)
                if column.type == ColumnType.NUMBER:
                    text_x = current_x + col_w - measure_width(font, text, size) - pad
                else:
                    text_x = current_x + pad
                _text(canv, text_x, current_y + text_dy, text, font, size, field.text_color)

            current_x += col_w


FIELD_RENDERERS: Dict[type, Callable[[canvas.Canvas, FieldPlacement], None]] = {
    SignatureField: draw_signature,
    TextField: draw_text,
    DateField: draw_date,
    CheckboxField: draw_checkbox,
    RadioGroupField: draw_radio_group,
    DropdownField: draw_dropdown,
    TextareaField: draw_textarea,
    TableField: draw_table,
}


def draw_field(canv: canvas.Canvas, field: FieldPlacement) -> None:
    renderer = FIELD_RENDERERS.get(type(field))
    if renderer is None:
        raise MalformedField(f"No renderer for {type(field).__name__}")
    canv.saveState()
    try:
        renderer(canv, field)
    finally:
        canv.restoreState()
    logger.debug("Drew %s field on page %d at (%.1f, %.1f)", field.kind, field.page, field.x, field.y)
