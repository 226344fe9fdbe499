from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Tuple

from reportlab.lib.pagesizes import A4


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = Path(os.environ.get("FIELDPRESS_OUT_DIR", str(BASE_DIR / "out")))

FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
ELLIPSIS = "…"

TEXT_FONT_SIZE = 12.0
TABLE_FONT_SIZE = 10.0
TABLE_ROW_HEIGHT = 25.0
TABLE_CELL_PADDING = 3.0
TABLE_BORDER_WIDTH = 0.5
TABLE_HEADER_BACKGROUND = "#F0F0F0"

TEXTAREA_PADDING = 5.0
TEXTAREA_LINE_HEIGHT = 1.2

RADIO_RADIUS = 6.0
RADIO_OPTION_SPACING = 20.0

DROPDOWN_PLACEHOLDER = "Select an option"
DROPDOWN_INDICATOR_RESERVE = 25.0
PLACEHOLDER_COLOR = "#808080"
INDICATOR_COLOR = "#4D4D4D"

WATERMARK_FONT_SIZE = 48.0
WATERMARK_OPACITY = 0.3
WATERMARK_ROTATION = 45.0
WATERMARK_COLOR = "#B3B3B3"

CERTIFICATE_TITLE = "Certificate of Completion"
CERTIFICATE_PAGE_SIZE: Tuple[float, float] = A4
CERTIFICATE_MUTED_COLOR = "#4D4D4D"
TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"

RENDER_SCALE = 1.5
THUMBNAIL_RENDER_SCALE = 2.0
THUMBNAIL_MAX_WIDTH = 200
THUMBNAIL_MAX_HEIGHT = 300

# keys a style preset file may override
PRESET_KEYS = {
    "font_regular",
    "font_bold",
    "ellipsis",
    "text_font_size",
    "table_font_size",
    "table_row_height",
    "table_cell_padding",
    "table_border_width",
    "table_header_background",
    "textarea_padding",
    "textarea_line_height",
    "radio_radius",
    "radio_option_spacing",
    "dropdown_placeholder",
    "dropdown_indicator_reserve",
    "placeholder_color",
    "indicator_color",
    "watermark_font_size",
    "watermark_opacity",
    "watermark_rotation",
    "watermark_color",
    "certificate_title",
    "certificate_muted_color",
    "timestamp_format",
    "render_scale",
    "thumbnail_render_scale",
    "thumbnail_max_width",
    "thumbnail_max_height",
}


def load_style_preset(path: Path) -> dict:
    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def apply_style_preset(preset: Dict[str, object]) -> None:
    unknown = sorted(key for key in preset if key.lower() not in PRESET_KEYS)
    if unknown:
        raise ValueError(f"Unknown style preset keys: {', '.join(unknown)}")
    for key, value in preset.items():
        globals()[key.upper()] = value


def set_out_dir(path: Path) -> None:
    global OUT_DIR
    OUT_DIR = Path(path)
