from __future__ import annotations

import re
from typing import TYPE_CHECKING, List, Sequence, Tuple

from reportlab.pdfbase import pdfmetrics

from .. import config
from ..errors import MalformedField

if TYPE_CHECKING:
    from ..models import TableColumn


RGB = Tuple[float, float, float]
BLACK: RGB = (0.0, 0.0, 0.0)

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)
# symbol fonts carry their own encoding
_SYMBOLIC_FONTS = ("Symbol", "ZapfDingbats")


def measure_width(font_name: str, text: str, font_size: float) -> float:
    return pdfmetrics.stringWidth(text, font_name, font_size)


def check_encodable(text: str, font_name: str) -> None:
    """Standard Type 1 fonts draw through WinAnsi; reject glyphs they cannot show."""
    if font_name not in pdfmetrics.standardFonts or font_name in _SYMBOLIC_FONTS:
        return
    try:
        text.encode("cp1252")
    except UnicodeEncodeError as exc:
        bad = text[exc.start : exc.end]
        raise MalformedField(f"{font_name} cannot draw {bad!r} in {text!r}") from exc


def truncate_to_width(text: str, max_width: float, font_name: str, font_size: float) -> str:
    """
    Drop trailing characters and append an ellipsis until the text fits
    ``max_width``. Text that is already three characters or shorter is
    returned as soon as it stops shrinking, fitting or not.
    """
    if measure_width(font_name, text, font_size) <= max_width or len(text) <= 3:
        return text

    body = text
    candidate = text
    while body:
        body = body[:-1]
        candidate = body + config.ELLIPSIS
        if measure_width(font_name, candidate, font_size) <= max_width or len(candidate) <= 3:
            break
    return candidate


def _truncate_word(word: str, max_width: float, font_name: str, font_size: float) -> str:
    truncated = word
    while (
        measure_width(font_name, truncated + config.ELLIPSIS, font_size) > max_width
        and len(truncated) > 1
    ):
        truncated = truncated[:-1]
    return truncated + config.ELLIPSIS


def wrap(text: str, max_width: float, font_name: str, font_size: float) -> List[str]:
    """
    Greedy word wrap. Explicit newlines start a new paragraph and blank
    paragraphs are kept as empty lines. A word that cannot fit on a line by
    itself is cut and suffixed with an ellipsis.
    """
    lines: List[str] = []

    for paragraph in (text or "").split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue

        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if measure_width(font_name, candidate, font_size) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
            if measure_width(font_name, word, font_size) > max_width:
                lines.append(_truncate_word(word, max_width, font_name, font_size))
                current = ""
            else:
                current = word

        if current:
            lines.append(current)

    return lines


def distribute_column_widths(total_width: float, columns: Sequence["TableColumn"]) -> List[float]:
    """
    Columns with an explicit width keep it; zero-width columns share what is
    left of ``total_width`` equally (never less than zero).
    """
    explicit = sum(col.width for col in columns if col.width > 0)
    auto_count = sum(1 for col in columns if col.width <= 0)
    auto_width = max(0.0, (total_width - explicit) / auto_count) if auto_count else 0.0
    return [float(col.width) if col.width > 0 else auto_width for col in columns]


def hex_to_unit_rgb(value: str) -> RGB:
    if not isinstance(value, str):
        return BLACK
    match = _HEX_RE.match(value.strip())
    if match is None:
        return BLACK
    r, g, b = (int(part, 16) / 255.0 for part in match.groups())
    return (r, g, b)


def _clamp(channel: float) -> float:
    return min(1.0, max(0.0, float(channel)))


def to_unit_rgb(value: object, default: RGB = BLACK) -> RGB:
    """
    Normalize any accepted color spelling (``#RRGGBB``, ``(r, g, b)`` unit
    floats, or ``{"r":.., "g":.., "b":..}``) into a unit RGB tuple.
    """
    if value is None:
        return default
    if isinstance(value, str):
        return hex_to_unit_rgb(value)
    if isinstance(value, dict):
        try:
            return (_clamp(value["r"]), _clamp(value["g"]), _clamp(value["b"]))
        except (KeyError, TypeError, ValueError):
            return BLACK
    if isinstance(value, (tuple, list)) and len(value) == 3:
        try:
            return (_clamp(value[0]), _clamp(value[1]), _clamp(value[2]))
        except (TypeError, ValueError):
            return BLACK
    return BLACK
