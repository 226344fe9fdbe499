from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from . import config
from .errors import MalformedField
from .pipeline.layout import BLACK, RGB, to_unit_rgb


Color = Union[str, RGB, Dict[str, float], None]
CellValue = Union[str, int, float, bool, None]


class DateFormat(str, Enum):
    ISO = "iso"
    LOCALE = "locale"
    SHORT = "short"


class CheckStyle(str, Enum):
    X = "x"
    CHECKMARK = "checkmark"


class Orientation(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"


def _enum(enum_cls, value, name: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise MalformedField(f"{name} must be one of {allowed}, got {value!r}") from exc


def _non_negative(field_kind: str, **values: float) -> None:
    for name, value in values.items():
        if value < 0:
            raise MalformedField(f"{field_kind} {name} must be non-negative, got {value}")


def _positive(field_kind: str, **values: float) -> None:
    for name, value in values.items():
        if value <= 0:
            raise MalformedField(f"{field_kind} {name} must be positive, got {value}")


def _from_config(name: str):
    # read at construction time so style presets apply to every new field
    return field(default_factory=lambda: getattr(config, name))


@dataclass
class PageGeometry:
    page_index: int
    width: float
    height: float


@dataclass
class PdfInfo:
    page_count: int
    pages: List[PageGeometry]
    title: Optional[str] = None
    author: Optional[str] = None
    creation_date: Optional[datetime] = None


@dataclass
class SignatureField:
    kind: ClassVar[str] = "signature"

    page: int
    x: float
    y: float
    width: float
    height: float
    image_data: Union[bytes, str]

    def __post_init__(self) -> None:
        _non_negative(self.kind, width=self.width, height=self.height)
        if not self.image_data:
            raise MalformedField("signature image_data is empty")


@dataclass
class TextField:
    kind: ClassVar[str] = "text"

    page: int
    x: float
    y: float
    text: str
    font_size: float = _from_config("TEXT_FONT_SIZE")
    color: Color = BLACK

    def __post_init__(self) -> None:
        _positive(self.kind, font_size=self.font_size)
        self.color = to_unit_rgb(self.color)


@dataclass
class DateField:
    kind: ClassVar[str] = "date"

    page: int
    x: float
    y: float
    format: DateFormat = DateFormat.ISO
    font_size: float = _from_config("TEXT_FONT_SIZE")
    color: Color = BLACK

    def __post_init__(self) -> None:
        self.format = _enum(DateFormat, self.format, "date format")
        _positive(self.kind, font_size=self.font_size)
        self.color = to_unit_rgb(self.color)


@dataclass
class CheckboxField:
    kind: ClassVar[str] = "checkbox"

    page: int
    x: float
    y: float
    width: float
    height: float
    checked: bool = False
    border_color: Color = "#000000"
    check_color: Color = "#000000"
    background_color: Color = "#FFFFFF"
    border_width: float = 1.0
    style: CheckStyle = CheckStyle.X

    def __post_init__(self) -> None:
        _non_negative(self.kind, width=self.width, height=self.height, border_width=self.border_width)
        self.style = _enum(CheckStyle, self.style, "checkbox style")
        self.border_color = to_unit_rgb(self.border_color)
        self.check_color = to_unit_rgb(self.check_color)
        self.background_color = to_unit_rgb(self.background_color)


@dataclass
class RadioOption:
    label: str
    value: str


@dataclass
class RadioGroupField:
    kind: ClassVar[str] = "radio"

    page: int
    x: float
    y: float
    width: float
    height: float
    options: List[RadioOption] = field(default_factory=list)
    selected_value: Optional[str] = None
    orientation: Orientation = Orientation.VERTICAL
    font_size: float = _from_config("TEXT_FONT_SIZE")
    text_color: Color = "#000000"
    option_spacing: float = _from_config("RADIO_OPTION_SPACING")

    def __post_init__(self) -> None:
        _non_negative(self.kind, width=self.width, height=self.height, option_spacing=self.option_spacing)
        _positive(self.kind, font_size=self.font_size)
        self.orientation = _enum(Orientation, self.orientation, "radio orientation")
        self.text_color = to_unit_rgb(self.text_color)


@dataclass
class DropdownField:
    kind: ClassVar[str] = "dropdown"

    page: int
    x: float
    y: float
    width: float
    height: float
    options: List[RadioOption] = field(default_factory=list)
    selected_value: Optional[str] = None
    placeholder: Optional[str] = None
    font_size: float = _from_config("TEXT_FONT_SIZE")
    text_color: Color = "#000000"
    background_color: Color = "#FFFFFF"
    border_color: Color = "#000000"

    def __post_init__(self) -> None:
        _non_negative(self.kind, width=self.width, height=self.height)
        _positive(self.kind, font_size=self.font_size)
        self.text_color = to_unit_rgb(self.text_color)
        self.background_color = to_unit_rgb(self.background_color)
        self.border_color = to_unit_rgb(self.border_color)

    def selected_option(self) -> Optional[RadioOption]:
        for option in self.options:
            if option.value == self.selected_value:
                return option
        return None


@dataclass
class TextareaField:
    kind: ClassVar[str] = "textarea"

    page: int
    x: float
    y: float
    width: float
    height: float
    text: str = ""
    font_size: float = _from_config("TEXT_FONT_SIZE")
    text_color: Color = "#000000"
    background_color: Color = "#FFFFFF"
    border_color: Color = "#000000"
    line_height: float = _from_config("TEXTAREA_LINE_HEIGHT")

    def __post_init__(self) -> None:
        _non_negative(self.kind, width=self.width, height=self.height)
        _positive(self.kind, font_size=self.font_size, line_height=self.line_height)
        self.text_color = to_unit_rgb(self.text_color)
        self.background_color = to_unit_rgb(self.background_color)
        self.border_color = to_unit_rgb(self.border_color)


@dataclass
class TableColumn:
    id: str
    name: str
    type: ColumnType = ColumnType.TEXT
    width: float = 0.0

    def __post_init__(self) -> None:
        self.type = _enum(ColumnType, self.type, "column type")
        _non_negative("table column", width=self.width)


@dataclass
class TableRow:
    values: Dict[str, CellValue] = field(default_factory=dict)


@dataclass
class TableField:
    kind: ClassVar[str] = "table"

    page: int
    x: float
    y: float
    width: float
    columns: List[TableColumn] = field(default_factory=list)
    rows: List[TableRow] = field(default_factory=list)
    row_height: float = _from_config("TABLE_ROW_HEIGHT")
    font_size: float = _from_config("TABLE_FONT_SIZE")
    show_header: bool = True
    header_background_color: Color = _from_config("TABLE_HEADER_BACKGROUND")
    header_text_color: Color = "#000000"
    border_color: Color = "#000000"
    text_color: Color = "#000000"
    background_color: Color = "#FFFFFF"

    def __post_init__(self) -> None:
        _non_negative(self.kind, width=self.width)
        _positive(self.kind, row_height=self.row_height, font_size=self.font_size)
        self.header_background_color = to_unit_rgb(self.header_background_color)
        self.header_text_color = to_unit_rgb(self.header_text_color)
        self.border_color = to_unit_rgb(self.border_color)
        self.text_color = to_unit_rgb(self.text_color)
        self.background_color = to_unit_rgb(self.background_color)

    @property
    def height(self) -> float:
        header = self.row_height if self.show_header else 0.0
        return header + len(self.rows) * self.row_height


FieldPlacement = Union[
    SignatureField,
    TextField,
    DateField,
    CheckboxField,
    RadioGroupField,
    DropdownField,
    TextareaField,
    TableField,
]

# drawing order of a batch; later categories paint over earlier ones
FIELD_ORDER: Tuple[type, ...] = (
    SignatureField,
    TextField,
    DateField,
    CheckboxField,
    RadioGroupField,
    DropdownField,
    TextareaField,
    TableField,
)


@dataclass
class FieldBatch:
    signatures: List[SignatureField] = field(default_factory=list)
    text_fields: List[TextField] = field(default_factory=list)
    date_fields: List[DateField] = field(default_factory=list)
    checkbox_fields: List[CheckboxField] = field(default_factory=list)
    radio_fields: List[RadioGroupField] = field(default_factory=list)
    dropdown_fields: List[DropdownField] = field(default_factory=list)
    textarea_fields: List[TextareaField] = field(default_factory=list)
    table_fields: List[TableField] = field(default_factory=list)

    @classmethod
    def from_fields(cls, fields: List[FieldPlacement]) -> "FieldBatch":
        batch = cls()
        for placement in fields:
            batch.category(type(placement)).append(placement)
        return batch

    def category(self, field_type: type) -> list:
        attr = _CATEGORY_ATTRS.get(field_type)
        if attr is None:
            raise MalformedField(f"Unknown field type: {field_type.__name__}")
        return getattr(self, attr)

    def ordered(self) -> Iterator[FieldPlacement]:
        for field_type in FIELD_ORDER:
            yield from self.category(field_type)

    def __len__(self) -> int:
        return sum(len(self.category(field_type)) for field_type in FIELD_ORDER)


_CATEGORY_ATTRS: Dict[type, str] = {
    SignatureField: "signatures",
    TextField: "text_fields",
    DateField: "date_fields",
    CheckboxField: "checkbox_fields",
    RadioGroupField: "radio_fields",
    DropdownField: "dropdown_fields",
    TextareaField: "textarea_fields",
    TableField: "table_fields",
}


@dataclass
class WatermarkOptions:
    font_size: float = _from_config("WATERMARK_FONT_SIZE")
    opacity: float = _from_config("WATERMARK_OPACITY")
    rotation: float = _from_config("WATERMARK_ROTATION")
    color: Color = None

    def __post_init__(self) -> None:
        _positive("watermark", font_size=self.font_size)
        if not 0.0 <= self.opacity <= 1.0:
            raise MalformedField(f"watermark opacity must be within [0, 1], got {self.opacity}")
        self.color = to_unit_rgb(self.color if self.color is not None else config.WATERMARK_COLOR)


@dataclass
class CertificateSigner:
    name: str
    email: str
    signed_at: datetime


@dataclass
class CertificateData:
    document_title: str
    completed_date: datetime
    document_id: str
    signers: List[CertificateSigner] = field(default_factory=list)


@dataclass
class OptimizeReport:
    original_size: int
    optimized_size: int

    @property
    def size_saved(self) -> int:
        return self.original_size - self.optimized_size

    @property
    def percent_saved(self) -> int:
        if not self.original_size:
            return 0
        return round(self.size_saved / self.original_size * 100)


# --- record parsing -------------------------------------------------------

FIELD_TYPES: Dict[str, type] = {
    "signature": SignatureField,
    "text": TextField,
    "date": DateField,
    "checkbox": CheckboxField,
    "radio": RadioGroupField,
    "dropdown": DropdownField,
    "textarea": TextareaField,
    "table": TableField,
}

BATCH_KEYS: Dict[str, str] = {
    "signatures": "signature",
    "textFields": "text",
    "dateFields": "date",
    "checkboxFields": "checkbox",
    "radioFields": "radio",
    "dropdownFields": "dropdown",
    "textareaFields": "textarea",
    "tableFields": "table",
}


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _style(record: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(record)
    for block in ("options", "settings"):
        value = record.get(block)
        if isinstance(value, dict):
            merged.update(value)
    return merged


def _options(record: Mapping[str, Any]) -> List[RadioOption]:
    raw = record.get("options")
    if not isinstance(raw, list):
        return []
    return [RadioOption(label=str(item.get("label", "")), value=str(item.get("value", ""))) for item in raw]


def _common(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "page": int(record["page"]),
        "x": float(record["x"]),
        "y": float(record["y"]),
    }


def _box(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "width": float(_pick(record, "width", "w")),
        "height": float(_pick(record, "height", "h")),
    }


def _build(kind: str, record: Mapping[str, Any]) -> FieldPlacement:
    style = _style(record)
    common = _common(record)

    if kind == "signature":
        return SignatureField(**common, **_box(record), image_data=_pick(record, "imageData", "image_data", "image"))
    if kind == "text":
        return TextField(
            **common,
            text=str(record.get("text", "")),
            font_size=float(_pick(style, "fontSize", "font_size", default=config.TEXT_FONT_SIZE)),
            color=_pick(style, "color", "textColor", default=BLACK),
        )
    if kind == "date":
        return DateField(
            **common,
            format=_pick(style, "format", default=DateFormat.ISO.value),
            font_size=float(_pick(style, "fontSize", "font_size", default=config.TEXT_FONT_SIZE)),
            color=_pick(style, "color", "textColor", default=BLACK),
        )
    if kind == "checkbox":
        return CheckboxField(
            **common,
            **_box(record),
            checked=bool(record.get("checked", False)),
            border_color=_pick(style, "borderColor", default="#000000"),
            check_color=_pick(style, "checkColor", default="#000000"),
            background_color=_pick(style, "backgroundColor", default="#FFFFFF"),
            border_width=float(_pick(style, "borderWidth", default=1.0)),
            style=_pick(style, "style", default=CheckStyle.X.value),
        )
    if kind == "radio":
        return RadioGroupField(
            **common,
            **_box(record),
            options=_options(record),
            selected_value=_pick(record, "selectedValue", "selected_value"),
            orientation=_pick(style, "orientation", default=Orientation.VERTICAL.value),
            font_size=float(_pick(style, "fontSize", default=config.TEXT_FONT_SIZE)),
            text_color=_pick(style, "textColor", default="#000000"),
            option_spacing=float(_pick(style, "optionSpacing", default=config.RADIO_OPTION_SPACING)),
        )
    if kind == "dropdown":
        return DropdownField(
            **common,
            **_box(record),
            options=_options(record),
            selected_value=_pick(record, "selectedValue", "selected_value"),
            placeholder=_pick(style, "placeholder"),
            font_size=float(_pick(style, "fontSize", default=config.TEXT_FONT_SIZE)),
            text_color=_pick(style, "textColor", default="#000000"),
            background_color=_pick(style, "backgroundColor", default="#FFFFFF"),
            border_color=_pick(style, "borderColor", default="#000000"),
        )
    if kind == "textarea":
        return TextareaField(
            **common,
            **_box(record),
            text=str(record.get("text", "")),
            font_size=float(_pick(style, "fontSize", default=config.TEXT_FONT_SIZE)),
            text_color=_pick(style, "textColor", default="#000000"),
            background_color=_pick(style, "backgroundColor", default="#FFFFFF"),
            border_color=_pick(style, "borderColor", default="#000000"),
            line_height=float(_pick(style, "lineHeight", default=config.TEXTAREA_LINE_HEIGHT)),
        )
    if kind == "table":
        columns = [
            TableColumn(
                id=str(col["id"]),
                name=str(col.get("name", "")),
                type=col.get("type", ColumnType.TEXT.value),
                width=float(col.get("width") or 0.0),
            )
            for col in record.get("columns", [])
        ]
        rows = [TableRow(values=dict(row.get("values", {}))) for row in record.get("rows", [])]
        return TableField(
            **common,
            width=float(_pick(record, "width", "w")),
            columns=columns,
            rows=rows,
            row_height=float(_pick(style, "rowHeight", default=config.TABLE_ROW_HEIGHT)),
            font_size=float(_pick(style, "fontSize", default=config.TABLE_FONT_SIZE)),
            show_header=style.get("showHeader") is not False,
            header_background_color=_pick(style, "headerBackgroundColor", default=config.TABLE_HEADER_BACKGROUND),
            header_text_color=_pick(style, "headerTextColor", default="#000000"),
            border_color=_pick(style, "borderColor", default="#000000"),
            text_color=_pick(style, "textColor", default="#000000"),
            background_color=_pick(style, "backgroundColor", default="#FFFFFF"),
        )
    raise MalformedField(f"Unknown field type: {kind!r}")


def parse_field(record: Mapping[str, Any], kind: Optional[str] = None) -> FieldPlacement:
    """Build a field placement from a JSON-like record keyed by ``type``."""
    kind = kind or record.get("type")
    if kind not in FIELD_TYPES:
        raise MalformedField(f"Unknown field type: {kind!r}")
    try:
        return _build(kind, record)
    except KeyError as exc:
        raise MalformedField(f"{kind} field is missing {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        if isinstance(exc, MalformedField):
            raise
        raise MalformedField(f"{kind} field is invalid: {exc}") from exc


def parse_batch(record: Mapping[str, Any]) -> FieldBatch:
    fields: List[FieldPlacement] = [parse_field(item) for item in record.get("fields", [])]
    for key, kind in BATCH_KEYS.items():
        for item in record.get(key, []) or []:
            fields.append(parse_field(item, kind=kind))
    return FieldBatch.from_fields(fields)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise MalformedField(f"Invalid timestamp: {value!r}") from exc


def parse_certificate(record: Mapping[str, Any]) -> CertificateData:
    try:
        signers = [
            CertificateSigner(
                name=str(item["name"]),
                email=str(item["email"]),
                signed_at=parse_timestamp(_pick(item, "signedAt", "signed_at")),
            )
            for item in record.get("signers", [])
        ]
        return CertificateData(
            document_title=str(_pick(record, "documentTitle", "document_title", default="")),
            completed_date=parse_timestamp(_pick(record, "completedDate", "completed_date")),
            document_id=str(_pick(record, "documentId", "document_id", default="")),
            signers=signers,
        )
    except KeyError as exc:
        raise MalformedField(f"certificate record is missing {exc.args[0]!r}") from exc
