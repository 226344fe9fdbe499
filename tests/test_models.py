from __future__ import annotations

from datetime import datetime, timezone

import pytest

from fieldpress import config
from fieldpress.errors import MalformedField
from fieldpress.models import (
    CheckboxField,
    CheckStyle,
    ColumnType,
    DateField,
    DropdownField,
    FieldBatch,
    Orientation,
    RadioGroupField,
    SignatureField,
    TableField,
    TextareaField,
    TextField,
    WatermarkOptions,
    parse_batch,
    parse_certificate,
    parse_field,
)


def test_colors_are_normalized_on_construction() -> None:
    field = CheckboxField(page=0, x=10, y=10, width=20, height=20, border_color="#FF0000", check_color="bogus")
    assert field.border_color == (1.0, 0.0, 0.0)
    assert field.check_color == (0.0, 0.0, 0.0)
    assert field.background_color == (1.0, 1.0, 1.0)


def test_negative_geometry_is_rejected() -> None:
    with pytest.raises(MalformedField):
        TextareaField(page=0, x=0, y=0, width=-5, height=10)


def test_unknown_enum_value_is_rejected() -> None:
    with pytest.raises(MalformedField):
        CheckboxField(page=0, x=0, y=0, width=10, height=10, style="tick")


def test_parse_checkbox_with_nested_options_block() -> None:
    field = parse_field(
        {
            "type": "checkbox",
            "page": 0,
            "x": 50,
            "y": 60,
            "width": 18,
            "height": 18,
            "checked": True,
            "options": {"style": "checkmark", "borderWidth": 2, "checkColor": "#00FF00"},
        }
    )
    assert isinstance(field, CheckboxField)
    assert field.style == CheckStyle.CHECKMARK
    assert field.border_width == 2
    assert field.check_color == (0.0, 1.0, 0.0)


def test_parse_radio_and_dropdown_settings() -> None:
    radio = parse_field(
        {
            "type": "radio",
            "page": 1,
            "x": 0,
            "y": 0,
            "width": 200,
            "height": 80,
            "options": [{"label": "Yes", "value": "y"}, {"label": "No", "value": "n"}],
            "selectedValue": "n",
            "settings": {"orientation": "horizontal", "optionSpacing": 12},
        }
    )
    assert isinstance(radio, RadioGroupField)
    assert radio.orientation == Orientation.HORIZONTAL
    assert radio.option_spacing == 12
    assert [option.value for option in radio.options] == ["y", "n"]

    dropdown = parse_field(
        {"type": "dropdown", "page": 0, "x": 0, "y": 0, "width": 150, "height": 24, "settings": {"placeholder": "Pick"}}
    )
    assert isinstance(dropdown, DropdownField)
    assert dropdown.placeholder == "Pick"
    assert dropdown.selected_option() is None


def test_parse_table_columns_and_rows() -> None:
    table = parse_field(
        {
            "type": "table",
            "page": 0,
            "x": 40,
            "y": 100,
            "width": 300,
            "columns": [
                {"id": "item", "name": "Item", "type": "text", "width": 0},
                {"id": "qty", "name": "Qty", "type": "number", "width": 60},
            ],
            "rows": [{"values": {"item": "Pens", "qty": 4}}],
            "settings": {"showHeader": False, "rowHeight": 20},
        }
    )
    assert isinstance(table, TableField)
    assert table.columns[1].type == ColumnType.NUMBER
    assert table.show_header is False
    assert table.height == 20


def test_parse_text_accepts_unit_color_dict() -> None:
    field = parse_field({"type": "text", "page": 0, "x": 1, "y": 2, "text": "Hi", "color": {"r": 1, "g": 0, "b": 0}})
    assert isinstance(field, TextField)
    assert field.color == (1.0, 0.0, 0.0)
    assert field.font_size == 12


def test_parse_rejects_unknown_type_and_missing_keys() -> None:
    with pytest.raises(MalformedField):
        parse_field({"type": "slider", "page": 0, "x": 0, "y": 0})
    with pytest.raises(MalformedField):
        parse_field({"type": "signature", "page": 0, "x": 0, "y": 0, "width": 10})


def test_batch_orders_categories_regardless_of_input_order() -> None:
    batch = parse_batch(
        {
            "fields": [
                {"type": "table", "page": 0, "x": 0, "y": 0, "width": 100},
                {"type": "text", "page": 0, "x": 0, "y": 0, "text": "a"},
            ],
            "signatures": [{"page": 0, "x": 0, "y": 0, "width": 10, "height": 10, "imageData": "abc"}],
            "dateFields": [{"page": 0, "x": 0, "y": 0, "format": "short"}],
        }
    )
    kinds = [type(field) for field in batch.ordered()]
    assert kinds == [SignatureField, TextField, DateField, TableField]
    assert len(batch) == 4


def test_empty_batch_has_no_fields() -> None:
    assert list(FieldBatch().ordered()) == []


def test_watermark_defaults() -> None:
    options = WatermarkOptions()
    assert options.font_size == 48
    assert options.opacity == pytest.approx(0.3)
    assert options.rotation == 45
    assert options.color == pytest.approx((0.702, 0.702, 0.702), abs=1e-3)
    with pytest.raises(MalformedField):
        WatermarkOptions(opacity=1.5)


def test_parse_certificate_keeps_signer_order() -> None:
    data = parse_certificate(
        {
            "documentTitle": "Lease",
            "completedDate": "2026-03-01T10:00:00Z",
            "documentId": "doc-1",
            "signers": [
                {"name": "Ada", "email": "ada@example.com", "signedAt": "2026-02-28T09:00:00Z"},
                {"name": "Lin", "email": "lin@example.com", "signedAt": "2026-03-01T09:30:00+00:00"},
            ],
        }
    )
    assert [signer.name for signer in data.signers] == ["Ada", "Lin"]
    assert data.completed_date == datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


def test_style_defaults_follow_config_at_construction(monkeypatch) -> None:
    monkeypatch.setattr(config, "TEXT_FONT_SIZE", 16.0)
    monkeypatch.setattr(config, "TABLE_ROW_HEIGHT", 30.0)
    monkeypatch.setattr(config, "TEXTAREA_LINE_HEIGHT", 1.5)
    monkeypatch.setattr(config, "WATERMARK_FONT_SIZE", 60.0)

    assert TextField(page=0, x=0, y=0, text="a").font_size == 16.0
    assert DateField(page=0, x=0, y=0).font_size == 16.0
    assert TextareaField(page=0, x=0, y=0, width=10, height=10).line_height == 1.5
    assert TableField(page=0, x=0, y=0, width=100).row_height == 30.0
    assert WatermarkOptions().font_size == 60.0
    # explicit values still win
    assert TextField(page=0, x=0, y=0, text="a", font_size=9).font_size == 9
