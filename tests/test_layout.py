from __future__ import annotations

import pytest

from fieldpress import config
from fieldpress.errors import MalformedField
from fieldpress.models import TableColumn
from fieldpress.pipeline.layout import (
    BLACK,
    check_encodable,
    distribute_column_widths,
    hex_to_unit_rgb,
    measure_width,
    to_unit_rgb,
    truncate_to_width,
    wrap,
)


FONT = "Helvetica"


def test_measure_width_scales_with_font_size() -> None:
    small = measure_width(FONT, "Signature", 10)
    large = measure_width(FONT, "Signature", 20)
    assert small > 0
    assert large == pytest.approx(small * 2)


def test_distribute_splits_remaining_width_among_auto_columns() -> None:
    columns = [TableColumn(id="a", name="A", width=100), TableColumn(id="b", name="B"), TableColumn(id="c", name="C")]
    assert distribute_column_widths(300, columns) == [100, 100, 100]


def test_distribute_keeps_explicit_widths_without_auto_columns() -> None:
    columns = [TableColumn(id="a", name="A", width=120), TableColumn(id="b", name="B", width=80)]
    assert distribute_column_widths(500, columns) == [120, 80]


def test_distribute_never_goes_negative() -> None:
    columns = [TableColumn(id="a", name="A", width=400), TableColumn(id="b", name="B")]
    assert distribute_column_widths(300, columns) == [400, 0.0]


def test_wrap_breaks_long_text_into_several_lines() -> None:
    text = "The quick brown fox jumps over the lazy dog and keeps running far away"
    lines = wrap(text, 120, FONT, 12)
    assert len(lines) >= 2
    assert all(measure_width(FONT, line, 12) <= 120 for line in lines)
    assert " ".join(lines) == text


def test_wrap_preserves_explicit_and_empty_lines() -> None:
    assert wrap("first\n\nthird", 200, FONT, 12) == ["first", "", "third"]


def test_wrap_truncates_single_oversized_word() -> None:
    lines = wrap("Supercalifragilisticexpialidocious", 60, FONT, 12)
    assert len(lines) == 1
    assert lines[0].endswith(config.ELLIPSIS)
    assert measure_width(FONT, lines[0], 12) <= 60


def test_wrap_of_empty_text_is_one_blank_line() -> None:
    assert wrap("", 100, FONT, 12) == [""]


def test_truncate_leaves_fitting_text_alone() -> None:
    assert truncate_to_width("Short", 200, FONT, 12) == "Short"


def test_truncate_appends_ellipsis_until_it_fits() -> None:
    result = truncate_to_width("A rather long option label", 80, FONT, 12)
    assert result.endswith(config.ELLIPSIS)
    assert measure_width(FONT, result, 12) <= 80
    assert "A rather long option label".startswith(result[:-1])


def test_truncate_stops_at_three_characters() -> None:
    result = truncate_to_width("WWWWWWWW", 1, FONT, 12)
    assert len(result) <= 3


@pytest.mark.parametrize(
    "value, expected",
    [
        ("#FF0000", (1.0, 0.0, 0.0)),
        ("00ff00", (0.0, 1.0, 0.0)),
        ("#0000Ff", (0.0, 0.0, 1.0)),
    ],
)
def test_hex_to_unit_rgb(value: str, expected) -> None:
    assert hex_to_unit_rgb(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", ["", "#FFF", "#GG0000", "red", "#12345678", None])
def test_malformed_hex_defaults_to_black(value) -> None:
    assert hex_to_unit_rgb(value) == BLACK


def test_to_unit_rgb_accepts_dicts_and_tuples() -> None:
    assert to_unit_rgb({"r": 0.5, "g": 0.25, "b": 1}) == (0.5, 0.25, 1.0)
    assert to_unit_rgb((2, -1, 0.5)) == (1.0, 0.0, 0.5)
    assert to_unit_rgb(None, default=(1.0, 1.0, 1.0)) == (1.0, 1.0, 1.0)


def test_check_encodable_accepts_winansi_text() -> None:
    check_encodable("Zoë Müller • 3…", FONT)


@pytest.mark.parametrize("text", ["Łukasz", "日本語", "Ωmega"])
def test_check_encodable_rejects_other_scripts(text: str) -> None:
    with pytest.raises(MalformedField, match="cannot draw"):
        check_encodable(text, FONT)


def test_check_encodable_ignores_non_standard_fonts() -> None:
    check_encodable("日本語", "SomeRegisteredTTF")
