#!/usr/bin/env python3
"""Tests for the preview line layout."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))
from editor.font import FontAtlas, Glyph, PointSize
from editor.layout import DEFAULT_STYLE, LayoutConfigError, StyleState, layout_text
from editor.text import ControlToken, EditableText, decode_text

WIDE = Glyph(0, 0, 10, 12, 10)
NARROW = Glyph(10, 0, 4, 12, 4)
KANA = Glyph(14, 0, 12, 12, 12)
ICON = Glyph(0, 12, 12, 12, 14)
PLACEHOLDER = Glyph(12, 12, 8, 12, 8)


@pytest.fixture
def fonts():
    atlas = FontAtlas(
        point_size=12,
        line_height=12,
        glyphs={"A": WIDE, "i": NARROW, "ダ": KANA},
        icons={0: ICON},
        placeholder=PLACEHOLDER,
    )
    return {PointSize.LARGE: atlas}


def layout(fonts, editable, max_width=30):
    return layout_text(EditableText.parse(editable), fonts, max_width, PointSize.LARGE)


def positions(result):
    return [(p.x, p.y) for p in result.placements]


def test_layout_is_deterministic(fonts):
    text = decode_text(b"A\x80\x04\x00\x02iAA\x80\x02\x83\x5fA")
    first = layout_text(text, fonts, 25, PointSize.LARGE)
    second = layout_text(text, fonts, 25, PointSize.LARGE)
    assert first == second


def test_run_of_exact_width_does_not_wrap(fonts):
    result = layout(fonts, "AAA", max_width=30)
    assert positions(result) == [(0, 0), (10, 0), (20, 0)]
    assert result.width == 30
    assert result.height == 12
    assert result.line_count == 1


def test_one_pixel_over_wraps_before_the_glyph(fonts):
    result = layout(fonts, "AAAi", max_width=33)
    assert positions(result) == [(0, 0), (10, 0), (20, 0), (0, 12)]
    assert result.line_count == 2

    fits = layout(fonts, "AAAi", max_width=34)
    assert positions(fits)[-1] == (30, 0)


def test_style_token_at_wrap_point_applies_to_wrapped_glyph(fonts):
    result = layout(fonts, "AAA[80 04 00 01]A")
    assert len(result.placements) == 4
    last = result.placements[-1]
    assert (last.x, last.y) == (0, 12)
    assert last.style == StyleState(color=1)
    assert all(p.style == DEFAULT_STYLE for p in result.placements[:3])


def test_icon_at_wrap_point_is_placed_whole(fonts):
    result = layout(fonts, "AAA[80 05 00 00]A")
    icon = result.placements[3]
    assert icon.key == ControlToken(b"\x80\x05\x00\x00")
    assert icon.glyph == ICON
    assert (icon.x, icon.y) == (30, 0)
    assert (result.placements[4].x, result.placements[4].y) == (0, 12)


def test_line_break(fonts):
    result = layout(fonts, "A[80 02]ダ", max_width=100)
    assert positions(result) == [(0, 0), (0, 12)]
    assert result.height == 24
    assert result.width == 12


def test_end_token_places_nothing(fonts):
    result = layout(fonts, "Ai[80 01]")
    assert [p.key for p in result.placements] == ["A", "i"]
    assert result.width == 14


def test_unknown_token_uses_placeholder(fonts):
    result = layout(fonts, "A[80 09]A")
    placeholder = result.placements[1]
    assert placeholder.glyph == PLACEHOLDER
    assert placeholder.key == ControlToken(b"\x80\x09")
    assert result.placements[2].x == 18


def test_empty_text(fonts):
    result = layout_text(EditableText(), fonts, 30, PointSize.LARGE)
    assert result.placements == ()
    assert result.height == 0
    assert result.line_count == 0


def test_over_wide_glyph_does_not_leave_empty_line(fonts):
    result = layout(fonts, "AA", max_width=5)
    assert positions(result) == [(0, 0), (0, 12)]


def test_missing_glyph(fonts):
    with pytest.raises(LayoutConfigError) as excinfo:
        layout(fonts, "AZ")
    assert excinfo.value.key == "Z"
    assert excinfo.value.point_size == 12


def test_missing_icon(fonts):
    with pytest.raises(LayoutConfigError) as excinfo:
        layout(fonts, "[80 05 00 03]")
    assert excinfo.value.key == 3


def test_missing_placeholder(fonts):
    fonts[PointSize.LARGE].placeholder = None
    with pytest.raises(LayoutConfigError):
        layout(fonts, "[FF]")


def test_missing_point_size(fonts):
    with pytest.raises(LayoutConfigError):
        layout_text(EditableText.parse("A"), fonts, 30, PointSize.SMALL)


@pytest.mark.parametrize("max_width", [0, -12])
def test_max_width_must_be_positive(fonts, max_width):
    with pytest.raises(ValueError):
        layout(fonts, "A", max_width=max_width)
