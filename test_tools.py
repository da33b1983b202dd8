#!/usr/bin/env python3
"""Tests for the command-line tools in tools/."""

import argparse
import json
import logging
import sys
from pathlib import Path

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent))
sys.path.insert(0, str(Path(__file__).parent / "tools"))
import dump_equipment
import render_text_preview
from editor.data import DUMMY_NAME, Equipment, EquipmentTable, EquipmentType
from editor.font import FONT_FILES


def write_fonts(directory):
    """Write all three font descriptions sharing one 32x24 texture with 'A' and 'i'."""
    Image.new("RGBA", (32, 24), (255, 255, 255, 255)).save(directory / "atlas.png")
    for size, filename in FONT_FILES.items():
        payload = {
            "pointSize": int(size),
            "texture": "atlas.png",
            "glyphs": [
                {"char": "A", "x": 0, "y": 0, "width": 10, "height": 12},
                {"char": "i", "x": 10, "y": 0, "width": 4, "height": 12},
            ],
        }
        (directory / filename).write_text(json.dumps(payload), encoding="utf-8")
    return directory


def write_snapshot(path, rows):
    EquipmentTable(path=path, records=rows).save_json()
    return path


# ---------------------------------------------------------------------------
# render_text_preview
# ---------------------------------------------------------------------------


def test_render_writes_png(tmp_path, capsys):
    fonts = write_fonts(tmp_path)
    out = tmp_path / "preview.png"
    code = render_text_preview.main(
        ["--hex", "41 69 80 01", "--size", "8", "--font-dir", str(fonts), "--out", str(out)]
    )
    assert code == 0
    stdout = capsys.readouterr().out
    assert "Editable: Ai[80 01]" in stdout
    assert "Bytes   : 41 69 80 01" in stdout
    with Image.open(out) as img:
        assert img.size == (28, 24)  # 14x12 at the default scale of 2


def test_render_text_with_literal_bracket(tmp_path, capsys):
    fonts = write_fonts(tmp_path)
    code = render_text_preview.main(
        ["--text", "A[[", "--font-dir", str(fonts), "--out", str(tmp_path / "o.png")]
    )
    # '[' has no glyph in the test atlas, but the bytes are printed first
    assert code == 1
    captured = capsys.readouterr()
    assert "Bytes   : 41 5B" in captured.out
    assert "no glyph for '['" in captured.err


def test_render_rejects_malformed_hex(capsys):
    assert render_text_preview.main(["--hex", "zz"]) == 2
    assert "not valid hex" in capsys.readouterr().err


def test_render_reports_decode_error(capsys):
    assert render_text_preview.main(["--hex", "41 80"]) == 1
    assert "at offset 1" in capsys.readouterr().err


def test_render_reports_unknown_token(capsys):
    assert render_text_preview.main(["--text", "A[80 03]"]) == 1
    assert "Unrecognised control token [80 03]" in capsys.readouterr().err


def test_render_reports_missing_glyph(tmp_path, capsys):
    fonts = write_fonts(tmp_path)
    out = tmp_path / "preview.png"
    code = render_text_preview.main(["--text", "AZ", "--font-dir", str(fonts), "--out", str(out)])
    assert code == 1
    assert "no glyph for 'Z'" in capsys.readouterr().err
    assert not out.exists()


def test_render_reports_missing_fonts(tmp_path, capsys):
    assert render_text_preview.main(["--text", "A", "--font-dir", str(tmp_path)]) == 1
    assert "failed to load fonts" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# dump_equipment
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        ("all", None),
        ("cloth_armor", EquipmentType.CLOTH_ARMOR),
        ("Cloth-Armor", EquipmentType.CLOTH_ARMOR),
        ("17", EquipmentType.ACCESSORY),
    ],
)
def test_parse_filter(value, expected):
    assert dump_equipment.parse_filter(value) == expected


def test_parse_filter_rejects_unknown_type():
    with pytest.raises(argparse.ArgumentTypeError):
        dump_equipment.parse_filter("trident")


def test_dump_unknown_filter_exits_with_usage(tmp_path):
    snapshot = write_snapshot(tmp_path / "eq.json", [Equipment(index=0, name="a")])
    with pytest.raises(SystemExit) as excinfo:
        dump_equipment.main([str(snapshot), "--filter", "trident"])
    assert excinfo.value.code == 2


def test_dump_corrupt_snapshot(tmp_path, capsys):
    snapshot = tmp_path / "eq.json"
    snapshot.write_text("{not json", encoding="utf-8")
    assert dump_equipment.main([str(snapshot)]) == 1
    assert "failed to load" in capsys.readouterr().err


def test_dump_missing_snapshot(tmp_path, capsys):
    assert dump_equipment.main([str(tmp_path / "missing.json")]) == 1
    assert "failed to load" in capsys.readouterr().err


def test_dump_json_flags_undecodable_description(tmp_path, capsys, caplog):
    snapshot = write_snapshot(
        tmp_path / "eq.json",
        [
            Equipment(index=0, name=DUMMY_NAME),
            Equipment(index=1, name="Bronze Sword", type=EquipmentType.SWORD, patk=12,
                      description=b"\x83"),
            Equipment(index=2, name="Ring", type=EquipmentType.ACCESSORY, pdef=3,
                      description=b"Ring\x80\x01"),
        ],
    )
    with caplog.at_level(logging.WARNING):
        assert dump_equipment.main([str(snapshot), "--json"]) == 0
    assert "Row 1" in caplog.text

    payload = json.loads(capsys.readouterr().out)
    assert payload["filter"] is None
    assert payload["include_placeholders"] is False
    rows = payload["rows"]
    assert [row["index"] for row in rows] == [1, 2]
    assert rows[0]["description_text"] is None
    assert rows[0]["PATK"] == 12
    assert rows[1]["description_text"] == "Ring[80 01]"
    assert rows[1]["PDEF"] == 3


def test_dump_cloth_armor_summary_is_locked(tmp_path, capsys):
    cloth = EquipmentType.CLOTH_ARMOR
    snapshot = write_snapshot(
        tmp_path / "eq.json",
        [
            Equipment(index=0, name="Summer Tweed", type=cloth),
            Equipment(index=1, name=DUMMY_NAME),
            Equipment(index=2, name="Bikini Armor", type=cloth),
        ],
    )
    code = dump_equipment.main([str(snapshot), "--filter", "cloth_armor", "--include-placeholders"])
    assert code == 0
    summary = capsys.readouterr().out
    assert "Filter        : Cloth Armor" in summary
    assert "Placeholders  : hidden (locked for this category)" in summary
    assert "Rows          : 2 of 3" in summary
    assert DUMMY_NAME not in summary


def test_dump_json_window_with_placeholders(tmp_path, capsys):
    snapshot = write_snapshot(
        tmp_path / "eq.json",
        [
            Equipment(index=0, name="Ring", type=EquipmentType.ACCESSORY),
            Equipment(index=1, name=DUMMY_NAME),
        ],
    )
    assert dump_equipment.main([str(snapshot), "--filter", "accessory",
                                "--include-placeholders", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["filter"] == "ACCESSORY"
    assert payload["include_placeholders"] is True
    assert [row["index"] for row in payload["rows"]] == [0, 1]
