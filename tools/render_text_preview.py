#!/usr/bin/env python3
"""
Render EO3 resource text with the game's bitmap fonts.

Give the raw bytes (``--hex "83 5F 83 7E 81 5B 80 01"``) or editable text
(``--text "ダミー[80 01]"``); the tool prints both forms and writes a PNG of
the wrapped preview so it can be checked against the game before saving.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

sys.path.append(str(Path(__file__).resolve().parents[1]))

from editor.font import LayoutConfigError, PointSize, default_font_dir, load_font_set
from editor.layout import layout_text
from editor.preview import DESCRIPTION_PREVIEW_WIDTH, render_layout
from editor.text import DecodeError, EditableText, EncodeError, decode_text, encode_text

log = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Preview EO3 text with the game's bitmap fonts.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--hex", help="Raw encoded bytes as hex (spaces allowed)")
    source.add_argument(
        "--text", help="Editable text, control codes as [80 01]-style tokens and [[ for a literal ["
    )
    parser.add_argument(
        "--size",
        type=int,
        choices=[int(size) for size in PointSize],
        default=int(PointSize.LARGE),
        help="Font point size (default 12)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=DESCRIPTION_PREVIEW_WIDTH,
        help=f"Maximum line width in pixels (default {DESCRIPTION_PREVIEW_WIDTH})",
    )
    parser.add_argument("--font-dir", type=Path, default=None, help="Directory with *.eo3font.json")
    parser.add_argument("--scale", type=int, default=2, help="Nearest-neighbour upscale factor")
    parser.add_argument("--out", type=Path, default=Path("text_preview.png"), help="PNG to write")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.hex is not None:
            try:
                raw = bytes.fromhex(args.hex)
            except ValueError:
                print(f"Error: --hex is not valid hex: {args.hex!r}", file=sys.stderr)
                return 2
            text = decode_text(raw)
        else:
            text = EditableText.parse(args.text)
            raw = encode_text(text)
    except (DecodeError, EncodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Editable: {text.to_editable()}")
    print(f"Bytes   : {raw.hex(' ').upper()}")

    font_dir = args.font_dir or default_font_dir()
    try:
        fonts = load_font_set(font_dir)
    except (OSError, ValueError) as exc:
        print(f"Error: failed to load fonts from {font_dir}: {exc}", file=sys.stderr)
        return 1

    size = PointSize(args.size)
    try:
        result = layout_text(text, fonts, args.width, size)
        image = render_layout(result, fonts[size], scale=args.scale)
    except LayoutConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    log.debug("Laid out %d glyphs on %d lines", len(result.placements), result.line_count)

    image.save(args.out)
    print(f"Saved {result.width}x{result.height} preview to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
