"""
Greedy line layout for preview text.

EO3 text has no inter-word spaces, so wrapping is decided per character: a
glyph that would cross ``max_width`` moves to the next line. Control tokens
are never wrap points.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple, Union

from .font import FontAtlas, FontSet, Glyph, LayoutConfigError, PointSize
from .text import ControlKind, ControlToken, EditableText, TextRun

__all__ = [
    "GlyphPlacement",
    "LayoutConfigError",
    "LayoutResult",
    "StyleState",
    "layout_text",
]


@dataclass(frozen=True)
class StyleState:
    color: int = 0


DEFAULT_STYLE = StyleState()


@dataclass(frozen=True)
class GlyphPlacement:
    key: Union[str, ControlToken]  # the character, or the token for icons/placeholders
    glyph: Glyph
    x: int
    y: int
    style: StyleState


@dataclass(frozen=True)
class LayoutResult:
    placements: Tuple[GlyphPlacement, ...]
    width: int
    height: int
    line_height: int

    @property
    def line_count(self) -> int:
        if not self.line_height:
            return 0
        return self.height // self.line_height


def _atlas_for(fonts: FontSet, point_size: PointSize) -> FontAtlas:
    try:
        return fonts[point_size]
    except KeyError:
        raise LayoutConfigError(
            f"No font atlas loaded for {int(point_size)}px text", point_size, int(point_size)
        ) from None


def layout_text(
    text: EditableText, fonts: FontSet, max_width: int, point_size: PointSize
) -> LayoutResult:
    """Place every glyph of ``text`` for a render area ``max_width`` pixels wide."""
    if max_width <= 0:
        raise ValueError(f"max_width must be positive (got {max_width})")
    atlas = _atlas_for(fonts, point_size)
    line_height = atlas.line_height

    placements: List[GlyphPlacement] = []
    style = DEFAULT_STYLE
    x = y = 0
    widest = 0

    for segment in text.segments:
        if isinstance(segment, TextRun):
            for char in segment.text:
                glyph = atlas.glyph(char)
                if x > 0 and x + glyph.advance > max_width:
                    x = 0
                    y += line_height
                placements.append(GlyphPlacement(char, glyph, x, y, style))
                x += glyph.advance
                widest = max(widest, x)
            continue

        code = segment.code
        if code is None:
            glyph = atlas.placeholder_glyph()
        elif code.kind is ControlKind.STYLE:
            style = StyleState(color=segment.argument)
            continue
        elif code.kind is ControlKind.LINE_BREAK:
            x = 0
            y += line_height
            continue
        elif code.kind is ControlKind.ICON:
            glyph = atlas.icon(segment.argument)
        else:
            continue
        placements.append(GlyphPlacement(segment, glyph, x, y, style))
        x += glyph.advance
        widest = max(widest, x)

    height = y + line_height if text.segments else 0
    return LayoutResult(tuple(placements), widest, height, line_height)
