from __future__ import annotations

import logging
from typing import Sequence, Tuple

from PIL import Image

from .font import FontAtlas, FontSet, LayoutConfigError, PointSize
from .layout import LayoutResult, layout_text
from .text import EditableText, decode_text

log = logging.getLogger(__name__)

# Palette indices selectable with the COLOR control code. Values are 0-255 RGB triples.
TEXT_PALETTE: Sequence[Tuple[int, int, int]] = (
    (255, 255, 255),  # 0 default
    (255, 170, 0),  # 1 orange (item names, highlights)
    (96, 200, 255),  # 2 light blue
    (255, 96, 96),  # 3 red
    (128, 255, 128),  # 4 green
    (255, 255, 96),  # 5 yellow
    (160, 160, 160),  # 6 grey
    (200, 128, 255),  # 7 purple
)

NAME_PREVIEW_SIZE = PointSize.MEDIUM
NAME_PREVIEW_WIDTH = 120
DESCRIPTION_PREVIEW_SIZE = PointSize.LARGE
DESCRIPTION_PREVIEW_WIDTH = 232


def render_layout(
    result: LayoutResult,
    atlas: FontAtlas,
    palette: Sequence[Tuple[int, int, int]] = TEXT_PALETTE,
    scale: int = 1,
) -> Image.Image:
    """
    Paint a layout into a transparent RGBA image.

    Parameters
    ----------
    result:
        Output of :func:`editor.layout.layout_text` for ``atlas``.
    palette:
        Colours for the COLOR control code; the glyph cell's alpha is used as
        the mask, so the texture only needs to be white-on-transparent. A
        colour index outside the palette raises :class:`LayoutConfigError`.
    scale:
        Optional integer scale factor; the image is upscaled with nearest-neighbour
        filtering so the bitmap font stays crisp.
    """

    width = max([result.width, 1] + [p.x + p.glyph.width for p in result.placements])
    height = max([result.height, 1] + [p.y + p.glyph.height for p in result.placements])
    img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    texture = atlas.texture()

    for placement in result.placements:
        color = placement.style.color
        if not 0 <= color < len(palette):
            raise LayoutConfigError(
                f"Colour {color} is outside the {len(palette)}-entry text palette",
                color,
                atlas.point_size,
            )
        cell = texture.crop(placement.glyph.box)
        colour = palette[color]
        fill = Image.new("RGBA", cell.size, (*colour, 255))
        img.paste(fill, (placement.x, placement.y), mask=cell.getchannel("A"))

    if scale > 1:
        img = img.resize((width * scale, height * scale), Image.NEAREST)
    return img


def preview_name(name: str, fonts: FontSet, scale: int = 1) -> Image.Image:
    """Render an item name the way the shop list draws it."""
    text = EditableText.parse(name)
    result = layout_text(text, fonts, NAME_PREVIEW_WIDTH, NAME_PREVIEW_SIZE)
    return render_layout(result, fonts[NAME_PREVIEW_SIZE], scale=scale)


def preview_description(raw: bytes, fonts: FontSet, scale: int = 1) -> Image.Image:
    """Decode and render a raw description; decode errors propagate to the caller."""
    text = decode_text(raw)
    result = layout_text(text, fonts, DESCRIPTION_PREVIEW_WIDTH, DESCRIPTION_PREVIEW_SIZE)
    log.debug("Description preview: %d glyphs, %d lines", len(result.placements), result.line_count)
    return render_layout(result, fonts[DESCRIPTION_PREVIEW_SIZE], scale=scale)
