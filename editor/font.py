"""
Bitmap font atlases used by the in-game text preview.

Each atlas is described by a JSON file next to its PNG texture. The JSON lists
every glyph's cell in the texture and its advance width; icons and the
placeholder glyph drawn for unknown control tokens live in the same texture.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, Mapping, Optional

from PIL import Image

log = logging.getLogger(__name__)

FONT_DIR_ENV = "EO3_FONT_DIR"
DEFAULT_FONT_DIR = Path("Resources") / "Font"


class PointSize(IntEnum):
    SMALL = 8
    MEDIUM = 10
    LARGE = 12


FONT_FILES: Dict[PointSize, str] = {
    PointSize.SMALL: "Font8x8.eo3font.json",
    PointSize.MEDIUM: "Font10x10.eo3font.json",
    PointSize.LARGE: "Font12x12.eo3font.json",
}


class LayoutConfigError(LookupError):
    """Raised when a font atlas lacks a glyph the preview needs."""

    def __init__(self, message: str, key: object, point_size: Optional[int] = None) -> None:
        super().__init__(message)
        self.key = key
        self.point_size = point_size


@dataclass(frozen=True)
class Glyph:
    """A cell in the atlas texture plus the pen advance it consumes."""

    x: int
    y: int
    width: int
    height: int
    advance: int

    @property
    def box(self):
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass
class FontAtlas:
    point_size: int
    line_height: int
    glyphs: Dict[str, Glyph]
    icons: Dict[int, Glyph] = field(default_factory=dict)
    placeholder: Optional[Glyph] = None
    texture_path: Optional[Path] = None
    _texture: Optional[Image.Image] = field(default=None, repr=False, compare=False)

    def glyph(self, char: str) -> Glyph:
        try:
            return self.glyphs[char]
        except KeyError:
            raise LayoutConfigError(
                f"{self.point_size}px font has no glyph for {char!r} (U+{ord(char):04X})",
                char,
                self.point_size,
            ) from None

    def icon(self, index: int) -> Glyph:
        try:
            return self.icons[index]
        except KeyError:
            raise LayoutConfigError(
                f"{self.point_size}px font has no icon {index}", index, self.point_size
            ) from None

    def placeholder_glyph(self) -> Glyph:
        if self.placeholder is None:
            raise LayoutConfigError(
                f"{self.point_size}px font has no placeholder glyph", "placeholder", self.point_size
            )
        return self.placeholder

    def texture(self) -> Image.Image:
        """Open (once) and return the atlas texture as RGBA."""
        if self._texture is None:
            if self.texture_path is None:
                raise LayoutConfigError(
                    f"{self.point_size}px font has no texture", "texture", self.point_size
                )
            with Image.open(self.texture_path) as img:
                self._texture = img.convert("RGBA")
        return self._texture

    def set_texture(self, image: Image.Image) -> None:
        self._texture = image.convert("RGBA")


FontSet = Mapping[PointSize, FontAtlas]


def _parse_glyph(raw: Mapping[str, object], source: Path) -> Glyph:
    try:
        return Glyph(
            x=int(raw["x"]),
            y=int(raw["y"]),
            width=int(raw["width"]),
            height=int(raw["height"]),
            advance=int(raw.get("advance", raw["width"])),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"{source.name}: malformed glyph record {raw!r}") from exc


def load_font_atlas(path: Path) -> FontAtlas:
    """Load one ``*.eo3font.json`` description; the texture is opened lazily."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        point_size = int(payload["pointSize"])
        line_height = int(payload.get("lineHeight", point_size))
        texture = payload["texture"]
        raw_glyphs = payload["glyphs"]
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"{path.name}: not a valid font description ({exc})") from exc

    glyphs: Dict[str, Glyph] = {}
    for raw in raw_glyphs:
        char = raw.get("char")
        if not isinstance(char, str) or len(char) != 1:
            raise ValueError(f"{path.name}: glyph record needs a single 'char' ({raw!r})")
        glyphs[char] = _parse_glyph(raw, path)

    icons: Dict[int, Glyph] = {}
    for raw in payload.get("icons", []):
        icons[int(raw["index"])] = _parse_glyph(raw, path)

    placeholder = None
    if payload.get("placeholder") is not None:
        placeholder = _parse_glyph(payload["placeholder"], path)

    log.debug(
        "Loaded %dpx font %s: %d glyphs, %d icons", point_size, path.name, len(glyphs), len(icons)
    )
    return FontAtlas(
        point_size=point_size,
        line_height=line_height,
        glyphs=glyphs,
        icons=icons,
        placeholder=placeholder,
        texture_path=path.parent / texture,
    )


def default_font_dir() -> Path:
    override = os.environ.get(FONT_DIR_ENV)
    if override:
        return Path(override)
    return DEFAULT_FONT_DIR


def load_font_set(font_dir: Optional[Path] = None) -> Dict[PointSize, FontAtlas]:
    """Load the 8, 10 and 12 px atlases from ``font_dir``."""
    base = font_dir or default_font_dir()
    fonts: Dict[PointSize, FontAtlas] = {}
    for size, filename in FONT_FILES.items():
        atlas = load_font_atlas(base / filename)
        if atlas.point_size != size:
            log.warning(
                "%s declares %dpx but is loaded as the %dpx font", filename, atlas.point_size, size
            )
        fonts[size] = atlas
    log.info("Loaded %d preview fonts from %s", len(fonts), base)
    return fonts
