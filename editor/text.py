"""
Codec for EO3 resource text: Shift-JIS characters interleaved with 0x80xx
control codes.

Decoded text is an :class:`EditableText`, an ordered run of printable text and
control tokens. Its editable string form writes tokens as bracketed hex, e.g.
``ダミー[80 01]``, and a literal bracket as ``[[``. Byte-level round tripping is the point of this module, so
nothing is ever skipped, replaced or coerced.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

TEXT_ENCODING = "cp932"
TEXT_FORMAT_VERSION = "eo3-1"


class ControlKind(Enum):
    TERMINATOR = "terminator"
    LINE_BREAK = "line_break"
    STYLE = "style"
    ICON = "icon"


@dataclass(frozen=True)
class ControlCode:
    name: str
    prefix: bytes
    arg_len: int
    kind: ControlKind

    @property
    def size(self) -> int:
        return len(self.prefix) + self.arg_len


CONTROL_CODES: Tuple[ControlCode, ...] = (
    ControlCode("END", b"\x80\x01", 0, ControlKind.TERMINATOR),
    ControlCode("LINE_BREAK", b"\x80\x02", 0, ControlKind.LINE_BREAK),
    ControlCode("COLOR", b"\x80\x04", 2, ControlKind.STYLE),
    ControlCode("ICON", b"\x80\x05", 2, ControlKind.ICON),
)
CONTROL_CODES_BY_NAME: Dict[str, ControlCode] = {code.name: code for code in CONTROL_CODES}
_CONTROL_LEAD = frozenset(code.prefix[0] for code in CONTROL_CODES)

# A literal "[" is written "[[" so text that looks like a token survives the string form.
LITERAL_BRACKET = "[["
_TOKEN_RE = re.compile(r"\[\[|\[([0-9A-Fa-f]{2}(?: [0-9A-Fa-f]{2})*)\]")


class DecodeError(ValueError):
    """Raised when a byte string holds neither a control code nor a valid character."""

    def __init__(self, message: str, offset: int, data: bytes = b"") -> None:
        super().__init__(f"{message} at offset {offset}")
        self.offset = offset
        self.data = data


class EncodeError(ValueError):
    """Raised when editable text holds a token or character the game cannot store."""

    def __init__(self, message: str, token: object) -> None:
        super().__init__(message)
        self.token = token


@dataclass(frozen=True)
class TextRun:
    text: str

    def to_editable(self) -> str:
        return self.text.replace("[", LITERAL_BRACKET)


@dataclass(frozen=True)
class ControlToken:
    payload: bytes

    @property
    def code(self) -> Optional[ControlCode]:
        for code in CONTROL_CODES:
            if self.payload[: len(code.prefix)] == code.prefix and len(self.payload) == code.size:
                return code
        return None

    @property
    def argument(self) -> int:
        code = self.code
        if code is None or code.arg_len == 0:
            return 0
        return int.from_bytes(self.payload[len(code.prefix) :], "big")

    def to_editable(self) -> str:
        return "[" + " ".join(f"{byte:02X}" for byte in self.payload) + "]"


Segment = Union[TextRun, ControlToken]


def make_token(name: str, argument: int = 0) -> ControlToken:
    """Build a control token from the code table, e.g. ``make_token("COLOR", 2)``."""
    code = CONTROL_CODES_BY_NAME[name]
    payload = code.prefix
    if code.arg_len:
        payload += int(argument).to_bytes(code.arg_len, "big")
    return ControlToken(payload)


@dataclass(frozen=True)
class EditableText:
    segments: Tuple[Segment, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", _normalise(self.segments))

    @classmethod
    def parse(cls, editable: str) -> "EditableText":
        """
        Split an editable string into runs and bracketed hex tokens.

        ``[[`` is a literal ``[``. A lone ``[`` that does not open a hex token
        is also kept as text.
        """
        segments: List[Segment] = []
        cursor = 0
        for match in _TOKEN_RE.finditer(editable):
            if match.start() > cursor:
                segments.append(TextRun(editable[cursor : match.start()]))
            if match.group(1) is None:
                segments.append(TextRun("["))
            else:
                segments.append(ControlToken(bytes.fromhex(match.group(1))))
            cursor = match.end()
        if cursor < len(editable):
            segments.append(TextRun(editable[cursor:]))
        return cls(tuple(segments))

    def to_editable(self) -> str:
        return "".join(segment.to_editable() for segment in self.segments)

    def __str__(self) -> str:
        return self.to_editable()

    @property
    def plain_text(self) -> str:
        return "".join(seg.text for seg in self.segments if isinstance(seg, TextRun))

    def tokens(self) -> List[ControlToken]:
        return [seg for seg in self.segments if isinstance(seg, ControlToken)]


def _normalise(segments: Iterable[Segment]) -> Tuple[Segment, ...]:
    merged: List[Segment] = []
    for segment in segments:
        if isinstance(segment, TextRun):
            if not segment.text:
                continue
            if merged and isinstance(merged[-1], TextRun):
                merged[-1] = TextRun(merged[-1].text + segment.text)
                continue
        elif not isinstance(segment, ControlToken):
            raise TypeError(f"Unsupported text segment {segment!r}")
        merged.append(segment)
    return tuple(merged)


def _char_length(lead: int) -> int:
    """Byte length of the character starting with ``lead``; 0 if it cannot start one."""
    if 0x20 <= lead <= 0x7E or 0xA1 <= lead <= 0xDF:
        return 1
    if 0x81 <= lead <= 0x9F or 0xE0 <= lead <= 0xFC:
        return 2
    return 0


def _match_control(data: bytes, offset: int) -> Optional[ControlCode]:
    for code in CONTROL_CODES:
        if data.startswith(code.prefix, offset):
            return code
    return None


def decode_text(data: bytes) -> EditableText:
    """Decode raw resource bytes into editable text."""
    data = bytes(data)
    segments: List[Segment] = []
    run: List[str] = []
    offset = 0
    while offset < len(data):
        lead = data[offset]
        if lead in _CONTROL_LEAD:
            code = _match_control(data, offset)
            if code is not None:
                end = offset + code.size
                if end > len(data):
                    raise DecodeError(
                        f"Truncated {code.name} control code ({len(data) - offset} of {code.size} bytes)",
                        offset,
                        data,
                    )
                if run:
                    segments.append(TextRun("".join(run)))
                    run = []
                segments.append(ControlToken(data[offset:end]))
                offset = end
                continue

        length = _char_length(lead)
        if length == 0:
            raise DecodeError(f"Unrecognised byte 0x{lead:02X}", offset, data)
        raw = data[offset : offset + length]
        if len(raw) < length:
            raise DecodeError(f"Truncated double-byte character 0x{lead:02X}", offset, data)
        try:
            char = raw.decode(TEXT_ENCODING)
        except UnicodeDecodeError:
            raise DecodeError(f"Invalid character bytes {raw.hex(' ')}", offset, data) from None
        if char.encode(TEXT_ENCODING) != raw:
            raise DecodeError(
                f"Non-canonical character bytes {raw.hex(' ')} for {char!r}", offset, data
            )
        run.append(char)
        offset += length

    if run:
        segments.append(TextRun("".join(run)))
    return EditableText(tuple(segments))


def _encode_token(token: ControlToken) -> bytes:
    if token.code is None:
        raise EncodeError(
            f"Unrecognised control token {token.to_editable()} (format {TEXT_FORMAT_VERSION})",
            token,
        )
    return token.payload


def _encode_char(char: str) -> bytes:
    try:
        raw = char.encode(TEXT_ENCODING)
    except UnicodeEncodeError:
        raise EncodeError(f"Character {char!r} has no {TEXT_ENCODING} encoding", char) from None
    if _char_length(raw[0]) != len(raw):
        raise EncodeError(f"Character {char!r} is not storable in game text", char)
    return raw


def encode_text(text: Union[EditableText, str]) -> bytes:
    """Encode editable text (or its editable string form) back into resource bytes."""
    if isinstance(text, str):
        text = EditableText.parse(text)
    parts: List[bytes] = []
    for segment in text.segments:
        if isinstance(segment, ControlToken):
            parts.append(_encode_token(segment))
        else:
            parts.extend(_encode_char(char) for char in segment.text)
    return b"".join(parts)
