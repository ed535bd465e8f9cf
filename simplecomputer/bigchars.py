"""Big 8x8 characters, pseudographic boxes and the font file."""

import struct
from pathlib import Path

from simplecomputer.term import Color, Terminal

ACS_ENTER = "\x1b(0"
ACS_EXIT = "\x1b(B"

ANGLE_LEFT_UP = "l"
ANGLE_LEFT_DOWN = "m"
ANGLE_RIGHT_UP = "k"
ANGLE_RIGHT_DOWN = "j"
LINE_VERTICAL = "x"
LINE_HORIZONTAL = "q"
BLACK_CHAR = "a"

_MASK32 = 0xFFFFFFFF
_CHAR_FORMAT = "<2I"
_CHAR_BYTES = struct.calcsize(_CHAR_FORMAT)

FONT_GLYPHS = "0123456789ABCDEF+-"

FONT: dict[str, tuple[int, int]] = {
    "0": (1717992960, 8283750),
    "1": (471341056, 3938328),
    "2": (538983424, 3935292),
    "3": (2120252928, 8282238),
    "4": (2120640000, 6316158),
    "5": (2114092544, 8273984),
    "6": (33701376, 4071998),
    "7": (811630080, 396312),
    "8": (2120646144, 8283750),
    "9": (2087074816, 3956832),
    "A": (2118269952, 4342338),
    "B": (1044528640, 4080194),
    "C": (37895168, 3949058),
    "D": (1111637504, 4080194),
    "E": (2114092544, 8258050),
    "F": (33717760, 131646),
    "+": (2115508224, 1579134),
    "-": (2113929216, 126),
}


class BigCharError(ValueError):
    """A big character operation got invalid arguments or data."""


def _check_pos(x: int, y: int) -> None:
    if not (0 <= x <= 7 and 0 <= y <= 7):
        raise BigCharError(f"position out of range: ({x}, {y})")


def get_bigchar_pos(big, x: int, y: int) -> int:
    """Return the pixel at row ``x``, column ``y`` of a big character."""
    _check_pos(x, y)
    word = big[1 if x > 3 else 0] & _MASK32
    return (word >> ((x % 4) * 8 + y)) & 1


def set_bigchar_pos(big, x: int, y: int, value: int) -> tuple[int, int]:
    """Return a copy of ``big`` with the pixel at row ``x``, column ``y`` set to ``value``."""
    _check_pos(x, y)
    if value not in (0, 1):
        raise BigCharError(f"pixel value must be 0 or 1: {value!r}")
    words = [big[0] & _MASK32, big[1] & _MASK32]
    index = 1 if x > 3 else 0
    bit = 1 << ((x % 4) * 8 + y)
    if value:
        words[index] |= bit
    else:
        words[index] &= ~bit & _MASK32
    return words[0], words[1]


def bigchar_write(stream, chars) -> None:
    """Write big characters to a binary stream as pairs of 32-bit integers."""
    for big in chars:
        stream.write(struct.pack(_CHAR_FORMAT, big[0] & _MASK32, big[1] & _MASK32))


def bigchar_read(stream, count: int) -> list[tuple[int, int]]:
    """Read ``count`` big characters from a binary stream."""
    data = stream.read(_CHAR_BYTES * count)
    if len(data) != _CHAR_BYTES * count:
        raise BigCharError(
            f"expected {count} big characters, got {len(data)} bytes"
        )
    return [
        struct.unpack_from(_CHAR_FORMAT, data, offset)
        for offset in range(0, len(data), _CHAR_BYTES)
    ]


def _sequence_length(lead: int) -> int:
    if lead & 0x80 == 0:
        return 1
    if lead & 0xE0 == 0xC0:
        return 2
    if lead & 0xF0 == 0xE0:
        return 3
    if lead & 0xF8 == 0xF0:
        return 4
    return 0


def utf8_strlen(data) -> int:
    """Count UTF-8 characters up to the first NUL; 0 for an invalid sequence."""
    if data is None:
        return 0
    if isinstance(data, str):
        data = data.encode("utf-8")
    data = bytes(data).split(b"\0", 1)[0]
    count = 0
    pos = 0
    while pos < len(data):
        length = _sequence_length(data[pos])
        if length == 0 or pos + length > len(data):
            return 0
        if any(b & 0xC0 != 0x80 for b in data[pos + 1 : pos + length]):
            return 0
        pos += length
        count += 1
    return count


def print_acs(term: Terminal, text: str) -> None:
    """Write ``text`` in the alternate (line drawing) character set."""
    term.write(ACS_ENTER)
    term.write(text)
    term.write(ACS_EXIT)


def draw_box(
    term: Terminal,
    x1: int,
    y1: int,
    x2: int,
    y2: int,
    box_fg: Color,
    box_bg: Color,
    header,
    header_fg: Color,
    header_bg: Color,
) -> None:
    """Draw a frame at row ``x1``, column ``y1`` of ``x2`` rows by ``y2`` columns."""
    term.set_fg(box_fg)
    term.set_bg(box_bg)
    if x1 < 0 or y1 < 0:
        raise BigCharError(f"box origin out of range: ({x1}, {y1})")

    bottom = x1 + x2 - 1
    right = y1 + y2 - 1

    term.goto(x1, y1)
    print_acs(term, ANGLE_LEFT_UP)
    for col in range(y1 + 1, right):
        term.goto(x1, col)
        print_acs(term, LINE_HORIZONTAL)
    print_acs(term, ANGLE_RIGHT_UP)

    for row in range(x1 + 1, bottom):
        term.goto(row, y1)
        print_acs(term, LINE_VERTICAL)

    term.goto(bottom, y1)
    print_acs(term, ANGLE_LEFT_DOWN)

    for row in range(x1 + 1, bottom):
        term.goto(row, right)
        print_acs(term, LINE_VERTICAL)

    for col in range(y1 + 1, right):
        term.goto(bottom, col)
        print_acs(term, LINE_HORIZONTAL)
    print_acs(term, ANGLE_RIGHT_DOWN)

    if header is not None:
        term.set_fg(header_fg)
        term.set_bg(header_bg)
        term.goto(x1, y1 + int(y2 / 2) - utf8_strlen(header) // 2)
        term.write(header)


def print_bigchar(term: Terminal, big, x: int, y: int, bg: Color, fg: Color) -> None:
    """Draw a big character whose top-left corner is below row ``x`` at column ``y``."""
    term.set_fg(fg)
    term.set_bg(bg)
    for row in range(8):
        line = "".join(
            BLACK_CHAR if get_bigchar_pos(big, row, col) else " " for col in range(8)
        )
        term.goto(x + row + 1, y)
        print_acs(term, line)
    term.set_default_color()
    term.goto(24, 0)


def save_font(path, font) -> None:
    """Write the glyphs of ``font`` to ``path`` in the standard glyph order."""
    with Path(path).open("wb") as stream:
        bigchar_write(stream, (font[glyph] for glyph in FONT_GLYPHS))


def load_font(path) -> dict[str, tuple[int, int]]:
    """Read a font file; glyphs missing from it keep their built-in shapes."""
    font = dict(FONT)
    try:
        data = Path(path).read_bytes()
    except OSError:
        return font
    count = min(len(data) // _CHAR_BYTES, len(FONT_GLYPHS))
    for glyph, offset in zip(FONT_GLYPHS[:count], range(0, count * _CHAR_BYTES, _CHAR_BYTES)):
        font[glyph] = struct.unpack_from(_CHAR_FORMAT, data, offset)
    return font