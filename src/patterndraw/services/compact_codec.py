"""Compact text form of a drawing document.

The compact form is six ``|``-separated fields::

    <pattern>|<pixelSize>|<canvasWidth>|<canvasHeight>|<colors>|<grid>

* ``pattern`` -- ``s`` (squares), ``b`` (bricks), ``v`` (bricksVertical).
* ``colors``  -- palette values joined with ``,``.
* ``grid``    -- ``row,col:color`` entries joined with ``;``.  White cells are
  never written, so they read back as unpainted.

Decoding is lenient on purpose: the string usually arrives through a URL and
may be truncated or hand-edited.  Only a string with fewer than six fields is
rejected; bad numbers fall back to defaults, unknown pattern tags read as
``bricksVertical`` and malformed grid entries are dropped.
"""

from __future__ import annotations

import re
from typing import Optional

from patterndraw.services.drawing_document import (
    DEFAULT_CANVAS_HEIGHT,
    DEFAULT_CANVAS_WIDTH,
    DEFAULT_PIXEL_SIZE,
    DrawingDocument,
    MatrixPattern,
    is_white,
)

FIELD_SEPARATOR = "|"
COLOR_SEPARATOR = ","
ENTRY_SEPARATOR = ";"
KEY_COLOR_SEPARATOR = ":"

FIELD_COUNT = 6

_PATTERN_TAGS = {
    MatrixPattern.SQUARES: "s",
    MatrixPattern.BRICKS: "b",
    MatrixPattern.BRICKS_VERTICAL: "v",
}

# Leading integer, the way a lenient parser reads "15", " 15" or "15px".
# More than nine significant digits does not match and reads as missing.
_LEADING_INT_RE = re.compile(r"\s*([+-]?)0*([0-9]{1,9})(?![0-9])")


def encode_compact(document: DrawingDocument) -> str:
    """Serialize *document* to the compact form.

    The document is assumed valid; nothing is checked here.
    """
    grid_entries = [
        f"{key}{KEY_COLOR_SEPARATOR}{color}"
        for key, color in document.grid.items()
        if color and not is_white(color)
    ]
    fields = [
        _PATTERN_TAGS[document.pattern],
        str(document.pixel_size),
        str(document.canvas_width),
        str(document.canvas_height),
        COLOR_SEPARATOR.join(document.colors),
        ENTRY_SEPARATOR.join(grid_entries),
    ]
    return FIELD_SEPARATOR.join(fields)


def decode_compact(compact: str) -> Optional[DrawingDocument]:
    """Parse the compact form, returning ``None`` if it has fewer than six fields."""
    parts = compact.split(FIELD_SEPARATOR)
    if len(parts) < FIELD_COUNT:
        return None

    return DrawingDocument(
        pattern=_parse_pattern(parts[0]),
        pixel_size=_parse_dimension(parts[1], DEFAULT_PIXEL_SIZE),
        canvas_width=_parse_dimension(parts[2], DEFAULT_CANVAS_WIDTH),
        canvas_height=_parse_dimension(parts[3], DEFAULT_CANVAS_HEIGHT),
        colors=_parse_colors(parts[4]),
        grid=_parse_grid(parts[5]),
    )


def _parse_pattern(tag: str) -> MatrixPattern:
    if tag == "s":
        return MatrixPattern.SQUARES
    if tag == "b":
        return MatrixPattern.BRICKS
    # "v" and anything unrecognised
    return MatrixPattern.BRICKS_VERTICAL


def _parse_dimension(raw: str, default: int) -> int:
    """Read a positive integer, substituting *default* for anything else.

    Zero is indistinguishable from a missing value and also yields the default.
    """
    match = _LEADING_INT_RE.match(raw)
    if match is None:
        return default
    value = int(match.group(1) + match.group(2))
    return value if value > 0 else default


def _parse_colors(raw: str) -> list[str]:
    if not raw:
        return []
    return [color for color in raw.split(COLOR_SEPARATOR) if color]


def _parse_grid(raw: str) -> dict[str, str]:
    grid: dict[str, str] = {}
    if not raw:
        return grid
    for entry in raw.split(ENTRY_SEPARATOR):
        key, _, color = entry.partition(KEY_COLOR_SEPARATOR)
        if key and color:
            grid[key] = color
    return grid
