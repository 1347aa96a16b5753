"""Drawing document -- the canonical in-memory representation of a drawing.

A document is what the editor paints, what the drawings API stores, and what
the share codec turns into a URL token.  Field names follow the editor's
camelCase JSON (``pixelSize``, ``canvasWidth``, ...) through aliases, so the
same model validates API bodies, stored rows, and legacy share payloads.

The pixel grid is sparse: keys are ``"<row>,<col>"`` strings and a missing
key means the cell is unpainted (white).
"""

from __future__ import annotations

import enum
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_PIXEL_SIZE = 15
DEFAULT_CANVAS_WIDTH = 20
DEFAULT_CANVAS_HEIGHT = 20

# Exact, case-sensitive spellings treated as "unpainted".
WHITE_COLORS = frozenset({"#ffffff", "#fff"})

_CELL_KEY_RE = re.compile(r"([0-9]+),([0-9]+)")


class MatrixPattern(str, enum.Enum):
    """How cells are offset when the grid is drawn."""

    SQUARES = "squares"
    BRICKS = "bricks"
    BRICKS_VERTICAL = "bricksVertical"


class DrawingDocument(BaseModel):
    pattern: MatrixPattern = MatrixPattern.SQUARES
    pixel_size: int = Field(DEFAULT_PIXEL_SIZE, alias="pixelSize", gt=0)
    canvas_width: int = Field(DEFAULT_CANVAS_WIDTH, alias="canvasWidth", gt=0)
    canvas_height: int = Field(DEFAULT_CANVAS_HEIGHT, alias="canvasHeight", gt=0)
    colors: list[str] = Field(default_factory=list)
    grid: dict[str, str] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    @field_validator("colors", mode="before")
    @classmethod
    def palette_from_mapping(cls, v: Any) -> Any:
        """Accept the editor's ``{"0": color, "1": color}`` palette shape.

        Only the value order survives; the keys are discarded.
        """
        if isinstance(v, dict):
            return list(v.values())
        return v

    def colors_by_index(self) -> dict[str, str]:
        """Return the palette keyed by stringified position (``"0"``, ``"1"``, ...)."""
        return {str(idx): color for idx, color in enumerate(self.colors)}

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, ready for JSON storage or responses."""
        return self.model_dump(mode="json", by_alias=True)


def cell_key(row: int, col: int) -> str:
    """Build the grid key for a cell."""
    return f"{row},{col}"


def parse_cell_key(key: str) -> Optional[tuple[int, int]]:
    """Parse a ``"row,col"`` grid key, returning ``None`` for any other shape."""
    match = _CELL_KEY_RE.fullmatch(key)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def is_white(color: str) -> bool:
    return color in WHITE_COLORS
