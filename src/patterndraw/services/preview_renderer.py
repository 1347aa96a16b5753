"""Preview renderer -- paints a drawing document onto a PIL image.

Follows the editor's geometry: ``bricks`` shifts every odd row right by half a
cell, ``bricksVertical`` shifts every odd column down by half a cell, and
cells missing from the grid are white.  The image is scaled down (never up)
to fit ``max_size`` on its longest side.
"""

from __future__ import annotations

import io

from PIL import Image, ImageColor, ImageDraw

from patterndraw.services.drawing_document import (
    DrawingDocument,
    MatrixPattern,
    parse_cell_key,
)

WHITE = (255, 255, 255)
BORDER_COLOR = (221, 221, 221)

# Borders are drawn only above this scale and when a cell is at least
# MIN_BORDER_CELL_PX wide once scaled.
MIN_BORDER_SCALE = 0.3
MIN_BORDER_CELL_PX = 2


def _resolve_color(color: str) -> tuple[int, int, int]:
    """Parse a CSS-style color, treating anything unparseable as white."""
    try:
        return ImageColor.getrgb(color)[:3]
    except ValueError:
        return WHITE


class PreviewRenderer:
    """Renders drawing documents to PNG previews."""

    def __init__(self, max_size: int = 200) -> None:
        self.max_size = max_size

    def full_size(self, document: DrawingDocument) -> tuple[float, float]:
        """Unscaled (width, height) including the half-cell brick offset."""
        size = document.pixel_size
        width = document.canvas_width * size
        height = document.canvas_height * size
        if document.pattern is MatrixPattern.BRICKS:
            width += size / 2
        elif document.pattern is MatrixPattern.BRICKS_VERTICAL:
            height += size / 2
        return width, height

    def scale_for(self, document: DrawingDocument) -> float:
        full_width, full_height = self.full_size(document)
        return min(self.max_size / full_width, self.max_size / full_height, 1.0)

    def _cell_box(
        self, document: DrawingDocument, row: int, col: int, scale: float
    ) -> tuple[int, int, int, int]:
        size = document.pixel_size
        x = col * size
        y = row * size
        if document.pattern is MatrixPattern.BRICKS and row % 2 == 1:
            x += size / 2
        elif document.pattern is MatrixPattern.BRICKS_VERTICAL and col % 2 == 1:
            y += size / 2
        x0, y0 = round(x * scale), round(y * scale)
        x1 = max(x0, round((x + size) * scale) - 1)
        y1 = max(y0, round((y + size) * scale) - 1)
        return x0, y0, x1, y1

    def render(self, document: DrawingDocument) -> Image.Image:
        """Return an RGB image of *document*.

        Unpainted cells are only visited when borders are drawn, which keeps
        huge mostly-empty canvases cheap to preview.
        """
        full_width, full_height = self.full_size(document)
        scale = self.scale_for(document)
        image = Image.new(
            "RGB",
            (max(1, round(full_width * scale)), max(1, round(full_height * scale))),
            WHITE,
        )
        draw = ImageDraw.Draw(image)
        outline = None
        if scale > MIN_BORDER_SCALE and document.pixel_size * scale >= MIN_BORDER_CELL_PX:
            outline = BORDER_COLOR

        painted: dict[tuple[int, int], tuple[int, int, int]] = {}
        for key, color in document.grid.items():
            cell = parse_cell_key(key)
            if cell is None or not color:
                continue
            row, col = cell
            if row < document.canvas_height and col < document.canvas_width:
                painted[cell] = _resolve_color(color)

        if outline is not None:
            for row in range(document.canvas_height):
                for col in range(document.canvas_width):
                    fill = painted.get((row, col), WHITE)
                    draw.rectangle(
                        self._cell_box(document, row, col, scale),
                        fill=fill,
                        outline=outline,
                    )
        else:
            for row, col in sorted(painted):
                draw.rectangle(
                    self._cell_box(document, row, col, scale),
                    fill=painted[(row, col)],
                )

        return image

    def to_png_bytes(self, document: DrawingDocument) -> bytes:
        """Render *document* and encode it as PNG."""
        buf = io.BytesIO()
        self.render(document).save(buf, format="PNG")
        return buf.getvalue()
