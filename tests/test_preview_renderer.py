"""Tests for PNG previews of drawing documents."""

from __future__ import annotations

import io

from PIL import Image

from patterndraw.services.drawing_document import DrawingDocument
from patterndraw.services.preview_renderer import (
    BORDER_COLOR,
    WHITE,
    PreviewRenderer,
)

BLACK = (0, 0, 0)
RED = (255, 0, 0)


def _doc(pattern="squares", size=10, width=2, height=2, grid=None) -> DrawingDocument:
    return DrawingDocument(
        pattern=pattern,
        pixel_size=size,
        canvas_width=width,
        canvas_height=height,
        grid=grid or {},
    )


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


def test_squares_image_size_and_cells():
    image = PreviewRenderer().render(_doc(grid={"0,0": "#000000"}))

    assert image.size == (20, 20)
    assert image.mode == "RGB"
    assert image.getpixel((5, 5)) == BLACK
    assert image.getpixel((0, 0)) == BORDER_COLOR
    assert image.getpixel((15, 15)) == WHITE


def test_bricks_offsets_odd_rows():
    image = PreviewRenderer().render(_doc(pattern="bricks", grid={"1,0": "#ff0000"}))

    assert image.size == (25, 20)
    assert image.getpixel((10, 15)) == RED
    # Left of the shifted brick stays background.
    assert image.getpixel((2, 15)) == WHITE


def test_bricks_vertical_offsets_odd_columns():
    image = PreviewRenderer().render(
        _doc(pattern="bricksVertical", grid={"0,1": "#ff0000"})
    )

    assert image.size == (20, 25)
    assert image.getpixel((15, 10)) == RED
    assert image.getpixel((15, 2)) == WHITE


def test_full_size_includes_half_cell_offset():
    renderer = PreviewRenderer()
    assert renderer.full_size(_doc(pattern="bricks", size=15, width=20, height=20)) == (307.5, 300)
    assert renderer.full_size(_doc(pattern="bricksVertical", size=15)) == (30, 37.5)


# ---------------------------------------------------------------------------
# Scaling
# ---------------------------------------------------------------------------


def test_large_canvas_is_scaled_down_without_borders():
    renderer = PreviewRenderer(max_size=200)
    doc = _doc(width=100, height=100, grid={"0,0": "#000000"})

    image = renderer.render(doc)

    assert renderer.scale_for(doc) == 0.2
    assert image.size == (200, 200)
    assert image.getpixel((0, 0)) == BLACK
    assert image.getpixel((1, 1)) == BLACK
    assert image.getpixel((2, 2)) == WHITE
    assert BORDER_COLOR not in {color for _, color in image.getcolors()}


def test_small_canvas_is_never_upscaled():
    renderer = PreviewRenderer(max_size=1000)
    assert renderer.scale_for(_doc()) == 1.0
    assert renderer.render(_doc()).size == (20, 20)


def test_longest_side_fits_max_size():
    image = PreviewRenderer(max_size=50).render(_doc(size=10, width=20, height=10))
    assert image.size == (50, 25)


# ---------------------------------------------------------------------------
# Robustness
# ---------------------------------------------------------------------------


def test_unparseable_color_renders_white():
    image = PreviewRenderer().render(_doc(grid={"0,0": "not-a-color"}))
    assert image.getpixel((5, 5)) == WHITE


def test_bad_and_out_of_bounds_keys_are_ignored():
    image = PreviewRenderer().render(
        _doc(grid={"5,5": "#000000", "bad": "#000000", "-1,0": "#000000"})
    )
    colors = {color for _, color in image.getcolors()}
    assert colors <= {WHITE, BORDER_COLOR}


def test_png_bytes():
    data = PreviewRenderer().to_png_bytes(_doc(grid={"1,1": "#00f"}))

    assert data.startswith(b"\x89PNG\r\n\x1a\n")
    image = Image.open(io.BytesIO(data))
    assert image.size == (20, 20)
    assert image.convert("RGB").getpixel((15, 15)) == (0, 0, 255)
