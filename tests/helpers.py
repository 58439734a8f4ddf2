"""Synthetic radar tiles and legends for the tests."""
from datetime import datetime, timedelta, timezone

import numpy as np

from radartrack.imaging import DecodedImage

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

# Twelve well separated legend colors, rank = index + 1
PALETTE = [(i * 20, 40, 255 - i * 20) for i in range(12)]


def at(seconds):
    return T0 + timedelta(seconds=seconds)


def blank(height, width):
    return np.zeros((height, width, 4), dtype=np.uint8)


def paint(pixels, x0, y0, x1, y1, color, alpha=255):
    pixels[y0:y1, x0:x1, :3] = color
    pixels[y0:y1, x0:x1, 3] = alpha
    return pixels


def frame_with_cells(cells, rows=20, cols=20, cell_size=10):
    """Image whose grid cells (row, col) are filled with the given colors."""
    pixels = blank(rows * cell_size, cols * cell_size)
    for (row, col), color in cells.items():
        paint(pixels, col * cell_size, row * cell_size,
              (col + 1) * cell_size, (row + 1) * cell_size, color)
    return DecodedImage(pixels)


def legend_image(stripes, height=100, width=20):
    """Legend with each color painted across the full width from its start row (5 rows tall)."""
    pixels = blank(height, width)
    for row, color in stripes:
        paint(pixels, 0, row, width, row + 5, color)
    return DecodedImage(pixels)


def row_of_ranks(row, first_col, palette=PALETTE):
    return {(row, first_col + i): color for i, color in enumerate(palette)}
