import numpy as np

from radartrack.config import MODE_CENTROID, TrackerConfig

# Pixels at or below this alpha are transparent tile background
MIN_PIXEL_ALPHA = 128


def _block_sum(values, rows, cols, cell_size):
    return values.reshape(rows, cell_size, cols, cell_size).sum(axis=(1, 3))


def rasterize_frame(image, classifier, config: TrackerConfig, target_rank=None):
    """Downsample a frame into a coarse grid of cell_size x cell_size blocks.

    In single-color-centroid mode the grid is boolean: a cell is set when more
    than min_coverage of its pixels classify as `target_rank`. In
    whole-field-average mode a cell holds the mean rank of its classified
    pixels, or 0.0 when too few pixels matched. Partial blocks at the right
    and bottom edges are dropped.
    """
    cs = config.cell_size
    rows, cols = image.height // cs, image.width // cs
    binary = config.mode == MODE_CENTROID
    if binary and target_rank is None:
        raise ValueError('target_rank is required in single-color-centroid mode')

    if rows == 0 or cols == 0:
        grid = np.zeros((rows, cols), dtype=bool if binary else np.float64)
        grid.setflags(write=False)
        return grid

    pixels = image.pixels[:rows * cs, :cols * cs]
    ranks = classifier.classify_pixels(pixels[..., :3])
    ranks[pixels[..., 3] <= MIN_PIXEL_ALPHA] = 0
    threshold = config.coverage_threshold

    if binary:
        counts = _block_sum((ranks == target_rank).astype(np.int64), rows, cols, cs)
        grid = counts > threshold
    else:
        counts = _block_sum((ranks > 0).astype(np.int64), rows, cols, cs)
        sums = _block_sum(ranks.astype(np.int64), rows, cols, cs)
        active = counts > threshold
        grid = np.zeros((rows, cols), dtype=np.float64)
        grid[active] = sums[active] / counts[active]

    grid.setflags(write=False)
    return grid


def reference_cell(width, height, cell_size, grid_shape):
    """Grid (col, row) under the viewport center, clamped into the grid."""
    rows, cols = grid_shape
    col = (width // 2) // cell_size
    row = (height // 2) // cell_size
    col = max(0, min(col, cols - 1))
    row = max(0, min(row, rows - 1))
    return col, row
