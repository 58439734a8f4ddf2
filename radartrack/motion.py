"""
Displacement estimation between two consecutive grids.

Two strategies, selected by the tracker mode:

single-color-centroid
    Look at the reference cell (viewport center). If it is active in the
    older grid, find the nearest active cell to it in the newer grid within
    a square search window.

whole-field-average
    Block-match every active cell of the older grid against the newer grid
    within a square window and average the accepted displacements.

Both scan the full square in row-major order and keep the strict minimum,
so the first cell found wins ties.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from radartrack.config import MODE_CENTROID, MODE_FIELD, TrackerConfig

logger = logging.getLogger(__name__)

STATUS_OK = 'ok'
STATUS_NO_TARGET = 'no target at reference'
STATUS_AMBIGUOUS = 'ambiguous motion'

# whole-field-average tolerances, in rank units
ACTIVE_CELL_THRESHOLD = 0.1
MAX_MATCH_ERROR = 0.5


@dataclass(frozen=True)
class DisplacementVector:
    dx_cells: float
    dy_cells: float

    @property
    def is_zero(self):
        return self.dx_cells == 0 and self.dy_cells == 0


@dataclass(frozen=True)
class MotionResult:
    status: str
    vector: Optional[DisplacementVector] = None
    vector_count: int = 0

    @property
    def ok(self):
        return self.status == STATUS_OK


def _window(center, radius, size):
    return max(0, center - radius), min(size, center + radius + 1)


def track_centroid(older, newer, reference: Tuple[int, int], radius=8) -> MotionResult:
    """Nearest active cell to `reference` (col, row) in `newer`, if the reference is active in `older`."""
    rows, cols = older.shape
    ref_x, ref_y = reference
    if rows == 0 or cols == 0 or not (0 <= ref_y < rows and 0 <= ref_x < cols):
        return MotionResult(STATUS_NO_TARGET)
    if not older[ref_y, ref_x]:
        return MotionResult(STATUS_NO_TARGET)

    y0, y1 = _window(ref_y, radius, rows)
    x0, x1 = _window(ref_x, radius, cols)
    # argwhere yields row-major order, argmin keeps the first minimum
    active = np.argwhere(np.asarray(newer[y0:y1, x0:x1], dtype=bool))
    if len(active) == 0:
        return MotionResult(STATUS_AMBIGUOUS)

    ys = active[:, 0] + y0
    xs = active[:, 1] + x0
    dist_sq = (xs - ref_x) ** 2 + (ys - ref_y) ** 2
    best = int(np.argmin(dist_sq))
    vector = DisplacementVector(float(xs[best] - ref_x), float(ys[best] - ref_y))
    return MotionResult(STATUS_OK, vector, 1)


def track_field(older, newer, radius=5, min_vectors=11) -> MotionResult:
    """Mean displacement of all active cells of `older` that find a close match in `newer`."""
    rows, cols = older.shape
    total_dx = 0
    total_dy = 0
    vector_count = 0

    for y, x in np.argwhere(older > ACTIVE_CELL_THRESHOLD):
        value = older[y, x]
        y0, y1 = _window(y, radius, rows)
        x0, x1 = _window(x, radius, cols)
        errors = np.abs(value - newer[y0:y1, x0:x1])
        best = int(np.argmin(errors))
        wy, wx = divmod(best, x1 - x0)
        if errors[wy, wx] < MAX_MATCH_ERROR:
            total_dx += int(x0 + wx - x)
            total_dy += int(y0 + wy - y)
            vector_count += 1

    if vector_count < min_vectors:
        logger.debug('Only %d vectors accepted, need %d', vector_count, min_vectors)
        return MotionResult(STATUS_AMBIGUOUS, vector_count=vector_count)
    vector = DisplacementVector(total_dx / vector_count, total_dy / vector_count)
    return MotionResult(STATUS_OK, vector, vector_count)


def estimate_motion(older, newer, config: TrackerConfig, reference=None) -> MotionResult:
    """Estimate displacement from `older` to `newer` using the strategy for config.mode."""
    if older.shape != newer.shape:
        logger.warning('Grid shape changed from %s to %s; cannot compare frames',
                       older.shape, newer.shape)
        return MotionResult(STATUS_AMBIGUOUS)
    if config.mode == MODE_CENTROID:
        if reference is None:
            rows, cols = older.shape
            reference = (cols // 2, rows // 2)
        return track_centroid(older, newer, reference, radius=config.centroid_search_radius)
    if config.mode == MODE_FIELD:
        return track_field(older, newer, radius=config.field_search_radius,
                           min_vectors=config.min_vectors)
    raise ValueError('Unsupported mode: ' + str(config.mode))
