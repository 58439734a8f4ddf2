import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from radartrack.classifier import ColorClassifier
from radartrack.config import MODE_CENTROID, TrackerConfig
from radartrack.errors import NoColorsFound
from radartrack.grid import rasterize_frame, reference_cell
from radartrack.history import FrameHistory, FrameRecord, to_datetime
from radartrack.imaging import DecodedImage, load_image
from radartrack.legend import ColorTable, parse_color, parse_legend
from radartrack.motion import MotionResult, estimate_motion
from radartrack.speed_estimation import SpeedResult, calculate_speed

logger = logging.getLogger(__name__)

PLACEHOLDER = '--'

# Changing these invalidates grids already in the history
_GRID_FIELDS = ('mode', 'cell_size', 'legend_scan', 'min_coverage', 'match_tolerance')


@dataclass(frozen=True)
class TrackingResult:
    timestamp: datetime
    grid: np.ndarray
    motion: MotionResult
    speed: Optional[SpeedResult]
    text: str


class RadarTracker:
    """Tracks precipitation movement across successive radar frames.

    Owns the legend color table, the selected target color and a short
    history of rasterized frames. Each analyzed frame is compared with the
    previous one and the outcome is written to `sink` as a status string.
    Not thread safe: feed frames one at a time.
    """

    def __init__(self, projection, config: Optional[TrackerConfig] = None,
                 sink: Optional[Callable[[str], None]] = None, loader=load_image, enabled=True):
        self.projection = projection
        self.config = config or TrackerConfig()
        self.sink = sink
        self.loader = loader
        self.is_enabled = enabled
        self.color_table = ColorTable()
        self.target_color = None
        self.history = FrameHistory(self.config.history_capacity)
        self.results = PLACEHOLDER
        self._classifier = None
        self._rebuild_classifier()

    def _report(self, text):
        self.results = text
        if self.sink is not None:
            self.sink(text)

    def _rebuild_classifier(self):
        tolerance = self.config.match_tolerance
        # Without a legend only single-color tracking can run, on the target alone
        if (len(self.color_table) == 0 and self.target_color is not None
                and self.config.mode == MODE_CENTROID):
            self._classifier = ColorClassifier.for_color(self.target_color, tolerance)
        else:
            self._classifier = ColorClassifier(self.color_table, tolerance)

    def _target_rank(self):
        if self.target_color is None:
            return None
        return self._classifier.table.get(self.target_color)

    @property
    def ready(self):
        if len(self._classifier) == 0:
            return False
        if self.config.mode == MODE_CENTROID:
            return self._target_rank() is not None
        return True

    def clear_history(self):
        self.history.clear()

    def set_analysis_enabled(self, enabled):
        self.is_enabled = bool(enabled)
        if self.is_enabled:
            logger.info('Image analysis enabled.')
        else:
            logger.info('Image analysis disabled.')
            self.clear_history()
            self._report(PLACEHOLDER)

    def set_legend(self, table: ColorTable):
        self.color_table = table
        self._rebuild_classifier()
        self.clear_history()

    def parse_legend(self, source) -> ColorTable:
        """Load and scan a legend image, replacing the current color table.

        ImageLoadFailed leaves the previous table in place; NoColorsFound
        leaves the table empty. Both are re-raised.
        """
        logger.info('Parsing legend from: %s', source)
        image = self.loader(source) if not isinstance(source, DecodedImage) else source
        try:
            table = parse_legend(image, scan=self.config.effective_legend_scan)
        except NoColorsFound:
            self.set_legend(ColorTable())
            raise
        self.set_legend(table)
        return table

    def set_target_color(self, color):
        self.target_color = parse_color(color) if color is not None else None
        self._rebuild_classifier()
        if self.target_color is not None and self._target_rank() is None:
            logger.warning('Target color %s is not in the legend; frames will be skipped',
                           color)
        self.clear_history()

    def set_mode(self, mode):
        self.update_config(mode=mode)

    def update_config(self, **changes):
        old = self.config
        self.config = old.replace(**changes)
        if self.config.history_capacity != old.history_capacity:
            self.history.resize(self.config.history_capacity)
        if (self.config.match_tolerance != old.match_tolerance
                or self.config.mode != old.mode):
            self._rebuild_classifier()
        if any(getattr(old, f) != getattr(self.config, f) for f in _GRID_FIELDS):
            self.clear_history()
        return self.config

    def analyze_source(self, source, timestamp):
        """Load a frame with the configured loader, then analyze it."""
        image = self.loader(source)
        return self.analyze_frame(image, timestamp)

    def analyze_frame(self, image: DecodedImage, timestamp) -> Optional[TrackingResult]:
        if not self.is_enabled or not self.ready:
            logger.debug('Frame %s skipped: analysis disabled or no legend/target', timestamp)
            return None

        ts = to_datetime(timestamp)
        grid = rasterize_frame(image, self._classifier, self.config, self._target_rank())
        self.history.append(FrameRecord(ts, grid))
        recent = self.history.latest(2)
        if len(recent) < 2 or recent[0].timestamp == ts:
            return None
        previous = recent[0]

        reference = None
        if self.config.mode == MODE_CENTROID:
            reference = reference_cell(image.width, image.height, self.config.cell_size, grid.shape)
        motion = estimate_motion(previous.grid, grid, self.config, reference=reference)
        if not motion.ok:
            self._report(motion.status)
            return TrackingResult(ts, grid, motion, None, motion.status)

        speed = calculate_speed(motion.vector, self.config.cell_size, previous.timestamp, ts,
                                self.projection, mode=self.config.mode)
        if speed is None:
            return None
        self._report(speed.text)
        return TrackingResult(ts, grid, motion, speed, speed.text)
