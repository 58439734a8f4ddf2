import logging
import math
from dataclasses import dataclass
from typing import Optional

from radartrack.config import MODE_CENTROID
from radartrack.history import to_datetime
from radartrack.projection import PixelPoint

logger = logging.getLogger(__name__)

STATUS_SPEED = 'speed'
STATUS_STATIONARY = 'stationary'


@dataclass(frozen=True)
class SpeedResult:
    status: str
    text: str
    speed_kmh: Optional[float] = None
    distance_m: Optional[float] = None
    elapsed_s: Optional[float] = None


def format_speed(speed_kmh):
    return f'~ {speed_kmh:.1f} km/h'


def calculate_speed(vector, cell_size, time1, time2, projection, mode=MODE_CENTROID):
    """Convert a displacement in grid cells into km/h.

    The pixel offset is anchored at the projection's center and measured as a
    great-circle distance. Returns None when time2 is not after time1.
    """
    dx_pixels = vector.dx_cells * cell_size
    dy_pixels = vector.dy_cells * cell_size
    if mode == MODE_CENTROID:
        stationary = vector.dx_cells == 0 and vector.dy_cells == 0
    else:
        stationary = math.hypot(dx_pixels, dy_pixels) < 1
    if stationary:
        return SpeedResult(STATUS_STATIONARY, STATUS_STATIONARY)

    center = projection.center_point()
    p1 = projection.to_screen_point(center)
    p2 = PixelPoint(p1[0] + dx_pixels, p1[1] + dy_pixels)
    offset = projection.to_geo_coordinate(p2)
    dist_meters = projection.great_circle_distance(center, offset)

    elapsed = (to_datetime(time2) - to_datetime(time1)).total_seconds()
    if elapsed <= 0:
        logger.debug('Skipping speed: non-positive elapsed time %.3fs', elapsed)
        return None

    speed_m_s = dist_meters / elapsed
    speed_kmh = speed_m_s * 3.6
    logger.info('Calculated speed: %.1f km/h', speed_kmh)
    return SpeedResult(STATUS_SPEED, format_speed(speed_kmh), speed_kmh, dist_meters, elapsed)
