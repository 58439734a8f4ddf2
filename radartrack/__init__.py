"""
radartrack: speed of precipitation from successive radar frames.

Legend image -> color table -> per-frame grid -> displacement between the
last two grids -> km/h through a map projection.
"""

from radartrack.classifier import ColorClassifier, color_distance
from radartrack.config import MODE_CENTROID, MODE_FIELD, TrackerConfig, load_config
from radartrack.errors import ImageLoadFailed, NoColorsFound, TrackerError
from radartrack.grid import rasterize_frame
from radartrack.history import FrameHistory, FrameRecord
from radartrack.imaging import DecodedImage, load_image
from radartrack.legend import ColorTable, parse_legend
from radartrack.motion import DisplacementVector, MotionResult, estimate_motion
from radartrack.projection import GeoCoordinate, PixelPoint, PlanarProjection, WebMercatorProjection
from radartrack.speed_estimation import SpeedResult, calculate_speed
from radartrack.tracker import RadarTracker, TrackingResult

__all__ = [
    'ColorClassifier', 'color_distance',
    'MODE_CENTROID', 'MODE_FIELD', 'TrackerConfig', 'load_config',
    'ImageLoadFailed', 'NoColorsFound', 'TrackerError',
    'rasterize_frame',
    'FrameHistory', 'FrameRecord',
    'DecodedImage', 'load_image',
    'ColorTable', 'parse_legend',
    'DisplacementVector', 'MotionResult', 'estimate_motion',
    'GeoCoordinate', 'PixelPoint', 'PlanarProjection', 'WebMercatorProjection',
    'SpeedResult', 'calculate_speed',
    'RadarTracker', 'TrackingResult',
]
