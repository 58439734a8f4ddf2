import math
from typing import NamedTuple

EARTH_RADIUS_M = 6371000.0
MAX_LATITUDE = 85.0511287798


class GeoCoordinate(NamedTuple):
    lat: float
    lng: float


class PixelPoint(NamedTuple):
    x: float
    y: float


def haversine_distance(a, b):
    """Great-circle distance in meters between two GeoCoordinates."""
    lat1, lat2 = math.radians(a[0]), math.radians(b[0])
    dlat = lat2 - lat1
    dlng = math.radians(b[1] - a[1])
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


class WebMercatorProjection:
    """Pixel <-> lat/lng for a slippy-map viewport.

    Screen points are relative to the top-left corner of a width x height
    viewport centered on `center` at `zoom`, with the same math as Leaflet's
    latLngToContainerPoint / containerPointToLatLng.
    """

    def __init__(self, center, zoom, width, height, tile_size=256):
        if width <= 0 or height <= 0:
            raise ValueError('Viewport width and height must be positive.')
        self.center = GeoCoordinate(float(center[0]), float(center[1]))
        self.zoom = float(zoom)
        self.width = width
        self.height = height
        self.tile_size = tile_size

    @property
    def _scale(self):
        return self.tile_size * 2 ** self.zoom

    def _project(self, geo):
        lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, geo[0]))
        sin_lat = math.sin(math.radians(lat))
        x = (geo[1] + 180.0) / 360.0
        y = 0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)
        return x * self._scale, y * self._scale

    def _unproject(self, x, y):
        lng = x / self._scale * 360.0 - 180.0
        n = math.pi - 2 * math.pi * y / self._scale
        lat = math.degrees(math.atan(math.sinh(n)))
        return GeoCoordinate(lat, lng)

    def _origin(self):
        cx, cy = self._project(self.center)
        return cx - self.width / 2.0, cy - self.height / 2.0

    def center_point(self):
        return self.center

    def to_screen_point(self, geo):
        ox, oy = self._origin()
        x, y = self._project(geo)
        return PixelPoint(x - ox, y - oy)

    def to_geo_coordinate(self, point):
        ox, oy = self._origin()
        return self._unproject(point[0] + ox, point[1] + oy)

    def great_circle_distance(self, a, b):
        return haversine_distance(a, b)


class PlanarProjection:
    """Flat calibration with a fixed meters_per_pixel.

    The "geo" coordinates are meters (east, south) from the top-left corner
    of the viewport, so distance is plain Euclidean.
    """

    def __init__(self, meters_per_pixel, width, height):
        if meters_per_pixel <= 0:
            raise ValueError('meters_per_pixel must be positive.')
        self.meters_per_pixel = float(meters_per_pixel)
        self.width = width
        self.height = height

    def center_point(self):
        return self.to_geo_coordinate(PixelPoint(self.width / 2.0, self.height / 2.0))

    def to_screen_point(self, geo):
        return PixelPoint(geo[1] / self.meters_per_pixel, geo[0] / self.meters_per_pixel)

    def to_geo_coordinate(self, point):
        # lat carries the southward offset, lng the eastward one
        return GeoCoordinate(point[1] * self.meters_per_pixel, point[0] * self.meters_per_pixel)

    def great_circle_distance(self, a, b):
        return math.hypot(b[0] - a[0], b[1] - a[1])
