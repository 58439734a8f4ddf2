import logging
from collections.abc import Mapping
from typing import Dict, Iterable, List, Tuple

from radartrack.config import SCAN_BAND, SCAN_CENTER_COLUMN
from radartrack.errors import NoColorsFound

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

# Legend pixel acceptance
MIN_LEGEND_ALPHA = 200
MAX_LEGEND_BRIGHTNESS = 700
GRAY_TOLERANCE = 10


def parse_color(value) -> RGB:
    """Parse '#rrggbb', 'rrggbb', '#rgb' or an (r, g, b) sequence."""
    if isinstance(value, str):
        s = value.strip().lstrip('#')
        if len(s) == 3:
            s = ''.join(ch * 2 for ch in s)
        if len(s) != 6:
            raise ValueError(f'Invalid color: {value!r}')
        try:
            return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)
        except ValueError:
            raise ValueError(f'Invalid color: {value!r}') from None
    r, g, b = (int(c) for c in value)
    for c in (r, g, b):
        if not 0 <= c <= 255:
            raise ValueError(f'Color component out of range: {value!r}')
    return r, g, b


def to_hex(color) -> str:
    r, g, b = parse_color(color)
    return f'#{r:02x}{g:02x}{b:02x}'


class ColorTable(Mapping):
    """Ordered, read-only mapping of legend color -> rank (1..N, scan order)."""

    def __init__(self, colors: Iterable = ()):
        self._ranks: Dict[RGB, int] = {}
        for color in colors:
            color = parse_color(color)
            if color not in self._ranks:
                self._ranks[color] = len(self._ranks) + 1

    def __getitem__(self, color):
        try:
            key = parse_color(color)
        except (TypeError, ValueError):
            raise KeyError(color) from None
        return self._ranks[key]

    def __contains__(self, color):
        try:
            return parse_color(color) in self._ranks
        except (TypeError, ValueError):
            return False

    def __iter__(self):
        return iter(self._ranks)

    def __len__(self):
        return len(self._ranks)

    def __repr__(self):
        entries = ', '.join(f'{c}:{r}' for c, r in self.to_hex_dict().items())
        return f'ColorTable({{{entries}}})'

    def to_hex_dict(self) -> Dict[str, int]:
        return {to_hex(c): r for c, r in self._ranks.items()}


def _qualifies(r, g, b, a, reject_gray):
    if a <= MIN_LEGEND_ALPHA or r + g + b >= MAX_LEGEND_BRIGHTNESS:
        return False
    if reject_gray and abs(r - g) < GRAY_TOLERANCE and abs(g - b) < GRAY_TOLERANCE:
        return False
    return True


def _scan_columns(width, scan):
    if scan == SCAN_BAND and width >= 4:
        return range(width // 4, (3 * width) // 4)
    return range(width // 2, width // 2 + 1)


def parse_legend(image, scan=SCAN_CENTER_COLUMN) -> ColorTable:
    """Build a ColorTable from a legend image.

    Scans top to bottom. 'center-column' looks at the middle column only;
    'band' looks at the middle half of the width, skips near-gray pixels and
    moves to the next row after the first new color in a row. Colors are
    ranked by the row they were first seen on.
    """
    if scan not in (SCAN_CENTER_COLUMN, SCAN_BAND):
        raise ValueError('Unsupported legend scan: ' + str(scan))
    width, height = image.width, image.height
    if width == 0 or height == 0:
        raise NoColorsFound('Legend image is empty.')

    pixels = image.pixels
    reject_gray = scan == SCAN_BAND
    columns = _scan_columns(width, scan)
    first_seen: Dict[RGB, int] = {}

    for y in range(height):
        for x in columns:
            r, g, b, a = (int(v) for v in pixels[y, x])
            if not _qualifies(r, g, b, a, reject_gray):
                continue
            color = (r, g, b)
            if color in first_seen:
                continue
            first_seen[color] = y
            break

    ordered: List[RGB] = sorted(first_seen, key=lambda c: first_seen[c])
    table = ColorTable(ordered)
    if len(table) == 0:
        logger.warning('Could not extract any colors from the legend.')
        raise NoColorsFound('No colors found in legend.')
    logger.info('Legend parsed successfully: %d colors', len(table))
    return table
