import math
from typing import Optional

import numpy as np

from radartrack.legend import ColorTable, parse_color


def color_distance(rgb1, rgb2):
    """Euclidean distance between two RGB colors."""
    return math.sqrt(sum((int(a) - int(b)) ** 2 for a, b in zip(rgb1[:3], rgb2[:3])))


class ColorClassifier:
    """Nearest-legend-color lookup with a rejection threshold.

    Pixels further than `tolerance` from every legend color (map features,
    base layer) classify as None / 0.
    """

    def __init__(self, table: ColorTable, tolerance: float = 100.0):
        self.table = table
        self.tolerance = float(tolerance)
        self._colors = np.array(list(table.keys()), dtype=np.float64).reshape(-1, 3)
        self._ranks = np.array(list(table.values()), dtype=np.int32)

    @classmethod
    def for_color(cls, color, tolerance: float = 100.0) -> 'ColorClassifier':
        return cls(ColorTable([parse_color(color)]), tolerance)

    def __len__(self):
        return len(self.table)

    def classify(self, pixel) -> Optional[int]:
        if len(self.table) == 0:
            return None
        min_distance = math.inf
        closest_rank = None
        for color, rank in self.table.items():
            distance = color_distance(pixel, color)
            if distance < min_distance:
                min_distance = distance
                closest_rank = rank
        return closest_rank if min_distance < self.tolerance else None

    def classify_pixels(self, rgb) -> np.ndarray:
        """Rank per pixel for an (..., 3) array; 0 where no legend color is close enough."""
        rgb = np.asarray(rgb)
        shape = rgb.shape[:-1]
        if len(self.table) == 0:
            return np.zeros(shape, dtype=np.int32)
        pixels = rgb[..., :3].astype(np.float64)
        best = np.full(shape, np.inf)
        ranks = np.zeros(shape, dtype=np.int32)
        for color, rank in zip(self._colors, self._ranks):
            d = np.sqrt(np.sum((pixels - color) ** 2, axis=-1))
            closer = d < best
            best[closer] = d[closer]
            ranks[closer] = rank
        ranks[~(best < self.tolerance)] = 0
        return ranks
