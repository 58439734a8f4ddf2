import json
from dataclasses import dataclass, asdict, fields, replace as dc_replace
from pathlib import Path
from typing import Any, Dict, Optional

MODE_CENTROID = 'single-color-centroid'
MODE_FIELD = 'whole-field-average'
MODES = (MODE_CENTROID, MODE_FIELD)

SCAN_CENTER_COLUMN = 'center-column'
SCAN_BAND = 'band'
LEGEND_SCANS = (SCAN_CENTER_COLUMN, SCAN_BAND)


@dataclass(frozen=True)
class TrackerConfig:
    """Options recognised by the tracker. Validated on construction."""
    cell_size: int = 10
    mode: str = MODE_FIELD
    match_tolerance: float = 100.0
    min_coverage: float = 0.1
    history_capacity: int = 10
    # None picks the scan that belongs to the mode
    legend_scan: Optional[str] = None
    centroid_search_radius: int = 8
    field_search_radius: int = 5
    min_vectors: int = 11

    def __post_init__(self):
        if not isinstance(self.cell_size, int) or self.cell_size <= 0:
            raise ValueError(f'cell_size must be a positive integer, got {self.cell_size!r}')
        if self.mode not in MODES:
            raise ValueError('Unsupported mode: ' + str(self.mode))
        if self.match_tolerance <= 0:
            raise ValueError('match_tolerance must be > 0')
        if not 0 <= self.min_coverage < 1:
            raise ValueError('min_coverage must be in [0, 1)')
        if self.history_capacity < 2:
            raise ValueError('history_capacity must be at least 2')
        if self.legend_scan is not None and self.legend_scan not in LEGEND_SCANS:
            raise ValueError('Unsupported legend_scan: ' + str(self.legend_scan))
        if self.centroid_search_radius < 0 or self.field_search_radius < 0:
            raise ValueError('search radii must be >= 0')
        if self.min_vectors < 1:
            raise ValueError('min_vectors must be >= 1')

    @property
    def effective_legend_scan(self) -> str:
        if self.legend_scan is not None:
            return self.legend_scan
        return SCAN_BAND if self.mode == MODE_CENTROID else SCAN_CENTER_COLUMN

    @property
    def coverage_threshold(self) -> float:
        """Pixel count a cell has to exceed to be active."""
        return self.min_coverage * self.cell_size * self.cell_size

    def replace(self, **changes) -> 'TrackerConfig':
        return dc_replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrackerConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError('Unknown config keys: ' + ', '.join(unknown))
        return cls(**data)


def load_config(path) -> TrackerConfig:
    """Read a TrackerConfig from a JSON file with the dataclass field names."""
    path = Path(path)
    with open(path, 'r') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f'Config file must contain a JSON object: {path}')
    return TrackerConfig.from_dict(data)
