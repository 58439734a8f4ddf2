from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List

import numpy as np


def to_datetime(value) -> datetime:
    """Normalise an ISO-8601 string, datetime or epoch seconds to an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        s = value.strip()
        if s.endswith(('Z', 'z')):
            s = s[:-1] + '+00:00'
        dt = datetime.fromisoformat(s)
    else:
        raise TypeError(f'Unsupported timestamp: {value!r}')
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class FrameRecord:
    timestamp: datetime
    grid: np.ndarray


class FrameHistory:
    """Rolling buffer of recent frames; the oldest record is dropped at capacity."""

    def __init__(self, capacity=10):
        if capacity < 1:
            raise ValueError('capacity must be >= 1')
        self._records = deque(maxlen=capacity)

    @property
    def capacity(self):
        return self._records.maxlen

    def append(self, record: FrameRecord):
        self._records.append(record)

    def latest(self, n=2) -> List[FrameRecord]:
        """Up to n newest records, oldest first."""
        if n <= 0:
            return []
        return list(self._records)[-n:]

    @property
    def last(self):
        return self._records[-1] if self._records else None

    def clear(self):
        self._records.clear()

    def resize(self, capacity):
        if capacity < 1:
            raise ValueError('capacity must be >= 1')
        self._records = deque(self._records, maxlen=capacity)

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self._records)
