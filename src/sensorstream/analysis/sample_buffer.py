from typing import Iterator, List, Optional

import numpy as np
import pandas as pd

from ..acquisition.models import Sample, SensorKind
from ..common.error_handling import CapacityExceededError, InvalidConfigError


class SampleBuffer:
    """Pre-sized batch of samples kept for end-of-session analysis.

    Capacity is ``ticks * channels_per_tick``. Appending past ``capacity``
    raises ``CapacityExceededError``; nothing is ever overwritten or dropped.
    """

    def __init__(self, ticks: int, channels_per_tick: int = 1):
        for name, value in (('ticks', ticks), ('channels_per_tick', channels_per_tick)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise InvalidConfigError(f"{name} must be a positive integer, got {value!r}")
        self.ticks = int(ticks)
        self.channels_per_tick = int(channels_per_tick)
        self.capacity = self.ticks * self.channels_per_tick
        self._samples: List[Sample] = []

    @classmethod
    def for_session(cls, duration_s: float, interval_ms: float, channels_per_tick: int = 1) -> 'SampleBuffer':
        """Sized to ``duration_s * 1000 / interval_ms`` ticks of ``channels_per_tick`` samples."""
        if duration_s <= 0 or interval_ms <= 0:
            raise InvalidConfigError(
                f"duration_s and interval_ms must be positive, got {duration_s!r} and {interval_ms!r}")
        return cls(max(1, int(duration_s * 1000 // interval_ms)), channels_per_tick)

    def widen(self, channels_per_tick: int) -> None:
        """Grows capacity when ticks carry more samples than planned."""
        if channels_per_tick > self.channels_per_tick:
            self.channels_per_tick = channels_per_tick
            self.capacity = self.ticks * channels_per_tick

    def append(self, sample: Sample) -> None:
        if len(self._samples) >= self.capacity:
            raise CapacityExceededError(self.capacity)
        self._samples.append(sample)

    def is_full(self) -> bool:
        return len(self._samples) >= self.capacity

    @property
    def remaining(self) -> int:
        return self.capacity - len(self._samples)

    def samples(self, kind: Optional[SensorKind] = None) -> List[Sample]:
        """Copy of the buffered samples, optionally restricted to one channel."""
        if kind is None:
            return list(self._samples)
        return [s for s in self._samples if s.kind is kind]

    def values(self, kind: Optional[SensorKind] = None) -> np.ndarray:
        return np.array([s.value for s in self.samples(kind)], dtype=float)

    def to_frame(self) -> pd.DataFrame:
        return samples_to_frame(self._samples)

    def __len__(self):
        return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(list(self._samples))


def samples_to_frame(samples) -> pd.DataFrame:
    """Tabular view: timestamp, sensor_kind, value, unit, label."""
    columns = ['timestamp', 'sensor_kind', 'value', 'unit', 'label']
    rows = [{
        'timestamp': s.timestamp.wall,
        'sensor_kind': s.kind.value,
        'value': s.value,
        'unit': s.unit,
        'label': s.label,
    } for s in samples]
    return pd.DataFrame(rows, columns=columns)
