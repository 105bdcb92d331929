import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from ..common.error_handling import InvalidConfigError

MAX_UNIT_LENGTH = 16
MAX_LABEL_LENGTH = 64
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S.%f'


class SensorKind(Enum):
    TEMPERATURE = 'temperature'
    VIBRATION = 'vibration'
    STRAIN = 'strain'
    HUMIDITY = 'humidity'
    PRESSURE = 'pressure'
    ACCELEROMETER_X = 'accelerometer_x'
    ACCELEROMETER_Y = 'accelerometer_y'
    ACCELEROMETER_Z = 'accelerometer_z'

    @property
    def display_name(self) -> str:
        """Name written to the Sensor_Type column of the CSV log."""
        return _DISPLAY_NAMES[self]

    @property
    def tag(self) -> str:
        """Tag used by the ``SENSOR:<TAG>:...`` line protocol."""
        return _PROTOCOL_TAGS[self]

    @classmethod
    def from_tag(cls, tag: str) -> 'SensorKind':
        for kind, kind_tag in _PROTOCOL_TAGS.items():
            if kind_tag == tag:
                return kind
        raise KeyError(tag)


_DISPLAY_NAMES = {
    SensorKind.TEMPERATURE: 'Temperature',
    SensorKind.VIBRATION: 'Vibration',
    SensorKind.STRAIN: 'Strain',
    SensorKind.HUMIDITY: 'Humidity',
    SensorKind.PRESSURE: 'Pressure',
    SensorKind.ACCELEROMETER_X: 'Accel_X',
    SensorKind.ACCELEROMETER_Y: 'Accel_Y',
    SensorKind.ACCELEROMETER_Z: 'Accel_Z',
}

_PROTOCOL_TAGS = {
    SensorKind.TEMPERATURE: 'TEMP',
    SensorKind.VIBRATION: 'VIB',
    SensorKind.STRAIN: 'STRAIN',
    SensorKind.HUMIDITY: 'HUM',
    SensorKind.PRESSURE: 'PRESS',
    SensorKind.ACCELEROMETER_X: 'ACCEL_X',
    SensorKind.ACCELEROMETER_Y: 'ACCEL_Y',
    SensorKind.ACCELEROMETER_Z: 'ACCEL_Z',
}


@dataclass(frozen=True)
class Timestamp:
    """Monotonic seconds for interval arithmetic plus wall-clock time for records."""
    monotonic_s: float
    wall: datetime

    @classmethod
    def now(cls) -> 'Timestamp':
        return cls(monotonic_s=time.monotonic(), wall=datetime.now())

    def elapsed_ms(self, later: 'Timestamp') -> float:
        return (later.monotonic_s - self.monotonic_s) * 1000.0

    def format(self) -> str:
        return self.wall.strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class Sample:
    """One scalar reading. Never mutated after creation."""
    kind: SensorKind
    value: float
    timestamp: Timestamp = field(default_factory=Timestamp.now)
    unit: str = ''
    label: str = ''

    def __post_init__(self):
        if len(self.unit) > MAX_UNIT_LENGTH:
            raise InvalidConfigError(f"Unit '{self.unit}' exceeds {MAX_UNIT_LENGTH} characters")
        if len(self.label) > MAX_LABEL_LENGTH:
            raise InvalidConfigError(f"Label '{self.label}' exceeds {MAX_LABEL_LENGTH} characters")
        object.__setattr__(self, 'value', float(self.value))

    def with_value(self, value: float) -> 'Sample':
        return Sample(self.kind, value, self.timestamp, self.unit, self.label)

    def to_record(self) -> Tuple[str, str, float, str, str]:
        """(timestamp, sensor_kind, value, unit, label) tuple for persistence."""
        return (self.timestamp.format(), self.kind.display_name, self.value, self.unit, self.label)


def make_sample(kind: SensorKind, value: float, unit: str = '', label: str = '',
                timestamp: Optional[Timestamp] = None) -> Sample:
    return Sample(kind=kind, value=value, timestamp=timestamp or Timestamp.now(), unit=unit, label=label)
