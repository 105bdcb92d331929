import math
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterator, List, Optional

import numpy as np

from ..common.error_handling import InvalidConfigError
from ..common.logging import setup_logging
from ..common.validation import validate_input
from .models import Sample, SensorKind, Timestamp

SIMULATED_PERIOD_S = 0.1


@dataclass(frozen=True)
class SensorProfile:
    """Signal model for one simulated sensor kind.

    value = base + trend_rate * t + seasonal sine + uniform noise + occasional spike
    """
    base_value: float
    noise_amplitude: float
    trend_rate: float
    seasonal_amplitude: float
    seasonal_period: float
    anomaly_probability: int  # percent per sample
    anomaly_magnitude: float

    def __post_init__(self):
        validate_input(self.noise_amplitude, 'noise_amplitude', minimum=0)
        validate_input(self.seasonal_period, 'seasonal_period', strictly_positive=True)
        validate_input(self.anomaly_probability, 'anomaly_probability', minimum=0, integer=True)
        if self.anomaly_probability > 100:
            raise InvalidConfigError(f"anomaly_probability must be <= 100, got {self.anomaly_probability}")


DEFAULT_PROFILES: Dict[SensorKind, SensorProfile] = {
    SensorKind.TEMPERATURE: SensorProfile(20.0, 2.0, 0.001, 5.0, 86400.0, 2, 15.0),       # daily cycle
    SensorKind.VIBRATION: SensorProfile(0.1, 0.05, 0.0, 0.02, 1.0, 5, 2.0),
    SensorKind.STRAIN: SensorProfile(100.0, 10.0, 0.002, 20.0, 3600.0, 3, 50.0),          # microstrain
    SensorKind.HUMIDITY: SensorProfile(50.0, 5.0, 0.001, 10.0, 43200.0, 1, 20.0),
    SensorKind.PRESSURE: SensorProfile(1013.25, 2.0, 0.0, 5.0, 21600.0, 1, 30.0),
    SensorKind.ACCELEROMETER_X: SensorProfile(0.0, 0.1, 0.0, 0.05, 0.1, 8, 5.0),
    SensorKind.ACCELEROMETER_Y: SensorProfile(0.0, 0.1, 0.0, 0.05, 0.1, 8, 5.0),
    SensorKind.ACCELEROMETER_Z: SensorProfile(9.81, 0.1, 0.0, 0.05, 0.1, 8, 2.0),         # gravity
}

SENSOR_METADATA = {
    SensorKind.TEMPERATURE: ('°C', 'Temperature'),
    SensorKind.VIBRATION: ('m/s²', 'Vibration Amplitude'),
    SensorKind.STRAIN: ('µε', 'Strain'),
    SensorKind.HUMIDITY: ('%', 'Relative Humidity'),
    SensorKind.PRESSURE: ('hPa', 'Atmospheric Pressure'),
    SensorKind.ACCELEROMETER_X: ('m/s²', 'Acceleration X'),
    SensorKind.ACCELEROMETER_Y: ('m/s²', 'Acceleration Y'),
    SensorKind.ACCELEROMETER_Z: ('m/s²', 'Acceleration Z'),
}

VALUE_LIMITS = {
    SensorKind.TEMPERATURE: (-50.0, 80.0),
    SensorKind.HUMIDITY: (0.0, 100.0),
    SensorKind.PRESSURE: (800.0, 1200.0),
}


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


class SensorSimulator:
    """Synthetic sensor source with an explicitly owned profile table.

    Every simulator instance keeps its own profiles, random generator and
    step counter; simulated time advances by 100 ms per generated sample.
    """

    def __init__(self, profiles: Optional[Dict[SensorKind, SensorProfile]] = None,
                 seed: Optional[int] = None,
                 clock: Callable[[], Timestamp] = Timestamp.now,
                 config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.profiles: Dict[SensorKind, SensorProfile] = dict(DEFAULT_PROFILES)
        if profiles:
            self.profiles.update(profiles)
        self.rng = np.random.default_rng(seed if seed is not None else self.config.get('seed'))
        self.clock = clock
        self.step = 0
        self.setup_logging()

    def setup_logging(self):
        self.logger = setup_logging('SensorSimulator', self.config.get('logging'))

    def configure(self, kind: SensorKind, profile: Optional[SensorProfile] = None, **overrides) -> SensorProfile:
        """Replaces the profile for ``kind`` or adjusts individual fields of it."""
        profile = profile or self.profiles[kind]
        if overrides:
            profile = replace(profile, **overrides)
        self.profiles[kind] = profile
        self.logger.info(f"Configured simulated {kind.display_name} sensor")
        return profile

    @property
    def elapsed_s(self) -> float:
        return self.step * SIMULATED_PERIOD_S

    def _noise(self, amplitude: float) -> float:
        return amplitude * float(self.rng.uniform(-1.0, 1.0))

    def _spike(self, profile: SensorProfile) -> float:
        if int(self.rng.integers(100)) < profile.anomaly_probability:
            sign = 1.0 if self.rng.integers(2) else -1.0
            return sign * profile.anomaly_magnitude
        return 0.0

    def generate(self, kind: SensorKind) -> Sample:
        profile = self.profiles[kind]
        t = self.elapsed_s

        value = (profile.base_value
                 + profile.trend_rate * t
                 + profile.seasonal_amplitude * math.sin(2.0 * math.pi * t / profile.seasonal_period)
                 + self._noise(profile.noise_amplitude)
                 + self._spike(profile))

        if kind in VALUE_LIMITS:
            value = clamp(value, *VALUE_LIMITS[kind])
        elif kind is SensorKind.VIBRATION:
            value = abs(value)

        unit, label = SENSOR_METADATA[kind]
        self.step += 1
        return Sample(kind=kind, value=value, timestamp=self.clock(), unit=unit, label=label)

    def bridge_vibration(self) -> Sample:
        """Vibration sample with traffic and wind loading, clamped to [0, 1] m/s²."""
        sample = self.generate(SensorKind.VIBRATION)
        t = self.elapsed_s

        traffic_frequency = 0.1 + 0.05 * math.sin(t * 0.01)
        traffic_amplitude = 0.02 + 0.01 * math.sin(t * 0.005)
        traffic = traffic_amplitude * math.sin(2.0 * math.pi * traffic_frequency * t)
        wind = 0.005 * math.sin(2.0 * math.pi * 0.02 * t)

        value = clamp(sample.value + abs(traffic + wind), 0.0, 1.0)
        return Sample(kind=sample.kind, value=value, timestamp=sample.timestamp,
                      unit=sample.unit, label='Bridge Vibration')

    def environmental_set(self) -> List[Sample]:
        """Temperature, humidity and pressure, with humidity nudged by temperature."""
        temperature = self.generate(SensorKind.TEMPERATURE)
        humidity = self.generate(SensorKind.HUMIDITY)
        pressure = self.generate(SensorKind.PRESSURE)

        if temperature.value > 25.0:
            humidity = humidity.with_value(humidity.value * 0.8)
        elif temperature.value < 10.0:
            humidity = humidity.with_value(humidity.value * 1.2)
        humidity = humidity.with_value(clamp(humidity.value, 0.0, 100.0))

        return [temperature, humidity, pressure]

    def stream(self, kind: SensorKind, limit: Optional[int] = None) -> Iterator[Sample]:
        produced = 0
        while limit is None or produced < limit:
            yield self.generate(kind)
            produced += 1

    def bridge_stream(self, limit: Optional[int] = None) -> Iterator[Sample]:
        produced = 0
        while limit is None or produced < limit:
            yield self.bridge_vibration()
            produced += 1

    def environmental_stream(self, limit: Optional[int] = None) -> Iterator[List[Sample]]:
        """One environmental set per tick."""
        produced = 0
        while limit is None or produced < limit:
            yield self.environmental_set()
            produced += 1
