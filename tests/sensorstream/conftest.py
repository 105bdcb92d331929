import pytest
import numpy as np
from datetime import datetime, timedelta
from typing import Any, Dict, List
import os
import sys

# Ensure tests can import from the repo's src/ directory (e.g., `from sensorstream...`).
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../src')))

from sensorstream.acquisition.models import Sample, SensorKind, Timestamp

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


def make_timestamp(index: int, interval_ms: float = 100.0) -> Timestamp:
    return Timestamp(monotonic_s=index * interval_ms / 1000.0,
                     wall=BASE_TIME + timedelta(milliseconds=index * interval_ms))


def build_samples(values, kind: SensorKind = SensorKind.VIBRATION, unit: str = 'm/s²',
                  label: str = 'Test', interval_ms: float = 100.0, start: int = 0) -> List[Sample]:
    return [Sample(kind=kind, value=v, timestamp=make_timestamp(start + i, interval_ms), unit=unit, label=label)
            for i, v in enumerate(values)]


@pytest.fixture
def sample_factory():
    """Builds Samples with deterministic 100 ms spaced timestamps."""
    return build_samples


@pytest.fixture
def vibration_values() -> np.ndarray:
    """Low-amplitude bridge vibration: 1 Hz cosine on a 0.1 m/s² floor, 10 s at 10 Hz."""
    t = np.arange(100) * 0.1
    return 0.1 + 0.02 * np.cos(2 * np.pi * 1.0 * t)


@pytest.fixture
def analysis_config() -> Dict[str, Any]:
    return {
        'anomaly': {
            'threshold_multiplier': 3.0,
            'absolute_threshold': 1.0,
            'window_size': 50,
            'min_samples_for_analysis': 20
        },
        'moving_average': {'window_size': 5, 'channels': ['vibration']},
        'trend': {'window_size': 10},
        'session': {'duration_s': 10, 'interval_ms': 100, 'primary_channel': 'vibration'},
    }


class RecordingSink:
    """Persistence stand-in that keeps every logged sample."""
    def __init__(self, fail_on: int = -1):
        self.records = []
        self.fail_on = fail_on

    def log(self, sample):
        if len(self.records) == self.fail_on:
            self.fail_on = -1
            raise OSError("disk full")
        self.records.append(sample.to_record())


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    """Sink whose third write fails once."""
    return RecordingSink(fail_on=2)
