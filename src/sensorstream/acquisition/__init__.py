"""
Acquisition Components
Sample model, synthetic sensor source and hardware line-protocol parsing
"""

from .models import Sample, SensorKind, Timestamp, make_sample
from .simulator import SensorSimulator, SensorProfile, DEFAULT_PROFILES
from .protocol import LineSource, parse_line, parse_tagged_line, parse_register_line

__all__ = [
    'Sample',
    'SensorKind',
    'Timestamp',
    'make_sample',
    'SensorSimulator',
    'SensorProfile',
    'DEFAULT_PROFILES',
    'LineSource',
    'parse_line',
    'parse_tagged_line',
    'parse_register_line',
]
