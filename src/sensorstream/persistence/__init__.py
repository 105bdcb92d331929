"""
Persistence Components
Append-only CSV logging of accepted samples
"""

from .data_logger import DataLogger, CSV_COLUMNS, DEFAULT_LOGGER_CONFIG

__all__ = [
    'DataLogger',
    'CSV_COLUMNS',
    'DEFAULT_LOGGER_CONFIG',
]
