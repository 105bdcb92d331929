"""
Common Utilities
Provides shared functionality across components
"""

from .logging import setup_logging
from .validation import validate_input, validate_config
from .error_handling import (
    handle_error,
    SensorStreamError,
    InvalidConfigError,
    InsufficientDataError,
    CapacityExceededError,
    DegenerateInputError,
    SessionStateError,
    SensorReadError,
    ProtocolParseError,
    LogWriteError,
)
from .configuration import load_config, save_config, merge_config

__all__ = [
    'setup_logging',
    'validate_input',
    'validate_config',
    'handle_error',
    'SensorStreamError',
    'InvalidConfigError',
    'InsufficientDataError',
    'CapacityExceededError',
    'DegenerateInputError',
    'SessionStateError',
    'SensorReadError',
    'ProtocolParseError',
    'LogWriteError',
    'load_config',
    'save_config',
    'merge_config',
]

# Common configurations
COMMON_CONFIG = {
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'log_file': None
    }
}
