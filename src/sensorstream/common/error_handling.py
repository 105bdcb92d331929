import logging
from typing import Optional


class SensorStreamError(Exception):
    """Base class for all errors raised by sensorstream."""


class InvalidConfigError(SensorStreamError, ValueError):
    """A window size, threshold or other setting is out of range."""


class InsufficientDataError(SensorStreamError):
    """An analysis was asked for before enough samples were available."""


class CapacityExceededError(SensorStreamError):
    """A bounded container is full."""

    def __init__(self, capacity: int, message: Optional[str] = None):
        self.capacity = capacity
        super().__init__(message or f"Capacity of {capacity} samples exceeded")


class DegenerateInputError(SensorStreamError):
    """Input is numerically degenerate (zero variance, singular regression)."""


class SessionStateError(SensorStreamError):
    """An operation was requested in the wrong session state."""


class SensorReadError(SensorStreamError):
    """The sensor source could not produce a sample for this tick."""


class ProtocolParseError(SensorReadError):
    """A raw line did not match any supported sensor line protocol."""

    def __init__(self, line: str, message: Optional[str] = None):
        self.line = line
        super().__init__(message or f"Unrecognised sensor line: {line!r}")


class LogWriteError(SensorStreamError):
    """The persistence layer failed to write records."""


def handle_error(logger: logging.Logger, error: Exception, context: str,
                 reraise: bool = True, log_traceback: bool = False) -> None:
    """Logs ``error`` as '<context> failed: <error>' and optionally re-raises it."""
    logger.error(f"{context} failed: {str(error)}", exc_info=log_traceback)
    if reraise:
        raise error
