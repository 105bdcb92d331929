import math
from typing import Any, Dict, Iterable, Optional

from .error_handling import InvalidConfigError


def validate_input(value: Any, name: str, minimum: Optional[float] = None,
                   strictly_positive: bool = False, integer: bool = False) -> Any:
    """Validates a single numeric setting and returns it unchanged.

    Raises:
        InvalidConfigError: value is not numeric, not finite, or out of range.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigError(f"'{name}' must be numeric, got {value!r}")
    if integer and not float(value).is_integer():
        raise InvalidConfigError(f"'{name}' must be an integer, got {value!r}")
    if not math.isfinite(value):
        raise InvalidConfigError(f"'{name}' must be finite, got {value!r}")
    if strictly_positive and value <= 0:
        raise InvalidConfigError(f"'{name}' must be positive, got {value!r}")
    if minimum is not None and value < minimum:
        raise InvalidConfigError(f"'{name}' must be >= {minimum}, got {value!r}")
    return value


def validate_config(config: Dict[str, Any], positive_keys: Iterable[str] = (),
                    non_negative_keys: Iterable[str] = ()) -> Dict[str, Any]:
    """Checks the listed keys of a flat config section, ignoring absent keys."""
    for key in positive_keys:
        if key in config:
            validate_input(config[key], key, strictly_positive=True)
    for key in non_negative_keys:
        if key in config:
            validate_input(config[key], key, minimum=0)
    return config
