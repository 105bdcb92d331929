import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .error_handling import InvalidConfigError

logger = logging.getLogger('Configuration')

PathLike = Union[str, Path]


def merge_config(defaults: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Deep-merges ``overrides`` onto a copy of ``defaults``."""
    merged = copy.deepcopy(defaults)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(path: PathLike, defaults: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Loads a YAML or JSON configuration file and merges it onto ``defaults``.

    When ``defaults`` is omitted the analysis defaults (``ANALYSIS_CONFIG``)
    are used.
    """
    if defaults is None:
        from ..analysis import ANALYSIS_CONFIG
        defaults = ANALYSIS_CONFIG

    path = Path(path)
    try:
        with path.open('r', encoding='utf-8') as fh:
            if path.suffix.lower() == '.json':
                loaded = json.load(fh)
            else:
                loaded = yaml.safe_load(fh)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        logger.error(f"Loading configuration from {path} failed: {str(e)}")
        raise InvalidConfigError(f"Cannot load configuration from {path}: {e}") from e

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise InvalidConfigError(f"Configuration in {path} must be a mapping, got {type(loaded).__name__}")

    logger.info(f"Loaded configuration from {path}")
    return merge_config(defaults, loaded)


def save_config(config: Dict[str, Any], path: PathLike) -> Path:
    """Writes ``config`` as JSON when the suffix is ``.json``, YAML otherwise."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open('w', encoding='utf-8') as fh:
        if path.suffix.lower() == '.json':
            json.dump(config, fh, indent=2)
        else:
            yaml.safe_dump(config, fh, default_flow_style=False, sort_keys=False)
    logger.info(f"Saved configuration to {path}")
    return path
