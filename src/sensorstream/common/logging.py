import logging
from datetime import datetime
from typing import Any, Dict, Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(name: str, config: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """Configures root logging once and returns the named component logger.

    ``config`` is the ``logging`` section of the common configuration. A
    ``log_file`` entry may contain ``{date}``, which is expanded to the
    current ``YYYYMMDD`` date (e.g. ``'orchestrator_{date}.log'``).
    """
    config = config or {}
    level = config.get('level', 'INFO')
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    basic_config: Dict[str, Any] = {
        'level': level,
        'format': config.get('format', DEFAULT_FORMAT),
    }
    log_file = config.get('log_file')
    if log_file:
        basic_config['filename'] = log_file.format(date=datetime.now().strftime("%Y%m%d"))

    # basicConfig is a no-op once the root logger has handlers
    logging.basicConfig(**basic_config)

    logger = logging.getLogger(name)
    if 'component_level' in config:
        logger.setLevel(config['component_level'])
    return logger
