"""
Logging configuration for the library panels service.

One format for every entrypoint: ``[time] [COMPONENT] LEVEL - message`` on
stdout, optionally mirrored to a file.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    component_name: str,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Configure the root logger for a component.

    Args:
        component_name: Component identifier (e.g., 'librarypanels')
        level: Logging level as int or name ('DEBUG', 'INFO', ...)
        log_file: Optional file path for log output
        format_string: Custom format string (default provided)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if format_string is None:
        format_string = f'[%(asctime)s] [{component_name.upper()}] %(levelname)s - %(message)s'

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    # force=True so a reload under uvicorn does not stack handlers
    logging.basicConfig(level=level, format=format_string, datefmt=DATE_FORMAT, handlers=handlers, force=True)

    logger = logging.getLogger(component_name)
    logger.info("%s logging initialized (level=%s)", component_name.upper(), logging.getLevelName(level))
    return logger
