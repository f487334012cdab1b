import logging
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    component_name: str = 'droplite',
    log_level: Optional[str] = None,
) -> logging.Logger:
    """
    Set up logging for the service's logger hierarchy.

    Args:
        component_name: Root logger name; module loggers below it inherit the handler
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to INFO

    Returns:
        Configured logger instance
    """
    level = getattr(logging, (log_level or 'INFO').upper(), logging.INFO)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    logger.addHandler(handler)
    logger.propagate = False

    return logger
