import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(component_name: str, log_level: Optional[str] = None) -> logging.Logger:
    """
    Set up logging configuration for a component.

    Args:
        component_name: Name of the component (e.g., 'server', 'davfs')
        log_level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.getenv('LOG_LEVEL', 'INFO').upper()

    level = getattr(logging, log_level, logging.INFO)

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


def attach_library_loggers(component_logger: logging.Logger, *names: str) -> None:
    """
    Route the named library loggers through the component's handlers.

    Args:
        component_logger: Logger returned by setup_logging
        names: Logger names of library packages (e.g., 'davfs', 'objectstore')
    """
    for name in names:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(component_logger.level)
        for handler in component_logger.handlers:
            if handler not in library_logger.handlers:
                library_logger.addHandler(handler)
        library_logger.propagate = False
