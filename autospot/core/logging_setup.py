"""Logging configuration for AutoSpot."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from autospot.core.config import Config


LOGGER_NAME = "autospot"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(config: Config, console: Optional[Console] = None) -> logging.Logger:
    """Configure the package logger from the configuration.
    
    Logs go to config.log_file when set, otherwise to a rich console
    handler on stderr. Calling it again replaces the previous handlers.
    
    Args:
        config: Loaded configuration
        console: Optional rich console for the console handler
        
    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    
    if config.log_file:
        handler = logging.FileHandler(config.log_file)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if config.debug else logging.INFO)
    logger.propagate = False
    
    return logger
