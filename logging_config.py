"""
Logging configuration for cleaner output.

Usage:
    import logging_config
    logging_config.setup()
"""

import logging
import sys

APP_LOGGER = "jupiter_arbitrage"


def setup(level=logging.INFO):
    """
    Configure logging for cleaner, more readable output.

    - Routes all monitor loggers through one console handler on the root logger
    - Uses shorter timestamp format (HH:MM:SS instead of full datetime)
    - Lowers HTTP client chatter to WARNING
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    # Root logger - minimal format
    root = logging.getLogger()
    root.setLevel(level)

    # Clear existing handlers
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)

    # Minimal format: time + level + message
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(message)s", datefmt="%H:%M:%S"
    )
    console.setFormatter(formatter)
    root.addHandler(console)

    # Module loggers created by get_logger carry their own handler; drop it so
    # each record is printed once, by the root handler
    for name, logger in logging.root.manager.loggerDict.items():
        if name.startswith(APP_LOGGER) and isinstance(logger, logging.Logger):
            logger.handlers.clear()
            logger.setLevel(logging.NOTSET)

    logging.getLogger(APP_LOGGER).setLevel(level)
    logging.getLogger("__main__").setLevel(level)

    # Suppress noisy loggers
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def setup_minimal():
    """Only warnings and errors."""
    setup(level=logging.WARNING)


def setup_debug():
    """
    Verbose logging for debugging.
    Shows everything including HTTP requests.
    """
    setup(level=logging.DEBUG)
    logging.getLogger("aiohttp.access").setLevel(logging.DEBUG)
    logging.getLogger("urllib3").setLevel(logging.DEBUG)
