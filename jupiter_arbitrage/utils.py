"""
Common utilities and helper functions for the arbitrage monitor.

This module provides centralized helpers for logging setup, timestamp handling
and the small string formatters shared by the reporter and the CLI scripts.
"""

import logging
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Union


# Timestamp utilities
def get_current_timestamp() -> float:
    """Get current Unix timestamp as float."""
    return time.time()


def timestamp_to_iso(timestamp: float) -> str:
    """Convert Unix timestamp to ISO 8601 string."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


# Display helpers
def format_token_amount(amount: Union[Decimal, int, float], decimals: int) -> str:
    """
    Format a human-unit token amount with exactly ``decimals`` fraction digits.

    Args:
        amount: Amount in human units
        decimals: Token decimals (number of fraction digits to show)

    Returns:
        Fixed-point string, e.g. ``format_token_amount(Decimal("1.5"), 9)``
        gives ``"1.500000000"``
    """
    value = Decimal(str(amount)) if not isinstance(amount, Decimal) else amount
    if decimals <= 0:
        return f"{value:.0f}"
    return f"{value:.{decimals}f}"


def short_address(address: str, head: int = 4, tail: int = 4) -> str:
    """Shorten a mint or account address for display (``EPjF...Dt1v``)."""
    if not address or len(address) <= head + tail + 3:
        return address or ""
    return f"{address[:head]}...{address[-tail:]}"


def format_profit(percent: Union[Decimal, float], places: int = 4) -> str:
    """Format a profit percentage with an explicit sign.

    Examples:
        >>> format_profit(Decimal("0.5"))
        '+0.5000%'
        >>> format_profit(-0.0123, places=2)
        '-0.01%'
    """
    value = float(percent)
    if value >= 0:
        return f"+{value:.{places}f}%"
    return f"{value:.{places}f}%"


# Logging utilities
def get_logger(name: str, level: Union[str, int] = logging.INFO) -> logging.Logger:
    """
    Get a structured logger with consistent formatting.

    Args:
        name: Logger name (typically __name__)
        level: Logging level

    Returns:
        Logger writing ``time | LEVEL | name:line | message`` lines
    """
    logger = logging.getLogger(name)

    if logger.level == logging.NOTSET:
        logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
