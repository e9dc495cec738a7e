"""
Jupiter Round-Trip Arbitrage Monitor.

Polls the Jupiter swap quote API for start -> middle -> start cycles on Solana
and reports the ones whose quoted profit meets a minimum threshold. Detection
only: nothing is signed or submitted.
"""

from jupiter_arbitrage.version import __version__

PROJECT_NAME = "Jupiter-Arbitrage-Monitor"
VERSION = __version__

# Export main components for easier imports
from jupiter_arbitrage.evaluator import OpportunityEvaluator
from jupiter_arbitrage.exceptions import (
    ConfigurationError,
    JupiterArbitrageError,
    NoRouteAvailable,
    ServiceError,
    TransportFailure,
    ValidationError,
)
from jupiter_arbitrage.fees import FeeCalculator
from jupiter_arbitrage.monitor import CancelSignal, MonitorLoop, MonitorState
from jupiter_arbitrage.price_monitor import PriceMonitor
from jupiter_arbitrage.quote_client import QuoteClient
from jupiter_arbitrage.types import ArbitrageOpportunity, Quote, RouteLeg, TokenInfo

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "QuoteClient",
    "FeeCalculator",
    "OpportunityEvaluator",
    "MonitorLoop",
    "MonitorState",
    "CancelSignal",
    "PriceMonitor",
    "TokenInfo",
    "RouteLeg",
    "Quote",
    "ArbitrageOpportunity",
    "JupiterArbitrageError",
    "ConfigurationError",
    "ValidationError",
    "TransportFailure",
    "ServiceError",
    "NoRouteAvailable",
]
