"""Version information for the Jupiter round-trip arbitrage monitor."""

__version__ = "0.3.0"
