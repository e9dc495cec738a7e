"""
Well-known Solana token mints used as defaults by the monitor.
"""

from typing import Dict

from .types import TokenInfo
from .utils import short_address

SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"

SOL = TokenInfo(symbol="SOL", address=SOL_MINT, decimals=9)
USDC = TokenInfo(symbol="USDC", address=USDC_MINT, decimals=6)
USDT = TokenInfo(symbol="USDT", address=USDT_MINT, decimals=6)

DEFAULT_TOKENS: Dict[str, TokenInfo] = {t.symbol: t for t in (SOL, USDC, USDT)}

# Stable assets whose fees count towards the stable-currency fee total
DEFAULT_STABLE_SYMBOLS = ("USDC", "USDT")

# Decimals assumed for a fee mint that is not in the lookup
FALLBACK_FEE_DECIMALS = 6


def symbol_for_mint(mint: str, tokens: Dict[str, TokenInfo]) -> str:
    """Return the configured symbol for a mint, or a shortened address."""
    for token in tokens.values():
        if token.address == mint:
            return token.symbol
    return short_address(mint) or "?"
