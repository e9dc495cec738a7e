"""
Route fee aggregation.

Each leg of a route plan may report a fee amount in native units together with
the mint it is denominated in. Only fees in a recognised stable asset are added
to the stable-currency total; fees in any other asset (the base asset included)
are not priced and are left out of that total. ``fees_by_mint`` keeps every fee,
per mint, for display.
"""

from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional

from .opportunity_math import parse_native_amount, to_human
from .tokens import FALLBACK_FEE_DECIMALS
from .types import Quote, RouteLeg, TokenInfo
from .utils import get_logger

logger = get_logger(__name__)


class FeeCalculator:
    """
    Converts route-leg fees to human units and sums the stable-asset ones.

    Args:
        decimals_by_mint: Mint address -> decimals lookup
        stable_mints: Mint addresses whose fees count towards the stable total
        default_decimals: Decimals used for a fee mint missing from the lookup
    """

    def __init__(
        self,
        decimals_by_mint: Mapping[str, int],
        stable_mints: Iterable[str],
        default_decimals: int = FALLBACK_FEE_DECIMALS,
    ):
        self.decimals_by_mint: Dict[str, int] = dict(decimals_by_mint)
        self.stable_mints = frozenset(stable_mints)
        self.default_decimals = default_decimals

    @classmethod
    def from_tokens(
        cls, tokens: Iterable[TokenInfo], stable_symbols: Iterable[str]
    ) -> "FeeCalculator":
        """Build a calculator from token definitions and the stable symbol set."""
        tokens = list(tokens)
        stable = set(stable_symbols)
        return cls(
            decimals_by_mint={t.address: t.decimals for t in tokens},
            stable_mints=[t.address for t in tokens if t.symbol in stable],
        )

    def decimals_for(self, mint: str) -> int:
        return self.decimals_by_mint.get(mint, self.default_decimals)

    def is_stable(self, mint: Optional[str]) -> bool:
        return mint in self.stable_mints

    def fee_in_human(self, leg: RouteLeg) -> Optional[Decimal]:
        """
        Fee of one leg in human units of its fee mint.

        Returns:
            None when the leg reports no fee, no fee mint, or a fee amount that
            is not an integer string
        """
        if not leg.has_fee:
            return None
        fee_native = parse_native_amount(leg.fee_amount_native)
        if fee_native is None:
            logger.debug(
                f"Ignoring malformed fee amount {leg.fee_amount_native!r} on {leg.label}"
            )
            return None
        return to_human(fee_native, self.decimals_for(leg.fee_mint))

    def aggregate_fees(self, quote: Quote) -> Decimal:
        """Total route fees denominated in stable assets, in human units."""
        total = Decimal(0)
        for leg in quote.route:
            if not self.is_stable(leg.fee_mint):
                continue
            fee = self.fee_in_human(leg)
            if fee is not None:
                total += fee
        return total

    def fees_by_mint(self, quote: Quote) -> Dict[str, Decimal]:
        """Every reported fee, summed per fee mint, in human units."""
        totals: Dict[str, Decimal] = {}
        for leg in quote.route:
            fee = self.fee_in_human(leg)
            if fee is None:
                continue
            totals[leg.fee_mint] = totals.get(leg.fee_mint, Decimal(0)) + fee
        return totals
