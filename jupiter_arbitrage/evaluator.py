"""
Two-leg round-trip evaluation: start -> middle -> start.

The evaluator fetches the two legs sequentially, works out the profit on
native integers, sums stable-asset route fees and keeps only cycles whose
profit percent meets the minimum (inclusive). A cycle that falls short is
logged and produces no record.
"""

from decimal import Decimal
from typing import Callable, Optional, Union

from .exceptions import ValidationError
from .fees import FeeCalculator
from .opportunity_math import compute_cycle_profit, meets_threshold, to_decimal
from .quote_client import DEFAULT_SLIPPAGE_BPS
from .types import ArbitrageOpportunity, Quote, TokenInfo
from .utils import format_profit, get_current_timestamp, get_logger

logger = get_logger(__name__)

Amount = Union[Decimal, int, float, str]


class OpportunityEvaluator:
    """
    Evaluates start -> middle -> start cycles for profit.

    Args:
        quote_client: Object exposing ``fetch_quote`` (normally a QuoteClient)
        fee_calculator: Aggregates route fees of each leg
        slippage_bps: Slippage tolerance used for both legs
        max_attempts: Attempts per leg; None uses the quote client's default
        metrics: Optional MonitorMetrics
        clock: Returns the detection timestamp
    """

    def __init__(
        self,
        quote_client,
        fee_calculator: FeeCalculator,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        max_attempts: Optional[int] = None,
        metrics=None,
        clock: Callable[[], float] = get_current_timestamp,
    ):
        self.quote_client = quote_client
        self.fee_calculator = fee_calculator
        self.slippage_bps = slippage_bps
        self.max_attempts = max_attempts
        self.metrics = metrics
        self.clock = clock

    async def evaluate_cycle(
        self,
        start_token: TokenInfo,
        middle_token: TokenInfo,
        start_amount: Amount,
        min_profit_percent: Amount,
    ) -> Optional[ArbitrageOpportunity]:
        """
        Evaluate one round trip.

        Args:
            start_token: Token the cycle starts and ends in
            middle_token: Token held between the legs
            start_amount: Positive trade size in human units of start_token
            min_profit_percent: Non-negative minimum profit, in percent

        Returns:
            ArbitrageOpportunity if the profit meets the minimum, otherwise None
            (including when either leg has no quote)

        Raises:
            ValidationError: If an input violates its precondition; raised
                before any quote is requested
        """
        start_native, min_profit = self._validate(
            start_token, middle_token, start_amount, min_profit_percent
        )
        cycle = f"{start_token.symbol} -> {middle_token.symbol} -> {start_token.symbol}"

        first = await self._fetch_leg(start_token, middle_token, start_native)
        middle_native = _output_amount(first)
        if middle_native is None:
            logger.info(f"{cycle}: no quote for leg 1, skipping cycle")
            self._record("no_quote")
            return None

        second = await self._fetch_leg(middle_token, start_token, middle_native)
        final_native = second.out_amount if second is not None else None
        if final_native is None:
            logger.info(f"{cycle}: no quote for leg 2, skipping cycle")
            self._record("no_quote")
            return None

        profit = compute_cycle_profit(start_native, final_native)
        total_fees = self.fee_calculator.aggregate_fees(
            first
        ) + self.fee_calculator.aggregate_fees(second)

        logger.debug(
            f"{cycle} venues: leg 1 {first.venue_distribution()}, "
            f"leg 2 {second.venue_distribution()}"
        )

        if not meets_threshold(profit.profit_percent, min_profit):
            logger.info(
                f"{cycle}: {profit.format_log(start_token.decimals, start_token.symbol)} "
                f"below {min_profit}% threshold"
            )
            self._record("below_threshold", profit.profit_percent)
            return None

        opportunity = ArbitrageOpportunity(
            start_token=start_token,
            middle_token=middle_token,
            start_amount_native=start_native,
            middle_amount_native=middle_native,
            final_amount_native=final_native,
            profit_amount_native=profit.profit_amount_native,
            profit_percent=profit.profit_percent,
            total_fees_stable=total_fees,
            first_quote=first,
            second_quote=second,
            detected_at=self.clock(),
        )
        logger.info(
            f"Opportunity {cycle}: {format_profit(profit.profit_percent)} "
            f"(fees {total_fees} stable)"
        )
        self._record("opportunity", profit.profit_percent)
        return opportunity

    async def _fetch_leg(
        self, sell: TokenInfo, buy: TokenInfo, amount_native: int
    ) -> Optional[Quote]:
        return await self.quote_client.fetch_quote(
            sell.address,
            buy.address,
            amount_native,
            slippage_bps=self.slippage_bps,
            max_attempts=self.max_attempts,
        )

    @staticmethod
    def _validate(start_token, middle_token, start_amount, min_profit_percent):
        if start_token.address == middle_token.address:
            raise ValidationError(
                f"start and middle token must differ: {start_token.symbol}"
            )
        try:
            amount = to_decimal(start_amount)
            min_profit = to_decimal(min_profit_percent)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if amount <= 0:
            raise ValidationError(f"start_amount must be positive: {start_amount}")
        if min_profit < 0:
            raise ValidationError(
                f"min_profit_percent must be non-negative: {min_profit_percent}"
            )
        start_native = start_token.to_native(amount)
        if start_native <= 0:
            raise ValidationError(
                f"start_amount {start_amount} is below one native unit of "
                f"{start_token.symbol}"
            )
        return start_native, min_profit

    def _record(self, outcome: str, profit_percent: Optional[Decimal] = None) -> None:
        if self.metrics is not None:
            self.metrics.record_cycle_result(outcome, profit_percent)


def _output_amount(quote: Optional[Quote]) -> Optional[int]:
    """Output amount usable as the next input; a zero output cannot be re-quoted."""
    if quote is None:
        return None
    amount = quote.out_amount
    if amount is None or amount <= 0:
        return None
    return amount
