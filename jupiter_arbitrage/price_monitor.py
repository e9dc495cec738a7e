"""
Single-direction price sampling (e.g. 1 SOL -> USDC) for the price mode.

Each sample is one quote turned into a human-unit price and compared with the
previous sample. Samples are kept in a bounded rolling window for display
only. A PriceMonitor is itself the probe that MonitorLoop drives.
"""

from collections import deque
from decimal import Decimal
from typing import Callable, Deque, List, Optional

from .exceptions import ValidationError
from .monitor import DEFAULT_HISTORY_SIZE
from .opportunity_math import exchange_rate, price_change_percent, to_decimal
from .quote_client import DEFAULT_SLIPPAGE_BPS
from .types import PricePoint, TokenInfo
from .utils import format_profit, get_current_timestamp, get_logger

logger = get_logger(__name__)


class PriceMonitor:
    def __init__(
        self,
        quote_client,
        input_token: TokenInfo,
        output_token: TokenInfo,
        amount=1,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        max_attempts: Optional[int] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
        metrics=None,
        clock: Callable[[], float] = get_current_timestamp,
    ):
        try:
            amount_dec = to_decimal(amount)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        self.amount_native = input_token.to_native(amount_dec)
        if self.amount_native <= 0:
            raise ValidationError(f"amount must be positive: {amount}")
        if history_size < 1:
            raise ValidationError(f"history_size must be at least 1: {history_size}")

        self.quote_client = quote_client
        self.input_token = input_token
        self.output_token = output_token
        self.slippage_bps = slippage_bps
        self.max_attempts = max_attempts
        self.metrics = metrics
        self.clock = clock
        self._history: Deque[PricePoint] = deque(maxlen=history_size)

    @property
    def pair(self) -> str:
        return f"{self.input_token.symbol}/{self.output_token.symbol}"

    @property
    def history(self) -> List[PricePoint]:
        """Samples oldest first."""
        return list(self._history)

    @property
    def latest(self) -> Optional[PricePoint]:
        return self._history[-1] if self._history else None

    async def __call__(self) -> Optional[PricePoint]:
        return await self.sample()

    async def sample(self) -> Optional[PricePoint]:
        """Fetch one quote and record the resulting price; None if no quote."""
        quote = await self.quote_client.fetch_quote(
            self.input_token.address,
            self.output_token.address,
            self.amount_native,
            slippage_bps=self.slippage_bps,
            max_attempts=self.max_attempts,
        )
        if quote is None:
            logger.info(f"{self.pair}: no quote this round")
            return None

        price = exchange_rate(
            self.amount_native,
            quote.out_amount,
            self.input_token.decimals,
            self.output_token.decimals,
        )
        change: Optional[Decimal] = None
        previous = self.latest
        if previous is not None and previous.price != 0:
            change = price_change_percent(previous.price, price)

        point = PricePoint(
            timestamp=self.clock(),
            price=price,
            in_amount_native=self.amount_native,
            out_amount_native=quote.out_amount,
            quote=quote,
            change_percent=change,
        )
        self._history.append(point)

        if change is None:
            logger.info(f"{self.pair}: {price:.6f}")
        else:
            logger.info(f"{self.pair}: {price:.6f} ({format_profit(change)})")
        if self.metrics is not None:
            self.metrics.set_price(self.pair, float(price))
        return point
