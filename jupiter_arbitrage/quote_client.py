"""
Quote retrieval from the Jupiter swap quote API with fixed-delay retries.

A single attempt either returns a usable Quote or raises one of the
QuoteAttemptError subclasses. ``fetch_quote`` drives attempts as a small state
machine (attempting -> success | retrying -> attempting | exhausted) and turns
exhaustion into ``None``: no tradable route is currently available.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from .exceptions import (
    NoRouteAvailable,
    QuoteAttemptError,
    ServiceError,
    TransportFailure,
    ValidationError,
)
from .types import Quote
from .utils import get_logger, short_address

logger = get_logger(__name__)

DEFAULT_QUOTE_API_URL = "https://quote-api.jup.ag/v6/quote"
DEFAULT_SLIPPAGE_BPS = 50
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY_SEC = 1.0
DEFAULT_REQUEST_TIMEOUT_SEC = 10.0

SleepFn = Callable[[float], Awaitable[Any]]


class QuoteClient:
    """
    Async client for the swap quote endpoint.

    The retry delay is fixed and only awaited between attempts, never after the
    last one. Each request is bounded by ``request_timeout_sec`` (None leaves
    the transport default in place).

    Usage:
        async with QuoteClient() as client:
            quote = await client.fetch_quote(SOL_MINT, USDC_MINT, 1_000_000_000)
    """

    def __init__(
        self,
        base_url: str = DEFAULT_QUOTE_API_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC,
        request_timeout_sec: Optional[float] = DEFAULT_REQUEST_TIMEOUT_SEC,
        session: Optional[aiohttp.ClientSession] = None,
        metrics=None,
        sleep: SleepFn = asyncio.sleep,
    ):
        _check_attempts(max_attempts)
        if retry_delay_sec < 0:
            raise ValidationError(
                f"retry_delay_sec must be non-negative: {retry_delay_sec}"
            )
        if request_timeout_sec is not None and request_timeout_sec <= 0:
            raise ValidationError(
                f"request_timeout_sec must be positive: {request_timeout_sec}"
            )

        self.base_url = base_url
        self.max_attempts = max_attempts
        self.retry_delay_sec = retry_delay_sec
        self.request_timeout_sec = request_timeout_sec
        self.metrics = metrics
        self._sleep = sleep
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "QuoteClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout_sec)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def fetch_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount_native: int,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        max_attempts: Optional[int] = None,
    ) -> Optional[Quote]:
        """
        Fetch a quote for swapping ``amount_native`` of input_mint into output_mint.

        Args:
            input_mint: Mint being sold
            output_mint: Mint being bought
            amount_native: Positive amount in native units of input_mint
            slippage_bps: Slippage tolerance in basis points
            max_attempts: Overrides the client's attempt budget for this call

        Returns:
            The first usable Quote, or None once every attempt failed

        Raises:
            ValidationError: If an argument violates its precondition
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        _check_attempts(attempts)
        _check_request(input_mint, output_mint, amount_native, slippage_bps)

        pair = f"{short_address(input_mint)} -> {short_address(output_mint)}"
        for attempt in range(1, attempts + 1):
            try:
                quote = await self._attempt(
                    input_mint, output_mint, amount_native, slippage_bps, attempt
                )
            except QuoteAttemptError as e:
                self._record_attempt(e.outcome)
                logger.warning(
                    f"Quote attempt {attempt}/{attempts} for {pair} failed "
                    f"({e.outcome}): {e}"
                )
                if attempt < attempts:
                    await self._sleep(self.retry_delay_sec)
                continue

            self._record_attempt("success")
            logger.debug(
                f"Quote {pair}: {quote.in_amount_native} -> {quote.out_amount_native} "
                f"(attempt {attempt}, {len(quote.route)} legs)"
            )
            return quote

        logger.error(f"No quote for {pair} after {attempts} attempts")
        if self.metrics is not None:
            self.metrics.record_quote_exhausted()
        return None

    async def _attempt(
        self,
        input_mint: str,
        output_mint: str,
        amount_native: int,
        slippage_bps: int,
        attempt: int,
    ) -> Quote:
        """Issue exactly one request; raise a QuoteAttemptError on any failure."""
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount_native),
            "slippageBps": str(slippage_bps),
        }
        session = self._get_session()
        started = time.monotonic()
        try:
            async with session.get(self.base_url, params=params) as response:
                status = response.status
                if not 200 <= status < 300:
                    raise TransportFailure(
                        f"HTTP {status} from quote endpoint",
                        attempt=attempt,
                        status_code=status,
                    )
                try:
                    payload = await response.json(content_type=None)
                except ValueError as e:
                    raise TransportFailure(
                        f"Invalid JSON body: {e}", attempt=attempt, status_code=status
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure(
                f"{type(e).__name__}: {e}", attempt=attempt
            ) from e
        finally:
            if self.metrics is not None:
                self.metrics.record_quote_latency(time.monotonic() - started)

        return _parse_payload(payload, input_mint, output_mint, attempt)

    def _record_attempt(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_quote_attempt(outcome)


def _parse_payload(
    payload: Any, input_mint: str, output_mint: str, attempt: int
) -> Quote:
    if not isinstance(payload, dict):
        raise ServiceError(
            f"Unexpected payload type {type(payload).__name__}", attempt=attempt
        )
    if payload.get("error"):
        raise ServiceError(
            str(payload["error"]),
            attempt=attempt,
            details={"errorCode": payload.get("errorCode")},
        )

    body: Dict[str, Any] = {"inputMint": input_mint, "outputMint": output_mint}
    body.update(payload)
    try:
        quote = Quote.from_payload(body)
    except ValueError as e:
        raise ServiceError(f"Malformed quote payload: {e}", attempt=attempt) from e
    if quote.out_amount is None:
        raise NoRouteAvailable(
            f"No usable output amount ({quote.out_amount_native!r})", attempt=attempt
        )
    return quote


def _check_attempts(max_attempts: int) -> None:
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int):
        raise ValidationError(f"max_attempts must be an int: {max_attempts!r}")
    if max_attempts < 1:
        raise ValidationError(f"max_attempts must be at least 1: {max_attempts}")


def _check_request(
    input_mint: str, output_mint: str, amount_native: int, slippage_bps: int
) -> None:
    if not input_mint or not output_mint:
        raise ValidationError("input_mint and output_mint are required")
    if isinstance(amount_native, bool) or not isinstance(amount_native, int):
        raise ValidationError(f"amount_native must be an int: {amount_native!r}")
    if amount_native <= 0:
        raise ValidationError(f"amount_native must be positive: {amount_native}")
    if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int):
        raise ValidationError(f"slippage_bps must be an int: {slippage_bps!r}")
    if slippage_bps < 0:
        raise ValidationError(f"slippage_bps must be non-negative: {slippage_bps}")
