"""
Core data types for round-trip arbitrage detection.

Native amounts travel through the system as Python ints (or the integer strings
the quoting service returns); human-unit values are Decimal.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from .opportunity_math import parse_native_amount, to_human, to_native

UNKNOWN_VENUE = "unknown"


@dataclass(frozen=True)
class TokenInfo:
    """
    A fungible token identified by its mint.

    Attributes:
        symbol: Display symbol (e.g., "SOL")
        address: Mint address on the ledger
        decimals: Scaling exponent between native and human units
    """

    symbol: str
    address: str
    decimals: int

    def __post_init__(self):
        if not isinstance(self.decimals, int) or isinstance(self.decimals, bool):
            raise ValueError(f"decimals must be an int, got {self.decimals!r}")
        if self.decimals < 0:
            raise ValueError(f"decimals must be non-negative: {self.decimals}")

    @property
    def scale(self) -> int:
        """Number of native units in one human unit (10**decimals)."""
        return 10**self.decimals

    def to_native(self, amount) -> int:
        """Human amount -> native integer units (floored)."""
        return to_native(amount, self.decimals)

    def to_human(self, amount_native: int) -> Decimal:
        """Native integer units -> exact human amount."""
        return to_human(amount_native, self.decimals)


@dataclass(frozen=True)
class RouteLeg:
    """
    One hop of a quote's route plan.

    Optional fields stay None when the service omits them; fee aggregation
    relies on telling "no fee reported" apart from "fee of zero".
    """

    venue_label: Optional[str]
    amm_key: Optional[str]
    input_mint: Optional[str]
    output_mint: Optional[str]
    in_amount_native: Optional[str]
    out_amount_native: Optional[str]
    fee_amount_native: Optional[str] = None
    fee_mint: Optional[str] = None
    percent: float = 100.0

    @property
    def label(self) -> str:
        """Venue label, or "unknown" when the service did not name it."""
        return self.venue_label or UNKNOWN_VENUE

    @property
    def has_fee(self) -> bool:
        return bool(self.fee_amount_native) and bool(self.fee_mint)

    @classmethod
    def from_payload(cls, entry: Mapping[str, Any]) -> "RouteLeg":
        """Build a leg from a ``routePlan`` entry ({"swapInfo": {...}, "percent": n})."""
        swap_info = entry.get("swapInfo")
        if swap_info is None:
            swap_info = {}
        elif not isinstance(swap_info, Mapping):
            raise ValueError(
                f"swapInfo must be an object, got {type(swap_info).__name__}"
            )
        return cls(
            venue_label=_opt_str(swap_info.get("label")),
            amm_key=_opt_str(swap_info.get("ammKey")),
            input_mint=_opt_str(swap_info.get("inputMint")),
            output_mint=_opt_str(swap_info.get("outputMint")),
            in_amount_native=_opt_str(swap_info.get("inAmount")),
            out_amount_native=_opt_str(swap_info.get("outAmount")),
            fee_amount_native=_opt_str(swap_info.get("feeAmount")),
            fee_mint=_opt_str(swap_info.get("feeMint")),
            percent=_as_float(entry.get("percent"), default=0.0),
        )


@dataclass(frozen=True)
class Quote:
    """
    A swap quote returned by the quoting service.

    ``error`` carries a service-level failure that is distinct from a
    transport failure; a quote with an error is never treated as usable.
    """

    input_mint: str
    output_mint: str
    in_amount_native: Optional[str]
    out_amount_native: Optional[str]
    slippage_bps: int = 0
    price_impact_pct: str = "0"
    route: Tuple[RouteLeg, ...] = ()
    context_slot: int = 0
    time_taken: float = 0.0
    other_amount_threshold: Optional[str] = None
    swap_mode: Optional[str] = None
    error: Optional[str] = None

    @property
    def in_amount(self) -> Optional[int]:
        return parse_native_amount(self.in_amount_native)

    @property
    def out_amount(self) -> Optional[int]:
        """Output amount as int, or None when absent or not an integer string."""
        return parse_native_amount(self.out_amount_native)

    def venue_distribution(self) -> Dict[str, float]:
        """Share of the route per venue label, summed across split legs."""
        venues: Dict[str, float] = {}
        for leg in self.route:
            venues[leg.label] = venues.get(leg.label, 0.0) + leg.percent
        return venues

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Quote":
        """
        Parse the JSON body of a quote response.

        Raises:
            ValueError: If ``routePlan`` is not a list of leg objects
        """
        route_raw = payload.get("routePlan")
        if route_raw is None:
            route_raw = []
        elif not isinstance(route_raw, list):
            raise ValueError(
                f"routePlan must be a list, got {type(route_raw).__name__}"
            )
        for entry in route_raw:
            if not isinstance(entry, Mapping):
                raise ValueError(
                    f"routePlan entry must be an object, got {type(entry).__name__}"
                )
        route = tuple(RouteLeg.from_payload(entry) for entry in route_raw)
        error = payload.get("error")
        return cls(
            input_mint=str(payload.get("inputMint") or ""),
            output_mint=str(payload.get("outputMint") or ""),
            in_amount_native=_opt_str(payload.get("inAmount")),
            out_amount_native=_opt_str(payload.get("outAmount")),
            slippage_bps=_as_int(payload.get("slippageBps")),
            price_impact_pct=str(payload.get("priceImpactPct") or "0"),
            route=route,
            context_slot=_as_int(payload.get("contextSlot")),
            time_taken=_as_float(payload.get("timeTaken")),
            other_amount_threshold=_opt_str(payload.get("otherAmountThreshold")),
            swap_mode=_opt_str(payload.get("swapMode")),
            error=str(error) if error else None,
        )


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """
    A round trip start -> middle -> start whose profit met the threshold.

    Attributes:
        start_token: Token the cycle starts and ends in
        middle_token: Token held between the two legs
        start_amount_native: Amount sent into leg 1
        middle_amount_native: Amount received from leg 1 and sent into leg 2
        final_amount_native: Amount received from leg 2
        profit_amount_native: final - start (may be zero)
        profit_percent: profit / start * 100
        total_fees_stable: Route fees paid in stable assets, human units
        first_quote: Leg 1 quote
        second_quote: Leg 2 quote
        detected_at: Unix timestamp of detection
    """

    start_token: TokenInfo
    middle_token: TokenInfo
    start_amount_native: int
    middle_amount_native: int
    final_amount_native: int
    profit_amount_native: int
    profit_percent: Decimal
    total_fees_stable: Decimal
    first_quote: Quote = field(repr=False)
    second_quote: Quote = field(repr=False)
    detected_at: float = 0.0

    @property
    def cycle(self) -> str:
        s, m = self.start_token.symbol, self.middle_token.symbol
        return f"{s} -> {m} -> {s}"

    @property
    def start_amount(self) -> Decimal:
        return self.start_token.to_human(self.start_amount_native)

    @property
    def middle_amount(self) -> Decimal:
        return self.middle_token.to_human(self.middle_amount_native)

    @property
    def final_amount(self) -> Decimal:
        return self.start_token.to_human(self.final_amount_native)

    @property
    def profit_amount(self) -> Decimal:
        return self.start_token.to_human(self.profit_amount_native)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "cycle": self.cycle,
            "start_token": self.start_token.symbol,
            "middle_token": self.middle_token.symbol,
            "start_amount_native": self.start_amount_native,
            "middle_amount_native": self.middle_amount_native,
            "final_amount_native": self.final_amount_native,
            "profit_amount_native": self.profit_amount_native,
            "profit_percent": str(self.profit_percent),
            "total_fees_stable": str(self.total_fees_stable),
            "first_leg_venues": self.first_quote.venue_distribution(),
            "second_leg_venues": self.second_quote.venue_distribution(),
            "detected_at": self.detected_at,
        }


@dataclass(frozen=True)
class PricePoint:
    """One sample of the price monitor: human-unit output per human-unit input."""

    timestamp: float
    price: Decimal
    in_amount_native: int
    out_amount_native: int
    quote: Quote = field(repr=False)
    change_percent: Optional[Decimal] = None


def _opt_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default

