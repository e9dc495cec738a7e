"""
Single source of truth for unit conversion and round-trip profit math.

Conversion policy:
- Native amounts are ints end to end; no float ever touches them.
- Human amounts are Decimal, derived exactly from native ints.
- Profit percent is a Decimal quotient of two ints (50 digit context), so the
  threshold comparison is reproducible for a given pair of integers.
- Basis points go through bps_to_pct(), never an inline /100
"""

import re
from dataclasses import dataclass
from decimal import (
    ROUND_FLOOR,
    Decimal,
    InvalidOperation,
    getcontext,
    localcontext,
)
from typing import Any, Optional, Union

# Set high precision for all decimal operations
getcontext().prec = 50

_NATIVE_AMOUNT_RE = re.compile(r"[0-9]+")

HUNDRED = Decimal("100")

Number = Union[Decimal, int, float, str]


# ============================================================================
# Conversion helpers
# ============================================================================


def bps_to_pct(bps: Decimal) -> Decimal:
    """Convert basis points to percent. 15 bps -> 0.15%"""
    return bps / HUNDRED


def to_decimal(value: Number) -> Decimal:
    """
    Convert a number to Decimal without binary float artefacts.

    Floats go through ``str()`` so ``0.1`` becomes ``Decimal("0.1")``.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Not a number: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def to_native(amount_human: Number, decimals: int) -> int:
    """
    Human amount -> native integer units: floor(amount * 10**decimals).

    Args:
        amount_human: Amount in human units (e.g., 1.5 SOL)
        decimals: Token decimals (e.g., 9 for SOL)

    Returns:
        Native amount (e.g., 1_500_000_000 lamports)
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative: {decimals}")
    value = to_decimal(amount_human)
    with localcontext() as ctx:
        ctx.prec = _exact_precision(value)
        scaled = value.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def to_human(amount_native: int, decimals: int) -> Decimal:
    """Native integer units -> exact human amount (amount / 10**decimals)."""
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative: {decimals}")
    value = Decimal(int(amount_native))
    with localcontext() as ctx:
        ctx.prec = _exact_precision(value)
        return value.scaleb(-decimals)


def _exact_precision(value: Decimal) -> int:
    """Context precision that holds every digit of value, so scaling never rounds."""
    return max(getcontext().prec, len(value.as_tuple().digits))


def parse_native_amount(value: Any) -> Optional[int]:
    """
    Parse a native amount reported by the quoting service.

    Returns:
        The amount as int, or None for a missing, empty, negative or
        non-integer value
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not _NATIVE_AMOUNT_RE.fullmatch(text):
        return None
    return int(text)


# ============================================================================
# Profit math
# ============================================================================


def profit_percent(start_amount_native: int, final_amount_native: int) -> Decimal:
    """
    Round-trip profit as a percentage of the amount put in.

    profit_percent(a, b) = (b - a) / a * 100

    Raises:
        ValueError: If start_amount_native is not positive
    """
    if start_amount_native <= 0:
        raise ValueError(
            f"start_amount_native must be positive: {start_amount_native}"
        )
    profit = Decimal(final_amount_native - start_amount_native)
    return profit / Decimal(start_amount_native) * HUNDRED


def meets_threshold(profit_pct: Decimal, min_profit_pct: Number) -> bool:
    """Inclusive threshold: a cycle exactly at the minimum qualifies."""
    return profit_pct >= to_decimal(min_profit_pct)


def exchange_rate(
    in_amount_native: int, out_amount_native: int, in_decimals: int, out_decimals: int
) -> Decimal:
    """Human-unit price: output units received per input unit."""
    in_human = to_human(in_amount_native, in_decimals)
    if in_human == 0:
        raise ValueError("in_amount_native must be positive")
    return to_human(out_amount_native, out_decimals) / in_human


def price_change_percent(previous: Decimal, latest: Decimal) -> Decimal:
    """Relative change between two prices in percent."""
    if previous == 0:
        raise ValueError("previous price must be non-zero")
    return (latest - previous) / previous * HUNDRED


# ============================================================================
# Cycle profit breakdown
# ============================================================================


@dataclass(frozen=True)
class CycleProfit:
    """
    Profit of one start -> middle -> start round trip.

    All amounts are native ints of the start token.
    """

    start_amount_native: int
    final_amount_native: int
    profit_amount_native: int
    profit_percent: Decimal

    @property
    def is_profitable(self) -> bool:
        return self.profit_amount_native > 0

    def format_log(self, decimals: int, symbol: str) -> str:
        """Format for consistent logging (evaluator and reporter)."""
        amount = to_human(self.profit_amount_native, decimals)
        sign = "+" if self.profit_amount_native >= 0 else ""
        return (
            f"{sign}{amount:.{decimals}f} {symbol} "
            f"({sign}{self.profit_percent:.4f}%)"
        )


def compute_cycle_profit(
    start_amount_native: int, final_amount_native: int
) -> CycleProfit:
    """
    Compute the round-trip profit breakdown from two native amounts.

    Example:
        >>> p = compute_cycle_profit(1_000_000_000, 1_005_000_000)
        >>> p.profit_amount_native
        5000000
        >>> p.profit_percent == Decimal("0.5")
        True
    """
    return CycleProfit(
        start_amount_native=start_amount_native,
        final_amount_native=final_amount_native,
        profit_amount_native=final_amount_native - start_amount_native,
        profit_percent=profit_percent(start_amount_native, final_amount_native),
    )
