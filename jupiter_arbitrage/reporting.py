"""
Console projection of monitor results.

Formats opportunities, quotes and price samples for a terminal. Nothing here
feeds back into detection; the reporter only reads the records it is given.
"""

import re
import sys
from decimal import Decimal
from typing import Dict, List, Optional, TextIO

from .fees import FeeCalculator
from .monitor import MonitorStats
from .opportunity_math import to_human
from .tokens import symbol_for_mint
from .types import ArbitrageOpportunity, PricePoint, Quote, TokenInfo
from .utils import (
    format_duration,
    format_profit,
    format_token_amount,
    get_logger,
    timestamp_to_iso,
)

logger = get_logger(__name__)

RULE = "=" * 50


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"

    @staticmethod
    def strip(text: str) -> str:
        """Remove all ANSI codes from text."""
        return re.sub(r"\033\[[0-9;]+m", "", text)


def format_route(
    quote: Quote,
    in_token: TokenInfo,
    out_token: TokenInfo,
    tokens: Dict[str, TokenInfo],
    fee_calculator: FeeCalculator,
) -> List[str]:
    """Per-leg lines of a route plan followed by its venue distribution."""
    if not quote.route:
        return ["    No route information"]

    lines = []
    for leg in quote.route:
        lines.append(f"    - {leg.label} ({leg.percent:g}%):")
        if leg.in_amount_native is not None and leg.out_amount_native is not None:
            leg_in = fee_calculator.decimals_for(leg.input_mint or in_token.address)
            leg_out = fee_calculator.decimals_for(leg.output_mint or out_token.address)
            in_sym = symbol_for_mint(leg.input_mint or in_token.address, tokens)
            out_sym = symbol_for_mint(leg.output_mint or out_token.address, tokens)
            lines.append(
                f"      {_amount(leg.in_amount_native, leg_in)} {in_sym} -> "
                f"{_amount(leg.out_amount_native, leg_out)} {out_sym}"
            )
        fee = fee_calculator.fee_in_human(leg)
        if fee is not None:
            decimals = fee_calculator.decimals_for(leg.fee_mint)
            lines.append(
                f"      Fee: {format_token_amount(fee, decimals)} "
                f"{symbol_for_mint(leg.fee_mint, tokens)}"
            )

    lines.append("    Venue distribution:")
    for venue, percent in quote.venue_distribution().items():
        lines.append(f"      - {venue}: {percent:g}%")
    return lines


def format_opportunity(
    opportunity: ArbitrageOpportunity,
    tokens: Dict[str, TokenInfo],
    fee_calculator: FeeCalculator,
) -> List[str]:
    start, middle = opportunity.start_token, opportunity.middle_token
    lines = [
        "ARBITRAGE OPPORTUNITY FOUND",
        RULE,
        f"Route: {opportunity.cycle}",
        "",
        "Amounts:",
        f"  Start:  {format_token_amount(opportunity.start_amount, start.decimals)} {start.symbol}",
        f"  Middle: {format_token_amount(opportunity.middle_amount, middle.decimals)} {middle.symbol}",
        f"  Final:  {format_token_amount(opportunity.final_amount, start.decimals)} {start.symbol}",
        "",
        "Result:",
        f"  Profit: {_signed(opportunity.profit_amount, start.decimals)} {start.symbol}",
        f"  Profit percent: {format_profit(opportunity.profit_percent)}",
        "",
        f"Fees (stable): ~{opportunity.total_fees_stable:.6f}",
        "",
        "Routes:",
        f"  1. {start.symbol} -> {middle.symbol}:",
    ]
    lines += format_route(opportunity.first_quote, start, middle, tokens, fee_calculator)
    lines.append(f"  2. {middle.symbol} -> {start.symbol}:")
    lines += format_route(opportunity.second_quote, middle, start, tokens, fee_calculator)
    lines += ["", f"Detected at: {timestamp_to_iso(opportunity.detected_at)}", RULE]
    return lines


def format_quote(
    quote: Quote,
    in_token: TokenInfo,
    out_token: TokenInfo,
    tokens: Dict[str, TokenInfo],
    fee_calculator: FeeCalculator,
) -> List[str]:
    in_amount = to_human(quote.in_amount or 0, in_token.decimals)
    out_amount = to_human(quote.out_amount or 0, out_token.decimals)
    lines = [
        f"{format_token_amount(in_amount, in_token.decimals)} {in_token.symbol} -> "
        f"{format_token_amount(out_amount, out_token.decimals)} {out_token.symbol}",
    ]
    if in_amount:
        lines.append(
            f"  Rate: 1 {in_token.symbol} = {out_amount / in_amount:.6f} {out_token.symbol}"
        )
    lines.append(f"  Price impact: {quote.price_impact_pct}%")
    lines.append("  Route:")
    lines += format_route(quote, in_token, out_token, tokens, fee_calculator)

    fees = fee_calculator.fees_by_mint(quote)
    if fees:
        lines.append("  Fees by token:")
        for mint, amount in fees.items():
            lines.append(f"    - {symbol_for_mint(mint, tokens)}: {amount}")
    lines.append(f"  API time: {quote.time_taken * 1000:.0f}ms, slot {quote.context_slot}")
    return lines


def format_price(point: PricePoint, pair: str) -> str:
    line = f"[{timestamp_to_iso(point.timestamp)}] {pair}: {point.price:.6f}"
    if point.change_percent is not None:
        line += f" ({format_profit(point.change_percent, places=4)})"
    return line


class ConsoleReporter:
    """
    Prints monitor results to a text stream.

    Args:
        tokens: Symbol -> TokenInfo, used to name mints
        fee_calculator: Supplies fee decimals and per-mint fee totals
        stream: Output stream (stdout by default)
        use_color: Emit ANSI colors
    """

    def __init__(
        self,
        tokens: Dict[str, TokenInfo],
        fee_calculator: FeeCalculator,
        stream: Optional[TextIO] = None,
        use_color: bool = True,
    ):
        self.tokens = tokens
        self.fee_calculator = fee_calculator
        self.stream = stream if stream is not None else sys.stdout
        self.use_color = use_color

    def _color(self, text: str, *codes: str) -> str:
        if not self.use_color:
            return text
        return "".join(codes) + text + Colors.RESET

    def _emit(self, lines: List[str]) -> None:
        for line in lines:
            print(line, file=self.stream)
        self.stream.flush()

    def report_start(
        self,
        mode: str,
        interval_sec: float,
        max_iterations: int,
        details: Optional[Dict[str, str]] = None,
    ) -> None:
        cap = str(max_iterations) if max_iterations else "unbounded"
        lines = [
            self._color(f"Starting {mode} monitor", Colors.BOLD),
            f"  Interval: {interval_sec:g}s",
            f"  Max iterations: {cap}",
        ]
        for key, value in (details or {}).items():
            lines.append(f"  {key}: {value}")
        lines.append("  Press Ctrl+C to stop")
        self._emit(lines)

    def report_opportunity(self, opportunity: ArbitrageOpportunity) -> None:
        lines = format_opportunity(opportunity, self.tokens, self.fee_calculator)
        lines[0] = self._color(lines[0], Colors.BOLD, Colors.GREEN)
        self._emit([""] + lines)

    def report_quote(self, quote: Quote, in_token: TokenInfo, out_token: TokenInfo) -> None:
        self._emit(
            format_quote(quote, in_token, out_token, self.tokens, self.fee_calculator)
        )

    def report_price(self, point: PricePoint, pair: str) -> None:
        line = format_price(point, pair)
        change = point.change_percent
        if change is not None and change > 0:
            line = self._color(line, Colors.GREEN)
        elif change is not None and change < 0:
            line = self._color(line, Colors.RED)
        self._emit([line])

    def report_error(self, error: BaseException, iteration: int) -> None:
        self._emit(
            [self._color(f"Iteration {iteration} failed: {error}", Colors.YELLOW)]
        )

    def report_summary(self, stats: MonitorStats) -> None:
        self._emit(
            [
                "",
                self._color(
                    f"Monitor finished after {stats.iterations} iterations "
                    f"({format_duration(stats.duration)})",
                    Colors.BOLD,
                ),
                f"  Results: {stats.results}",
                f"  Failed iterations: {stats.failures}",
            ]
        )


def _amount(native: str, decimals: int) -> str:
    try:
        return format_token_amount(to_human(int(native), decimals), decimals)
    except ValueError:
        return str(native)


def _signed(amount: Decimal, decimals: int) -> str:
    text = format_token_amount(amount, decimals)
    return text if amount < 0 else f"+{text}"
