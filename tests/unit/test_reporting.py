"""Tests for the console reporter."""

import io
from decimal import Decimal

import pytest

from jupiter_arbitrage.fees import FeeCalculator
from jupiter_arbitrage.monitor import MonitorStats
from jupiter_arbitrage.reporting import (
    Colors,
    ConsoleReporter,
    format_opportunity,
    format_price,
    format_quote,
)
from jupiter_arbitrage.tokens import DEFAULT_TOKENS, SOL, SOL_MINT, USDC, USDC_MINT
from jupiter_arbitrage.types import ArbitrageOpportunity, PricePoint, Quote, RouteLeg


def leg(label, in_mint, out_mint, in_amount, out_amount, fee=None, fee_mint=None, percent=100):
    return RouteLeg(
        venue_label=label,
        amm_key="amm",
        input_mint=in_mint,
        output_mint=out_mint,
        in_amount_native=str(in_amount),
        out_amount_native=str(out_amount),
        fee_amount_native=fee,
        fee_mint=fee_mint,
        percent=percent,
    )


@pytest.fixture
def fee_calculator():
    return FeeCalculator.from_tokens(DEFAULT_TOKENS.values(), ["USDC", "USDT"])


@pytest.fixture
def opportunity():
    first = Quote(
        input_mint=SOL_MINT,
        output_mint=USDC_MINT,
        in_amount_native="1000000000",
        out_amount_native="150000000",
        price_impact_pct="0.01",
        route=(
            leg("Whirlpool", SOL_MINT, USDC_MINT, 700000000, 105000000, "300000", USDC_MINT, 70),
            leg(None, SOL_MINT, USDC_MINT, 300000000, 45000000, percent=30),
        ),
        context_slot=99,
        time_taken=0.012,
    )
    second = Quote(
        input_mint=USDC_MINT,
        output_mint=SOL_MINT,
        in_amount_native="150000000",
        out_amount_native="1005000000",
    )
    return ArbitrageOpportunity(
        start_token=SOL,
        middle_token=USDC,
        start_amount_native=1_000_000_000,
        middle_amount_native=150_000_000,
        final_amount_native=1_005_000_000,
        profit_amount_native=5_000_000,
        profit_percent=Decimal("0.5"),
        total_fees_stable=Decimal("0.3"),
        first_quote=first,
        second_quote=second,
        detected_at=0.0,
    )


def test_format_opportunity(opportunity, fee_calculator):
    text = "\n".join(format_opportunity(opportunity, DEFAULT_TOKENS, fee_calculator))

    assert "Route: SOL -> USDC -> SOL" in text
    assert "Start:  1.000000000 SOL" in text
    assert "Middle: 150.000000 USDC" in text
    assert "Final:  1.005000000 SOL" in text
    assert "Profit: +0.005000000 SOL" in text
    assert "Profit percent: +0.5000%" in text
    assert "Fees (stable): ~0.300000" in text
    assert "- Whirlpool (70%):" in text
    assert "0.700000000 SOL -> 105.000000 USDC" in text
    assert "Fee: 0.300000 USDC" in text
    assert "- unknown: 30%" in text
    assert "No route information" in text
    assert "Detected at: 1970-01-01T00:00:00+00:00" in text


def test_format_quote(opportunity, fee_calculator):
    lines = format_quote(
        opportunity.first_quote, SOL, USDC, DEFAULT_TOKENS, fee_calculator
    )
    text = "\n".join(lines)

    assert lines[0] == "1.000000000 SOL -> 150.000000 USDC"
    assert "Rate: 1 SOL = 150" in text
    assert "Price impact: 0.01%" in text
    assert "- USDC: 0.3" in text
    assert "API time: 12ms, slot 99" in text


def test_format_price():
    point = PricePoint(
        timestamp=0.0,
        price=Decimal("151.5"),
        in_amount_native=1,
        out_amount_native=1,
        quote=None,
        change_percent=Decimal("-1.25"),
    )
    assert format_price(point, "SOL/USDC") == (
        "[1970-01-01T00:00:00+00:00] SOL/USDC: 151.500000 (-1.2500%)"
    )


class TestConsoleReporter:
    def test_report_opportunity_without_color(self, opportunity, fee_calculator):
        stream = io.StringIO()
        reporter = ConsoleReporter(DEFAULT_TOKENS, fee_calculator, stream=stream, use_color=False)

        reporter.report_opportunity(opportunity)

        output = stream.getvalue()
        assert "ARBITRAGE OPPORTUNITY FOUND" in output
        assert "\033[" not in output

    def test_colored_output_strips_cleanly(self, opportunity, fee_calculator):
        stream = io.StringIO()
        reporter = ConsoleReporter(DEFAULT_TOKENS, fee_calculator, stream=stream)

        reporter.report_opportunity(opportunity)

        output = stream.getvalue()
        assert Colors.GREEN in output
        assert "ARBITRAGE OPPORTUNITY FOUND" in Colors.strip(output)

    def test_report_error_and_summary(self, fee_calculator):
        stream = io.StringIO()
        reporter = ConsoleReporter(DEFAULT_TOKENS, fee_calculator, stream=stream, use_color=False)

        reporter.report_error(RuntimeError("quote API down"), 4)
        reporter.report_summary(
            MonitorStats(iterations=5, results=1, failures=1, started_at=0.0, stopped_at=12.0)
        )

        output = stream.getvalue()
        assert "Iteration 4 failed: quote API down" in output
        assert "Monitor finished after 5 iterations (12.00s)" in output
        assert "Failed iterations: 1" in output

    def test_report_start(self, fee_calculator):
        stream = io.StringIO()
        reporter = ConsoleReporter(DEFAULT_TOKENS, fee_calculator, stream=stream, use_color=False)

        reporter.report_start("arbitrage", 5.0, 0, {"Min profit": "0.5%"})

        output = stream.getvalue()
        assert "Interval: 5s" in output
        assert "Max iterations: unbounded" in output
        assert "Min profit: 0.5%" in output
