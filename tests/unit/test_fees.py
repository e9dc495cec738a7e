"""
Unit tests for route fee aggregation
"""

from decimal import Decimal

import pytest

from jupiter_arbitrage.fees import FeeCalculator
from jupiter_arbitrage.tokens import DEFAULT_TOKENS, SOL_MINT, USDC_MINT, USDT_MINT
from jupiter_arbitrage.types import Quote, RouteLeg


def leg(fee_amount=None, fee_mint=None, label="Raydium", percent=100.0):
    return RouteLeg(
        venue_label=label,
        amm_key="amm",
        input_mint=SOL_MINT,
        output_mint=USDC_MINT,
        in_amount_native="1000000000",
        out_amount_native="150000000",
        fee_amount_native=fee_amount,
        fee_mint=fee_mint,
        percent=percent,
    )


def quote_with(*legs):
    return Quote(
        input_mint=SOL_MINT,
        output_mint=USDC_MINT,
        in_amount_native="1000000000",
        out_amount_native="150000000",
        route=tuple(legs),
    )


@pytest.fixture
def calculator():
    return FeeCalculator.from_tokens(DEFAULT_TOKENS.values(), ["USDC", "USDT"])


class TestAggregateFees:
    def test_stable_fee_counts(self, calculator):
        total = calculator.aggregate_fees(quote_with(leg("500000", USDC_MINT)))
        assert total == Decimal("0.5")

    def test_base_asset_fee_is_excluded(self, calculator):
        for amount in ("500000", "5000000000", "1"):
            total = calculator.aggregate_fees(quote_with(leg(amount, SOL_MINT)))
            assert total == 0

    def test_mixed_route(self, calculator):
        quote = quote_with(
            leg("500000", USDC_MINT),
            leg("250000", USDT_MINT),
            leg("9999999", SOL_MINT),
            leg(),
        )
        assert calculator.aggregate_fees(quote) == Decimal("0.75")

    def test_empty_route(self, calculator):
        assert calculator.aggregate_fees(quote_with()) == 0

    def test_fee_without_mint_is_ignored(self, calculator):
        assert calculator.aggregate_fees(quote_with(leg("500000", None))) == 0

    def test_malformed_fee_amount_is_ignored(self, calculator):
        quote = quote_with(leg("lots", USDC_MINT), leg("100000", USDC_MINT))
        assert calculator.aggregate_fees(quote) == Decimal("0.1")

    def test_stable_set_is_configurable(self):
        usdc_only = FeeCalculator.from_tokens(DEFAULT_TOKENS.values(), ["USDC"])
        quote = quote_with(leg("500000", USDC_MINT), leg("500000", USDT_MINT))
        assert usdc_only.aggregate_fees(quote) == Decimal("0.5")


class TestFeeHelpers:
    def test_decimals_lookup_and_fallback(self, calculator):
        assert calculator.decimals_for(SOL_MINT) == 9
        assert calculator.decimals_for(USDC_MINT) == 6
        assert calculator.decimals_for("SomeOtherMint") == 6

    def test_fee_in_human_uses_mint_decimals(self, calculator):
        assert calculator.fee_in_human(leg("5000", SOL_MINT)) == Decimal("0.000005")
        assert calculator.fee_in_human(leg()) is None

    def test_fees_by_mint_keeps_every_asset(self, calculator):
        quote = quote_with(
            leg("500000", USDC_MINT),
            leg("250000", USDC_MINT),
            leg("5000", SOL_MINT),
        )
        assert calculator.fees_by_mint(quote) == {
            USDC_MINT: Decimal("0.75"),
            SOL_MINT: Decimal("0.000005"),
        }
