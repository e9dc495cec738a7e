"""
Unit tests for the quote and opportunity data types
"""

from decimal import Decimal

import pytest

from jupiter_arbitrage.tokens import SOL, SOL_MINT, USDC, USDC_MINT, symbol_for_mint, DEFAULT_TOKENS
from jupiter_arbitrage.types import (
    UNKNOWN_VENUE,
    ArbitrageOpportunity,
    Quote,
    RouteLeg,
    TokenInfo,
)


def quote_payload(**overrides):
    payload = {
        "inputMint": SOL_MINT,
        "inAmount": "1000000000",
        "outputMint": USDC_MINT,
        "outAmount": "150250000",
        "otherAmountThreshold": "149498750",
        "swapMode": "ExactIn",
        "slippageBps": 50,
        "priceImpactPct": "0.0012",
        "routePlan": [
            {
                "swapInfo": {
                    "ammKey": "pool-a",
                    "label": "Whirlpool",
                    "inputMint": SOL_MINT,
                    "outputMint": USDC_MINT,
                    "inAmount": "600000000",
                    "outAmount": "90150000",
                    "feeAmount": "120000",
                    "feeMint": USDC_MINT,
                },
                "percent": 60,
            },
            {
                "swapInfo": {
                    "ammKey": "pool-b",
                    "inputMint": SOL_MINT,
                    "outputMint": USDC_MINT,
                    "inAmount": "400000000",
                    "outAmount": "60100000",
                },
                "percent": 40,
            },
        ],
        "contextSlot": 250000000,
        "timeTaken": 0.021,
    }
    payload.update(overrides)
    return payload


class TestTokenInfo:
    def test_conversions(self):
        assert SOL.scale == 10**9
        assert SOL.to_native("2.5") == 2_500_000_000
        assert USDC.to_human(500_000) == Decimal("0.5")

    @pytest.mark.parametrize("decimals", [-1, 1.5, True])
    def test_rejects_bad_decimals(self, decimals):
        with pytest.raises(ValueError):
            TokenInfo(symbol="BAD", address="x", decimals=decimals)

    def test_symbol_for_mint(self):
        assert symbol_for_mint(USDC_MINT, DEFAULT_TOKENS) == "USDC"
        assert symbol_for_mint("UnknownMint1111111111111111", DEFAULT_TOKENS) == "Unkn...1111"


class TestQuoteParsing:
    def test_from_payload(self):
        quote = Quote.from_payload(quote_payload())

        assert quote.input_mint == SOL_MINT
        assert quote.output_mint == USDC_MINT
        assert quote.in_amount == 1_000_000_000
        assert quote.out_amount == 150_250_000
        assert quote.slippage_bps == 50
        assert quote.price_impact_pct == "0.0012"
        assert quote.context_slot == 250000000
        assert quote.time_taken == pytest.approx(0.021)
        assert len(quote.route) == 2

    def test_route_leg_optional_fields_stay_absent(self):
        quote = Quote.from_payload(quote_payload())
        first, second = quote.route

        assert first.label == "Whirlpool"
        assert first.fee_amount_native == "120000"
        assert first.has_fee

        assert second.venue_label is None
        assert second.label == UNKNOWN_VENUE
        assert second.fee_amount_native is None
        assert second.fee_mint is None
        assert not second.has_fee

    def test_venue_distribution_sums_split_legs(self):
        payload = quote_payload()
        payload["routePlan"].append(
            {"swapInfo": {"label": "Whirlpool"}, "percent": 10}
        )
        quote = Quote.from_payload(payload)

        assert quote.venue_distribution() == {"Whirlpool": 70.0, UNKNOWN_VENUE: 40.0}

    def test_error_payload_is_not_usable(self):
        quote = Quote.from_payload({"error": "Could not find any route"})
        assert quote.error == "Could not find any route"
        assert quote.out_amount is None
        assert quote.route == ()

    @pytest.mark.parametrize("out_amount", [None, "", "not-a-number", "1.5"])
    def test_unusable_output_amount(self, out_amount):
        quote = Quote.from_payload(quote_payload(outAmount=out_amount))
        assert quote.out_amount is None

    @pytest.mark.parametrize(
        "route_plan",
        [5, "legs", [{"swapInfo": "oops", "percent": 100}], [None]],
    )
    def test_malformed_route_plan_raises(self, route_plan):
        with pytest.raises(ValueError):
            Quote.from_payload(quote_payload(routePlan=route_plan))

    def test_missing_route_plan_is_empty(self):
        quote = Quote.from_payload(quote_payload(routePlan=None))
        assert quote.route == ()

    def test_malformed_numbers_do_not_raise(self):
        quote = Quote.from_payload(
            quote_payload(slippageBps="x", contextSlot=None, timeTaken="slow")
        )
        assert quote.slippage_bps == 0
        assert quote.context_slot == 0
        assert quote.time_taken == 0.0


class TestArbitrageOpportunity:
    def test_human_amounts_and_dict(self):
        quote = Quote.from_payload(quote_payload())
        opp = ArbitrageOpportunity(
            start_token=SOL,
            middle_token=USDC,
            start_amount_native=1_000_000_000,
            middle_amount_native=150_250_000,
            final_amount_native=1_005_000_000,
            profit_amount_native=5_000_000,
            profit_percent=Decimal("0.5"),
            total_fees_stable=Decimal("0.12"),
            first_quote=quote,
            second_quote=quote,
            detected_at=1700000000.0,
        )

        assert opp.cycle == "SOL -> USDC -> SOL"
        assert opp.start_amount == Decimal("1")
        assert opp.middle_amount == Decimal("150.25")
        assert opp.profit_amount == Decimal("0.005")

        data = opp.to_dict()
        assert data["profit_percent"] == "0.5"
        assert data["total_fees_stable"] == "0.12"
        assert data["first_leg_venues"] == {"Whirlpool": 60.0, UNKNOWN_VENUE: 40.0}
        assert "first_quote" not in repr(opp)
