"""
Unit tests for YAML config loading, validation and overrides
"""

from decimal import Decimal

import pytest
import yaml

from jupiter_arbitrage.config import (
    ConfigError,
    MonitorConfig,
    apply_env_overrides,
    apply_overrides,
    config_from_dict,
    load_config,
)
from jupiter_arbitrage.exceptions import ConfigurationError
from jupiter_arbitrage.tokens import SOL_MINT, USDC_MINT, USDT_MINT


@pytest.fixture
def write_config(tmp_path):
    def _write(data):
        path = tmp_path / "monitor.yaml"
        path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
        return path

    return _write


class TestDefaults:
    def test_defaults_without_file(self):
        config = load_config(None)

        assert config.poll_interval_sec == 5.0
        assert config.interval_ms == 5000
        assert config.max_iterations == 0
        assert config.min_profit_percent == Decimal("0.5")
        assert config.slippage_bps == 50
        assert config.max_attempts == 3
        assert config.retry_delay_sec == 1.0
        assert config.request_timeout_sec == 10.0
        assert config.start_amount == Decimal("1")
        assert config.start_token == "SOL"
        assert config.middle_token == "USDC"
        assert config.history_size == 10
        assert config.metrics.enabled is False
        assert config.logging.level == "INFO"

    def test_token_helpers(self):
        config = MonitorConfig()

        assert config.token_infos()["USDC"].address == USDC_MINT
        assert config.stable_mints() == [USDC_MINT, USDT_MINT]
        assert config.fee_calculator().is_stable(USDT_MINT)
        assert not config.fee_calculator().is_stable(SOL_MINT)

    def test_fee_calculator_uses_token_decimals(self):
        assert MonitorConfig().fee_calculator().decimals_for(SOL_MINT) == 9


class TestLoadConfig:
    def test_load_from_yaml(self, write_config):
        path = write_config(
            {
                "poll_interval_sec": 2.5,
                "max_iterations": 10,
                "min_profit_percent": 0.3,
                "start_amount": "0.25",
                "logging": {"level": "debug"},
            }
        )
        config = load_config(path)

        assert config.interval_ms == 2500
        assert config.max_iterations == 10
        assert config.min_profit_percent == Decimal("0.3")
        assert config.start_amount == Decimal("0.25")
        assert config.logging.level == "DEBUG"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigError, match="Failed to parse YAML"):
            load_config(write_config("key: [unclosed"))

    def test_non_mapping(self, write_config):
        with pytest.raises(ConfigError, match="YAML dictionary"):
            load_config(write_config("- a\n- b\n"))

    def test_config_error_is_configuration_error(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(tmp_path / "missing.yaml")


class TestValidation:
    @pytest.mark.parametrize(
        "field, value",
        [
            ("poll_interval_sec", 0),
            ("max_iterations", -1),
            ("min_profit_percent", -0.1),
            ("slippage_bps", -1),
            ("max_attempts", 0),
            ("retry_delay_sec", -1),
            ("start_amount", 0),
            ("history_size", 0),
            ("quote_api_url", "ftp://example.com"),
            ("unknown_field", 1),
        ],
    )
    def test_rejects_invalid_field(self, field, value):
        with pytest.raises(ConfigError) as exc_info:
            config_from_dict({field: value})
        assert exc_info.value.errors

    def test_cycle_tokens_must_exist(self):
        with pytest.raises(ConfigError, match="not found in tokens"):
            config_from_dict({"middle_token": "BONK"})

    def test_cycle_tokens_must_differ(self):
        with pytest.raises(ConfigError, match="must differ"):
            config_from_dict({"start_token": "USDC", "middle_token": "USDC"})

    @pytest.mark.parametrize("amount", ["0.0000000001", "1e-10"])
    def test_start_amount_below_one_native_unit(self, amount):
        with pytest.raises(ConfigError, match="below one native unit of SOL"):
            config_from_dict({"start_amount": amount})

    def test_start_amount_checked_against_start_token_decimals(self):
        config = config_from_dict(
            {"start_token": "USDC", "middle_token": "SOL", "start_amount": "0.000001"}
        )
        assert config.token_infos()["USDC"].to_native(config.start_amount) == 1
        with pytest.raises(ConfigError, match="below one native unit of USDC"):
            config_from_dict(
                {"start_token": "USDC", "middle_token": "SOL", "start_amount": "0.0000001"}
            )

    def test_sub_native_override_rejected(self):
        with pytest.raises(ConfigError):
            apply_overrides(MonitorConfig(), start_amount=Decimal("1e-10"))

    def test_token_decimals_bounds(self):
        tokens = {
            "SOL": {"address": SOL_MINT, "decimals": 19},
            "USDC": {"address": USDC_MINT, "decimals": 6},
        }
        with pytest.raises(ConfigError, match="tokens.SOL.decimals"):
            config_from_dict({"tokens": tokens})

    def test_stable_symbols_without_token_are_skipped(self):
        tokens = {
            "SOL": {"address": SOL_MINT, "decimals": 9},
            "USDC": {"address": USDC_MINT, "decimals": 6},
        }
        config = config_from_dict({"tokens": tokens})
        assert config.stable_mints() == [USDC_MINT]


class TestOverrides:
    def test_env_overrides(self):
        config = apply_env_overrides(
            MonitorConfig(),
            {
                "JUPITER_QUOTE_API_URL": "http://localhost:8080/quote",
                "SOLANA_RPC_URL": "http://localhost:8899",
            },
        )
        assert config.quote_api_url == "http://localhost:8080/quote"
        assert config.rpc_url == "http://localhost:8899"

    def test_empty_env_keeps_config(self):
        config = MonitorConfig()
        assert apply_env_overrides(config, {}) is config

    def test_cli_overrides_ignore_none(self):
        config = apply_overrides(
            MonitorConfig(),
            poll_interval_sec=10.0,
            max_iterations=None,
            min_profit_percent=Decimal("0.2"),
            metrics__enabled=True,
            metrics__port=9100,
        )
        assert config.interval_ms == 10000
        assert config.max_iterations == 0
        assert config.min_profit_percent == Decimal("0.2")
        assert config.metrics.enabled is True
        assert config.metrics.port == 9100

    def test_invalid_override_rejected(self):
        with pytest.raises(ConfigError):
            apply_overrides(MonitorConfig(), slippage_bps=-5)
