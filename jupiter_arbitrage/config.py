"""
Configuration loading and validation for the arbitrage monitor.

A YAML file is parsed with PyYAML and validated against pydantic models. Every
field has a default, so the monitor also runs without a file. Precedence, low
to high: defaults, YAML file, environment, command-line flags.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import ConfigurationError
from .fees import FeeCalculator
from .opportunity_math import to_native
from .quote_client import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_QUOTE_API_URL,
    DEFAULT_REQUEST_TIMEOUT_SEC,
    DEFAULT_RETRY_DELAY_SEC,
    DEFAULT_SLIPPAGE_BPS,
)
from .rpc import DEFAULT_RPC_URL
from .tokens import DEFAULT_STABLE_SYMBOLS, DEFAULT_TOKENS
from .types import TokenInfo

ENV_QUOTE_API_URL = "JUPITER_QUOTE_API_URL"
ENV_RPC_URL = "SOLANA_RPC_URL"


class ConfigError(ConfigurationError):
    """Raised when config is invalid or missing required fields."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message, {"errors": errors or []})
        self.errors = errors or []


class TokenConfig(BaseModel):
    """Token entry: mint address and decimals"""

    address: str = Field(min_length=1)
    decimals: int = Field(ge=0, le=18)


class MetricsConfig(BaseModel):
    """Prometheus exposition settings"""

    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v


def _default_tokens() -> Dict[str, TokenConfig]:
    return {
        symbol: TokenConfig(address=token.address, decimals=token.decimals)
        for symbol, token in DEFAULT_TOKENS.items()
    }


class MonitorConfig(BaseModel):
    """Complete monitor configuration"""

    model_config = ConfigDict(extra="forbid")

    quote_api_url: str = DEFAULT_QUOTE_API_URL
    rpc_url: str = DEFAULT_RPC_URL

    poll_interval_sec: float = Field(default=5.0, gt=0)
    max_iterations: int = Field(default=0, ge=0, description="0 runs until stopped")
    min_profit_percent: Decimal = Field(default=Decimal("0.5"), ge=0)

    slippage_bps: int = Field(default=DEFAULT_SLIPPAGE_BPS, ge=0, le=10000)
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, le=100)
    retry_delay_sec: float = Field(default=DEFAULT_RETRY_DELAY_SEC, ge=0)
    request_timeout_sec: Optional[float] = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SEC, gt=0
    )

    start_amount: Decimal = Field(default=Decimal("1"), gt=0)
    start_token: str = "SOL"
    middle_token: str = "USDC"
    stable_tokens: List[str] = Field(
        default_factory=lambda: list(DEFAULT_STABLE_SYMBOLS)
    )
    history_size: int = Field(default=10, ge=1, le=10000)
    tokens: Dict[str, TokenConfig] = Field(default_factory=_default_tokens)

    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("quote_api_url", "rpc_url")
    @classmethod
    def validate_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://: {v}")
        return v

    @model_validator(mode="after")
    def validate_cycle_tokens(self):
        for field_name in ("start_token", "middle_token"):
            symbol = getattr(self, field_name)
            if symbol not in self.tokens:
                raise ValueError(f"{field_name} '{symbol}' not found in tokens")
        if self.start_token == self.middle_token:
            raise ValueError("start_token and middle_token must differ")
        if (
            self.tokens[self.start_token].address
            == self.tokens[self.middle_token].address
        ):
            raise ValueError("start_token and middle_token share a mint address")
        start = self.tokens[self.start_token]
        if to_native(self.start_amount, start.decimals) <= 0:
            raise ValueError(
                f"start_amount {self.start_amount} is below one native unit of "
                f"{self.start_token}"
            )
        return self

    @property
    def interval_ms(self) -> int:
        return max(1, int(round(self.poll_interval_sec * 1000)))

    def token_infos(self) -> Dict[str, TokenInfo]:
        return {
            symbol: TokenInfo(symbol=symbol, address=t.address, decimals=t.decimals)
            for symbol, t in self.tokens.items()
        }

    def stable_mints(self) -> List[str]:
        """Mints of the stable symbols; symbols without a token entry are skipped."""
        return [self.tokens[s].address for s in self.stable_tokens if s in self.tokens]

    def fee_calculator(self) -> FeeCalculator:
        return FeeCalculator(
            {t.address: t.decimals for t in self.tokens.values()},
            self.stable_mints(),
        )


def _format_errors(e: pydantic.ValidationError) -> List[str]:
    messages = []
    for err in e.errors():
        location = ".".join(str(part) for part in err["loc"]) or "config"
        messages.append(f"{location}: {err['msg']}")
    return messages


def config_from_dict(config_dict: Mapping[str, Any]) -> MonitorConfig:
    """
    Validate a config dictionary.

    Raises:
        ConfigError: If any field is invalid; ``errors`` lists each problem
    """
    try:
        return MonitorConfig.model_validate(dict(config_dict))
    except pydantic.ValidationError as e:
        errors = _format_errors(e)
        raise ConfigError(
            "Invalid configuration: " + "; ".join(errors), errors
        ) from e


def load_config(config_path: Optional[Union[str, Path]] = None) -> MonitorConfig:
    """
    Load and validate config from YAML file.

    Args:
        config_path: Path to config YAML file; None returns the defaults

    Returns:
        Validated MonitorConfig instance

    Raises:
        ConfigError: If the file is missing, unparsable or invalid
    """
    if config_path is None:
        return MonitorConfig()

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError("Config file must contain a YAML dictionary")

    return config_from_dict(config_dict)


def apply_env_overrides(
    config: MonitorConfig, environ: Optional[Mapping[str, str]] = None
) -> MonitorConfig:
    """Override endpoint URLs from JUPITER_QUOTE_API_URL / SOLANA_RPC_URL."""
    environ = os.environ if environ is None else environ
    overrides = {}
    if environ.get(ENV_QUOTE_API_URL):
        overrides["quote_api_url"] = environ[ENV_QUOTE_API_URL]
    if environ.get(ENV_RPC_URL):
        overrides["rpc_url"] = environ[ENV_RPC_URL]
    return apply_overrides(config, **overrides)


def apply_overrides(config: MonitorConfig, **overrides: Any) -> MonitorConfig:
    """
    Return a re-validated copy with the non-None overrides applied.

    Nested sections use ``section__field`` keys (e.g. ``metrics__port``).
    """
    data = config.model_dump()
    changed = False
    for key, value in overrides.items():
        if value is None:
            continue
        changed = True
        if "__" in key:
            section, field_name = key.split("__", 1)
            data.setdefault(section, {})[field_name] = value
        else:
            data[key] = value
    if not changed:
        return config
    return config_from_dict(data)
