"""Tests for the exceptions module."""

import pytest
from jupiter_arbitrage.exceptions import (
    JupiterArbitrageError,
    ConfigurationError,
    ValidationError,
    NetworkError,
    RpcError,
    QuoteAttemptError,
    TransportFailure,
    ServiceError,
    NoRouteAvailable,
)


def test_base_exception():
    """Test the base exception class."""
    error = JupiterArbitrageError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = JupiterArbitrageError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    """Test configuration error."""
    error = ConfigurationError("Config error", {"config_file": "monitor.yaml"})
    assert str(error) == "Config error"
    assert error.details["config_file"] == "monitor.yaml"
    assert isinstance(error, JupiterArbitrageError)


def test_validation_error():
    error = ValidationError("start and middle token must differ")
    assert isinstance(error, JupiterArbitrageError)


def test_network_error():
    """Test network error."""
    error = NetworkError(
        "Connection failed", endpoint="https://quote-api.jup.ag/v6/quote", status_code=503
    )
    assert str(error) == "Connection failed"
    assert error.endpoint == "https://quote-api.jup.ag/v6/quote"
    assert error.status_code == 503
    assert isinstance(error, JupiterArbitrageError)


def test_rpc_error():
    error = RpcError("Invalid param", method="getBalance", status_code=200)
    assert error.method == "getBalance"
    assert error.status_code == 200
    assert isinstance(error, NetworkError)


@pytest.mark.parametrize(
    "error_class,outcome",
    [
        (TransportFailure, "transport_failure"),
        (ServiceError, "service_error"),
        (NoRouteAvailable, "no_route"),
    ],
)
def test_quote_attempt_outcomes(error_class, outcome):
    """Each attempt failure carries the outcome label used by the retry loop."""
    error = error_class("attempt failed", attempt=2)
    assert error.outcome == outcome
    assert error.attempt == 2
    assert isinstance(error, QuoteAttemptError)


def test_transport_failure_status_code():
    error = TransportFailure("HTTP 429", attempt=1, status_code=429)
    assert error.status_code == 429
    assert TransportFailure("timed out").status_code is None


def test_exception_hierarchy():
    """Test that all exceptions inherit from the base class."""
    exceptions = [
        ConfigurationError("test"),
        ValidationError("test"),
        NetworkError("test"),
        RpcError("test"),
        TransportFailure("test"),
        ServiceError("test"),
        NoRouteAvailable("test"),
    ]

    for exc in exceptions:
        assert isinstance(exc, JupiterArbitrageError)
        assert isinstance(exc, Exception)
