"""
Exception hierarchy for the Jupiter round-trip arbitrage monitor.

Provides specific exception types for configuration problems, caller
precondition violations, network failures and the per-attempt outcomes of a
quote request, so each layer can decide what is retryable and what is fatal.
"""

from typing import Optional, Dict, Any


class JupiterArbitrageError(Exception):
    """Base exception for all arbitrage monitor related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(JupiterArbitrageError):
    """Raised when there are configuration-related issues."""

    pass


class ValidationError(JupiterArbitrageError):
    """Raised when caller-supplied inputs violate a precondition."""

    pass


class NetworkError(JupiterArbitrageError):
    """Raised when network or connectivity issues occur."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class RpcError(NetworkError):
    """Raised when a Solana JSON-RPC call fails or returns an error object."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, endpoint, status_code, details)
        self.method = method


# Quote attempt outcomes. Raised by a single quote attempt and consumed by the
# retry loop in QuoteClient; they never escape fetch_quote().


class QuoteAttemptError(JupiterArbitrageError):
    """Base class for a failed single quote attempt."""

    outcome = "failed"

    def __init__(
        self,
        message: str,
        attempt: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.attempt = attempt


class TransportFailure(QuoteAttemptError):
    """Request could not be sent, no response arrived, or the status was not 2xx."""

    outcome = "transport_failure"

    def __init__(
        self,
        message: str,
        attempt: Optional[int] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, attempt, details)
        self.status_code = status_code


class ServiceError(QuoteAttemptError):
    """Response arrived but the quoting service reported an error."""

    outcome = "service_error"


class NoRouteAvailable(QuoteAttemptError):
    """Response arrived without a usable output amount."""

    outcome = "no_route"
