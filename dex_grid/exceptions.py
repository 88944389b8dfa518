"""
Exception hierarchy for the DEX grid bot.

Provides specific exception types for each failure category so the trading
loop can tell a skipped tick from a fatal startup problem.
"""

from typing import Any, Dict, Optional


class GridBotError(Exception):
    """Base exception for all grid bot related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(GridBotError):
    """Raised when there are configuration-related issues."""

    pass


class NoVenueFound(GridBotError):
    """Raised when neither a V3 pool nor a V2 pair exists for a token pair."""

    def __init__(
        self,
        message: str,
        token_a: Optional[str] = None,
        token_b: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token_a = token_a
        self.token_b = token_b


class InvalidPriceRoot(GridBotError):
    """Raised when a V3 pool reports a zero sqrtPriceX96 (uninitialized pool)."""

    def __init__(
        self,
        message: str,
        pool: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.pool = pool


class QuoteUnavailable(GridBotError):
    """Raised when a quote cannot be produced for any upstream reason."""

    def __init__(
        self,
        message: str,
        token_in: Optional[str] = None,
        token_out: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token_in = token_in
        self.token_out = token_out


class InsufficientHolding(GridBotError):
    """Raised by the preflight check when the wallet holds too little target token."""

    def __init__(
        self,
        message: str,
        required: Optional[Any] = None,
        available: Optional[Any] = None,
        symbol: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.required = required
        self.available = available
        self.symbol = symbol


class ExecutorFailure(GridBotError):
    """Raised when a swap or approval fails to submit or settle."""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.action = action
        self.tx_hash = tx_hash
