"""Tests for the exceptions module."""

from dex_grid.exceptions import (
    ConfigurationError,
    ExecutorFailure,
    GridBotError,
    InsufficientHolding,
    InvalidPriceRoot,
    NoVenueFound,
    QuoteUnavailable,
)
from dex_grid.config import ConfigError


def test_base_exception():
    """Test the base exception class."""
    error = GridBotError("Test error")
    assert str(error) == "Test error"
    assert error.details == {}

    error_with_details = GridBotError("Test error", {"key": "value"})
    assert error_with_details.details == {"key": "value"}


def test_configuration_error():
    """Test configuration error and the loader's subclass."""
    error = ConfigError("Missing required config field: rpc_url")
    assert isinstance(error, ConfigurationError)
    assert isinstance(error, GridBotError)


def test_no_venue_found():
    error = NoVenueFound(
        "No pool", token_a="0xA", token_b="0xB", details={"fee_tiers": [500]}
    )
    assert error.token_a == "0xA"
    assert error.token_b == "0xB"
    assert error.details["fee_tiers"] == [500]
    assert isinstance(error, GridBotError)


def test_invalid_price_root():
    error = InvalidPriceRoot("zero root", pool="0xPOOL")
    assert error.pool == "0xPOOL"
    assert isinstance(error, GridBotError)


def test_quote_unavailable_keeps_cause():
    """Test that a wrapped quote failure exposes the underlying error."""
    try:
        try:
            raise NoVenueFound("No pool", token_a="0xA", token_b="0xB")
        except NoVenueFound as e:
            raise QuoteUnavailable(
                "quote failed", token_in="0xA", token_out="0xB"
            ) from e
    except QuoteUnavailable as error:
        assert error.token_in == "0xA"
        assert error.token_out == "0xB"
        assert isinstance(error.__cause__, NoVenueFound)


def test_insufficient_holding():
    error = InsufficientHolding(
        "Wallet needs more", required=100, available=5, symbol="WBNB"
    )
    assert error.required == 100
    assert error.available == 5
    assert error.symbol == "WBNB"


def test_executor_failure():
    error = ExecutorFailure(
        "swap not confirmed",
        action="swap",
        tx_hash="0xabc",
        details={"ambiguous": True},
    )
    assert error.action == "swap"
    assert error.tx_hash == "0xabc"
    assert error.details["ambiguous"] is True
