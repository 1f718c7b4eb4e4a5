"""Unit tests for the error taxonomy."""
from janus.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    MarketLookupError,
    MarketNotFoundError,
    NetworkError,
    OrderStateUnknownError,
    OrderSubmissionError,
    QuoteUnavailableError,
    ResourceNotFoundError,
    is_retryable,
)


class TestClassification:
    """Tests for transient/permanent classification."""

    def test_transient_errors_are_retryable(self):
        assert is_retryable(NetworkError("reset"))
        assert is_retryable(QuoteUnavailableError("tok"))

    def test_permanent_errors_are_not_retryable(self):
        assert not is_retryable(ConfigurationError("bad"))
        assert not is_retryable(AuthenticationError("denied"))
        assert not is_retryable(OrderSubmissionError("rejected"))
        # A timed-out post may have gone through; never resubmit it
        assert not is_retryable(OrderStateUnknownError("no response"))

    def test_unknown_exceptions_are_retryable(self):
        assert is_retryable(RuntimeError("?"))

    def test_lookup_errors_are_not_found(self):
        assert isinstance(MarketLookupError("btc-updown-15m-0"), ResourceNotFoundError)
        assert isinstance(MarketNotFoundError("BTC", ["btc"]), ResourceNotFoundError)
        assert MarketNotFoundError("BTC", ["btc"]).category == ErrorCategory.PERMANENT


class TestMessages:
    """Tests for error context."""

    def test_market_not_found_names_prefixes(self):
        error = MarketNotFoundError("SOL", ["solana", "sol"])
        assert str(error) == (
            "Could not find active SOL 15-minute up/down market (tried: solana, sol)"
        )
        assert error.prefixes == ("solana", "sol")

    def test_cause_is_included(self):
        error = QuoteUnavailableError("tok-1", cause=TimeoutError("slow"))
        assert "tok-1" in str(error)
        assert "caused by: slow" in str(error)
        assert error.token_id == "tok-1"

    def test_order_submission_keeps_token(self):
        error = OrderSubmissionError("Order rejected", token_id="tok-2")
        assert error.token_id == "tok-2"
        assert str(error) == "Order rejected"
