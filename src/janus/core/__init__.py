"""Core infrastructure - config, logging, errors, period clock."""

from janus.core.clock import PERIOD_LENGTH_SECONDS, PeriodClock
from janus.core.config import ConfigManager
from janus.core.errors import (
    AuthenticationError,
    ConfigurationError,
    ErrorCategory,
    JanusError,
    MarketLookupError,
    MarketNotFoundError,
    NetworkError,
    OrderStateUnknownError,
    OrderSubmissionError,
    PermanentError,
    QuoteUnavailableError,
    ResourceNotFoundError,
    TransientError,
    is_retryable,
)
from janus.core.logging import get_logger, setup_logging

__all__ = [
    # Clock
    "PERIOD_LENGTH_SECONDS",
    "PeriodClock",
    # Config
    "ConfigManager",
    # Logging
    "setup_logging",
    "get_logger",
    # Errors
    "ErrorCategory",
    "JanusError",
    "TransientError",
    "NetworkError",
    "QuoteUnavailableError",
    "PermanentError",
    "ConfigurationError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "MarketLookupError",
    "MarketNotFoundError",
    "OrderSubmissionError",
    "OrderStateUnknownError",
    "is_retryable",
]
