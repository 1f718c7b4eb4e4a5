"""
Error taxonomy for Janus.

Errors are split into transient (may succeed on retry) and permanent
(will not). The dispatcher and app decide what is fatal; these classes
only carry the classification and context.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Sequence


class ErrorCategory(str, Enum):
    """Classification of error types for retry decisions."""

    TRANSIENT = "transient"  # Network issues, missing quotes - should retry
    PERMANENT = "permanent"  # Bad config, auth failure, rejection - should NOT retry
    UNKNOWN = "unknown"


class JanusError(Exception):
    """Base exception for all Janus errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


class TransientError(JanusError):
    """Error that may succeed on retry."""

    category = ErrorCategory.TRANSIENT


class NetworkError(TransientError):
    """Network-related transient error."""

    pass


class QuoteUnavailableError(TransientError):
    """Best bid could not be read for a token."""

    def __init__(self, token_id: str, cause: Optional[Exception] = None):
        super().__init__(f"Quote unavailable for token {token_id}", cause)
        self.token_id = token_id


class PermanentError(JanusError):
    """Error that will NOT succeed on retry."""

    category = ErrorCategory.PERMANENT


class ConfigurationError(PermanentError):
    """Configuration is missing or invalid - fatal to the run."""

    pass


class AuthenticationError(PermanentError):
    """Trading session could not be established."""

    pass


class ResourceNotFoundError(PermanentError):
    """Requested resource does not exist."""

    pass


class MarketLookupError(ResourceNotFoundError):
    """A single slug lookup failed or returned nothing."""

    def __init__(self, slug: str, cause: Optional[Exception] = None):
        super().__init__(f"No market for slug {slug}", cause)
        self.slug = slug


class MarketNotFoundError(ResourceNotFoundError):
    """No acceptable market after exhausting every prefix and fallback."""

    def __init__(self, asset: str, prefixes: Sequence[str]):
        super().__init__(
            f"Could not find active {asset} 15-minute up/down market "
            f"(tried: {', '.join(prefixes)})"
        )
        self.asset = asset
        self.prefixes = tuple(prefixes)


class OrderSubmissionError(PermanentError):
    """Order signing, submission or acknowledgment failed."""

    def __init__(
        self,
        message: str,
        token_id: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause)
        self.token_id = token_id


class OrderStateUnknownError(OrderSubmissionError):
    """Submission timed out; the venue may still have accepted the order."""

    pass


def is_retryable(error: Exception) -> bool:
    """Check whether an error is worth retrying.

    Unclassified exceptions are treated as transient.
    """
    if isinstance(error, JanusError):
        return error.category != ErrorCategory.PERMANENT
    return True
