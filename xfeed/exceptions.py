"""
Domain specific exception hierarchy for the xfeed package.
"""

class XFeedError(Exception):
    """Base exception for all library errors."""


class ConfigurationError(XFeedError):
    """Raised when required configuration or credentials are missing."""


class AuthenticationError(XFeedError):
    """Raised when the session is rejected or the tokens are invalid."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class NetworkError(XFeedError):
    """Raised when the X API cannot be reached (DNS, connection, timeout)."""


class ApiResponseError(XFeedError):
    """Raised when the X API returns an error payload."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class RateLimitExceeded(ApiResponseError):
    """Raised when the X API enforces a rate limit."""

    def __init__(
        self,
        message: str,
        *,
        reset_at: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message, code=429)
        self.reset_at = reset_at
        self.retry_after = retry_after
