"""
Typed fetch results and the API error taxonomy consumed by every list view.

Fetchers never raise past their boundary: each call resolves to either
``Ok(page)`` or ``Err(api_error)``. ``ApiError.type`` is one of the literal
tags ``auth``, ``rate_limit``, ``network`` and ``unknown``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union

from xfeed.exceptions import (
    ApiResponseError,
    AuthenticationError,
    NetworkError,
    RateLimitExceeded,
)

T = TypeVar("T")

# X resets most timeline windows every 15 minutes.
DEFAULT_RETRY_AFTER = 900

NETWORK_HINTS = (
    "network",
    "enotfound",
    "econnrefused",
    "econnreset",
    "etimedout",
    "connection",
    "socket",
    "timeout",
    "timed out",
    "abort",
)


class ApiErrorType(str, Enum):
    """Closed set of failure categories surfaced to list views."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    UNKNOWN = "unknown"


API_ERROR_MESSAGES: dict[ApiErrorType, str] = {
    ApiErrorType.AUTH: "Session expired. Please log into x.com and restart xfeed.",
    ApiErrorType.RATE_LIMIT: "Rate limited by X. Please wait before trying again.",
    ApiErrorType.NETWORK: "Network error. Check your connection and try again.",
    ApiErrorType.UNKNOWN: "Something went wrong. Please try again.",
}


@dataclass(frozen=True, slots=True)
class ApiError:
    """Structured API failure with type discrimination."""

    type: ApiErrorType
    message: str
    status_code: int | None = None
    retry_after: int | None = None
    rate_limit_reset: int | None = None

    @classmethod
    def of(cls, error_type: ApiErrorType, message: str | None = None, **kwargs) -> "ApiError":
        return cls(
            type=error_type,
            message=message or API_ERROR_MESSAGES[error_type],
            **kwargs,
        )

    @property
    def is_retryable(self) -> bool:
        return is_retryable_error(self.type)

    @property
    def is_auth(self) -> bool:
        return is_auth_error(self.type)


def is_retryable_error(error_type: ApiErrorType) -> bool:
    return error_type in (ApiErrorType.NETWORK, ApiErrorType.RATE_LIMIT)


def is_auth_error(error_type: ApiErrorType) -> bool:
    """Auth failures are terminal for the current client and require re-login."""

    return error_type is ApiErrorType.AUTH


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One fetched page: items in response order plus the continuation cursor."""

    items: tuple[T, ...] = ()
    next_cursor: str | None = None
    watermark: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    error: ApiError

    @property
    def success(self) -> bool:
        return False


Result = Union[Ok[T], Err]
FetchPage = Callable[[Optional[str]], Awaitable[Result[Page[T]]]]


def classify_http_status(status: int | None, body: str = "") -> ApiErrorType:
    """Classify an HTTP failure by status code, falling back to the body text."""

    if status == 429:
        return ApiErrorType.RATE_LIMIT
    if status in (401, 403):
        return ApiErrorType.AUTH

    lowered = body.lower()
    if "rate limit" in lowered or "too many requests" in lowered:
        return ApiErrorType.RATE_LIMIT
    if any(hint in lowered for hint in ("unauthorized", "forbidden", "bad authentication")):
        return ApiErrorType.AUTH
    return ApiErrorType.UNKNOWN


def retry_after_seconds(
    *,
    retry_after: int | None = None,
    reset_at: int | None = None,
    now: datetime | None = None,
    default: int = DEFAULT_RETRY_AFTER,
) -> int:
    """
    Resolve how long to wait before retrying a rate limited request.

    ``Retry-After`` wins over ``x-rate-limit-reset``; when neither is known the
    typical 15 minute window is assumed. A reset time already in the past
    yields 0, which arms no countdown.
    """

    if retry_after is not None and retry_after > 0:
        return int(retry_after)
    if reset_at is not None:
        current = (now or datetime.now(timezone.utc)).timestamp()
        return max(math.ceil(reset_at - current), 0)
    return default


def api_error_from_exception(
    exc: BaseException,
    *,
    now: datetime | None = None,
    default_retry_after: int = DEFAULT_RETRY_AFTER,
) -> ApiError:
    """Convert a domain (or stray) exception into an ``ApiError`` value."""

    if isinstance(exc, RateLimitExceeded):
        return ApiError.of(
            ApiErrorType.RATE_LIMIT,
            status_code=429,
            retry_after=retry_after_seconds(
                retry_after=exc.retry_after,
                reset_at=exc.reset_at,
                now=now,
                default=default_retry_after,
            ),
            rate_limit_reset=exc.reset_at,
        )

    if isinstance(exc, AuthenticationError):
        return ApiError.of(ApiErrorType.AUTH, status_code=exc.code)

    if isinstance(exc, NetworkError):
        return ApiError.of(ApiErrorType.NETWORK)

    if isinstance(exc, ApiResponseError):
        return _from_response_error(exc, default_retry_after)

    if isinstance(exc, (TimeoutError, ConnectionError)):
        return ApiError.of(ApiErrorType.NETWORK)

    message = str(exc) or type(exc).__name__
    if any(hint in message.lower() for hint in NETWORK_HINTS):
        return ApiError.of(ApiErrorType.NETWORK)
    return ApiError.of(ApiErrorType.UNKNOWN, f"Request failed: {message}")


def _from_response_error(exc: ApiResponseError, default_retry_after: int) -> ApiError:
    status = exc.code
    error_type = classify_http_status(status, str(exc))
    if error_type is ApiErrorType.RATE_LIMIT:
        return ApiError.of(error_type, status_code=status, retry_after=default_retry_after)
    if error_type is ApiErrorType.AUTH:
        return ApiError.of(error_type, status_code=status)

    if status == 404:
        message = "Content not found or has been deleted."
    elif status is not None and 500 <= status < 600:
        message = "X is temporarily unavailable. Please try again later."
    elif status is not None:
        message = f"Request failed ({status}): {str(exc)[:100]}"
    else:
        message = f"Request failed: {exc}"
    return ApiError.of(ApiErrorType.UNKNOWN, message, status_code=status)
