"""
Thin wrapper around tweepy.Client to present a consistent interface.
"""

from __future__ import annotations

from typing import Any, Callable

import requests
import tweepy

from xfeed.exceptions import (
    ApiResponseError,
    AuthenticationError,
    NetworkError,
    RateLimitExceeded,
    XFeedError,
)
from xfeed.logging import get_logger
from xfeed.rate_limit import RateLimitInfo
from xfeed.result import ApiErrorType, classify_http_status

TweepyException = tweepy.errors.TweepyException
TooManyRequests = tweepy.errors.TooManyRequests
Unauthorized = tweepy.errors.Unauthorized
Forbidden = tweepy.errors.Forbidden

logger = get_logger(__name__)


class TweepyClient:
    """Wrapper that converts tweepy and requests failures into domain exceptions."""

    def __init__(
        self,
        client: tweepy.Client,
        *,
        user_auth: bool = True,
        on_session_expired: Callable[[], None] | None = None,
    ) -> None:
        self._client = client
        self._user_auth = user_auth
        self._on_session_expired = on_session_expired
        self._user_id: str | None = None

    @property
    def user_auth(self) -> bool:
        return self._user_auth

    def get_me_id(self) -> str:
        """Return the authenticated user's id, resolving it once per client."""

        if self._user_id is None:
            response = self._invoke("get_me", user_auth=self._user_auth)
            data = getattr(response, "data", None)
            user_id = getattr(data, "id", None)
            if user_id is None and isinstance(data, dict):
                user_id = data.get("id")
            if user_id is None:
                raise ApiResponseError("Unable to resolve the authenticated user.")
            self._user_id = str(user_id)
        return self._user_id

    def get_home_timeline(self, **kwargs: Any) -> Any:
        return self._invoke("get_home_timeline", user_auth=self._user_auth, **kwargs)

    def get_bookmarks(self, **kwargs: Any) -> Any:
        # Bookmarks only accept OAuth 2.0 user context tokens.
        return self._invoke("get_bookmarks", **kwargs)

    def get_users_mentions(self, **kwargs: Any) -> Any:
        return self._invoke(
            "get_users_mentions", self.get_me_id(), user_auth=self._user_auth, **kwargs
        )

    def search_recent_tweets(self, query: str, **kwargs: Any) -> Any:
        return self._invoke("search_recent_tweets", query, user_auth=self._user_auth, **kwargs)

    def _invoke(self, method_name: str, *args: Any, **kwargs: Any) -> Any:
        method = getattr(self._client, method_name, None)
        if method is None:
            raise AttributeError(f"tweepy.Client has no attribute '{method_name}'.")

        try:
            return method(*args, **kwargs)
        except (TweepyException, requests.RequestException) as exc:
            raise self._convert_exception(exc) from exc

    def _convert_exception(self, exc: Exception) -> XFeedError:
        if isinstance(exc, requests.RequestException):
            return NetworkError(str(exc) or "Could not reach the X API.")

        message = str(exc) or "Unhandled Tweepy exception."
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)

        if isinstance(exc, TooManyRequests) or status == 429:
            info = RateLimitInfo.from_headers(getattr(response, "headers", None))
            return RateLimitExceeded(
                message, reset_at=info.reset_at, retry_after=info.retry_after
            )

        if isinstance(exc, (Unauthorized, Forbidden)) or (
            classify_http_status(status, message) is ApiErrorType.AUTH
        ):
            self._notify_session_expired()
            return AuthenticationError(message, code=status)

        api_codes = getattr(exc, "api_codes", None)
        code: int | None = status or (api_codes[0] if api_codes else None)
        return ApiResponseError(message, code=code)

    def _notify_session_expired(self) -> None:
        logger.warning("X rejected the session credentials.")
        if self._on_session_expired is not None:
            self._on_session_expired()
