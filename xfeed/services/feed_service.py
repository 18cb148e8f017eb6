"""
Feed workflows that turn client calls into ``Result`` pages for list views.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Iterable, Protocol

from pydantic import ValidationError

from xfeed.exceptions import XFeedError
from xfeed.logging import get_logger
from xfeed.models import Author, Notification, Post
from xfeed.result import (
    DEFAULT_RETRY_AFTER,
    ApiError,
    ApiErrorType,
    Err,
    Ok,
    Page,
    Result,
    api_error_from_exception,
)

TWEET_FIELDS = [
    "author_id",
    "conversation_id",
    "created_at",
    "in_reply_to_user_id",
    "public_metrics",
]
USER_FIELDS = ["name", "username"]
EXPANSIONS = ["author_id"]

logger = get_logger(__name__)


class FeedClient(Protocol):
    """Protocol subset consumed by the service."""

    def get_home_timeline(self, **kwargs: Any) -> Any:
        ...

    def get_bookmarks(self, **kwargs: Any) -> Any:
        ...

    def get_users_mentions(self, **kwargs: Any) -> Any:
        ...

    def search_recent_tweets(self, query: str, **kwargs: Any) -> Any:
        ...


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _meta(response: Any) -> dict[str, Any]:
    meta = getattr(response, "meta", None)
    return dict(meta) if meta else {}


def _authors(response: Any) -> dict[str, Author]:
    includes = getattr(response, "includes", None) or {}
    authors = (Author.from_api(user) for user in includes.get("users", []))
    return {author.id: author for author in authors}


def _posts(response: Any) -> list[Post]:
    data = getattr(response, "data", None)
    if not data:
        return []
    if not isinstance(data, list):
        data = [data]
    authors = _authors(response)
    return [Post.from_api(item, authors=authors) for item in data]


def _common_params(max_results: int, extra: Iterable[tuple[str, Any]] = ()) -> dict[str, Any]:
    params: dict[str, Any] = {
        "max_results": max_results,
        "expansions": EXPANSIONS,
        "tweet_fields": TWEET_FIELDS,
        "user_fields": USER_FIELDS,
    }
    params.update((key, value) for key, value in extra if value is not None)
    return params


@dataclass(slots=True)
class FeedService:
    """Async, never-raising fetchers for each list view."""

    client: FeedClient
    page_size: int = 30
    default_retry_after: int = DEFAULT_RETRY_AFTER

    async def home_timeline(
        self,
        cursor: str | None = None,
        *,
        exclude: Iterable[str] | None = None,
    ) -> Result[Page[Post]]:
        params = _common_params(
            _clamp(self.page_size, 1, 100),
            [("pagination_token", cursor), ("exclude", list(exclude) if exclude else None)],
        )
        return await self._post_page("get_home_timeline", **params)

    async def bookmarks(self, cursor: str | None = None) -> Result[Page[Post]]:
        params = _common_params(_clamp(self.page_size, 1, 100), [("pagination_token", cursor)])
        return await self._post_page("get_bookmarks", **params)

    async def replies(self, post_id: str, cursor: str | None = None) -> Result[Page[Post]]:
        params = _common_params(_clamp(self.page_size, 10, 100), [("next_token", cursor)])
        query = f"conversation_id:{post_id}"
        return await self._post_page("search_recent_tweets", query, **params)

    async def notifications(
        self,
        cursor: str | None = None,
        *,
        read_marker: str | None = None,
    ) -> Result[Page[Notification]]:
        """
        Mentions of the authenticated user, newest first.

        The first page (``cursor is None``) carries ``read_marker`` as its
        watermark; follow-up pages carry none.
        """

        params = _common_params(_clamp(self.page_size, 5, 100), [("pagination_token", cursor)])
        result = await self._call("get_users_mentions", **params)
        if isinstance(result, Err):
            return result

        response = result.value
        posts = self._parse_posts("get_users_mentions", response)
        if isinstance(posts, Err):
            return posts
        return Ok(
            Page(
                items=tuple(Notification.from_mention(post) for post in posts.value),
                next_cursor=_meta(response).get("next_token"),
                watermark=read_marker if cursor is None else None,
            )
        )

    async def _post_page(self, method_name: str, *args: Any, **params: Any) -> Result[Page[Post]]:
        result = await self._call(method_name, *args, **params)
        if isinstance(result, Err):
            return result
        response = result.value
        posts = self._parse_posts(method_name, response)
        if isinstance(posts, Err):
            return posts
        return Ok(Page(items=tuple(posts.value), next_cursor=_meta(response).get("next_token")))

    def _parse_posts(self, method_name: str, response: Any) -> Result[list[Post]]:
        try:
            return Ok(_posts(response))
        except ValidationError as exc:
            logger.warning("%s returned an unexpected payload: %s", method_name, exc)
            return Err(ApiError.of(ApiErrorType.UNKNOWN, "Unexpected response from X."))

    async def _call(self, method_name: str, *args: Any, **params: Any) -> Result[Any]:
        method = getattr(self.client, method_name)
        try:
            response = await asyncio.to_thread(method, *args, **params)
        except XFeedError as exc:
            error = api_error_from_exception(exc, default_retry_after=self.default_retry_after)
            logger.warning("%s failed (%s): %s", method_name, error.type.value, exc)
            return Err(error)
        return Ok(response)
