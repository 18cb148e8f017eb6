from __future__ import annotations

from types import SimpleNamespace

import pytest

from xfeed.exceptions import AuthenticationError, RateLimitExceeded
from xfeed.models import Notification, Post
from xfeed.result import ApiErrorType, Err, Ok
from xfeed.services.feed_service import EXPANSIONS, TWEET_FIELDS, USER_FIELDS, FeedService


def response(*ids: str, next_token: str | None = None, author: str = "10"):
    meta = {"result_count": len(ids)}
    if next_token:
        meta["next_token"] = next_token
    return SimpleNamespace(
        data=[{"id": post_id, "text": f"post {post_id}", "author_id": author} for post_id in ids] or None,
        includes={"users": [{"id": author, "username": "ada", "name": "Ada"}]},
        meta=meta,
    )


class FakeClient:
    def __init__(self, result=None) -> None:
        self.result = result if result is not None else response("1", "2", next_token="t2")
        self.calls: list[tuple[str, tuple, dict]] = []

    def _answer(self, name, args, kwargs):
        self.calls.append((name, args, kwargs))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    def get_home_timeline(self, **kwargs):
        return self._answer("get_home_timeline", (), kwargs)

    def get_bookmarks(self, **kwargs):
        return self._answer("get_bookmarks", (), kwargs)

    def get_users_mentions(self, **kwargs):
        return self._answer("get_users_mentions", (), kwargs)

    def search_recent_tweets(self, query, **kwargs):
        return self._answer("search_recent_tweets", (query,), kwargs)


@pytest.mark.asyncio
async def test_home_timeline_builds_page() -> None:
    client = FakeClient()
    service = FeedService(client, page_size=20)

    result = await service.home_timeline()

    assert isinstance(result, Ok)
    page = result.value
    assert [post.id for post in page.items] == ["1", "2"]
    assert all(isinstance(post, Post) for post in page.items)
    assert page.items[0].author.username == "ada"
    assert page.next_cursor == "t2"
    assert client.calls == [
        (
            "get_home_timeline",
            (),
            {
                "max_results": 20,
                "expansions": EXPANSIONS,
                "tweet_fields": TWEET_FIELDS,
                "user_fields": USER_FIELDS,
            },
        )
    ]


@pytest.mark.asyncio
async def test_home_timeline_passes_cursor_and_exclude() -> None:
    client = FakeClient(response("3"))
    service = FeedService(client, page_size=500)

    result = await service.home_timeline("t2", exclude=["replies"])

    _, _, kwargs = client.calls[0]
    assert kwargs["pagination_token"] == "t2"
    assert kwargs["exclude"] == ["replies"]
    assert kwargs["max_results"] == 100
    assert result.value.next_cursor is None


@pytest.mark.asyncio
async def test_empty_response_is_empty_page() -> None:
    service = FeedService(FakeClient(SimpleNamespace(data=None, includes=None, meta={"result_count": 0})))

    result = await service.bookmarks()

    assert result.value.items == ()
    assert result.value.next_cursor is None


@pytest.mark.asyncio
async def test_replies_search_conversation_with_next_token() -> None:
    client = FakeClient()
    service = FeedService(client, page_size=5)

    await service.replies("99", "n1")

    name, args, kwargs = client.calls[0]
    assert name == "search_recent_tweets"
    assert args == ("conversation_id:99",)
    assert kwargs["next_token"] == "n1"
    assert "pagination_token" not in kwargs
    assert kwargs["max_results"] == 10


@pytest.mark.asyncio
async def test_notifications_carry_read_marker_on_first_page_only() -> None:
    client = FakeClient(response("30", "20", next_token="m2"))
    service = FeedService(client, page_size=1)

    first = await service.notifications(read_marker="25")
    later = await service.notifications("m2", read_marker="25")

    assert all(isinstance(item, Notification) for item in first.value.items)
    assert [item.sort_index for item in first.value.items] == ["30", "20"]
    assert first.value.items[0].message == "@ada mentioned you"
    assert first.value.watermark == "25"
    assert later.value.watermark is None
    assert client.calls[0][2]["max_results"] == 5


@pytest.mark.asyncio
async def test_rate_limit_exception_becomes_err() -> None:
    service = FeedService(FakeClient(RateLimitExceeded("slow", retry_after=12)))

    result = await service.home_timeline()

    assert isinstance(result, Err)
    assert result.error.type is ApiErrorType.RATE_LIMIT
    assert result.error.retry_after == 12


@pytest.mark.asyncio
async def test_rate_limit_without_headers_uses_configured_default() -> None:
    service = FeedService(FakeClient(RateLimitExceeded("slow")), default_retry_after=60)

    result = await service.notifications()

    assert result.error.retry_after == 60


@pytest.mark.asyncio
async def test_auth_exception_becomes_err() -> None:
    service = FeedService(FakeClient(AuthenticationError("expired", code=401)))

    result = await service.replies("1")

    assert isinstance(result, Err)
    assert result.error.type is ApiErrorType.AUTH
    assert result.error.status_code == 401


@pytest.mark.asyncio
async def test_malformed_payload_becomes_unknown_err() -> None:
    malformed = SimpleNamespace(data=[{"text": "no id"}], includes={}, meta={})
    service = FeedService(FakeClient(malformed))

    posts = await service.bookmarks()
    mentions = await service.notifications()

    for result in (posts, mentions):
        assert isinstance(result, Err)
        assert result.error.type is ApiErrorType.UNKNOWN
        assert result.error.message == "Unexpected response from X."


@pytest.mark.asyncio
async def test_unexpected_exceptions_propagate() -> None:
    service = FeedService(FakeClient(KeyError("boom")))

    with pytest.raises(KeyError):
        await service.bookmarks()
