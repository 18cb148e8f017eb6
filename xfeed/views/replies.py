"""
Replies to a single post, keyed by the post's conversation.
"""

from __future__ import annotations

import asyncio

from xfeed.models import Post
from xfeed.rate_limit import RateLimitGate
from xfeed.result import Err, Ok, Page, Result
from xfeed.services.feed_service import FeedService
from xfeed.views.base import ListView


class RepliesView(ListView[Post]):
    """Switching the subject post resets the list and fetches the new thread."""

    def __init__(
        self,
        service: FeedService,
        post_id: str,
        *,
        gate: RateLimitGate | None = None,
    ) -> None:
        self.service = service
        self._post_id = post_id
        super().__init__(dependency_key=post_id, gate=gate)

    @property
    def post_id(self) -> str:
        return self._post_id

    def set_subject(self, post_id: str) -> asyncio.Task[None] | None:
        self._post_id = post_id
        return self.engine.set_dependency_key(post_id)

    async def fetch(self, cursor: str | None) -> Result[Page[Post]]:
        post_id = self._post_id
        result = await self.service.replies(post_id, cursor)
        if isinstance(result, Err):
            return result
        page = result.value
        # The conversation search also matches the root post itself.
        return Ok(
            Page(
                items=tuple(post for post in page.items if post.id != post_id),
                next_cursor=page.next_cursor,
            )
        )
