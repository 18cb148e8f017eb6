"""
Bookmarks view.
"""

from __future__ import annotations

from xfeed.models import Post
from xfeed.rate_limit import RateLimitGate
from xfeed.result import Page, Result
from xfeed.services.feed_service import FeedService
from xfeed.views.base import ListView


class BookmarksView(ListView[Post]):
    def __init__(self, service: FeedService, *, gate: RateLimitGate | None = None) -> None:
        self.service = service
        super().__init__(gate=gate)

    async def fetch(self, cursor: str | None) -> Result[Page[Post]]:
        return await self.service.bookmarks(cursor)

    def remove_post(self, post_id: str) -> bool:
        """Drop a post that was unbookmarked elsewhere without refetching."""

        return self.engine.remove_item(post_id)
