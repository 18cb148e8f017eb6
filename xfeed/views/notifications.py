"""
Notifications view with an unread count derived from the first page.

The watermark (``unread_sort_index``) is taken from the first page of each
refresh only. Pages appended by ``load_more`` never change the count: the
watermark is fixed for the session once observed.
"""

from __future__ import annotations

from xfeed.models import Notification, sort_key
from xfeed.rate_limit import RateLimitGate
from xfeed.result import Page, Result
from xfeed.services.feed_service import FeedService
from xfeed.views.base import ListView


def count_unread(items: tuple[Notification, ...], watermark: str | None) -> int:
    """Number of entries whose sort index is strictly above the watermark."""

    if not watermark:
        return 0
    threshold = sort_key(watermark)
    return sum(1 for item in items if item.sort_key > threshold)


class NotificationsView(ListView[Notification]):
    def __init__(
        self,
        service: FeedService,
        *,
        read_marker: str | None = None,
        gate: RateLimitGate | None = None,
    ) -> None:
        self.service = service
        self._read_marker = read_marker
        self._unread_count = 0
        self._unread_sort_index: str | None = None
        super().__init__(gate=gate)

    @property
    def unread_count(self) -> int:
        return self._unread_count

    @property
    def unread_sort_index(self) -> str | None:
        return self._unread_sort_index

    @property
    def read_marker(self) -> str | None:
        return self._read_marker

    async def fetch(self, cursor: str | None) -> Result[Page[Notification]]:
        return await self.service.notifications(cursor, read_marker=self._read_marker)

    def on_first_page(self, page: Page[Notification]) -> None:
        self._unread_sort_index = page.watermark
        self._unread_count = count_unread(page.items, page.watermark)
        if page.items:
            # Everything shown now counts as read for the next refresh.
            newest = max(page.items, key=lambda item: item.sort_key)
            self._read_marker = newest.sort_index
