"""
Home timeline view with optional reply/repost filtering.
"""

from __future__ import annotations

import asyncio
from typing import Iterable

from xfeed.models import Post
from xfeed.rate_limit import RateLimitGate
from xfeed.result import Page, Result
from xfeed.services.feed_service import FeedService
from xfeed.views.base import ListView

TIMELINE_EXCLUDES = frozenset({"replies", "retweets"})


def _normalize(exclude: Iterable[str] | None) -> frozenset[str]:
    values = frozenset(exclude or ())
    unknown = values - TIMELINE_EXCLUDES
    if unknown:
        raise ValueError(f"Unsupported timeline filter(s): {', '.join(sorted(unknown))}.")
    return values


class TimelineView(ListView[Post]):
    """Reverse-chronological home timeline; changing the filter refetches."""

    def __init__(
        self,
        service: FeedService,
        *,
        exclude: Iterable[str] | None = None,
        gate: RateLimitGate | None = None,
    ) -> None:
        self.service = service
        self._exclude = _normalize(exclude)
        super().__init__(dependency_key=self._exclude, gate=gate)

    @property
    def exclude(self) -> frozenset[str]:
        return self._exclude

    def set_exclude(self, exclude: Iterable[str] | None) -> asyncio.Task[None] | None:
        self._exclude = _normalize(exclude)
        return self.engine.set_dependency_key(self._exclude)

    async def fetch(self, cursor: str | None) -> Result[Page[Post]]:
        return await self.service.home_timeline(cursor, exclude=sorted(self._exclude))
