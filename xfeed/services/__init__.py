"""
Service layer modules orchestrate feed workflows (timeline, bookmarks,
notifications, replies) on top of the lower-level client adapters.
"""

from xfeed.services.feed_service import FeedService

__all__ = ["FeedService"]
