"""List views: timeline, bookmarks, notifications and replies."""

from xfeed.views.base import ListView, countdown_gate
from xfeed.views.bookmarks import BookmarksView
from xfeed.views.notifications import NotificationsView, count_unread
from xfeed.views.replies import RepliesView
from xfeed.views.timeline import TimelineView

__all__ = [
    "BookmarksView",
    "ListView",
    "NotificationsView",
    "RepliesView",
    "TimelineView",
    "count_unread",
    "countdown_gate",
]
