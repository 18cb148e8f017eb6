"""
Print a timeline, bookmarks, notifications or a reply thread as plain text.

Usage:
    xfeed timeline --pages 2
    xfeed timeline --exclude replies --exclude retweets
    xfeed bookmarks
    xfeed notifications
    xfeed replies 1234567890

Requirements:
    Set environment variables or create a .env file with:
    - X_API_KEY, X_API_SECRET, X_ACCESS_TOKEN, X_ACCESS_TOKEN_SECRET
    - or X_BEARER_TOKEN holding an OAuth 2.0 user token (required for bookmarks)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence, TextIO

from xfeed.config import ConfigManager, FeedSettings
from xfeed.exceptions import ConfigurationError
from xfeed.factory import XFeedClientFactory
from xfeed.logging import configure_logging, get_logger
from xfeed.models import Notification, Post
from xfeed.services.feed_service import FeedService
from xfeed.views import (
    BookmarksView,
    ListView,
    NotificationsView,
    RepliesView,
    TimelineView,
    countdown_gate,
)

EXIT_OK = 0
EXIT_API_ERROR = 1
EXIT_CONFIG_ERROR = 2

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xfeed", description="Browse your X feed from the terminal")
    parser.add_argument("--dotenv", type=Path, help="Path to .env file (default: ./.env)")
    parser.add_argument(
        "--pages",
        type=int,
        default=1,
        help="Number of pages to load, following the cursor (default: 1)",
    )
    parser.add_argument("--page-size", type=int, help="Items per page (default: XFEED_PAGE_SIZE or 30)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    views = parser.add_subparsers(dest="view", required=True)
    timeline = views.add_parser("timeline", help="Home timeline")
    timeline.add_argument(
        "--exclude",
        action="append",
        choices=["replies", "retweets"],
        help="Hide replies and/or reposts (repeatable)",
    )
    views.add_parser("bookmarks", help="Bookmarked posts")
    views.add_parser("notifications", help="Mentions, with unread count")
    replies = views.add_parser("replies", help="Replies to a post")
    replies.add_argument("post_id", help="ID of the post whose replies to show")
    return parser


def render_post(post: Post) -> str:
    author = post.author.handle if post.author else (post.author_id or "unknown")
    text = (post.text or "").replace("\n", " ")
    return f"[{post.id}] {author}: {text}"


def render_notification(notification: Notification) -> str:
    line = f"[{notification.sort_index}] {notification.message}"
    if notification.target_post and notification.target_post.text:
        line += f" | {notification.target_post.text.replace(chr(10), ' ')}"
    return line


def build_view(
    args: argparse.Namespace,
    service: FeedService,
    settings: FeedSettings,
    *,
    read_marker: str | None = None,
) -> ListView:
    gate = countdown_gate(settings.countdown_interval)
    if args.view == "timeline":
        return TimelineView(service, exclude=args.exclude, gate=gate)
    if args.view == "bookmarks":
        return BookmarksView(service, gate=gate)
    if args.view == "notifications":
        return NotificationsView(service, read_marker=read_marker, gate=gate)
    if args.view == "replies":
        return RepliesView(service, args.post_id, gate=gate)
    raise ValueError(f"Unknown view '{args.view}'.")


async def run(view: ListView, *, pages: int = 1, out: TextIO | None = None) -> int:
    """Open ``view``, follow the cursor for up to ``pages`` pages and print it."""

    if out is None:
        out = sys.stdout

    try:
        view.open()
        await view.wait_idle()
        loaded = 1
        while loaded < pages and view.load_more() is not None:
            await view.wait_idle()
            loaded += 1

        state = view.state
        for item in state.items:
            if isinstance(item, Notification):
                print(render_notification(item), file=out)
            else:
                print(render_post(item), file=out)

        if isinstance(view, NotificationsView) and state.api_error is None:
            print(f"{view.unread_count} unread", file=out)

        if state.api_error is not None:
            print(f"error: {state.error}", file=out)
            if state.retry_blocked:
                print(f"retry available in {state.retry_countdown}s", file=out)
            return EXIT_API_ERROR
        if state.has_more:
            print("(more available: raise --pages)", file=out)
        return EXIT_OK
    finally:
        view.close()


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = ConfigManager(dotenv_path=args.dotenv)
    try:
        settings = config.load_settings()
        configure_logging(debug=args.debug or settings.debug)
        client = XFeedClientFactory.create_from_config(config)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    service = FeedService(
        client,
        page_size=args.page_size or settings.page_size,
        default_retry_after=settings.default_retry_after,
    )
    view = build_view(args, service, settings, read_marker=config.load_read_marker())
    logger.debug("Opening %s view", args.view)
    code = asyncio.run(run(view, pages=max(args.pages, 1)))

    if isinstance(view, NotificationsView) and view.read_marker and view.state.api_error is None:
        config.save_read_marker(view.read_marker)
    return code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
