"""Mock responses for X API v2 integration tests."""

from __future__ import annotations

API_BASE = "https://api.twitter.com/2"

# OAuth 1.0a access tokens are prefixed with the owning user's id.
USER_ID = "123456"
ACCESS_TOKEN = f"{USER_ID}-test_access_token"

HOME_TIMELINE_URL = f"{API_BASE}/users/{USER_ID}/timelines/reverse_chronological"
MENTIONS_URL = f"{API_BASE}/users/{USER_ID}/mentions"
ME_URL = f"{API_BASE}/users/me"
SEARCH_RECENT_URL = f"{API_BASE}/tweets/search/recent"

AUTHORS = [
    {"id": "111", "name": "Ada", "username": "ada"},
    {"id": "222", "name": "Grace", "username": "grace"},
]


def _tweet(tweet_id: str, text: str, author_id: str = "111", **extra) -> dict:
    return {
        "id": tweet_id,
        "text": text,
        "author_id": author_id,
        "edit_history_tweet_ids": [tweet_id],
        **extra,
    }


TIMELINE_PAGE_1 = {
    "data": [
        _tweet("1003", "Newest post"),
        _tweet("1002", "Second post", author_id="222"),
    ],
    "includes": {"users": AUTHORS},
    "meta": {"result_count": 2, "newest_id": "1003", "oldest_id": "1002", "next_token": "page2"},
}

# Overlaps with page 1: the timeline shifted between requests.
TIMELINE_PAGE_2 = {
    "data": [
        _tweet("1002", "Second post", author_id="222"),
        _tweet("1001", "Oldest post"),
    ],
    "includes": {"users": AUTHORS},
    "meta": {"result_count": 2, "newest_id": "1002", "oldest_id": "1001"},
}

ME_RESPONSE = {"data": {"id": USER_ID, "name": "Me", "username": "me"}}

MENTIONS_RESPONSE = {
    "data": [
        _tweet("2005", "@me hello", author_id="222"),
        _tweet("2001", "@me older"),
    ],
    "includes": {"users": AUTHORS},
    "meta": {"result_count": 2, "newest_id": "2005", "oldest_id": "2001"},
}

CONVERSATION_RESPONSE = {
    "data": [
        _tweet("3002", "a reply", author_id="222", conversation_id="3000"),
        _tweet("3000", "the root post", conversation_id="3000"),
    ],
    "includes": {"users": AUTHORS},
    "meta": {"result_count": 2},
}

# Rate limit error response
RATE_LIMIT_ERROR_RESPONSE = {
    "title": "Too Many Requests",
    "detail": "Too Many Requests",
    "type": "about:blank",
    "status": 429,
}

UNAUTHORIZED_RESPONSE = {
    "title": "Unauthorized",
    "type": "about:blank",
    "status": 401,
    "detail": "Unauthorized",
}
