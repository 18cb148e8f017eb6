"""
Pydantic models for X API payloads rendered by xfeed list views.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_mapping(payload: Any) -> Mapping[str, Any]:
    if isinstance(payload, Mapping):
        return payload
    if hasattr(payload, "data"):
        return _to_mapping(payload.data)
    if hasattr(payload, "__dict__"):
        return _to_mapping(vars(payload))
    raise TypeError(f"Cannot convert payload of type {type(payload)!r} to mapping.")


def _coerce_id(value: Any) -> str:
    if isinstance(value, (int, float)):
        return str(int(value))
    if isinstance(value, str):
        return value
    raise TypeError("id must be serializable to str.")


class Author(BaseModel):
    """User expanded from ``includes.users``."""

    id: str
    username: str | None = None
    name: str | None = None

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_api(cls, payload: Any) -> "Author":
        return cls.model_validate(dict(_to_mapping(payload)))

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        return _coerce_id(value)

    @property
    def handle(self) -> str:
        return f"@{self.username}" if self.username else self.id


class Post(BaseModel):
    """Normalized representation of a post in a timeline, bookmark list or thread."""

    id: str
    text: str | None = None
    author_id: str | None = None
    author: Author | None = None
    created_at: datetime | None = None
    conversation_id: str | None = None
    in_reply_to_user_id: str | None = None
    public_metrics: dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_api(
        cls,
        payload: Any,
        *,
        authors: Mapping[str, Author] | None = None,
    ) -> "Post":
        data = dict(_to_mapping(payload))
        author_id = data.get("author_id")
        if authors and author_id is not None and "author" not in data:
            data["author"] = authors.get(str(author_id))
        return cls.model_validate(data)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        return _coerce_id(value)

    @property
    def reply_count(self) -> int:
        return self.public_metrics.get("reply_count", 0)

    @property
    def like_count(self) -> int:
        return self.public_metrics.get("like_count", 0)


class Notification(BaseModel):
    """
    Notification entry; ``sort_index`` orders entries and drives unread counts.

    Sort indexes are decimal strings, compared numerically via ``sort_key``.
    """

    id: str
    message: str
    sort_index: str
    icon: str = "reply_icon"
    target_post: Post | None = None
    from_users: list[Author] = Field(default_factory=list)

    @classmethod
    def from_mention(cls, post: Post) -> "Notification":
        actor = post.author.handle if post.author else "Someone"
        return cls(
            id=post.id,
            message=f"{actor} mentioned you",
            sort_index=post.id,
            target_post=post,
            from_users=[post.author] if post.author else [],
        )

    @property
    def sort_key(self) -> tuple[int, str]:
        return sort_key(self.sort_index)


def sort_key(sort_index: str) -> tuple[int, str]:
    """Order decimal sort indexes numerically without overflow concerns."""

    stripped = sort_index.lstrip("0") or "0"
    return (len(stripped), stripped)
