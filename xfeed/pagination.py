"""
Cursor, seen-id set and ordered item list for one paginated list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, TypeVar

from xfeed.result import Page

T = TypeVar("T")


@dataclass(slots=True)
class PaginationState(Generic[T]):
    """
    Deduplicated, append-only item list plus its continuation cursor.

    ``items`` never holds two entries with the same id and ``seen_ids`` is
    exactly the set of ids in ``items``. ``has_more`` is only True while a
    cursor is held and the last page contributed at least one new item.
    """

    get_id: Callable[[T], str]
    items: list[T] = field(default_factory=list)
    seen_ids: set[str] = field(default_factory=set)
    cursor: str | None = None
    has_more: bool = False

    def reset(self) -> None:
        self.items = []
        self.seen_ids = set()
        self.cursor = None
        self.has_more = False

    def replace(self, page: Page[T]) -> list[T]:
        """Start over from a first page, dropping duplicates within it."""

        self.reset()
        return self._absorb(page)

    def extend(self, page: Page[T]) -> list[T]:
        """Append the items of a follow-up page that have not been seen yet."""

        return self._absorb(page)

    def exhaust(self) -> None:
        """Stop pagination until the next reset, keeping the items."""

        self.has_more = False

    def remove(self, item_id: str) -> bool:
        if item_id not in self.seen_ids:
            return False
        self.items = [item for item in self.items if self.get_id(item) != item_id]
        self.seen_ids.discard(item_id)
        return True

    def _absorb(self, page: Page[T]) -> list[T]:
        fresh = list(self._unseen(page.items))
        self.items.extend(fresh)
        self.cursor = page.next_cursor or None
        self.has_more = self.cursor is not None and bool(fresh)
        return fresh

    def _unseen(self, items: Iterable[T]) -> Iterable[T]:
        for item in items:
            item_id = self.get_id(item)
            if item_id in self.seen_ids:
                continue
            self.seen_ids.add(item_id)
            yield item
