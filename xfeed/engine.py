"""
Paginated fetch engine shared by every list view.

The engine owns one ``PaginationState`` and one ``RateLimitGate`` and drives
an injected ``fetch_page(cursor)`` coroutine. State transitions happen
synchronously on the event loop; the only suspension point is the await on
``fetch_page``. Every operation is stamped with a generation number so that a
result arriving after a newer ``refresh`` (or after ``close``) is discarded
instead of overwriting newer state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, Hashable, TypeVar

from xfeed.logging import get_logger
from xfeed.pagination import PaginationState
from xfeed.rate_limit import RateLimitGate
from xfeed.result import (
    ApiError,
    Err,
    FetchPage,
    Ok,
    Page,
    Result,
    api_error_from_exception,
)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class EngineState(Generic[T]):
    """Immutable snapshot handed to the rendering layer."""

    items: tuple[T, ...] = ()
    loading: bool = False
    loading_more: bool = False
    has_more: bool = False
    error: str | None = None
    api_error: ApiError | None = None
    retry_blocked: bool = False
    retry_countdown: int = 0


Subscriber = Callable[[EngineState[Any]], None]


class PaginatedFetchEngine(Generic[T]):
    """Refresh / load-more orchestration with dedup and rate limit gating."""

    def __init__(
        self,
        fetch_page: FetchPage[T],
        get_id: Callable[[T], str],
        *,
        dependency_key: Hashable = None,
        on_first_page: Callable[[Page[T]], None] | None = None,
        gate: RateLimitGate | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._fetch_page = fetch_page
        self._pagination: PaginationState[T] = PaginationState(get_id)
        self._gate = gate or RateLimitGate()
        self._gate.on_change = self._on_countdown
        self._dependency_key = dependency_key
        self._on_first_page = on_first_page
        self._logger = logger or get_logger(__name__)

        self._generation = 0
        self._refresh_task: asyncio.Task[None] | None = None
        self._load_more_task: asyncio.Task[None] | None = None
        self._loading = False
        self._loading_more = False
        self._api_error: ApiError | None = None
        self._subscribers: list[Subscriber] = []
        self._closed = False
        self._state: EngineState[T] = self._build_state()

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> EngineState[T]:
        return self._state

    @property
    def items(self) -> tuple[T, ...]:
        return self._state.items

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def loading_more(self) -> bool:
        return self._loading_more

    @property
    def has_more(self) -> bool:
        return self._pagination.has_more

    @property
    def cursor(self) -> str | None:
        return self._pagination.cursor

    @property
    def seen_ids(self) -> frozenset[str]:
        return frozenset(self._pagination.seen_ids)

    @property
    def error(self) -> str | None:
        return self._api_error.message if self._api_error else None

    @property
    def api_error(self) -> ApiError | None:
        return self._api_error

    @property
    def retry_blocked(self) -> bool:
        return self._gate.blocked

    @property
    def retry_countdown(self) -> int:
        return self._gate.countdown

    @property
    def dependency_key(self) -> Hashable:
        return self._dependency_key

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with every new ``EngineState``."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def refresh(self) -> asyncio.Task[None] | None:
        """
        Discard the current list and fetch the first page again.

        Ignored (returns None) while a rate limit countdown is running or
        after ``close``. A refresh issued while another fetch is outstanding
        supersedes it. Must be called from a running event loop.
        """

        if self._closed:
            return None
        if self._gate.blocked:
            self._logger.debug(
                "Refresh ignored while rate limited (%ds remaining).", self._gate.countdown
            )
            return None
        return self._start_refresh()

    def load_more(self) -> asyncio.Task[None] | None:
        """
        Fetch the page after the current cursor and append unseen items.

        Returns None without fetching when there is no cursor, nothing more
        to load, or a fetch is already in flight.
        """

        if self._closed or self._loading or self._loading_more:
            return None
        cursor = self._pagination.cursor
        if cursor is None or not self._pagination.has_more:
            return None

        generation = self._generation
        self._loading_more = True
        task = asyncio.get_running_loop().create_task(self._run_load_more(generation, cursor))
        self._load_more_task = task
        self._publish()
        return task

    def set_dependency_key(self, key: Hashable) -> asyncio.Task[None] | None:
        """Reset and refetch when the subject of the list changes."""

        if self._closed or key == self._dependency_key:
            return None
        self._dependency_key = key
        return self._start_refresh()

    def reset(self) -> None:
        """Clear items and pagination without fetching."""

        self._generation += 1
        self._cancel_inflight()
        self._pagination.reset()
        self._loading = False
        self._loading_more = False
        self._api_error = None
        self._publish()

    def remove_item(self, item_id: str) -> bool:
        removed = self._pagination.remove(item_id)
        if removed:
            self._publish()
        return removed

    def close(self) -> None:
        """Tear down: stop the countdown and discard any pending results."""

        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._cancel_inflight()
        self._loading = False
        self._loading_more = False
        self._gate.close()
        self._subscribers.clear()

    async def wait_idle(self) -> None:
        """Wait until no refresh or load-more task is outstanding."""

        while True:
            pending = [
                task
                for task in (self._refresh_task, self._load_more_task)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            results = await asyncio.gather(*pending, return_exceptions=True)
            for outcome in results:
                if isinstance(outcome, Exception):
                    raise outcome

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_refresh(self) -> asyncio.Task[None]:
        self._generation += 1
        generation = self._generation
        self._cancel_inflight()
        self._pagination.reset()
        self._loading = True
        self._loading_more = False
        self._api_error = None
        task = asyncio.get_running_loop().create_task(self._run_refresh(generation))
        self._refresh_task = task
        self._publish()
        return task

    async def _run_refresh(self, generation: int) -> None:
        result = await self._call_fetch(None)
        if not self._is_current(generation):
            self._logger.debug("Discarding superseded refresh result (generation %d).", generation)
            return

        self._refresh_task = None
        self._loading = False
        try:
            if isinstance(result, Ok):
                page = result.value
                fresh = self._pagination.replace(page)
                self._notify_first_page(replace(page, items=tuple(fresh)))
                self._gate.clear()
            else:
                self._pagination.exhaust()
                self._record_failure(result.error)
        finally:
            self._publish()

    async def _run_load_more(self, generation: int, cursor: str) -> None:
        result = await self._call_fetch(cursor)
        if not self._is_current(generation):
            self._logger.debug("Discarding stale load-more result for cursor %r.", cursor)
            return

        self._load_more_task = None
        self._loading_more = False
        try:
            if isinstance(result, Ok):
                self._pagination.extend(result.value)
                self._api_error = None
                self._gate.clear()
            else:
                self._pagination.exhaust()
                self._record_failure(result.error)
        finally:
            self._publish()

    async def _call_fetch(self, cursor: str | None) -> Result[Page[T]]:
        try:
            return await self._fetch_page(cursor)
        except Exception as exc:
            self._logger.exception("Fetch for cursor %r raised instead of returning an error.", cursor)
            return Err(api_error_from_exception(exc))

    def _notify_first_page(self, page: Page[T]) -> None:
        """Run the first-page hook with the deduplicated page; its failures stay here."""

        if self._on_first_page is None:
            return
        try:
            self._on_first_page(page)
        except Exception:
            self._logger.exception("First-page hook failed; keeping the fetched items.")

    def _record_failure(self, error: ApiError) -> None:
        self._api_error = error
        self._logger.warning("Fetch failed (%s): %s", error.type.value, error.message)
        if self._gate.arm(error):
            self._logger.info("Rate limited; refresh blocked for %ds.", error.retry_after)

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    def _cancel_inflight(self) -> None:
        for task in (self._refresh_task, self._load_more_task):
            if task is not None and not task.done():
                task.cancel()
        self._refresh_task = None
        self._load_more_task = None

    def _on_countdown(self, remaining: int) -> None:
        self._publish()

    def _build_state(self) -> EngineState[T]:
        return EngineState(
            items=tuple(self._pagination.items),
            loading=self._loading,
            loading_more=self._loading_more,
            has_more=self._pagination.has_more,
            error=self.error,
            api_error=self._api_error,
            retry_blocked=self._gate.blocked,
            retry_countdown=self._gate.countdown,
        )

    def _publish(self) -> None:
        if self._closed:
            return
        state = self._build_state()
        if state == self._state:
            return
        self._state = state
        for callback in list(self._subscribers):
            callback(state)
