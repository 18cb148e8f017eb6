"""
Shared plumbing for list views built on the paginated fetch engine.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, Hashable, TypeVar

from xfeed.engine import EngineState, PaginatedFetchEngine, Subscriber
from xfeed.rate_limit import CountdownTimer, RateLimitGate
from xfeed.result import Page, Result

T = TypeVar("T")


def countdown_gate(interval: float = 1.0) -> RateLimitGate:
    return RateLimitGate(CountdownTimer(interval=interval))


class ListView(Generic[T]):
    """
    A list view supplies ``fetch`` and ``get_id``; the engine does the rest.

    ``open`` mirrors mounting the view (first fetch), ``close`` mirrors
    unmounting it (pending results dropped, countdown stopped).
    """

    def __init__(
        self,
        *,
        dependency_key: Hashable = None,
        gate: RateLimitGate | None = None,
    ) -> None:
        self.engine: PaginatedFetchEngine[T] = PaginatedFetchEngine(
            self.fetch,
            self.get_id,
            dependency_key=dependency_key,
            on_first_page=self.on_first_page,
            gate=gate,
        )

    async def fetch(self, cursor: str | None) -> Result[Page[T]]:
        raise NotImplementedError

    def get_id(self, item: T) -> str:
        return item.id  # type: ignore[attr-defined]

    def on_first_page(self, page: Page[T]) -> None:
        """Hook for view-specific post-processing of a refresh result."""

    @property
    def state(self) -> EngineState[T]:
        return self.engine.state

    @property
    def items(self) -> tuple[T, ...]:
        return self.engine.items

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.engine.subscribe(callback)

    def open(self) -> asyncio.Task[None] | None:
        return self.engine.refresh()

    def refresh(self) -> asyncio.Task[None] | None:
        return self.engine.refresh()

    def load_more(self) -> asyncio.Task[None] | None:
        return self.engine.load_more()

    async def wait_idle(self) -> None:
        await self.engine.wait_idle()

    def close(self) -> None:
        self.engine.close()
