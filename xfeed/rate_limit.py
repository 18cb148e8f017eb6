"""
Rate limit metadata parsing plus the countdown gate that blocks refreshes.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping

from xfeed.result import ApiError, ApiErrorType

SleepFn = Callable[[float], Awaitable[None]]
ChangeCallback = Callable[[int], None]


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(slots=True)
class RateLimitInfo:
    """Represents parsed rate limit metadata from X API headers."""

    limit: int | None = None
    remaining: int | None = None
    reset_at: int | None = None
    retry_after: int | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str] | None) -> "RateLimitInfo":
        if not headers:
            return cls()
        lowered = {str(key).lower(): value for key, value in headers.items()}
        return cls(
            limit=_parse_int(lowered.get("x-rate-limit-limit")),
            remaining=_parse_int(lowered.get("x-rate-limit-remaining")),
            reset_at=_parse_int(lowered.get("x-rate-limit-reset")),
            retry_after=_parse_int(lowered.get("retry-after")),
        )


class CountdownTimer:
    """
    Whole-second countdown driven by a task on the running event loop.

    ``start`` replaces any running countdown rather than stacking a second
    one. The ticking task is owned by the timer and cancelled by ``stop``.
    """

    def __init__(
        self,
        *,
        interval: float = 1.0,
        sleep: SleepFn = asyncio.sleep,
        on_change: ChangeCallback | None = None,
    ) -> None:
        self.interval = interval
        self.sleep = sleep
        self.on_change = on_change
        self._remaining = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def active(self) -> bool:
        return self._remaining > 0

    def start(self, seconds: int) -> None:
        """Start counting down from ``seconds``; non-positive values just stop."""

        self._cancel_task()
        seconds = max(int(seconds), 0)
        self._set(seconds)
        if seconds > 0:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        self._cancel_task()
        self._set(0)

    def tick(self) -> int:
        """Advance the countdown by one step, clamped at zero."""

        if self._remaining > 0:
            self._set(self._remaining - 1)
        return self._remaining

    async def _run(self) -> None:
        while self._remaining > 0:
            await self.sleep(self.interval)
            self.tick()

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def _set(self, value: int) -> None:
        if value == self._remaining:
            return
        self._remaining = value
        if self.on_change is not None:
            self.on_change(value)


class RateLimitGate:
    """Couples a ``rate_limit`` ApiError to a countdown that blocks refresh."""

    def __init__(
        self,
        timer: CountdownTimer | None = None,
        *,
        on_change: ChangeCallback | None = None,
    ) -> None:
        self.timer = timer or CountdownTimer()
        self.timer.on_change = self._forward
        self.on_change = on_change

    @property
    def blocked(self) -> bool:
        return self.timer.active

    @property
    def countdown(self) -> int:
        return self.timer.remaining

    def arm(self, error: ApiError) -> bool:
        """
        Start the countdown for a rate limit error with a known wait.

        Returns False (and leaves the gate untouched) for any other error or a
        rate limit without a positive ``retry_after``.
        """

        if error.type is not ApiErrorType.RATE_LIMIT:
            return False
        if not error.retry_after or error.retry_after <= 0:
            return False
        self.timer.start(error.retry_after)
        return True

    def clear(self) -> None:
        self.timer.stop()

    def close(self) -> None:
        self.timer.stop()
        self.on_change = None

    def _forward(self, remaining: int) -> None:
        if self.on_change is not None:
            self.on_change(remaining)
