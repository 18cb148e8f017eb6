"""
Unit tests for rate limit header parsing, the countdown timer and the gate.
"""

from __future__ import annotations

import pytest

from tests.fakes import SleepRecorder, StepSleep, drain
from xfeed.rate_limit import CountdownTimer, RateLimitGate, RateLimitInfo
from xfeed.result import ApiError, ApiErrorType


# ============================================================================
# RateLimitInfo Tests
# ============================================================================


def test_rate_limit_info_from_headers() -> None:
    headers = {
        "x-rate-limit-limit": "180",
        "x-rate-limit-remaining": "0",
        "x-rate-limit-reset": "1728730800",
        "retry-after": "42",
    }

    info = RateLimitInfo.from_headers(headers)

    assert info.limit == 180
    assert info.remaining == 0
    assert info.reset_at == 1728730800
    assert info.retry_after == 42


def test_rate_limit_info_from_headers_case_insensitive() -> None:
    headers = {
        "X-Rate-Limit-Limit": "300",
        "X-RATE-LIMIT-REMAINING": "299",
        "Retry-After": "7",
    }

    info = RateLimitInfo.from_headers(headers)

    assert info.limit == 300
    assert info.remaining == 299
    assert info.retry_after == 7


def test_rate_limit_info_tolerates_missing_or_garbage_headers() -> None:
    assert RateLimitInfo.from_headers(None) == RateLimitInfo()
    info = RateLimitInfo.from_headers({"x-rate-limit-reset": "soon"})
    assert info.reset_at is None


# ============================================================================
# CountdownTimer Tests
# ============================================================================


def test_tick_clamps_at_zero_without_running_loop() -> None:
    changes: list[int] = []
    timer = CountdownTimer(on_change=changes.append)

    assert timer.tick() == 0
    assert changes == []
    assert timer.active is False


@pytest.mark.asyncio
async def test_countdown_runs_to_zero() -> None:
    sleep = SleepRecorder()
    changes: list[int] = []
    timer = CountdownTimer(interval=0.5, sleep=sleep, on_change=changes.append)

    timer.start(3)
    await drain()

    assert changes == [3, 2, 1, 0]
    assert sleep.calls == [0.5, 0.5, 0.5]
    assert timer.active is False


@pytest.mark.asyncio
async def test_countdown_ticks_once_per_interval() -> None:
    sleep = StepSleep()
    timer = CountdownTimer(sleep=sleep)

    timer.start(2)
    await drain()
    assert timer.remaining == 2

    sleep.step()
    await drain()
    assert timer.remaining == 1
    assert timer.active is True

    sleep.step()
    await drain()
    assert timer.remaining == 0
    assert timer.active is False


@pytest.mark.asyncio
async def test_restart_replaces_running_countdown() -> None:
    sleep = StepSleep()
    timer = CountdownTimer(sleep=sleep)

    timer.start(10)
    await drain()
    timer.start(2)
    await drain()
    sleep.step(2)
    await drain()

    # A stacked second countdown would have consumed a step and left 0 early.
    assert timer.remaining == 0
    assert len(sleep.calls) == 3
    timer.stop()


@pytest.mark.asyncio
async def test_stop_cancels_countdown() -> None:
    sleep = StepSleep()
    changes: list[int] = []
    timer = CountdownTimer(sleep=sleep, on_change=changes.append)

    timer.start(5)
    await drain()
    timer.stop()
    sleep.step(5)
    await drain()

    assert timer.remaining == 0
    assert changes == [5, 0]


@pytest.mark.asyncio
async def test_start_with_non_positive_value_does_not_tick() -> None:
    sleep = SleepRecorder()
    timer = CountdownTimer(sleep=sleep)

    timer.start(0)
    timer.start(-3)
    await drain()

    assert timer.remaining == 0
    assert sleep.calls == []


# ============================================================================
# RateLimitGate Tests
# ============================================================================


@pytest.mark.asyncio
async def test_gate_arms_only_for_rate_limit_with_wait() -> None:
    gate = RateLimitGate(CountdownTimer(sleep=StepSleep()))

    assert gate.arm(ApiError.of(ApiErrorType.AUTH)) is False
    assert gate.arm(ApiError.of(ApiErrorType.NETWORK, retry_after=5)) is False
    assert gate.arm(ApiError.of(ApiErrorType.RATE_LIMIT)) is False
    assert gate.arm(ApiError.of(ApiErrorType.RATE_LIMIT, retry_after=0)) is False
    assert gate.blocked is False

    assert gate.arm(ApiError.of(ApiErrorType.RATE_LIMIT, retry_after=5)) is True
    assert gate.blocked is True
    assert gate.countdown == 5
    gate.close()


@pytest.mark.asyncio
async def test_gate_forwards_countdown_changes() -> None:
    sleep = StepSleep()
    changes: list[int] = []
    gate = RateLimitGate(CountdownTimer(sleep=sleep), on_change=changes.append)

    gate.arm(ApiError.of(ApiErrorType.RATE_LIMIT, retry_after=2))
    await drain()
    sleep.step(2)
    await drain()

    assert changes == [2, 1, 0]
    assert gate.blocked is False


@pytest.mark.asyncio
async def test_gate_clear_and_close() -> None:
    changes: list[int] = []
    gate = RateLimitGate(CountdownTimer(sleep=StepSleep()), on_change=changes.append)

    gate.arm(ApiError.of(ApiErrorType.RATE_LIMIT, retry_after=9))
    gate.clear()
    assert gate.blocked is False
    assert changes == [9, 0]

    gate.arm(ApiError.of(ApiErrorType.RATE_LIMIT, retry_after=4))
    gate.close()
    assert gate.countdown == 0
    assert changes == [9, 0, 4, 0]
    assert gate.on_change is None
