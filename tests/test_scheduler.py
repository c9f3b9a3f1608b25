from __future__ import annotations

import asyncio

import pytest

from racefeed.scheduler import CoalescingScheduler


@pytest.mark.asyncio
async def test_submissions_coalesce_to_latest_value() -> None:
    delivered: list[int] = []
    scheduler: CoalescingScheduler[int] = CoalescingScheduler(delivered.append, interval=0.01)

    for value in range(5):
        scheduler.submit(value)
    assert scheduler.has_pending
    await asyncio.sleep(0.05)

    assert delivered == [4]
    assert scheduler.delivered == 1
    assert not scheduler.has_pending


@pytest.mark.asyncio
async def test_zero_interval_delivers_on_next_loop_iteration() -> None:
    delivered: list[str] = []
    scheduler: CoalescingScheduler[str] = CoalescingScheduler(delivered.append, interval=0)

    scheduler.submit("a")
    scheduler.submit("b")
    assert delivered == []
    await asyncio.sleep(0)

    assert delivered == ["b"]


@pytest.mark.asyncio
async def test_flush_and_cancel() -> None:
    delivered: list[int] = []
    scheduler: CoalescingScheduler[int] = CoalescingScheduler(delivered.append, interval=10.0)

    assert scheduler.flush() is False
    scheduler.submit(1)
    assert scheduler.flush() is True
    assert delivered == [1]

    scheduler.submit(2)
    scheduler.cancel()
    assert not scheduler.has_pending
    assert scheduler.flush() is False
    assert delivered == [1]


@pytest.mark.asyncio
async def test_subscriber_errors_are_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    def _boom(_value: int) -> None:
        raise RuntimeError("render failed")

    scheduler: CoalescingScheduler[int] = CoalescingScheduler(_boom, interval=0)
    scheduler.submit(1)

    with caplog.at_level("ERROR", logger="racefeed.scheduler"):
        assert scheduler.flush() is True

    assert "Update subscriber raised" in caplog.text
