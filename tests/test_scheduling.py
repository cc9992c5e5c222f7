"""Tests for CancelToken and Ticker."""
import asyncio
import time

from livestream_bot.scheduling import CancelToken, Ticker


async def test_cancel_cascades_to_children_only():
    parent = CancelToken()
    child = parent.child()
    grandchild = child.child()
    sibling = parent.child()

    child.cancel("child failed")

    assert child.cancelled and grandchild.cancelled
    assert not parent.cancelled
    assert not sibling.cancelled
    assert grandchild.reason == "child failed"

    parent.cancel("shutdown")
    assert sibling.cancelled
    assert child.reason == "child failed"


async def test_child_of_cancelled_token_starts_cancelled():
    parent = CancelToken()
    parent.cancel("gone")
    assert parent.child().cancelled


async def test_sleep_returns_false_when_cancelled_midway():
    token = CancelToken()
    asyncio.get_running_loop().call_later(0.02, token.cancel)

    started = time.monotonic()
    assert await token.sleep(5) is False
    assert time.monotonic() - started < 1.0


async def test_sleep_completes():
    token = CancelToken()
    assert await token.sleep(0.01) is True
    assert await token.sleep(0) is True


async def test_ticker_counts_ticks_and_stops_on_cancel():
    token = CancelToken()
    ticker = Ticker(0.01, token)

    assert await ticker.wait()
    assert await ticker.wait()
    token.cancel()
    assert not await ticker.wait()
    assert ticker.ticks == 2


async def test_ticker_deadline_uses_clock():
    now = [100.0]
    ticker = Ticker(1.0, CancelToken(), deadline=10.0, clock=lambda: now[0])

    assert not ticker.expired
    now[0] = 110.0
    assert not ticker.expired
    now[0] = 110.5
    assert ticker.expired
    assert ticker.elapsed == 10.5


async def test_ticker_without_deadline_never_expires():
    now = [0.0]
    ticker = Ticker(1.0, CancelToken(), clock=lambda: now[0])
    now[0] = 1e9
    assert not ticker.expired
