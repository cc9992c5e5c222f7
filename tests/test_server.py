"""Tests for the local status HTTP service."""
from types import SimpleNamespace

import pytest
from aiohttp.test_utils import TestClient, TestServer

from livestream_bot.events import EventRecorder
from livestream_bot.models.events import EventKind
from livestream_bot.scheduling import CancelToken
from livestream_bot.server import create_app


class FakeStats:
    def __init__(self, stats=None, error=None):
        self._stats = stats
        self._error = error

    async def purchase_stats(self):
        if self._error:
            raise self._error
        return self._stats


def make_bot(repository=None):
    return SimpleNamespace(
        session_manager=None,
        monitor=SimpleNamespace(snapshot=lambda: [{"target": {"stream_id": 1}, "status": "polling"}]),
        events=EventRecorder(),
        repository=repository,
        token=CancelToken(),
    )


@pytest.fixture
async def client_for():
    clients = []

    async def factory(bot):
        client = TestClient(TestServer(create_app(bot)))
        await client.start_server()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.close()


async def test_status(client_for):
    bot = make_bot()
    client = await client_for(bot)

    resp = await client.get("/status")
    body = await resp.json()

    assert resp.status == 200
    assert body["session"] is None
    assert body["streams"][0]["status"] == "polling"
    assert body["stopping"] is False


async def test_events_endpoint(client_for):
    bot = make_bot()
    await bot.events.emit(EventKind.MONITOR_STATUS, "polling", stream_id=1)
    await bot.events.emit(EventKind.FLASH_SALE, "countdown", stream_id=1)
    client = await client_for(bot)

    body = await (await client.get("/events", params={"kind": "flash_sale"})).json()
    assert body["count"] == 1
    assert body["events"][0]["message"] == "countdown"

    body = await (await client.get("/events", params={"limit": "1"})).json()
    assert [e["kind"] for e in body["events"]] == ["flash_sale"]


@pytest.mark.parametrize("params", [{"limit": "many"}, {"limit": "0"}, {"limit": "-1"}, {"kind": "nope"}])
async def test_events_bad_query(client_for, params):
    client = await client_for(make_bot())
    resp = await client.get("/events", params=params)
    assert resp.status == 400


async def test_purchase_stats(client_for):
    stats = {"total": 1, "by_outcome": {"success": 1}, "by_stream": {"1": {"success": 1}}}
    client = await client_for(make_bot(FakeStats(stats)))

    resp = await client.get("/purchases/stats")

    assert resp.status == 200
    assert await resp.json() == stats


async def test_purchase_stats_without_journal(client_for):
    client = await client_for(make_bot())
    resp = await client.get("/purchases/stats")
    assert resp.status == 503


async def test_purchase_stats_query_error(client_for):
    client = await client_for(make_bot(FakeStats(error=RuntimeError("locked"))))
    resp = await client.get("/purchases/stats")
    assert resp.status == 500


async def test_stop_cancels_token(client_for):
    bot = make_bot()
    client = await client_for(bot)

    resp = await client.post("/stop")

    assert resp.status == 200
    assert bot.token.cancelled
    assert (await (await client.get("/status")).json())["stopping"] is True
