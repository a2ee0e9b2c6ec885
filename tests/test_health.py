from __future__ import annotations

import pytest

from manifestkit.core.errors import ParseError, UnknownService
from manifestkit.services.health import StatusPoller

pytestmark = pytest.mark.anyio

ENDPOINTS = {"queue": "https://queue.example.com/ping", "auth": "https://auth.example.com/v1/ping"}


async def test_alive_service_is_reported(queue_upstream):
    client = queue_upstream.client()
    rows = await StatusPoller(client, ENDPOINTS).poll(["queue"])
    await client.aclose()
    assert [(r.service, r.alive, r.uptime) for r in rows] == [("queue", True, 12.5)]


async def test_down_service_is_reported_down_by_default(upstream):
    upstream.json("https://queue.example.com/ping", {"alive": False, "uptime": 0})
    client = upstream.client()
    rows = await StatusPoller(client, ENDPOINTS).poll(["queue"])
    await client.aclose()
    assert [(r.service, r.alive) for r in rows] == [("queue", False)]


async def test_legacy_mode_reports_nothing_for_down_service(upstream):
    # Legacy behaviour: alive=false produces no output at all.
    upstream.json("https://queue.example.com/ping", {"alive": False, "uptime": 0})
    client = upstream.client()
    rows = await StatusPoller(client, ENDPOINTS, report_down=False).poll(["queue"])
    await client.aclose()
    assert rows == []
    assert upstream.calls["https://queue.example.com/ping"] == 1


async def test_empty_selection_polls_all_known_in_sorted_order(queue_upstream):
    queue_upstream.json("https://auth.example.com/v1/ping", {"alive": True, "uptime": 3})
    client = queue_upstream.client()
    rows = await StatusPoller(client, ENDPOINTS).poll()
    await client.aclose()
    assert [r.service for r in rows] == ["auth", "queue"]


async def test_unknown_service_fails_before_any_request(queue_upstream):
    client = queue_upstream.client()
    with pytest.raises(UnknownService) as exc:
        await StatusPoller(client, ENDPOINTS).poll(["queue", "nope", "also-nope"])
    await client.aclose()
    assert exc.value.services == ["also-nope", "nope"]
    assert queue_upstream.total_calls == 0


async def test_malformed_ping_body_is_parse_error(upstream):
    upstream.json("https://queue.example.com/ping", {"uptime": 1})
    client = upstream.client()
    with pytest.raises(ParseError):
        await StatusPoller(client, ENDPOINTS).poll(["queue"])
    await client.aclose()
