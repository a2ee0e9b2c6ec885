from __future__ import annotations

import pytest

from _fakes import MANIFEST_URL
from manifestkit.core.errors import NetworkError, ParseError, StatusError
from manifestkit.services.extractor import extract_endpoints

pytestmark = pytest.mark.anyio


async def test_fetch_services(queue_upstream):
    client = queue_upstream.client()
    services = await client.fetch_services(MANIFEST_URL)
    await client.aclose()
    assert list(services) == ["queue"]
    assert services["queue"].base_url == "https://queue.example.com"
    assert [e.name for e in services["queue"].entries] == ["ping"]


async def test_non_200_is_status_error(upstream):
    upstream.json(MANIFEST_URL, {}, status=503)
    client = upstream.client()
    with pytest.raises(StatusError) as exc:
        await client.fetch_manifest(MANIFEST_URL)
    await client.aclose()
    assert exc.value.status_code == 503


async def test_transport_failure_is_network_error(upstream):
    upstream.fail(MANIFEST_URL)
    client = upstream.client()
    with pytest.raises(NetworkError):
        await client.fetch_manifest(MANIFEST_URL)
    await client.aclose()


@pytest.mark.parametrize("body", ["<html>", '["not", "a", "mapping"]', '{"queue": 5}'])
async def test_bad_manifest_is_parse_error(upstream, body):
    upstream.text(MANIFEST_URL, body)
    client = upstream.client()
    with pytest.raises(ParseError):
        await client.fetch_manifest(MANIFEST_URL)
    await client.aclose()


async def test_exchange_reference_without_base_url_or_routes_is_skipped(queue_upstream):
    queue_upstream.json(MANIFEST_URL, {"queue": "https://ref.example/queue", "QueueEvents": "https://ref.example/qe"})
    queue_upstream.json(
        "https://ref.example/qe",
        {
            "exchangePrefix": "exchange/taskcluster-queue/v1/",
            "entries": [{"type": "topic-exchange", "name": "taskDefined", "exchange": "task-defined"}],
        },
    )
    client = queue_upstream.client()
    services = await client.fetch_services(MANIFEST_URL)
    await client.aclose()
    assert services["QueueEvents"].base_url == ""
    assert services["QueueEvents"].entries[0].route == ""
    assert extract_endpoints(services) == {"queue": "https://queue.example.com/ping"}


async def test_one_failing_reference_aborts_the_fetch(queue_upstream):
    queue_upstream.json(
        MANIFEST_URL, {"queue": "https://ref.example/queue", "auth": "https://ref.example/auth"}
    )
    queue_upstream.json("https://ref.example/auth", {}, status=500)
    client = queue_upstream.client()
    with pytest.raises(StatusError):
        await client.fetch_services(MANIFEST_URL)
    await client.aclose()
