from __future__ import annotations

import pytest

from manifestkit.core.errors import ParseError, StatusError
from manifestkit.models.schemas import APIEntry
from manifestkit.services.schemas_collector import SchemaCollector, schema_urls

pytestmark = pytest.mark.anyio

SHARED = "https://schemas.example/v1/task.json"


def _entry(name: str, input: str = "", output: str = "") -> APIEntry:
    return APIEntry(name=name, route=f"/{name}", input=input, output=output)


def test_schema_urls_dedup_and_skip_empty():
    entries = [_entry("a", SHARED, "https://schemas.example/v1/a.json"), _entry("b", output=SHARED), _entry("c")]
    assert schema_urls(entries) == [SHARED, "https://schemas.example/v1/a.json"]


async def test_shared_url_fetched_exactly_once(upstream):
    upstream.text(SHARED, '{"type": "object"}')
    entries = [_entry(f"e{i}", input=SHARED, output=SHARED) for i in range(25)]
    client = upstream.client()
    schemas = await SchemaCollector(client, max_concurrency=8).collect(entries)
    await client.aclose()
    assert schemas == {SHARED: '{"type": "object"}'}
    assert upstream.calls[SHARED] == 1


async def test_raw_text_is_kept(upstream):
    body = '{\n  "type": "string"\n}\n'
    upstream.text(SHARED, body)
    client = upstream.client()
    schemas = await SchemaCollector(client).collect([_entry("a", output=SHARED)])
    await client.aclose()
    assert schemas[SHARED] == body


async def test_invalid_json_aborts(upstream):
    upstream.text(SHARED, '{"type": "object"}')
    upstream.text("https://schemas.example/v1/bad.json", "{oops")
    client = upstream.client()
    with pytest.raises(ParseError):
        await SchemaCollector(client).collect([_entry("a", SHARED, "https://schemas.example/v1/bad.json")])
    await client.aclose()


async def test_missing_schema_aborts(upstream):
    client = upstream.client()
    with pytest.raises(StatusError):
        await SchemaCollector(client).collect([_entry("a", SHARED)])
    await client.aclose()
