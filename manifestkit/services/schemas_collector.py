"""Fetch every JSON schema referenced by API entries, once per URL."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Iterable, List, Tuple

from manifestkit.core.errors import ParseError
from manifestkit.models.schemas import APIEntry, SchemaSet
from manifestkit.services.fanout import gather_all
from manifestkit.services.manifest_client import ManifestClient

log = logging.getLogger("manifestkit.schemas")


def schema_urls(entries: Iterable[APIEntry]) -> List[str]:
    """Unique, non-empty input/output URLs in first-seen order."""
    seen: dict[str, None] = {}
    for entry in entries:
        for url in (entry.input, entry.output):
            if url and url not in seen:
                seen[url] = None
    return list(seen)


class SchemaCollector:
    """Concurrent, de-duplicated schema fetcher.

    URLs are de-duplicated by the scheduling task before any fetch starts, so
    no two tasks ever fetch the same URL.
    """

    def __init__(self, client: ManifestClient, max_concurrency: int = 16):
        self._client = client
        self._max_concurrency = max(1, max_concurrency)

    async def _fetch(self, sem: asyncio.Semaphore, url: str) -> Tuple[str, str]:
        async with sem:
            log.info(" - %s", url)
            body = await self._client.fetch_text(url)
        # Only keep schemas that parse as JSON
        try:
            json.loads(body)
        except ValueError as e:
            raise ParseError(f"failed to parse {url}: {e}") from e
        return url, body

    async def collect(self, entries: Iterable[APIEntry]) -> SchemaSet:
        urls = schema_urls(entries)
        log.info("Fetching %d schemas", len(urls))
        sem = asyncio.Semaphore(self._max_concurrency)
        results = await gather_all(self._fetch(sem, u) for u in urls)
        return dict(results)
