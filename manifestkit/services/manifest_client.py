"""HTTP client wrapper for the service manifest and its reference documents.

One GET per call, no retries: the first failure propagates and aborts whatever
refresh or generation cycle issued it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from manifestkit.core.errors import NetworkError, ParseError, StatusError
from manifestkit.metrics.prometheus import FETCHES, FETCH_LATENCY
from manifestkit.models.schemas import Manifest, ServiceMap, ServiceReference
from manifestkit.services.fanout import gather_all

log = logging.getLogger("manifestkit.client")

_MANIFEST = TypeAdapter(Manifest)


class ManifestClient:
    """
    Tiny HTTP client wrapper for manifest, reference, schema and ping documents.

    Holds an httpx.AsyncClient for connection pooling. The caller owns the
    client's lifetime.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client

    @classmethod
    def from_timeout(cls, timeout_s: float) -> "ManifestClient":
        """Construct a client owning a fresh httpx.AsyncClient."""
        return cls(httpx.AsyncClient(timeout=timeout_s, follow_redirects=True))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_text(self, url: str) -> str:
        """GET `url` and return the body, raising on transport errors and non-200."""
        try:
            with FETCH_LATENCY.time():
                resp = await self._client.get(url)
        except httpx.HTTPError as e:
            FETCHES.labels(outcome="error").inc()
            raise NetworkError(f"failed to fetch {url}: {e}") from e
        if resp.status_code != 200:
            FETCHES.labels(outcome=str(resp.status_code)).inc()
            log.warning("non-200 (%s) on %s", resp.status_code, url)
            raise StatusError(url, resp.status_code)
        FETCHES.labels(outcome="200").inc()
        return resp.text

    async def fetch_json(self, url: str) -> Any:
        """GET `url` and decode the body as JSON."""
        body = await self.fetch_text(url)
        try:
            return json.loads(body)
        except ValueError as e:
            raise ParseError(f"failed to parse {url}: {e}") from e

    async def fetch_manifest(self, url: str) -> Manifest:
        """Fetch the manifest mapping service name -> reference URL."""
        log.info("Fetching manifest %s", url)
        payload = await self.fetch_json(url)
        try:
            return _MANIFEST.validate_python(payload)
        except ValidationError as e:
            raise ParseError(f"unexpected manifest shape at {url}: {e}") from e

    async def fetch_reference(self, url: str) -> ServiceReference:
        """Fetch and parse one service reference document."""
        payload = await self.fetch_json(url)
        try:
            return ServiceReference.model_validate(payload)
        except ValidationError as e:
            raise ParseError(f"unexpected reference shape at {url}: {e}") from e

    async def fetch_services(self, manifest_url: str, max_concurrency: int = 16) -> ServiceMap:
        """Fetch the manifest, then every reference it lists, concurrently."""
        manifest = await self.fetch_manifest(manifest_url)
        sem = asyncio.Semaphore(max(1, max_concurrency))

        async def one(name: str, url: str) -> tuple[str, ServiceReference]:
            async with sem:
                log.info(" - fetching %s", name)
                return name, await self.fetch_reference(url)

        log.info("Fetching %d services", len(manifest))
        return dict(await gather_all(one(n, u) for n, u in manifest.items()))
