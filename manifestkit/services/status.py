"""Status context: resolves the ping URL map (cache or refresh) and polls it.

Built once at startup and handed to the CLI or HTTP layer; it owns no global
state, so tests construct one per case against a temp cache path.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from manifestkit.core.config import Settings
from manifestkit.core.errors import CacheReadError
from manifestkit.metrics.prometheus import CACHE_REFRESHES
from manifestkit.models.schemas import CacheRecord, EndpointMap, ServiceHealth
from manifestkit.services.cache import CacheStore
from manifestkit.services.extractor import extract_endpoints
from manifestkit.services.fanout import with_deadline
from manifestkit.services.health import StatusPoller
from manifestkit.services.manifest_client import ManifestClient

log = logging.getLogger("manifestkit.status")


class StatusContext:
    """Settings, HTTP client, cache store and the current EndpointMap."""

    def __init__(self, settings: Settings, client: ManifestClient, cache: Optional[CacheStore] = None):
        self.settings = settings
        self.client = client
        self.cache = cache or CacheStore(settings.cache_file)
        self._record: Optional[CacheRecord] = None
        # one refresh at a time; waiters see the record it produced
        self._lock = asyncio.Lock()

    async def refresh(self, reason: str = "forced") -> EndpointMap:
        """Scrape the manifest for ping URLs and replace the cache."""
        async with self._lock:
            return await self._refresh(reason)

    async def _refresh(self, reason: str) -> EndpointMap:
        # Any fetch error propagates before the cache is touched.
        log.info("Scraping ping URLs from %s (%s)", self.settings.manifest_url, reason)
        services = await with_deadline(
            self.client.fetch_services(str(self.settings.manifest_url), self.settings.max_concurrency),
            self.settings.cycle_timeout_s,
            "ping URL refresh",
        )
        endpoints = extract_endpoints(services)
        self._record = self.cache.save(endpoints)
        CACHE_REFRESHES.labels(reason=reason).inc()
        return self._record.endpoints

    async def endpoints(self, force_refresh: bool = False) -> EndpointMap:
        """Return the ping URLs, from the cache while it is present and fresh.

        Expiry is checked on every call, so a long-lived context picks up a
        new map once the record ages out.
        """
        async with self._lock:
            if force_refresh:
                return await self._refresh("forced")
            if self._record is None:
                try:
                    record = self.cache.load()
                except CacheReadError as e:
                    log.warning("ignoring unreadable cache: %s", e)
                    return await self._refresh("unreadable")
                if record is None:
                    return await self._refresh("missing")
                self._record = record
            if self.cache.is_expired(self._record, timedelta(seconds=self.settings.cache_max_age_s)):
                return await self._refresh("expired")
            return self._record.endpoints

    async def known_services(self) -> List[str]:
        return sorted(await self.endpoints())

    async def poller(self) -> StatusPoller:
        return StatusPoller(
            self.client,
            await self.endpoints(),
            report_down=not self.settings.legacy_silent_down,
            max_concurrency=self.settings.max_concurrency,
        )

    async def poll(self, services: Iterable[str] = ()) -> List[ServiceHealth]:
        """Validate `services` against the known set, then poll them."""
        poller = await self.poller()
        return await with_deadline(poller.poll(services), self.settings.cycle_timeout_s, "status poll")
