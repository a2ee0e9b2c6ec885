"""Poll service ping endpoints and report liveness."""
from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Mapping

from pydantic import ValidationError

from manifestkit.core.errors import ParseError, UnknownService
from manifestkit.metrics.prometheus import HEALTH_POLLS
from manifestkit.models.schemas import HealthStatus, ServiceHealth
from manifestkit.services.fanout import gather_all
from manifestkit.services.manifest_client import ManifestClient

log = logging.getLogger("manifestkit.health")


class StatusPoller:
    """
    Query each service's ping URL and collect a ServiceHealth per service.

    With report_down=False, services answering alive=false are left out of
    the result instead of being reported down.
    """

    def __init__(
        self,
        client: ManifestClient,
        endpoints: Mapping[str, str],
        *,
        report_down: bool = True,
        max_concurrency: int = 16,
    ):
        self._client = client
        self._endpoints = dict(endpoints)
        self._report_down = report_down
        self._max_concurrency = max(1, max_concurrency)

    @property
    def known(self) -> List[str]:
        return sorted(self._endpoints)

    def validate(self, services: Iterable[str]) -> List[str]:
        """Return the sorted, de-duplicated selection; all known ones when empty."""
        selected = set(services)
        unknown = selected - self._endpoints.keys()
        if unknown:
            raise UnknownService(unknown)
        return sorted(selected) if selected else self.known

    async def _check(self, sem: asyncio.Semaphore, service: str) -> ServiceHealth:
        url = self._endpoints[service]
        async with sem:
            payload = await self._client.fetch_json(url)
        try:
            status = HealthStatus.model_validate(payload)
        except ValidationError as e:
            raise ParseError(f"unexpected ping response from {url}: {e}") from e
        HEALTH_POLLS.labels(result="alive" if status.alive else "down").inc()
        return ServiceHealth(service=service, url=url, alive=status.alive, uptime=status.uptime)

    async def poll(self, services: Iterable[str] = ()) -> List[ServiceHealth]:
        """Poll the selected services (all when empty), in sorted order."""
        selected = self.validate(services)
        sem = asyncio.Semaphore(self._max_concurrency)
        results = await gather_all(self._check(sem, s) for s in selected)
        if self._report_down:
            return list(results)
        for r in results:
            if not r.alive:
                log.debug("%s reported not alive; omitted", r.service)
        return [r for r in results if r.alive]
