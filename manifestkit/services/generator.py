"""Generate a Python module describing every service and schema in the manifest."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from manifestkit.core.config import Settings
from manifestkit.services.emitter import render_module
from manifestkit.services.fanout import with_deadline
from manifestkit.services.manifest_client import ManifestClient
from manifestkit.services.schemas_collector import SchemaCollector

log = logging.getLogger("manifestkit.generator")


async def _generate(client: ManifestClient, manifest_url: str, services_var: str, schemas_var: str, max_concurrency: int) -> str:
    log.info("Fetching Services:")
    services = await client.fetch_services(manifest_url, max_concurrency)
    log.info("Fetching Schemas:")
    entries = [e for name in sorted(services) for e in services[name].entries]
    schemas = await SchemaCollector(client, max_concurrency).collect(entries)
    return render_module(services, schemas, services_var, schemas_var)


async def generate(
    settings: Settings,
    client: ManifestClient,
    services_var: str = "SERVICES",
    schemas_var: str = "SCHEMAS",
    manifest_url: str | None = None,
) -> str:
    """Fetch everything and return the rendered module; any failure aborts."""
    return await with_deadline(
        _generate(client, manifest_url or str(settings.manifest_url), services_var, schemas_var, settings.max_concurrency),
        settings.cycle_timeout_s,
        "generation",
    )


def write_module(path: Path, source: str) -> None:
    """Replace `path` with `source`, never leaving a half-written file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(source)
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
    log.info("Wrote %s", path)
