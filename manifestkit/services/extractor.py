"""Derive the service identifier -> ping URL map from parsed reference documents."""
from __future__ import annotations

import logging
from typing import Mapping, Optional
from urllib.parse import urlsplit

from manifestkit.core.errors import ParseError
from manifestkit.models.schemas import EndpointMap, ServiceReference

log = logging.getLogger("manifestkit.extractor")

PING_ENTRY = "ping"


def service_identifier(base_url: str) -> str:
    """Hostname of `base_url` up to the first '.', or the whole hostname."""
    try:
        hostname = urlsplit(base_url).hostname
    except ValueError as e:
        raise ParseError(f"invalid base URL {base_url!r}: {e}") from e
    if not hostname:
        raise ParseError(f"base URL {base_url!r} has no hostname")
    return hostname.split(".", 1)[0]


def ping_url(reference: ServiceReference) -> Optional[str]:
    """Return base URL + route of the first 'ping' entry, or None."""
    for entry in reference.entries:
        if entry.name == PING_ENTRY:
            return reference.base_url + entry.route
    return None


def extract_endpoints(references: Mapping[str, ServiceReference]) -> EndpointMap:
    """
    Build the EndpointMap for a set of references keyed by manifest name.

    Services without a ping entry are skipped. Services are visited in sorted
    manifest-name order and the first one to claim an identifier keeps it.
    """
    endpoints: EndpointMap = {}
    owners: dict[str, str] = {}
    for name in sorted(references):
        reference = references[name]
        url = ping_url(reference)
        if url is None:
            log.debug("no ping entry for %s", name)
            continue
        service = service_identifier(reference.base_url)
        if service in endpoints:
            log.warning(
                "identifier %r of %s already claimed by %s; keeping %s",
                service, name, owners[service], endpoints[service],
            )
            continue
        endpoints[service] = url
        owners[service] = name
    return endpoints
