"""Error taxonomy shared by the status and generator paths.

Every fetch-stage error aborts the operation in progress; nothing is cached or
emitted after one is raised.
"""
from __future__ import annotations

from typing import Iterable


class ManifestKitError(Exception):
    """Base class for all manifestkit failures."""


class NetworkError(ManifestKitError):
    """Transport-level failure (connection refused, DNS, timeout)."""


class StatusError(ManifestKitError):
    """Upstream answered with a status other than 200."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"bad (!= 200) status code {status_code} from {url}")
        self.url = url
        self.status_code = status_code


class ParseError(ManifestKitError):
    """Body was not valid JSON or did not match the expected shape."""


class CacheReadError(ParseError):
    """Cache file exists but could not be read or decoded."""


class UnknownService(ManifestKitError):
    """One or more service identifiers are not in the known set."""

    def __init__(self, services: Iterable[str]):
        self.services = sorted(services)
        super().__init__(f"unknown service(s): {', '.join(self.services)}")


class GenerationError(ManifestKitError):
    """Rendered source did not parse."""
