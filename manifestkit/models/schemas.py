"""Pydantic models for manifests, reference documents, the ping cache and health payloads."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

# identifier -> fully-qualified ping URL
EndpointMap = Dict[str, str]
# manifest service name -> reference URL
Manifest = Dict[str, str]
# schema URL -> raw schema text
SchemaSet = Dict[str, str]


class APIEntry(BaseModel):
    """One API entry of a reference document."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str
    route: str = ""
    type: str = "function"
    method: str = ""
    title: str = ""
    description: str = ""
    stability: str = ""
    args: List[str] = Field(default_factory=list)
    query: List[str] = Field(default_factory=list)
    # opaque scope expression, carried through as decoded JSON
    scopes: Any = Field(default_factory=list)
    # schema URLs, empty when the entry has none
    input: str = ""
    output: str = ""


class ServiceReference(BaseModel):
    """Parsed reference document: base URL plus the ordered API entries."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    base_url: str = Field(default="", alias="baseUrl")
    version: str = ""
    title: str = ""
    description: str = ""
    entries: List[APIEntry] = Field(default_factory=list)


# manifest service name -> parsed reference
ServiceMap = Dict[str, ServiceReference]


class CacheRecord(BaseModel):
    """On-disk shape of the ping URL cache."""
    model_config = ConfigDict(populate_by_name=True)

    last_updated: datetime = Field(alias="lastUpdated")
    endpoints: EndpointMap = Field(alias="pingURLs", default_factory=dict)


class HealthStatus(BaseModel):
    """Body returned by a service ping endpoint."""
    model_config = ConfigDict(extra="ignore")

    alive: bool
    uptime: float = 0.0


class ServiceHealth(BaseModel):
    """One row of a status report."""
    service: str
    url: str
    alive: bool
    uptime: float
