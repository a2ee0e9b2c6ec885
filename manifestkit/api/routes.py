"""API routes exposing the status report over HTTP."""
from __future__ import annotations

from logging import getLogger
from typing import List

from fastapi import APIRouter, HTTPException, Request

from manifestkit.core.errors import ManifestKitError, UnknownService
from manifestkit.models.schemas import EndpointMap, ServiceHealth
from manifestkit.services.status import StatusContext

log = getLogger("manifestkit.api")
router = APIRouter()


def _ctx(request: Request) -> StatusContext:
    """Return the app-scoped StatusContext created in the lifespan."""
    return request.app.state.ctx


async def _poll(ctx: StatusContext, services: List[str]) -> List[ServiceHealth]:
    try:
        return await ctx.poll(services)
    except UnknownService as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ManifestKitError as e:
        log.warning("status poll failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/status", response_model=List[ServiceHealth])
async def status_all(request: Request):
    """Liveness of every known service."""
    return await _poll(_ctx(request), [])


@router.get("/status/{service}", response_model=List[ServiceHealth])
async def status_one(service: str, request: Request):
    """Liveness of one service; 404 when the identifier is unknown."""
    return await _poll(_ctx(request), [service])


@router.get("/endpoints", response_model=EndpointMap)
async def endpoints(request: Request):
    try:
        return await _ctx(request).endpoints()
    except ManifestKitError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.post("/endpoints/refresh", response_model=EndpointMap)
async def refresh(request: Request):
    """Discard the cache and scrape the manifest again."""
    try:
        return await _ctx(request).endpoints(force_refresh=True)
    except ManifestKitError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
