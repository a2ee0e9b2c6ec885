"""manifestkit status FastAPI application.

Creates the status service, wires routes and exposes readiness and Prometheus
metrics endpoints.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from manifestkit.api.routes import router
from manifestkit.core.config import Settings, load_settings
from manifestkit.metrics.prometheus import metrics_router
from manifestkit.services.cache import CacheStore
from manifestkit.services.manifest_client import ManifestClient
from manifestkit.services.status import StatusContext


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the app; `transport` replaces the network in tests."""
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the app-scoped StatusContext (HTTP pool, cache store) for the app's lifetime."""
        async with httpx.AsyncClient(
            timeout=settings.request_timeout_s, follow_redirects=True, transport=transport
        ) as client:
            app.state.ctx = StatusContext(settings, ManifestClient(client), CacheStore(settings.cache_file))
            yield

    app = FastAPI(title="manifestkit status", version="0.1.0", lifespan=lifespan)
    app.include_router(router)
    app.include_router(metrics_router)

    @app.get("/readyz")
    async def readyz():
        """Readiness probe endpoint returning a minimal OK payload."""
        return {"status": "ok"}

    return app
