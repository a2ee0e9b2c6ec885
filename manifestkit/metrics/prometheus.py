from fastapi import APIRouter, Response
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

metrics_router = APIRouter()

# Standalone registry so repeated app construction in tests does not collide
registry = CollectorRegistry()
FETCHES = Counter("manifestkit_fetches_total", "Manifest, reference, schema and ping fetches", ["outcome"], registry=registry)
FETCH_LATENCY = Histogram("manifestkit_fetch_latency_seconds", "Fetch latency seconds", registry=registry)
HEALTH_POLLS = Counter("manifestkit_health_polls_total", "Ping results by liveness", ["result"], registry=registry)
CACHE_REFRESHES = Counter("manifestkit_cache_refreshes_total", "Ping URL cache refreshes", ["reason"], registry=registry)


@metrics_router.get("/metrics")
async def metrics():
    """Prometheus exposition endpoint."""
    data = generate_latest(registry)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
