from __future__ import annotations

import pytest

from _fakes import MANIFEST_URL, FakeUpstream
from manifestkit.core.config import Settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def queue_upstream(upstream: FakeUpstream) -> FakeUpstream:
    """Manifest with a single 'queue' service exposing /ping."""
    upstream.json(MANIFEST_URL, {"queue": "https://ref.example/queue"})
    upstream.json(
        "https://ref.example/queue",
        {"baseUrl": "https://queue.example.com", "entries": [{"name": "ping", "route": "/ping"}]},
    )
    upstream.json("https://queue.example.com/ping", {"alive": True, "uptime": 12.5})
    return upstream


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        manifest_url=MANIFEST_URL,
        cache_file=tmp_path / "status" / "cache.json",
        request_timeout_s=2.0,
        cycle_timeout_s=5.0,
        max_concurrency=4,
    )
