"""Configuration for manifestkit.

Provides strongly-typed settings using Pydantic and a loader from environment
variables with defaults suitable for running against the public manifest.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import cast

from pydantic import AnyUrl, BaseModel, ValidationError

DEFAULT_MANIFEST_URL = "https://references.taskcluster.net/manifest.json"


def default_cache_file() -> Path:
    """Return <home>/.manifestkit/status/cache.json."""
    return Path.home() / ".manifestkit" / "status" / "cache.json"


class Settings(BaseModel):
    """Pydantic settings for the status and generator commands."""
    manifest_url: AnyUrl
    cache_file: Path
    cache_max_age_s: float = 24 * 60 * 60
    request_timeout_s: float = 10.0
    cycle_timeout_s: float = 120.0
    max_concurrency: int = 16
    # Omit services answering alive=false instead of reporting them down.
    legacy_silent_down: bool = False


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Load settings from environment variables and return a Settings object."""
    try:
        return Settings(
            manifest_url=cast(AnyUrl, os.getenv("MANIFEST_URL", DEFAULT_MANIFEST_URL)),
            cache_file=Path(os.getenv("MANIFESTKIT_CACHE_FILE", str(default_cache_file()))).expanduser(),
            cache_max_age_s=float(os.getenv("CACHE_MAX_AGE_S", str(24 * 60 * 60))),
            request_timeout_s=float(os.getenv("REQUEST_TIMEOUT_S", "10.0")),
            cycle_timeout_s=float(os.getenv("CYCLE_TIMEOUT_S", "120.0")),
            max_concurrency=int(os.getenv("MAX_CONCURRENCY", "16")),
            legacy_silent_down=_env_flag("MANIFESTKIT_LEGACY_SILENT_DOWN"),
        )
    except (ValidationError, ValueError) as e:
        raise RuntimeError(f"Invalid configuration: {e}") from e
