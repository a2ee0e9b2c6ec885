"""On-disk cache of discovered ping URLs.

Single-process assumption: concurrent invocations may race on the write, the
last `os.replace` wins.
"""
from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from manifestkit.core.errors import CacheReadError
from manifestkit.models.schemas import CacheRecord, EndpointMap

log = logging.getLogger("manifestkit.cache")

MAX_AGE = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheStore:
    """Reads and writes a CacheRecord at a fixed path."""

    def __init__(self, path: Path, clock: Callable[[], datetime] = _utcnow):
        self.path = Path(path)
        self._clock = clock

    def load(self) -> Optional[CacheRecord]:
        """Return the persisted record, or None if there is none."""
        log.info("Reading cache file %s", self.path)
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheReadError(f"cannot read cache file {self.path}: {e}") from e
        try:
            return CacheRecord.model_validate_json(raw)
        except ValidationError as e:
            raise CacheReadError(f"malformed cache file {self.path}: {e}") from e

    def is_expired(self, record: CacheRecord, max_age: timedelta = MAX_AGE, now: Optional[datetime] = None) -> bool:
        """True once the record is `max_age` old or older."""
        now = now or self._clock()
        last_updated = record.last_updated
        if last_updated.tzinfo is None:
            last_updated = last_updated.replace(tzinfo=timezone.utc)
        return now - last_updated >= max_age

    def save(self, endpoints: EndpointMap) -> CacheRecord:
        """Stamp `endpoints` with the current time and replace the cache file."""
        log.info("Writing cache file %s", self.path)
        record = CacheRecord(last_updated=self._clock(), endpoints=dict(endpoints))
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".cache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(record.model_dump_json(by_alias=True, indent=2))
            os.chmod(tmp, 0o600)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        return record
