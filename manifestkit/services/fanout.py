"""Fan-out/fan-in helper shared by the refresh and generation stages."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Iterable, List, TypeVar

from manifestkit.core.errors import NetworkError

T = TypeVar("T")


async def gather_all(aws: Iterable[Awaitable[T]]) -> List[T]:
    """Await all awaitables; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(a) for a in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def with_deadline(aw: Awaitable[T], timeout_s: float | None, what: str) -> T:
    """Await `aw`, turning an expired deadline into a NetworkError."""
    try:
        return await asyncio.wait_for(aw, timeout=timeout_s)
    except asyncio.TimeoutError as e:
        raise NetworkError(f"{what} did not finish within {timeout_s}s") from e
