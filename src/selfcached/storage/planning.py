from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from selfcached.paths import CacheEntry, ResolvedPath, resolve_cache_entry, resolve_local

DEFAULT_MAX_CONCURRENCY = 8

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class PlannedPath:
    local: ResolvedPath
    entry: CacheEntry


async def plan_paths(
    input_paths: Iterable[str],
    *,
    key: str,
    cache_dir: str | Path,
    archive: bool,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> list[PlannedPath]:
    """Resolve each input path and its cache entry. Result order follows input order."""

    def _plan_one(input_path: str) -> PlannedPath:
        local = resolve_local(input_path)
        entry = resolve_cache_entry(cache_dir, local.cache_name, key, archive)
        return PlannedPath(local=local, entry=entry)

    return await gather_bounded(
        (asyncio.to_thread(_plan_one, input_path) for input_path in input_paths),
        limit=max_concurrency,
    )


async def gather_bounded(aws: Iterable[Awaitable[T]], *, limit: int) -> list[T]:
    if limit < 1:
        raise ValueError("limit must be >= 1")

    semaphore = asyncio.Semaphore(limit)

    async def _run(aw: Awaitable[T]) -> T:
        async with semaphore:
            return await aw

    return list(await asyncio.gather(*(_run(aw) for aw in aws)))
