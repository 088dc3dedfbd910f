from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from selfcached.paths import ResolvedPath, find_unsafe_path

from .archive import copy_path, create_archive, make_dirs
from .planning import DEFAULT_MAX_CONCURRENCY, PlannedPath, gather_bounded, plan_paths

logger = logging.getLogger(__name__)


def store(
    input_paths: Sequence[str],
    key: str,
    cache_dir: str | Path,
    compress: bool = False,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> bool:
    """Store ``input_paths`` under ``cache_dir/key``.

    Returns True when a usable cache exists afterwards (freshly written or
    already complete) and False when validation aborted the call. Copy and
    archive failures propagate.
    """
    return asyncio.run(
        astore(
            input_paths,
            key,
            cache_dir,
            compress,
            max_concurrency=max_concurrency,
        )
    )


async def astore(
    input_paths: Sequence[str],
    key: str,
    cache_dir: str | Path,
    compress: bool = False,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> bool:
    if not input_paths:
        logger.info("store skipped key=%s reason=no_paths", key)
        return True

    planned = await plan_paths(
        input_paths,
        key=key,
        cache_dir=cache_dir,
        archive=compress,
        max_concurrency=max_concurrency,
    )
    cache_base = os.path.join(os.path.abspath(cache_dir), key)

    unsafe = find_unsafe_path([item.local for item in planned])
    if unsafe is not None:
        logger.warning(
            "store aborted reason=unsafe_name input=%s name=%s",
            unsafe.input,
            unsafe.cache_name,
        )
        return False

    if all(item.entry.is_accessible for item in planned):
        logger.info("store skipped key=%s reason=cache_complete path=%s", key, cache_base)
        return True

    if not _validate(planned):
        return False

    logger.info("creating cache directory path=%s", cache_base)
    await make_dirs(cache_base)

    await gather_bounded(
        (_materialize(item, compress=compress) for item in planned),
        limit=max_concurrency,
    )
    logger.info("store completed key=%s paths=%d path=%s", key, len(planned), cache_base)
    return True


def _validate(planned: Sequence[PlannedPath]) -> bool:
    seen: dict[str, ResolvedPath] = {}
    for item in planned:
        local = item.local
        if not local.is_accessible:
            logger.warning(
                "store aborted reason=inaccessible input=%s resolved=%s",
                local.input,
                local.resolved,
            )
            return False

        earlier = seen.get(local.cache_name)
        if earlier is not None:
            logger.warning(
                "store aborted reason=name_conflict first=%s second=%s name=%s",
                earlier.input,
                local.input,
                local.cache_name,
            )
            return False
        seen[local.cache_name] = local
    return True


async def _materialize(item: PlannedPath, *, compress: bool) -> None:
    if compress:
        logger.info("archiving %s to %s", item.local.input, item.entry.path)
        await create_archive(item.local.resolved, item.entry.path)
    else:
        logger.info("copying %s to %s", item.local.input, item.entry.path)
        await copy_path(item.local.resolved, item.entry.path)
