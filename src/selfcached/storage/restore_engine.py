from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from selfcached.paths import find_name_conflict, find_unsafe_path

from .archive import copy_path, extract_archive, make_dirs, remove_path
from .planning import DEFAULT_MAX_CONCURRENCY, PlannedPath, gather_bounded, plan_paths

logger = logging.getLogger(__name__)


def restore(
    input_paths: Sequence[str],
    key: str,
    cache_dir: str | Path,
    compress: bool = False,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> bool:
    """Restore ``input_paths`` from ``cache_dir/key``.

    All or nothing: True only when every entry was present and has been put
    back in place. A miss returns False without touching any destination.
    """
    return asyncio.run(
        arestore(
            input_paths,
            key,
            cache_dir,
            compress,
            max_concurrency=max_concurrency,
        )
    )


async def arestore(
    input_paths: Sequence[str],
    key: str,
    cache_dir: str | Path,
    compress: bool = False,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> bool:
    if not input_paths:
        logger.info("restore skipped key=%s reason=no_paths", key)
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
            "restore aborted reason=unsafe_name input=%s name=%s",
            unsafe.input,
            unsafe.cache_name,
        )
        return False

    missing = [item for item in planned if not item.entry.is_accessible]
    if missing:
        for item in missing:
            logger.debug("restore miss input=%s entry=%s", item.local.input, item.entry.path)
        logger.info(
            "restore miss key=%s missing=%d total=%d path=%s",
            key,
            len(missing),
            len(planned),
            cache_base,
        )
        return False

    conflict = find_name_conflict([item.local for item in planned])
    if conflict is not None:
        first, second = conflict
        logger.warning(
            "restore aborted reason=name_conflict first=%s second=%s name=%s",
            first.input,
            second.input,
            first.cache_name,
        )
        return False

    logger.info("cache found key=%s path=%s, restoring", key, cache_base)
    await gather_bounded(
        (_restore_one(item, compress=compress) for item in planned),
        limit=max_concurrency,
    )
    logger.info("restore completed key=%s paths=%d", key, len(planned))
    return True


async def _restore_one(item: PlannedPath, *, compress: bool) -> None:
    destination = item.local.resolved
    parent = os.path.dirname(destination)

    await make_dirs(parent)
    await remove_path(destination)

    logger.info("restoring %s from %s", item.local.input, item.entry.path)
    if compress:
        await extract_archive(item.entry.path, parent)
    else:
        await copy_path(item.entry.path, destination)
