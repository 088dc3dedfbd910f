from __future__ import annotations

import hashlib
import os
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

MAX_NAME_LENGTH = 96
HASH_SUFFIX_LENGTH = 16
ARCHIVE_SUFFIX = ".tar"

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_RESERVED_NAMES = frozenset({"", ".", ".."})


@dataclass(slots=True, frozen=True)
class ResolvedPath:
    input: str
    resolved: str
    cache_name: str
    is_accessible: bool


@dataclass(slots=True, frozen=True)
class CacheEntry:
    path: str
    is_accessible: bool


def resolve_local(input_path: str) -> ResolvedPath:
    """Resolve a user supplied path against the home and working directories."""
    resolved = expand_path(input_path)
    return ResolvedPath(
        input=input_path,
        resolved=resolved,
        cache_name=cache_name(input_path, resolved),
        is_accessible=is_accessible(resolved),
    )


def resolve_cache_entry(
    cache_dir: str | Path,
    name: str,
    key: str,
    archive: bool,
) -> CacheEntry:
    filename = f"{name}{ARCHIVE_SUFFIX}" if archive else name
    path = os.path.join(os.path.abspath(cache_dir), key, filename)
    return CacheEntry(path=path, is_accessible=is_accessible(path))


def expand_path(input_path: str) -> str:
    expanded = input_path
    if input_path.startswith("~"):
        expanded = os.path.join(str(Path.home()), input_path[1:].lstrip("/"))
    return os.path.abspath(os.path.join(os.getcwd(), expanded))


def cache_name(input_path: str, resolved: str) -> str:
    """Derive a filesystem safe entry name.

    The name comes from the raw input so that ``~/x`` and its absolute spelling
    map to different entries. Long names are cut and suffixed with a digest of
    the resolved path.
    """
    name = _UNSAFE_NAME_CHARS.sub("_", input_path)
    if len(name) > MAX_NAME_LENGTH:
        digest = hashlib.sha256(resolved.encode("utf-8")).hexdigest()
        name = f"{name[:MAX_NAME_LENGTH]}_{digest[:HASH_SUFFIX_LENGTH]}"
    return name


def is_accessible(path: str) -> bool:
    try:
        return os.access(path, os.R_OK | os.W_OK)
    except (OSError, ValueError):
        return False


def find_name_conflict(
    paths: Sequence[ResolvedPath],
) -> tuple[ResolvedPath, ResolvedPath] | None:
    seen: dict[str, ResolvedPath] = {}
    for path in paths:
        earlier = seen.get(path.cache_name)
        if earlier is not None:
            return earlier, path
        seen[path.cache_name] = path
    return None


def find_unsafe_path(paths: Sequence[ResolvedPath]) -> ResolvedPath | None:
    """Return the first path that cannot live as a flat entry under the key directory.

    Names such as ``.`` and ``..`` would point the entry at the key directory or
    the cache root, and a filesystem root has no base name to archive.
    """
    for path in paths:
        if path.cache_name in _RESERVED_NAMES or not os.path.basename(path.resolved):
            return path
    return None
