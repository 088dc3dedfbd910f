"""Filesystem-backed path cache."""

from .config import CacheConfig, build_config, load_config
from .paths import CacheEntry, ResolvedPath, resolve_cache_entry, resolve_local
from .state import CacheState, load_state, save_state
from .storage import ArchiveError, restore, store

__all__ = [
    "ArchiveError",
    "CacheConfig",
    "CacheEntry",
    "CacheState",
    "ResolvedPath",
    "build_config",
    "load_config",
    "load_state",
    "resolve_cache_entry",
    "resolve_local",
    "restore",
    "save_state",
    "store",
]
