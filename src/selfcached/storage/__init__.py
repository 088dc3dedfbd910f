"""Storage layer for storing and restoring cached paths."""

from .archive import ArchiveError
from .restore_engine import arestore, restore
from .store_engine import astore, store

__all__ = ["ArchiveError", "arestore", "astore", "restore", "store"]
