"""
Storage adapters.

Key/value persistence for the auth session record. Supports SQLite
storage for persistence and an in-memory fallback.
"""
import sqlite3
from pathlib import Path
from typing import Optional, Union

from .protocols import StorageAdapter, AsyncStorageAdapter, resolve
from .sqlite_storage import SQLiteStorage
from .memory_storage import MemoryStorage
from ..logging import get_logger


def default_storage(path: Optional[Union[str, Path]] = None) -> StorageAdapter:
    """
    Persistent storage when ``path`` is usable, else in-memory storage.

    Args:
        path: SQLite storage name or file path
    """
    if path is None:
        return MemoryStorage()
    try:
        return SQLiteStorage(path)
    except (OSError, sqlite3.Error) as e:
        get_logger('flowkore.storage').warning(
            f"Persistent storage at {path} unavailable ({e}); using memory storage"
        )
        return MemoryStorage()


__all__ = [
    'StorageAdapter',
    'AsyncStorageAdapter',
    'SQLiteStorage',
    'MemoryStorage',
    'default_storage',
    'resolve',
]
