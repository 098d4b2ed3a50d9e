"""
In-memory storage implementation.

Provides non-persistent storage for testing and temporary use.
"""
from typing import Dict, Optional

from .protocols import StorageAdapter


class MemoryStorage(StorageAdapter):
    """
    In-memory key/value storage.

    Data is lost when the object is destroyed. This is the fallback when
    no persistent storage is configured or it cannot be opened.

    Example:
        >>> storage = MemoryStorage()
        >>> storage.set('flowkore.auth.session', '{...}')
        >>> storage.get('flowkore.auth.session')
        '{...}'
    """

    def __init__(self):
        """Initialize memory storage."""
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def close(self) -> None:
        """Close storage (no-op for memory storage)."""
        pass
