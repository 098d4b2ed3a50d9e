"""
Storage adapter protocols.

Defines the key/value interface the auth layer persists sessions through.
Follows Interface Segregation Principle (ISP).
"""
import inspect
from typing import Protocol, Optional, Any, runtime_checkable


@runtime_checkable
class StorageAdapter(Protocol):
    """
    Protocol for synchronous key/value storage.

    Implementations can use SQLite, JSON files, keyrings or any other
    backend. Follows Dependency Inversion Principle (DIP).
    """

    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            Stored string, or None when the key is absent
        """
        ...

    def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one."""
        ...

    def remove(self, key: str) -> None:
        """Delete a key; absent keys are ignored."""
        ...


@runtime_checkable
class AsyncStorageAdapter(Protocol):
    """
    Async protocol for key/value storage.

    For storage backends that support async operations.
    """

    async def get(self, key: str) -> Optional[str]:
        """Read a value asynchronously."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Write a value asynchronously."""
        ...

    async def remove(self, key: str) -> None:
        """Delete a key asynchronously."""
        ...


async def resolve(result: Any) -> Any:
    """Await ``result`` if the adapter returned an awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result
