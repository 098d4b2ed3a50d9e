"""
FlowKore - High-level async client for a FlowKore backend.

Example:
    >>> async with FlowKore("https://api.example.com") as fk:
    ...     await fk.auth.sign_in_with_password(
    ...         {'email': 'me@example.com', 'password': 'secret123'})
    ...     fk.channel('orders').on('INSERT', print).subscribe()
"""
from typing import Any, Optional

from .core.api import AsyncAPIClient, APIConfig, Collection, Files
from .core.auth import AuthClient
from .core.logging import get_logger
from .core.realtime import RealtimeChannel, RealtimeClient
from .core.storage import StorageAdapter, default_storage


class FlowKore:
    """
    High-level async client.

    Wires one transport, one session manager and one channel registry
    together; every instance is independent of every other.

    With a custom configuration:
        >>> config = APIConfig(base_url="https://api.example.com")
        >>> config.auth.storage_path = Path.home() / ".flowkore" / "session"
        >>> fk = FlowKore(config=config)
        >>> await fk.start()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        config: Optional[APIConfig] = None,
        storage: Optional[StorageAdapter] = None
    ):
        """
        Initialize FlowKore client.

        Args:
            base_url: Backend root URL (overrides ``config.base_url``)
            config: Optional client configuration
            storage: Key/value storage for the session record (defaults
                to SQLite at ``config.auth.storage_path`` or memory)
        """
        self._config = config or APIConfig.default()
        if base_url:
            self._config.base_url = base_url.rstrip('/')
        self._logger = get_logger('flowkore.client')

        self._storage = storage if storage is not None else default_storage(
            self._config.auth.storage_path
        )
        self.api = AsyncAPIClient(self._config)
        self.auth = AuthClient(self.api, self._storage, self._config.auth)
        self.api.token_provider = self.auth.get_access_token
        self.files = Files(self.api)
        self.realtime = RealtimeClient(
            self.api,
            token_provider=self.auth.get_access_token,
            config=self._config.realtime
        )

    @property
    def config(self) -> APIConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    async def __aenter__(self) -> 'FlowKore':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> 'FlowKore':
        """Restore a persisted session, if any."""
        await self.auth.initialize()
        return self

    async def close(self) -> None:
        """Tear down channels, stop token renewal and release HTTP resources."""
        await self.realtime.remove_all_channels()
        await self.auth.close()
        await self.api.close()
        close_storage = getattr(self._storage, 'close', None)
        if callable(close_storage):
            close_storage()
        self._logger.debug("Client closed")

    def channel(self, name: str) -> RealtimeChannel:
        return self.realtime.channel(name)

    def collection(self, name: str) -> Collection:
        return Collection(name, self.api, self.realtime)

    def file_url(self, filename: str) -> str:
        return self.files.get_url(filename)

    async def request(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        """Authorized request against any backend path."""
        return await self.api.request(method, path, body)
