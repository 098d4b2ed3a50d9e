"""Registry of the realtime channels owned by one client."""
from typing import List, Optional

from .channel import RealtimeChannel
from ..api.async_client import AsyncAPIClient, TokenProvider
from ..api.config import RealtimeConfig
from ..logging import get_logger


class RealtimeClient:
    """
    Creates, tracks and tears down realtime channels.

    With ``RealtimeConfig.reuse_channels`` (the default) a name maps to
    one channel and ``channel(name)`` returns it on every call. With
    reuse disabled each call creates a new channel; earlier channels of
    the same name stay registered until removed.
    """

    def __init__(
        self,
        api: AsyncAPIClient,
        token_provider: Optional[TokenProvider] = None,
        config: Optional[RealtimeConfig] = None
    ):
        self._api = api
        self._token_provider = token_provider
        self._config = config or RealtimeConfig()
        self._channels: List[RealtimeChannel] = []
        self._logger = get_logger('flowkore.realtime')

    def channel(self, name: str) -> RealtimeChannel:
        """Get or create the channel for table ``name`` ('*' for all tables)."""
        if self._config.reuse_channels:
            existing = self.get_channel(name)
            if existing is not None:
                return existing

        channel = RealtimeChannel(
            name,
            self._api,
            token_provider=self._token_provider,
            config=self._config
        )
        self._channels.append(channel)
        self._logger.debug(f"Created channel '{name}'")
        return channel

    def get_channel(self, name: str) -> Optional[RealtimeChannel]:
        """Most recently created channel named ``name``."""
        for channel in reversed(self._channels):
            if channel.name == name:
                return channel
        return None

    def get_channels(self) -> List[RealtimeChannel]:
        return list(self._channels)

    async def remove_channel(self, channel: RealtimeChannel) -> None:
        """Unsubscribe ``channel`` and forget it."""
        self._channels = [c for c in self._channels if c is not channel]
        await channel.unsubscribe()

    async def remove_all_channels(self) -> None:
        channels, self._channels = self._channels, []
        for channel in channels:
            await channel.unsubscribe()
