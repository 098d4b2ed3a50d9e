"""Tests for RealtimeClient channel bookkeeping."""
import pytest

from flowkore.core.api.config import RealtimeConfig
from flowkore.core.realtime import ChannelState, RealtimeClient

from conftest import wait_until


class TestRealtimeClient:
    """Test suite for RealtimeClient."""

    def test_channel_is_reused_by_name(self, stream_api):
        realtime = RealtimeClient(stream_api)

        first = realtime.channel('orders')
        second = realtime.channel('orders')

        assert first is second
        assert realtime.get_channels() == [first]

    def test_distinct_names_get_distinct_channels(self, stream_api):
        realtime = RealtimeClient(stream_api)

        orders = realtime.channel('orders')
        users = realtime.channel('users')

        assert orders is not users
        assert realtime.get_channel('users') is users
        assert realtime.get_channel('missing') is None

    def test_without_reuse_each_call_creates_a_channel(self, stream_api):
        realtime = RealtimeClient(stream_api, config=RealtimeConfig(reuse_channels=False))

        first = realtime.channel('orders')
        second = realtime.channel('orders')

        assert first is not second
        assert realtime.get_channels() == [first, second]
        assert realtime.get_channel('orders') is second

    def test_token_provider_is_shared(self, stream_api):
        realtime = RealtimeClient(stream_api, token_provider=lambda: 'tok')

        assert 'token=tok' in realtime.channel('orders').build_url()

    @pytest.mark.asyncio
    async def test_remove_channel(self, stream_api):
        realtime = RealtimeClient(stream_api)
        channel = realtime.channel('orders').subscribe()
        await wait_until(lambda: channel.state is ChannelState.SUBSCRIBED)

        await realtime.remove_channel(channel)

        assert channel.state is ChannelState.CLOSED
        assert realtime.get_channels() == []
        assert realtime.channel('orders') is not channel

    @pytest.mark.asyncio
    async def test_remove_all_channels(self, stream_api):
        realtime = RealtimeClient(stream_api, config=RealtimeConfig(reuse_channels=False))
        channels = [realtime.channel('orders').subscribe() for _ in range(3)]
        await wait_until(lambda: all(c.state is ChannelState.SUBSCRIBED for c in channels))

        await realtime.remove_all_channels()

        assert all(c.state is ChannelState.CLOSED for c in channels)
        assert realtime.get_channels() == []
