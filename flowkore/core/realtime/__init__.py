"""
Realtime subscriptions.

Named channels over the server-sent event stream, with reconnection and
normalized row-change payloads.
"""
from .models import (
    ChannelState,
    ChannelStatus,
    ColumnFilter,
    RealtimeEvent,
    RealtimePayload,
    Subscription,
)
from .dispatcher import EventDispatcher
from .channel import RealtimeChannel
from .registry import RealtimeClient

__all__ = [
    'RealtimeClient',
    'RealtimeChannel',
    'EventDispatcher',
    'ChannelState',
    'ChannelStatus',
    'ColumnFilter',
    'RealtimeEvent',
    'RealtimePayload',
    'Subscription',
]
