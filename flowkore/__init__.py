"""
FlowKore - Async Python client for the FlowKore backend-as-a-service.

Usage:
    >>> from flowkore import FlowKore
    >>>
    >>> async with FlowKore("https://api.example.com") as fk:
    ...     res = await fk.auth.sign_in_with_password(
    ...         {'email': 'me@example.com', 'password': 'secret123'})
    ...     fk.channel('orders').on('INSERT', print).subscribe()
"""
from .client import FlowKore

# Configuration
from .core.api import (
    APIConfig,
    AuthConfig,
    RealtimeConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    AsyncAPIClient,
    Collection,
    Files,
    FlowKoreAPIError,
)

# Auth
from .core.auth import (
    AuthClient,
    AuthChangeEvent,
    AuthData,
    AuthResponse,
    AuthSubscription,
    Session,
    SignOutResponse,
    User,
)

# Realtime
from .core.realtime import (
    RealtimeClient,
    RealtimeChannel,
    ChannelState,
    ChannelStatus,
    RealtimeEvent,
    RealtimePayload,
)

# Storage
from .core.storage import (
    StorageAdapter,
    AsyncStorageAdapter,
    SQLiteStorage,
    MemoryStorage,
)

from .core.exceptions import FlowKoreException, AuthError, StorageError, RealtimeError

from .core.logging import get_logger, setup_logging

__version__ = '1.0.0'


__all__ = [
    'FlowKore',
    'setup_logging',
    'get_logger',
    '__version__',

    'APIConfig',
    'AuthConfig',
    'RealtimeConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'AsyncAPIClient',
    'Collection',
    'Files',
    'FlowKoreAPIError',

    'AuthClient',
    'AuthChangeEvent',
    'AuthData',
    'AuthResponse',
    'AuthSubscription',
    'Session',
    'SignOutResponse',
    'User',

    'RealtimeClient',
    'RealtimeChannel',
    'ChannelState',
    'ChannelStatus',
    'RealtimeEvent',
    'RealtimePayload',

    'StorageAdapter',
    'AsyncStorageAdapter',
    'SQLiteStorage',
    'MemoryStorage',

    'FlowKoreException',
    'AuthError',
    'StorageError',
    'RealtimeError',
]
