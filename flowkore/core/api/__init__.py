"""FlowKore API transport, configuration and shared building blocks."""
from .errors import FlowKoreAPIError, APIErrorCodes
from .events import EventEmitter
from .config import (
    APIConfig,
    ProxyConfig,
    SSLConfig,
    TimeoutConfig,
    AuthConfig,
    RealtimeConfig
)
from .retry import RetryStrategy, ExponentialBackoffStrategy
from .sse import SSEParser, ServerSentEvent
from .async_client import AsyncAPIClient, EventStream
from .collection import Collection
from .files import Files

__all__ = [
    # Client
    'AsyncAPIClient',
    'EventStream',
    'Collection',
    'Files',

    # Configuration
    'APIConfig',
    'ProxyConfig',
    'SSLConfig',
    'TimeoutConfig',
    'AuthConfig',
    'RealtimeConfig',

    # Retry
    'RetryStrategy',
    'ExponentialBackoffStrategy',

    # SSE
    'SSEParser',
    'ServerSentEvent',

    # Errors
    'FlowKoreAPIError',
    'APIErrorCodes',

    # Events
    'EventEmitter',
]
