"""Reconnect strategies using Strategy Pattern."""
from .retry_strategy import RetryStrategy, ExponentialBackoffStrategy

__all__ = [
    'RetryStrategy',
    'ExponentialBackoffStrategy',
]
