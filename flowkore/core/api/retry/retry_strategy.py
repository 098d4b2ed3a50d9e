"""Reconnect strategies using Strategy Pattern."""
from abc import ABC, abstractmethod

from ..config import RealtimeConfig


class RetryStrategy(ABC):
    """Abstract retry strategy."""

    @abstractmethod
    def should_retry(self, attempt: int) -> bool:
        """Determines if the given (1-based) attempt may be made."""
        pass

    @abstractmethod
    def get_delay(self, attempt: int) -> float:
        """Seconds to wait before the given (1-based) attempt."""
        pass


class ExponentialBackoffStrategy(RetryStrategy):
    """
    Exponential backoff retry strategy.

    delay(attempt) = base_delay * exponential_base ** (attempt - 1), so with
    the defaults attempts 1..10 wait 1, 2, 4, ... 512 seconds.
    """

    def __init__(
        self,
        max_attempts: int = 10,
        base_delay: float = 1.0,
        exponential_base: float = 2.0
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.exponential_base = exponential_base

    @classmethod
    def from_config(cls, config: RealtimeConfig) -> 'ExponentialBackoffStrategy':
        return cls(
            max_attempts=config.max_reconnect_attempts,
            base_delay=config.reconnect_base_delay,
            exponential_base=config.exponential_base
        )

    def should_retry(self, attempt: int) -> bool:
        return 1 <= attempt <= self.max_attempts

    def get_delay(self, attempt: int) -> float:
        return self.base_delay * (self.exponential_base ** (attempt - 1))
