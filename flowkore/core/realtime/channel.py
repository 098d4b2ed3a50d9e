"""
Realtime channel.

One named topic with its subscriptions and its streaming connection:
IDLE -> CONNECTING -> SUBSCRIBED -> (ERROR -> RECONNECTING -> CONNECTING)* -> CLOSED
"""
import asyncio
from typing import Any, Callable, List, Optional
from urllib.parse import urlencode

from .dispatcher import EventDispatcher
from .models import (
    ChannelState,
    ChannelStatus,
    ColumnFilter,
    RealtimeEvent,
    RealtimePayload,
    Subscription,
)
from ..api.async_client import AsyncAPIClient, TokenProvider
from ..api.config import RealtimeConfig
from ..api.retry import RetryStrategy, ExponentialBackoffStrategy
from ..api.sse import ServerSentEvent
from ..exceptions import StreamClosedError
from ..logging import get_logger


StatusCallback = Callable[[ChannelStatus, Optional[BaseException]], None]


class RealtimeChannel:
    """
    Subscription set plus streaming connection for one table.

    Every ``subscribe()`` that opens a connection and every
    ``unsubscribe()`` bumps an epoch counter. Stream tasks and backoff
    timers capture the epoch they were started under and do nothing once
    it is stale, so a torn-down channel cannot be revived by a late
    retry or a message from an in-flight connection.

    Example:
        >>> channel = realtime.channel('orders')
        >>> channel.on('INSERT', handle_order).filter('status', 'eq', 'paid')
        >>> channel.subscribe(lambda status, err: print(status))
        >>> ...
        >>> await channel.unsubscribe()
    """

    STREAM_PATH = '/api/realtime'

    def __init__(
        self,
        name: str,
        api: AsyncAPIClient,
        token_provider: Optional[TokenProvider] = None,
        config: Optional[RealtimeConfig] = None,
        retry_strategy: Optional[RetryStrategy] = None
    ):
        """
        Args:
            name: Table name, or '*' for every table
            api: Backend API collaborator (provides ``open_event_stream``)
            token_provider: Callable returning the current access token
            config: Realtime configuration
            retry_strategy: Reconnect policy (exponential backoff by default)
        """
        self.name = name
        self._api = api
        self._token_provider = token_provider
        self._config = config or RealtimeConfig()
        self._retry_strategy = retry_strategy or ExponentialBackoffStrategy.from_config(self._config)
        self._dispatcher = EventDispatcher(name, enforce_filters=self._config.enforce_filters)
        self._logger = get_logger('flowkore.realtime')

        self._subscriptions: List[Subscription] = []
        self._state = ChannelState.IDLE
        self._reconnect_attempts = 0
        self._epoch = 0
        self._task: Optional[asyncio.Task] = None
        self._retry_handle: Optional[asyncio.TimerHandle] = None
        self._status_callback: Optional[StatusCallback] = None

    def __repr__(self) -> str:
        return f"RealtimeChannel(name={self.name!r}, state={self._state.value})"

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def subscriptions(self) -> List[Subscription]:
        return list(self._subscriptions)

    # Registration

    def on(
        self,
        event: Any,
        callback: Callable[[RealtimePayload], None],
        table: Optional[str] = None
    ) -> 'RealtimeChannel':
        """
        Register interest in a change kind.

        Args:
            event: 'INSERT', 'UPDATE', 'DELETE' or '*'
            callback: Receives the normalized ``RealtimePayload``
            table: Only deliver payloads for this table (defaults to
                the channel's own table; the '*' channel takes every table)

        Raises:
            ValueError: If ``event`` is not a known change kind
        """
        if table is None and self.name != '*':
            table = self.name
        self._subscriptions.append(Subscription(
            event=RealtimeEvent.parse(event),
            callback=callback,
            table=table,
        ))
        return self

    def filter(self, column: str, operator: str, value: Any) -> 'RealtimeChannel':
        """Attach a column filter to the most recent ``on``; no-op without one."""
        if self._subscriptions:
            self._subscriptions[-1].filter = ColumnFilter(column, operator, value)
        return self

    def build_url(self) -> str:
        """Stream URL carrying table, token and column filters."""
        params = []
        if self.name != '*':
            params.append(('table', self.name))
        token = self._token_provider() if self._token_provider else None
        if token:
            params.append(('token', token))
        for subscription in self._subscriptions:
            if subscription.filter is not None:
                params.append(('filter', subscription.filter.to_param()))

        path = self.STREAM_PATH
        if params:
            path = f"{path}?{urlencode(params)}"
        return self._api.build_url(path)

    # Connection lifecycle

    def subscribe(self, callback: Optional[StatusCallback] = None) -> 'RealtimeChannel':
        """
        Open the streaming connection.

        Must be called with a running event loop. Idempotent while
        subscribed (the callback just gets SUBSCRIBED again) and while a
        connection attempt is already pending.

        Args:
            callback: Receives ``(ChannelStatus, error_or_None)``
        """
        if callback is not None:
            self._status_callback = callback

        if self._state is ChannelState.SUBSCRIBED:
            self._report(ChannelStatus.SUBSCRIBED)
            return self
        if self._state in (ChannelState.CONNECTING, ChannelState.RECONNECTING):
            return self

        self._epoch += 1
        self._reconnect_attempts = 0
        self._open(self._epoch)
        return self

    async def unsubscribe(self) -> None:
        """
        Close the connection and drop every subscription.

        Safe from any state, including before ``subscribe`` and while a
        reconnect delay is pending.
        """
        self._epoch += 1

        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            if task is not asyncio.current_task():
                await asyncio.wait({task})

        self._subscriptions.clear()
        self._reconnect_attempts = 0
        self._state = ChannelState.CLOSED
        self._logger.info(f"Channel '{self.name}' unsubscribed")
        self._report(ChannelStatus.UNSUBSCRIBED)

    # Internals

    def _open(self, epoch: int) -> None:
        self._state = ChannelState.CONNECTING
        self._report(ChannelStatus.CONNECTING)
        if epoch != self._epoch:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(epoch))

    async def _run(self, epoch: int) -> None:
        error: BaseException
        try:
            async with self._api.open_event_stream(self.build_url()) as stream:
                if epoch != self._epoch:
                    return
                self._reconnect_attempts = 0
                self._state = ChannelState.SUBSCRIBED
                self._logger.info(f"Channel '{self.name}' subscribed")
                self._report(ChannelStatus.SUBSCRIBED)

                async for message in stream:
                    if epoch != self._epoch:
                        return
                    self._handle_message(message)
            error = StreamClosedError()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e

        if epoch != self._epoch:
            return
        self._handle_failure(epoch, error)

    def _handle_message(self, message: ServerSentEvent) -> None:
        payload = self._dispatcher.normalize(message)
        if payload is None:
            return
        self._dispatcher.dispatch(payload, self._subscriptions)

    def _handle_failure(self, epoch: int, error: BaseException) -> None:
        self._task = None
        self._state = ChannelState.ERROR
        self._logger.warning(f"Channel '{self.name}' stream error: {error}")
        self._report(ChannelStatus.CHANNEL_ERROR, error)
        if epoch != self._epoch:
            return

        attempt = self._reconnect_attempts + 1
        if not self._retry_strategy.should_retry(attempt):
            self._state = ChannelState.CLOSED
            self._logger.error(
                f"Channel '{self.name}' closed after {self._reconnect_attempts} reconnect attempts"
            )
            self._report(ChannelStatus.CLOSED, error)
            return

        self._reconnect_attempts = attempt
        delay = self._retry_strategy.get_delay(attempt)
        self._state = ChannelState.RECONNECTING
        self._logger.info(f"Channel '{self.name}' reconnecting in {delay}s (attempt {attempt})")
        self._report(ChannelStatus.RECONNECTING)
        if epoch != self._epoch:
            return
        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(delay, self._retry, epoch)

    def _retry(self, epoch: int) -> None:
        self._retry_handle = None
        if epoch != self._epoch or self._state is not ChannelState.RECONNECTING:
            return
        self._open(epoch)

    def _report(self, status: ChannelStatus, error: Optional[BaseException] = None) -> None:
        if self._status_callback is None:
            return
        try:
            self._status_callback(status, error)
        except Exception:
            self._logger.exception(f"Status callback failed on channel '{self.name}'")
