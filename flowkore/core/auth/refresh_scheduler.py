"""Single-timer scheduler for silent access-token renewal."""
import asyncio
from typing import Awaitable, Callable, Optional

from .models import Session
from ..logging import get_logger


class RefreshScheduler:
    """
    Arms at most one pending refresh timer.

    ``arm`` always cancels the previously armed timer before scheduling
    a new one, so a manager never holds two live timers. When the timer
    fires, the refresh coroutine runs as a task.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[None]],
        margin: float = 60.0,
        enabled: bool = True
    ):
        """
        Args:
            refresh: Coroutine function performing the renewal
            margin: Seconds before expiry at which to fire
            enabled: When False, ``arm`` never schedules anything
        """
        self._refresh = refresh
        self._margin = margin
        self._enabled = enabled
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._logger = get_logger('flowkore.auth')

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired."""
        return self._handle is not None and not self._handle.cancelled()

    @property
    def task(self) -> Optional[asyncio.Task]:
        """The most recent refresh task (may be done)."""
        return self._task

    def compute_delay(self, session: Session) -> Optional[float]:
        """
        Seconds until renewal should fire, or None when no timer applies.

        Sessions within ``margin`` of expiry (or past it) fire at once.
        """
        if not session.refresh_token:
            return None
        remaining = session.seconds_until_expiry()
        if remaining is None:
            return None
        if remaining <= self._margin:
            return 0.0
        return remaining - self._margin

    def arm(self, session: Session) -> Optional[float]:
        """
        Schedule renewal for ``session``, replacing any armed timer.

        Returns:
            The delay used, or None when nothing was scheduled
        """
        self.cancel()
        if not self._enabled:
            return None
        delay = self.compute_delay(session)
        if delay is None:
            return None
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire)
        self._logger.debug(f"Token refresh armed in {delay:.1f}s")
        return delay

    def cancel(self) -> None:
        """Disarm the pending timer, if any. An in-flight refresh keeps running."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def stop(self) -> None:
        """Disarm the timer and cancel an in-flight refresh task."""
        self.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.ensure_future(self._refresh())
