"""Event emitter implementation using Observer Pattern."""
from typing import List, Callable

from ...logging import get_logger


class EventEmitter:
    """
    Listener registry using Observer Pattern.

    Listeners are held by reference identity: adding the same callable
    twice keeps a single entry. ``emit`` iterates over a snapshot, so a
    listener may remove itself (or others) while being notified.
    """

    def __init__(self, logger_name: str = 'flowkore.events'):
        """Initializes event emitter."""
        self._listeners: List[Callable] = []
        self._logger = get_logger(logger_name)

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, callback: Callable) -> bool:
        return any(listener is callback for listener in self._listeners)

    def on(self, callback: Callable) -> 'EventEmitter':
        """Registers a listener (idempotent per reference)."""
        if callback not in self:
            self._listeners.append(callback)
        return self

    def off(self, callback: Callable) -> 'EventEmitter':
        """Removes a listener; unknown listeners are ignored."""
        self._listeners = [cb for cb in self._listeners if cb is not callback]
        return self

    def clear(self):
        self._listeners.clear()

    def emit(self, *args, **kwargs):
        """Calls every registered listener; a failing listener is logged and skipped."""
        for callback in list(self._listeners):
            self.call(callback, *args, **kwargs)

    def call(self, callback: Callable, *args, **kwargs):
        """Invokes a single listener with the emitter's error policy."""
        try:
            callback(*args, **kwargs)
        except Exception:
            self._logger.exception("Listener %r raised", callback)
