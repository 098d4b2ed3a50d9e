"""
Server-Sent Events wire parser.

Turns the line-oriented ``text/event-stream`` body into
``ServerSentEvent`` records.
"""
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class ServerSentEvent:
    """A single dispatched server-push message."""
    data: str
    event: str = 'message'
    id: Optional[str] = None
    retry: Optional[int] = None


class SSEParser:
    """
    Incremental SSE parser.

    Feed it decoded lines (with or without trailing newline); it returns
    an event whenever a blank line completes one.

    Example:
        >>> parser = SSEParser()
        >>> parser.feed_line('event: insert')
        >>> parser.feed_line('data: {"id": 1}')
        >>> parser.feed_line('')
        ServerSentEvent(data='{"id": 1}', event='insert', id=None, retry=None)
    """

    def __init__(self):
        self._data: List[str] = []
        self._event: Optional[str] = None
        self._id: Optional[str] = None
        self._last_id: Optional[str] = None
        self._retry: Optional[int] = None

    @property
    def last_event_id(self) -> Optional[str]:
        return self._last_id

    def feed_line(self, line: str) -> Optional[ServerSentEvent]:
        line = line.rstrip('\r\n')

        if not line:
            return self._dispatch()

        # Comment / keep-alive
        if line.startswith(':'):
            return None

        if ':' in line:
            name, value = line.split(':', 1)
            if value.startswith(' '):
                value = value[1:]
        else:
            name, value = line, ''

        if name == 'data':
            self._data.append(value)
        elif name == 'event':
            self._event = value
        elif name == 'id':
            if '\0' not in value:
                self._id = value
        elif name == 'retry':
            if value.isdigit():
                self._retry = int(value)

        return None

    def _dispatch(self) -> Optional[ServerSentEvent]:
        if self._id is not None:
            self._last_id = self._id

        if not self._data:
            self._event = None
            self._id = None
            return None

        event = ServerSentEvent(
            data='\n'.join(self._data),
            event=self._event or 'message',
            id=self._id if self._id is not None else self._last_id,
            retry=self._retry,
        )
        self._data = []
        self._event = None
        self._id = None
        self._retry = None
        return event
