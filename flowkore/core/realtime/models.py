"""
Realtime data models.

Channel states, status values, subscriptions and the canonical change
payload every server message is normalized into.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional


class ChannelState(str, Enum):
    """Lifecycle of one channel's streaming connection."""
    IDLE = 'IDLE'
    CONNECTING = 'CONNECTING'
    SUBSCRIBED = 'SUBSCRIBED'
    ERROR = 'ERROR'
    RECONNECTING = 'RECONNECTING'
    CLOSED = 'CLOSED'


class ChannelStatus(str, Enum):
    """Values reported to a channel's status callback."""
    CONNECTING = 'CONNECTING'
    SUBSCRIBED = 'SUBSCRIBED'
    CHANNEL_ERROR = 'CHANNEL_ERROR'
    RECONNECTING = 'RECONNECTING'
    CLOSED = 'CLOSED'
    UNSUBSCRIBED = 'UNSUBSCRIBED'


class RealtimeEvent(str, Enum):
    """Row-level change kinds a subscription can ask for."""
    INSERT = 'INSERT'
    UPDATE = 'UPDATE'
    DELETE = 'DELETE'
    ALL = '*'

    @classmethod
    def parse(cls, value: Any) -> 'RealtimeEvent':
        """
        Raises:
            ValueError: If ``value`` is not INSERT/UPDATE/DELETE/*
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"Unknown realtime event {value!r}") from None


@dataclass
class RealtimePayload:
    """Canonical change event delivered to subscription callbacks."""
    event_type: Optional[str]
    new: Dict[str, Any] = field(default_factory=dict)
    old: Dict[str, Any] = field(default_factory=dict)
    table: Optional[str] = None
    schema: str = 'public'
    commit_timestamp: Optional[str] = None

    @property
    def record(self) -> Dict[str, Any]:
        """Row the event is about (``old`` for deletes)."""
        if self.event_type == RealtimeEvent.DELETE.value and self.old:
            return self.old
        return self.new or self.old

    def to_dict(self) -> Dict[str, Any]:
        return {
            'eventType': self.event_type,
            'new': self.new,
            'old': self.old,
            'table': self.table,
            'schema': self.schema,
            'commit_timestamp': self.commit_timestamp,
        }


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _same(left: Any, right: Any) -> bool:
    if left == right:
        return True
    if left is None or right is None:
        return False
    return str(left) == str(right)


@dataclass
class ColumnFilter:
    """
    Column-level refinement attached to a subscription.

    Supported operators: eq, neq, gt, gte, lt, lte, in. Any other
    operator is carried to the server but never rejects a payload.
    """
    column: str
    operator: str
    value: Any

    SUPPORTED = ('eq', 'neq', 'gt', 'gte', 'lt', 'lte', 'in')

    def to_param(self) -> str:
        """Query-string form ``column=op.value``."""
        value = self.value
        if isinstance(value, (list, tuple, set)):
            value = '(' + ','.join(str(v) for v in value) + ')'
        return f"{self.column}={self.operator}.{value}"

    def _values(self):
        value = self.value
        if isinstance(value, str):
            value = value.strip()
            if value.startswith('(') and value.endswith(')'):
                value = value[1:-1]
            return [v.strip() for v in value.split(',') if v.strip()]
        if isinstance(value, (list, tuple, set)):
            return list(value)
        return [value]

    def matches(self, record: Dict[str, Any]) -> bool:
        op = self.operator.lower()
        if op not in self.SUPPORTED:
            return True
        if self.column not in record:
            return False
        actual = record[self.column]

        if op == 'eq':
            return _same(actual, self.value)
        if op == 'neq':
            return not _same(actual, self.value)
        if op == 'in':
            return any(_same(actual, v) for v in self._values())

        left, right = _as_number(actual), _as_number(self.value)
        if left is None or right is None:
            left, right = actual, self.value
        try:
            if op == 'gt':
                return left > right
            if op == 'gte':
                return left >= right
            if op == 'lt':
                return left < right
            return left <= right
        except TypeError:
            return False


@dataclass
class Subscription:
    """
    Interest registered on a channel via ``on``.

    Delivery rule: event is '*' or equals the payload's event type, and
    table is unset or equals the payload's table.
    """
    event: RealtimeEvent
    callback: Callable[[RealtimePayload], None]
    table: Optional[str] = None
    filter: Optional[ColumnFilter] = None

    def matches(self, payload: RealtimePayload, enforce_filter: bool = True) -> bool:
        if self.event is not RealtimeEvent.ALL and self.event.value != payload.event_type:
            return False
        if self.table is not None and self.table != payload.table:
            return False
        if enforce_filter and self.filter is not None:
            return self.filter.matches(payload.record)
        return True
