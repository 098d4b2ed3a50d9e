"""Normalization and fan-out of realtime server messages."""
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .models import RealtimePayload, Subscription
from ..api.sse import ServerSentEvent
from ..logging import get_logger


ACTION_ALIASES: Dict[str, str] = {
    'insert': 'INSERT',
    'create': 'INSERT',
    'created': 'INSERT',
    'update': 'UPDATE',
    'updated': 'UPDATE',
    'delete': 'DELETE',
    'deleted': 'DELETE',
    'remove': 'DELETE',
}

NAMED_EVENTS = ('insert', 'update', 'delete')


def normalize_action(action: Any) -> Optional[str]:
    if action is None or action == '':
        return None
    return ACTION_ALIASES.get(str(action).lower(), str(action).upper())


class EventDispatcher:
    """
    Converts raw stream messages into ``RealtimePayload`` and delivers
    them to matching subscriptions of one channel.

    Two input shapes are accepted:
    - generic ``message`` events whose JSON body names the action
      (``action``/``eventType``/``type``), the row (``record``/``new``/
      ``data``), ``old`` and the table (``collection``/``table``);
    - named ``insert``/``update``/``delete`` events whose body is either
      such an envelope or the bare row.
    """

    def __init__(self, channel_name: str, enforce_filters: bool = True):
        self._default_table = None if channel_name == '*' else channel_name
        self._enforce_filters = enforce_filters
        self._logger = get_logger('flowkore.realtime')

    def normalize(self, message: ServerSentEvent) -> Optional[RealtimePayload]:
        """Returns None for bodies that are not a JSON object."""
        try:
            body = json.loads(message.data)
        except (json.JSONDecodeError, TypeError) as e:
            self._logger.warning(f"Dropping malformed realtime message: {e}")
            return None
        if not isinstance(body, dict):
            self._logger.warning("Dropping realtime message without an object body")
            return None

        event_name = (message.event or 'message').lower()
        if event_name in NAMED_EVENTS:
            event_type = ACTION_ALIASES[event_name]
            if self._is_envelope(body):
                new = self._pick(body, 'record', 'new', 'data')
            else:
                new = body
        else:
            event_type = normalize_action(
                self._pick(body, 'action', 'eventType', 'type')
            )
            new = self._pick(body, 'record', 'new', 'data')

        old = body.get('old')
        table = self._pick(body, 'collection', 'table') or self._default_table

        return RealtimePayload(
            event_type=event_type,
            new=new if isinstance(new, dict) else {},
            old=old if isinstance(old, dict) else {},
            table=table,
            schema=body.get('schema') or 'public',
            commit_timestamp=body.get('commit_timestamp') or datetime.now(timezone.utc).isoformat(),
        )

    def dispatch(self, payload: RealtimePayload, subscriptions: Iterable[Subscription]) -> int:
        """
        Invoke every matching subscription callback.

        Returns:
            Number of callbacks invoked
        """
        delivered = 0
        for subscription in list(subscriptions):
            if not subscription.matches(payload, self._enforce_filters):
                continue
            delivered += 1
            try:
                subscription.callback(payload)
            except Exception:
                self._logger.exception(
                    f"Realtime callback failed for {payload.event_type} on {payload.table}"
                )
        return delivered

    @staticmethod
    def _is_envelope(body: Dict[str, Any]) -> bool:
        return any(key in body for key in ('record', 'new', 'old', 'collection', 'table'))

    @staticmethod
    def _pick(body: Dict[str, Any], *keys: str) -> Any:
        for key in keys:
            if body.get(key) is not None:
                return body[key]
        return None
