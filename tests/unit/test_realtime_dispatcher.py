"""Tests for realtime payload normalization, filters and fan-out."""
import json

import pytest

from flowkore.core.api.sse import ServerSentEvent
from flowkore.core.realtime import (
    ColumnFilter,
    EventDispatcher,
    RealtimeEvent,
    RealtimePayload,
    Subscription,
)
from flowkore.core.realtime.dispatcher import normalize_action


def message(body, event='message'):
    return ServerSentEvent(data=json.dumps(body) if not isinstance(body, str) else body, event=event)


class TestNormalize:
    """Test suite for EventDispatcher.normalize."""

    def test_generic_envelope(self):
        dispatcher = EventDispatcher('orders')

        payload = dispatcher.normalize(message({
            'action': 'create',
            'collection': 'orders',
            'record': {'id': 1},
            'commit_timestamp': '2024-01-01T00:00:00Z',
        }))

        assert payload.event_type == 'INSERT'
        assert payload.new == {'id': 1}
        assert payload.old == {}
        assert payload.table == 'orders'
        assert payload.schema == 'public'
        assert payload.commit_timestamp == '2024-01-01T00:00:00Z'

    def test_event_type_and_new_keys(self):
        dispatcher = EventDispatcher('orders')

        payload = dispatcher.normalize(message({
            'eventType': 'UPDATE',
            'table': 'orders',
            'new': {'id': 1, 'total': 5},
            'old': {'id': 1, 'total': 4},
        }))

        assert payload.event_type == 'UPDATE'
        assert payload.old == {'id': 1, 'total': 4}

    def test_type_and_data_keys(self):
        """``{table, type, data}`` bodies."""
        dispatcher = EventDispatcher('*')

        payload = dispatcher.normalize(message({'table': 'users', 'type': 'delete', 'data': {'id': 3}}))

        assert payload.event_type == 'DELETE'
        assert payload.table == 'users'
        assert payload.record == {'id': 3}

    def test_named_event_with_bare_row(self):
        dispatcher = EventDispatcher('orders')

        payload = dispatcher.normalize(message({'id': 5, 'status': 'paid'}, event='insert'))

        assert payload.event_type == 'INSERT'
        assert payload.new == {'id': 5, 'status': 'paid'}
        assert payload.table == 'orders'

    def test_named_event_with_envelope(self):
        dispatcher = EventDispatcher('orders')

        payload = dispatcher.normalize(message({'record': {'id': 5}, 'old': {'id': 5, 'x': 1}}, event='update'))

        assert payload.event_type == 'UPDATE'
        assert payload.new == {'id': 5}
        assert payload.old == {'id': 5, 'x': 1}

    def test_wildcard_channel_without_table(self):
        dispatcher = EventDispatcher('*')

        payload = dispatcher.normalize(message({'action': 'create', 'record': {'id': 1}}))

        assert payload.table is None

    def test_timestamp_defaults_to_now(self):
        dispatcher = EventDispatcher('orders')

        payload = dispatcher.normalize(message({'action': 'create', 'record': {}}))

        assert payload.commit_timestamp is not None
        assert payload.commit_timestamp.endswith('+00:00')

    @pytest.mark.parametrize('raw', ['not json', '[1, 2]', '"text"', '42'])
    def test_malformed_bodies_are_dropped(self, raw):
        dispatcher = EventDispatcher('orders')

        assert dispatcher.normalize(message(raw)) is None

    def test_action_aliases(self):
        assert normalize_action('created') == 'INSERT'
        assert normalize_action('remove') == 'DELETE'
        assert normalize_action('upsert') == 'UPSERT'
        assert normalize_action(None) is None


class TestDispatch:
    """Test suite for EventDispatcher.dispatch."""

    def _payload(self, event_type='INSERT', table='orders', **new):
        return RealtimePayload(event_type=event_type, new=new, table=table)

    def test_delivers_by_event_and_table(self):
        dispatcher = EventDispatcher('*')
        got = {'insert': [], 'all': [], 'users': []}
        subscriptions = [
            Subscription(RealtimeEvent.INSERT, got['insert'].append),
            Subscription(RealtimeEvent.ALL, got['all'].append),
            Subscription(RealtimeEvent.ALL, got['users'].append, table='users'),
        ]

        delivered = dispatcher.dispatch(self._payload('UPDATE', id=1), subscriptions)

        assert delivered == 1
        assert got['insert'] == []
        assert len(got['all']) == 1
        assert got['users'] == []

    def test_callback_failure_does_not_stop_fanout(self):
        dispatcher = EventDispatcher('orders')
        received = []

        def broken(payload):
            raise RuntimeError('boom')

        subscriptions = [
            Subscription(RealtimeEvent.ALL, broken),
            Subscription(RealtimeEvent.ALL, received.append),
        ]

        assert dispatcher.dispatch(self._payload(id=1), subscriptions) == 2
        assert len(received) == 1

    def test_filters_can_be_disabled(self):
        dispatcher = EventDispatcher('orders', enforce_filters=False)
        received = []
        subscription = Subscription(
            RealtimeEvent.INSERT, received.append,
            filter=ColumnFilter('status', 'eq', 'paid')
        )

        dispatcher.dispatch(self._payload(status='pending'), [subscription])

        assert len(received) == 1


class TestColumnFilter:
    """Test suite for ColumnFilter."""

    @pytest.mark.parametrize('column,operator,value,record,expected', [
        ('status', 'eq', 'paid', {'status': 'paid'}, True),
        ('status', 'eq', 'paid', {'status': 'open'}, False),
        ('id', 'eq', '5', {'id': 5}, True),
        ('status', 'neq', 'paid', {'status': 'open'}, True),
        ('total', 'gt', 10, {'total': 11}, True),
        ('total', 'gt', 10, {'total': 10}, False),
        ('total', 'gte', '10', {'total': 10}, True),
        ('total', 'lt', 10, {'total': 3.5}, True),
        ('total', 'lte', 10, {'total': 11}, False),
        ('id', 'in', [1, 2], {'id': 2}, True),
        ('tag', 'in', '(a,b)', {'tag': 'c'}, False),
        ('total', 'gt', 10, {'total': 'abc'}, False),
        ('status', 'eq', 'paid', {}, False),
        ('name', 'like', '%x%', {}, True),
    ])
    def test_matches(self, column, operator, value, record, expected):
        assert ColumnFilter(column, operator, value).matches(record) is expected

    def test_to_param(self):
        assert ColumnFilter('status', 'eq', 'paid').to_param() == 'status=eq.paid'
        assert ColumnFilter('id', 'in', [1, 2, 3]).to_param() == 'id=in.(1,2,3)'


class TestPayload:
    """Test suite for RealtimePayload."""

    def test_record_of_delete_is_old_row(self):
        payload = RealtimePayload(event_type='DELETE', new={}, old={'id': 1})

        assert payload.record == {'id': 1}

    def test_to_dict_uses_wire_names(self):
        payload = RealtimePayload(event_type='INSERT', new={'id': 1}, table='orders')

        data = payload.to_dict()

        assert data['eventType'] == 'INSERT'
        assert data['table'] == 'orders'
        assert data['schema'] == 'public'

    def test_event_parsing(self):
        assert RealtimeEvent.parse('insert') is RealtimeEvent.INSERT
        assert RealtimeEvent.parse('*') is RealtimeEvent.ALL
        with pytest.raises(ValueError):
            RealtimeEvent.parse('TRUNCATE')
