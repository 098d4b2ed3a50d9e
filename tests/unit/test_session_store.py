"""Tests for SessionStore and RefreshScheduler."""
import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from flowkore.core.auth import Session
from flowkore.core.auth.refresh_scheduler import RefreshScheduler
from flowkore.core.auth.session_store import SessionStore
from flowkore.core.exceptions import StorageError
from flowkore.core.storage import MemoryStorage

from conftest import wait_until


KEY = 'flowkore.auth.session'


class TestSessionStore:
    """Test suite for SessionStore."""

    @pytest.mark.asyncio
    async def test_save_and_load(self, session_record):
        storage = MemoryStorage()
        store = SessionStore(storage, KEY)

        await store.save(Session.from_dict(session_record))
        loaded = await SessionStore(storage, KEY).load()

        assert store.access_token == 'access-1'
        assert store.user is store.session.user
        assert loaded.access_token == 'access-1'
        assert loaded.expires_at == store.session.expires_at

    @pytest.mark.asyncio
    async def test_save_survives_storage_failure(self, session_record):
        storage = Mock()
        storage.set.side_effect = OSError('read-only')
        store = SessionStore(storage, KEY)

        await store.save(Session.from_dict(session_record))

        assert store.access_token == 'access-1'

    @pytest.mark.asyncio
    async def test_clear_raises_storage_error(self, session_record):
        storage = Mock()
        storage.remove.side_effect = OSError('read-only')
        store = SessionStore(storage, KEY)
        await store.save(Session.from_dict(session_record))

        with pytest.raises(StorageError):
            await store.clear()

        assert store.session is None

    @pytest.mark.asyncio
    async def test_non_persistent_store_never_touches_storage(self, session_record):
        storage = Mock()
        store = SessionStore(storage, KEY, persist=False)

        await store.save(Session.from_dict(session_record))
        await store.clear()

        assert await store.load() is None
        storage.set.assert_not_called()
        storage.remove.assert_not_called()


class TestRefreshScheduler:
    """Test suite for RefreshScheduler."""

    def _session(self, session_record, **overrides):
        return Session.from_dict({**session_record, **overrides})

    @pytest.mark.parametrize('overrides,expected', [
        ({'expires_in': 3600}, 3540.0),
        ({'expires_in': 60}, 0.0),
        ({'expires_in': 30}, 0.0),
        ({'expires_in': None}, None),
        ({'refresh_token': None}, None),
    ])
    def test_compute_delay(self, session_record, overrides, expected):
        scheduler = RefreshScheduler(AsyncMock())

        assert scheduler.compute_delay(self._session(session_record, **overrides)) == expected

    def test_expired_session_fires_at_once(self, session_record):
        scheduler = RefreshScheduler(AsyncMock())
        session = self._session(session_record, expires_at=1)

        assert scheduler.compute_delay(session) == 0.0

    @pytest.mark.asyncio
    async def test_fires_refresh(self, session_record):
        refresh = AsyncMock()
        scheduler = RefreshScheduler(refresh, margin=60.0)

        delay = scheduler.arm(self._session(session_record, expires_in=1))
        await wait_until(lambda: refresh.await_count == 1)

        assert delay == 0.0
        assert scheduler.pending is False

    @pytest.mark.asyncio
    async def test_disabled_never_arms(self, session_record):
        scheduler = RefreshScheduler(AsyncMock(), enabled=False)

        assert scheduler.arm(self._session(session_record)) is None
        assert scheduler.pending is False

    @pytest.mark.asyncio
    async def test_stop_cancels_inflight_refresh(self, session_record):
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(3600)

        scheduler = RefreshScheduler(slow)
        scheduler.arm(self._session(session_record, expires_in=0))
        await started.wait()
        task = scheduler.task

        scheduler.stop()
        await asyncio.wait({task})

        assert task.cancelled()
