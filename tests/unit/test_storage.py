"""Tests for storage adapters."""
import pytest

from flowkore.core.storage import (
    AsyncStorageAdapter,
    MemoryStorage,
    SQLiteStorage,
    StorageAdapter,
    default_storage,
    resolve,
)


class TestMemoryStorage:
    """Test suite for MemoryStorage."""

    def test_set_get_remove(self):
        storage = MemoryStorage()

        storage.set('k', 'v')
        assert storage.get('k') == 'v'
        assert 'k' in storage

        storage.remove('k')
        assert storage.get('k') is None

    def test_remove_missing_key(self):
        MemoryStorage().remove('absent')

    def test_is_a_storage_adapter(self):
        assert isinstance(MemoryStorage(), StorageAdapter)


class TestSQLiteStorage:
    """Test suite for SQLiteStorage."""

    def test_values_survive_reopen(self, tmp_path):
        with SQLiteStorage('session', base_path=tmp_path) as storage:
            storage.set('flowkore.auth.session', '{"a": 1}')
            path = storage.path

        assert path == tmp_path / 'session.flowkore'
        with SQLiteStorage(path) as reopened:
            assert reopened.get('flowkore.auth.session') == '{"a": 1}'

    def test_overwrite_and_remove(self, tmp_path):
        storage = SQLiteStorage(tmp_path / 'data.flowkore')

        storage.set('k', 'one')
        storage.set('k', 'two')
        assert storage.get('k') == 'two'

        storage.remove('k')
        assert storage.get('k') is None
        storage.close()

    def test_delete_file(self, tmp_path):
        storage = SQLiteStorage('gone', base_path=tmp_path)
        storage.set('k', 'v')

        storage.delete_file()

        assert not (tmp_path / 'gone.flowkore').exists()


class TestDefaultStorage:
    """Test suite for default_storage."""

    def test_memory_without_path(self):
        assert isinstance(default_storage(), MemoryStorage)

    def test_sqlite_with_path(self, tmp_path):
        storage = default_storage(tmp_path / 'app.flowkore')

        assert isinstance(storage, SQLiteStorage)
        storage.close()

    def test_falls_back_to_memory(self, tmp_path):
        blocker = tmp_path / 'not-a-dir'
        blocker.write_text('x')

        storage = default_storage(blocker / 'app.flowkore')

        assert isinstance(storage, MemoryStorage)


class TestResolve:
    """Test suite for sync/async adapter unification."""

    @pytest.mark.asyncio
    async def test_plain_value(self):
        assert await resolve('v') == 'v'

    @pytest.mark.asyncio
    async def test_awaitable_value(self):
        class AsyncStorage:
            async def get(self, key):
                return key.upper()

            async def set(self, key, value):
                pass

            async def remove(self, key):
                pass

        storage = AsyncStorage()

        assert isinstance(storage, AsyncStorageAdapter)
        assert await resolve(storage.get('k')) == 'K'
