"""
SQLite storage implementation.

Provides persistent key/value storage in a local SQLite database file,
the desktop/server counterpart of a browser's local storage.
"""
import sqlite3
import threading
from pathlib import Path
from datetime import datetime
from typing import Optional, Union
from contextlib import contextmanager

from .protocols import StorageAdapter


class SQLiteStorage(StorageAdapter):
    """
    SQLite-based key/value storage.

    Thread-safe implementation with a single lazily opened connection.

    Example:
        >>> storage = SQLiteStorage("my_app")
        >>> # Creates my_app.flowkore file
        >>>
        >>> storage.set('flowkore.auth.session', session.to_json())
        >>> raw = storage.get('flowkore.auth.session')
    """

    EXTENSION = '.flowkore'
    SCHEMA_VERSION = 1

    def __init__(
        self,
        name: Union[str, Path],
        base_path: Optional[Path] = None
    ):
        """
        Initialize SQLite storage.

        Args:
            name: Storage name (without extension) or full path
            base_path: Optional base directory for storage files
        """
        self._lock = threading.Lock()
        self._conn: Optional[sqlite3.Connection] = None

        if isinstance(name, Path) or str(name).endswith(self.EXTENSION):
            self._path = Path(name)
        else:
            if base_path:
                self._path = base_path / f"{name}{self.EXTENSION}"
            else:
                self._path = Path(f"{name}{self.EXTENSION}")

        self._path.parent.mkdir(parents=True, exist_ok=True)

        self._init_db()

    @property
    def path(self) -> Path:
        """Get storage file path."""
        return self._path

    @contextmanager
    def _get_connection(self):
        """Get thread-safe database connection."""
        with self._lock:
            if self._conn is None:
                self._conn = sqlite3.connect(
                    str(self._path),
                    check_same_thread=False
                )
                self._conn.row_factory = sqlite3.Row
            yield self._conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS version (
                    version INTEGER PRIMARY KEY
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            ''')

            cursor.execute('SELECT version FROM version LIMIT 1')
            row = cursor.fetchone()
            if row is None:
                cursor.execute(
                    'INSERT INTO version (version) VALUES (?)',
                    (self.SCHEMA_VERSION,)
                )

            conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT value FROM kv WHERE key = ?', (key,))
            row = cursor.fetchone()
            if row is None:
                return None
            return row['value']

    def set(self, key: str, value: str) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT OR REPLACE INTO kv (key, value, updated_at)
                VALUES (?, ?, ?)
            ''', (key, value, datetime.now().isoformat()))
            conn.commit()

    def remove(self, key: str) -> None:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM kv WHERE key = ?', (key,))
            conn.commit()

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def delete_file(self) -> None:
        """Delete the storage file completely."""
        self.close()
        if self._path.exists():
            self._path.unlink()

    def __enter__(self) -> 'SQLiteStorage':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
