"""
Session store.

Owns the current-session slot of one auth client and writes it through
to the storage adapter.
"""
from typing import Optional

from .models import Session, User
from ..exceptions import StorageError
from ..logging import get_logger
from ..storage import StorageAdapter, resolve


class SessionStore:
    """
    Holds the current session/user and persists them.

    Invariant: when a session is current, ``user`` is ``session.user``.

    There is no compare-and-swap on the slot: two overlapping sign-ins
    resolve as last write wins, in memory and in storage.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        storage_key: str,
        persist: bool = True
    ):
        """
        Args:
            storage: Key/value adapter (sync or async)
            storage_key: Key of the persisted session record
            persist: Write the session through to storage
        """
        self._storage = storage
        self._storage_key = storage_key
        self._persist = persist
        self._session: Optional[Session] = None
        self._logger = get_logger('flowkore.auth')

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def user(self) -> Optional[User]:
        return self._session.user if self._session else None

    @property
    def access_token(self) -> Optional[str]:
        return self._session.access_token if self._session else None

    @property
    def storage_key(self) -> str:
        return self._storage_key

    async def save(self, session: Session) -> None:
        """
        Install ``session`` as current and persist it.

        A storage failure is logged; the in-memory slot is updated anyway.
        """
        session.stamp_expiry()
        self._session = session
        if not self._persist:
            return
        try:
            await resolve(self._storage.set(self._storage_key, session.to_json()))
        except Exception as e:
            self._logger.warning(f"Could not persist session: {e}")

    async def clear(self) -> None:
        """
        Drop the current session and its persisted record.

        Raises:
            StorageError: If the storage adapter fails to remove the record
                (the in-memory slot is already cleared)
        """
        self._session = None
        if not self._persist:
            return
        try:
            await resolve(self._storage.remove(self._storage_key))
        except Exception as e:
            raise StorageError(f"Could not remove stored session: {e}", 'storage_remove') from e

    async def load(self) -> Optional[Session]:
        """
        Read and parse the persisted record without installing it.

        Missing, unreadable or incompatible records all yield None.
        """
        if not self._persist:
            return None
        try:
            raw = await resolve(self._storage.get(self._storage_key))
        except Exception as e:
            self._logger.debug(f"Session storage unreadable: {e}")
            return None
        if not raw:
            return None
        try:
            return Session.from_json(raw)
        except (ValueError, TypeError, KeyError) as e:
            self._logger.debug(f"Ignoring stored session: {e}")
            return None
