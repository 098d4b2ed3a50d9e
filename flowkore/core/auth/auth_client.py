"""
Async authentication client.

Handles password sign-up/sign-in, persisted sessions, silent token
renewal and auth state notifications.
"""
from typing import Any, Callable, Dict, Optional

from .models import (
    AuthChangeEvent,
    AuthData,
    AuthResponse,
    AuthSubscription,
    Session,
    SignOutResponse,
    User,
)
from .refresh_scheduler import RefreshScheduler
from .session_store import SessionStore
from ..api.async_client import AsyncAPIClient
from ..api.config import AuthConfig
from ..api.errors import FlowKoreAPIError
from ..api.events import EventEmitter
from ..exceptions import AuthError, AuthSessionMissingError, StorageError
from ..logging import get_logger
from ..storage import StorageAdapter, MemoryStorage


AuthListener = Callable[[AuthChangeEvent, Optional[Session]], None]


class AuthClient:
    """
    Session manager.

    States are NO_SESSION and SESSION_ACTIVE. Every public coroutine
    returns an ``AuthResponse`` / ``SignOutResponse``; backend failures
    travel in the ``error`` slot and are never raised.

    Concurrent sign-in/sign-up/sign-out calls are not serialized: the
    last one to complete owns the session slot. Callers needing
    exactly-once semantics must serialize them.

    Example:
        >>> auth = AuthClient(api)
        >>> await auth.initialize()
        >>> res = await auth.sign_in_with_password(
        ...     {'email': 'a@b.c', 'password': 'secret123'})
        >>> if res.error is None:
        ...     print(res.data.user.email)
    """

    SIGNUP_PATH = '/api/auth/signup'
    LOGIN_PATH = '/api/auth/login'
    REFRESH_PATH = '/api/auth/refresh'
    USER_PATH = '/api/auth/user'

    def __init__(
        self,
        api: AsyncAPIClient,
        storage: Optional[StorageAdapter] = None,
        config: Optional[AuthConfig] = None
    ):
        """
        Initialize auth client.

        Args:
            api: Backend API collaborator
            storage: Key/value storage for the session record
            config: Auth configuration (defaults from ``AuthConfig()``)
        """
        self._api = api
        self._config = config or AuthConfig()
        self._store = SessionStore(
            storage if storage is not None else MemoryStorage(),
            self._config.storage_key,
            persist=self._config.persist_session
        )
        self._scheduler = RefreshScheduler(
            self._refresh_from_timer,
            margin=self._config.refresh_margin,
            enabled=self._config.auto_refresh_token
        )
        self._listeners = EventEmitter('flowkore.auth')
        self._logger = get_logger('flowkore.auth')

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def store(self) -> SessionStore:
        return self._store

    # Lifecycle

    async def initialize(self) -> AuthResponse:
        """
        Recover a persisted session.

        A parsable record is installed and announced as INITIAL_SESSION
        without any network call. Missing or corrupt storage is the same
        as no session.
        """
        session = await self._store.load()
        if session is None:
            return AuthResponse()

        await self._store.save(session)
        self._scheduler.arm(session)
        self._logger.info(f"Restored session for user {session.user.id}")
        self._notify(AuthChangeEvent.INITIAL_SESSION, session)
        return AuthResponse(data=AuthData(user=session.user, session=session))

    async def close(self) -> None:
        """Stop background renewal; session state is kept."""
        self._scheduler.stop()

    # Sign up / sign in / sign out

    async def sign_up(self, credentials: Dict[str, Any]) -> AuthResponse:
        """
        Create a new user.

        Args:
            credentials: ``{'email', 'password', 'options'?: {'data'?}}``
        """
        return await self._authenticate(self.SIGNUP_PATH, credentials)

    async def sign_in_with_password(self, credentials: Dict[str, Any]) -> AuthResponse:
        """
        Log in an existing user with email and password.

        Args:
            credentials: ``{'email', 'password'}``
        """
        return await self._authenticate(self.LOGIN_PATH, credentials)

    async def sign_in(self, credentials: Dict[str, Any]) -> AuthResponse:
        """Alias of ``sign_in_with_password``."""
        return await self.sign_in_with_password(credentials)

    async def sign_out(self) -> SignOutResponse:
        """
        Drop the current session.

        In-memory state is always cleared and SIGNED_OUT always emitted;
        the error slot reports a storage removal failure.
        """
        self._scheduler.cancel()
        error = None
        try:
            await self._store.clear()
        except StorageError as e:
            self._logger.warning(str(e))
            error = AuthError(e.message, code='SIGNOUT_ERROR')
        self._notify(AuthChangeEvent.SIGNED_OUT, None)
        return SignOutResponse(error=error)

    # Accessors

    async def get_session(self) -> AuthResponse:
        """Current in-memory session; never touches the network."""
        session = self._store.session
        return AuthResponse(data=AuthData(user=self._store.user, session=session))

    async def get_user(self) -> AuthResponse:
        """Current in-memory user; never touches the network."""
        return AuthResponse(data=AuthData(user=self._store.user, session=self._store.session))

    def get_access_token(self) -> Optional[str]:
        """Bearer token of the current session, or None."""
        return self._store.access_token

    def is_valid(self) -> bool:
        return self._store.session is not None

    # Mutations

    async def update_user(self, attributes: Dict[str, Any]) -> AuthResponse:
        """
        Patch the user record and merge it into the current session.

        Args:
            attributes: Fields to change (e.g. ``{'email': ...}``)
        """
        try:
            result = await self._api.request('PATCH', self.USER_PATH, attributes)
        except FlowKoreAPIError as e:
            return AuthResponse.failure(self._to_auth_error(e))

        session = self._store.session
        try:
            record = result.get('user', result) if isinstance(result, dict) else None
            if record:
                user = User.from_dict(record)
            elif session is not None:
                user = session.user.merge(attributes)
            else:
                raise ValueError("Backend returned no user")
        except (ValueError, TypeError) as e:
            return AuthResponse.failure(AuthError(f"Invalid user response: {e}", code='invalid_response'))

        if session is not None:
            session.user = user
            await self._store.save(session)

        return AuthResponse(data=AuthData(user=user, session=session))

    async def refresh_session(self) -> AuthResponse:
        """
        Renew the access token now.

        Failure signs the client out, as a timer-driven refresh would.
        """
        session = self._store.session
        if session is None or not session.refresh_token:
            return AuthResponse.failure(AuthSessionMissingError())
        return await self._refresh(session)

    # Listeners

    def on_auth_state_change(self, callback: AuthListener) -> AuthSubscription:
        """
        Receive a notification on every session transition.

        The callback is invoked once right away with the current state
        (SIGNED_IN with the session, or SIGNED_OUT with None).
        """
        self._listeners.on(callback)

        def _unsubscribe() -> None:
            self._listeners.off(callback)

        session = self._store.session
        current = AuthChangeEvent.SIGNED_IN if session else AuthChangeEvent.SIGNED_OUT
        self._listeners.call(callback, current, session)

        return AuthSubscription(callback=callback, unsubscribe=_unsubscribe)

    # Internals

    async def _authenticate(self, path: str, credentials: Dict[str, Any]) -> AuthResponse:
        email = credentials.get('email')
        password = credentials.get('password')
        if not email or not password:
            return AuthResponse.failure(AuthError(
                "You must provide an email and a password",
                code='invalid_credentials',
                status=400
            ))

        body: Dict[str, Any] = {'email': email, 'password': password}
        data = (credentials.get('options') or {}).get('data')
        if data:
            body['data'] = data

        try:
            result = await self._api.request('POST', path, body, auth=False)
        except FlowKoreAPIError as e:
            self._logger.debug(f"{path} failed: {e.status}")
            return AuthResponse.failure(self._to_auth_error(e))

        try:
            session, user = self._parse_auth_response(result)
        except (ValueError, TypeError) as e:
            return AuthResponse.failure(AuthError(f"Invalid auth response: {e}", code='invalid_response'))

        if session is not None:
            await self._install(session, AuthChangeEvent.SIGNED_IN)
        return AuthResponse(data=AuthData(user=user, session=session))

    @staticmethod
    def _parse_auth_response(result: Any, fallback_user: Optional[User] = None):
        """
        Accepts ``{'session': {...}}``, a bare token+user pair, or a bare user.

        Args:
            result: Decoded response body
            fallback_user: User for token-only bodies (refresh responses)

        Returns:
            (session or None, user or None)
        """
        if not isinstance(result, dict):
            raise ValueError("expected a JSON object")

        if isinstance(result.get('session'), dict):
            result = result['session']

        if result.get('access_token') or result.get('token'):
            if not result.get('user') and fallback_user is not None:
                result = {**result, 'user': fallback_user.to_dict()}
            session = Session.from_dict(result)
            return session, session.user

        record = result.get('user', result)
        return None, User.from_dict(record)

    async def _install(self, session: Session, event: AuthChangeEvent) -> None:
        await self._store.save(session)
        self._scheduler.arm(session)
        self._notify(event, session)

    async def _refresh_from_timer(self) -> None:
        session = self._store.session
        if session is None or not session.refresh_token:
            return
        await self._refresh(session)

    async def _refresh(self, session: Session) -> AuthResponse:
        try:
            result = await self._api.request(
                'POST', self.REFRESH_PATH,
                {'refresh_token': session.refresh_token},
                auth=False
            )
            new_session, _ = self._parse_auth_response(result, fallback_user=session.user)
            if new_session is None:
                raise ValueError("refresh response carried no session")
        except Exception as e:
            if self._store.session is not session:
                return AuthResponse.failure(AuthError("Session changed during refresh", code='session_changed'))
            self._logger.warning(f"Token refresh failed, signing out: {e!r}")
            await self.sign_out()
            if isinstance(e, FlowKoreAPIError):
                return AuthResponse.failure(self._to_auth_error(e))
            return AuthResponse.failure(AuthError(str(e) or repr(e), code='refresh_failed'))

        # Signed out or replaced while the request was in flight
        if self._store.session is not session:
            return AuthResponse.failure(AuthError("Session changed during refresh", code='session_changed'))

        if not new_session.refresh_token:
            new_session.refresh_token = session.refresh_token
        await self._install(new_session, AuthChangeEvent.TOKEN_REFRESHED)
        return AuthResponse(data=AuthData(user=new_session.user, session=new_session))

    def _notify(self, event: AuthChangeEvent, session: Optional[Session]) -> None:
        self._listeners.emit(event, session)

    @staticmethod
    def _to_auth_error(error: FlowKoreAPIError) -> AuthError:
        return AuthError(error.message, code=error.code, status=error.status)
