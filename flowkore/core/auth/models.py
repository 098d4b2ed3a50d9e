"""
Auth data models.

Contains data classes for users, sessions and auth operation results.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional
import json
import time

from ..exceptions import AuthError


class AuthChangeEvent(str, Enum):
    """Session transitions reported to auth listeners."""
    INITIAL_SESSION = 'INITIAL_SESSION'
    SIGNED_IN = 'SIGNED_IN'
    SIGNED_OUT = 'SIGNED_OUT'
    TOKEN_REFRESHED = 'TOKEN_REFRESHED'
    # Part of the public surface, never emitted by the client itself
    USER_UPDATED = 'USER_UPDATED'
    PASSWORD_RECOVERY = 'PASSWORD_RECOVERY'


@dataclass
class User:
    """
    Identity record of the signed-in user.

    Attributes:
        id: Backend user id
        email: User email address
        role: Backend role (if reported)
        created_at: Creation timestamp as sent by the server
        metadata: Every other field of the server record
    """
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    created_at: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    _KNOWN = ('id', 'email', 'role', 'created_at', 'metadata')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'email': self.email,
            'role': self.role,
            'created_at': self.created_at,
            'metadata': dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """
        Create from a server or persisted record.

        Raises:
            ValueError: If the record is not a mapping or has no id
        """
        if not isinstance(data, dict) or data.get('id') in (None, ''):
            raise ValueError("User record requires an 'id'")

        metadata = dict(data.get('metadata') or {})
        metadata.update({k: v for k, v in data.items() if k not in cls._KNOWN})

        return cls(
            id=str(data['id']),
            email=data.get('email'),
            role=data.get('role'),
            created_at=data.get('created_at'),
            metadata=metadata,
        )

    def merge(self, attributes: Dict[str, Any]) -> 'User':
        """Return a copy patched with ``attributes``."""
        merged = self.to_dict()
        merged['metadata'] = dict(self.metadata)
        for key, value in attributes.items():
            if key == 'metadata' and isinstance(value, dict):
                merged['metadata'].update(value)
            else:
                merged[key] = value
        return User.from_dict(merged)


@dataclass
class Session:
    """
    Authenticated credential bundle.

    Attributes:
        access_token: Bearer token for API requests
        user: Owner of the session
        refresh_token: Token used to renew the access token
        token_type: Token scheme, normally 'bearer'
        expires_in: Lifetime of the access token in seconds
        expires_at: Absolute expiry (epoch seconds), stamped on install
    """
    access_token: str
    user: User
    refresh_token: Optional[str] = None
    token_type: str = 'bearer'
    expires_in: Optional[int] = None
    expires_at: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'token_type': self.token_type,
            'expires_in': self.expires_in,
            'expires_at': self.expires_at,
            'user': self.user.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Session':
        """
        Create from a session-shaped mapping.

        Accepts ``token`` as an alias of ``access_token``.

        Raises:
            ValueError: If the token or the user is missing/invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Session record must be an object")

        access_token = data.get('access_token') or data.get('token')
        if not access_token:
            raise ValueError("Session record requires an access token")

        expires_in = data.get('expires_in')
        expires_at = data.get('expires_at')

        return cls(
            access_token=access_token,
            user=User.from_dict(data.get('user')),
            refresh_token=data.get('refresh_token'),
            token_type=data.get('token_type') or 'bearer',
            expires_in=int(expires_in) if expires_in is not None else None,
            expires_at=int(expires_at) if expires_at is not None else None,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'Session':
        """
        Raises:
            ValueError: On malformed JSON or an incompatible shape
        """
        return cls.from_dict(json.loads(json_str))

    def stamp_expiry(self, now: Optional[float] = None) -> None:
        """Set ``expires_at`` from ``expires_in`` when not already known."""
        if self.expires_at is None and self.expires_in is not None:
            self.expires_at = int(now if now is not None else time.time()) + self.expires_in

    def seconds_until_expiry(self, now: Optional[float] = None) -> Optional[float]:
        """Remaining lifetime, or None if the session never expires."""
        if self.expires_at is not None:
            return self.expires_at - (now if now is not None else time.time())
        if self.expires_in is not None:
            return float(self.expires_in)
        return None


@dataclass
class AuthData:
    """Payload half of an auth result."""
    user: Optional[User] = None
    session: Optional[Session] = None


@dataclass
class AuthResponse:
    """
    Result of an auth operation.

    Exactly one of ``data`` (populated) and ``error`` is meaningful: on
    failure ``data`` holds ``AuthData(None, None)``.
    """
    data: AuthData = field(default_factory=AuthData)
    error: Optional[AuthError] = None

    @classmethod
    def failure(cls, error: AuthError) -> 'AuthResponse':
        return cls(data=AuthData(), error=error)


@dataclass
class SignOutResponse:
    """Result of sign-out."""
    error: Optional[AuthError] = None


@dataclass
class AuthSubscription:
    """Handle returned by ``on_auth_state_change``."""
    callback: Callable[[AuthChangeEvent, Optional[Session]], None]
    unsubscribe: Callable[[], None]
