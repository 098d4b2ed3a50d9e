"""
Session lifecycle management.

Password authentication, persisted sessions, silent token renewal and
auth state notifications.
"""
from .models import (
    AuthChangeEvent,
    AuthData,
    AuthResponse,
    AuthSubscription,
    Session,
    SignOutResponse,
    User,
)
from .session_store import SessionStore
from .refresh_scheduler import RefreshScheduler
from .auth_client import AuthClient

__all__ = [
    'AuthClient',
    'AuthChangeEvent',
    'AuthData',
    'AuthResponse',
    'AuthSubscription',
    'Session',
    'SignOutResponse',
    'User',
    'SessionStore',
    'RefreshScheduler',
]
