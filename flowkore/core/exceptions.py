"""
Custom exceptions for FlowKore client operations.

This module defines exception classes shared by the auth, storage and
realtime layers.
"""
from typing import Optional, Any, Dict


class FlowKoreException(Exception):
    """Base exception for all FlowKore-related errors."""

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            error_code: Symbolic error code (if available)
        """
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class AuthError(FlowKoreException):
    """
    Authentication failure.

    Auth operations never raise this past the public API; it travels in
    the ``error`` slot of ``AuthResponse`` / ``SignOutResponse``.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            code: Symbolic error code (e.g. 'SIGNOUT_ERROR')
            status: HTTP status of the failed request (if any)
        """
        self.status = status
        super().__init__(message, code)

    @property
    def code(self) -> Optional[str]:
        return self.error_code

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message, 'code': self.code, 'status': self.status}

    def __repr__(self) -> str:
        return f"AuthError(message={self.message!r}, code={self.code!r}, status={self.status!r})"


class AuthSessionMissingError(AuthError):
    """Raised internally when an operation needs a session that is absent."""

    def __init__(self, message: str = "Auth session missing") -> None:
        super().__init__(message, code='session_missing', status=400)


class StorageError(FlowKoreException):
    """Exception raised when the storage adapter fails."""
    pass


class RealtimeError(FlowKoreException):
    """Exception raised for realtime channel errors."""
    pass


class StreamClosedError(RealtimeError):
    """Raised when the server ends an event stream."""

    def __init__(self, message: str = "Event stream closed by server") -> None:
        super().__init__(message, 'stream_closed')
