"""FlowKore API error codes and exceptions."""
from typing import Any, Dict, Optional


class APIErrorCodes:
    """HTTP statuses the FlowKore backend is known to return."""

    NETWORK_ERROR = 0

    ERROR_CODES: Dict[int, str] = {
        0: 'Network error: the backend could not be reached',
        400: 'Bad request: invalid arguments',
        401: 'Unauthorized: invalid credentials or expired token',
        403: 'Forbidden: access denied',
        404: 'Not found',
        409: 'Conflict: object already exists',
        429: 'Too many requests: rate limit exceeded',
        500: 'Internal server error',
        502: 'Bad gateway',
        503: 'Service unavailable',
    }

    @classmethod
    def get_message(cls, status: int) -> str:
        """Gets default message for an HTTP status."""
        return cls.ERROR_CODES.get(status, f"Request failed with status {status}")


class FlowKoreAPIError(Exception):
    """Exception raised for non-2xx Backend API responses and transport failures."""

    def __init__(self, status: int, message: Optional[str] = None, body: Any = None):
        self.status = status
        self.message = message or APIErrorCodes.get_message(status)
        self.body = body
        super().__init__(self.message)

    @property
    def code(self) -> str:
        """Symbolic code derived from the status."""
        if self.status == APIErrorCodes.NETWORK_ERROR:
            return 'network_error'
        return f'http_{self.status}'

    @classmethod
    def from_response_body(cls, status: int, body: Any) -> 'FlowKoreAPIError':
        """Builds an error from a decoded error body (``{"error": ...}``)."""
        message = None
        if isinstance(body, dict):
            message = body.get('error') or body.get('message') or body.get('msg')
        elif isinstance(body, str) and body.strip():
            message = body.strip()
        return cls(status, message, body)
