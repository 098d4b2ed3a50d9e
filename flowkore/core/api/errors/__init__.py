"""FlowKore API errors and exceptions."""
from .api_errors import FlowKoreAPIError, APIErrorCodes

__all__ = [
    'FlowKoreAPIError',
    'APIErrorCodes',
]
