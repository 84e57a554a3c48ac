"""Services for ekko-client."""

from .api_client import APIError, SessionAPI
from .session_controller import SessionController

__all__ = [
    "APIError",
    "SessionAPI",
    "SessionController",
]
