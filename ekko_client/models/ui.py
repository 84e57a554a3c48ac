"""UI-related data models."""

from enum import Enum


class ConnectionStatus(Enum):
    """Connection indicator shown by the view."""
    CONNECTED = "connected"
    CONNECTING = "connecting"
    ERROR = "error"
    IDLE = "idle"


class NoticeLevel(Enum):
    """Severity of a one-off user-facing notice."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
