"""Session-related data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


MIN_DURATION_SECONDS = 1
MAX_DURATION_SECONDS = 60


class SessionState(Enum):
    """Lifecycle state of the remote recording session."""
    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"
    STOPPING = "stopping"
    ENDED = "ended"
    ERROR = "error"

    @property
    def is_active(self) -> bool:
        """True while a session is being started, recorded or stopped."""
        return self in (SessionState.STARTING, SessionState.RECORDING, SessionState.STOPPING)


class SessionSettings(BaseModel):
    """Audio source and chunk duration sent with the start request."""
    source: Optional[str] = None
    duration: int = Field(default=5, ge=MIN_DURATION_SECONDS, le=MAX_DURATION_SECONDS)
