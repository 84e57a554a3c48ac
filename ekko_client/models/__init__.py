"""Data models for the ekko-client application."""

from .transcript import Utterance
from .session import SessionState, SessionSettings
from .events import (
    StreamEvent,
    ConnectedEvent,
    UtteranceEvent,
    SessionEndedEvent,
    ConnectionLostEvent,
)
from .ui import ConnectionStatus, NoticeLevel

__all__ = [
    "Utterance",
    "SessionState",
    "SessionSettings",
    # Stream events
    "StreamEvent",
    "ConnectedEvent",
    "UtteranceEvent",
    "SessionEndedEvent",
    "ConnectionLostEvent",
    # View
    "ConnectionStatus",
    "NoticeLevel",
]
