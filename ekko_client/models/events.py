"""Typed events surfaced by the stream client."""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ConnectedEvent:
    """Stream is open.

    ``via`` is "transport" when the HTTP response was accepted and "server"
    when the server sent its ``{"type": "connected"}`` greeting.
    """
    via: str = "transport"


@dataclass(frozen=True)
class UtteranceEvent:
    """Transcript text pushed by the server."""
    text: str
    sequence: Optional[int] = None


@dataclass(frozen=True)
class SessionEndedEvent:
    """Server announced the end of the session."""


@dataclass(frozen=True)
class ConnectionLostEvent:
    """Transport failed or the server dropped the stream."""
    reason: str


StreamEvent = Union[ConnectedEvent, UtteranceEvent, SessionEndedEvent, ConnectionLostEvent]
