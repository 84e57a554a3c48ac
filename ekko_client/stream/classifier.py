"""Classification of raw stream payloads into typed events."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from ..models.events import ConnectedEvent, SessionEndedEvent, StreamEvent, UtteranceEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of decoding a payload as JSON."""
    ok: bool
    value: Any = None
    error: Optional[str] = None


def parse_payload(raw: str) -> ParseResult:
    """Decode ``raw`` as JSON without letting the decode error escape."""
    try:
        return ParseResult(ok=True, value=json.loads(raw))
    except ValueError as e:
        return ParseResult(ok=False, error=str(e))


def _sequence(value: Any) -> Optional[int]:
    # bool is an int subclass; true/false is not a sequence number
    if isinstance(value, int) and not isinstance(value, bool) and value >= 1:
        return value
    return None


def classify(raw: Optional[str]) -> Optional[StreamEvent]:
    """Map one stream payload to an event.

    Returns None for payloads that carry nothing (empty or whitespace).
    Anything that is not a recognised control message or a ``text`` object
    is shown verbatim as an utterance.
    """
    if not raw or not raw.strip():
        return None

    result = parse_payload(raw)
    if result.ok and isinstance(result.value, dict):
        payload = result.value
        kind = payload.get("type")
        if kind == "connected":
            return ConnectedEvent(via="server")
        if kind == "ended":
            return SessionEndedEvent()
        text = payload.get("text")
        if isinstance(text, str) and text:
            return UtteranceEvent(text=text, sequence=_sequence(payload.get("seq")))
    elif not result.ok:
        logger.debug(f"Payload is not JSON, using it as plain text: {result.error}")

    return UtteranceEvent(text=raw, sequence=None)
