"""Push-stream (Server-Sent Events) client components."""

from .sse import SSEParser
from .classifier import ParseResult, parse_payload, classify
from .client import ConnectionHandle, StreamClient

__all__ = [
    "SSEParser",
    "ParseResult",
    "parse_payload",
    "classify",
    "ConnectionHandle",
    "StreamClient",
]
