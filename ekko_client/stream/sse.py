"""Incremental parser for the Server-Sent Events wire format."""

from typing import List, Optional


class SSEParser:
    """Turns SSE lines into message payloads.

    Only the ``data`` field matters to the client; ``event``, ``id`` and
    ``retry`` are accepted and ignored. Feed lines one at a time; a blank
    line completes the pending message.
    """

    def __init__(self):
        self._data: List[str] = []

    def feed_line(self, line: str) -> Optional[str]:
        """Consume one line and return a payload if it completed a message.

        Args:
            line: A single line, with or without its trailing newline

        Returns:
            The message data (lines joined by newlines), or None
        """
        line = line.rstrip("\n")
        if line.endswith("\r"):
            line = line[:-1]

        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "data":
            self._data.append(value)
        return None

    def _dispatch(self) -> Optional[str]:
        if not self._data:
            return None
        payload = "\n".join(self._data)
        self._data = []
        return payload
