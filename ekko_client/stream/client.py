"""Server-Sent Events client that owns a single push-stream connection."""

import asyncio
import logging
from typing import Callable, Optional

import aiohttp

from ..models.events import (
    ConnectedEvent,
    ConnectionLostEvent,
    SessionEndedEvent,
    StreamEvent,
)
from .classifier import classify
from .sse import SSEParser

logger = logging.getLogger(__name__)


class ConnectionHandle:
    """A live push-stream connection."""

    def __init__(self, handle_id: int, endpoint: str):
        self.handle_id = handle_id
        self.endpoint = endpoint
        self.task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def mark_closed(self) -> None:
        self._closed = True

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<ConnectionHandle #{self.handle_id} {self.endpoint} {state}>"


class StreamClient:
    """Opens the push stream, classifies its messages and reports loss.

    The client never retries. A transport failure produces exactly one
    ConnectionLostEvent for the affected handle, and nothing at all once
    ``close()`` has been called for it. Events from a handle that has been
    replaced or closed are dropped.
    """

    def __init__(self, connect_timeout: float = 10.0):
        """Initialize stream client.

        Args:
            connect_timeout: Seconds allowed for establishing the connection
        """
        self.timeout = aiohttp.ClientTimeout(total=None, connect=connect_timeout, sock_read=None)
        self._handler: Optional[Callable[[StreamEvent], None]] = None
        self._handle: Optional[ConnectionHandle] = None
        self._handle_counter = 0

    @property
    def handle(self) -> Optional[ConnectionHandle]:
        """The open connection, if any."""
        return self._handle

    @property
    def is_open(self) -> bool:
        return self._handle is not None and not self._handle.closed

    def on_event(self, handler: Callable[[StreamEvent], None]) -> None:
        """Register the single consumer of classified events."""
        self._handler = handler

    def open(self, endpoint: str) -> ConnectionHandle:
        """Start reading the stream at ``endpoint`` on the running loop.

        Connection failures are reported through the event handler as
        ConnectionLostEvent, never raised from here.
        """
        loop = asyncio.get_running_loop()
        self._handle_counter += 1
        handle = ConnectionHandle(self._handle_counter, endpoint)
        self._handle = handle
        handle.task = loop.create_task(self._run(handle))
        logger.info(f"Opening stream {handle!r}")
        return handle

    def close(self) -> None:
        """Tear down the current connection. No-op when nothing is open."""
        handle = self._handle
        if handle is None or handle.closed:
            self._handle = None
            return

        self._discard(handle)
        logger.info(f"Closed stream {handle!r}")

        task = handle.task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # Closing from inside our own reader (event handler): the read loop
        # exits as soon as the handler returns.
        if task is not current:
            task.cancel()

    async def _run(self, handle: ConnectionHandle) -> None:
        """Read the stream until it ends, fails or the handle is closed."""
        reason = "stream closed by server"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(
                    handle.endpoint,
                    headers={"Accept": "text/event-stream", "Cache-Control": "no-cache"},
                ) as response:
                    if response.status != 200:
                        reason = f"HTTP {response.status}"
                    else:
                        self._emit(handle, ConnectedEvent(via="transport"))
                        parser = SSEParser()
                        async for line in response.content:
                            if handle.closed:
                                return
                            payload = parser.feed_line(line.decode("utf-8", errors="replace"))
                            if payload is not None:
                                self._deliver(handle, payload)
                            # Closed by "ended" or by the handler; release the socket now
                            if handle.closed:
                                return
        except asyncio.CancelledError:
            logger.debug(f"Reader for {handle!r} cancelled")
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            reason = str(e) or type(e).__name__

        self._report_lost(handle, reason)

    def _deliver(self, handle: ConnectionHandle, payload: str) -> None:
        """Classify one payload and pass the result on."""
        event = classify(payload)
        if event is None:
            logger.debug("Ignoring empty stream message")
            return
        if isinstance(event, SessionEndedEvent):
            if not self._is_current(handle):
                return
            logger.info(f"Server ended the session on {handle!r}")
            self._discard(handle)
            self._notify(event)
            return
        self._emit(handle, event)

    def _report_lost(self, handle: ConnectionHandle, reason: str) -> None:
        if not self._is_current(handle):
            logger.debug(f"Suppressing loss of {handle!r}: {reason}")
            return
        logger.warning(f"Stream connection lost on {handle!r}: {reason}")
        self._discard(handle)
        self._notify(ConnectionLostEvent(reason=reason))

    def _emit(self, handle: ConnectionHandle, event: StreamEvent) -> None:
        if not self._is_current(handle):
            logger.debug(f"Dropping {type(event).__name__} from discarded {handle!r}")
            return
        self._notify(event)

    def _is_current(self, handle: ConnectionHandle) -> bool:
        return handle is self._handle and not handle.closed

    def _discard(self, handle: ConnectionHandle) -> None:
        handle.mark_closed()
        if self._handle is handle:
            self._handle = None

    def _notify(self, event: StreamEvent) -> None:
        if self._handler is None:
            logger.warning(f"No stream handler registered, dropping {type(event).__name__}")
            return
        try:
            self._handler(event)
        except Exception as e:
            logger.error(f"Stream event handler failed on {type(event).__name__}: {e}", exc_info=True)
