"""Session controller: the state machine behind the start/stop controls."""

import asyncio
import logging
from typing import Callable, List, Optional

from pydantic import ValidationError

from ..config import EkkoConfig
from ..models.events import (
    ConnectedEvent,
    ConnectionLostEvent,
    SessionEndedEvent,
    StreamEvent,
    UtteranceEvent,
)
from ..models.session import (
    MAX_DURATION_SECONDS,
    MIN_DURATION_SECONDS,
    SessionSettings,
    SessionState,
)
from ..models.ui import ConnectionStatus, NoticeLevel
from ..stream.client import ConnectionHandle, StreamClient
from ..transcript.store import TranscriptStore
from ..ui.publisher import ViewPublisher
from .api_client import APIError, SessionAPI

logger = logging.getLogger(__name__)


class SessionController:
    """Mediates between user commands, the remote session and the stream.

    The controller is the only component that opens or closes the stream.
    A connection is open only while RECORDING or STOPPING; while RECORDING
    the connection is either open or replaced by exactly one pending
    reconnect. ENDED and ERROR are published on the way back to IDLE.
    """
    
    def __init__(self,
                 config: Optional[EkkoConfig] = None,
                 api: Optional[SessionAPI] = None,
                 stream: Optional[StreamClient] = None,
                 store: Optional[TranscriptStore] = None,
                 publisher: Optional[ViewPublisher] = None):
        """Initialize session controller.
        
        Args:
            config: Application configuration (defaults when None)
            api: Session-control client; built from config when None
            stream: Push-stream client; built from config when None
            store: Transcript store; a fresh one when None
            publisher: View signal publisher
        """
        self.config = config or EkkoConfig()
        self.publisher = publisher or ViewPublisher()
        self.api = api or SessionAPI.from_config(self.config)
        self.stream = stream or StreamClient(
            connect_timeout=float(self.config.get('stream.connect_timeout', 10))
        )
        self.store = store or TranscriptStore(publisher=self.publisher)
        
        self.reconnect_delay = float(self.config.get('stream.reconnect_delay', 3.0))
        self.max_reconnect_attempts = int(self.config.get('stream.max_reconnect_attempts', 3))
        
        self._state = SessionState.IDLE
        self._settings = SessionSettings(
            source=self.config.get('session.source'),
            duration=self.config.get('session.duration', 5),
        )
        self._sources: List[str] = []
        self._processing = False
        self._reconnect_timer: Optional[asyncio.TimerHandle] = None
        self._reconnect_failures = 0
        
        self.stream.on_event(self._on_stream_event)
        logger.info(f"SessionController ready (reconnect delay {self.reconnect_delay}s, "
                    f"max {self.max_reconnect_attempts} attempts)")
    
    # -- queries --
    
    @property
    def state(self) -> SessionState:
        return self._state
    
    @property
    def settings(self) -> SessionSettings:
        return self._settings
    
    @property
    def sources(self) -> List[str]:
        return list(self._sources)
    
    @property
    def connection(self) -> Optional[ConnectionHandle]:
        """The open stream connection, if any."""
        return self.stream.handle
    
    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None
    
    # -- commands --
    
    async def refresh_sources(self) -> List[str]:
        """Reload the source list and keep the selection valid.
        
        Returns:
            The sources reported by the server, empty on failure
        """
        try:
            sources = await self.api.list_sources()
        except APIError as e:
            logger.error(f"Failed to load sources: {e.message}")
            self._notice(NoticeLevel.ERROR, f"Failed to load sources: {e.message}")
            return []
        
        self._sources = list(sources)
        selected = self._settings.source
        if selected not in self._sources:
            selected = self._sources[0] if self._sources else None
            self._settings = SessionSettings(source=selected, duration=self._settings.duration)
        
        logger.info(f"Loaded {len(self._sources)} sources, selected: {selected}")
        self.publisher.sources_changed(self.sources, selected)
        if not self._sources:
            self._notice(NoticeLevel.WARNING, "No sources available")
        return self.sources
    
    def select_source(self, source: str) -> bool:
        if self._sources and source not in self._sources:
            self._notice(NoticeLevel.ERROR, f"Unknown source: {source}")
            return False
        self._settings = SessionSettings(source=source, duration=self._settings.duration)
        self.publisher.sources_changed(self.sources, source)
        return True
    
    def set_duration(self, seconds: int) -> bool:
        try:
            self._settings = SessionSettings(source=self._settings.source, duration=seconds)
        except ValidationError:
            self._notice(NoticeLevel.ERROR,
                         f"Chunk duration must be between {MIN_DURATION_SECONDS} "
                         f"and {MAX_DURATION_SECONDS} seconds")
            return False
        return True
    
    async def start(self, source: Optional[str] = None, duration: Optional[int] = None) -> bool:
        """Begin a remote session and open the stream.
        
        Args:
            source: Audio source; the current selection when None
            duration: Chunk duration in seconds; the current setting when None
            
        Returns:
            True if the session is now recording
        """
        if self._state is not SessionState.IDLE:
            logger.warning(f"Start rejected, session is {self._state.value}")
            self._notice(NoticeLevel.WARNING, f"Session is already {self._state.value}")
            return False
        
        source = source or self._settings.source
        if not source:
            self._notice(NoticeLevel.ERROR, "Please select an audio source")
            return False
        try:
            settings = SessionSettings(
                source=source,
                duration=self._settings.duration if duration is None else duration,
            )
        except ValidationError:
            self._notice(NoticeLevel.ERROR,
                         f"Chunk duration must be between {MIN_DURATION_SECONDS} "
                         f"and {MAX_DURATION_SECONDS} seconds")
            return False
        
        self._settings = settings
        self._set_state(SessionState.STARTING)
        self.publisher.connection_changed(ConnectionStatus.CONNECTING, "Starting session...")
        
        try:
            await self.api.start_session(settings.source, settings.duration)
        except APIError as e:
            logger.error(f"Failed to start session: {e.message}")
            if self._state is SessionState.STARTING:
                self._set_state(SessionState.ERROR)
                self._set_state(SessionState.IDLE)
                self.publisher.connection_changed(ConnectionStatus.ERROR, f"Failed to start: {e.message}")
            return False
        
        if self._state is not SessionState.STARTING:
            logger.warning(f"Start completed but session is now {self._state.value}")
            return False
        
        # A new session replaces the previous transcript
        self.store.clear()
        self._reconnect_failures = 0
        self._set_state(SessionState.RECORDING)
        self._open_stream()
        self._set_processing(True)
        return True
    
    async def stop(self) -> bool:
        """End the remote session and close the stream.
        
        Returns:
            True if the server confirmed the stop
        """
        if self._state is not SessionState.RECORDING:
            logger.debug(f"Stop ignored, session is {self._state.value}")
            return False
        
        self._set_state(SessionState.STOPPING)
        self._cancel_reconnect()
        self._set_processing(False)
        
        try:
            await self.api.stop_session()
        except APIError as e:
            logger.error(f"Failed to stop session: {e.message}")
            self._notice(NoticeLevel.ERROR, f"Failed to stop: {e.message}")
            if self._state is SessionState.STOPPING:
                if self.stream.is_open:
                    self._set_state(SessionState.RECORDING)
                    self._set_processing(True)
                else:
                    self._finish(ConnectionStatus.ERROR, "Disconnected")
            return False
        
        self._finish(ConnectionStatus.IDLE, "Stopped")
        return True
    
    def clear(self) -> None:
        self.store.clear()
    
    def export(self, writer: Optional[Callable[[str], None]] = None) -> Optional[str]:
        """Render the transcript and hand it to ``writer``.
        
        Args:
            writer: Export sink (clipboard, file, ...); receives the text
            
        Returns:
            The exported text, or None if the writer failed
        """
        text = self.store.export_text()
        if writer is None:
            return text
        try:
            writer(text)
        except Exception as e:
            logger.error(f"Export failed: {e}")
            self._notice(NoticeLevel.ERROR, f"Export failed: {e}")
            return None
        self._notice(NoticeLevel.SUCCESS, f"Exported {len(self.store)} transcriptions")
        return text
    
    async def shutdown(self) -> None:
        """Stop an active session and release the stream and HTTP session."""
        self._cancel_reconnect()
        if self._state is SessionState.RECORDING:
            await self.stop()
        self._finish(ConnectionStatus.IDLE, "Closed")
        self.stream.close()
        await self.api.close()
        logger.info("SessionController shut down")
    
    # -- stream events --
    
    def _on_stream_event(self, event: StreamEvent) -> None:
        if isinstance(event, UtteranceEvent):
            self._on_utterance(event)
        elif isinstance(event, ConnectedEvent):
            self._on_connected(event)
        elif isinstance(event, SessionEndedEvent):
            self._on_session_ended()
        elif isinstance(event, ConnectionLostEvent):
            self._on_connection_lost(event)
        else:
            logger.warning(f"Unhandled stream event: {event!r}")
    
    def _on_connected(self, event: ConnectedEvent) -> None:
        if event.via == "server":
            logger.info("Server acknowledged the stream")
            return
        if self._state is not SessionState.RECORDING:
            return
        self.publisher.connection_changed(ConnectionStatus.CONNECTED, "Connected")
        self._set_processing(True)
    
    def _on_utterance(self, event: UtteranceEvent) -> None:
        if self._state not in (SessionState.RECORDING, SessionState.STOPPING):
            logger.warning(f"Dropping utterance received while {self._state.value}")
            return
        self.store.append(event.text, event.sequence)
        self._reconnect_failures = 0
    
    def _on_session_ended(self) -> None:
        if self._finish(ConnectionStatus.IDLE, "Session ended", via=SessionState.ENDED):
            logger.info("Session ended by server")
    
    def _on_connection_lost(self, event: ConnectionLostEvent) -> None:
        if self._state is SessionState.STOPPING:
            self._finish(ConnectionStatus.IDLE, "Disconnected")
            return
        if self._state is not SessionState.RECORDING:
            return
        
        self.stream.close()
        self._set_processing(False)
        if self._reconnect_failures < self.max_reconnect_attempts:
            self._reconnect_failures += 1
            logger.warning(f"Connection lost ({event.reason}), reconnect "
                           f"{self._reconnect_failures}/{self.max_reconnect_attempts} "
                           f"in {self.reconnect_delay}s")
            self.publisher.connection_changed(ConnectionStatus.ERROR, f"Connection error: {event.reason}")
            self._schedule_reconnect()
        else:
            logger.error(f"Connection lost ({event.reason}), giving up")
            self._finish(ConnectionStatus.ERROR, f"Disconnected: {event.reason}", via=SessionState.ERROR)
    
    # -- internals --
    
    def _open_stream(self) -> None:
        self.publisher.connection_changed(ConnectionStatus.CONNECTING, "Connecting...")
        self.stream.open(self.api.stream_url)
    
    def _schedule_reconnect(self) -> None:
        self._cancel_reconnect()
        loop = asyncio.get_running_loop()
        self._reconnect_timer = loop.call_later(self.reconnect_delay, self._reconnect)
    
    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None
            logger.debug("Pending reconnect cancelled")
    
    def _reconnect(self) -> None:
        self._reconnect_timer = None
        if self._state is not SessionState.RECORDING or self.stream.is_open:
            logger.debug(f"Skipping reconnect, session is {self._state.value}")
            return
        logger.info("Reconnecting stream")
        self.publisher.connection_changed(ConnectionStatus.CONNECTING, "Reconnecting...")
        self.stream.open(self.api.stream_url)
    
    def _finish(self, status: ConnectionStatus, message: str,
                via: Optional[SessionState] = None) -> bool:
        """Tear the session down to IDLE. Only the first call does anything."""
        if self._state not in (SessionState.RECORDING, SessionState.STOPPING):
            return False
        self._cancel_reconnect()
        self.stream.close()
        self._set_processing(False)
        if via is not None:
            self._set_state(via)
        self._set_state(SessionState.IDLE)
        self.publisher.connection_changed(status, message)
        return True
    
    def _set_state(self, state: SessionState) -> None:
        logger.info(f"Session state: {self._state.value} -> {state.value}")
        self._state = state
        self.publisher.recording_changed(state)
    
    def _set_processing(self, visible: bool) -> None:
        if self._processing == visible:
            return
        self._processing = visible
        self.publisher.processing_changed(visible)
    
    def _notice(self, level: NoticeLevel, message: str) -> None:
        self.publisher.notice(level, message)
