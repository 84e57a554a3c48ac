"""Terminal renderer for the view signals, built on rich."""

import logging
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.session import SessionState
from ..models.transcript import Utterance
from ..models.ui import ConnectionStatus, NoticeLevel
from .publisher import (
    CONNECTION_TOPIC,
    NOTICE_TOPIC,
    PROCESSING_TOPIC,
    RECORDING_TOPIC,
    SOURCES_TOPIC,
    TRANSCRIPT_TOPIC,
    ViewPublisher,
)

logger = logging.getLogger(__name__)


STATUS_STYLES = {
    ConnectionStatus.CONNECTED: "bold green",
    ConnectionStatus.CONNECTING: "yellow",
    ConnectionStatus.ERROR: "bold red",
    ConnectionStatus.IDLE: "dim",
}

NOTICE_STYLES = {
    NoticeLevel.INFO: "blue",
    NoticeLevel.SUCCESS: "green",
    NoticeLevel.WARNING: "yellow",
    NoticeLevel.ERROR: "red",
}


class ConsoleView:
    """Prints transcript lines and status changes as they are published."""
    
    def __init__(self, publisher: ViewPublisher, console: Optional[Console] = None):
        """Initialize console view and subscribe to every view topic.
        
        Args:
            publisher: Source of the view signals
            console: Rich console to print to
        """
        self.console = console or Console()
        self.publisher = publisher
        self.recording = False
        self.processing = False
        self.status = ConnectionStatus.IDLE
        
        self._receivers = [
            (TRANSCRIPT_TOPIC, self.on_transcript),
            (CONNECTION_TOPIC, self.on_connection),
            (PROCESSING_TOPIC, self.on_processing),
            (RECORDING_TOPIC, self.on_recording),
            (SOURCES_TOPIC, self.on_sources),
            (NOTICE_TOPIC, self.on_notice),
        ]
        for topic, receiver in self._receivers:
            publisher.subscribe(topic, receiver)
    
    def detach(self) -> None:
        for topic, receiver in self._receivers:
            self.publisher.unsubscribe(topic, receiver)
    
    def show_header(self) -> None:
        self.console.print("🎙️  ekko - live transcript", style="bold blue")
        self.console.print("=" * 50)
    
    def show_help(self) -> None:
        self.console.print("Commands:")
        self.console.print("  [bold green]1[/bold green] - Start recording")
        self.console.print("  [bold yellow]2[/bold yellow] - Stop recording")
        self.console.print("  [bold blue]3[/bold blue] - Clear transcript")
        self.console.print("  [bold blue]4[/bold blue] - Export transcript")
        self.console.print("  [bold]s[/bold] - Reload sources, [bold]n[/bold] - Next source")
        self.console.print("  [bold red]q[/bold red] - Quit")
        self.console.print("=" * 50)
    
    def show_export(self, text: str) -> None:
        body = Text(text) if text else Text("No transcriptions yet", style="dim")
        self.console.print(Panel(body, title="Transcript", border_style="blue"))
    
    # -- receivers --
    
    def on_transcript(self, sender, items: List[Utterance], added: Optional[Utterance]) -> None:
        if added is not None:
            self.console.print(Text.assemble(
                (f"#{added.sequence} ", "bold cyan"),
                (f"{added.time_label} ", "dim"),
                added.text,
            ))
        elif not items:
            self.console.print("Waiting for transcriptions...", style="dim")
    
    def on_connection(self, sender, status: ConnectionStatus, message: str) -> None:
        self.status = status
        self.console.print(Text(f"● {message}", style=STATUS_STYLES.get(status, "")))
    
    def on_processing(self, sender, visible: bool) -> None:
        self.processing = visible
        if visible:
            self.console.print("⏳ Listening for the next chunk...", style="dim")
    
    def on_recording(self, sender, state: SessionState, recording: bool) -> None:
        self.recording = recording
        if state is SessionState.RECORDING:
            self.console.print("🔴 RECORDING", style="bold red")
        elif state is SessionState.IDLE:
            self.console.print("⏹️  STOPPED", style="bold yellow")
        else:
            logger.debug(f"View state: {state.value}")
    
    def on_sources(self, sender, sources: List[str], selected: Optional[str]) -> None:
        if not sources:
            self.console.print("No audio sources", style="yellow")
            return
        table = Table(title="Audio sources", show_header=False, box=None)
        for source in sources:
            marker = "▶" if source == selected else " "
            table.add_row(marker, Text(source, style="bold" if source == selected else ""))
        self.console.print(table)
    
    def on_notice(self, sender, level: NoticeLevel, message: str) -> None:
        self.console.print(Text(message, style=NOTICE_STYLES.get(level, "")))
