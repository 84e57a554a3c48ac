"""View signal publisher built on blinker named signals."""

import logging
from typing import Any, Callable, List, Optional

from blinker import Namespace

from ..models.session import SessionState
from ..models.transcript import Utterance
from ..models.ui import ConnectionStatus, NoticeLevel

logger = logging.getLogger(__name__)


TRANSCRIPT_TOPIC = "view.transcript"
CONNECTION_TOPIC = "view.connection"
PROCESSING_TOPIC = "view.processing"
RECORDING_TOPIC = "view.recording"
SOURCES_TOPIC = "view.sources"
NOTICE_TOPIC = "view.notice"

TOPICS = (
    TRANSCRIPT_TOPIC,
    CONNECTION_TOPIC,
    PROCESSING_TOPIC,
    RECORDING_TOPIC,
    SOURCES_TOPIC,
    NOTICE_TOPIC,
)


class ViewPublisher:
    """Publishes view signals so any renderer can subscribe.

    Each publisher owns its own signal namespace; receivers are called as
    ``receiver(sender, **payload)`` with the publisher as sender.
    """
    
    def __init__(self, namespace: Optional[Namespace] = None):
        """Initialize view publisher.
        
        Args:
            namespace: Signal namespace to publish in; a private one when None
        """
        self.namespace = namespace if namespace is not None else Namespace()
        logger.info("ViewPublisher initialized")
    
    def signal(self, topic: str):
        return self.namespace.signal(topic)
    
    def subscribe(self, topic: str, receiver: Callable[..., Any], weak: bool = True) -> None:
        """Connect ``receiver`` to one of the view topics.
        
        Args:
            topic: One of the ``*_TOPIC`` names
            receiver: Callable taking the sender plus the topic's keyword payload
            weak: Hold only a weak reference to the receiver
        """
        if topic not in TOPICS:
            raise ValueError(f"Unknown view topic: {topic}")
        self.signal(topic).connect(receiver, weak=weak)
    
    def unsubscribe(self, topic: str, receiver: Callable[..., Any]) -> None:
        self.signal(topic).disconnect(receiver)
    
    def transcript_changed(self, items: List[Utterance], added: Optional[Utterance] = None) -> None:
        """Publish the full ordered transcript and the newly appended item.
        
        Args:
            items: Snapshot of the transcript in arrival order
            added: Item appended by this change, None after a clear
        """
        self.signal(TRANSCRIPT_TOPIC).send(self, items=items, added=added)
        logger.debug(f"Published transcript change: {len(items)} items")
    
    def connection_changed(self, status: ConnectionStatus, message: str) -> None:
        self.signal(CONNECTION_TOPIC).send(self, status=status, message=message)
        logger.debug(f"Published connection status: {status.value} ({message})")
    
    def processing_changed(self, visible: bool) -> None:
        self.signal(PROCESSING_TOPIC).send(self, visible=visible)
    
    def recording_changed(self, state: SessionState) -> None:
        """Publish a session state change.
        
        Args:
            state: New session state; ``recording`` is derived from it
        """
        self.signal(RECORDING_TOPIC).send(self, state=state, recording=state.is_active)
        logger.debug(f"Published recording state: {state.value}")
    
    def sources_changed(self, sources: List[str], selected: Optional[str]) -> None:
        self.signal(SOURCES_TOPIC).send(self, sources=sources, selected=selected)
    
    def notice(self, level: NoticeLevel, message: str) -> None:
        self.signal(NOTICE_TOPIC).send(self, level=level, message=message)
        logger.debug(f"Published notice [{level.value}]: {message}")
