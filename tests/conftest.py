"""Pytest configuration and fixtures for ekko-client tests."""

import asyncio
import pytest
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ekko_client.config import EkkoConfig
from ekko_client.models.events import ConnectionLostEvent, SessionEndedEvent
from ekko_client.models.session import SessionState
from ekko_client.services.api_client import APIError
from ekko_client.services.session_controller import SessionController
from ekko_client.stream.client import ConnectionHandle
from ekko_client.transcript.store import TranscriptStore
from ekko_client.ui.publisher import RECORDING_TOPIC, TOPICS, ViewPublisher


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network access")
    config.addinivalue_line("markers", "integration: tests against an in-process HTTP server")


class SignalRecorder:
    """Collects every view signal published by a ViewPublisher."""

    def __init__(self, publisher: ViewPublisher):
        self.events = []
        for topic in TOPICS:
            publisher.subscribe(topic, self._receiver(topic), weak=False)

    def _receiver(self, topic: str):
        def receive(sender, **payload):
            self.events.append((topic, payload))
        return receive

    def of(self, topic: str) -> List[dict]:
        return [payload for name, payload in self.events if name == topic]

    def states(self) -> List[SessionState]:
        return [payload["state"] for payload in self.of(RECORDING_TOPIC)]


class FakeSessionAPI:
    """In-memory stand-in for SessionAPI recording every call."""

    stream_url = "http://ekko.test/sse"

    def __init__(self):
        self.calls = []
        self.sources = ["mic", "line-in"]
        self.sources_error: Optional[APIError] = None
        self.start_error: Optional[APIError] = None
        self.stop_error: Optional[APIError] = None
        self.on_stop: Optional[Callable[[], None]] = None
        self.closed = False

    async def list_sources(self):
        self.calls.append(("sources",))
        if self.sources_error:
            raise self.sources_error
        return list(self.sources)

    async def start_session(self, source, duration):
        self.calls.append(("start", source, duration))
        await asyncio.sleep(0)
        if self.start_error:
            raise self.start_error
        return {"status": "started"}

    async def stop_session(self):
        self.calls.append(("stop",))
        # Whatever the stream does while the request is in flight
        if self.on_stop:
            self.on_stop()
        await asyncio.sleep(0)
        if self.stop_error:
            raise self.stop_error
        return {"status": "stopped"}

    async def close(self):
        self.closed = True

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeStreamClient:
    """Stream client double; tests push events with ``emit``."""

    def __init__(self):
        self.handler = None
        self.opened: List[ConnectionHandle] = []
        self.close_calls = 0
        self._handle: Optional[ConnectionHandle] = None

    def on_event(self, handler):
        self.handler = handler

    @property
    def handle(self):
        return self._handle

    @property
    def is_open(self):
        return self._handle is not None and not self._handle.closed

    def open(self, endpoint):
        handle = ConnectionHandle(len(self.opened) + 1, endpoint)
        self.opened.append(handle)
        self._handle = handle
        return handle

    def close(self):
        self.close_calls += 1
        if self._handle is not None:
            self._handle.mark_closed()
            self._handle = None

    def emit(self, event):
        # The real client discards its handle before reporting these
        if isinstance(event, (SessionEndedEvent, ConnectionLostEvent)) and self._handle is not None:
            self._handle.mark_closed()
            self._handle = None
        self.handler(event)


@pytest.fixture
def test_config():
    """Default configuration with a short reconnect delay."""
    config = EkkoConfig()
    config.set('stream.reconnect_delay', 0.01)
    config.set('stream.max_reconnect_attempts', 2)
    return config


@pytest.fixture
def publisher():
    return ViewPublisher()


@pytest.fixture
def recorder(publisher):
    return SignalRecorder(publisher)


@pytest.fixture
def fake_api():
    return FakeSessionAPI()


@pytest.fixture
def fake_stream():
    return FakeStreamClient()


@pytest.fixture
def controller(test_config, fake_api, fake_stream, publisher):
    return SessionController(test_config, api=fake_api, stream=fake_stream, publisher=publisher)


@pytest.fixture
def fixed_clock():
    """Clock returning 10:00:00, 10:00:02, 10:00:04, ..."""
    start = datetime(2024, 5, 1, 10, 0, 0)
    ticks = iter(range(0, 10_000, 2))

    def clock():
        return start + timedelta(seconds=next(ticks))

    return clock


@pytest.fixture
def store(publisher, fixed_clock):
    return TranscriptStore(publisher=publisher, clock=fixed_clock)
