"""Shared fixtures for the mobile hero tests."""

import asyncio
import logging

import pytest
from websockets.exceptions import ConnectionClosedOK, ConnectionClosedError
from websockets.frames import Close

from config import Configuration
from events import ServerEvents
from key_bindings import KeyBindingTranslator
from keyboard_input import resolve_key_name


class RecordingInjector:
    """Stands in for the keyboard; resolves names like the real one and records calls."""

    def __init__(self):
        self.calls = []

    async def inject(self, physical_key: str, pressed: bool):
        resolve_key_name(physical_key)
        self.calls.append((physical_key, pressed))


class FakeConnection:
    """Scripted websocket connection for driving a session without a network."""

    CLOSE = object()
    ERROR = object()

    def __init__(self, frames=(), remote_address=("192.168.1.20", 50123)):
        self.remote_address = remote_address
        self.sent = []
        self._frames: asyncio.Queue = asyncio.Queue()
        for frame in frames:
            self.feed(frame)

    def feed(self, frame):
        self._frames.put_nowait(frame)

    async def recv(self):
        frame = await self._frames.get()
        if frame is self.CLOSE:
            raise ConnectionClosedOK(Close(1000, ""), Close(1000, ""), rcvd_then_sent=True)
        if frame is self.ERROR:
            raise ConnectionClosedError(None, None)
        return frame

    async def send(self, message):
        self.sent.append(message)


@pytest.fixture
def injector() -> RecordingInjector:
    return RecordingInjector()


@pytest.fixture
def translator(injector) -> KeyBindingTranslator:
    return KeyBindingTranslator(injector)


@pytest.fixture
def config() -> Configuration:
    return Configuration(port=0, pin="1234", advertise=False)


@pytest.fixture
def events() -> ServerEvents:
    return ServerEvents()


@pytest.fixture(autouse=True)
def setup_logging(caplog):
    """Capture everything for assertions on log output"""
    caplog.set_level(logging.DEBUG)
