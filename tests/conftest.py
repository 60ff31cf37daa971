"""Shared test fixtures for windsurf-chat tests."""

import asyncio
from typing import Optional

import pytest

from windsurf_chat.config import CredentialBundle
from windsurf_chat.errors import ConnectionFailed
from windsurf_chat.transport import (
    ResponseChunk,
    ResponseEnded,
    ResponseTrailers,
    TransportEvent,
)


# ─────────────────────────────────────────────────────────────────────
# MOCK DATA
# ─────────────────────────────────────────────────────────────────────

MOCK_CSRF_TOKEN = "0f3c2a9e-5b7d-4e1a-9c8b-2d6f4a1e7b3c"
MOCK_PORT = 42101
MOCK_API_KEY = "sk-ws-01-test-api-key"
MOCK_VERSION = "1.13.104"

MOCK_CREDENTIALS = {
    "csrf_token": MOCK_CSRF_TOKEN,
    "port": MOCK_PORT,
    "api_key": MOCK_API_KEY,
    "version": MOCK_VERSION,
}

MOCK_MODEL = "gpt-4o"
MOCK_MODEL_CODE = 109


# ─────────────────────────────────────────────────────────────────────
# FAKE TRANSPORT
# ─────────────────────────────────────────────────────────────────────

class FakeTransport:
    """
    Scripted Transport for streaming tests.

    Replays `events` in order. With hang=True, next_event() blocks forever
    once the script runs out (a server that never sends trailers).
    """

    def __init__(
        self,
        events: Optional[list[TransportEvent]] = None,
        hang: bool = False,
        connect_error: Optional[Exception] = None,
    ):
        self.events = list(events or [])
        self.hang = hang
        self.connect_error = connect_error
        self.connect_attempts = 0
        self.close_calls = 0
        self.closed = False
        self.sent: list[tuple[str, list[tuple[str, str]], bytes]] = []

    async def connect(self) -> None:
        self.connect_attempts += 1
        if self.connect_error is not None:
            raise self.connect_error

    async def send_request(self, path, headers, body) -> None:
        self.sent.append((path, list(headers), body))

    async def next_event(self) -> TransportEvent:
        if self.events:
            return self.events.pop(0)
        if self.hang:
            await asyncio.Event().wait()
        raise AssertionError("FakeTransport script exhausted")

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True


def chunks_then_status(*chunks: bytes, status: int = 0, message: Optional[str] = None):
    """Script: raw chunks, then trailers, then end of stream."""
    return [ResponseChunk(c) for c in chunks] + [
        ResponseTrailers(status=status, message=message),
        ResponseEnded(),
    ]


# ─────────────────────────────────────────────────────────────────────
# FIXTURES
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def credentials():
    """Return a valid CredentialBundle."""
    return CredentialBundle(**MOCK_CREDENTIALS)


@pytest.fixture
def sample_messages():
    """Return a short conversation with a system prompt."""
    return [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "What is the capital of France?"},
        {"role": "assistant", "content": "Paris."},
        {"role": "user", "content": "And Germany?"},
    ]


@pytest.fixture
def make_factory():
    """
    Build a transport_factory that hands out one FakeTransport and
    remembers it (and how often it was called).
    """
    def _make(transport: FakeTransport):
        calls = []

        def factory(creds):
            calls.append(creds)
            return transport

        factory.calls = calls
        return factory

    return _make


@pytest.fixture
def refused_transport():
    """A transport whose connect() fails like a closed port."""
    cause = ConnectionRefusedError(111, "Connection refused")
    return FakeTransport(
        connect_error=ConnectionFailed(f"Connection failed: {cause}", cause=cause)
    )
