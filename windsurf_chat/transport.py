"""
Stream transport: one gRPC request over one cleartext HTTP/2 connection.

H2Transport drives the h2 state machine over asyncio streams. It knows
nothing about protobuf or chunk decoding; it hands back raw response events
in arrival order and leaves policy (timeouts, error mapping) to streaming.py.
"""

import asyncio
import logging
from collections import deque
from contextlib import suppress
from dataclasses import dataclass
from typing import Optional, Protocol, Union
from urllib.parse import unquote

import h2.config
import h2.connection
import h2.events
import h2.exceptions

from windsurf_chat.config import CSRF_HEADER, GRPC_CONTENT_TYPE
from windsurf_chat.errors import ConnectionFailed, StreamError

logger = logging.getLogger(__name__)

READ_SIZE = 65536


# ─────────────────────────────────────────────────────────────────────
# EVENTS
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ResponseChunk:
    data: bytes


@dataclass(frozen=True)
class ResponseTrailers:
    status: int
    message: Optional[str] = None


@dataclass(frozen=True)
class ResponseEnded:
    pass


@dataclass(frozen=True)
class ResponseFailed:
    """Terminal failure. before_response means no response headers ever arrived."""
    reason: str
    cause: Optional[BaseException] = None
    before_response: bool = False


TransportEvent = Union[ResponseChunk, ResponseTrailers, ResponseEnded, ResponseFailed]


class Transport(Protocol):
    """
    Contract for a single request/response exchange.

    Call order: connect() -> send_request() -> next_event() until a terminal
    event (ResponseEnded or ResponseFailed) -> close(). close() may be called
    at any point and any number of times.
    """

    async def connect(self) -> None:
        ...

    async def send_request(self, path: str, headers: list[tuple[str, str]], body: bytes) -> None:
        ...

    async def next_event(self) -> TransportEvent:
        ...

    async def close(self) -> None:
        ...


def grpc_request_headers(csrf_token: str) -> list[tuple[str, str]]:
    """Non-pseudo headers for a unary-request, streamed-response gRPC call."""
    return [
        ("content-type", GRPC_CONTENT_TYPE),
        ("te", "trailers"),
        (CSRF_HEADER, csrf_token),
    ]


def parse_grpc_status(headers: dict[str, str]) -> ResponseTrailers:
    """Read grpc-status / grpc-message from a header or trailer block."""
    raw_status = headers.get("grpc-status", "")
    try:
        status = int(raw_status)
    except ValueError:
        status = 2  # UNKNOWN
    message = headers.get("grpc-message")
    return ResponseTrailers(status=status, message=unquote(message) if message else None)


# ─────────────────────────────────────────────────────────────────────
# HTTP/2 TRANSPORT
# ─────────────────────────────────────────────────────────────────────

class H2Transport:
    """
    HTTP/2 (prior knowledge, no TLS) transport for the local language server.

    One instance serves exactly one request; the connection is never reused.
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self._conn: Optional[h2.connection.H2Connection] = None
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._stream_id: Optional[int] = None
        self._pending: deque[TransportEvent] = deque()
        self._response_started = False
        self._finished = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self) -> None:
        """
        Open the socket and send the HTTP/2 preface.

        Raises:
            ConnectionFailed: if the server cannot be reached
        """
        if self._closed:
            raise ConnectionFailed("Transport already closed")
        try:
            self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
        except OSError as e:
            raise ConnectionFailed(
                f"Connection failed: {self.host}:{self.port}: {e}", cause=e
            ) from e

        self._conn = h2.connection.H2Connection(
            config=h2.config.H2Configuration(client_side=True, header_encoding="utf-8")
        )
        self._conn.initiate_connection()
        try:
            await self._flush()
        except OSError as e:
            raise ConnectionFailed(f"Connection failed during handshake: {e}", cause=e) from e
        logger.debug(f"Connected to {self.host}:{self.port}")

    async def send_request(self, path: str, headers: list[tuple[str, str]], body: bytes) -> None:
        """
        Send headers and the complete request body, then half-close.

        Raises:
            ConnectionFailed: if the socket fails before the body is sent
            StreamError: if the peer rejects the stream at the HTTP/2 level
        """
        if self._conn is None:
            raise ConnectionFailed("send_request() called before connect()")

        request_headers = [
            (":method", "POST"),
            (":scheme", "http"),
            (":authority", f"{self.host}:{self.port}"),
            (":path", path),
        ] + list(headers)

        try:
            self._stream_id = self._conn.get_next_available_stream_id()
            self._conn.send_headers(self._stream_id, request_headers)
            await self._flush()
            await self._send_body(body)
        except h2.exceptions.ProtocolError as e:
            raise StreamError(f"Request failed: {e}", cause=e) from e
        except OSError as e:
            raise ConnectionFailed(f"Connection lost while sending request: {e}", cause=e) from e
        logger.debug(f"Sent {len(body)} byte request on stream {self._stream_id} to {path}")

    async def _send_body(self, body: bytes) -> None:
        """Write body within flow-control limits, reading to learn of window updates."""
        view = memoryview(body)
        offset = 0
        while offset < len(view):
            if self._finished:
                # Peer ended or reset the stream early; what it sent is queued.
                return
            window = self._conn.local_flow_control_window(self._stream_id)
            size = min(window, self._conn.max_outbound_frame_size, len(view) - offset)
            if size <= 0:
                await self._read_once()
                continue
            self._conn.send_data(self._stream_id, bytes(view[offset:offset + size]))
            offset += size
            await self._flush()
        self._conn.end_stream(self._stream_id)
        await self._flush()

    async def next_event(self) -> TransportEvent:
        """Return the next response event, reading from the socket if none is buffered."""
        while not self._pending:
            if self._finished:
                raise RuntimeError("Response already finished")
            await self._read_once()
        return self._pending.popleft()

    async def _read_once(self) -> None:
        try:
            data = await self._reader.read(READ_SIZE)
        except OSError as e:
            self._fail(f"Connection error: {e}", cause=e)
            return
        if not data:
            self._fail(
                "Connection closed by server",
                cause=ConnectionError(f"EOF from {self.host}:{self.port}"),
            )
            return

        try:
            events = self._conn.receive_data(data)
        except h2.exceptions.ProtocolError as e:
            self._fail(f"HTTP/2 protocol error: {e}", cause=e)
            return

        for event in events:
            self._handle(event)

        try:
            await self._flush()
        except OSError as e:
            self._fail(f"Connection error: {e}", cause=e)

    def _handle(self, event: h2.events.Event) -> None:
        stream_id = getattr(event, "stream_id", None)
        if stream_id is not None and stream_id != self._stream_id:
            return

        if isinstance(event, h2.events.ResponseReceived):
            self._response_started = True
            headers = dict(event.headers)
            if "grpc-status" in headers:
                # Trailers-only response
                self._pending.append(parse_grpc_status(headers))
            elif headers.get(":status") != "200":
                self._fail(f"HTTP status {headers.get(':status')}")
        elif isinstance(event, h2.events.DataReceived):
            self._conn.acknowledge_received_data(event.flow_controlled_length, event.stream_id)
            if event.data:
                logger.debug(f"Received {len(event.data)} bytes on stream {event.stream_id}")
                self._pending.append(ResponseChunk(event.data))
        elif isinstance(event, h2.events.TrailersReceived):
            trailers = parse_grpc_status(dict(event.headers))
            logger.debug(f"Trailers: grpc-status={trailers.status}")
            self._pending.append(trailers)
        elif isinstance(event, h2.events.StreamEnded):
            if not self._finished:
                self._finished = True
                self._pending.append(ResponseEnded())
        elif isinstance(event, h2.events.StreamReset):
            self._fail(f"Stream reset by server (error code {event.error_code})")
        elif isinstance(event, h2.events.ConnectionTerminated):
            self._fail(f"Connection terminated by server (error code {event.error_code})")

    def _fail(self, reason: str, cause: Optional[BaseException] = None) -> None:
        if self._finished:
            return
        logger.debug(reason)
        self._finished = True
        self._pending.append(
            ResponseFailed(reason, cause=cause, before_response=not self._response_started)
        )

    async def _flush(self) -> None:
        data = self._conn.data_to_send()
        if data:
            self._writer.write(data)
            await self._writer.drain()

    async def close(self) -> None:
        """Send GOAWAY and close the socket. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        if self._writer is None:
            return
        try:
            self._conn.close_connection()
            self._writer.write(self._conn.data_to_send())
        except (h2.exceptions.ProtocolError, OSError) as e:
            logger.debug(f"GOAWAY not sent: {e}")
        self._writer.close()
        with suppress(OSError):
            await self._writer.wait_closed()
        logger.debug(f"Closed connection to {self.host}:{self.port}")
