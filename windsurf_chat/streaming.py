"""
Streaming chat interface.

A ChatCall owns one request: the encoded frame, one transport and one
decoder. Its events() generator is the single source of truth:

    ChunkEvent(text)  - decoded text, in arrival order
    DoneEvent         - stream finished (or the global timeout expired)
    ErrorEvent(error) - connection or stream failure

Push mode (stream_chat) and pull mode (stream_chat_iter) are thin adapters
over that sequence. The transport is closed on every exit path.

Usage:
    # Push: callbacks fire as chunks arrive, returns the full text
    text = await stream_chat(creds, "gpt-4o", messages, on_chunk=print)

    # Pull: async iterator, close early to cancel
    async with aclosing(stream_chat_iter(creds, "gpt-4o", messages)) as chunks:
        async for chunk in chunks:
            ...
"""

import asyncio
import logging
from collections.abc import Mapping
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Callable, Optional, Union

from windsurf_chat.config import (
    RPC_METHOD_PATH,
    ChatMessage,
    CredentialBundle,
    StreamResult,
    ensure_credentials,
    get_host,
    get_timeout_seconds,
    normalize_messages,
)
from windsurf_chat.decoder import ChunkDecoder, HeuristicChunkDecoder
from windsurf_chat.errors import ConnectionFailed, StreamError, WindsurfError
from windsurf_chat.framing import encode_frame
from windsurf_chat.messages import ChatEntryForm, RequestMetadata, build_chat_request
from windsurf_chat.models import resolve_model
from windsurf_chat.transport import (
    H2Transport,
    ResponseChunk,
    ResponseEnded,
    ResponseFailed,
    ResponseTrailers,
    Transport,
    grpc_request_headers,
)

logger = logging.getLogger(__name__)

TransportFactory = Callable[[CredentialBundle], Transport]
Messages = list[Union[ChatMessage, Mapping[str, Any]]]


@dataclass(frozen=True)
class ChunkEvent:
    text: str


@dataclass(frozen=True)
class DoneEvent:
    timed_out: bool = False


@dataclass(frozen=True)
class ErrorEvent:
    error: WindsurfError


ChatEvent = Union[ChunkEvent, DoneEvent, ErrorEvent]


def default_transport(credentials: CredentialBundle) -> Transport:
    return H2Transport(get_host(), credentials.port)


class ChatCall:
    """
    A single prepared chat request. Consumable once.

    Build with prepare_call(); all pre-flight validation has already
    happened by the time an instance exists.
    """

    def __init__(
        self,
        credentials: CredentialBundle,
        frame: bytes,
        transport: Transport,
        decoder: ChunkDecoder,
        timeout_seconds: float,
    ):
        self.credentials = credentials
        self.frame = frame
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._decoder = decoder
        self._started = False
        self._result: Optional[StreamResult] = None

    @property
    def result(self) -> Optional[StreamResult]:
        """Final outcome, or None while the call is still running."""
        return self._result

    def _finalize(self, result: StreamResult) -> None:
        if self._result is not None:
            raise RuntimeError("Stream result already finalized")
        self._result = result

    def _done(self, parts: list[str], timed_out: bool = False) -> DoneEvent:
        self._finalize(StreamResult(text="".join(parts), status="success", timed_out=timed_out))
        if timed_out:
            logger.warning(
                f"Chat call timed out after {self.timeout_seconds}s; "
                f"returning {len(parts)} chunk(s) received so far"
            )
        else:
            logger.info(f"Chat call complete: {len(parts)} chunk(s)")
        return DoneEvent(timed_out=timed_out)

    def _error(self, parts: list[str], error: WindsurfError) -> ErrorEvent:
        self._finalize(StreamResult(text="".join(parts), status="failure", error=error))
        logger.warning(f"Chat call failed: {error.message}")
        return ErrorEvent(error)

    async def _open(self) -> None:
        await self._transport.connect()
        await self._transport.send_request(
            RPC_METHOD_PATH,
            grpc_request_headers(self.credentials.csrf_token),
            self.frame,
        )

    async def events(self) -> AsyncGenerator[ChatEvent, None]:
        """Yield the tagged event sequence for this call. Ends after Done or Error."""
        if self._started:
            raise RuntimeError("ChatCall can only be consumed once")
        self._started = True

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_seconds
        parts: list[str] = []
        logger.info(f"Starting chat call on port {self.credentials.port} ({len(self.frame)} byte frame)")

        try:
            try:
                await asyncio.wait_for(self._open(), max(deadline - loop.time(), 0))
            except asyncio.TimeoutError:
                yield self._done(parts, timed_out=True)
                return
            except WindsurfError as e:
                yield self._error(parts, e)
                return

            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    yield self._done(parts, timed_out=True)
                    return
                try:
                    event = await asyncio.wait_for(self._transport.next_event(), remaining)
                except asyncio.TimeoutError:
                    yield self._done(parts, timed_out=True)
                    return

                if isinstance(event, ResponseChunk):
                    text = self._decoder.decode(event.data)
                    if text:
                        parts.append(text)
                        yield ChunkEvent(text)
                elif isinstance(event, ResponseTrailers):
                    if event.status != 0:
                        error = StreamError(
                            f"gRPC error {event.status}: {event.message or 'Unknown error'}",
                            status=event.status,
                        )
                        yield self._error(parts, error)
                        return
                elif isinstance(event, ResponseEnded):
                    yield self._done(parts)
                    return
                elif isinstance(event, ResponseFailed):
                    if event.before_response:
                        error = ConnectionFailed(
                            f"Connection failed: {event.reason}", cause=event.cause
                        )
                    else:
                        error = StreamError(f"Request failed: {event.reason}", cause=event.cause)
                    yield self._error(parts, error)
                    return
        finally:
            await self._transport.close()

    async def run(
        self,
        on_chunk: Optional[Callable[[str], None]] = None,
        on_complete: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[WindsurfError], None]] = None,
    ) -> str:
        """
        Push mode: invoke callbacks in arrival order and return the full text.

        Raises:
            ConnectionFailed, StreamError: after on_error has been called
        """
        async with aclosing(self.events()) as events:
            async for event in events:
                if isinstance(event, ChunkEvent):
                    if on_chunk:
                        on_chunk(event.text)
                elif isinstance(event, ErrorEvent):
                    if on_error:
                        on_error(event.error)
                    raise event.error
        text = self._result.text
        if on_complete:
            on_complete(text)
        return text

    async def iter_text(self) -> AsyncGenerator[str, None]:
        """
        Pull mode: yield text fragments as they arrive.

        Raises the terminal error, if any, once buffered fragments are
        exhausted. Closing the generator early closes the connection.
        """
        async with aclosing(self.events()) as events:
            async for event in events:
                if isinstance(event, ChunkEvent):
                    yield event.text
                elif isinstance(event, ErrorEvent):
                    raise event.error


def prepare_call(
    credentials: Union[CredentialBundle, Mapping[str, Any]],
    model: str,
    messages: Messages,
    *,
    timeout_seconds: Optional[float] = None,
    decoder: Optional[ChunkDecoder] = None,
    transport_factory: Optional[TransportFactory] = None,
    form: ChatEntryForm = ChatEntryForm.FORMATTED,
    model_table: Optional[Mapping[str, int]] = None,
) -> ChatCall:
    """
    Validate inputs and encode the request. No network I/O happens here.

    Raises:
        MissingCredential: credential bundle incomplete
        ModelNotFound: model not in the lookup table
    """
    creds = ensure_credentials(credentials)
    model_code = resolve_model(model, model_table)
    chat_messages = normalize_messages(messages)

    payload = build_chat_request(
        RequestMetadata.from_credentials(creds),
        chat_messages,
        model_code,
        form=form,
    )
    factory = transport_factory or default_transport
    return ChatCall(
        creds,
        encode_frame(payload),
        transport=factory(creds),
        decoder=decoder or HeuristicChunkDecoder(),
        timeout_seconds=timeout_seconds if timeout_seconds is not None else get_timeout_seconds(),
    )


async def stream_chat(
    credentials: Union[CredentialBundle, Mapping[str, Any]],
    model: str,
    messages: Messages,
    *,
    on_chunk: Optional[Callable[[str], None]] = None,
    on_complete: Optional[Callable[[str], None]] = None,
    on_error: Optional[Callable[[WindsurfError], None]] = None,
    **options: Any,
) -> str:
    """
    Send one chat request and return the full response text.

    Callbacks run synchronously in arrival order. on_complete fires exactly
    once on success (including timeout); on_error fires once on failure,
    after which the error is raised. Pre-flight errors are raised directly.
    """
    call = prepare_call(credentials, model, messages, **options)
    return await call.run(on_chunk=on_chunk, on_complete=on_complete, on_error=on_error)


def stream_chat_iter(
    credentials: Union[CredentialBundle, Mapping[str, Any]],
    model: str,
    messages: Messages,
    **options: Any,
) -> AsyncGenerator[str, None]:
    """
    Send one chat request and return an async iterator of text fragments.

    Pre-flight errors are raised here, before iteration starts. The
    iterator is single-use; call aclose() to abandon it early.
    """
    call = prepare_call(credentials, model, messages, **options)
    return call.iter_text()
