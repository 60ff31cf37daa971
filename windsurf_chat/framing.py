"""
gRPC length-prefixed message framing.

Each message on the stream is:
    1 byte   compression flag (0 = uncompressed)
    4 bytes  payload length, big-endian
    N bytes  payload

Requests always go out uncompressed. The streaming client does not parse
response frames (see decoder.py); FrameReader is the strict parser for
consumers that need exact message boundaries.
"""

import struct
from dataclasses import dataclass
from typing import Iterator

HEADER_SIZE = 5
MAX_PAYLOAD_SIZE = 0xFFFFFFFF

_HEADER = struct.Struct(">BI")


def encode_frame(payload: bytes, compressed: bool = False) -> bytes:
    """Prefix payload with the 5-byte gRPC message header."""
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise ValueError(f"payload too large for a gRPC frame: {len(payload)} bytes")
    return _HEADER.pack(1 if compressed else 0, len(payload)) + payload


@dataclass(frozen=True)
class Frame:
    compressed: bool
    payload: bytes


class FrameReader:
    """
    Incremental frame parser.

    Feed raw chunks in arrival order; complete frames come out as soon as
    their declared length has been buffered. Partial frames wait for more
    data.

        reader = FrameReader()
        for chunk in chunks:
            for frame in reader.feed(chunk):
                handle(frame.payload)
    """

    def __init__(self):
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Bytes buffered but not yet returned as a frame."""
        return len(self._buffer)

    def feed(self, data: bytes) -> Iterator[Frame]:
        self._buffer.extend(data)
        while len(self._buffer) >= HEADER_SIZE:
            flag, length = _HEADER.unpack_from(self._buffer)
            end = HEADER_SIZE + length
            if len(self._buffer) < end:
                return
            payload = bytes(self._buffer[HEADER_SIZE:end])
            del self._buffer[:end]
            yield Frame(compressed=bool(flag), payload=payload)
