"""
Response chunk -> display text.

The response schema is not known, so the default decoder scrapes printable
text out of each raw chunk. It is a stand-in: anything implementing
ChunkDecoder can replace it without touching framing or transport.
"""

import re
from typing import Protocol

_MARKER = re.compile(r"\*\s*([^0]+)")
_SEGMENT_SPLIT = re.compile(r"\s{2,}")
_HEX_TOKEN = re.compile(r"^[a-f0-9-]+$", re.IGNORECASE)
_LEADING_NOISE = re.compile(r"^[\d*]+")

# Printable ASCII plus newline survive; any other character becomes one space.
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n]")


class ChunkDecoder(Protocol):
    """Turns one raw response chunk into text. Empty string means nothing to show."""

    def decode(self, chunk: bytes) -> str:
        ...


class HeuristicChunkDecoder:
    """
    Best-effort text recovery from opaque protobuf bytes.

    1. Decode as UTF-8; each non-printable character becomes one space
       (newlines are kept).
    2. Text after an asterisk marker wins, up to the next '0', trimmed.
    3. Otherwise the first segment between runs of 2+ spaces that is not
       blank, has no hyphen and is not a hex/uuid token. Leading spaces are
       kept so consecutive chunks join with their original spacing; trailing
       ones are dropped.
    4. Otherwise "".
    """

    def decode(self, chunk: bytes) -> str:
        readable = _NON_PRINTABLE.sub(" ", chunk.decode("utf-8", errors="replace"))

        match = _MARKER.search(readable)
        if match:
            return match.group(1).strip()

        for segment in _SEGMENT_SPLIT.split(readable):
            if not segment.strip() or "-" in segment:
                continue
            if _HEX_TOKEN.match(segment.strip()):
                continue
            cleaned = _LEADING_NOISE.sub("", segment)
            if cleaned.strip():
                return cleaned.rstrip()
        return ""


class Utf8ChunkDecoder:
    """Lossless UTF-8 decode. Useful when the server streams plain text."""

    def decode(self, chunk: bytes) -> str:
        return chunk.decode("utf-8", errors="replace")
