"""
Protobuf wire-format primitives.

Hand-rolled encoding for the handful of field shapes the language server
request needs: varints (wire type 0) and length-delimited bytes, strings and
nested messages (wire type 2). There is no schema here - callers pass field
numbers directly, and a wrong number still produces well-formed bytes.

The read side (decode_varint, iter_fields) only understands the same two wire
types and exists for inspecting what we built.
"""

from enum import IntEnum
from typing import Iterator, Union


class WireType(IntEnum):
    VARINT = 0
    LEN = 2


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer as a little-endian base-128 varint."""
    if value < 0:
        raise ValueError(f"varint must be non-negative, got {value}")
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def encode_tag(field_number: int, wire_type: WireType) -> bytes:
    """Field key: (field_number << 3) | wire_type, itself varint-encoded."""
    if field_number < 1:
        raise ValueError(f"field number must be >= 1, got {field_number}")
    return encode_varint((field_number << 3) | int(wire_type))


def encode_varint_field(field_number: int, value: int) -> bytes:
    return encode_tag(field_number, WireType.VARINT) + encode_varint(value)


def encode_length_delimited(field_number: int, payload: bytes) -> bytes:
    return encode_tag(field_number, WireType.LEN) + encode_varint(len(payload)) + payload


def encode_string(field_number: int, text: str) -> bytes:
    return encode_length_delimited(field_number, text.encode("utf-8"))


def encode_message(field_number: int, fields: bytes) -> bytes:
    """Nest already-encoded fields as a sub-message."""
    return encode_length_delimited(field_number, fields)


# ─────────────────────────────────────────────────────────────────────
# READ SIDE
# ─────────────────────────────────────────────────────────────────────

def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Decode one varint starting at offset.

    Returns:
        (value, offset just past the varint)

    Raises:
        ValueError: if the data ends mid-varint
    """
    result = 0
    shift = 0
    pos = offset
    while True:
        if pos >= len(data):
            raise ValueError(f"truncated varint at offset {offset}")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def iter_fields(data: bytes) -> Iterator[tuple[int, WireType, Union[int, bytes]]]:
    """
    Walk the top-level fields of an encoded message.

    Yields (field_number, wire_type, value) where value is an int for
    varints and the raw payload bytes for length-delimited fields. Nested
    messages are not descended into.
    """
    pos = 0
    while pos < len(data):
        key, pos = decode_varint(data, pos)
        field_number, wire_type = key >> 3, key & 0x07
        if wire_type == WireType.VARINT:
            value, pos = decode_varint(data, pos)
            yield field_number, WireType.VARINT, value
        elif wire_type == WireType.LEN:
            length, pos = decode_varint(data, pos)
            end = pos + length
            if end > len(data):
                raise ValueError(
                    f"field {field_number} declares {length} bytes, only {len(data) - pos} left"
                )
            yield field_number, WireType.LEN, data[pos:end]
            pos = end
        else:
            raise ValueError(f"unsupported wire type {wire_type} for field {field_number}")
