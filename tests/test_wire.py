"""Tests for windsurf_chat.wire - varints, tags and field encoding."""

import pytest

from windsurf_chat.wire import (
    WireType,
    decode_varint,
    encode_length_delimited,
    encode_message,
    encode_string,
    encode_tag,
    encode_varint,
    encode_varint_field,
    iter_fields,
)


class TestVarint:
    """Tests for encode_varint / decode_varint."""

    @pytest.mark.parametrize("value", [0, 1, 127, 128, 2**32 - 1, 2**53 - 1])
    def test_round_trip(self, value):
        encoded = encode_varint(value)
        decoded, end = decode_varint(encoded)
        assert decoded == value
        assert end == len(encoded)

    def test_known_encodings(self):
        assert encode_varint(0) == b"\x00"
        assert encode_varint(1) == b"\x01"
        assert encode_varint(127) == b"\x7f"
        assert encode_varint(128) == b"\x80\x01"
        assert encode_varint(300) == b"\xac\x02"

    def test_minimal_length(self):
        """Continuation bit on all but the last byte, no padding."""
        encoded = encode_varint(2**53 - 1)
        assert len(encoded) == 8
        assert all(b & 0x80 for b in encoded[:-1])
        assert not encoded[-1] & 0x80

    def test_millisecond_timestamp_is_exact(self):
        """Wall-clock ms values exceed 32 bits and must not lose precision."""
        ms = 1_767_225_600_123
        assert decode_varint(encode_varint(ms))[0] == ms

    def test_negative_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            encode_varint(-1)

    def test_decode_at_offset(self):
        data = b"\xff" + encode_varint(300)
        assert decode_varint(data, 1) == (300, 3)

    def test_truncated_varint_raises(self):
        with pytest.raises(ValueError, match="truncated"):
            decode_varint(b"\x80\x80")


class TestFields:
    """Tests for tags and field encoders."""

    def test_tag_layout(self):
        assert encode_tag(1, WireType.VARINT) == b"\x08"
        assert encode_tag(3, WireType.LEN) == b"\x1a"
        assert encode_tag(12, WireType.LEN) == b"\x62"

    def test_tag_for_large_field_number_is_multibyte(self):
        assert encode_tag(16, WireType.VARINT) == b"\x80\x01"

    def test_field_number_zero_rejected(self):
        with pytest.raises(ValueError):
            encode_tag(0, WireType.VARINT)

    def test_varint_field(self):
        assert encode_varint_field(4, 109) == b"\x20\x6d"

    def test_string_is_utf8(self):
        encoded = encode_string(1, "héllo")
        assert encoded == b"\x0a\x06" + "héllo".encode("utf-8")

    @pytest.mark.parametrize("payload", [b"", b"x", b"a" * 127, b"b" * 128, b"c" * 70000])
    def test_declared_length_matches_payload(self, payload):
        encoded = encode_length_delimited(2, payload)
        [(number, wire_type, value)] = list(iter_fields(encoded))
        assert number == 2
        assert wire_type == WireType.LEN
        assert value == payload

    def test_nested_message(self):
        inner = encode_string(1, "hi") + encode_varint_field(2, 5)
        outer = encode_message(5, inner)
        [(number, _, value)] = list(iter_fields(outer))
        assert number == 5
        assert list(iter_fields(value)) == [(1, WireType.LEN, b"hi"), (2, WireType.VARINT, 5)]


class TestIterFields:
    """Tests for the read-side field walker."""

    def test_mixed_fields_in_order(self):
        data = encode_varint_field(1, 7) + encode_string(2, "a") + encode_varint_field(1, 8)
        assert [f[0] for f in iter_fields(data)] == [1, 2, 1]

    def test_overlong_length_raises(self):
        data = encode_tag(2, WireType.LEN) + encode_varint(10) + b"abc"
        with pytest.raises(ValueError, match="declares 10 bytes"):
            list(iter_fields(data))

    def test_unsupported_wire_type_raises(self):
        data = bytes([(1 << 3) | 5]) + b"\x00\x00\x00\x00"  # fixed32
        with pytest.raises(ValueError, match="unsupported wire type"):
            list(iter_fields(data))
