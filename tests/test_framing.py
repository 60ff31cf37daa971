"""Tests for windsurf_chat.framing - gRPC message framing."""

import struct

import pytest

from windsurf_chat.framing import HEADER_SIZE, Frame, FrameReader, encode_frame


class TestEncodeFrame:
    """Tests for encode_frame."""

    def test_header_layout(self):
        frame = encode_frame(b"hello")
        assert frame[0] == 0
        assert struct.unpack(">I", frame[1:5])[0] == 5
        assert frame[5:] == b"hello"

    def test_empty_payload(self):
        assert encode_frame(b"") == b"\x00\x00\x00\x00\x00"

    def test_length_is_big_endian(self):
        frame = encode_frame(b"x" * 0x0102)
        assert frame[1:5] == b"\x00\x00\x01\x02"
        assert len(frame) == HEADER_SIZE + 0x0102

    def test_compressed_flag(self):
        assert encode_frame(b"z", compressed=True)[0] == 1


class TestFrameReader:
    """Tests for the strict incremental parser."""

    def test_single_frame(self):
        reader = FrameReader()
        assert list(reader.feed(encode_frame(b"abc"))) == [Frame(False, b"abc")]
        assert reader.pending == 0

    def test_multiple_frames_in_one_chunk(self):
        reader = FrameReader()
        data = encode_frame(b"one") + encode_frame(b"two") + encode_frame(b"")
        assert [f.payload for f in reader.feed(data)] == [b"one", b"two", b""]

    def test_frame_split_across_chunks(self):
        data = encode_frame(b"split payload")
        reader = FrameReader()

        assert list(reader.feed(data[:3])) == []
        assert list(reader.feed(data[3:9])) == []
        assert reader.pending == 9
        assert [f.payload for f in reader.feed(data[9:])] == [b"split payload"]
        assert reader.pending == 0

    def test_trailing_partial_frame_is_kept(self):
        reader = FrameReader()
        second = encode_frame(b"second")
        frames = list(reader.feed(encode_frame(b"first") + second[:4]))

        assert [f.payload for f in frames] == [b"first"]
        assert reader.pending == 4
        assert [f.payload for f in reader.feed(second[4:])] == [b"second"]

    @pytest.mark.parametrize("step", [1, 2, 7])
    def test_byte_by_byte(self, step):
        data = encode_frame(b"alpha") + encode_frame(b"beta", compressed=True)
        reader = FrameReader()
        frames = []
        for i in range(0, len(data), step):
            frames.extend(reader.feed(data[i:i + step]))
        assert frames == [Frame(False, b"alpha"), Frame(True, b"beta")]
