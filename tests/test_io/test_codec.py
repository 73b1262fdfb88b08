"""
Tests for typed byte packing and Base64 transcoding (p3dvtk/io/codec.py).
"""

import io
import os
import struct

import numpy as np
import pytest

from p3dvtk.errors import EncodingError, FramingError
from p3dvtk.io.codec import (
    decode_base64,
    encode_base64,
    pack_array,
    pack_float64,
    pack_int32,
    pack_int64,
    pack_uint64,
    read_array,
    unpack_float64,
    unpack_int32,
)


class TestBase64:
    """Standard padded Base64 without line wrapping."""

    @pytest.mark.parametrize("raw, encoded", [
        (b"", ""),
        (b"f", "Zg=="),
        (b"fo", "Zm8="),
        (b"foo", "Zm9v"),
        (b"foob", "Zm9vYg=="),
        (b"foobar", "Zm9vYmFy"),
        (b"\xff\xfe\xfd", "//79"),
    ])
    def test_known_vectors(self, raw, encoded):
        assert encode_base64(raw) == encoded
        assert decode_base64(encoded) == raw

    def test_round_trip_all_lengths(self):
        """Every length from 0 to 300, including non-multiples of 3."""
        rng = np.random.default_rng(1234)
        for n in range(301):
            data = rng.integers(0, 256, size=n, dtype=np.uint8).tobytes()
            text = encode_base64(data)
            assert len(text) % 4 == 0
            assert "\n" not in text
            assert decode_base64(text) == data

    def test_decode_accepts_bytes(self):
        assert decode_base64(b"Zm9v") == b"foo"

    @pytest.mark.parametrize("bad", [
        "Zm9",          # length not a multiple of 4
        "Zm9v!A==",     # character outside the alphabet
        "Z===",         # too much padding
        "Zg=a",         # data after padding
        "Zm9vYmFy\n",   # embedded newline
        "Zm 9",         # whitespace
    ])
    def test_decode_rejects_malformed(self, bad):
        with pytest.raises(EncodingError):
            decode_base64(bad)

    def test_decode_rejects_non_ascii_bytes(self):
        with pytest.raises(EncodingError):
            decode_base64(b"\xffAAA")


class TestTypedValues:
    """Little-endian int32/int64/float64 packing."""

    def test_unpack_int32(self):
        stream = io.BytesIO(struct.pack('<ii', 7, -3))
        assert unpack_int32(stream) == 7
        assert unpack_int32(stream) == -3

    def test_unpack_float64(self):
        stream = io.BytesIO(struct.pack('<d', 2.5))
        assert unpack_float64(stream) == 2.5

    def test_pack_is_inverse_of_unpack(self):
        assert unpack_int32(io.BytesIO(pack_int32(-123456))) == -123456
        assert unpack_float64(io.BytesIO(pack_float64(1e-300))) == 1e-300

    def test_fixed_widths(self):
        assert len(pack_int32(1)) == 4
        assert len(pack_int64(1)) == 8
        assert len(pack_uint64(1)) == 8
        assert len(pack_float64(1.0)) == 8
        assert pack_uint64(16) == b"\x10" + b"\x00" * 7

    def test_short_read_is_framing_error(self):
        stream = io.BytesIO(b"\x01\x02")
        with pytest.raises(FramingError):
            unpack_int32(stream)

    def test_read_array(self):
        values = [1.0, -2.0, 3.5]
        stream = io.BytesIO(pack_array(values, '<f8') + b"tail")
        arr = read_array(stream, '<f8', 3)
        assert arr.dtype == np.float64
        assert np.array_equal(arr, values)
        assert stream.read() == b"tail"

    def test_read_array_truncated(self):
        stream = io.BytesIO(os.urandom(12))
        with pytest.raises(FramingError):
            read_array(stream, '<f8', 2)

    def test_pack_array_int64(self):
        assert pack_array([1, 2], '<i8') == struct.pack('<qq', 1, 2)
