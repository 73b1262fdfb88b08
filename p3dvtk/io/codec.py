"""
Typed little-endian packing/unpacking and Base64 transcoding.

Binary Plot3D files and VTK binary payloads are both little-endian; every
format string here pins that byte order explicitly.
"""

import base64
import binascii
import re
import struct
from typing import BinaryIO, Iterable, Union

import numpy as np

from ..errors import EncodingError, FramingError


INT32 = struct.Struct('<i')
INT64 = struct.Struct('<q')
UINT64 = struct.Struct('<Q')
FLOAT64 = struct.Struct('<d')

_BASE64_RE = re.compile(r'[A-Za-z0-9+/]*={0,2}')


def _tell(stream) -> Union[int, None]:
    try:
        return stream.tell()
    except (AttributeError, OSError):
        return None


def read_exact(stream: BinaryIO, n_bytes: int) -> bytes:
    """Read exactly ``n_bytes`` or raise FramingError on a short read."""
    offset = _tell(stream)
    data = stream.read(n_bytes)
    if data is None or len(data) != n_bytes:
        got = 0 if data is None else len(data)
        raise FramingError(
            f"Premature end of stream: wanted {n_bytes} bytes, got {got}",
            offset=offset,
        )
    return data


def unpack_int32(stream: BinaryIO) -> int:
    return INT32.unpack(read_exact(stream, INT32.size))[0]


def unpack_float64(stream: BinaryIO) -> float:
    return FLOAT64.unpack(read_exact(stream, FLOAT64.size))[0]


def read_array(stream: BinaryIO, dtype: str, count: int) -> np.ndarray:
    """
    Read ``count`` consecutive values of ``dtype`` from a binary stream.

    Parameters
    ----------
    stream : binary file object
        Positioned at the first value.
    dtype : str
        numpy dtype string with explicit byte order, e.g. ``'<f8'``.
    count : int
        Number of values.

    Returns
    -------
    ndarray
        1D array of length ``count`` (a copy, safe to modify).
    """
    dt = np.dtype(dtype)
    raw = read_exact(stream, dt.itemsize * count)
    return np.frombuffer(raw, dtype=dt).copy()


def pack_int32(value: int) -> bytes:
    return INT32.pack(value)


def pack_int64(value: int) -> bytes:
    return INT64.pack(value)


def pack_uint64(value: int) -> bytes:
    return UINT64.pack(value)


def pack_float64(value: float) -> bytes:
    return FLOAT64.pack(value)


def pack_array(values: Iterable, dtype: str) -> bytes:
    """Pack a sequence of numbers as contiguous ``dtype`` values."""
    return np.ascontiguousarray(np.asarray(values, dtype=np.dtype(dtype))).tobytes()


def encode_base64(data: bytes) -> str:
    """Standard Base64 with ``=`` padding and no line wrapping."""
    return base64.b64encode(bytes(data)).decode('ascii')


def decode_base64(text: Union[str, bytes]) -> bytes:
    """
    Decode standard padded Base64.

    Raises
    ------
    EncodingError
        On characters outside the Base64 alphabet, a length that is not a
        multiple of 4, or misplaced padding.
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode('ascii')
        except UnicodeDecodeError as e:
            raise EncodingError(f"Non-ASCII byte in Base64 input: {e}") from e

    if len(text) % 4 != 0:
        raise EncodingError(
            f"Base64 input length {len(text)} is not a multiple of 4"
        )
    if not _BASE64_RE.fullmatch(text):
        raise EncodingError("Invalid character or padding in Base64 input")

    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise EncodingError(f"Malformed Base64 input: {e}") from e
