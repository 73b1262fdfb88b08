"""
Fortran unformatted sequential record framing.

Each record is stored as a 4-byte length marker, the payload, and the same
4-byte length marker repeated. The reader keeps the leading marker so that
the trailing one can be validated when the record is closed.
"""

from contextlib import contextmanager
from typing import BinaryIO, Optional

from .codec import INT32, pack_int32, read_exact
from ..errors import FramingError


class FortranSequentialInputStream:
    """
    Record reader for Fortran sequential binary files.

    Only one record may be open at a time. ``record_open`` and
    ``record_close`` must be paired; ``check_balanced`` verifies that no
    record was left open at the end of an operation.

    Example
    -------
    >>> reader = FortranSequentialInputStream()
    >>> with reader.record(stream) as n_bytes:
    ...     payload = stream.read(n_bytes)
    """

    def __init__(self):
        self._length: Optional[int] = None
        self._start: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self._length is not None

    @property
    def record_length(self) -> int:
        """Payload length of the currently open record."""
        if self._length is None:
            raise FramingError("No record is open")
        return self._length

    def record_open(self, stream: BinaryIO) -> int:
        """
        Read the leading length marker of the next record.

        Returns
        -------
        int
            Payload length in bytes.
        """
        if self._length is not None:
            raise FramingError("Record opened while another record is still open",
                               offset=stream.tell())
        offset = stream.tell()
        marker = stream.read(INT32.size)
        if len(marker) != INT32.size:
            raise FramingError("Stream is not positioned at a record boundary",
                               offset=offset)
        length = INT32.unpack(marker)[0]
        if length < 0:
            raise FramingError(f"Negative record length {length}", offset=offset)
        self._length = length
        self._start = stream.tell()
        return length

    def bytes_remaining(self, stream: BinaryIO) -> int:
        """Payload bytes of the open record not yet consumed."""
        return self.record_length - (stream.tell() - self._start)

    def record_close(self, stream: BinaryIO) -> None:
        """Read the trailing length marker and check it against the leading one."""
        if self._length is None:
            raise FramingError("record_close called with no open record",
                               offset=stream.tell())
        length, start = self._length, self._start
        self._length = None
        self._start = None

        consumed = stream.tell() - start
        if consumed != length:
            raise FramingError(
                f"Record payload is {length} bytes but {consumed} were consumed",
                offset=stream.tell(),
            )
        offset = stream.tell()
        trailer = INT32.unpack(read_exact(stream, INT32.size))[0]
        if trailer != length:
            raise FramingError(
                f"Record trailer {trailer} does not match header {length}",
                offset=offset,
            )

    def abandon(self) -> None:
        """Drop the open record without reading its trailer."""
        self._length = None
        self._start = None

    def check_balanced(self) -> None:
        if self._length is not None:
            raise FramingError("Record left open at end of operation")

    @contextmanager
    def record(self, stream: BinaryIO):
        """Open a record, yield its payload length, and close it on success."""
        length = self.record_open(stream)
        try:
            yield length
        except BaseException:
            self.abandon()
            raise
        self.record_close(stream)


class FortranSequentialOutputStream:
    """Record writer producing the layout read by FortranSequentialInputStream."""

    def write_record(self, stream: BinaryIO, payload: bytes) -> int:
        """Write one framed record; returns the number of bytes written."""
        marker = pack_int32(len(payload))
        stream.write(marker)
        stream.write(payload)
        stream.write(marker)
        return len(payload) + 2 * len(marker)
