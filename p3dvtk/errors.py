"""
Exception hierarchy shared by the Plot3D reader and the VTK writer.
"""

from typing import Optional


class Plot3DVtkError(Exception):
    """Base class for all errors raised by this package."""
    pass


class ConfigurationError(Plot3DVtkError):
    """Invalid or missing setup before an operation."""
    pass


class FramingError(Plot3DVtkError):
    """Broken record framing or premature end of a binary stream."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (byte offset {offset})"
        super().__init__(message)


class ParseError(Plot3DVtkError):
    """
    Malformed input encountered while parsing.

    Carries the 1-based line number for text input or the byte offset
    for binary input.
    """

    def __init__(self, message: str, line: Optional[int] = None,
                 offset: Optional[int] = None):
        self.line = line
        self.offset = offset
        if line is not None:
            message = f"{message} (line {line})"
        elif offset is not None:
            message = f"{message} (byte offset {offset})"
        super().__init__(message)


class EncodingError(Plot3DVtkError):
    """Malformed Base64 input."""
    pass


class WriteStateError(Plot3DVtkError):
    """Writer API used in the wrong order or with the wrong file kind."""
    pass
