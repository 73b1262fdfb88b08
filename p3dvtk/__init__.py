"""
Plot3D structured grid reader and VTK XML unstructured grid writer.
"""

from .errors import (
    Plot3DVtkError,
    ConfigurationError,
    FramingError,
    ParseError,
    EncodingError,
    WriteStateError,
)

__version__ = "0.1.0"

__all__ = [
    'Plot3DVtkError',
    'ConfigurationError',
    'FramingError',
    'ParseError',
    'EncodingError',
    'WriteStateError',
]
