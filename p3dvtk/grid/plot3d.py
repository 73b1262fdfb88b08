"""
Plot3D Grid Reader and Writer.

This module reads multi-block Plot3D structured grid files in either the
Fortran unformatted (binary) or the formatted (ASCII) flavour and hands
each completed block to caller-registered acceptor functions.

File layout (both flavours carry the same logical sequence):

    [number of blocks]                 absent in single-block files
    [extents of every block]           i j (k) per block
    per block: X array, Y array, (Z array)

Coordinates are stored with i varying fastest, then j, then k. In binary
files the block count, the extent table, and each block's coordinates are
one framed record each (see ``p3dvtk.io.fortran``).
"""

from collections import deque
from pathlib import Path
from typing import BinaryIO, Callable, List, Optional, Sequence, TextIO, Union

import numpy as np
from loguru import logger

from .blocks import StructuredMeshBlock2D, StructuredMeshBlock3D
from ..errors import ConfigurationError, ParseError
from ..io.codec import pack_array, read_array, unpack_int32
from ..io.fortran import FortranSequentialInputStream, FortranSequentialOutputStream


BlockFunction2D = Callable[[StructuredMeshBlock2D], bool]
BlockFunction3D = Callable[[StructuredMeshBlock3D], bool]

FLOAT_DTYPE = '<f8'
FLOAT_SIZE = 8
INT_SIZE = 4


class _AsciiReader:
    """Line and token reader that tracks the 1-based line number."""

    def __init__(self, stream):
        self._stream = stream
        self._tokens = deque()
        self.line_number = 0

    def readline(self) -> Optional[str]:
        line = self._stream.readline()
        if isinstance(line, bytes):
            try:
                line = line.decode('ascii')
            except UnicodeDecodeError:
                raise ParseError("Non-ASCII data in formatted Plot3D input",
                                 line=self.line_number + 1)
        if line == '':
            return None
        self.line_number += 1
        return line

    def header_tokens(self, what: str) -> List[str]:
        """Tokens of the next non-blank line."""
        while True:
            line = self.readline()
            if line is None:
                raise ParseError(f"Unexpected end of input while reading {what}",
                                 line=self.line_number + 1)
            tokens = line.split()
            if tokens:
                return tokens

    def next_float(self) -> float:
        while not self._tokens:
            line = self.readline()
            if line is None:
                raise ParseError("Unexpected end of input while reading coordinates",
                                 line=self.line_number + 1)
            self._tokens.extend(line.split())
        token = self._tokens.popleft()
        try:
            # Fortran writers may use D exponents
            return float(token.replace('D', 'E').replace('d', 'e'))
        except ValueError:
            raise ParseError(f"Invalid coordinate value {token!r}", line=self.line_number)

    def read_floats(self, count: int) -> np.ndarray:
        return np.array([self.next_float() for _ in range(count)], dtype=np.float64)


def _n_points(extent: Sequence[int]) -> int:
    n = 1
    for e in extent:
        n *= e
    return n


def _parse_int(token: str, what: str, line: int) -> int:
    try:
        return int(token)
    except ValueError:
        raise ParseError(f"Invalid {what} {token!r}", line=line)


class Plot3DParser:
    """
    Streaming multi-block Plot3D parser.

    Configure ``number_of_dimensions`` (2 or 3), ``parse_as_binary`` and
    ``single_block``, register acceptor functions, then call ``parse``.
    Every block is built as a fresh StructuredMeshBlock3D; for 2D input
    the x/y components are copied into a StructuredMeshBlock2D before
    dispatch. Acceptors run in registration order; an acceptor returning
    False skips the remaining acceptors for that block only.

    Example
    -------
    >>> parser = Plot3DParser(number_of_dimensions=2, parse_as_binary=False)
    >>> blocks = []
    >>> parser.add_2d_block_function(lambda b: blocks.append(b) or True)
    >>> with open("grid.p2d") as f:
    ...     parser.parse(f)
    """

    def __init__(self,
                 number_of_dimensions: Optional[int] = None,
                 parse_as_binary: bool = True,
                 single_block: bool = False):
        self.number_of_dimensions = number_of_dimensions
        self.parse_as_binary = parse_as_binary
        self.single_block = single_block
        self._block_2d_functions: List[BlockFunction2D] = []
        self._block_3d_functions: List[BlockFunction3D] = []

    @classmethod
    def from_config(cls, config) -> 'Plot3DParser':
        """Build a parser from a ``ParserConfig``."""
        return cls(number_of_dimensions=config.dimensions,
                   parse_as_binary=config.binary,
                   single_block=config.single_block)

    def add_2d_block_function(self, func: BlockFunction2D) -> None:
        if not callable(func):
            raise ConfigurationError("2D block function must be callable")
        self._block_2d_functions.append(func)

    def add_3d_block_function(self, func: BlockFunction3D) -> None:
        if not callable(func):
            raise ConfigurationError("3D block function must be callable")
        self._block_3d_functions.append(func)

    def parse(self, stream: Union[BinaryIO, TextIO]) -> int:
        """
        Parse every block in ``stream``.

        Returns
        -------
        int
            Number of blocks dispatched.

        Raises
        ------
        ConfigurationError
            If ``number_of_dimensions`` is not 2 or 3.
        FramingError
            On broken record markers or a truncated binary stream.
        ParseError
            On malformed header values or coordinate tokens.
        """
        dims = self.number_of_dimensions
        if dims not in (2, 3):
            raise ConfigurationError(
                f"number_of_dimensions must be 2 or 3 before parsing, got {dims!r}"
            )
        if self.parse_as_binary:
            n_blocks = self._parse_binary(stream, dims)
        else:
            n_blocks = self._parse_ascii(stream, dims)
        logger.info(f"Parsed {n_blocks} {dims}D Plot3D block(s)")
        return n_blocks

    # ----- binary -----

    def _parse_binary(self, stream: BinaryIO, dims: int) -> int:
        fortran_input = FortranSequentialInputStream()

        if self.single_block:
            n_blocks = 1
        else:
            with fortran_input.record(stream):
                offset = stream.tell()
                n_blocks = unpack_int32(stream)
            if n_blocks < 1:
                raise ParseError(f"Invalid number of blocks {n_blocks}", offset=offset)

        # Record size is checked before anything is sized from the header
        with fortran_input.record(stream) as n_bytes:
            offset = stream.tell()
            expected = INT_SIZE * dims * n_blocks
            if n_bytes != expected:
                raise ParseError(
                    f"Extent record holds {n_bytes} bytes, expected {expected} "
                    f"for {n_blocks} {dims}D block(s)",
                    offset=offset,
                )
            table = read_array(stream, '<i4', dims * n_blocks).reshape(n_blocks, dims)
        extents = [tuple(int(e) for e in row) for row in table]
        for extent in extents:
            self._check_extent(extent, offset=offset)
        logger.debug(f"Binary Plot3D: {n_blocks} block(s), extents {extents}")

        for extent in extents:
            n_points = _n_points(extent)
            with fortran_input.record(stream) as n_bytes:
                offset = stream.tell()
                n_arrays = self._arrays_in_record(n_bytes, n_points, dims, offset)
                block = self._new_block(extent, dims)
                for component in range(dims):
                    block.set_axis_from_flat(component, read_array(stream, FLOAT_DTYPE, n_points))
                # 2D block stored with a Z array: read and discard
                for _ in range(n_arrays - dims):
                    read_array(stream, FLOAT_DTYPE, n_points)
            self._dispatch(block, dims)

        fortran_input.check_balanced()
        return n_blocks

    @staticmethod
    def _arrays_in_record(n_bytes: int, n_points: int, dims: int, offset: int) -> int:
        array_bytes = FLOAT_SIZE * n_points
        allowed = (3,) if dims == 3 else (2, 3)
        if n_bytes % array_bytes == 0 and n_bytes // array_bytes in allowed:
            return n_bytes // array_bytes
        raise ParseError(
            f"Coordinate record holds {n_bytes} bytes, expected "
            f"{' or '.join(str(a * array_bytes) for a in allowed)}",
            offset=offset,
        )

    # ----- ASCII -----

    def _parse_ascii(self, stream: TextIO, dims: int) -> int:
        reader = _AsciiReader(stream)

        if self.single_block:
            n_blocks = 1
        else:
            tokens = reader.header_tokens("number of blocks")
            n_blocks = _parse_int(tokens[0], "number of blocks", reader.line_number)
            if n_blocks < 1:
                raise ParseError(f"Invalid number of blocks {n_blocks}", line=reader.line_number)

        extents = []
        for n in range(n_blocks):
            tokens = reader.header_tokens(f"extents of block {n}")
            if len(tokens) < dims:
                raise ParseError(
                    f"Expected {dims} extents for block {n}, found {len(tokens)}",
                    line=reader.line_number,
                )
            extent = tuple(_parse_int(t, "extent", reader.line_number) for t in tokens[:dims])
            self._check_extent(extent, line=reader.line_number)
            extents.append(extent)
        logger.debug(f"ASCII Plot3D: {n_blocks} block(s), extents {extents}")

        for extent in extents:
            n_points = _n_points(extent)
            # Values are read before the block is allocated
            arrays = [reader.read_floats(n_points) for _ in range(dims)]
            block = self._new_block(extent, dims)
            for component, values in enumerate(arrays):
                block.set_axis_from_flat(component, values)
            self._dispatch(block, dims)

        return n_blocks

    # ----- shared -----

    @staticmethod
    def _check_extent(extent: Sequence[int], line: Optional[int] = None,
                      offset: Optional[int] = None) -> None:
        for value in extent:
            if value < 1:
                raise ParseError(f"Invalid block extent {value}", line=line, offset=offset)

    @staticmethod
    def _new_block(extent: Sequence[int], dims: int) -> StructuredMeshBlock3D:
        i_ext, j_ext = extent[0], extent[1]
        k_ext = extent[2] if dims == 3 else 1
        return StructuredMeshBlock3D((i_ext, j_ext, k_ext))

    def _dispatch(self, block: StructuredMeshBlock3D, dims: int) -> None:
        if dims == 3:
            functions = self._block_3d_functions
            mesh = block
        else:
            functions = self._block_2d_functions
            mesh = block.to_2d()
        for function in functions:
            if not function(mesh):
                break


def is_binary_plot3d(header: bytes) -> bool:
    """
    Guess whether the leading bytes of a Plot3D file are binary.

    Formatted files contain only digits, signs, decimal points, exponent
    markers, whitespace and the letters of NaN and Infinity.
    """
    if not header:
        return False
    allowed = set(b"0123456789+-.eEdD \t\r\nnNaAiIfFtTyY")
    return any(b not in allowed for b in header)


def read_plot3d(filename: Union[str, Path],
                dimensions: int = 2,
                binary: Optional[bool] = None,
                single_block: bool = False) -> list:
    """
    Read every block of a Plot3D file.

    Parameters
    ----------
    filename : str or Path
        Path to the .x / .xyz / .p3d file.
    dimensions : int
        2 or 3.
    binary : bool, optional
        File flavour; detected from the leading bytes when None.
    single_block : bool
        File has no block-count header.

    Returns
    -------
    list
        StructuredMeshBlock2D or StructuredMeshBlock3D instances in file order.
    """
    path = Path(filename)
    if binary is None:
        with open(path, 'rb') as f:
            binary = is_binary_plot3d(f.read(64))

    blocks = []

    def accept(block):
        blocks.append(block)
        return True

    parser = Plot3DParser(number_of_dimensions=dimensions,
                          parse_as_binary=binary,
                          single_block=single_block)
    parser.add_2d_block_function(accept)
    parser.add_3d_block_function(accept)

    if binary:
        with open(path, 'rb') as f:
            parser.parse(f)
    else:
        with open(path, 'r') as f:
            parser.parse(f)
    return blocks


def _block_dims(blocks: Sequence) -> int:
    if not blocks:
        raise ValueError("At least one block is required")
    if all(isinstance(b, StructuredMeshBlock3D) for b in blocks):
        return 3
    if all(isinstance(b, StructuredMeshBlock2D) for b in blocks):
        return 2
    raise ValueError("Blocks must be all 2D or all 3D")


def write_plot3d(stream: Union[BinaryIO, TextIO],
                 blocks: Sequence,
                 binary: bool = True,
                 single_block: bool = False) -> None:
    """
    Write blocks in the layout read by Plot3DParser.

    Parameters
    ----------
    stream : file object
        Binary stream when ``binary`` is True, text stream otherwise.
    blocks : sequence
        StructuredMeshBlock2D or StructuredMeshBlock3D instances (not mixed).
    binary : bool
        Fortran unformatted records if True, formatted text otherwise.
    single_block : bool
        Omit the block-count header; requires exactly one block.
    """
    dims = _block_dims(blocks)
    if single_block and len(blocks) != 1:
        raise ValueError(f"single_block output needs exactly one block, got {len(blocks)}")

    if binary:
        out = FortranSequentialOutputStream()
        if not single_block:
            out.write_record(stream, pack_array([len(blocks)], '<i4'))
        out.write_record(stream, pack_array([e for b in blocks for e in b.extent], '<i4'))
        for block in blocks:
            payload = b''.join(pack_array(block.flat_axis(c), FLOAT_DTYPE) for c in range(dims))
            out.write_record(stream, payload)
    else:
        if not single_block:
            stream.write(f"{len(blocks)}\n")
        for block in blocks:
            stream.write(" ".join(f"{e:d}" for e in block.extent) + "\n")
        for block in blocks:
            for c in range(dims):
                for val in block.flat_axis(c):
                    stream.write(f"  {val:24.16E}\n")


def write_plot3d_file(filename: Union[str, Path],
                      blocks: Sequence,
                      binary: bool = True,
                      single_block: bool = False) -> None:
    """Write blocks to a Plot3D file on disk."""
    mode = 'wb' if binary else 'w'
    with open(filename, mode) as f:
        write_plot3d(f, blocks, binary=binary, single_block=single_block)
