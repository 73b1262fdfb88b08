"""
VTK XML UnstructuredGrid writer.

Session protocol::

    writer.open_file(stream, VtkFileType.UNSTRUCTURED_GRID)
    writer.write_piece(stream, dataset)      # any number of pieces
    writer.close_file(stream)

Three data encodings are supported:

- ascii:    values written inline, one tuple per line
- binary:   inline Base64 of [UInt64 byte count][little-endian values]
- appended: same Base64 blocks deferred to a trailing <AppendedData>
            section; each DataArray records its Offset into that section
"""

from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Tuple, Union

import numpy as np
from loguru import logger

from .codec import encode_base64, pack_array, pack_uint64
from .vtk_dataset import VtkUnstructuredDataset
from .xml_writer import XmlWriter
from ..errors import ConfigurationError, WriteStateError


class VtkFileType(Enum):
    NONE = "None"
    UNSTRUCTURED_GRID = "UnstructuredGrid"


# VTK type name -> little-endian numpy dtype
_DTYPES = {
    "Int64": '<i8',
    "Float64": '<f8',
}


class VtkWriter:
    """
    Streaming writer for ``.vtu`` documents.

    Parameters
    ----------
    ascii : bool
        Write values as text. Cannot be combined with ``appended``.
    appended : bool, optional
        Defer binary payloads to the <AppendedData> section. Defaults to
        ``not ascii``.
    write_precision : int
        Significant digits for ascii floating point values.
    """

    def __init__(self, ascii: bool = False, appended: Optional[bool] = None,
                 write_precision: int = 6):
        self.ascii = ascii
        self.appended = (not ascii) if appended is None else appended
        self.write_precision = write_precision

        self._xml = XmlWriter()
        self._file_type = VtkFileType.NONE
        self._written_xml_header = False
        self._appended_data: List[str] = []

    @classmethod
    def from_config(cls, config) -> 'VtkWriter':
        """Build a writer from a ``WriterConfig``."""
        return cls(ascii=config.ascii, appended=config.appended,
                   write_precision=config.precision)

    @property
    def file_type(self) -> VtkFileType:
        return self._file_type

    @property
    def appended_data(self) -> Tuple[str, ...]:
        """Encoded blocks waiting for close_file, in emission order."""
        return tuple(self._appended_data)

    def appended_data_bytelength(self) -> int:
        return sum(len(block) for block in self._appended_data)

    # ----- session -----

    def open_file(self, stream: TextIO,
                  file_type: VtkFileType = VtkFileType.UNSTRUCTURED_GRID) -> None:
        if file_type is not VtkFileType.UNSTRUCTURED_GRID:
            raise WriteStateError(f"Unsupported VTK file type: {file_type!r}")
        if self._file_type is not VtkFileType.NONE:
            raise WriteStateError("open_file called while a file is already open")

        if not self._written_xml_header:
            self._xml.header(stream, "1.0", "UTF-8")
            self._written_xml_header = True

        self._xml.open_tag(stream, "VTKFile", [
            ("type", "UnstructuredGrid"),
            ("version", "1.0"),
            ("byte_order", "LittleEndian"),
            ("header_type", "UInt64"),
        ])
        self._xml.open_tag(stream, "UnstructuredGrid")
        self._file_type = file_type

    def write_piece(self, stream: TextIO, data: VtkUnstructuredDataset) -> None:
        """Write one complete <Piece> for an unstructured dataset."""
        if self._file_type is VtkFileType.NONE:
            raise WriteStateError("write_piece called before open_file")
        if self._file_type is not VtkFileType.UNSTRUCTURED_GRID:
            raise WriteStateError(
                f"Cannot write an unstructured piece into a {self._file_type.value} file"
            )
        if self.ascii and self.appended:
            raise ConfigurationError("ascii output cannot use appended data")

        data.validate()
        mesh = data.mesh
        logger.debug(f"Writing VTK piece: {mesh.n_points} points, {mesh.n_cells} cells")

        self._xml.open_tag(stream, "Piece", [
            ("NumberOfPoints", str(mesh.n_points)),
            ("NumberOfCells", str(mesh.n_cells)),
        ])

        self._xml.open_tag(stream, "Points")
        self._data_array(stream, "Points", mesh.points_array(), "Float64", 3)
        self._xml.close_tag(stream)

        self._xml.open_tag(stream, "Cells")
        self._data_array(stream, "types", mesh.cell_types(), "Int64", 1)
        self._data_array(stream, "offsets", mesh.offsets(), "Int64", 1)
        self._data_array(stream, "connectivity", mesh.connectivity(), "Int64", 1)
        self._xml.close_tag(stream)

        self._attribute_section(stream, "PointData", data.integer_point_data,
                                data.scalar_point_data, data.vector_point_data)
        self._attribute_section(stream, "CellData", data.integer_cell_data,
                                data.scalar_cell_data, data.vector_cell_data)

        self._xml.close_tag(stream)  # Piece

    def close_file(self, stream: TextIO) -> None:
        """Close the grid, flush appended data, and close the document."""
        if self._file_type is VtkFileType.NONE:
            raise WriteStateError("close_file called before open_file")

        self._xml.close_tag(stream)  # UnstructuredGrid
        if self._appended_data:
            encoding = "ascii" if self.ascii else "base64"
            self._xml.open_tag(stream, "AppendedData", [("encoding", encoding)])
            stream.write("_")
            for block in self._appended_data:
                stream.write(block)
            stream.write("\n")
            self._xml.close_tag(stream)
        self._xml.close_tag(stream)  # VTKFile
        self._xml.check_balanced()

        logger.debug(f"Closed VTK file ({self.appended_data_bytelength()} appended bytes)")
        self._file_type = VtkFileType.NONE
        self._written_xml_header = False
        self._appended_data = []
        self._xml.reset()

    # ----- data arrays -----

    def _attribute_section(self, stream: TextIO, tag: str, integers: dict,
                           scalars: dict, vectors: dict) -> None:
        self._xml.open_tag(stream, tag)
        for name, values in integers.items():
            self._data_array(stream, name, values, "Int64", 1)
        for name, values in scalars.items():
            self._data_array(stream, name, values, "Float64", 1)
        for name, values in vectors.items():
            self._data_array(stream, name, values, "Float64", 3)
        self._xml.close_tag(stream)

    def _format_options(self) -> List[Tuple[str, str]]:
        if self.appended:
            if self.ascii:
                raise ConfigurationError("ascii output cannot use appended data")
            return [("format", "appended"), ("Offset", str(self.appended_data_bytelength()))]
        return [("format", "ascii" if self.ascii else "binary")]

    def _data_array(self, stream: TextIO, name: str, values, vtk_type: str,
                    n_components: int) -> None:
        attributes = [
            ("type", vtk_type),
            ("Name", name),
            ("NumberOfComponents", str(n_components)),
        ]
        # Offset must be taken before this array's buffer is queued
        attributes.extend(self._format_options())
        self._xml.open_tag(stream, "DataArray", attributes)

        buffer = self._generate_buffer(values, vtk_type, n_components)
        if self.appended:
            self._appended_data.append(buffer)
        else:
            stream.write(buffer if self.ascii else buffer + "\n")
        self._xml.close_tag(stream)

    def _generate_buffer(self, values, vtk_type: str, n_components: int) -> str:
        arr = np.asarray(values, dtype=_DTYPES[vtk_type])
        if self.ascii:
            return self._ascii_buffer(arr.reshape(-1, n_components), vtk_type)
        payload = pack_array(arr.ravel(), _DTYPES[vtk_type])
        return encode_base64(pack_uint64(len(payload)) + payload)

    def _ascii_buffer(self, rows: np.ndarray, vtk_type: str) -> str:
        precision = self.write_precision

        def fmt(v):
            if vtk_type == "Int64":
                return str(int(v))
            return f"{v:.{precision}g}"

        # Trailing newline keeps the closing tag on its own line
        return "".join(" ".join(fmt(v) for v in row) + "\n" for row in rows)


def write_vtu(filename: Union[str, Path],
              datasets: Iterable[VtkUnstructuredDataset],
              ascii: bool = False,
              appended: Optional[bool] = None,
              write_precision: int = 6) -> Path:
    """Write datasets to a ``.vtu`` file, one Piece each."""
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)

    writer = VtkWriter(ascii=ascii, appended=appended, write_precision=write_precision)
    with open(path, 'w') as f:
        writer.open_file(f, VtkFileType.UNSTRUCTURED_GRID)
        for dataset in datasets:
            writer.write_piece(f, dataset)
        writer.close_file(f)
    return path
