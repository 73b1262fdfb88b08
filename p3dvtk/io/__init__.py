"""
I/O module.

Provides Fortran record framing, typed byte packing, and the VTK XML
unstructured grid writer.
"""

from .codec import encode_base64, decode_base64
from .fortran import FortranSequentialInputStream, FortranSequentialOutputStream
from .vtk_dataset import VtkCell, VtkUnstructuredMeshHolder, VtkUnstructuredDataset
from .vtk_info import CellType
from .vtk_writer import VtkFileType, VtkWriter, write_vtu
from .xml_writer import XmlWriter

__all__ = [
    'encode_base64',
    'decode_base64',
    'FortranSequentialInputStream',
    'FortranSequentialOutputStream',
    'VtkCell',
    'VtkUnstructuredMeshHolder',
    'VtkUnstructuredDataset',
    'CellType',
    'VtkFileType',
    'VtkWriter',
    'write_vtu',
    'XmlWriter',
]
