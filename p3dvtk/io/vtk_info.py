"""
VTK cell type codes and per-type information.
"""

from enum import IntEnum
from typing import NamedTuple, Optional, Union


class CellType(IntEnum):
    VERTEX = 1
    POLY_VERTEX = 2
    LINE = 3
    POLY_LINE = 4
    TRIANGLE = 5
    TRIANGLE_STRIP = 6
    POLYGON = 7
    PIXEL = 8
    QUAD = 9
    TETRA = 10
    VOXEL = 11
    HEXAHEDRON = 12
    WEDGE = 13
    PYRAMID = 14
    QUADRATIC_EDGE = 21
    QUADRATIC_TRIANGLE = 22
    QUADRATIC_QUAD = 23
    QUADRATIC_TETRA = 24
    QUADRATIC_HEXAHEDRON = 25
    QUADRATIC_WEDGE = 26
    QUADRATIC_PYRAMID = 27
    BIQUADRATIC_QUAD = 28
    TRIQUADRATIC_HEXAHEDRON = 29


class CellInfo(NamedTuple):
    name: str
    node_count: Optional[int]   # None: variable number of nodes
    dimensions: int
    gmsh_id: Optional[int]      # None: no equivalent with matching node order


_CELL_INFO = {
    CellType.VERTEX: CellInfo("vertex", 1, 0, 15),
    CellType.POLY_VERTEX: CellInfo("poly vertex", None, 0, None),
    CellType.LINE: CellInfo("line", 2, 1, 1),
    CellType.POLY_LINE: CellInfo("poly line", None, 1, None),
    CellType.TRIANGLE: CellInfo("triangle", 3, 2, 2),
    CellType.TRIANGLE_STRIP: CellInfo("triangle strip", None, 2, None),
    CellType.POLYGON: CellInfo("polygon", None, 2, None),
    CellType.PIXEL: CellInfo("pixel", 4, 2, None),
    CellType.QUAD: CellInfo("quadrilateral", 4, 2, 3),
    CellType.TETRA: CellInfo("tetrahedron", 4, 3, 4),
    CellType.VOXEL: CellInfo("voxel", 8, 3, None),
    CellType.HEXAHEDRON: CellInfo("hexahedron", 8, 3, 5),
    CellType.WEDGE: CellInfo("wedge", 6, 3, 6),
    CellType.PYRAMID: CellInfo("pyramid", 5, 3, 7),
    CellType.QUADRATIC_EDGE: CellInfo("quadratic edge", 3, 1, 8),
    CellType.QUADRATIC_TRIANGLE: CellInfo("quadratic triangle", 6, 2, 9),
    CellType.QUADRATIC_QUAD: CellInfo("quadratic quadrilateral", 8, 2, None),
    CellType.QUADRATIC_TETRA: CellInfo("quadratic tetrahedron", 10, 3, None),
    CellType.QUADRATIC_HEXAHEDRON: CellInfo("quadratic hexahedron", 20, 3, None),
    CellType.QUADRATIC_WEDGE: CellInfo("quadratic wedge", 15, 3, None),
    CellType.QUADRATIC_PYRAMID: CellInfo("quadratic pyramid", 13, 3, None),
    CellType.BIQUADRATIC_QUAD: CellInfo("biquadratic quadrilateral", 9, 2, None),
    CellType.TRIQUADRATIC_HEXAHEDRON: CellInfo("triquadratic hexahedron", 27, 3, None),
}


def cell_info(cell_type: Union[int, CellType]) -> CellInfo:
    """Look up a VTK cell type code; raises ValueError for unknown codes."""
    try:
        return _CELL_INFO[CellType(cell_type)]
    except ValueError:
        raise ValueError(f"Unknown VTK cell type {cell_type!r}") from None


def element_name(cell_type: Union[int, CellType]) -> str:
    return cell_info(cell_type).name


def element_node_count(cell_type: Union[int, CellType]) -> Optional[int]:
    """Nodes per cell, or None for cells with a variable number of nodes."""
    return cell_info(cell_type).node_count


def element_dimensions(cell_type: Union[int, CellType]) -> int:
    return cell_info(cell_type).dimensions


def to_gmsh_element_id(cell_type: Union[int, CellType]) -> Optional[int]:
    """Equivalent Gmsh element id with the same node ordering, if any."""
    return cell_info(cell_type).gmsh_id
