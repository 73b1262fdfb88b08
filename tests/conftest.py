"""
Shared pytest fixtures for the test suite.

Binary Plot3D inputs are assembled byte by byte here so the parser tests do
not depend on the package's own writer.
"""

import struct
import xml.etree.ElementTree as ET

import numpy as np
import pytest

from p3dvtk.io.vtk_dataset import VtkUnstructuredDataset, VtkUnstructuredMeshHolder
from p3dvtk.io.vtk_info import CellType


# =============================================================================
# Binary helpers
# =============================================================================

@pytest.fixture
def frame():
    """Wrap a payload in Fortran sequential record markers."""
    def _frame(payload: bytes) -> bytes:
        marker = struct.pack('<i', len(payload))
        return marker + payload + marker
    return _frame


@pytest.fixture
def ints():
    """Pack int32 values little-endian."""
    def _ints(*values) -> bytes:
        return struct.pack(f'<{len(values)}i', *values)
    return _ints


@pytest.fixture
def doubles():
    """Pack float64 values little-endian."""
    def _doubles(values) -> bytes:
        values = list(values)
        return struct.pack(f'<{len(values)}d', *values)
    return _doubles


# =============================================================================
# VTK fixtures
# =============================================================================

@pytest.fixture
def tetra_dataset():
    """Four points, one tetrahedron, one scalar point attribute."""
    mesh = VtkUnstructuredMeshHolder()
    for p in [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0)]:
        mesh.add_point(p)
    mesh.add_cell(CellType.TETRA, [0, 1, 2, 3])
    dataset = VtkUnstructuredDataset(mesh=mesh)
    dataset.add_scalar_point_data("temperature", [300.0, 310.5, 320.25, 330.125])
    return dataset


@pytest.fixture
def parse_xml():
    """Parse writer output (a str carrying an encoding declaration)."""
    def _parse(text: str) -> ET.Element:
        return ET.fromstring(text.encode('utf-8'))
    return _parse


@pytest.fixture
def uniform_grid_2d():
    """Simple 3 x 2 Cartesian grid as (X, Y) arrays indexed [i, j]."""
    x = np.linspace(0.0, 2.0, 3)
    y = np.linspace(0.0, 1.0, 2)
    X, Y = np.meshgrid(x, y, indexing='ij')
    return X, Y
