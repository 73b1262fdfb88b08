"""
Structured grid module.

This module provides tools for:
- Holding 2D and 3D structured coordinate blocks
- Reading and writing multi-block Plot3D grid files (binary and ASCII)
"""

from .blocks import (
    StructuredMeshBlock2D,
    StructuredMeshBlock3D,
)

from .plot3d import (
    Plot3DParser,
    read_plot3d,
    write_plot3d,
    write_plot3d_file,
    is_binary_plot3d,
)

__all__ = [
    # Blocks
    'StructuredMeshBlock2D',
    'StructuredMeshBlock3D',
    # Plot3D
    'Plot3DParser',
    'read_plot3d',
    'write_plot3d',
    'write_plot3d_file',
    'is_binary_plot3d',
]
