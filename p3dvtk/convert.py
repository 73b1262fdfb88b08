"""
Plot3D to VTK XML conversion.

Each structured block becomes one unstructured Piece. Points keep the file
order (i fastest, then j, then k). Cells are hexahedra for blocks with
three non-trivial extents, quadrilaterals for two, lines for one.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from loguru import logger

from .config.schema import ConverterConfig
from .grid.blocks import StructuredMeshBlock2D, StructuredMeshBlock3D
from .grid.plot3d import Plot3DParser
from .io.vtk_dataset import VtkUnstructuredDataset, VtkUnstructuredMeshHolder
from .io.vtk_info import CellType
from .io.vtk_writer import VtkFileType, VtkWriter


def _block_points(block) -> np.ndarray:
    """(n_points, 3) coordinates in file order; 2D blocks get z = 0."""
    n = block.n_points
    points = np.zeros((n, 3))
    for c in range(block.n_components):
        points[:, c] = block.flat_axis(c)
    return points


def structured_cells(extent: Tuple[int, ...]) -> Tuple[CellType, np.ndarray]:
    """
    Cell connectivity of a structured index space.

    Returns
    -------
    cell_type : CellType
        HEXAHEDRON, QUAD, LINE or VERTEX depending on how many extents exceed 1.
    nodes : ndarray, shape (n_cells, nodes_per_cell)
        Point indices, cells ordered with the first index varying fastest.
    """
    extent = tuple(int(e) for e in extent)
    index = np.arange(int(np.prod(extent))).reshape(extent, order='F')
    inactive = tuple(a for a, n in enumerate(extent) if n == 1)
    a = index.squeeze(axis=inactive) if inactive else index

    if a.ndim == 0:
        return CellType.VERTEX, a.reshape(1, 1)
    if a.ndim == 1:
        corners = [a[:-1], a[1:]]
        cell_type = CellType.LINE
    elif a.ndim == 2:
        corners = [a[:-1, :-1], a[1:, :-1], a[1:, 1:], a[:-1, 1:]]
        cell_type = CellType.QUAD
    else:
        corners = [
            a[:-1, :-1, :-1], a[1:, :-1, :-1], a[1:, 1:, :-1], a[:-1, 1:, :-1],
            a[:-1, :-1, 1:], a[1:, :-1, 1:], a[1:, 1:, 1:], a[:-1, 1:, 1:],
        ]
        cell_type = CellType.HEXAHEDRON

    nodes = np.stack([c.flatten(order='F') for c in corners], axis=1)
    return cell_type, nodes


def block_to_dataset(block: Union[StructuredMeshBlock2D, StructuredMeshBlock3D],
                     block_index: int = 0) -> VtkUnstructuredDataset:
    """Convert one structured block to an unstructured dataset."""
    cell_type, nodes = structured_cells(block.extent)
    mesh = VtkUnstructuredMeshHolder.from_arrays(
        _block_points(block),
        [int(cell_type)] * len(nodes),
        nodes.tolist(),
    )
    dataset = VtkUnstructuredDataset(mesh=mesh)
    dataset.add_integer_cell_data("block_index", np.full(mesh.n_cells, block_index))
    return dataset


def convert_plot3d_to_vtu(input_path: Union[str, Path],
                          output_path: Union[str, Path],
                          config: Optional[ConverterConfig] = None) -> int:
    """
    Convert a Plot3D grid file to a ``.vtu`` file, one Piece per block.

    Pieces are written as blocks are parsed.

    Returns
    -------
    int
        Number of blocks converted.
    """
    config = (config or ConverterConfig()).validate()
    input_path = Path(input_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    logger.info(f"Converting {input_path} -> {output_path}")
    parser = Plot3DParser.from_config(config.parser)
    writer = VtkWriter.from_config(config.writer)

    with open(output_path, 'w') as out:
        writer.open_file(out, VtkFileType.UNSTRUCTURED_GRID)
        converted = []

        def write_block(block) -> bool:
            dataset = block_to_dataset(block, len(converted))
            writer.write_piece(out, dataset)
            converted.append(block.extent)
            logger.debug(f"Block {len(converted) - 1}: extent {block.extent}, "
                         f"{dataset.mesh.n_cells} cells")
            return True

        parser.add_2d_block_function(write_block)
        parser.add_3d_block_function(write_block)

        mode = 'rb' if config.parser.binary else 'r'
        with open(input_path, mode) as f:
            parser.parse(f)
        writer.close_file(out)

    logger.info(f"Wrote {len(converted)} piece(s) to {output_path}")
    return len(converted)
