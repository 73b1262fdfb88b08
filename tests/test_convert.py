"""
Tests for Plot3D to VTU conversion and the command line entry point.
"""

import io

import numpy as np
import pytest

from p3dvtk.cli import main
from p3dvtk.config import ConverterConfig, ParserConfig, WriterConfig
from p3dvtk.convert import block_to_dataset, convert_plot3d_to_vtu, structured_cells
from p3dvtk.errors import FramingError
from p3dvtk.grid import StructuredMeshBlock2D, StructuredMeshBlock3D, write_plot3d_file
from p3dvtk.io.vtk_info import CellType
from p3dvtk.utils.logging import setup_logging


ASCII_OUTPUT = WriterConfig(ascii=True, appended=False)


def lattice_block(extent, offset=0.0):
    """3D block with integer coordinates x = i, y = j, z = k + offset."""
    block = StructuredMeshBlock3D(extent)
    I, J, K = np.meshgrid(*[np.arange(n) for n in extent], indexing='ij')
    block.coordinates[..., 0] = I
    block.coordinates[..., 1] = J
    block.coordinates[..., 2] = K + offset
    return block


def values(element):
    """Numbers in the text of an ascii DataArray."""
    return [float(v) for v in element.text.split()]


def array(piece, path, name):
    for element in piece.findall(f"{path}/DataArray"):
        if element.get("Name") == name:
            return element
    raise KeyError(name)


# =============================================================================
# Structured connectivity
# =============================================================================

class TestStructuredCells:

    def test_quads(self):
        cell_type, nodes = structured_cells((3, 2))
        assert cell_type == CellType.QUAD
        assert nodes.tolist() == [[0, 1, 4, 3], [1, 2, 5, 4]]

    def test_hexahedron(self):
        cell_type, nodes = structured_cells((2, 2, 2))
        assert cell_type == CellType.HEXAHEDRON
        assert nodes.tolist() == [[0, 1, 3, 2, 4, 5, 7, 6]]

    def test_hexahedra_i_fastest(self):
        _, nodes = structured_cells((3, 2, 2))
        assert len(nodes) == 2
        assert nodes[1].tolist() == [1, 2, 5, 4, 7, 8, 11, 10]

    def test_lines(self):
        cell_type, nodes = structured_cells((3, 1, 1))
        assert cell_type == CellType.LINE
        assert nodes.tolist() == [[0, 1], [1, 2]]

    def test_flat_3d_block_gives_quads(self):
        cell_type, nodes = structured_cells((1, 3, 2))
        assert cell_type == CellType.QUAD
        assert nodes.tolist() == [[0, 1, 4, 3], [1, 2, 5, 4]]

    def test_single_point(self):
        cell_type, nodes = structured_cells((1, 1, 1))
        assert cell_type == CellType.VERTEX
        assert nodes.tolist() == [[0]]


class TestBlockToDataset:

    def test_2d_block(self, uniform_grid_2d):
        X, Y = uniform_grid_2d
        block = StructuredMeshBlock2D(X.shape)
        block.coordinates[..., 0] = X
        block.coordinates[..., 1] = Y

        dataset = block_to_dataset(block, block_index=4)
        mesh = dataset.mesh
        assert mesh.n_points == 6
        assert mesh.n_cells == 2
        assert mesh.cell_types() == [int(CellType.QUAD)] * 2
        points = mesh.points_array()
        assert points[1].tolist() == [1.0, 0.0, 0.0]
        assert points[3].tolist() == [0.0, 1.0, 0.0]
        assert dataset.integer_cell_data["block_index"].tolist() == [4, 4]

    def test_3d_block(self):
        dataset = block_to_dataset(lattice_block((2, 2, 3)))
        assert dataset.mesh.n_points == 12
        assert dataset.mesh.n_cells == 2
        assert dataset.mesh.points_array()[5].tolist() == [1.0, 0.0, 1.0]
        dataset.validate()


# =============================================================================
# File conversion
# =============================================================================

class TestConvert:

    def test_binary_3d_to_ascii_vtu(self, tmp_path, parse_xml):
        grid = tmp_path / "grid.xyz"
        out = tmp_path / "out" / "grid.vtu"
        write_plot3d_file(grid, [lattice_block((2, 2, 2)), lattice_block((3, 2, 1), offset=5.0)])

        config = ConverterConfig(writer=ASCII_OUTPUT)
        assert convert_plot3d_to_vtu(grid, out, config) == 2

        root = parse_xml(out.read_text())
        pieces = root.findall("UnstructuredGrid/Piece")
        assert [(p.get("NumberOfPoints"), p.get("NumberOfCells")) for p in pieces] == [
            ("8", "1"), ("6", "2"),
        ]
        assert values(array(pieces[0], "Cells", "types")) == [12.0]
        assert values(array(pieces[1], "Cells", "types")) == [9.0, 9.0]
        assert values(array(pieces[1], "CellData", "block_index")) == [1.0, 1.0]
        assert values(array(pieces[1], "Points", "Points"))[:6] == [0.0, 0.0, 5.0, 1.0, 0.0, 5.0]

    def test_ascii_2d_to_appended_vtu(self, tmp_path, parse_xml):
        grid = tmp_path / "grid.p2d"
        grid.write_text("1\n2 2\n0 1 0 1\n0 0 1 1\n")
        out = tmp_path / "grid.vtu"

        config = ConverterConfig(parser=ParserConfig(dimensions=2, binary=False))
        assert convert_plot3d_to_vtu(grid, out, config) == 1

        root = parse_xml(out.read_text())
        piece = root.find("UnstructuredGrid/Piece")
        assert piece.get("NumberOfCells") == "1"
        assert array(piece, "Points", "Points").get("format") == "appended"
        appended = root.find("AppendedData")
        assert appended.get("encoding") == "base64"
        assert appended.text.strip().startswith("_")

    def test_progress_is_logged(self, tmp_path):
        grid = tmp_path / "grid.xyz"
        write_plot3d_file(grid, [lattice_block((2, 2, 2))])
        log = io.StringIO()
        setup_logging(level="DEBUG", show_time=False, sink=log)
        try:
            convert_plot3d_to_vtu(grid, tmp_path / "grid.vtu")
        finally:
            setup_logging()
        text = log.getvalue()
        assert "Parsed 1 3D Plot3D block(s)" in text
        assert "Block 0: extent (2, 2, 2), 1 cells" in text
        assert text.splitlines()[0].startswith("INFO     |")

    def test_broken_input_raises(self, tmp_path):
        grid = tmp_path / "grid.xyz"
        write_plot3d_file(grid, [lattice_block((2, 2, 2))])
        grid.write_bytes(grid.read_bytes()[:-3])
        with pytest.raises(FramingError):
            convert_plot3d_to_vtu(grid, tmp_path / "grid.vtu")


# =============================================================================
# Command line
# =============================================================================

class TestCli:

    def test_default_conversion(self, tmp_path, parse_xml):
        grid = tmp_path / "grid.xyz"
        out = tmp_path / "grid.vtu"
        write_plot3d_file(grid, [lattice_block((2, 3, 2))])
        assert main([str(grid), str(out), "--log-level", "WARNING"]) == 0
        root = parse_xml(out.read_text())
        assert root.get("type") == "UnstructuredGrid"
        assert root.find("AppendedData") is not None

    def test_ascii_flags(self, tmp_path, parse_xml):
        grid = tmp_path / "grid.p2d"
        grid.write_text("3 2\n0 1 2 0 1 2\n0 0 0 1 1 1\n")
        out = tmp_path / "grid.vtu"
        code = main([str(grid), str(out), "--dimensions", "2", "--ascii-input",
                     "--single-block", "--ascii-output", "--log-level", "WARNING"])
        assert code == 0
        piece = parse_xml(out.read_text()).find("UnstructuredGrid/Piece")
        assert values(array(piece, "Cells", "connectivity")) == [0, 1, 4, 3, 1, 2, 5, 4]

    def test_config_file(self, tmp_path, parse_xml):
        grid = tmp_path / "grid.xyz"
        out = tmp_path / "grid.vtu"
        config = tmp_path / "converter.yaml"
        config.write_text("writer:\n  appended: false\nlogging:\n  level: WARNING\n")
        write_plot3d_file(grid, [lattice_block((2, 2, 2))])
        assert main([str(grid), str(out), "--config", str(config)]) == 0
        root = parse_xml(out.read_text())
        assert root.find("AppendedData") is None
        assert array(root.find("UnstructuredGrid/Piece"), "Points", "Points").get("format") == "binary"

    def test_missing_input(self, tmp_path):
        assert main([str(tmp_path / "none.xyz"), str(tmp_path / "out.vtu")]) == 2

    def test_missing_config(self, tmp_path):
        grid = tmp_path / "grid.xyz"
        write_plot3d_file(grid, [lattice_block((2, 2, 2))])
        assert main([str(grid), str(tmp_path / "out.vtu"),
                     "--config", str(tmp_path / "missing.yaml")]) == 2

    def test_conflicting_flags(self, tmp_path):
        grid = tmp_path / "grid.xyz"
        write_plot3d_file(grid, [lattice_block((2, 2, 2))])
        assert main([str(grid), str(tmp_path / "out.vtu"),
                     "--ascii-output", "--appended"]) == 2

    def test_parse_failure(self, tmp_path):
        grid = tmp_path / "grid.xyz"
        grid.write_bytes(b"\x04\x00\x00\x00\x00\x00\x00\x00\x04\x00\x00\x00")
        assert main([str(grid), str(tmp_path / "out.vtu"), "--log-level", "ERROR"]) == 1
