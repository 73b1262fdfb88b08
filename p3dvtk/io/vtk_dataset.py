"""
Unstructured mesh and attribute containers written by VtkWriter.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .vtk_info import element_node_count


@dataclass
class VtkCell:
    """One cell: a VTK cell type code and node indices into the point list."""

    cell_type: int
    node_ids: List[int]


@dataclass
class VtkUnstructuredMeshHolder:
    """Ordered points (3 components each) and ordered cells."""

    points: List[Tuple[float, float, float]] = field(default_factory=list)
    cells: List[VtkCell] = field(default_factory=list)

    @classmethod
    def from_arrays(cls, points: np.ndarray, cell_types: Sequence[int],
                    cell_nodes: Sequence[Sequence[int]]) -> 'VtkUnstructuredMeshHolder':
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(cell_types) != len(cell_nodes):
            raise ValueError("cell_types and cell_nodes must have the same length")
        return cls(
            points=[tuple(p) for p in points.tolist()],
            cells=[VtkCell(int(t), [int(n) for n in nodes])
                   for t, nodes in zip(cell_types, cell_nodes)],
        )

    @property
    def n_points(self) -> int:
        return len(self.points)

    @property
    def n_cells(self) -> int:
        return len(self.cells)

    def add_point(self, xyz: Sequence[float]) -> int:
        """Append a point and return its index."""
        x, y, z = xyz
        self.points.append((float(x), float(y), float(z)))
        return len(self.points) - 1

    def add_cell(self, cell_type: int, node_ids: Sequence[int]) -> int:
        """Append a cell and return its index."""
        self.cells.append(VtkCell(int(cell_type), [int(n) for n in node_ids]))
        return len(self.cells) - 1

    def validate(self) -> None:
        """Check node indices and node counts of fixed-size cell types."""
        n_points = self.n_points
        for idx, cell in enumerate(self.cells):
            expected = element_node_count(cell.cell_type)
            if expected is not None and len(cell.node_ids) != expected:
                raise ValueError(
                    f"Cell {idx} of type {cell.cell_type} has {len(cell.node_ids)} "
                    f"nodes, expected {expected}"
                )
            for node in cell.node_ids:
                if not 0 <= node < n_points:
                    raise ValueError(
                        f"Cell {idx} references node {node}, mesh has {n_points} points"
                    )

    def points_array(self) -> np.ndarray:
        return np.asarray(self.points, dtype=np.float64).reshape(-1, 3)

    def cell_types(self) -> List[int]:
        return [cell.cell_type for cell in self.cells]

    def offsets(self) -> List[int]:
        """Cumulative node count through each cell (inclusive)."""
        offsets = []
        total = 0
        for cell in self.cells:
            total += len(cell.node_ids)
            offsets.append(total)
        return offsets

    def connectivity(self) -> List[int]:
        return [node for cell in self.cells for node in cell.node_ids]


@dataclass
class VtkUnstructuredDataset:
    """
    A mesh plus named point and cell attributes.

    Attributes are grouped by value kind (integer, scalar, 3-vector). Names
    are unique within a kind; each value array is aligned with the points
    or the cells. Insertion order is the output order.
    """

    mesh: VtkUnstructuredMeshHolder = field(default_factory=VtkUnstructuredMeshHolder)
    integer_point_data: Dict[str, np.ndarray] = field(default_factory=dict)
    scalar_point_data: Dict[str, np.ndarray] = field(default_factory=dict)
    vector_point_data: Dict[str, np.ndarray] = field(default_factory=dict)
    integer_cell_data: Dict[str, np.ndarray] = field(default_factory=dict)
    scalar_cell_data: Dict[str, np.ndarray] = field(default_factory=dict)
    vector_cell_data: Dict[str, np.ndarray] = field(default_factory=dict)

    @staticmethod
    def _add(store: Dict[str, np.ndarray], name: str, values, n_expected: int,
             dtype, vector: bool, where: str) -> None:
        if name in store:
            raise ValueError(f"{where} attribute '{name}' already exists")
        arr = np.asarray(values, dtype=dtype)
        shape = (n_expected, 3) if vector else (n_expected,)
        if arr.shape != shape:
            raise ValueError(
                f"{where} attribute '{name}' has shape {arr.shape}, expected {shape}"
            )
        store[name] = arr

    def add_integer_point_data(self, name: str, values) -> None:
        self._add(self.integer_point_data, name, values, self.mesh.n_points,
                  np.int64, False, "Point")

    def add_scalar_point_data(self, name: str, values) -> None:
        self._add(self.scalar_point_data, name, values, self.mesh.n_points,
                  np.float64, False, "Point")

    def add_vector_point_data(self, name: str, values) -> None:
        self._add(self.vector_point_data, name, values, self.mesh.n_points,
                  np.float64, True, "Point")

    def add_integer_cell_data(self, name: str, values) -> None:
        self._add(self.integer_cell_data, name, values, self.mesh.n_cells,
                  np.int64, False, "Cell")

    def add_scalar_cell_data(self, name: str, values) -> None:
        self._add(self.scalar_cell_data, name, values, self.mesh.n_cells,
                  np.float64, False, "Cell")

    def add_vector_cell_data(self, name: str, values) -> None:
        self._add(self.vector_cell_data, name, values, self.mesh.n_cells,
                  np.float64, True, "Cell")

    def validate(self) -> None:
        """Check the mesh and that every attribute is aligned with it."""
        self.mesh.validate()
        for store, n, width in (
            (self.integer_point_data, self.mesh.n_points, None),
            (self.scalar_point_data, self.mesh.n_points, None),
            (self.vector_point_data, self.mesh.n_points, 3),
            (self.integer_cell_data, self.mesh.n_cells, None),
            (self.scalar_cell_data, self.mesh.n_cells, None),
            (self.vector_cell_data, self.mesh.n_cells, 3),
        ):
            shape = (n,) if width is None else (n, width)
            for name, values in store.items():
                if np.shape(values) != shape:
                    raise ValueError(
                        f"Attribute '{name}' has shape {np.shape(values)}, expected {shape}"
                    )
