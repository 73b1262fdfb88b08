"""
Structured mesh blocks.

A block is a rectangular index space of coordinate tuples. Coordinates are
held in a numpy array of shape ``extent + (n_components,)``; flat arrays in
file order (i fastest, then j, then k) map onto it with Fortran-order
reshapes.
"""

from typing import Optional, Sequence, Tuple

import numpy as np

from ..errors import ConfigurationError


class _StructuredMeshBlock:
    """Shared storage for 2D and 3D structured blocks."""

    n_dims = 0
    n_components = 0

    def __init__(self, extent: Optional[Sequence[int]] = None):
        self._coords: Optional[np.ndarray] = None
        if extent is not None:
            self.set_extent(extent)

    def set_extent(self, extent: Sequence[int]) -> None:
        """Allocate zeroed coordinates for the given per-dimension extents."""
        extent = tuple(int(e) for e in extent)
        if len(extent) != self.n_dims:
            raise ValueError(
                f"{type(self).__name__} needs {self.n_dims} extents, got {len(extent)}"
            )
        if any(e < 1 for e in extent):
            raise ValueError(f"Extents must be positive, got {extent}")
        self._coords = np.zeros(extent + (self.n_components,), dtype=np.float64)

    @property
    def has_extent(self) -> bool:
        return self._coords is not None

    @property
    def coordinates(self) -> np.ndarray:
        """Coordinate array of shape ``extent + (n_components,)``."""
        if self._coords is None:
            raise ConfigurationError(
                f"{type(self).__name__}: extent must be set before coordinate access"
            )
        return self._coords

    @property
    def extent(self) -> Tuple[int, ...]:
        return self.coordinates.shape[:-1]

    @property
    def n_points(self) -> int:
        return int(np.prod(self.extent))

    def coord(self, index: Sequence[int]) -> Tuple[float, ...]:
        return tuple(float(v) for v in self.coordinates[tuple(index)])

    def set_coord(self, index: Sequence[int], value: Sequence[float]) -> None:
        self.coordinates[tuple(index)] = value

    def axis(self, component: int) -> np.ndarray:
        """View of one coordinate component, shape ``extent``."""
        return self.coordinates[..., component]

    def set_axis_from_flat(self, component: int, values: np.ndarray) -> None:
        """Fill one component from a flat array in i-fastest file order."""
        values = np.asarray(values, dtype=np.float64)
        if values.size != self.n_points:
            raise ValueError(
                f"Expected {self.n_points} values for component {component}, got {values.size}"
            )
        self.coordinates[..., component] = values.reshape(self.extent, order='F')

    def flat_axis(self, component: int) -> np.ndarray:
        """One component flattened in i-fastest file order."""
        return self.axis(component).flatten(order='F')

    @property
    def x(self) -> np.ndarray:
        return self.axis(0)

    @property
    def y(self) -> np.ndarray:
        return self.axis(1)

    def copy(self):
        other = type(self)()
        if self._coords is not None:
            other._coords = self._coords.copy()
        return other

    def __repr__(self) -> str:
        extent = self.extent if self.has_extent else None
        return f"{type(self).__name__}(extent={extent})"


class StructuredMeshBlock2D(_StructuredMeshBlock):
    """2D structured block indexed by ``(i, j)`` holding ``(x, y)``."""

    n_dims = 2
    n_components = 2


class StructuredMeshBlock3D(_StructuredMeshBlock):
    """3D structured block indexed by ``(i, j, k)`` holding ``(x, y, z)``."""

    n_dims = 3
    n_components = 3

    @property
    def z(self) -> np.ndarray:
        return self.axis(2)

    def to_2d(self, k: int = 0) -> StructuredMeshBlock2D:
        """Copy the x/y components of one k-layer into a 2D block."""
        ni, nj, _ = self.extent
        block = StructuredMeshBlock2D((ni, nj))
        block.coordinates[...] = self.coordinates[:, :, k, :2]
        return block
