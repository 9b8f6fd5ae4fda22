"""
Interpolation of scalar fields at ray samples.

Schemes are selected by name, as in the ``interpolationScheme`` keyword:

- ``"cell"``: value of the owning cell.
- ``"cellPoint"``: linear interpolation of point values inside the owning
  tetrahedron. Fields that only exist as cell data are first averaged to
  the points.
"""

from __future__ import annotations

import warnings
from typing import Optional, Tuple

import numpy as np
import pyvista as pv

from .decomposition import POINT_IDS
from .errors import ConfigurationError
from .sampling import tetra_connectivity


class CellInterpolator:
    """Piecewise-constant interpolation from cell values."""

    location = "cell"

    def __init__(self, grid: pv.UnstructuredGrid, field_name: str):
        if field_name not in grid.cell_data:
            raise ConfigurationError(
                f"Field '{field_name}' not found in cell data. "
                f"Available: {list(grid.cell_data.keys())}"
            )
        self.grid = grid
        self.field_name = field_name

    def interpolate(self, points: np.ndarray, cells: np.ndarray,
                    faces: np.ndarray) -> np.ndarray:
        values = np.asarray(self.grid.cell_data[self.field_name], dtype=float)
        return values[np.asarray(cells, dtype=np.int64)]


class CellPointInterpolator:
    """
    Linear interpolation of point values inside tetrahedra.

    Field values are read from the grid on every call, so the same
    interpolator serves every reporting step.

    Parameters
    ----------
    grid : pyvista.UnstructuredGrid
        All-tetrahedral mesh holding the field.
    field_name : str
        Name of a point or cell array of ``grid``. Point data is preferred
        when both exist. A cell array is averaged to the points over the
        cells sharing each point.
    """

    def __init__(self, grid: pv.UnstructuredGrid, field_name: str):
        if field_name in grid.point_data:
            self.location = "point"
        elif field_name in grid.cell_data:
            warnings.warn(
                f"Field '{field_name}' only exists as cell data; "
                "averaging it to the points for cellPoint interpolation",
                stacklevel=2,
            )
            self.location = "cell"
        else:
            raise ConfigurationError(
                f"Field '{field_name}' not found in point or cell data"
            )
        self.grid = grid
        self.field_name = field_name
        self._tets = tetra_connectivity(grid)
        self._points = np.asarray(grid.points, dtype=float)
        self._shared_values: Optional[np.ndarray] = None

    @property
    def point_ids(self) -> np.ndarray:
        """Ids of the grid points in the undecomposed mesh."""
        if POINT_IDS in self.grid.point_data:
            return np.asarray(self.grid.point_data[POINT_IDS], dtype=np.int64)
        return np.arange(self.grid.n_points, dtype=np.int64)

    def cell_sums(self) -> Tuple[np.ndarray, np.ndarray]:
        """Sum of the cell values around each point, and the cell count."""
        values = np.asarray(self.grid.cell_data[self.field_name], dtype=float)
        n = self.grid.n_points
        vertex = self._tets.ravel()
        sums = np.bincount(vertex, weights=np.repeat(values, 4), minlength=n)
        counts = np.bincount(vertex, minlength=n).astype(float)
        return sums, counts

    def share_point_values(self, values: Optional[np.ndarray]) -> None:
        """
        Use point values averaged over the whole mesh.

        Set once per step by the driver for cell fields of a decomposed
        mesh, where the local average of a seam point only sees the local
        cells. ``None`` reverts to local averaging.
        """
        self._shared_values = (
            None if values is None else np.asarray(values, dtype=float)
        )

    def point_values(self) -> np.ndarray:
        if self.location == "point":
            return np.asarray(self.grid.point_data[self.field_name],
                              dtype=float)
        if self._shared_values is not None:
            return self._shared_values
        sums, counts = self.cell_sums()
        with np.errstate(invalid="ignore", divide="ignore"):
            return sums / counts

    def barycentric(self, points: np.ndarray,
                    cells: np.ndarray) -> np.ndarray:
        """Barycentric coordinates (n, 4) of each point in its cell."""
        verts = self._points[self._tets[cells]]  # (n, 4, 3)
        # Columns v0-v3, v1-v3, v2-v3
        T = np.transpose(verts[:, :3, :] - verts[:, 3:4, :], (0, 2, 1))
        rhs = (points - verts[:, 3, :])[..., None]
        lam = np.linalg.solve(T, rhs)[..., 0]
        return np.column_stack([lam, 1.0 - lam.sum(axis=1)])

    def interpolate(self, points: np.ndarray, cells: np.ndarray,
                    faces: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        cells = np.asarray(cells, dtype=np.int64)
        if cells.size == 0:
            return np.zeros(0, dtype=float)
        weights = self.barycentric(points, cells)
        values = self.point_values()
        return np.einsum("ij,ij->i", weights, values[self._tets[cells]])


SCHEMES = {
    "cell": CellInterpolator,
    "cellPoint": CellPointInterpolator,
}


def make_interpolator(scheme: str, grid: pv.UnstructuredGrid,
                      field_name: str):
    """Instantiate the interpolation scheme ``scheme`` for a field."""
    try:
        cls = SCHEMES[scheme]
    except KeyError:
        raise ConfigurationError(
            f"Unknown interpolation scheme {scheme!r}. "
            f"Available: {sorted(SCHEMES)}"
        ) from None
    return cls(grid, field_name)
