"""
Simple geometric decomposition of a mesh into partitions.

Cells are ordered by the coordinate of their centres along one axis and
split into contiguous, nearly equal groups, each extracted as its own grid
with its cell and point data. Each partition plays the part of one worker
owning a piece of the domain, and carries the ids of its points in the
undecomposed mesh so that point values on partition seams can be agreed
between workers.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
import pyvista as pv

logger = logging.getLogger(__name__)

# Point array mapping partition points back to the undecomposed mesh
POINT_IDS = "global_point_ids"


def decompose(grid: pv.UnstructuredGrid, n_parts: int,
              axis: Optional[int] = None) -> List[pv.UnstructuredGrid]:
    """
    Split ``grid`` into ``n_parts`` sub-grids along one coordinate axis.

    Parameters
    ----------
    grid : pyvista.UnstructuredGrid
        Mesh to decompose.
    n_parts : int
        Number of partitions, at least 1 and at most the number of cells.
    axis : int, optional
        Axis (0, 1 or 2) to split along. Defaults to the longest side of
        the bounding box.

    Returns
    -------
    list of pyvista.UnstructuredGrid
    """
    n_parts = int(n_parts)
    if n_parts < 1:
        raise ValueError("n_parts must be at least 1")
    if n_parts > grid.n_cells:
        raise ValueError(
            f"Cannot split {grid.n_cells} cells into {n_parts} partitions"
        )
    if axis is None:
        xmin, xmax, ymin, ymax, zmin, zmax = grid.bounds
        axis = int(np.argmax([xmax - xmin, ymax - ymin, zmax - zmin]))
    if axis not in (0, 1, 2):
        raise ValueError("axis must be 0, 1 or 2")

    source = grid.copy(deep=False)
    if POINT_IDS not in source.point_data:
        source.point_data[POINT_IDS] = np.arange(grid.n_points, dtype=np.int64)

    centres = np.asarray(grid.cell_centers().points)[:, axis]
    order = np.argsort(centres, kind="stable")
    parts = [source.extract_cells(ids) for ids in np.array_split(order, n_parts)]
    logger.info(
        "Decomposed %d cells into %d partitions along axis %d",
        grid.n_cells, n_parts, axis,
    )
    return parts
