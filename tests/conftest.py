"""Shared mesh builders for the interfaceheight tests."""

from itertools import permutations, product

import numpy as np
import pytest
import pyvista as pv


def box_tets(n=(2, 2, 4), lengths=(1.0, 1.0, 2.0), origin=(0.0, 0.0, 0.0)):
    """Points and tetrahedra of a box, each hex split into 6 tets.

    All hexes are split along the same main diagonal, so neighbouring
    tetrahedra share whole faces.
    """
    nx, ny, nz = n
    axes = [
        np.linspace(o, o + L, k + 1)
        for o, L, k in zip(origin, lengths, n)
    ]
    X, Y, Z = np.meshgrid(*axes, indexing="ij")
    points = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

    def vid(i, j, k):
        return (i * (ny + 1) + j) * (nz + 1) + k

    tets = []
    for i, j, k in product(range(nx), range(ny), range(nz)):
        for perm in permutations(range(3)):
            idx = [i, j, k]
            verts = [vid(*idx)]
            for a in perm:
                idx[a] += 1
                verts.append(vid(*idx))
            tets.append(verts)
    return points, np.asarray(tets, dtype=np.int64)


def make_grid(points, tets):
    cells = np.hstack([np.full((len(tets), 1), 4), tets]).ravel()
    celltypes = np.full(len(tets), pv.CellType.TETRA, dtype=np.uint8)
    return pv.UnstructuredGrid(cells, celltypes, np.asarray(points, float))


def merge_boxes(*boxes):
    """Single grid made of several disjoint (points, tets) boxes."""
    all_points, all_tets, offset = [], [], 0
    for points, tets in boxes:
        all_points.append(points)
        all_tets.append(tets + offset)
        offset += len(points)
    return make_grid(np.vstack(all_points), np.vstack(all_tets))


def liquid_below(z):
    """Point alpha: 1 up to z=1, linear to 0 at z=1.5, 0 above.

    Its integral over z in [0, 2] is 1.25.
    """
    return np.clip(3.0 - 2.0 * np.asarray(z), 0.0, 1.0)


def add_fields(grid):
    grid.point_data["alpha"] = liquid_below(grid.points[:, 2])
    grid.cell_data["ones"] = np.ones(grid.n_cells)
    return grid


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def box_grid():
    """Tetrahedral box [0,1]x[0,1]x[0,2] with 96 cells."""
    return add_fields(make_grid(*box_tets()))


@pytest.fixture(scope="module")
def gapped_grid():
    """Two unit-height boxes z in [0,1] and [1.5,2.5] with a void between."""
    lower = box_tets(n=(2, 2, 2), lengths=(1.0, 1.0, 1.0))
    upper = box_tets(
        n=(2, 2, 2), lengths=(1.0, 1.0, 1.0), origin=(0.0, 0.0, 1.5)
    )
    grid = merge_boxes(lower, upper)
    grid.point_data["alpha"] = np.ones(grid.n_points)
    return grid
