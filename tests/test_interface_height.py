"""End-to-end tests for interfaceheight.interface_height."""

import threading
from concurrent.futures import ThreadPoolExecutor
from functools import reduce

import numpy as np
import pytest

from interfaceheight import (
    ConfigurationError,
    InterfaceHeight,
    InterfaceHeightConfig,
    decompose,
)
from interfaceheight.decomposition import POINT_IDS

from conftest import add_fields, box_tets, liquid_below, make_grid

GRAVITY = np.array([0.0, 0.0, -9.81])


@pytest.fixture(scope="module")
def config():
    return InterfaceHeightConfig(
        locations=[[0.3, 0.2, 0.5], [0.7, 0.8, 1.9], [5.0, 5.0, 1.0]],
    )


# ---------------------------------------------------------------------------
# Single worker
# ---------------------------------------------------------------------------

class TestSingleGrid:
    def test_heights(self, box_grid, config):
        reports = InterfaceHeight(config, box_grid).execute(GRAVITY)
        assert len(reports) == 3
        first = reports[0]
        assert first.found
        assert first.boundary_height == pytest.approx(0.5)
        assert first.height_above_boundary == pytest.approx(1.25)
        assert first.height_above_location == pytest.approx(0.75)
        np.testing.assert_allclose(first.position, [0.3, 0.2, 1.25])

    def test_order_preserved(self, box_grid, config):
        reports = InterfaceHeight(config, box_grid).execute(GRAVITY)
        for report, location in zip(reports, config.locations):
            np.testing.assert_array_equal(report.location, location)
        assert reports[1].height_above_location == pytest.approx(1.25 - 1.9)

    def test_outside_location_not_found(self, box_grid, config):
        reports = InterfaceHeight(config, box_grid).execute(GRAVITY)
        assert not reports[2].found
        assert not np.isfinite(reports[2].height_above_location)

    def test_gas_phase_tracked(self, box_grid):
        config = InterfaceHeightConfig(
            locations=[[0.3, 0.2, 0.5]], liquid=False
        )
        report = InterfaceHeight(config, box_grid).execute(GRAVITY)[0]
        assert report.height_above_boundary == pytest.approx(0.75)

    def test_cell_scheme(self, box_grid):
        config = InterfaceHeightConfig(
            locations=[[0.3, 0.2, 0.5]], alpha_name="ones",
            interpolation_scheme="cell",
        )
        report = InterfaceHeight(config, box_grid).execute(GRAVITY)[0]
        assert report.height_above_boundary == pytest.approx(2.0)
        np.testing.assert_allclose(report.position, [0.3, 0.2, 2.0])

    def test_configured_direction_ignores_gravity(self, box_grid):
        config = InterfaceHeightConfig(
            locations=[[0.3, 0.2, 0.5]], direction=[0, 0, -1]
        )
        report = InterfaceHeight(config, box_grid).execute([0.0, 0.0, 0.0])[0]
        assert report.height_above_boundary == pytest.approx(1.25)

    def test_no_direction_raises_before_sampling(self, box_grid):
        config = InterfaceHeightConfig(locations=[[0.3, 0.2, 0.5]])
        ih = InterfaceHeight(config, box_grid)
        with pytest.raises(ConfigurationError):
            ih.execute([0.0, 0.0, 0.0])

    def test_missing_field_raises(self, box_grid):
        config = InterfaceHeightConfig(
            locations=[[0.3, 0.2, 0.5]], alpha_name="alpha.water"
        )
        with pytest.raises(ConfigurationError, match="alpha.water"):
            InterfaceHeight(config, box_grid)

    def test_serial_worker_is_coordinator(self, box_grid, config):
        assert InterfaceHeight(config, box_grid).is_coordinator


class TestGappedGrid:
    def test_void_is_not_integrated(self, gapped_grid):
        config = InterfaceHeightConfig(locations=[[0.3, 0.2, 1.25]])
        report = InterfaceHeight(config, gapped_grid).execute(GRAVITY)[0]
        assert report.height_above_boundary == pytest.approx(2.0)
        assert report.boundary_height == pytest.approx(1.25)
        np.testing.assert_allclose(report.position, [0.3, 0.2, 2.0])


# ---------------------------------------------------------------------------
# Decomposed domain
# ---------------------------------------------------------------------------

class TestDecomposition:
    @pytest.fixture(scope="class")
    def serial(self, box_grid, config):
        return InterfaceHeight(config, box_grid).execute(GRAVITY)

    @pytest.mark.parametrize("n_parts,axis", [
        (2, 2),     # seam across the ray
        (3, 0),     # seams along the ray, through hexes
        (4, None),
        (5, 1),
    ])
    def test_matches_single_grid(self, box_grid, config, serial,
                                 n_parts, axis):
        parts = decompose(box_grid, n_parts, axis=axis)
        assert len(parts) == n_parts
        assert sum(p.n_cells for p in parts) == box_grid.n_cells
        reports = InterfaceHeight(config, parts).execute(GRAVITY)
        for got, want in zip(reports[:2], serial[:2]):
            assert got.height_above_boundary == pytest.approx(
                want.height_above_boundary
            )
            assert got.boundary_height == pytest.approx(want.boundary_height)
            np.testing.assert_allclose(got.position, want.position)
        assert not reports[2].found

    def test_sequential_and_threaded_agree(self, box_grid, config):
        parts = decompose(box_grid, 3, axis=2)
        seq = InterfaceHeight(config, parts, max_workers=1).execute(GRAVITY)
        par = InterfaceHeight(config, parts, max_workers=3).execute(GRAVITY)
        for a, b in zip(seq[:2], par[:2]):
            assert a.height_above_boundary == pytest.approx(
                b.height_above_boundary
            )

    def test_worker_without_mesh(self, config):
        reports = InterfaceHeight(config, []).execute(GRAVITY)
        assert len(reports) == 3
        assert not any(r.found for r in reports)

    def test_decompose_keeps_fields(self, box_grid):
        for part in decompose(box_grid, 2):
            assert "alpha" in part.point_data
            assert "ones" in part.cell_data

    def test_decompose_carries_global_point_ids(self, box_grid):
        for part in decompose(box_grid, 3):
            ids = np.asarray(part.point_data[POINT_IDS])
            np.testing.assert_allclose(
                np.asarray(box_grid.points)[ids], part.points
            )
        assert POINT_IDS not in box_grid.point_data

    def test_bad_part_count_raises(self, box_grid):
        with pytest.raises(ValueError, match="at least 1"):
            decompose(box_grid, 0)
        with pytest.raises(ValueError, match="Cannot split"):
            decompose(box_grid, box_grid.n_cells + 1)


class TestTimeVaryingGravity:
    def test_direction_follows_gravity(self):
        """Tilting gravity to -x measures heights along x."""
        grid = add_fields(make_grid(*box_tets()))
        grid.point_data["alpha"] = np.clip(
            1.5 - 2.0 * grid.points[:, 0], 0.0, 1.0
        )
        config = InterfaceHeightConfig(locations=[[0.2, 0.3, 0.7]])
        report = InterfaceHeight(config, grid).execute([-9.81, 0.0, 0.0])[0]
        # Vertex values 1, 0.5, 0 at x = 0, 0.5, 1
        assert report.height_above_boundary == pytest.approx(0.5)
        np.testing.assert_allclose(report.position, [0.5, 0.3, 0.7])


# ---------------------------------------------------------------------------
# Cell-centred fields and changing fields
# ---------------------------------------------------------------------------

def cell_alpha_grid():
    """Box grid whose alpha only exists as cell data."""
    grid = make_grid(*box_tets())
    z_c = np.asarray(grid.cell_centers().points)[:, 2]
    grid.cell_data["alpha"] = liquid_below(z_c)
    return grid


class ThreadedCommunicator:
    """One rank of an in-process group reducing through a barrier."""

    def __init__(self, rank, group):
        self.rank = rank
        self.size = group["size"]
        self._group = group

    def allreduce(self, value, op):
        group = self._group
        group["slots"][self.rank] = value
        group["barrier"].wait()
        combine = np.maximum if op == "max" else np.add
        result = reduce(combine, group["slots"])
        group["barrier"].wait()
        return result


def make_group(size):
    return {
        "size": size,
        "slots": [None] * size,
        "barrier": threading.Barrier(size, timeout=30),
    }


@pytest.mark.filterwarnings("ignore:.*only exists as cell data")
class TestCellField:
    @pytest.fixture(scope="class")
    def grid(self):
        return cell_alpha_grid()

    @pytest.fixture(scope="class")
    def serial(self, grid, config):
        return InterfaceHeight(config, grid).execute(GRAVITY)

    def test_serial_heights_are_bounded(self, serial):
        first = serial[0]
        assert first.found
        assert 1.0 < first.height_above_boundary < 1.5

    @pytest.mark.parametrize("n_parts,axis", [
        (2, 2),
        (3, 0),
        (4, None),
    ])
    def test_decomposition_invariant(self, grid, config, serial,
                                     n_parts, axis):
        parts = decompose(grid, n_parts, axis=axis)
        reports = InterfaceHeight(config, parts).execute(GRAVITY)
        for got, want in zip(reports[:2], serial[:2]):
            assert got.height_above_boundary == pytest.approx(
                want.height_above_boundary
            )
            np.testing.assert_allclose(got.position, want.position)

    def test_seam_values_agree_across_workers(self, grid, config, serial):
        """Each worker owns one partition and reduces through the group."""
        parts = decompose(grid, 2, axis=2)
        group = make_group(2)

        def run(rank):
            comm = ThreadedCommunicator(rank, group)
            ih = InterfaceHeight(config, [parts[rank]], comm=comm)
            return ih.execute(GRAVITY)

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(run, range(2)))

        for reports in results:
            assert reports[0].height_above_boundary == pytest.approx(
                serial[0].height_above_boundary
            )
            assert not reports[2].found

    def test_worker_without_mesh_joins_reductions(self, grid, config,
                                                  serial):
        group = make_group(2)
        grids = [[grid], []]

        def run(rank):
            comm = ThreadedCommunicator(rank, group)
            return InterfaceHeight(config, grids[rank], comm=comm).execute(
                GRAVITY
            )

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(run, range(2)))

        for reports in results:
            assert reports[0].height_above_boundary == pytest.approx(
                serial[0].height_above_boundary
            )

    def test_cell_scheme_unaffected(self, grid):
        config = InterfaceHeightConfig(
            locations=[[0.3, 0.2, 0.5]], interpolation_scheme="cell"
        )
        serial = InterfaceHeight(config, grid).execute(GRAVITY)[0]
        parts = decompose(grid, 3, axis=2)
        split = InterfaceHeight(config, parts).execute(GRAVITY)[0]
        assert split.height_above_boundary == pytest.approx(
            serial.height_above_boundary
        )


class TestFieldUpdates:
    def test_point_field_read_every_step(self):
        grid = make_grid(*box_tets())
        grid.point_data["alpha"] = np.ones(grid.n_points)
        config = InterfaceHeightConfig(locations=[[0.3, 0.2, 0.5]])
        ih = InterfaceHeight(config, grid)

        first = ih.execute(GRAVITY)[0]
        grid.point_data["alpha"] = np.zeros(grid.n_points)
        second = ih.execute(GRAVITY)[0]

        assert first.height_above_boundary == pytest.approx(2.0)
        assert second.height_above_boundary == pytest.approx(0.0)
        np.testing.assert_allclose(second.position, [0.3, 0.2, 0.0],
                                   atol=1e-12)

    def test_cell_field_read_every_step(self):
        grid = make_grid(*box_tets())
        grid.cell_data["alpha"] = np.ones(grid.n_cells)
        config = InterfaceHeightConfig(
            locations=[[0.3, 0.2, 0.5]], interpolation_scheme="cell"
        )
        ih = InterfaceHeight(config, grid)

        first = ih.execute(GRAVITY)[0]
        grid.cell_data["alpha"] = np.full(grid.n_cells, 0.5)
        second = ih.execute(GRAVITY)[0]

        assert first.height_above_boundary == pytest.approx(2.0)
        assert second.height_above_boundary == pytest.approx(1.0)

    @pytest.mark.filterwarnings("ignore:.*only exists as cell data")
    def test_decomposed_cell_field_read_every_step(self, config):
        grid = cell_alpha_grid()
        parts = decompose(grid, 2, axis=2)
        ih = InterfaceHeight(config, parts)
        ih.execute(GRAVITY)

        for part in parts:
            part.cell_data["alpha"] = np.ones(part.n_cells)
        reports = ih.execute(GRAVITY)
        assert reports[0].height_above_boundary == pytest.approx(2.0)
        assert reports[1].height_above_boundary == pytest.approx(2.0)
