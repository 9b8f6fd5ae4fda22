"""
InterfaceHeight driver.

Evaluates the interface height and position at every configured location
for one reporting step: resolve the height direction, agree point values
of cell fields across workers, sample the ray through each location on
every locally owned grid, interpolate the phase fraction, integrate, reduce
across workers and assemble the reports. Field values are read afresh on
every step.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Union

import numpy as np
import pyvista as pv

from .config import InterfaceHeightConfig
from .direction import resolve_direction
from .integrator import PartialIntegral, integrate
from .interpolation import CellPointInterpolator, make_interpolator
from .reduction import (
    ReducedResult,
    SerialCommunicator,
    allreduce_partial,
    reduce_partials,
)
from .report import InterfaceReport, assemble_report
from .sampling import TetMeshRaySampler

logger = logging.getLogger(__name__)


class InterfaceHeight:
    """
    Interface height and position at fixed locations of a two-phase flow.

    Parameters
    ----------
    config : InterfaceHeightConfig
        Field name, phase, interpolation scheme, direction and locations.
    grids : pyvista.UnstructuredGrid or sequence of them
        Tetrahedral mesh pieces owned by this process, each carrying the
        phase-fraction field. An empty sequence is allowed: the process
        still takes part in the reductions.
    comm : communicator, optional
        Object with ``rank``, ``size`` and ``allreduce(value, op)``; see
        ``reduction.MPICommunicator``. Defaults to a single process.
    max_workers : int, optional
        Threads used to integrate several local grids concurrently.

    Examples
    --------
    >>> config = InterfaceHeightConfig(locations=[[0.3, 0.2, 0.5]])
    >>> ih = InterfaceHeight(config, decompose(grid, 4))
    >>> reports = ih.execute(gravity=[0, 0, -9.81])
    >>> reports[0].position
    """

    def __init__(self,
                 config: InterfaceHeightConfig,
                 grids: Union[pv.UnstructuredGrid,
                              Sequence[pv.UnstructuredGrid]],
                 comm=None,
                 max_workers: Optional[int] = None):
        if isinstance(grids, pv.DataSet):
            grids = [grids]
        self.config = config
        self.comm = comm if comm is not None else SerialCommunicator()
        self.max_workers = max_workers
        self.samplers = [TetMeshRaySampler(g) for g in grids]
        self.interpolators = [
            make_interpolator(
                config.interpolation_scheme, g, config.alpha_name
            )
            for g in grids
        ]

    @property
    def is_coordinator(self) -> bool:
        """Only the coordinator writes output."""
        return self.comm.rank == 0

    def direction(self, gravity) -> np.ndarray:
        return resolve_direction(self.config.direction, gravity)

    def share_point_values(self) -> None:
        """
        Average cell fields to points over the whole decomposed mesh.

        For ``cellPoint`` on a field that only exists as cell data, a point
        on a partition seam is shared by cells of several workers. Sums and
        counts are gathered per global point id across all local grids and
        workers, so every worker interpolates the same point values as an
        undecomposed run. Collective: every worker calls it once per step.
        """
        if self.config.interpolation_scheme != "cellPoint":
            return
        cell_based = [
            interp for interp in self.interpolators
            if isinstance(interp, CellPointInterpolator)
            and interp.location == "cell"
        ]
        if not self.comm.allreduce(float(bool(cell_based)), "max"):
            return

        n_ids = 0
        for interp in cell_based:
            ids = interp.point_ids
            if ids.size:
                n_ids = max(n_ids, int(ids.max()) + 1)
        n_ids = int(self.comm.allreduce(float(n_ids), "max"))

        sums = np.zeros(n_ids)
        counts = np.zeros(n_ids)
        for interp in cell_based:
            ids = interp.point_ids
            local_sums, local_counts = interp.cell_sums()
            np.add.at(sums, ids, local_sums)
            np.add.at(counts, ids, local_counts)
        sums = self.comm.allreduce(sums, "sum")
        counts = self.comm.allreduce(counts, "sum")

        with np.errstate(invalid="ignore", divide="ignore"):
            values = sums / counts
        for interp in cell_based:
            interp.share_point_values(values[interp.point_ids])
        logger.debug("Shared %d point values of '%s'", n_ids,
                     self.config.alpha_name)

    def local_partial(self, index: int, location: np.ndarray,
                      direction: np.ndarray) -> PartialIntegral:
        """Partial integral of one location on local grid ``index``."""
        samples = self.samplers[index].sample_ray(location, direction)
        alpha = self.interpolators[index].interpolate(
            samples.points, samples.cells, samples.faces
        )
        return integrate(location, direction, samples, alpha)

    def _local_partials(self, location, direction,
                        executor) -> List[PartialIntegral]:
        indices = range(len(self.samplers))
        if executor is None:
            return [self.local_partial(i, location, direction)
                    for i in indices]
        return list(executor.map(
            lambda i: self.local_partial(i, location, direction), indices
        ))

    def reduce(self, partials: Sequence[PartialIntegral]) -> ReducedResult:
        """Reduce local partials, then across all workers of ``comm``."""
        return allreduce_partial(reduce_partials(partials), self.comm)

    def execute(self, gravity=(0.0, 0.0, 0.0)) -> List[InterfaceReport]:
        """
        Evaluate every location for the current reporting step.

        Parameters
        ----------
        gravity : array-like, shape (3,)
            Gravitational acceleration at this step. Only used when the
            configured direction is zero.

        Returns
        -------
        list of InterfaceReport
            One report per configured location, in configuration order.
        """
        # Fails before any sampling when no direction can be defined
        direction = self.direction(gravity)
        self.share_point_values()

        executor = None
        if len(self.samplers) > 1 and self.max_workers != 1:
            executor = ThreadPoolExecutor(max_workers=self.max_workers)

        reports = []
        try:
            for li, location in enumerate(self.config.locations):
                partials = self._local_partials(location, direction, executor)
                reduced = self.reduce(partials)
                report = assemble_report(
                    location, direction, self.config.liquid, reduced
                )
                if not report.found:
                    logger.warning(
                        "Location %d %s is outside the mesh", li,
                        location.tolist(),
                    )
                else:
                    logger.debug(
                        "Location %d: hB=%g hL=%g", li,
                        report.height_above_boundary,
                        report.height_above_location,
                    )
                reports.append(report)
        finally:
            if executor is not None:
                executor.shutdown()

        logger.info(
            "Evaluated interface height at %d locations (%d found)",
            len(reports), sum(r.found for r in reports),
        )
        return reports
