"""
Combination of partial integrals computed by separate workers.

Each worker integrates only the ray samples inside the part of the mesh it
owns. Summing the integrals and taking the maximum boundary height gives
the same answer for any decomposition and any reduction order, because both
operations are associative and commutative and every sample is owned by
exactly one worker.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

import numpy as np

from .integrator import NOT_FOUND, PartialIntegral

# Scalars, or arrays of the same shape on every worker
Reducible = Union[float, np.ndarray]


@dataclass(frozen=True)
class ReducedResult:
    """Global integrals for one query location."""

    sum_length: float = 0.0
    sum_length_alpha: float = 0.0
    boundary_height: float = NOT_FOUND

    @property
    def found(self) -> bool:
        """False when no worker sampled anything for this location."""
        return bool(np.isfinite(self.boundary_height))


def reduce_partials(partials: Iterable[PartialIntegral]) -> ReducedResult:
    """Sum the integrals and take the maximum boundary height."""
    sum_length = 0.0
    sum_length_alpha = 0.0
    h_lb = NOT_FOUND
    for p in partials:
        sum_length += p.sum_length
        sum_length_alpha += p.sum_length_alpha
        h_lb = max(h_lb, p.boundary_height)
    return ReducedResult(sum_length, sum_length_alpha, h_lb)


class SerialCommunicator:
    """Communicator of a single worker; every reduction is the identity."""

    rank = 0
    size = 1

    def allreduce(self, value: Reducible, op: str) -> Reducible:
        if op not in ("max", "sum"):
            raise ValueError(f"Unsupported reduction op: {op!r}")
        return value


class MPICommunicator:
    """
    Collective reductions over MPI ranks via mpi4py.

    Parameters
    ----------
    comm : mpi4py.MPI.Comm, optional
        Communicator to reduce over. Defaults to ``MPI.COMM_WORLD``.
    """

    def __init__(self, comm: Optional[Any] = None):
        try:
            from mpi4py import MPI
        except ImportError as exc:
            raise ImportError(
                "MPI reductions require `mpi4py`. "
                "Install with `pip install interfaceheight[mpi]`."
            ) from exc

        self._comm = comm if comm is not None else MPI.COMM_WORLD
        self._ops = {"max": MPI.MAX, "sum": MPI.SUM}

    @property
    def rank(self) -> int:
        return self._comm.Get_rank()

    @property
    def size(self) -> int:
        return self._comm.Get_size()

    def allreduce(self, value: Reducible, op: str) -> Reducible:
        try:
            mpi_op = self._ops[op]
        except KeyError:
            raise ValueError(f"Unsupported reduction op: {op!r}") from None
        return self._comm.allreduce(value, op=mpi_op)


def allreduce_partial(partial: PartialIntegral, comm) -> ReducedResult:
    """
    Reduce one worker's partial integral across all workers of ``comm``.

    This is a collective call: every worker must make it once per query
    location per reporting step, including workers whose contribution is
    empty, otherwise the reduction blocks.
    """
    h_lb = comm.allreduce(float(partial.boundary_height), "max")
    sum_length = comm.allreduce(float(partial.sum_length), "sum")
    sum_length_alpha = comm.allreduce(float(partial.sum_length_alpha), "sum")
    return ReducedResult(sum_length, sum_length_alpha, h_lb)
