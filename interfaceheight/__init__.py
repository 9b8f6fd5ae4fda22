"""
interfaceheight: interface height and position of two-phase flows

Computes, at fixed query locations, the height and position of a moving
interface (e.g. a free water surface) from the phase-fraction field of a
volumetric simulation:
- Ray sampling of tetrahedral meshes with gap-aware segment ids
- Cell and cell-point interpolation of the phase fraction
- Trapezoidal integration of the equivalent liquid length along each ray
- Decomposition-independent reduction of per-worker partial integrals
- Column-file output and time-series plots

Key Classes:
- InterfaceHeight: Per-step driver over locally owned mesh pieces
- InterfaceHeightConfig: Locations, field name, phase and direction
- TetMeshRaySampler: Face and mid-point samples along a line
- InterfaceHeightWriter: heights.dat / positions.dat output
"""

__version__ = "0.1.0"

from .errors import ConfigurationError
from .direction import resolve_direction
from .samples import RaySample, SampleSet, RaySampler, FieldInterpolator
from .integrator import NOT_FOUND, PartialIntegral, integrate
from .reduction import (
    ReducedResult,
    SerialCommunicator,
    MPICommunicator,
    reduce_partials,
    allreduce_partial,
)
from .report import InterfaceReport, assemble_report
from .interpolation import (
    CellInterpolator,
    CellPointInterpolator,
    make_interpolator,
)
from .sampling import TetMeshRaySampler
from .config import InterfaceHeightConfig
from .decomposition import decompose
from .interface_height import InterfaceHeight
from .writer import InterfaceHeightWriter
from .logging_config import setup_logging

__all__ = [
    "ConfigurationError",
    "resolve_direction",
    "RaySample",
    "SampleSet",
    "RaySampler",
    "FieldInterpolator",
    "NOT_FOUND",
    "PartialIntegral",
    "integrate",
    "ReducedResult",
    "SerialCommunicator",
    "MPICommunicator",
    "reduce_partials",
    "allreduce_partial",
    "InterfaceReport",
    "assemble_report",
    "CellInterpolator",
    "CellPointInterpolator",
    "make_interpolator",
    "TetMeshRaySampler",
    "InterfaceHeightConfig",
    "decompose",
    "InterfaceHeight",
    "InterfaceHeightWriter",
    "setup_logging",
]
