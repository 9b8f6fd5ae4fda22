"""
Conversion of reduced integrals into interface heights and positions.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .reduction import ReducedResult


@dataclass(frozen=True, eq=False)
class InterfaceReport:
    """
    Interface height and position for one query location.

    Attributes
    ----------
    location : np.ndarray
        Query location.
    height_above_boundary : float
        Equivalent liquid length measured from where the ray enters the
        domain (hB).
    height_above_location : float
        Interface height relative to the query location (hL).
    position : np.ndarray
        Interface position on the ray.
    boundary_height : float
        Height of the location above the boundary; ``NOT_FOUND`` when no
        worker sampled the ray.
    """

    location: np.ndarray
    height_above_boundary: float
    height_above_location: float
    position: np.ndarray
    boundary_height: float

    @property
    def found(self) -> bool:
        return bool(np.isfinite(self.boundary_height))


def assemble_report(location, direction, liquid: bool,
                    reduced: ReducedResult) -> InterfaceReport:
    """
    Build the interface report of one location from its global integrals.

    When ``liquid`` is False the tracked phase fraction is the gas, and the
    liquid length is the complement of the tracked integral. A location
    outside the domain carries the not-found boundary height through to
    non-finite heights and positions; these are returned as they are.
    """
    location = np.asarray(location, dtype=float)
    direction = np.asarray(direction, dtype=float)

    if liquid:
        h_ib = reduced.sum_length_alpha
    else:
        h_ib = reduced.sum_length - reduced.sum_length_alpha

    with np.errstate(invalid="ignore", over="ignore"):
        h_il = h_ib - reduced.boundary_height
        position = location - direction * h_il

    return InterfaceReport(
        location=location,
        height_above_boundary=float(h_ib),
        height_above_location=float(h_il),
        position=position,
        boundary_height=float(reduced.boundary_height),
    )
