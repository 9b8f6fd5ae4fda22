"""
Time series of interface reports and their plots.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from .report import InterfaceReport

QUANTITIES = {
    "height_above_boundary": "Interface height above the boundary",
    "height_above_location": "Interface height above the location",
}


class InterfaceHistory:
    """
    Collects the reports of successive reporting steps.

    Parameters
    ----------
    n_locations : int
        Number of query locations per step.
    """

    def __init__(self, n_locations: int):
        self.n_locations = int(n_locations)
        self.times: List[float] = []
        self._reports: List[Sequence[InterfaceReport]] = []

    def __len__(self) -> int:
        return len(self.times)

    def record(self, time: float,
               reports: Sequence[InterfaceReport]) -> None:
        if len(reports) != self.n_locations:
            raise ValueError(
                f"Expected {self.n_locations} reports, got {len(reports)}"
            )
        self.times.append(float(time))
        self._reports.append(list(reports))

    def values(self, quantity: str) -> np.ndarray:
        """Array (n_steps, n_locations) of a scalar report quantity."""
        if quantity not in QUANTITIES:
            raise ValueError(
                f"Unknown quantity {quantity!r}. "
                f"Available: {sorted(QUANTITIES)}"
            )
        out = np.full((len(self), self.n_locations), np.nan)
        for i, reports in enumerate(self._reports):
            out[i] = [getattr(r, quantity) for r in reports]
        return out

    def positions(self) -> np.ndarray:
        """Array (n_steps, n_locations, 3) of interface positions."""
        out = np.full((len(self), self.n_locations, 3), np.nan)
        for i, reports in enumerate(self._reports):
            out[i] = [r.position for r in reports]
        return out

    def found(self) -> np.ndarray:
        """Boolean array (n_steps, n_locations), False where not found."""
        out = np.zeros((len(self), self.n_locations), dtype=bool)
        for i, reports in enumerate(self._reports):
            out[i] = [r.found for r in reports]
        return out


def plot_interface_history(
    history: InterfaceHistory,
    quantity: str = "height_above_location",
    locations: Optional[Sequence[int]] = None,
    ax: Optional[Axes] = None,
    fig_size: Tuple[int, int] = (10, 6),
) -> Tuple[Figure, Axes]:
    """Plot interface height against time, one line per location.

    Steps where a location was not found are left as gaps.

    Parameters
    ----------
    history : InterfaceHistory
        Recorded reports.
    quantity : str
        ``"height_above_location"`` or ``"height_above_boundary"``.
    locations : sequence of int, optional
        Location indices to plot. Defaults to all.
    ax : matplotlib.axes.Axes, optional
        Axes to draw on. A new figure is created if None.
    fig_size : Tuple[int, int]
        Figure size used when creating a new figure.
    """
    values = history.values(quantity)
    values[~history.found()] = np.nan
    times = np.asarray(history.times)

    if ax is None:
        fig, ax = plt.subplots(figsize=fig_size)
    else:
        fig = ax.figure

    if locations is None:
        locations = range(history.n_locations)
    for li in locations:
        ax.plot(times, values[:, li], marker=".", label=f"Location {li}")

    ax.set_xlabel("Time")
    ax.set_ylabel(QUANTITIES[quantity])
    ax.grid(True, alpha=0.3)
    ax.legend()
    return fig, ax
