"""
Integration of the phase fraction along a sampled ray.

The trapezoidal integral of alpha along the ray gives the equivalent length
of a pure-liquid column, independent of how finely the ray was sampled.
Pairs of consecutive samples that belong to different segments are skipped
so that gaps between disconnected pieces of the ray (holes in the mesh,
process boundaries) never contribute a phantom length.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .samples import SampleSet

# Boundary height of a ray that found no samples. Reduces away under max.
NOT_FOUND = -np.inf


@dataclass(frozen=True)
class PartialIntegral:
    """Contribution of one worker to the integrals of one query location."""

    sum_length: float = 0.0
    sum_length_alpha: float = 0.0
    boundary_height: float = NOT_FOUND

    @property
    def found(self) -> bool:
        return bool(np.isfinite(self.boundary_height))


def boundary_height(location: np.ndarray, direction: np.ndarray,
                    samples: SampleSet) -> float:
    """Height of ``location`` above the first sampled point of the ray."""
    if len(samples) == 0:
        return NOT_FOUND
    return -float(np.dot(direction, location - samples.points[0]))


def integrate(location, direction, samples: SampleSet,
              alpha) -> PartialIntegral:
    """
    Integrate length and length*alpha along one ordered sample sequence.

    Parameters
    ----------
    location : array-like, shape (3,)
        Query location the ray was cast through.
    direction : array-like, shape (3,)
        Unit height direction.
    samples : SampleSet
        Locally owned samples of the ray, ordered along it.
    alpha : array-like, shape (N,)
        Phase fraction interpolated at each sample. Not clamped.

    Returns
    -------
    PartialIntegral
    """
    location = np.asarray(location, dtype=float)
    direction = np.asarray(direction, dtype=float)
    alpha = np.asarray(alpha, dtype=float).reshape(-1)
    if alpha.shape[0] != len(samples):
        raise ValueError(
            f"alpha has {alpha.shape[0]} values for {len(samples)} samples"
        )

    h_lb = boundary_height(location, direction, samples)
    if len(samples) < 2:
        return PartialIntegral(0.0, 0.0, h_lb)

    connected = samples.segments[1:] == samples.segments[:-1]
    lengths = -(np.diff(samples.points, axis=0) @ direction)
    mean_alpha = 0.5 * (alpha[:-1] + alpha[1:])

    sum_length = float(np.sum(lengths[connected]))
    sum_length_alpha = float(
        np.sum(lengths[connected] * mean_alpha[connected])
    )
    return PartialIntegral(sum_length, sum_length_alpha, h_lb)
