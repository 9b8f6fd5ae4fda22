"""
Resolution of the axis along which interface heights are measured.
"""

from typing import Sequence, Union

import numpy as np

from .errors import ConfigurationError

VectorLike = Union[Sequence[float], np.ndarray]


def as_vector(value: VectorLike, name: str = "vector") -> np.ndarray:
    """Return ``value`` as a finite float array of shape (3,)."""
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ConfigurationError(
            f"{name} must have exactly 3 components, got shape {arr.shape}"
        )
    if not np.all(np.isfinite(arr)):
        raise ConfigurationError(f"{name} must be finite, got {arr}")
    return arr


def resolve_direction(user_direction: VectorLike,
                      ambient_field: VectorLike) -> np.ndarray:
    """
    Pick the unit height direction.

    Parameters
    ----------
    user_direction : array-like, shape (3,)
        Explicit direction from the configuration. Used when non-zero.
    ambient_field : array-like, shape (3,)
        Ambient gravitational acceleration, used when ``user_direction``
        is zero. May change between reporting steps.

    Returns
    -------
    np.ndarray
        Unit vector of shape (3,).

    Raises
    ------
    ConfigurationError
        If both vectors are zero-length.
    """
    user = as_vector(user_direction, "direction")
    mag = float(np.linalg.norm(user))
    if mag > 0.0:
        return user / mag

    field = as_vector(ambient_field, "gravity")
    mag = float(np.linalg.norm(field))
    if mag > 0.0:
        return field / mag

    raise ConfigurationError(
        "Cannot define a height direction: both the configured direction "
        "and the gravitational field are zero"
    )
