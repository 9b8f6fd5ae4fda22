"""
Configuration of an interface height evaluation.

Settings can be given directly, from a dictionary using the keywords of the
OpenFOAM ``interfaceHeight`` function object, or from a JSON file holding
such a dictionary:

    {
        "alpha": "alpha.water",
        "liquid": true,
        "interpolationScheme": "cellPoint",
        "direction": [0, 0, 0],
        "locations": [[0.3, 0.2, 0.5], [0.7, 0.2, 0.5]]
    }
"""

from __future__ import annotations

import json
import os
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np

from .direction import as_vector
from .errors import ConfigurationError
from .interpolation import SCHEMES

# Maps dictionary keywords to dataclass fields
_KEYWORDS = {
    "alpha": "alpha_name",
    "liquid": "liquid",
    "interpolationScheme": "interpolation_scheme",
    "direction": "direction",
    "locations": "locations",
    "region": "region",
}


def _as_locations(value: Any) -> np.ndarray:
    try:
        locations = np.asarray(value, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Malformed locations: {exc}") from exc
    if locations.size == 0:
        raise ConfigurationError("At least one location is required")
    if locations.ndim == 1 and locations.shape[0] == 3:
        locations = locations.reshape(1, 3)
    if locations.ndim != 2 or locations.shape[1] != 3:
        raise ConfigurationError(
            "locations must be a list of 3D points, got array of shape "
            f"{locations.shape}"
        )
    if not np.all(np.isfinite(locations)):
        raise ConfigurationError("locations must be finite")
    return locations


@dataclass(frozen=True, eq=False)
class InterfaceHeightConfig:
    """
    Settings of an interface height evaluation.

    Parameters
    ----------
    locations : array-like, shape (n, 3)
        Query locations. Order is preserved in every output.
    alpha_name : str
        Name of the phase-fraction field.
    liquid : bool
        True when ``alpha`` is the liquid fraction, False when it is the gas.
    interpolation_scheme : str
        Name of the interpolation scheme (see ``interpolation.SCHEMES``).
    direction : array-like, shape (3,)
        Height direction. Zero means "use gravity".
    region : str, optional
        Mesh region name, kept for the caller's bookkeeping.
    """

    locations: np.ndarray
    alpha_name: str = "alpha"
    liquid: bool = True
    interpolation_scheme: str = "cellPoint"
    direction: np.ndarray = field(default_factory=lambda: np.zeros(3))
    region: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "locations", _as_locations(self.locations))
        object.__setattr__(
            self, "direction", as_vector(self.direction, "direction")
        )
        if not isinstance(self.alpha_name, str) or not self.alpha_name:
            raise ConfigurationError("alpha must be a non-empty field name")
        if not isinstance(self.liquid, (bool, np.bool_)):
            raise ConfigurationError(
                f"liquid must be a boolean, got {self.liquid!r}"
            )

        if self.interpolation_scheme not in SCHEMES:
            raise ConfigurationError(
                f"Unknown interpolation scheme {self.interpolation_scheme!r}."
                f" Available: {sorted(SCHEMES)}"
            )

    @property
    def n_locations(self) -> int:
        return int(self.locations.shape[0])

    @classmethod
    def from_dict(cls, entries: Dict[str, Any]) -> "InterfaceHeightConfig":
        """Build from a dictionary of ``interfaceHeight`` keywords.

        Other keywords of a function-object dictionary (``type``, ``libs``,
        ``writeControl`` ...) are ignored with a warning.
        """
        unknown = set(entries) - set(_KEYWORDS)
        if unknown:
            warnings.warn(
                f"Ignoring unknown keywords: {sorted(unknown)}", stacklevel=2
            )
        if "locations" not in entries:
            raise ConfigurationError("Missing required keyword 'locations'")
        kwargs = {
            _KEYWORDS[k]: v for k, v in entries.items() if k in _KEYWORDS
        }
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: str) -> "InterfaceHeightConfig":
        if not os.path.exists(path):
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            try:
                entries = json.load(f)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(
                    f"Invalid JSON in {path}: {exc}"
                ) from exc
        if not isinstance(entries, dict):
            raise ConfigurationError(
                f"{path} must hold a JSON object of keywords"
            )
        return cls.from_dict(entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alpha": self.alpha_name,
            "liquid": bool(self.liquid),
            "interpolationScheme": self.interpolation_scheme,
            "direction": self.direction.tolist(),
            "locations": self.locations.tolist(),
            "region": self.region,
        }

