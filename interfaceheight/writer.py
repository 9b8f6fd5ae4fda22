"""
Text output of interface heights and positions.

Two column files are written to the output directory, one line per
reporting step:

- ``heights.dat``: hB and hL of every location
- ``positions.dat``: ``(x y z)`` interface position of every location

If a file of that name already exists, the new file is given a ``_0``
suffix rather than overwriting it.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Sequence, TextIO

import numpy as np

from .report import InterfaceReport

logger = logging.getLogger(__name__)

PRECISION = 10


class InterfaceHeightWriter:
    """
    Owns the output files of an interface height evaluation.

    Use as a context manager so the files are closed on every exit path:

    >>> with InterfaceHeightWriter("postProcessing", config.locations) as w:
    ...     for time in times:
    ...         w.write(time, ih.execute(gravity))

    Parameters
    ----------
    output_dir : str
        Directory for the files, created if missing.
    locations : array-like, shape (n, 3)
        Query locations, listed in the file headers.
    """

    names = ("heights", "positions")

    def __init__(self, output_dir: str, locations,
                 precision: int = PRECISION):
        self.output_dir = output_dir
        self.locations = np.asarray(locations, dtype=float).reshape(-1, 3)
        self.precision = int(precision)
        self.width = self.precision + 9
        self.paths: Dict[str, str] = {}
        self._files: Dict[str, TextIO] = {}

    def __enter__(self) -> "InterfaceHeightWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return bool(self._files)

    def _available_path(self, name: str) -> str:
        path = os.path.join(self.output_dir, name + ".dat")
        if os.path.exists(path):
            path = os.path.join(self.output_dir, name + "_0.dat")
        return path

    def open(self) -> None:
        if self.is_open:
            return
        os.makedirs(self.output_dir, exist_ok=True)
        try:
            for name in self.names:
                path = self._available_path(name)
                self._files[name] = open(path, "w", encoding="utf-8")
                self.paths[name] = path
                self._write_header(name)
        except OSError:
            self.close()
            raise
        logger.info("Writing interface data to %s", self.output_dir)

    def close(self) -> None:
        for f in self._files.values():
            f.close()
        self._files = {}

    def _fmt(self, value: float, width: Optional[int] = None) -> str:
        w = self.width if width is None else width
        return f"{value:{w}.{self.precision}e}"

    def _col(self, text) -> str:
        return f"{text!s:>{self.width}}"

    def _write_header(self, name: str) -> None:
        f = self._files[name]
        for li, (x, y, z) in enumerate(self.locations):
            f.write(f"# Location {li} : ({x:g} {y:g} {z:g})\n")
        if name == "heights":
            f.write("# hB : Interface height above the boundary\n")
            f.write("# hL : Interface height above the location\n")
            f.write("# Location" + "".join(
                self._col(li) + self._col("") for li in range(len(self.locations))
            ) + "\n")
            f.write("# Time    " + "".join(
                self._col("hB") + self._col("hL") for _ in self.locations
            ) + "\n")
        else:
            f.write("# p : Interface position\n")
            f.write("# Location" + "".join(
                self._col(li) + self._col("") + self._col("") + "  "
                for li in range(len(self.locations))
            ) + "\n")
            f.write("# Time    " + "".join(
                self._col("p") + self._col("") + self._col("") + "  "
                for _ in self.locations
            ) + "\n")

    def write(self, time: float, reports: Sequence[InterfaceReport]) -> None:
        """Append one reporting step."""
        if not self.is_open:
            raise RuntimeError("Writer is closed. Use it as a context manager.")
        if len(reports) != len(self.locations):
            raise ValueError(
                f"Expected {len(self.locations)} reports, got {len(reports)}"
            )

        heights = self._files["heights"]
        heights.write(f"{time:<10g}")
        for r in reports:
            heights.write(self._fmt(r.height_above_boundary))
            heights.write(self._fmt(r.height_above_location))
        heights.write("\n")

        positions = self._files["positions"]
        positions.write(f"{time:<10g}")
        for r in reports:
            x, y, z = r.position
            positions.write(
                "(" + self._fmt(x) + self._fmt(y)
                + self._fmt(z, self.width - 1) + ") "
            )
        positions.write("\n")

        for f in self._files.values():
            f.flush()
