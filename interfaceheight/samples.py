"""
Ray sample containers and the collaborator interfaces that produce them.

A ray through the domain is represented as an ordered sequence of points,
each tagged with the owning cell, the face it lies on (``-1`` for points
inside a cell) and a segment id. Consecutive samples with equal segment ids
belong to the same connected piece of the ray; a change of segment id marks
a gap (the ray left the local mesh and re-entered it further along).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Protocol, Sequence

import numpy as np


class RaySample(NamedTuple):
    """A single point of a sampled ray."""

    position: np.ndarray
    cell: int
    face: int
    segment: int


@dataclass(frozen=True, eq=False)
class SampleSet:
    """
    Ordered samples of one ray on one worker.

    Parameters
    ----------
    points : np.ndarray, shape (N, 3)
        Sample positions ordered along the ray.
    cells : np.ndarray, shape (N,)
        Owning cell id of each sample.
    faces : np.ndarray, shape (N,)
        Face label of each sample, ``-1`` when the sample is not on a face.
    segments : np.ndarray, shape (N,)
        Segment id of each sample.
    """

    points: np.ndarray
    cells: np.ndarray
    faces: np.ndarray
    segments: np.ndarray

    def __post_init__(self):
        points = np.asarray(self.points, dtype=float)
        if points.size == 0:
            points = points.reshape(0, 3)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError("points must have shape (N, 3)")
        n = points.shape[0]

        arrays = {}
        for name in ("cells", "faces", "segments"):
            arr = np.asarray(getattr(self, name), dtype=np.int64).reshape(-1)
            if arr.shape[0] != n:
                raise ValueError(
                    f"{name} has {arr.shape[0]} entries, expected {n}"
                )
            arrays[name] = arr

        object.__setattr__(self, "points", points)
        for name, arr in arrays.items():
            object.__setattr__(self, name, arr)

    @classmethod
    def empty(cls) -> "SampleSet":
        """Sample set of a ray that missed the local mesh entirely."""
        return cls(
            points=np.zeros((0, 3)),
            cells=np.zeros(0, dtype=np.int64),
            faces=np.zeros(0, dtype=np.int64),
            segments=np.zeros(0, dtype=np.int64),
        )

    @classmethod
    def from_samples(cls, samples: Sequence[RaySample]) -> "SampleSet":
        if len(samples) == 0:
            return cls.empty()
        return cls(
            points=np.array([s.position for s in samples], dtype=float),
            cells=[s.cell for s in samples],
            faces=[s.face for s in samples],
            segments=[s.segment for s in samples],
        )

    @classmethod
    def concatenate(cls, sets: Sequence["SampleSet"]) -> "SampleSet":
        """Join sample sets in order, keeping segment ids as given."""
        sets = [s for s in sets if len(s)]
        if not sets:
            return cls.empty()
        return cls(
            points=np.vstack([s.points for s in sets]),
            cells=np.concatenate([s.cells for s in sets]),
            faces=np.concatenate([s.faces for s in sets]),
            segments=np.concatenate([s.segments for s in sets]),
        )

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def __getitem__(self, index: int) -> RaySample:
        return RaySample(
            position=self.points[index],
            cell=int(self.cells[index]),
            face=int(self.faces[index]),
            segment=int(self.segments[index]),
        )

    def __iter__(self) -> Iterator[RaySample]:
        for i in range(len(self)):
            yield self[i]

    @property
    def n_segments(self) -> int:
        """Number of maximal runs of equal segment id."""
        if len(self) == 0:
            return 0
        return int(np.count_nonzero(np.diff(self.segments))) + 1

    def segment_slices(self) -> List[slice]:
        """Slices selecting each maximal run of equal segment id."""
        if len(self) == 0:
            return []
        breaks = np.flatnonzero(np.diff(self.segments)) + 1
        bounds = [0, *breaks.tolist(), len(self)]
        return [slice(a, b) for a, b in zip(bounds[:-1], bounds[1:])]

    def subset(self, index: slice) -> "SampleSet":
        return SampleSet(
            points=self.points[index],
            cells=self.cells[index],
            faces=self.faces[index],
            segments=self.segments[index],
        )


class RaySampler(Protocol):
    """Produces ordered samples of the local mesh along a straight line."""

    def sample(self, start: np.ndarray, end: np.ndarray) -> SampleSet:
        ...


class FieldInterpolator(Protocol):
    """Interpolates a scalar field at tagged sample points."""

    def interpolate(self, points: np.ndarray, cells: np.ndarray,
                    faces: np.ndarray) -> np.ndarray:
        ...
