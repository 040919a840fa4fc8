"""Sorted-union indices used to scatter several inputs into one matrix."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

__all__ = ["ColumnIndex", "TimestampIndex"]


def _offsets(lengths: Sequence[int]) -> tuple[int, ...]:
    starts = [0]
    for length in lengths:
        starts.append(starts[-1] + int(length))
    return tuple(starts)


@dataclass(frozen=True)
class TimestampIndex:
    """Sorted, deduplicated timestamps seen across a group of inputs.

    ``positions(i)`` maps each row of the ``i``-th input onto its row in
    :attr:`values`.
    """

    values: np.ndarray
    _inverse: np.ndarray
    _starts: tuple[int, ...]

    @classmethod
    def build(cls, stamps: Sequence[np.ndarray]) -> "TimestampIndex":
        arrays = [np.asarray(stamp, dtype=np.float64).reshape(-1) for stamp in stamps]
        starts = _offsets([array.size for array in arrays])
        if arrays:
            joined = np.concatenate(arrays)
        else:
            joined = np.empty(0, dtype=np.float64)
        values, inverse = np.unique(joined, return_inverse=True)
        values.flags.writeable = False
        return cls(values=values, _inverse=inverse.reshape(-1), _starts=starts)

    def __len__(self) -> int:
        return int(self.values.size)

    @property
    def inputs(self) -> int:
        return len(self._starts) - 1

    def positions(self, index: int) -> np.ndarray:
        return self._inverse[self._starts[index] : self._starts[index + 1]]


@dataclass(frozen=True)
class ColumnIndex:
    """Sorted union of variable names across a group of inputs."""

    names: tuple[str, ...]
    _positions: tuple[np.ndarray, ...]

    @classmethod
    def build(cls, catalogues: Sequence[Sequence[str]]) -> "ColumnIndex":
        names = tuple(sorted({name for catalogue in catalogues for name in catalogue}))
        lookup = {name: position for position, name in enumerate(names)}
        positions = tuple(
            np.fromiter((lookup[name] for name in catalogue), dtype=np.intp, count=len(catalogue))
            for catalogue in catalogues
        )
        return cls(names=names, _positions=positions)

    def __len__(self) -> int:
        return len(self.names)

    def positions(self, index: int) -> np.ndarray:
        return self._positions[index]
