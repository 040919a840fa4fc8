"""Low level helpers that place input blocks into an output matrix."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from ..errors import InconsistentData

__all__ = ["allocate", "collapse_cells", "last_rows", "scatter_checked"]


def allocate(rows: int, columns: int) -> np.ndarray:
    """Return a writable matrix filled with the missing sentinel."""

    return np.full((rows, columns), np.nan, dtype=np.float64)


def last_rows(positions: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(targets, rows)`` keeping the last input row per target row."""

    positions = np.asarray(positions, dtype=np.intp)
    if positions.size == 0:
        empty = np.empty(0, dtype=np.intp)
        return empty, empty
    targets, reversed_first = np.unique(positions[::-1], return_index=True)
    rows = positions.size - 1 - reversed_first
    return targets, rows.astype(np.intp)


def collapse_cells(
    row_positions: np.ndarray,
    column_positions: np.ndarray,
    block: np.ndarray,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return the present cells of ``block`` mapped onto output coordinates.

    Cells of several input rows that land on the same output cell are
    reduced to the value of the last such row, so a repeated sensor cycle
    inside one input never conflicts with itself.  The result is ordered by
    output row, then output column.
    """

    present_rows, present_columns = np.nonzero(~np.isnan(block))
    if present_rows.size == 0:
        empty = np.empty(0, dtype=np.intp)
        return empty, empty, np.empty(0, dtype=np.float64)
    values = block[present_rows, present_columns]
    targets_row = np.asarray(row_positions, dtype=np.intp)[present_rows]
    targets_column = np.asarray(column_positions, dtype=np.intp)[present_columns]

    width = int(targets_column.max()) + 1
    keys = targets_row * width + targets_column
    order = np.lexsort((present_rows, keys))
    keys = keys[order]
    keep = np.ones(keys.size, dtype=bool)
    keep[:-1] = keys[:-1] != keys[1:]
    selected = order[keep]
    return targets_row[selected], targets_column[selected], values[selected]


def scatter_checked(
    output: np.ndarray,
    rows: np.ndarray,
    columns: np.ndarray,
    values: np.ndarray,
    *,
    names: Sequence[str],
    stamps: np.ndarray,
    overwrite: bool = False,
) -> None:
    """Write ``values`` into ``output`` rejecting present, differing cells.

    Missing output cells receive the incoming value.  Present output cells
    keep their value unless ``overwrite`` is set, in which case the incoming
    value replaces an equal one.  The first conflict in row-major order is
    reported as :class:`InconsistentData`.
    """

    if values.size == 0:
        return
    current = output[rows, columns]
    filled = ~np.isnan(current)
    conflicts = np.flatnonzero(filled & (current != values))
    if conflicts.size:
        first = int(conflicts[0])
        raise InconsistentData(
            names[int(columns[first])],
            float(stamps[int(rows[first])]),
            float(current[first]),
            float(values[first]),
        )
    write = np.ones(values.size, dtype=bool) if overwrite else ~filled
    output[rows[write], columns[write]] = values[write]
