"""Shared helpers for the line oriented ASCII decoders."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Sequence

import numpy as np

from ..errors import DecodeError

__all__ = ["iter_lines", "parse_rows", "select_columns", "source_name"]


def source_name(path: Path) -> str:
    """Return the identifier recorded as the source of a decoded file."""

    return path.name


def iter_lines(path: Path) -> Iterator[tuple[int, str]]:
    """Return an iterator of ``(line_number, text)`` pairs for ``path``.

    The file is read eagerly and closed before the iterator is returned.
    """

    with path.open("r", encoding="utf-8", errors="replace") as handle:
        lines = [(number, line.rstrip()) for number, line in enumerate(handle, start=1)]
    return iter(lines)


def parse_rows(
    lines: Iterable[tuple[int, str]],
    width: int,
    *,
    source: str,
    separator: str | None = None,
) -> np.ndarray:
    """Parse numeric rows of exactly ``width`` fields into a matrix.

    Blank lines are skipped.  Any other line with a different number of
    fields or a field that is not a number raises :class:`DecodeError`.
    """

    rows: list[list[float]] = []
    for number, line in lines:
        if not line.strip():
            continue
        fields = line.split(separator)
        if len(fields) != width:
            raise DecodeError(
                f"expected {width} values, found {len(fields)}",
                source=source,
                line=number,
            )
        try:
            rows.append([float(field) for field in fields])
        except ValueError as exc:
            raise DecodeError(f"invalid numeric value ({exc})", source=source, line=number) from exc
    if not rows:
        return np.empty((0, width), dtype=np.float64)
    return np.asarray(rows, dtype=np.float64)


def select_columns(names: Sequence[str], wanted: Iterable[str] | None) -> list[int]:
    """Return the positions of ``names`` kept by the ``wanted`` allow-list."""

    if wanted is None:
        return list(range(len(names)))
    if isinstance(wanted, str):
        wanted = (wanted,)
    keep = set(wanted)
    return [index for index, name in enumerate(names) if name in keep]
