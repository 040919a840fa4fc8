"""Reader for SeaExplorer ``gli`` and ``pld`` ASCII files.

Both streams are semicolon separated tables with a single header line.  The
first column holds a ``dd/mm/YYYY HH:MM:SS[.fff]`` UTC timestamp which is
converted to POSIX seconds.  Columns whose cells are not numeric are kept
aside as text columns and left out of the record set matrix.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import numpy as np

from ..common.lazy import get_pandas
from ..errors import DecodeError
from ..records import Column, DecodedFile, NumericColumn, RecordSet, TextColumn, assemble_record_set
from ._text import source_name

__all__ = ["TIMESTAMP_FORMATS", "decode_sx", "parse_timestamps", "read_sx"]

TIMESTAMP_FORMATS: tuple[str, ...] = ("%d/%m/%Y %H:%M:%S.%f", "%d/%m/%Y %H:%M:%S")


def parse_timestamps(values: Any, *, source: str | None = None) -> np.ndarray:
    """Convert SeaExplorer timestamp strings into POSIX seconds."""

    pd = get_pandas()
    text = pd.Series(values, dtype="string").str.strip()
    parsed = pd.Series(pd.NaT, index=text.index, dtype="datetime64[ns]")
    for fmt in TIMESTAMP_FORMATS:
        pending = parsed.isna()
        if not pending.any():
            break
        parsed[pending] = pd.to_datetime(text[pending], format=fmt, errors="coerce")
    invalid = parsed.isna()
    if invalid.any():
        first = int(np.flatnonzero(invalid.to_numpy())[0])
        raise DecodeError(
            f"invalid timestamp {text.iloc[first]!r}",
            source=source,
            line=first + 2,
        )
    epoch = pd.Timestamp("1970-01-01")
    return ((parsed - epoch) / pd.Timedelta(seconds=1)).to_numpy(dtype=np.float64)


def _classify(name: str, cells: Any) -> Column:
    pd = get_pandas()
    stripped = cells.str.strip()
    numeric = pd.to_numeric(stripped, errors="coerce")
    failed = numeric.isna() & stripped.ne("") & stripped.str.lower().ne("nan")
    if failed.any():
        return TextColumn(name, tuple(stripped.fillna("")))
    return NumericColumn(name, numeric.to_numpy(dtype=np.float64))


def decode_sx(
    path: Path | str,
    variables: Iterable[str] | None = None,
    *,
    timestamp: str | None = None,
) -> DecodedFile:
    """Decode a SeaExplorer file keeping numeric and text columns apart.

    ``timestamp`` renames the first column; by default the header name is
    kept.  The timestamp column is always part of the result, even when
    ``variables`` does not list it.
    """

    pd = get_pandas()
    source_path = Path(path)
    source = source_name(source_path)
    try:
        frame = pd.read_csv(
            source_path,
            sep=";",
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise DecodeError(f"unreadable table ({exc})", source=source) from exc

    names = [str(name).strip() for name in frame.columns]
    if not names or not names[0]:
        raise DecodeError("missing header line", source=source)
    frame.columns = names
    names = [name for name in names if name and not name.startswith("Unnamed:")]
    time_name = timestamp or names[0]

    wanted: set[str] | None = None
    if variables is not None:
        wanted = {variables} if isinstance(variables, str) else set(variables)
    columns: list[Column] = [
        NumericColumn(time_name, parse_timestamps(frame[names[0]], source=source), unit="s")
    ]
    for name in names[1:]:
        if wanted is not None and name not in wanted:
            continue
        columns.append(_classify(name, frame[name]))

    header = {"filename": str(source_path), "variables_per_cycle": str(len(names))}
    return assemble_record_set(columns, sources=(source,), headers=(header,))


def read_sx(
    path: Path | str,
    variables: Iterable[str] | None = None,
    *,
    timestamp: str | None = None,
) -> RecordSet:
    """Decode a SeaExplorer file into a numeric :class:`RecordSet`."""

    return decode_sx(path, variables, timestamp=timestamp).record_set
