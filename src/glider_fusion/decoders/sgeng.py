"""Reader for Seaglider engineering (``eng``) files."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from ..engine.dives import DiveRecordSet
from ..errors import DecodeError
from ..records import RecordSet
from ._text import iter_lines, parse_rows, select_columns, source_name

__all__ = ["HEADER_TAGS", "parse_start", "read_sgeng"]

HEADER_TAGS: tuple[str, ...] = (
    "version",
    "glider",
    "mission",
    "dive",
    "basestation_version",
    "start",
    "columns",
)


def parse_start(value: str, *, source: str | None = None) -> float:
    """Return the POSIX time of a ``%start`` tag.

    The tag lists month, day, years since 1900, hour, minute and second in
    UTC, e.g. ``7 10 117 9 30 0`` for 2017-07-10 09:30:00.
    """

    fields = value.split()
    if len(fields) != 6:
        raise DecodeError(f"invalid start tag {value!r}", source=source)
    try:
        month, day, year, hour, minute = (int(field) for field in fields[:5])
        second = float(fields[5])
        start = datetime(year + 1900, month, day, hour, minute, tzinfo=timezone.utc)
    except ValueError as exc:
        raise DecodeError(f"invalid start tag {value!r}", source=source) from exc
    return start.timestamp() + second


def _read_header(lines: Iterator[tuple[int, str]], source: str) -> dict[str, str]:
    header: dict[str, str] = {}
    for number, line in lines:
        if not line.strip():
            continue
        if not line.startswith("%"):
            raise DecodeError("data found before the %data: marker", source=source, line=number)
        key, separator, value = line[1:].partition(":")
        if not separator:
            raise DecodeError("malformed header line", source=source, line=number)
        key = key.strip()
        if key == "data":
            break
        header[key] = value.strip()
    else:
        raise DecodeError("missing %data: marker", source=source)

    missing = [tag for tag in HEADER_TAGS if tag not in header]
    if missing:
        raise DecodeError(f"missing header tags: {', '.join(missing)}", source=source)
    return header


def read_sgeng(path: Path | str, columns: Iterable[str] | None = None) -> DiveRecordSet:
    """Decode the Seaglider engineering file at ``path``.

    Column names have dots replaced by underscores.  ``columns`` optionally
    restricts the columns kept, using the converted names.
    """

    source_path = Path(path)
    source = source_name(source_path)
    lines = iter_lines(source_path)
    header = _read_header(lines, source)

    names = [name.strip().replace(".", "_") for name in header["columns"].split(",")]
    data = parse_rows(lines, len(names), source=source)
    kept = select_columns(names, columns)
    try:
        mission = int(header["mission"])
        dive = int(header["dive"])
    except ValueError as exc:
        raise DecodeError("invalid mission or dive number", source=source) from exc

    record_set = RecordSet(
        variables=tuple(names[index] for index in kept),
        data=data[:, kept],
        sources=(source,),
        headers=(header,),
    )
    return DiveRecordSet(
        record_set=record_set,
        mission=mission,
        dive=dive,
        start_secs=parse_start(header["start"], source=source),
    )
