"""Reader for Slocum ``dba`` ASCII files.

A ``dba`` file is the text rendition of a Slocum binary data file.  It
starts with ``num_ascii_tags`` lines of ``key: value`` pairs, followed by
three label lines (sensor names, units and storage widths in bytes) and one
line of whitespace separated readings per sensor cycle::

    dbd_label: DBD_ASC(dinkum_binary_data_ascii)file
    encoding_ver: 2
    num_ascii_tags: 14
    ...
    sensors_per_cycle: 3
    num_label_lines: 3
    num_segments: 1
    segment_filename_0: unit_470-2017-212-0-0
    m_present_time m_depth sci_water_temp
    timestamp m degc
    8 4 4
    1501487390.49 NaN NaN
"""

from __future__ import annotations

from itertools import islice
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from ..errors import DecodeError
from ..records import RecordSet, VariableInfo
from ._text import iter_lines, parse_rows, select_columns, source_name

__all__ = ["MANDATORY_TAGS", "read_dba"]

MANDATORY_TAGS: tuple[str, ...] = (
    "dbd_label",
    "encoding_ver",
    "num_ascii_tags",
    "all_sensors",
    "filename",
    "the8x3_filename",
    "filename_extension",
    "filename_label",
    "mission_name",
    "fileopen_time",
    "sensors_per_cycle",
    "num_label_lines",
)


def _as_int(header: Mapping[str, object], key: str, source: str) -> int:
    try:
        return int(str(header[key]))
    except (KeyError, ValueError) as exc:
        raise DecodeError(f"invalid or missing header tag {key!r}", source=source) from exc


def _read_header(lines: Iterator[tuple[int, str]], source: str) -> dict[str, object]:
    header: dict[str, object] = {}
    segments: list[str] = []
    expected: int | None = None
    count = 0
    for number, line in lines:
        key, separator, value = line.partition(":")
        if not separator:
            raise DecodeError("malformed header line", source=source, line=number)
        key = key.strip()
        value = value.strip()
        if key.startswith("segment_filename_"):
            segments.append(value)
        else:
            header[key] = value
        count += 1
        if key == "num_ascii_tags":
            expected = _as_int(header, key, source)
        if expected is not None and count >= expected:
            break
    else:
        raise DecodeError("truncated header", source=source)

    missing = [tag for tag in MANDATORY_TAGS if tag not in header]
    if missing:
        raise DecodeError(f"missing header tags: {', '.join(missing)}", source=source)
    if segments:
        header["segment_filenames"] = tuple(segments)
    return header


def _read_labels(
    lines: Iterator[tuple[int, str]], width: int, source: str
) -> tuple[list[str], list[str], list[int]]:
    labels = list(islice(lines, 3))
    if len(labels) < 3:
        raise DecodeError("truncated label lines", source=source)
    fields = [line.split() for _, line in labels]
    for (number, _), values in zip(labels, fields):
        if len(values) != width:
            raise DecodeError(
                f"expected {width} labels, found {len(values)}", source=source, line=number
            )
    try:
        widths = [int(value) for value in fields[2]]
    except ValueError as exc:
        raise DecodeError("invalid sensor width", source=source, line=labels[2][0]) from exc
    return fields[0], fields[1], widths


def read_dba(path: Path | str, variables: Iterable[str] | None = None) -> RecordSet:
    """Decode the Slocum ``dba`` file at ``path`` into a :class:`RecordSet`.

    ``variables`` optionally restricts the sensors kept in the result.  The
    parsed header tags are stored as the single entry of
    :attr:`RecordSet.headers`; units and byte widths become per-variable
    :class:`VariableInfo`.
    """

    source_path = Path(path)
    source = source_name(source_path)
    lines = iter_lines(source_path)
    header = _read_header(lines, source)
    width = _as_int(header, "sensors_per_cycle", source)
    names, units, widths = _read_labels(lines, width, source)
    data = parse_rows(lines, width, source=source)

    kept = select_columns(names, variables)
    info = {
        names[index]: VariableInfo(unit=units[index], width=widths[index]) for index in kept
    }
    return RecordSet(
        variables=tuple(names[index] for index in kept),
        data=data[:, kept] if len(kept) != width else data,
        sources=(source,),
        info=info,
        headers=(header,),
    )
