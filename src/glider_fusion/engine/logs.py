"""Seaglider dive logs: concatenation and merge with engineering data.

A dive log holds one record set per log parameter.  Most parameters are
reported once per dive, but ``GC``, ``SM_CCo`` and ``STATE`` carry a
``st_secs`` member counting seconds since the dive started.  Those three
belong on the engineering time axis and :func:`merge_log_eng` folds them
into the stacked engineering record set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import monotonic
from types import MappingProxyType
from typing import Any, Mapping, Sequence

import numpy as np

from ..errors import MissingTimestamp
from ..records import (
    ColumnIndex,
    DecodedFile,
    NumericColumn,
    RecordSet,
    TextColumn,
    TimestampIndex,
    VariableInfo,
    assemble_record_set,
)
from ._scatter import allocate, collapse_cells
from .dives import ELAPSED_TIME, DiveSeries
from .options import EngineOptions

__all__ = [
    "DIVE_PARAMETERS",
    "LOG_TIME",
    "DiveLog",
    "LogSeries",
    "concatenate_logs",
    "merge_log_eng",
]

logger = logging.getLogger(__name__)

LOG_TIME = "st_secs"
DIVE_PARAMETERS: tuple[str, ...] = ("GC", "SM_CCo", "STATE")

_MEMBER_RENAMES: Mapping[str, str] = MappingProxyType({"gcphase": "GC_phase", "depth": "GC_depth"})


@dataclass(frozen=True)
class DiveLog:
    """Parameters decoded from the log file of a single dive.

    ``parameters`` maps each parameter name to its decoded rows.  Member
    columns are named ``<parameter>_<member>``; a parameter reporting a
    single value is one column named after the parameter itself.
    """

    parameters: Mapping[str, DecodedFile]
    mission: int
    dive: int
    start_secs: float
    sources: tuple[str, ...] = ()
    headers: tuple[Mapping[str, Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


@dataclass(frozen=True)
class LogSeries:
    """Result of :func:`concatenate_logs`.

    ``start_secs`` is the start time of the earliest kept dive; dive
    relative members of every parameter are referenced to it.
    """

    parameters: Mapping[str, DecodedFile] = field(default_factory=dict)
    start_secs: float | None = None
    sources: tuple[str, ...] = ()
    headers: tuple[Mapping[str, Any], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def label(self) -> str | None:
        if not self.sources:
            return None
        if len(self.sources) == 1:
            return self.sources[0]
        return f"{self.sources[0]} (+{len(self.sources) - 1} more)"

    def record_set(self, parameter: str) -> RecordSet:
        """Return the numeric members of ``parameter``."""

        return self.parameters[parameter].record_set


def _ordered_union(catalogues: Sequence[Sequence[str]]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for catalogue in catalogues:
        for name in catalogue:
            seen.setdefault(name, None)
    return tuple(seen)


def _wanted_columns(parameter: str, columns: Sequence[str], wanted: set[str]) -> tuple[str, ...]:
    if parameter in wanted:
        return tuple(columns)
    return tuple(name for name in columns if name in wanted)


def _as_text(value: float) -> str:
    return "" if np.isnan(value) else format(value, "g")


def _stack_parameter(
    parameter: str,
    parts: Sequence[tuple[DecodedFile, float]],
    keep: set[str] | None,
    time_member: str,
) -> DecodedFile | None:
    text_names = _ordered_union([tuple(part.text) for part, _ in parts])
    numeric_names = tuple(
        name
        for name in _ordered_union([part.record_set.variables for part, _ in parts])
        if name not in text_names
    )
    if keep is not None:
        text_names = tuple(name for name in text_names if name in keep)
        numeric_names = tuple(name for name in numeric_names if name in keep)
    if not text_names and not numeric_names:
        return None

    time_name = f"{parameter}_{time_member}"
    numeric: dict[str, list[np.ndarray]] = {name: [] for name in numeric_names}
    text: dict[str, list[str]] = {name: [] for name in text_names}
    info: dict[str, VariableInfo] = {}
    for part, offset in parts:
        record_set = part.record_set
        rows = max(record_set.rows, max((len(column) for column in part.text.values()), default=0))
        for name in numeric_names:
            if record_set.has_variable(name):
                values = record_set.column(name)
                if name == time_name:
                    values = values + offset
                if name in record_set.info:
                    info.setdefault(name, record_set.info[name])
            else:
                values = np.full(rows, np.nan)
            numeric[name].append(values)
        for name in text_names:
            if name in part.text:
                text[name].extend(part.text[name].values)
            elif record_set.has_variable(name):
                text[name].extend(_as_text(value) for value in record_set.column(name))
            else:
                text[name].extend([""] * rows)

    columns: list[NumericColumn | TextColumn] = [
        NumericColumn(
            name,
            np.concatenate(numeric[name]),
            unit=info[name].unit if name in info else None,
        )
        for name in numeric_names
    ]
    columns += [TextColumn(name, tuple(text[name])) for name in text_names]
    sources = _ordered_union([part.record_set.sources for part, _ in parts])
    return assemble_record_set(columns, sources=sources)


def concatenate_logs(
    logs: Sequence[DiveLog],
    options: EngineOptions | Mapping[str, Any] | None = None,
    *,
    time_member: str = LOG_TIME,
    **kwargs: Any,
) -> LogSeries:
    """Concatenate dive logs parameter by parameter in mission and dive order.

    ``period`` keeps the dives whose start time lies in the closed window.
    ``variables`` (alias ``params``) keeps a whole parameter when it lists
    the parameter name and individual members when it lists their column
    names, e.g. ``FINISH_dens``.  The ``time_member`` of every parameter is
    shifted from its own dive start to the start of the earliest kept dive.
    """

    resolved = EngineOptions.resolve(options, kwargs)
    ordered = sorted(logs, key=lambda item: (item.mission, item.dive))
    if resolved.filters_period:
        start, end = resolved.period
        ordered = [item for item in ordered if start <= item.start_secs <= end]
    if not ordered:
        return LogSeries()

    first_start = min(item.start_secs for item in ordered)
    wanted = set(resolved.variables) if resolved.filters_variables else None
    parameters: dict[str, DecodedFile] = {}
    for parameter in _ordered_union([tuple(item.parameters) for item in ordered]):
        parts = [
            (item.parameters[parameter], item.start_secs - first_start)
            for item in ordered
            if parameter in item.parameters
        ]
        keep = None
        if wanted is not None:
            catalogue = _ordered_union(
                [part.record_set.variables + tuple(part.text) for part, _ in parts]
            )
            keep = set(_wanted_columns(parameter, catalogue, wanted))
        stacked = _stack_parameter(parameter, parts, keep, time_member)
        if stacked is not None:
            parameters[parameter] = stacked

    return LogSeries(
        parameters=parameters,
        start_secs=first_start,
        sources=tuple(source for item in ordered for source in item.sources),
        headers=tuple(header for item in ordered for header in item.headers),
    )


def _dive_block(
    series: LogSeries,
    parameter: str,
    time_member: str,
    time_column: str,
    offset: float,
) -> tuple[tuple[str, ...], np.ndarray, np.ndarray]:
    record_set = series.record_set(parameter)
    time_name = f"{parameter}_{time_member}"
    if not record_set.has_variable(time_name):
        raise MissingTimestamp(time_name, source=series.label)
    prefix = f"{parameter}_"
    names = []
    for name in record_set.variables:
        member = name[len(prefix):] if name.startswith(prefix) else name
        if name == time_name:
            names.append(time_column)
        elif parameter == "GC":
            names.append(_MEMBER_RENAMES.get(member, name))
        else:
            names.append(name)
    stamps = record_set.column(time_name) + offset
    present = ~np.isnan(stamps)
    data = np.array(record_set.data[present], dtype=np.float64)
    data[:, record_set.index_of(time_name)] = stamps[present]
    return tuple(names), data, stamps[present]


def merge_log_eng(
    log: LogSeries,
    eng: DiveSeries,
    *,
    time_member: str = LOG_TIME,
) -> DiveSeries:
    """Fold the dive relative log parameters into the engineering series.

    Rows of ``GC``, ``SM_CCo`` and ``STATE`` join the engineering rows on
    the sorted union of elapsed times, after both series are referenced to
    the earlier of their start times.  The ``time_member`` of those
    parameters becomes the engineering time column; ``GC`` members
    ``gcphase`` and ``depth`` become ``GC_phase`` and ``GC_depth``.  Only
    numeric members are merged and on a repeated elapsed time the last row
    wins.  The other log parameters stay in ``log``.
    """

    started = monotonic()
    time_column = eng.time_column or ELAPSED_TIME
    timed = [
        parameter
        for parameter in DIVE_PARAMETERS
        if parameter in log.parameters and log.record_set(parameter).variables
    ]
    if log.start_secs is None or not timed:
        return eng

    starts = [value for value in (log.start_secs, eng.start_secs) if value is not None]
    first_start = min(starts)
    blocks: list[tuple[tuple[str, ...], np.ndarray, np.ndarray]] = []
    info: dict[str, VariableInfo] = {}
    eng_set = eng.record_set
    if eng.start_secs is not None and eng_set.sources:
        stamps = eng_set.timestamps(time_column) + (eng.start_secs - first_start)
        data = np.array(eng_set.data, dtype=np.float64)
        data[:, eng_set.index_of(time_column)] = stamps
        blocks.append((eng_set.variables, data, stamps))
        info.update(eng_set.info)
    for parameter in timed:
        blocks.append(
            _dive_block(log, parameter, time_member, time_column, log.start_secs - first_start)
        )

    index = TimestampIndex.build([stamps for _, _, stamps in blocks])
    columns = ColumnIndex.build([names for names, _, _ in blocks])
    output = allocate(len(index), len(columns))
    for position, (_, data, _) in enumerate(blocks):
        rows, cols, values = collapse_cells(index.positions(position), columns.positions(position), data)
        output[rows, cols] = values
    output[:, columns.names.index(time_column)] = index.values

    result = RecordSet(
        variables=columns.names,
        data=output,
        sources=log.sources + eng_set.sources,
        info={name: details for name, details in info.items() if name in columns.names},
        headers=log.headers + eng_set.headers,
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Merged dive log parameters",
            extra={
                "event": "engine.merge_log_eng",
                "parameters": timed,
                "rows": result.rows,
                "start_secs": first_start,
                "duration": monotonic() - started,
            },
        )
    return DiveSeries(result, first_start, time_column, eng.format)
