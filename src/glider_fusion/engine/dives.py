"""Dive ordered concatenation of Seaglider engineering record sets.

Each engineering file holds one dive whose time column counts seconds
elapsed since the dive started.  Concatenation orders the dives by mission
and dive number, re-references every elapsed time column to the start of
the earliest kept dive and stacks the rows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np

from ..errors import MissingTimestamp
from ..records import ColumnIndex, RecordSet, VariableInfo
from ._scatter import allocate
from .options import EngineOptions
from .selection import Selection

__all__ = ["DiveRecordSet", "DiveSeries", "concatenate_dives", "to_posix"]

logger = logging.getLogger(__name__)

ELAPSED_TIME = "elaps_t"


@dataclass(frozen=True)
class DiveRecordSet:
    """Record set of a single dive together with its identification."""

    record_set: RecordSet
    mission: int
    dive: int
    start_secs: float

    @property
    def sources(self) -> tuple[str, ...]:
        return self.record_set.sources


@dataclass(frozen=True)
class DiveSeries:
    """Result of :func:`concatenate_dives`.

    ``start_secs`` is the POSIX start time of the earliest kept dive, or
    ``None`` when no dive was kept.
    """

    record_set: RecordSet
    start_secs: float | None
    time_column: str = ELAPSED_TIME
    format: str = "array"

    @property
    def output(self) -> Selection:
        if self.format == "mapping":
            return self.record_set.to_mapping()
        return self.record_set

    def to_posix(self, name: str = "time") -> RecordSet:
        return to_posix(self.record_set, self.start_secs, time_column=self.time_column, name=name)


def to_posix(
    record_set: RecordSet,
    start_secs: float | None,
    *,
    time_column: str = ELAPSED_TIME,
    name: str = "time",
) -> RecordSet:
    """Append a POSIX time column computed from the elapsed time column."""

    if start_secs is None or not record_set.sources:
        return record_set
    if not record_set.has_variable(time_column):
        raise MissingTimestamp(time_column, source=record_set.label)
    posix = record_set.column(time_column) + float(start_secs)
    info = dict(record_set.info)
    info[name] = VariableInfo(unit="s")
    return RecordSet(
        variables=record_set.variables + (name,),
        data=np.column_stack([record_set.data, posix]),
        sources=record_set.sources,
        info=info,
        headers=record_set.headers,
    )


def concatenate_dives(
    dives: Sequence[DiveRecordSet],
    time_column: str = ELAPSED_TIME,
    options: EngineOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> DiveSeries:
    """Stack ``dives`` in mission and dive order.

    ``period`` keeps the dives whose start time lies in the closed window and
    ``variables`` (alias ``columns``) restricts the output columns.  Rows are
    stacked without deduplication.
    """

    resolved = EngineOptions.resolve(options, kwargs)
    ordered = sorted(dives, key=lambda item: (item.mission, item.dive))
    if resolved.filters_period:
        start, end = resolved.period
        ordered = [item for item in ordered if start <= item.start_secs <= end]
    if not ordered:
        return DiveSeries(RecordSet.empty(), None, time_column, resolved.format)

    columns = ColumnIndex.build([item.record_set.variables for item in ordered])
    names = columns.names
    if resolved.filters_variables:
        wanted = set(resolved.variables)
        names = tuple(name for name in names if name in wanted)
    lookup = {name: position for position, name in enumerate(names)}

    first_start = min(item.start_secs for item in ordered)
    blocks = []
    info: dict[str, VariableInfo] = {}
    for item in ordered:
        record_set = item.record_set
        block = allocate(record_set.rows, len(names))
        for index, name in enumerate(record_set.variables):
            target = lookup.get(name)
            if target is None:
                continue
            values = record_set.data[:, index]
            if name == time_column:
                values = values + (item.start_secs - first_start)
            block[:, target] = values
            if name in record_set.info:
                info.setdefault(name, record_set.info[name])
        blocks.append(block)

    result = RecordSet(
        variables=names,
        data=np.vstack(blocks),
        sources=tuple(source for item in ordered for source in item.sources),
        info=info,
        headers=tuple(header for item in ordered for header in item.record_set.headers),
    )
    logger.debug(
        "Concatenated dives",
        extra={
            "event": "engine.concatenate_dives",
            "dives": len(ordered),
            "rows": result.rows,
            "start_secs": first_start,
        },
    )
    return DiveSeries(result, first_start, time_column, resolved.format)
