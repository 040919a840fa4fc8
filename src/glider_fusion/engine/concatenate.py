"""Fold many record sets of the same role into one deployment record set."""

from __future__ import annotations

import logging
from time import monotonic
from typing import Any, Mapping, Sequence

from ..records import ColumnIndex, RecordSet, TimestampIndex, VariableInfo
from ._scatter import allocate, collapse_cells, scatter_checked
from .options import EngineOptions
from .selection import Selection, select

__all__ = ["concatenate", "concatenate_record_sets"]

logger = logging.getLogger(__name__)


def _first_info(record_sets: Sequence[RecordSet]) -> dict[str, VariableInfo]:
    info: dict[str, VariableInfo] = {}
    for record_set in record_sets:
        for name, details in record_set.info.items():
            info.setdefault(name, details)
    return info


def concatenate_record_sets(record_sets: Sequence[RecordSet], timestamp: str) -> RecordSet:
    """Combine same-role ``record_sets`` sharing the ``timestamp`` variable.

    The output holds the sorted union of variables and one row per distinct
    timestamp, in ascending order.  Inputs are scattered in order; a cell
    already holding a value keeps it and a present, differing value raises
    :class:`~glider_fusion.errors.InconsistentData`.  Within one input the
    last sensor cycle wins for a repeated timestamp.
    """

    if not record_sets:
        return RecordSet.empty()

    started = monotonic()
    stamps = [record_set.timestamps(timestamp) for record_set in record_sets]
    columns = ColumnIndex.build([record_set.variables for record_set in record_sets])
    times = TimestampIndex.build(stamps)

    output = allocate(len(times), len(columns))
    for position, record_set in enumerate(record_sets):
        rows, cols, values = collapse_cells(
            times.positions(position), columns.positions(position), record_set.data
        )
        scatter_checked(
            output,
            rows,
            cols,
            values,
            names=columns.names,
            stamps=times.values,
        )

    result = RecordSet(
        variables=columns.names,
        data=output,
        sources=tuple(source for record_set in record_sets for source in record_set.sources),
        info=_first_info(record_sets),
        headers=tuple(header for record_set in record_sets for header in record_set.headers),
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Concatenated record sets",
            extra={
                "event": "engine.concatenate",
                "inputs": len(record_sets),
                "rows": result.rows,
                "variables": len(result.variables),
                "duration": monotonic() - started,
            },
        )
    return result


def concatenate(
    record_sets: Sequence[RecordSet],
    timestamp: str,
    options: EngineOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> Selection:
    """Concatenate ``record_sets`` and apply the filtering ``options``.

    Options may be given as an :class:`EngineOptions` record, as a mapping
    or as keyword arguments (``format``, ``variables``/``sensors``,
    ``period``).  An empty input list yields an empty record set.
    """

    resolved = EngineOptions.resolve(options, kwargs)
    result = concatenate_record_sets(list(record_sets), timestamp)
    if not record_sets:
        return result.to_mapping() if resolved.format == "mapping" else result
    return select(result, timestamp, resolved)
