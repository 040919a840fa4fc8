"""Variable allow-list, time window and output shape adapter."""

from __future__ import annotations

from typing import Any, Mapping, Union

import numpy as np

from ..errors import InvalidOption, MissingTimestamp
from ..records import RecordSet
from .options import EngineOptions

__all__ = ["Selection", "select", "within_period", "keep_variables"]

Selection = Union[RecordSet, dict[str, np.ndarray]]


def within_period(record_set: RecordSet, timestamp: str, start: float, end: float) -> RecordSet:
    """Return the rows whose ``timestamp`` lies in the closed ``[start, end]`` window."""

    if not record_set.has_variable(timestamp):
        raise MissingTimestamp(timestamp, source=record_set.label)
    stamps = record_set.column(timestamp)
    mask = (stamps >= start) & (stamps <= end)
    if bool(mask.all()):
        return record_set
    return record_set.take(rows=mask)


def keep_variables(record_set: RecordSet, names: tuple[str, ...]) -> RecordSet:
    """Return the columns listed in ``names``, preserving the canonical order.

    Names absent from the record set are ignored.
    """

    wanted = set(names)
    kept = tuple(name for name in record_set.variables if name in wanted)
    if kept == record_set.variables:
        return record_set
    return record_set.take(variables=kept)


def select(
    record_set: RecordSet,
    timestamp: str | None,
    options: EngineOptions | Mapping[str, Any] | None = None,
) -> Selection:
    """Filter ``record_set`` and project it to the requested output shape.

    Time filtering runs on the canonical ``timestamp`` column before the
    variable allow-list, so the timestamp itself may be filtered out of the
    result.  The ``array`` shape returns a :class:`RecordSet`; the
    ``mapping`` shape returns a name to column dictionary of read-only
    arrays.
    """

    if not isinstance(options, EngineOptions):
        options = EngineOptions.from_mapping(options)
    if options.is_passthrough:
        return record_set
    result = record_set
    if options.filters_period:
        if timestamp is None:
            raise InvalidOption("period", "Time filtering requires a timestamp variable.")
        start, end = options.period
        result = within_period(result, timestamp, start, end)
    if options.filters_variables:
        result = keep_variables(result, options.variables)
    if options.format == "mapping":
        return result.to_mapping()
    return result
