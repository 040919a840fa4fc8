"""Align two record sets of different roles on one canonical time axis.

Two collision policies are available:

``rename``
    Variables present in both roles are kept twice under disjoint names.
    A :data:`RolePredicate` decides which instance is renamed: when it
    holds for a duplicated name, the instance from role A receives
    ``tag_a``; otherwise the instance from role B receives ``tag_b``.

``combine``
    Variables present in both roles share one output column.  Values
    recorded by both roles at the same timestamp must agree; role B fills
    the cells role A left missing.

In both cases rows that only exist because of role B timestamps get the
role A timestamp column back-filled, so every output row carries a value in
the canonical time column ``timestamp_a``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import monotonic
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Sequence

import numpy as np

from ..errors import InvalidOption
from ..records import ColumnIndex, RecordSet, TimestampIndex, VariableInfo
from ._scatter import allocate, collapse_cells, last_rows, scatter_checked
from .options import MergeOptions
from .selection import Selection, select

__all__ = [
    "DEFAULT_PREDICATE",
    "PrefixPredicate",
    "RenamePlan",
    "RolePredicate",
    "has_prefix",
    "merge",
    "merge_record_sets",
]

logger = logging.getLogger(__name__)

RolePredicate = Callable[[str], bool]


@dataclass(frozen=True)
class PrefixPredicate:
    """Role predicate matching names that start with ``prefix``."""

    prefix: str

    def __call__(self, name: str) -> bool:
        return name.startswith(self.prefix)


def has_prefix(prefix: str) -> RolePredicate:
    """Return a predicate telling whether a name carries ``prefix``."""

    return PrefixPredicate(prefix)


DEFAULT_PREDICATE: RolePredicate = has_prefix("sci_")
DEFAULT_TAG_A = "gld_dup_"
DEFAULT_TAG_B = "sci_dup_"


@dataclass(frozen=True)
class RenamePlan:
    """Renaming of the variables both roles have in common."""

    a: Mapping[str, str] = field(default_factory=dict)
    b: Mapping[str, str] = field(default_factory=dict)
    duplicates: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "a", MappingProxyType(dict(self.a)))
        object.__setattr__(self, "b", MappingProxyType(dict(self.b)))
        object.__setattr__(self, "duplicates", tuple(self.duplicates))

    @classmethod
    def build(
        cls,
        names_a: Iterable[str],
        names_b: Iterable[str],
        *,
        predicate: RolePredicate = DEFAULT_PREDICATE,
        tag_a: str = DEFAULT_TAG_A,
        tag_b: str = DEFAULT_TAG_B,
    ) -> "RenamePlan":
        duplicates = tuple(sorted(set(names_a) & set(names_b)))
        rename_a: dict[str, str] = {}
        rename_b: dict[str, str] = {}
        for name in duplicates:
            if predicate(name):
                rename_a[name] = tag_a + name
            else:
                rename_b[name] = tag_b + name
        return cls(a=rename_a, b=rename_b, duplicates=duplicates)

    def apply_a(self, names: Sequence[str]) -> tuple[str, ...]:
        return tuple(self.a.get(name, name) for name in names)

    def apply_b(self, names: Sequence[str]) -> tuple[str, ...]:
        return tuple(self.b.get(name, name) for name in names)

    def __bool__(self) -> bool:
        return bool(self.duplicates)


def _merge_renamed(
    a: RecordSet,
    b: RecordSet,
    timestamp_a: str,
    timestamp_b: str,
    *,
    predicate: RolePredicate,
    tag_a: str,
    tag_b: str,
) -> RecordSet:
    plan = RenamePlan.build(a.variables, b.variables, predicate=predicate, tag_a=tag_a, tag_b=tag_b)
    if plan:
        logger.debug(
            "Renaming duplicated variables",
            extra={
                "event": "engine.merge.rename",
                "renamed_a": dict(plan.a),
                "renamed_b": dict(plan.b),
            },
        )
    a = a.renamed(plan.a)
    b = b.renamed(plan.b)
    stamps_a = a.timestamps(timestamp_a)
    stamps_b = b.timestamps(timestamp_b)
    times = TimestampIndex.build([stamps_a, stamps_b])

    width_a = len(a.variables)
    output = allocate(len(times), width_a + len(b.variables))
    targets, rows = last_rows(times.positions(0))
    output[targets, :width_a] = a.data[rows]
    targets, rows = last_rows(times.positions(1))
    output[targets, width_a:] = b.data[rows]

    column_a = a.index_of(timestamp_a)
    column_b = width_a + b.index_of(timestamp_b)
    unfilled = np.isnan(output[:, column_a])
    output[unfilled, column_a] = output[unfilled, column_b]

    return RecordSet(
        variables=a.variables + b.variables,
        data=output,
        sources=a.sources + b.sources,
        info={**a.info, **b.info},
        headers=a.headers + b.headers,
    )


def _merge_combined(a: RecordSet, b: RecordSet, timestamp_a: str, timestamp_b: str) -> RecordSet:
    stamps_a = a.timestamps(timestamp_a)
    stamps_b = b.timestamps(timestamp_b)
    times = TimestampIndex.build([stamps_a, stamps_b])
    columns = ColumnIndex.build([a.variables, b.variables])

    output = allocate(len(times), len(columns))
    targets_a, rows_a = last_rows(times.positions(0))
    output[np.ix_(targets_a, columns.positions(0))] = a.data[rows_a]

    targets_b, rows_b = last_rows(times.positions(1))
    cells = collapse_cells(targets_b, columns.positions(1), b.data[rows_b])
    scatter_checked(output, *cells, names=columns.names, stamps=times.values, overwrite=True)

    column_a = columns.names.index(timestamp_a)
    output[targets_b, column_a] = stamps_b[rows_b]

    info: dict[str, VariableInfo] = dict(b.info)
    info.update(a.info)
    return RecordSet(
        variables=columns.names,
        data=output,
        sources=a.sources + b.sources,
        info=info,
        headers=a.headers + b.headers,
    )


def merge_record_sets(
    a: RecordSet,
    b: RecordSet,
    timestamp_a: str,
    timestamp_b: str,
    *,
    policy: str = "rename",
    predicate: RolePredicate = DEFAULT_PREDICATE,
    tag_a: str = DEFAULT_TAG_A,
    tag_b: str = DEFAULT_TAG_B,
) -> tuple[RecordSet, str | None]:
    """Merge ``a`` and ``b`` returning the result and its canonical time column.

    When one side has no sources the other side is returned unchanged.  The
    canonical time column is ``None`` when both sides are empty, which
    disables time filtering.
    """

    if not a.sources and not b.sources:
        return a, None
    if not b.sources:
        return a, timestamp_a
    if not a.sources:
        return b, timestamp_b

    started = monotonic()
    if policy == "rename":
        result = _merge_renamed(
            a, b, timestamp_a, timestamp_b, predicate=predicate, tag_a=tag_a, tag_b=tag_b
        )
    elif policy == "combine":
        result = _merge_combined(a, b, timestamp_a, timestamp_b)
    else:
        raise InvalidOption("policy", f"Invalid merge policy: {policy!r}.")
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "Merged record sets",
            extra={
                "event": "engine.merge",
                "policy": policy,
                "rows_a": a.rows,
                "rows_b": b.rows,
                "rows": result.rows,
                "variables": len(result.variables),
                "duration": monotonic() - started,
            },
        )
    return result, timestamp_a


def merge(
    a: RecordSet,
    b: RecordSet,
    timestamp_a: str | None = None,
    timestamp_b: str | None = None,
    options: MergeOptions | Mapping[str, Any] | None = None,
    *,
    predicate: RolePredicate = DEFAULT_PREDICATE,
    tag_a: str = DEFAULT_TAG_A,
    tag_b: str = DEFAULT_TAG_B,
    aliases: Mapping[str, str] | None = None,
    **kwargs: Any,
) -> Selection:
    """Merge two role record sets, then filter and shape the result.

    Timestamp names passed positionally take precedence over the
    ``timestamp_a``/``timestamp_b`` options.  Remaining options are
    ``format``, ``variables``, ``period`` and ``policy``; ``aliases`` maps
    family specific option names (``timenav``, ``sensors``...) onto them.
    """

    resolved = MergeOptions.resolve(options, kwargs, aliases=aliases)
    timestamp_a = timestamp_a or resolved.timestamp_a
    timestamp_b = timestamp_b or resolved.timestamp_b
    if timestamp_a is None:
        raise InvalidOption("timestamp_a", "No timestamp variable given for the first role.")
    if timestamp_b is None:
        raise InvalidOption("timestamp_b", "No timestamp variable given for the second role.")

    result, canonical = merge_record_sets(
        a,
        b,
        timestamp_a,
        timestamp_b,
        policy=resolved.policy or "rename",
        predicate=predicate,
        tag_a=tag_a,
        tag_b=tag_b,
    )
    if canonical is None:
        return result.to_mapping() if resolved.format == "mapping" else result
    return select(result, canonical, resolved)
