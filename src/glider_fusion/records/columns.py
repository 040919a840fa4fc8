"""Typed decoder columns and their assembly into numeric record sets.

Some raw formats interleave text fields with numeric readings.  Decoders
describe every column as either :class:`NumericColumn` or
:class:`TextColumn`; :func:`assemble_record_set` keeps the numeric ones in
the record set matrix and hands the text ones back untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence, Union

import numpy as np

from ..common.immutables import freeze_array
from .record_set import RecordSet, VariableInfo

__all__ = [
    "Column",
    "DecodedFile",
    "NumericColumn",
    "TextColumn",
    "assemble_record_set",
]


@dataclass(frozen=True)
class NumericColumn:
    name: str
    values: np.ndarray
    unit: str | None = None
    width: int | None = None

    def __post_init__(self) -> None:
        values = freeze_array(np.asarray(self.values, dtype=np.float64).reshape(-1))
        object.__setattr__(self, "values", values)

    def __len__(self) -> int:
        return int(self.values.size)


@dataclass(frozen=True)
class TextColumn:
    name: str
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple("" if value is None else str(value) for value in self.values))

    def __len__(self) -> int:
        return len(self.values)


Column = Union[NumericColumn, TextColumn]


@dataclass(frozen=True)
class DecodedFile:
    """Numeric record set plus the text columns set aside by the decoder."""

    record_set: RecordSet
    text: Mapping[str, TextColumn] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", MappingProxyType(dict(self.text)))


def assemble_record_set(
    columns: Sequence[Column],
    *,
    sources: Iterable[str] = (),
    headers: Iterable[Mapping[str, Any]] = (),
) -> DecodedFile:
    """Split ``columns`` by kind and build the numeric :class:`RecordSet`."""

    lengths = {len(column) for column in columns}
    if len(lengths) > 1:
        raise ValueError(f"Columns have different lengths: {sorted(lengths)}")
    rows = lengths.pop() if lengths else 0

    numeric = [column for column in columns if isinstance(column, NumericColumn)]
    text = {column.name: column for column in columns if isinstance(column, TextColumn)}

    if numeric:
        data = np.column_stack([column.values for column in numeric])
    else:
        data = np.empty((rows, 0))
    info = {
        column.name: VariableInfo(unit=column.unit, width=column.width)
        for column in numeric
        if column.unit is not None or column.width is not None
    }
    record_set = RecordSet(
        variables=tuple(column.name for column in numeric),
        data=data,
        sources=tuple(sources),
        info=info,
        headers=tuple(headers),
    )
    return DecodedFile(record_set=record_set, text=text)
