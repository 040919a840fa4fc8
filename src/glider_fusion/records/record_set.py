"""Immutable record set container shared by decoders and the fusion engine.

A :class:`RecordSet` is the unit every stage consumes and produces: an
ordered catalogue of variable names, a dense ``float64`` matrix with one
column per variable (``NaN`` marks a value that was not recorded) and the
identifiers of the files that contributed rows.  Instances never change
after construction; every transform allocates a new one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Sequence

import numpy as np

from ..common.immutables import freeze_array, freeze_mapping
from ..common.lazy import get_pandas
from ..errors import InvalidTimestamp, MissingTimestamp

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only.
    import pandas as pd

__all__ = ["RecordSet", "VariableInfo"]


@dataclass(frozen=True)
class VariableInfo:
    """Opaque per-variable metadata carried alongside the data matrix."""

    unit: str | None = None
    width: int | None = None
    tags: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", freeze_mapping(self.tags))


@dataclass(frozen=True, eq=False)
class RecordSet:
    """Rows of timestamped observations for a fixed set of variables."""

    variables: tuple[str, ...]
    data: np.ndarray
    sources: tuple[str, ...] = ()
    info: Mapping[str, VariableInfo] = field(default_factory=dict)
    headers: tuple[Mapping[str, Any], ...] = ()

    def __post_init__(self) -> None:
        variables = tuple(str(name) for name in self.variables)
        data = freeze_array(self.data)
        if data.size == 0 and data.ndim != 2:
            data = freeze_array(np.empty((0, len(variables))))
        if data.ndim != 2:
            raise ValueError(f"RecordSet data must be two dimensional, got {data.ndim} axes")
        if data.shape[1] != len(variables):
            raise ValueError(
                "RecordSet data has %d columns but %d variables were declared"
                % (data.shape[1], len(variables))
            )
        if len(set(variables)) != len(variables):
            duplicates = sorted({name for name in variables if variables.count(name) > 1})
            raise ValueError(f"Duplicated variable names: {', '.join(duplicates)}")

        info = dict(self.info)
        unknown = sorted(set(info) - set(variables))
        if unknown:
            raise ValueError(f"Metadata given for unknown variables: {', '.join(unknown)}")

        object.__setattr__(self, "variables", variables)
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "sources", tuple(str(source) for source in self.sources))
        object.__setattr__(self, "info", freeze_mapping(info))
        object.__setattr__(
            self, "headers", tuple(freeze_mapping(header) for header in self.headers)
        )

    @classmethod
    def empty(cls) -> "RecordSet":
        """Return a record set with no rows, no variables and no sources."""

        return cls(variables=(), data=np.empty((0, 0)))

    @classmethod
    def from_columns(
        cls,
        columns: Mapping[str, Sequence[float]],
        *,
        sources: Iterable[str] = (),
        info: Mapping[str, VariableInfo] | None = None,
        headers: Iterable[Mapping[str, Any]] = (),
    ) -> "RecordSet":
        """Build a record set from a name to column mapping."""

        names = tuple(columns)
        if not names:
            return cls(variables=(), data=np.empty((0, 0)), sources=tuple(sources))
        data = np.column_stack([np.asarray(columns[name], dtype=np.float64) for name in names])
        return cls(
            variables=names,
            data=data,
            sources=tuple(sources),
            info=dict(info or {}),
            headers=tuple(headers),
        )

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def label(self) -> str | None:
        """Human readable origin used in error messages."""

        if not self.sources:
            return None
        if len(self.sources) == 1:
            return self.sources[0]
        return f"{self.sources[0]} (+{len(self.sources) - 1} more)"

    def has_variable(self, name: str) -> bool:
        return name in self.variables

    def index_of(self, name: str) -> int:
        try:
            return self.variables.index(name)
        except ValueError:
            raise KeyError(name) from None

    def column(self, name: str) -> np.ndarray:
        """Return a read-only view of the values of ``name``."""

        return self.data[:, self.index_of(name)]

    def unit(self, name: str) -> str | None:
        details = self.info.get(name)
        return details.unit if details is not None else None

    def timestamps(self, name: str) -> np.ndarray:
        """Return the timestamp column ``name`` after validating it.

        Raises :class:`MissingTimestamp` when the variable is not part of the
        catalogue and :class:`InvalidTimestamp` when any row lacks a value.
        """

        if name not in self.variables:
            raise MissingTimestamp(name, source=self.label)
        values = self.column(name)
        missing = int(np.count_nonzero(np.isnan(values)))
        if missing:
            raise InvalidTimestamp(name, source=self.label, count=missing)
        return values

    def same_content(self, other: "RecordSet") -> bool:
        """Return ``True`` when catalogue, sources and values all match."""

        return (
            self.variables == other.variables
            and self.sources == other.sources
            and self.data.shape == other.data.shape
            and bool(np.array_equal(self.data, other.data, equal_nan=True))
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RecordSet):
            return NotImplemented
        return self.same_content(other)

    __hash__ = None  # type: ignore[assignment]

    def __len__(self) -> int:
        return self.rows

    def take(
        self,
        rows: np.ndarray | slice | None = None,
        variables: Sequence[str] | None = None,
    ) -> "RecordSet":
        """Return a new record set restricted to ``rows`` and ``variables``."""

        data = self.data
        if rows is not None:
            data = data[rows, :]
        names = self.variables
        if variables is not None:
            names = tuple(variables)
            data = data[:, [self.index_of(name) for name in names]]
        return RecordSet(
            variables=names,
            data=data,
            sources=self.sources,
            info={name: self.info[name] for name in names if name in self.info},
            headers=self.headers,
        )

    def renamed(self, mapping: Mapping[str, str]) -> "RecordSet":
        """Return a copy whose variables are renamed according to ``mapping``."""

        if not mapping:
            return self
        names = tuple(mapping.get(name, name) for name in self.variables)
        info = {mapping.get(name, name): details for name, details in self.info.items()}
        return RecordSet(
            variables=names,
            data=self.data,
            sources=self.sources,
            info=info,
            headers=self.headers,
        )

    def to_array(self) -> np.ndarray:
        """Return the read-only data matrix, columns ordered as :attr:`variables`."""

        return self.data

    def to_mapping(self) -> dict[str, np.ndarray]:
        """Return a name to column mapping holding the same values as :meth:`to_array`."""

        return {name: self.data[:, index] for index, name in enumerate(self.variables)}

    def to_dataframe(self) -> pd.DataFrame:
        """Return a :class:`~pandas.DataFrame` copy of the record set."""

        pd = get_pandas()
        frame = pd.DataFrame(np.array(self.data, copy=True), columns=list(self.variables))
        frame.attrs["sources"] = list(self.sources)
        frame.attrs["units"] = {name: self.unit(name) for name in self.variables}
        return frame
