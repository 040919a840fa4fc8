"""Validated option records accepted by the engine entry points.

Options arrive as plain keyword mappings (from the CLI, from
``pyproject.toml`` or from callers).  They are converted once into frozen
records with a fixed set of fields; unknown keys and malformed values fail
with :class:`~glider_fusion.errors.InvalidOption` before any data is touched.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from numbers import Real
from typing import Any, ClassVar, TypeVar

from ..errors import InvalidFormat, InvalidOption

__all__ = [
    "ALL",
    "OUTPUT_FORMATS",
    "POLICIES",
    "EngineOptions",
    "MergeOptions",
    "Period",
    "VariableFilter",
]

ALL = "all"
OUTPUT_FORMATS = ("array", "mapping")
POLICIES = ("rename", "combine")

_FORMAT_ALIASES: Mapping[str, str] = {"struct": "mapping", "dict": "mapping", "matrix": "array"}

VariableFilter = str | tuple[str, ...]
Period = str | tuple[float, float]

_OptionsT = TypeVar("_OptionsT", bound="EngineOptions")


def _is_all(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() == ALL


def _as_posix(value: Any, option: str) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidOption(option, f"Invalid {option} boundary: {value!r}.")
    numeric = float(value)
    if not math.isfinite(numeric):
        raise InvalidOption(option, f"Invalid {option} boundary: {value!r}.")
    return numeric


def normalise_format(value: Any) -> str:
    """Return the canonical output shape name or raise :class:`InvalidFormat`."""

    if not isinstance(value, str):
        raise InvalidFormat(value)
    name = value.strip().lower()
    name = _FORMAT_ALIASES.get(name, name)
    if name not in OUTPUT_FORMATS:
        raise InvalidFormat(value)
    return name


def normalise_variables(value: Any, option: str = "variables") -> VariableFilter:
    if value is None or _is_all(value):
        return ALL
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable) and not isinstance(value, Mapping):
        names = tuple(value)
        if all(isinstance(name, str) for name in names):
            return names
    raise InvalidOption(option, f"Invalid {option} filter: {value!r}.")


def normalise_period(value: Any, option: str = "period") -> Period:
    if value is None or _is_all(value):
        return ALL
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        raise InvalidOption(option, f"Invalid {option}: {value!r}.")
    bounds = tuple(value)
    if len(bounds) != 2:
        raise InvalidOption(option, f"Invalid {option}: expected [start, end], got {value!r}.")
    start = _as_posix(bounds[0], option)
    end = _as_posix(bounds[1], option)
    if start > end:
        raise InvalidOption(option, f"Invalid {option}: start {start!r} is after end {end!r}.")
    return (start, end)


@dataclass(frozen=True)
class EngineOptions:
    """Filtering and output shape shared by every entry point."""

    format: str = "array"
    variables: VariableFilter = ALL
    period: Period = ALL

    ALIASES: ClassVar[Mapping[str, str]] = {
        "sensors": "variables",
        "columns": "variables",
        "params": "variables",
    }

    def __post_init__(self) -> None:
        object.__setattr__(self, "format", normalise_format(self.format))
        object.__setattr__(self, "variables", normalise_variables(self.variables))
        object.__setattr__(self, "period", normalise_period(self.period))

    @classmethod
    def from_mapping(
        cls: type[_OptionsT],
        options: Mapping[str, Any] | None = None,
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> _OptionsT:
        """Build an options record, rejecting keys that are not fields."""

        if isinstance(options, cls):
            return options
        if isinstance(options, EngineOptions):
            return cls.resolve(options, aliases=aliases)
        known = {item.name for item in fields(cls)}
        lookup = {**cls.ALIASES, **(aliases or {})}
        values: dict[str, Any] = {}
        for key, value in (options or {}).items():
            name = str(key).strip().lower()
            name = lookup.get(name, name)
            if name not in known:
                raise InvalidOption(str(key))
            values[name] = value
        return cls(**values)

    @classmethod
    def resolve(
        cls: type[_OptionsT],
        options: "EngineOptions | Mapping[str, Any] | None",
        overrides: Mapping[str, Any] | None = None,
        *,
        aliases: Mapping[str, str] | None = None,
    ) -> _OptionsT:
        """Combine a base ``options`` value with keyword ``overrides``."""

        if isinstance(options, cls) and not overrides:
            return options
        if isinstance(options, EngineOptions):
            base: dict[str, Any] = {
                item.name: getattr(options, item.name)
                for item in fields(options)
                if item.name in {entry.name for entry in fields(cls)}
            }
        else:
            base = dict(options or {})
        return cls.from_mapping({**base, **dict(overrides or {})}, aliases=aliases)

    @property
    def filters_variables(self) -> bool:
        return self.variables != ALL

    @property
    def filters_period(self) -> bool:
        return self.period != ALL

    @property
    def is_passthrough(self) -> bool:
        """``True`` when applying these options leaves a record set untouched."""

        return self.format == "array" and not self.filters_variables and not self.filters_period


@dataclass(frozen=True)
class MergeOptions(EngineOptions):
    """Options of the two-role merge: timestamps per role and collision policy."""

    timestamp_a: str | None = None
    timestamp_b: str | None = None
    policy: str | None = None

    ALIASES: ClassVar[Mapping[str, str]] = {
        **EngineOptions.ALIASES,
        "timea": "timestamp_a",
        "timeb": "timestamp_b",
    }

    def __post_init__(self) -> None:
        super().__post_init__()
        for name in ("timestamp_a", "timestamp_b"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, str) or not value):
                raise InvalidOption(name, f"Invalid {name}: {value!r}.")
        if self.policy is None:
            return
        policy = self.policy.strip().lower() if isinstance(self.policy, str) else self.policy
        if policy not in POLICIES:
            raise InvalidOption("policy", f"Invalid merge policy: {self.policy!r}.")
        object.__setattr__(self, "policy", policy)
