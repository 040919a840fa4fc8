"""Load a whole deployment directory into one filtered record set.

The pipeline discovers the files of every role of an instrument family,
decodes them one by one, concatenates each role and merges the roles.  A
file that cannot be decoded is reported and skipped; errors raised by the
engine itself abort the load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from time import monotonic
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from .engine import (
    DiveRecordSet,
    EngineOptions,
    MergeOptions,
    Selection,
    concatenate_dives,
    concatenate_logs,
    concatenate_record_sets,
    keep_variables,
    merge_log_eng,
    merge_record_sets,
    select,
)
from .errors import DecodeError, InvalidOption
from .families import InstrumentFamily, get_family
from .records import RecordSet

__all__ = ["DecodeFailure", "LoadResult", "discover_files", "load_deployment"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeFailure:
    """A file skipped because it could not be decoded."""

    path: Path
    role: str
    error: str


@dataclass(frozen=True)
class LoadResult:
    """Outcome of :func:`load_deployment`.

    ``record_set`` is the filtered record set and ``output`` the same data in
    the requested output shape.  ``timestamp`` names the canonical time
    column, ``loaded`` lists the decoded file names per role and
    ``failures`` the skipped files.
    """

    record_set: RecordSet
    output: Selection
    timestamp: str | None
    loaded: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    failures: tuple[DecodeFailure, ...] = ()
    start_secs: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "loaded", MappingProxyType(dict(self.loaded)))
        object.__setattr__(self, "failures", tuple(self.failures))

    @property
    def ok(self) -> bool:
        return not self.failures


def discover_files(directory: Path | str, family: InstrumentFamily) -> dict[str, list[Path]]:
    """Return the regular files of ``directory`` grouped by role, sorted by name."""

    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Deployment directory not found: {root}")
    found: dict[str, list[Path]] = {role: [] for role in family.roles}
    for path in sorted(root.iterdir(), key=lambda item: item.name):
        if not path.is_file():
            continue
        for role in family.roles:
            if family.pattern(role).match(path.name):
                found[role].append(path)
    return found


def _decode_role(
    family: InstrumentFamily,
    role: str,
    paths: Sequence[Path],
    failures: list[DecodeFailure],
) -> list[Any]:
    decoded: list[Any] = []
    for path in paths:
        try:
            decoded.append(family.decode(role, path))
        except (DecodeError, OSError, ValueError) as exc:
            failures.append(DecodeFailure(path=path, role=role, error=str(exc)))
            logger.warning(
                "Error loading %s file %s; skipping.",
                role,
                path.name,
                extra={
                    "event": "pipeline.decode_failed",
                    "family": family.name,
                    "role": role,
                    "path": str(path),
                    "error": str(exc),
                },
            )
    logger.info(
        "%s files loaded: %d of %d.",
        role,
        len(decoded),
        len(paths),
        extra={
            "event": "pipeline.role_loaded",
            "family": family.name,
            "role": role,
            "loaded": len(decoded),
            "found": len(paths),
        },
    )
    return decoded


def _sources(items: Sequence[Any]) -> tuple[str, ...]:
    return tuple(source for item in items for source in item.sources)


def load_deployment(
    directory: Path | str,
    family: InstrumentFamily | str,
    options: EngineOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> LoadResult:
    """Decode, concatenate and merge every file of a deployment directory.

    ``options`` accepts ``format``, ``variables``, ``period``, the role
    timestamps (``timestamp_nav``, ``timestamp_eng``, ``timestamp_a``...)
    and, for families merged under a collision policy, ``policy``.  Role
    timestamps default to the family ones.  For Seaglider the ``eng``
    timestamp names the elapsed time column and the ``log`` one the dive
    relative member of the log parameters.
    """

    if not isinstance(family, InstrumentFamily):
        family = get_family(family)
    started = monotonic()
    files = discover_files(directory, family)
    logger.info(
        "Deployment files found.",
        extra={
            "event": "pipeline.discovered",
            "family": family.name,
            "directory": str(directory),
            "files": {role: len(paths) for role, paths in files.items()},
        },
    )

    failures: list[DecodeFailure] = []
    decoded = {role: _decode_role(family, role, files[role], failures) for role in family.roles}
    loaded = {role: _sources(items) for role, items in decoded.items()}

    if family.merges:
        result = _merge_roles(family, decoded, options, kwargs)
    else:
        result = _stack_dives(family, decoded, options, kwargs)
    record_set, shaped, timestamp, start_secs = result

    logger.info(
        "Deployment loaded.",
        extra={
            "event": "pipeline.done",
            "family": family.name,
            "rows": record_set.rows,
            "variables": len(record_set.variables),
            "failures": len(failures),
            "duration": monotonic() - started,
        },
    )
    return LoadResult(
        record_set=record_set,
        output=shaped,
        timestamp=timestamp,
        loaded=loaded,
        failures=tuple(failures),
        start_secs=start_secs,
    )


def _shape(record_set: RecordSet, output_format: str) -> Selection:
    return record_set.to_mapping() if output_format == "mapping" else record_set


def _merge_roles(
    family: InstrumentFamily,
    decoded: Mapping[str, Sequence[RecordSet]],
    options: EngineOptions | Mapping[str, Any] | None,
    overrides: Mapping[str, Any],
) -> tuple[RecordSet, Selection, str | None, None]:
    resolved = MergeOptions.resolve(options, overrides, aliases=family.aliases)
    timestamp_a = resolved.timestamp_a or family.timestamp_a
    timestamp_b = resolved.timestamp_b or family.timestamp_b
    if timestamp_b is None:
        raise InvalidOption("timestamp_b", f"No timestamp variable for {family.role_b}.")

    role_a = concatenate_record_sets(decoded[family.role_a], timestamp_a)
    role_b = concatenate_record_sets(decoded[family.role_b], timestamp_b)
    merged, canonical = merge_record_sets(
        role_a,
        role_b,
        timestamp_a,
        timestamp_b,
        policy=resolved.policy or family.policy,
        predicate=family.predicate,
        tag_a=family.tag_a,
        tag_b=family.tag_b,
    )
    if canonical is not None:
        merged = select(merged, canonical, replace(resolved, format="array"))
    return merged, _shape(merged, resolved.format), canonical, None


def _stack_dives(
    family: InstrumentFamily,
    decoded: Mapping[str, Sequence[Any]],
    options: EngineOptions | Mapping[str, Any] | None,
    overrides: Mapping[str, Any],
) -> tuple[RecordSet, Selection, str | None, float | None]:
    resolved = MergeOptions.resolve(options, overrides, aliases=family.aliases)
    if resolved.policy is not None:
        raise InvalidOption(
            "policy", f"The {family.name} family stacks dives and takes no merge policy."
        )
    time_column = resolved.timestamp_a or family.timestamp_a

    dives: Sequence[DiveRecordSet] = decoded[family.role_a]
    series = concatenate_dives(dives, time_column, period=resolved.period)
    if family.role_b is not None:
        logs = concatenate_logs(decoded[family.role_b], period=resolved.period)
        series = merge_log_eng(logs, series, time_member=resolved.timestamp_b or family.timestamp_b)

    record_set = series.record_set
    if resolved.filters_variables:
        record_set = keep_variables(record_set, resolved.variables)
    timestamp = time_column if record_set.sources else None
    return record_set, _shape(record_set, resolved.format), timestamp, series.start_secs
