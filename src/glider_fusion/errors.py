"""Error taxonomy shared by the glider fusion engine and its collaborators."""

from __future__ import annotations

from typing import Any, Mapping, Optional

__all__ = [
    "DecodeError",
    "GliderFusionError",
    "InconsistentData",
    "InvalidFormat",
    "InvalidOption",
    "InvalidTimestamp",
    "MissingTimestamp",
    "normalise_context",
]

_SCALARS = (str, int, float, bool)


def normalise_context(context: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Return ``context`` with every value reduced to a JSON scalar."""

    return {
        str(key): value if value is None or isinstance(value, _SCALARS) else str(value)
        for key, value in (context or {}).items()
    }


class GliderFusionError(RuntimeError):
    """Base class for every failure raised while combining glider data."""

    category = "runtime"

    def __init__(self, message: str, *, context: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message)
        self.context = normalise_context(context)


class MissingTimestamp(GliderFusionError):
    """A required timestamp variable is absent from a record set."""

    category = "data"

    def __init__(
        self,
        variable: str,
        *,
        source: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        where = f" in {source}" if source else ""
        super().__init__(
            message or f"Missing timestamp variable{where}: {variable}.",
            context={"variable": variable, "source": source},
        )
        self.variable = variable
        self.source = source


class InvalidTimestamp(MissingTimestamp):
    """The timestamp variable is present but some of its values are missing."""

    def __init__(self, variable: str, *, source: Optional[str] = None, count: int = 0) -> None:
        where = f" in {source}" if source else ""
        super().__init__(
            variable,
            source=source,
            message=f"Missing values in timestamp variable{where}: {variable} ({count} rows).",
        )
        self.count = count
        self.context = {**self.context, "count": count}


class InconsistentData(GliderFusionError):
    """Two inputs disagree on a present value for the same cell."""

    category = "data"

    def __init__(
        self,
        variable: str,
        timestamp: float,
        previous: float,
        current: float,
    ) -> None:
        super().__init__(
            f"Inconsistent value of {variable} at {timestamp!r}: {previous!r} {current!r}.",
            context={
                "variable": variable,
                "timestamp": timestamp,
                "previous": previous,
                "current": current,
            },
        )
        self.variable = variable
        self.timestamp = timestamp
        self.previous = previous
        self.current = current


class InvalidFormat(GliderFusionError):
    """An unrecognised output shape was requested."""

    category = "usage"

    def __init__(self, output_format: object) -> None:
        super().__init__(
            f"Invalid output format: {output_format}.",
            context={"format": output_format},
        )
        self.format = output_format


class InvalidOption(GliderFusionError):
    """An unknown or malformed configuration entry was supplied."""

    category = "usage"

    def __init__(self, option: str, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Invalid option: {option}.",
            context={"option": option},
        )
        self.option = option


class DecodeError(GliderFusionError):
    """A raw file does not follow the layout expected by its decoder."""

    category = "io"

    def __init__(self, message: str, *, source: Optional[str] = None, line: Optional[int] = None) -> None:
        prefix = f"{source}: " if source else ""
        suffix = f" (line {line})" if line is not None else ""
        super().__init__(
            f"{prefix}{message}{suffix}",
            context={"source": source, "line": line},
        )
        self.source = source
        self.line = line
