"""CLI failures and the exit status of each error category.

Every :class:`~glider_fusion.errors.GliderFusionError` carries a
``category`` and a ``context``.  The CLI keeps both, maps the category
onto the process exit status and logs the failure once as a ``cli.error``
record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..errors import GliderFusionError, normalise_context

__all__ = ["STATUS_CODES", "CliError", "ErrorPayload", "log_cli_error"]

logger = logging.getLogger(__name__)

STATUS_CODES: Mapping[str, int] = MappingProxyType(
    {"runtime": 1, "usage": 2, "io": 3, "not_found": 4, "data": 5}
)


@dataclass(frozen=True)
class ErrorPayload:
    """What the CLI reports about a failure."""

    category: str
    message: str
    context: Mapping[str, Any]

    @property
    def status_code(self) -> int:
        return STATUS_CODES.get(self.category, STATUS_CODES["runtime"])

    def as_dict(self) -> dict[str, Any]:
        return {
            "status_code": self.status_code,
            "category": self.category,
            "message": self.message,
            "context": dict(self.context),
        }


class CliError(GliderFusionError):
    """A failure that ends the CLI with the exit status of its category."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "runtime",
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message, context=context)
        self.category = category if category in STATUS_CODES else "runtime"
        self.logged = False

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.category]

    @property
    def payload(self) -> ErrorPayload:
        return ErrorPayload(category=self.category, message=str(self), context=self.context)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "CliError":
        """Translate an engine, I/O or usage failure into a :class:`CliError`."""

        if isinstance(exc, CliError):
            return exc
        if isinstance(exc, GliderFusionError):
            return cls(str(exc), category=exc.category, context=exc.context)
        if isinstance(exc, FileNotFoundError):
            return cls(str(exc), category="not_found", context={"path": exc.filename})
        if isinstance(exc, OSError):
            return cls(str(exc), category="io", context={"path": exc.filename})
        if isinstance(exc, ValueError):
            return cls(str(exc), category="usage")
        return cls(str(exc))


def log_cli_error(error: CliError, *, exc_info: Optional[BaseException] = None) -> None:
    """Log ``error`` as a ``cli.error`` record unless it was already logged."""

    if error.logged:
        return
    payload = error.payload
    logger.error(
        payload.message,
        extra={
            "event": "cli.error",
            "category": payload.category,
            "status_code": payload.status_code,
            "context": normalise_context(payload.context),
        },
        exc_info=exc_info,
    )
    error.logged = True
