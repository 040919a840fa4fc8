"""Configure the ``glider_fusion`` logger from the ``logging`` config table.

The table accepts ``level`` (a standard level name), ``output`` (``stderr``,
``stdout`` or a file path) and ``format`` (``json`` or ``text``).  Structured
fields passed through ``extra=`` are rendered by :class:`JsonFormatter`.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

__all__ = ["JsonFormatter", "setup_logging"]

LOGGER_NAME = "glider_fusion"

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_RESERVED = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return str(value)


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key in _RESERVED or key.startswith("_"):
                continue
            payload[key] = _jsonable(value)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


def _resolve_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


def _build_handler(output: Any) -> logging.Handler:
    target = str(output or "stderr").strip()
    if target.lower() == "stderr":
        return logging.StreamHandler(sys.stderr)
    if target.lower() == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(target).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def setup_logging(config: Mapping[str, Any] | None = None) -> logging.Logger:
    """Install a single handler on the package logger according to ``config``.

    ``config`` is the whole CLI configuration; only its ``logging`` table is
    read.  Calling the function again replaces the handler installed by the
    previous call.
    """

    table: Mapping[str, Any] = {}
    if config:
        candidate = config.get("logging", {})
        if isinstance(candidate, Mapping):
            table = candidate

    level = _resolve_level(table.get("level", "info"))
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_glider_fusion_handler", False):
            logger.removeHandler(handler)
            handler.close()

    handler = _build_handler(table.get("output"))
    fmt = str(table.get("format", "json")).strip().lower()
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    elif fmt == "text":
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    else:
        handler.close()
        raise ValueError(f"Unknown log format: {fmt}")
    handler._glider_fusion_handler = True  # type: ignore[attr-defined]

    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
