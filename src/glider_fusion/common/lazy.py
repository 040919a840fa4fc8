"""Deferred imports of heavy optional modules."""

from __future__ import annotations

from typing import Any

__all__ = ["get_pandas"]

_PANDAS: Any | None = None


def get_pandas() -> Any:
    """Import :mod:`pandas` on first use and cache the module."""

    global _PANDAS
    if _PANDAS is None:
        import pandas as _pd

        _PANDAS = _pd
    return _PANDAS
