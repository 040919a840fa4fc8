"""Exporter registry rendering a final record set as text."""

from __future__ import annotations

import json
import math
from typing import Any, Dict, Mapping, Protocol

import numpy as np

from ..records import RecordSet


class Exporter(Protocol):
    """Exporter callable protocol."""

    def __call__(self, record_set: RecordSet) -> str:  # pragma: no cover - interface only
        ...


def _normalise(value: Any) -> Any:
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, np.ndarray):
        return [_normalise(item) for item in value.tolist()]
    if isinstance(value, (list, tuple)):
        return [_normalise(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _normalise(item) for key, item in value.items()}
    return value


def _payload(record_set: RecordSet) -> Dict[str, Any]:
    return {
        "variables": list(record_set.variables),
        "units": {name: record_set.unit(name) for name in record_set.variables},
        "sources": list(record_set.sources),
        "data": {name: record_set.column(name) for name in record_set.variables},
    }


def json_exporter(record_set: RecordSet) -> str:
    """Render ``record_set`` as JSON, one list per variable; NaN becomes ``null``."""

    return json.dumps(_normalise(_payload(record_set)), indent=2, sort_keys=True)


def csv_exporter(record_set: RecordSet) -> str:
    """Render ``record_set`` as CSV with a header row; NaN becomes an empty cell."""

    frame = record_set.to_dataframe()
    return frame.to_csv(index=False, na_rep="", lineterminator="\n")


exporters_registry: Dict[str, Exporter] = {
    "json": json_exporter,
    "csv": csv_exporter,
}

__all__ = [
    "Exporter",
    "csv_exporter",
    "exporters_registry",
    "json_exporter",
]
