"""Helpers to transform mutable containers into immutable counterparts."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import numpy as np

__all__ = ["freeze_array", "freeze_mapping", "freeze_value"]


_EMPTY_MAPPING: Mapping[str, Any] = MappingProxyType({})


def freeze_value(value: Any) -> Any:
    """Recursively convert mutable containers into immutable counterparts."""

    if isinstance(value, Mapping):
        return MappingProxyType({str(key): freeze_value(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze_value(item) for item in value)
    return value


def freeze_mapping(payload: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return an immutable view for a mapping, freezing nested structures."""

    if not payload:
        return _EMPTY_MAPPING
    return MappingProxyType({str(key): freeze_value(value) for key, value in payload.items()})


def freeze_array(values: Any) -> np.ndarray:
    """Return a write-protected ``float64`` array holding ``values``.

    Arrays that are already read-only ``float64`` are returned unchanged so
    views handed between stages are not copied twice.
    """

    if (
        isinstance(values, np.ndarray)
        and values.dtype == np.float64
        and not values.flags.writeable
    ):
        base = values.base
        if base is None or (isinstance(base, np.ndarray) and not base.flags.writeable):
            return values
    array = np.array(values, dtype=np.float64, copy=True)
    array.flags.writeable = False
    return array
