"""Record set data model."""

from __future__ import annotations

from .columns import Column, DecodedFile, NumericColumn, TextColumn, assemble_record_set
from .indexing import ColumnIndex, TimestampIndex
from .record_set import RecordSet, VariableInfo

__all__ = [
    "Column",
    "ColumnIndex",
    "DecodedFile",
    "NumericColumn",
    "RecordSet",
    "TextColumn",
    "TimestampIndex",
    "VariableInfo",
    "assemble_record_set",
]
