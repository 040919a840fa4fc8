"""Concatenation, merge and selection of glider record sets."""

from __future__ import annotations

from .concatenate import concatenate, concatenate_record_sets
from .dives import DiveRecordSet, DiveSeries, concatenate_dives, to_posix
from .logs import DiveLog, LogSeries, concatenate_logs, merge_log_eng
from .merge import (
    DEFAULT_PREDICATE,
    PrefixPredicate,
    RenamePlan,
    RolePredicate,
    has_prefix,
    merge,
    merge_record_sets,
)
from .options import ALL, OUTPUT_FORMATS, POLICIES, EngineOptions, MergeOptions
from .selection import Selection, keep_variables, select, within_period

__all__ = [
    "ALL",
    "DEFAULT_PREDICATE",
    "DiveLog",
    "DiveRecordSet",
    "DiveSeries",
    "EngineOptions",
    "LogSeries",
    "MergeOptions",
    "OUTPUT_FORMATS",
    "POLICIES",
    "PrefixPredicate",
    "RenamePlan",
    "RolePredicate",
    "Selection",
    "concatenate",
    "concatenate_dives",
    "concatenate_logs",
    "concatenate_record_sets",
    "has_prefix",
    "keep_variables",
    "merge",
    "merge_log_eng",
    "merge_record_sets",
    "select",
    "to_posix",
    "within_period",
]
