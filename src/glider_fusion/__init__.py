"""Concatenate and merge autonomous glider telemetry.

Per-file record sets decoded from Slocum, SeaExplorer and Seaglider ASCII
files are folded into one record set per role, merged on a canonical time
axis and filtered by variable and time window.
"""

from ._version import __version__
from .engine import (
    DiveLog,
    DiveRecordSet,
    EngineOptions,
    MergeOptions,
    RenamePlan,
    concatenate,
    concatenate_dives,
    concatenate_logs,
    has_prefix,
    merge,
    merge_log_eng,
    select,
    to_posix,
)
from .errors import (
    DecodeError,
    GliderFusionError,
    InconsistentData,
    InvalidFormat,
    InvalidOption,
    InvalidTimestamp,
    MissingTimestamp,
)
from .exporters import exporters_registry
from .families import FAMILIES, InstrumentFamily, get_family
from .pipeline import LoadResult, load_deployment
from .records import RecordSet, VariableInfo

__all__ = [
    "DecodeError",
    "DiveLog",
    "DiveRecordSet",
    "EngineOptions",
    "FAMILIES",
    "GliderFusionError",
    "InconsistentData",
    "InstrumentFamily",
    "InvalidFormat",
    "InvalidOption",
    "InvalidTimestamp",
    "LoadResult",
    "MergeOptions",
    "MissingTimestamp",
    "RecordSet",
    "RenamePlan",
    "VariableInfo",
    "__version__",
    "concatenate",
    "concatenate_dives",
    "concatenate_logs",
    "exporters_registry",
    "get_family",
    "has_prefix",
    "load_deployment",
    "merge",
    "merge_log_eng",
    "select",
    "to_posix",
]
