"""Per-format scanners turning one raw ASCII file into one record set."""

from __future__ import annotations

from .dba import read_dba
from .sgeng import read_sgeng
from .sglog import read_sglog
from .sx import decode_sx, read_sx

__all__ = ["decode_sx", "read_dba", "read_sgeng", "read_sglog", "read_sx"]
