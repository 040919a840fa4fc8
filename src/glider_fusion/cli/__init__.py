"""Command line interface of glider-fusion."""

from __future__ import annotations

from .app import main, run_cli
from .errors import CliError

__all__ = ["CliError", "main", "run_cli"]
