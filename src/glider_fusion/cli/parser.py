"""Argument parsing helpers for the glider-fusion CLI."""

from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..engine.options import POLICIES
from ..exporters import exporters_registry
from ..families import FAMILIES, InstrumentFamily
from .workflows import _handle_families, _handle_load


def parse_time(value: str) -> Union[float, datetime]:
    """Parse a ``--period`` boundary given as POSIX seconds or ISO 8601 text."""

    try:
        return float(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid time {value!r}: expected POSIX seconds or an ISO 8601 date"
        ) from None


def _add_family_parser(
    subparsers: Any, family: InstrumentFamily, defaults: Mapping[str, Any]
) -> None:
    family_parser = subparsers.add_parser(
        family.name,
        help=family.description or f"Load a {family.name} deployment.",
    )
    family_parser.add_argument(
        "directory",
        type=Path,
        help="Directory holding the ASCII files of the deployment.",
    )
    family_parser.add_argument(
        "--variables",
        nargs="+",
        default=None,
        metavar="NAME",
        help="Keep only these variables (default: all).",
    )
    family_parser.add_argument(
        "--period",
        nargs=2,
        type=parse_time,
        default=None,
        metavar=("START", "END"),
        help="Keep only rows inside this closed time window (POSIX seconds or ISO 8601).",
    )
    for role in family.roles:
        family_parser.add_argument(
            f"--timestamp-{role}",
            dest=f"timestamp_{role}",
            default=None,
            help=f"Timestamp variable of the {role} files (default: {family.timestamp(role)}).",
        )
    if family.merges:
        family_parser.add_argument(
            "--policy",
            choices=POLICIES,
            default=None,
            help=f"Collision policy used to merge the roles (default: {family.policy}).",
        )
    family_parser.add_argument(
        "--export",
        dest="export",
        choices=sorted(exporters_registry.keys()),
        default=str(defaults.get("export", "csv")),
        help="Output format of the merged record set.",
    )
    family_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the export to this file instead of standard output.",
    )
    family_parser.set_defaults(handler=_handle_load, family=family.name)


def build_parser(config: Optional[Mapping[str, Any]] = None) -> argparse.ArgumentParser:
    config = dict(config or {})
    logging_cfg = dict(config.get("logging", {}))
    cli_cfg_raw = config.get("cli", {})
    cli_cfg = dict(cli_cfg_raw) if isinstance(cli_cfg_raw, Mapping) else {}

    parser = argparse.ArgumentParser(
        prog="glider-fusion",
        description="Concatenate and merge glider ASCII telemetry into one dataset.",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to the TOML configuration file to load.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=logging_cfg.get("level", "info"),
        help="Logging level (e.g. debug, info, warning).",
    )
    parser.add_argument(
        "--log-output",
        dest="log_output",
        default=logging_cfg.get("output", "stderr"),
        help="Logging destination (stdout, stderr or a file path).",
    )
    parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=logging_cfg.get("format", "json"),
        help="Logging formatter (json or text).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    families_parser = subparsers.add_parser(
        "families",
        help="List the supported instrument families and their defaults.",
    )
    families_parser.set_defaults(handler=_handle_families)

    for family in FAMILIES.values():
        _add_family_parser(subparsers, family, cli_cfg)
    return parser
