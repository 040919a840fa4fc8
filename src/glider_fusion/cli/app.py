"""Command line application entry point for glider-fusion."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

from ..errors import GliderFusionError
from ..logging.config import setup_logging
from .errors import CliError, log_cli_error
from .io import load_cli_config
from .parser import build_parser

CommandHandler = Callable[[argparse.Namespace, Mapping[str, Any]], str]


def _preliminary_parser() -> argparse.ArgumentParser:
    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument(
        "--config",
        dest="config_path",
        type=Path,
        default=None,
        help="Path to the TOML configuration file to load.",
    )
    config_parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        help="Logging level (default: info).",
    )
    config_parser.add_argument(
        "--log-output",
        dest="log_output",
        default=None,
        help="Logging destination (stdout, stderr or a file path).",
    )
    config_parser.add_argument(
        "--log-format",
        dest="log_format",
        choices=("json", "text"),
        default=None,
        help="Logging formatter (json or text).",
    )
    return config_parser


def _report(exc: CliError) -> None:
    log_cli_error(exc, exc_info=exc)
    message = str(exc)
    if message:
        sys.stdout.write(message)
        if not message.endswith("\n"):
            sys.stdout.write("\n")


def run_cli(args: Optional[Sequence[str]] = None) -> str:
    """Execute the glider-fusion command line interface."""

    preliminary, remaining = _preliminary_parser().parse_known_args(args)
    remaining = list(remaining)

    try:
        config = load_cli_config(preliminary.config_path)
    except (GliderFusionError, ValueError) as exc:
        error = CliError(
            f"Invalid configuration file: {exc}",
            category="usage",
            context={"config_path": preliminary.config_path},
        )
        _report(error)
        raise SystemExit(error.status_code) from exc

    logging_config = dict(config.get("logging", {}))
    if preliminary.log_level is not None:
        logging_config["level"] = preliminary.log_level
    if preliminary.log_output is not None:
        logging_config["output"] = preliminary.log_output
    if preliminary.log_format is not None:
        logging_config["format"] = preliminary.log_format
    logging_config.setdefault("level", "info")
    logging_config.setdefault("output", "stderr")
    logging_config.setdefault("format", "json")
    config["logging"] = logging_config
    try:
        setup_logging(config)
    except (OSError, ValueError) as exc:
        error = CliError(str(exc), category="usage", context={"logging": logging_config})
        sys.stdout.write(f"{error}\n")
        raise SystemExit(error.status_code) from exc

    parser = build_parser(config)
    parser.set_defaults(config_path=preliminary.config_path)
    parser.set_defaults(log_level=logging_config.get("level"))
    parser.set_defaults(log_output=logging_config.get("output"))
    parser.set_defaults(log_format=logging_config.get("format"))
    namespace = parser.parse_args(remaining, namespace=preliminary)
    namespace.config = config

    handler = getattr(namespace, "handler", None)
    if handler is None:
        raise CliError(
            f"Unknown command '{getattr(namespace, 'command', None)}'.",
            category="usage",
            context={"command": getattr(namespace, "command", None)},
        )

    try:
        result = handler(namespace, config=config)
    except CliError as exc:
        _report(exc)
        raise SystemExit(exc.status_code) from exc
    if result:
        sys.stdout.write(result)
        if not result.endswith("\n"):
            sys.stdout.write("\n")
    return result


def main() -> None:  # pragma: no cover - thin wrapper
    run_cli()


if __name__ == "__main__":  # pragma: no cover - CLI invocation guard
    main()
