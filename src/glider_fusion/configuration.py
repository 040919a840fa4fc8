"""Project configuration read from the ``[tool.glider_fusion]`` table.

The table accepts four sub-tables:

``defaults``
    Engine options (``variables``, ``period``, ``format``) applied to every
    deployment load.
``families.<name>``
    Timestamp, pattern, tag and ``predicate_prefix`` overrides of a
    registered instrument family.
``cli``
    Command line defaults; ``export`` names the default exporter.
``logging``
    ``level``, ``output`` and ``format`` of the command line log handler.

The whole table is validated when it is loaded, so a misspelt option fails
before any deployment file is read.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - Python < 3.11 fallback
    import tomli as tomllib  # type: ignore

from .engine.options import EngineOptions
from .errors import InvalidOption
from .exporters import exporters_registry
from .families import FAMILIES, resolve_family

__all__ = [
    "PROJECT_FILENAME",
    "SECTIONS",
    "default_options",
    "family_overrides",
    "load_project_config",
    "pyproject_path",
    "validate_config",
]

PROJECT_FILENAME = "pyproject.toml"
TOOL_TABLE = "glider_fusion"
SECTIONS = ("defaults", "families", "cli", "logging")


def pyproject_path(candidate: Path) -> Path | None:
    """Return the ``pyproject.toml`` designated by a file or directory path.

    Paths naming any other file return ``None``.
    """

    candidate = candidate.expanduser()
    if candidate.name != PROJECT_FILENAME:
        if candidate.suffix:
            return None
        candidate = candidate / PROJECT_FILENAME
    return candidate.resolve(strict=False)


def _table(config: Mapping[str, Any] | None, name: str) -> Mapping[str, Any] | None:
    value = (config or {}).get(name)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise InvalidOption(name, f"The {name} table must be a mapping.")
    return value


def default_options(config: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return the ``defaults`` table, rejecting keys that are not engine options."""

    table = _table(config, "defaults")
    if table is None:
        return {}
    EngineOptions.from_mapping(table)
    return dict(table)


def family_overrides(config: Mapping[str, Any] | None, family: str) -> dict[str, Any]:
    """Return the ``families.<family>`` table of ``config`` (empty when absent)."""

    families = _table(config, "families")
    if families is None:
        return {}
    table = families.get(family)
    if table is None:
        return {}
    if not isinstance(table, Mapping):
        raise InvalidOption(f"families.{family}", "Family overrides must be a mapping.")
    return dict(table)


def validate_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Check every sub-table of ``config`` and return it as a plain dict."""

    for name in config:
        if name not in SECTIONS:
            raise InvalidOption(name, f"Unknown configuration table: {name}.")
    default_options(config)
    for name in _table(config, "families") or {}:
        if name not in FAMILIES:
            raise InvalidOption(f"families.{name}", f"Unknown instrument family: {name}.")
        resolve_family(name, family_overrides(config, name))
    cli = _table(config, "cli") or {}
    export = cli.get("export")
    if export is not None and export not in exporters_registry:
        raise InvalidOption("cli.export", f"Unknown exporter: {export}.")
    _table(config, "logging")
    return dict(config)


def load_project_config(path: Path) -> tuple[dict[str, Any], Path] | None:
    """Load and validate ``[tool.glider_fusion]`` from a ``pyproject.toml``.

    ``path`` may name the file or its directory.  ``None`` is returned when
    the file or the table does not exist.
    """

    target = pyproject_path(path)
    if target is None or not target.is_file():
        return None
    with target.open("rb") as handle:
        document = tomllib.load(handle)
    tool = document.get("tool")
    section = tool.get(TOOL_TABLE) if isinstance(tool, Mapping) else None
    if not isinstance(section, Mapping):
        return None
    return validate_config(section), target
