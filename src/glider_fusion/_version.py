"""Utilities for retrieving and validating the package version."""

from __future__ import annotations

import re
from importlib import metadata
from pathlib import Path

from packaging.version import InvalidVersion, Version

_DISTRIBUTION = "glider-fusion"
_CHANGELOG_HEADING = re.compile(r"^## v(?P<version>\d+\.\d+\.\d+)\b")


def _version_from_sources() -> str:
    """Return the version of the newest ``CHANGELOG.md`` entry.

    Used when the distribution metadata is unavailable, e.g. when the
    sources are imported straight from a checkout.
    """

    parents = Path(__file__).resolve().parents
    candidates = [parent / "CHANGELOG.md" for parent in parents[1:3]]
    for changelog in candidates:
        if not changelog.is_file():
            continue
        for line in changelog.read_text(encoding="utf-8").splitlines():
            match = _CHANGELOG_HEADING.match(line)
            if match:
                return match.group("version")

    raise RuntimeError(
        "Unable to determine the 'glider_fusion' version from package metadata or "
        "repository sources."
    )


def _load_version() -> str:
    """Return the package version, which must be ``MAJOR.MINOR.PATCH``."""

    try:
        raw_version = metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        raw_version = _version_from_sources()

    try:
        parsed = Version(raw_version)
    except InvalidVersion as exc:
        raise RuntimeError(
            f"Invalid version string for 'glider_fusion': {raw_version!r}."
        ) from exc

    if len(parsed.release) != 3:
        raise RuntimeError(
            "The 'glider_fusion' version must follow the MAJOR.MINOR.PATCH format. "
            f"Found: {raw_version!r}."
        )
    return raw_version


__version__ = _load_version()

__all__ = ["__version__"]
