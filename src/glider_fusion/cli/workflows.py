"""Command handlers of the glider-fusion CLI."""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Mapping

from ..configuration import default_options, family_overrides
from ..errors import GliderFusionError
from ..exporters import exporters_registry
from ..families import FAMILIES, resolve_family
from ..pipeline import load_deployment
from .errors import CliError
from .io import write_output

logger = logging.getLogger(__name__)


def _command_options(namespace: argparse.Namespace, config: Mapping[str, Any]) -> Dict[str, Any]:
    options = default_options(config)
    if namespace.variables is not None:
        options["variables"] = list(namespace.variables)
    if namespace.period is not None:
        options["period"] = list(namespace.period)
    for key, value in vars(namespace).items():
        if key.startswith("timestamp_") and value is not None:
            options[key] = value
    policy = getattr(namespace, "policy", None)
    if policy is not None:
        options["policy"] = policy
    options["format"] = "array"
    return options


def _handle_load(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    try:
        family = resolve_family(namespace.family, family_overrides(config, namespace.family))
        options = _command_options(namespace, config)
        result = load_deployment(namespace.directory, family, options)
        rendered = exporters_registry[namespace.export](result.record_set)
        output = write_output(rendered, namespace.output)
    except (GliderFusionError, OSError, ValueError) as exc:
        raise CliError.from_exception(exc) from exc

    if result.failures:
        logger.warning(
            "Some files could not be decoded.",
            extra={
                "event": "cli.partial_load",
                "family": family.name,
                "failures": [failure.path.name for failure in result.failures],
            },
        )
    return output


def _handle_families(namespace: argparse.Namespace, *, config: Mapping[str, Any]) -> str:
    lines = []
    for name in sorted(FAMILIES):
        family = resolve_family(name, family_overrides(config, name))
        roles = ", ".join(
            f"{role} ({family.timestamp(role)}, {family.pattern(role).pattern})"
            for role in family.roles
        )
        lines.append(f"{family.name}: {family.policy}; {roles}")
    return "\n".join(lines)
