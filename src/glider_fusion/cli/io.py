"""Configuration and output helpers for the glider-fusion CLI."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..configuration import load_project_config

CONFIG_ENV_VAR = "GLIDER_FUSION_CONFIG"


def load_cli_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load CLI defaults from ``pyproject.toml`` files.

    The explicit ``path`` is tried first, then the file named by the
    ``GLIDER_FUSION_CONFIG`` environment variable and finally the
    ``pyproject.toml`` of the current directory.  The first file holding a
    ``[tool.glider_fusion]`` table wins; its location is recorded under
    ``_config_path``.
    """

    candidates: List[Path] = []
    if path is not None:
        candidates.append(path)
    env_config = os.environ.get(CONFIG_ENV_VAR)
    if env_config:
        candidates.append(Path(env_config))
    candidates.append(Path.cwd())

    for candidate in candidates:
        loaded = load_project_config(candidate)
        if loaded is not None:
            config, source = loaded
            config["_config_path"] = str(source)
            return config
    return {"_config_path": None}


def write_output(rendered: str, destination: Optional[Path]) -> str:
    """Write ``rendered`` to ``destination`` when given and return the text to print."""

    if destination is None:
        return rendered
    destination = destination.expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(rendered, encoding="utf-8")
    return f"Wrote {destination}"
