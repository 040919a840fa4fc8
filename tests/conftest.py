from __future__ import annotations

import logging
import sys
from pathlib import Path
from textwrap import dedent

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


def write_pyproject(directory: Path, contents: str) -> Path:
    """Persist a ``pyproject.toml`` under ``directory`` and return its path."""

    payload = dedent(contents).lstrip()
    target = directory / "pyproject.toml"
    target.write_text(payload, encoding="utf8")
    return target


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GLIDER_FUSION_CONFIG", raising=False)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    logger = logging.getLogger("glider_fusion")
    level = logger.level
    handlers = list(logger.handlers)
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


@pytest.fixture
def slocum_dir(tmp_path: Path) -> Path:
    from tests.helpers import write_slocum_deployment

    return write_slocum_deployment(tmp_path / "slocum")


@pytest.fixture
def seaexplorer_dir(tmp_path: Path) -> Path:
    from tests.helpers import write_seaexplorer_deployment

    return write_seaexplorer_deployment(tmp_path / "seaexplorer")


@pytest.fixture
def seaglider_dir(tmp_path: Path) -> Path:
    from tests.helpers import write_seaglider_deployment

    return write_seaglider_deployment(tmp_path / "seaglider")
