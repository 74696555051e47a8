# ruff: noqa: E402

import os
import sys
from pathlib import Path

import pytest
from _pytest.doctest import DoctestModule

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import zed_bump.log as zed_log

DOCTEST_MODULES = {
    ROOT / "src" / "zed_bump" / "__init__.py",
    ROOT / "src" / "zed_bump" / "commit_messages.py",
    ROOT / "src" / "zed_bump" / "inputs.py",
    ROOT / "src" / "zed_bump" / "manifest.py",
    ROOT / "src" / "zed_bump" / "models.py",
    ROOT / "src" / "zed_bump" / "services" / "resolve_edit.py",
}

_AMBIENT_PREFIXES = ("INPUT_", "GITHUB_", "ZED_BUMP_")
_AMBIENT_NAMES = ("COMMITTER_TOKEN", "RUNNER_DEBUG", "NO_COLOR")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> object:
    for name in list(os.environ):
        if name.startswith(_AMBIENT_PREFIXES) or name in _AMBIENT_NAMES:
            monkeypatch.delenv(name, raising=False)
    zed_log.reset()
    yield
    zed_log.reset()


def pytest_collect_file(
    parent: pytest.Collector, file_path: Path
) -> DoctestModule | None:
    path = file_path if isinstance(file_path, Path) else Path(str(file_path))
    if path in DOCTEST_MODULES:
        return DoctestModule.from_parent(parent, path=path)
    return None
