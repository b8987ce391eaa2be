"""Shared fixtures: a throwaway package root with packaged binaries."""

import subprocess
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from forgecode.catalog import PlatformKey, packaged_binary_path
from forgecode.config import InstallConfig
from forgecode.installer import CheckResult


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    root = tmp_path / "forgecode"
    root.mkdir()
    return root


@pytest.fixture
def config(package_root: Path) -> InstallConfig:
    return InstallConfig(package_root=package_root)


@pytest.fixture
def add_binary(package_root: Path) -> Callable[..., Path]:
    """Create bin/<platform>/<arch>/<filename> whose content is its filename."""
    def _add(key: PlatformKey, filename: str, content: Optional[str] = None) -> Path:
        path = packaged_binary_path(package_root, key, filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content if content is not None else filename)
        return path
    return _add


class FakeChecker:
    """Stands in for check_binary; decides by the installed file's content."""

    def __init__(self, results: dict, default: Optional[CheckResult] = None):
        self.results = results
        self.default = default or CheckResult(True, 0)
        self.calls: List[str] = []

    def __call__(self, path: Path, timeout: float) -> CheckResult:
        content = Path(path).read_text()
        self.calls.append(content)
        return self.results.get(content, self.default)


def completed(argv, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(argv, returncode, stdout, stderr)
