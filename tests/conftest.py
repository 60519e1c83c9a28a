from __future__ import annotations

import shutil
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest

from frproof.config.paths import ProjectPaths, reset_paths


@pytest.fixture(autouse=True)
def isolate_paths(
    tmp_path_factory: pytest.TempPathFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[None]:
    """Keep tests away from the real XDG dirs and the paths singleton."""
    xdg_root = tmp_path_factory.mktemp("xdg")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg_root / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(xdg_root / "state"))
    reset_paths()
    try:
        yield
    finally:
        reset_paths()


@pytest.fixture(autouse=True)
def pin_stub_interpreter(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run python stubs with the interpreter running the tests (it has pytest)."""
    real_which = shutil.which

    def which(name: str, *args: object, **kwargs: object) -> str | None:
        if name in ("python3", "python"):
            return sys.executable
        return real_which(name, *args, **kwargs)  # type: ignore[arg-type]

    monkeypatch.setattr(shutil, "which", which)


@dataclass
class FeatureWorkspace:
    """A throwaway workspace laid out the way prove runs expect."""

    root: Path
    feature: str = "demo"

    @property
    def paths(self) -> ProjectPaths:
        return ProjectPaths(workspace=self.root)

    def write_spec(self, content: str) -> Path:
        return _write(self.paths.approved_spec_file(self.feature), content)

    def write_tests(self, content: str) -> Path:
        return _write(self.paths.tests_file(self.feature), content)

    def write_stub(self, name: str, content: str) -> Path:
        return _write(self.paths.generated_tests_dir(self.feature) / name, content)

    def write_contract(self, name: str, content: str) -> Path:
        return _write(self.root / "contracts" / name, content)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path: Path) -> FeatureWorkspace:
    root = tmp_path / "workspace"
    root.mkdir()
    return FeatureWorkspace(root=root)
