from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

from frproof.config.paths import ProjectPaths
from frproof.config.settings import ProveSettings, default_python_executable


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_defaults_without_config(tmp_path: Path) -> None:
    settings = ProveSettings.load(ProjectPaths(workspace=tmp_path))

    assert settings == ProveSettings()
    assert settings.python_executable == sys.executable
    assert settings.contracts_marker == "contracts"
    assert settings.baseline_timeout_seconds is None


@pytest.mark.parametrize(
    ("on_path", "expected"),
    [
        (
            {"python3": "/usr/bin/python3", "python": "/usr/bin/python"},
            "/usr/bin/python3",
        ),
        ({"python": "/opt/bin/python"}, "/opt/bin/python"),
        ({}, sys.executable),
    ],
)
def test_python_executable_default_searches_path(
    monkeypatch: pytest.MonkeyPatch, on_path: dict[str, str], expected: str
) -> None:
    monkeypatch.setattr("shutil.which", on_path.get)

    assert default_python_executable() == expected
    assert ProveSettings().python_executable == expected


def test_workspace_config_wins_over_global(tmp_path: Path) -> None:
    paths = ProjectPaths(workspace=tmp_path)
    _write(paths.global_settings, "node_executable: node-global\n")
    _write(
        paths.workspace_settings,
        "node_executable: node20\nbaseline_timeout_seconds: 12\n",
    )

    settings = ProveSettings.load(paths)

    assert settings.node_executable == "node20"
    assert settings.baseline_timeout_seconds == 12.0


def test_global_config_used_when_workspace_has_none(tmp_path: Path) -> None:
    paths = ProjectPaths(workspace=tmp_path)
    _write(paths.global_settings, "contracts_marker: specs_impl\n")

    assert ProveSettings.load(paths).contracts_marker == "specs_impl"


def test_empty_config_yields_defaults(tmp_path: Path) -> None:
    paths = ProjectPaths(workspace=tmp_path)
    _write(paths.workspace_settings, "")

    assert ProveSettings.load(paths) == ProveSettings()


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "baseline_timeout_seconds: soon\n",
        "mutation_timeout_seconds: -1\n",
        "baseline_timeout_seconds: true\n",
        "node_executable: ''\n",
        "node_executable: [node]\n",
        "key: [unclosed\n",
    ],
)
def test_invalid_config_warns_and_falls_back(
    tmp_path: Path, content: str, caplog: pytest.LogCaptureFixture
) -> None:
    paths = ProjectPaths(workspace=tmp_path)
    _write(paths.workspace_settings, content)

    with caplog.at_level(logging.WARNING, logger="frproof.config.settings"):
        settings = ProveSettings.load(paths)

    assert settings == ProveSettings()
    assert "Failed to load settings" in caplog.text
