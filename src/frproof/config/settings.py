"""Prove-run settings loaded from YAML.

Configuration is hierarchical:
1. Workspace config (.frproof/config.yaml)
2. Global config (~/.config/frproof/config.yaml)
3. Built-in defaults
"""

from __future__ import annotations

import logging
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from frproof.config.paths import ProjectPaths, get_paths

logger = logging.getLogger(__name__)

_TIMEOUT_KEYS = ("baseline_timeout_seconds", "mutation_timeout_seconds")
_STRING_KEYS = (
    "python_executable",
    "node_executable",
    "go_executable",
    "contracts_marker",
)


def default_python_executable() -> str:
    """Return the python interpreter found on PATH, else the running one."""
    return shutil.which("python3") or shutil.which("python") or sys.executable


@dataclass(frozen=True, slots=True)
class ProveSettings:
    """Settings that shape how stubs are executed and classified."""

    # None means "use the timeout policy default for the domain"
    baseline_timeout_seconds: float | None = None
    mutation_timeout_seconds: float | None = None

    python_executable: str = field(default_factory=default_python_executable)
    node_executable: str = "node"
    go_executable: str = "go"

    # Path component that marks an import as a contract import
    contracts_marker: str = "contracts"

    @classmethod
    def load(cls, paths: ProjectPaths | None = None) -> "ProveSettings":
        """Load settings from workspace or global config.

        Resolution order: workspace > global > defaults.
        """
        paths = paths or get_paths()
        config_path = paths.settings_file()
        if config_path:
            return cls._from_file(config_path)

        logger.debug("Using default prove settings")
        return cls()

    @classmethod
    def _from_file(cls, path: Path) -> "ProveSettings":
        """Load from a YAML file, falling back to defaults on any problem."""
        try:
            raw_data = yaml.safe_load(path.read_text(encoding="utf-8"))
            if raw_data is None:
                return cls()
            if not isinstance(raw_data, dict):
                raise ValueError("Settings file must contain a mapping")

            values: dict[str, object] = {}
            for key in _TIMEOUT_KEYS:
                value = raw_data.get(key)
                if value is None:
                    continue
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"{key} must be a number")
                if value <= 0:
                    raise ValueError(f"{key} must be positive")
                values[key] = float(value)
            for key in _STRING_KEYS:
                value = raw_data.get(key)
                if value is None:
                    continue
                if not isinstance(value, str) or not value.strip():
                    raise ValueError(f"{key} must be a non-empty string")
                values[key] = value.strip()

            logger.debug("Loaded prove settings from %s: %s", path, values)
            return cls(**values)  # type: ignore[arg-type]
        except (ValueError, yaml.YAMLError, OSError) as e:
            logger.warning("Failed to load settings from %s: %s", path, e)
            return cls()
