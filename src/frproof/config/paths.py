"""Centralized path management for frproof.

Workspace paths follow the conventional document layout of a project:
- Approved requirement documents: specs/approved/<feature>.md
- Test definitions: tests/<feature>/tests.md
- Generated stubs: tests/<feature>/generated/
- Proof records: docs/implementation/<feature>/proof-of-compliance.json

Global paths follow the XDG Base Directory Specification:
- Config: $XDG_CONFIG_HOME/frproof (default: ~/.config/frproof)
- State: $XDG_STATE_HOME/frproof (default: ~/.local/state/frproof)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

PROOF_RECORD_NAME = "proof-of-compliance.json"


def _xdg_config_home() -> Path:
    """Get XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def _xdg_state_home() -> Path:
    """Get XDG_STATE_HOME, defaulting to ~/.local/state."""
    return Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))


@dataclass
class ProjectPaths:
    """Centralized path management for one workspace."""

    workspace: Path

    _config_home: Path = field(default_factory=_xdg_config_home)
    _state_home: Path = field(default_factory=_xdg_state_home)

    # === WORKSPACE PATHS ===

    @property
    def workspace_config(self) -> Path:
        """Workspace .frproof/ directory."""
        return self.workspace / ".frproof"

    @property
    def workspace_settings(self) -> Path:
        """Workspace settings: .frproof/config.yaml"""
        return self.workspace_config / "config.yaml"

    @property
    def approved_specs_dir(self) -> Path:
        """Directory holding approved requirement documents."""
        return self.workspace / "specs" / "approved"

    # === FEATURE PATHS ===

    def approved_spec_file(self, feature: str) -> Path:
        """Get the approved requirement document for a feature."""
        return self.approved_specs_dir / f"{feature}.md"

    def tests_dir(self, feature: str) -> Path:
        """Get the test-definition directory for a feature."""
        return self.workspace / "tests" / feature

    def tests_file(self, feature: str) -> Path:
        """Get the test-definition document for a feature."""
        return self.tests_dir(feature) / "tests.md"

    def generated_tests_dir(self, feature: str) -> Path:
        """Get the generated stub directory for a feature."""
        return self.tests_dir(feature) / "generated"

    def implementation_dir(self, feature: str) -> Path:
        """Get the implementation docs directory for a feature."""
        return self.workspace / "docs" / "implementation" / feature

    def proof_file(self, feature: str) -> Path:
        """Get the persisted proof record path for a feature."""
        return self.implementation_dir(feature) / PROOF_RECORD_NAME

    def relative(self, path: Path) -> str:
        """Render a path relative to the workspace when possible."""
        try:
            return path.resolve().relative_to(self.workspace.resolve()).as_posix()
        except ValueError:
            return str(path)

    # === GLOBAL PATHS (XDG compliant) ===

    @property
    def global_config_dir(self) -> Path:
        """Global config: ~/.config/frproof/"""
        return self._config_home / "frproof"

    @property
    def global_settings(self) -> Path:
        """Global settings: ~/.config/frproof/config.yaml"""
        return self.global_config_dir / "config.yaml"

    @property
    def global_state_dir(self) -> Path:
        """Global state: ~/.local/state/frproof/"""
        return self._state_home / "frproof"

    @property
    def debug_log(self) -> Path:
        """Debug log: ~/.local/state/frproof/debug.log"""
        return self.global_state_dir / "debug.log"

    # === CONFIG RESOLUTION ===

    def settings_file(self) -> Path | None:
        """Resolve settings file: workspace > global.

        Returns the first existing config file in the hierarchy,
        or None if no config exists.
        """
        if self.workspace_settings.exists():
            return self.workspace_settings
        if self.global_settings.exists():
            return self.global_settings
        return None


# Singleton instance
_paths: ProjectPaths | None = None


def get_paths(workspace: Path | None = None) -> ProjectPaths:
    """Get the paths singleton.

    On first call, optionally set the workspace directory.
    Subsequent calls return the same instance.

    Args:
        workspace: The workspace directory. If not provided on first call,
                   defaults to current working directory.

    Returns:
        The ProjectPaths singleton instance.
    """
    global _paths
    if _paths is None:
        _paths = ProjectPaths(workspace=workspace or Path.cwd())
    return _paths


def reset_paths() -> None:
    """Reset paths singleton (for testing)."""
    global _paths
    _paths = None
