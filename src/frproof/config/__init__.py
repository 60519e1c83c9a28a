"""Configuration management for frproof."""
from __future__ import annotations

from frproof.config.paths import ProjectPaths, get_paths, reset_paths
from frproof.config.settings import ProveSettings

__all__ = [
    "ProjectPaths",
    "ProveSettings",
    "get_paths",
    "reset_paths",
]
