"""CLI command handlers."""

from .prove import cmd_prove

__all__ = ["cmd_prove"]
