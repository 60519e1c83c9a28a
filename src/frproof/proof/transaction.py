"""Scoped file transaction: write a temporary version, always restore."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from frproof.errors import InvariantViolation

logger = logging.getLogger(__name__)


@contextmanager
def scoped_file_mutation(path: Path, content: str) -> Iterator[Path]:
    """Replace ``path`` with ``content`` for the duration of the block.

    The original bytes and modification time are put back on exit, whether
    the block returns or raises.

    Raises:
        OSError: If the temporary content cannot be written. Any partial
            write is undone first.
        InvariantViolation: If the original content cannot be restored.
    """
    original = path.read_bytes()
    original_stat = path.stat()
    times_ns = (original_stat.st_atime_ns, original_stat.st_mtime_ns)
    try:
        path.write_bytes(content.encode("utf-8"))
    except OSError:
        # A failed open leaves the file untouched; a partial write does not
        if path.read_bytes() != original:
            restore_file(path, original, times_ns)
        raise

    try:
        yield path
    finally:
        restore_file(path, original, times_ns)


def restore_file(path: Path, original: bytes, times_ns: tuple[int, int]) -> None:
    """Write ``original`` back and verify it landed byte for byte.

    Raises:
        InvariantViolation: If the write fails or the file content differs.
    """
    try:
        path.write_bytes(original)
        os.utime(path, ns=times_ns)
        restored = path.read_bytes()
    except OSError as e:
        logger.critical("Could not restore %s: %s", path, e)
        raise InvariantViolation(path, f"restore failed: {e}") from e

    if restored != original:
        logger.critical("Restored content of %s differs from original", path)
        raise InvariantViolation(path, "content differs from original after restore")
