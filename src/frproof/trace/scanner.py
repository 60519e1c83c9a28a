"""Generated stub discovery.

Stubs live under ``tests/<feature>/generated/``. A file belongs to a test
case when its first ``// TC-<n>`` or ``# TC-<n>`` comment names it, or else
when its file stem carries ``tc-<n>`` / ``tc_<n>``. The first file found in
sorted path order wins for each test case.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

TC_MARKER_PATTERN = re.compile(r"^\s*(?://|#)\s*(?P<id>TC-\d+)\b", re.MULTILINE)
TC_STEM_PATTERN = re.compile(r"(?:^|[^a-z0-9])tc[-_]?(?P<num>\d+)(?!\d)", re.IGNORECASE)
SKIPPED_DIRS = {"__pycache__", "node_modules", ".pytest_cache", ".git"}


class ScanMode(str, Enum):
    """How far a stub scan got."""

    MISSING_TESTS_FILE = "missing_tests_file"
    MISSING_GENERATED_DIR = "missing_generated_dir"
    SCANNED = "scanned"


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Stub file per declared test case, in document order."""

    mode: ScanMode
    stubs: dict[str, Path | None] = field(default_factory=dict)

    @property
    def available(self) -> bool:
        return self.mode == ScanMode.SCANNED

    @property
    def found(self) -> list[str]:
        return [tc_id for tc_id, path in self.stubs.items() if path is not None]

    @property
    def missing(self) -> list[str]:
        return [tc_id for tc_id, path in self.stubs.items() if path is None]


def scan_stubs(
    tests_file: Path,
    generated_dir: Path,
    tc_ids: Sequence[str],
    extensions: Iterable[str],
) -> ScanResult:
    """Map each declared test case to its generated stub file."""
    if not tests_file.is_file():
        return ScanResult(mode=ScanMode.MISSING_TESTS_FILE)
    if not generated_dir.is_dir():
        return ScanResult(
            mode=ScanMode.MISSING_GENERATED_DIR,
            stubs={tc_id: None for tc_id in tc_ids},
        )

    declared = set(tc_ids)
    located: dict[str, Path] = {}
    for candidate in _candidate_files(generated_dir, frozenset(extensions)):
        tc_id = _identify(candidate)
        if tc_id is None:
            continue
        if tc_id not in declared:
            logger.debug("Stub %s names undeclared %s; ignored", candidate, tc_id)
            continue
        if tc_id in located:
            logger.warning(
                "Second stub for %s ignored: %s (keeping %s)",
                tc_id,
                candidate,
                located[tc_id],
            )
            continue
        located[tc_id] = candidate

    return ScanResult(
        mode=ScanMode.SCANNED,
        stubs={tc_id: located.get(tc_id) for tc_id in tc_ids},
    )


def _candidate_files(root: Path, extensions: frozenset[str]) -> list[Path]:
    files: list[Path] = []
    for path in sorted(root.rglob("*")):
        rel_parts = path.relative_to(root).parts
        if any(part in SKIPPED_DIRS or part.startswith(".") for part in rel_parts):
            continue
        if path.is_file() and path.suffix.lower() in extensions:
            files.append(path)
    return files


def _identify(path: Path) -> str | None:
    """Return the test case a stub file declares, if any."""
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Could not read stub %s: %s", path, e)
        return None

    if match := TC_MARKER_PATTERN.search(content):
        return match.group("id")
    if match := TC_STEM_PATTERN.search(path.stem):
        return f"TC-{match.group('num')}"
    return None
