"""Stub quality checks for passing stubs.

A passing stub proves nothing when it imports a contract and never calls
it (trivial), or when the contract it calls is still a scaffold placeholder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from frproof.proof.runtimes import runtime_for

logger = logging.getLogger(__name__)

PLACEHOLDER = "placeholder"
MISSING = "missing"


@dataclass(frozen=True, slots=True)
class ContractIssue:
    """A referenced contract that blocks a proof."""

    file: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"file": self.file, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class StubQuality:
    """Contract usage found in one stub."""

    has_contract_import: bool
    imported_names: tuple[str, ...] = ()
    contract_invoked: bool = False
    contract_paths: tuple[Path, ...] = ()

    @property
    def trivial(self) -> bool:
        return self.has_contract_import and not self.contract_invoked


def analyze_stub_quality(
    source: str,
    stub_path: Path,
    root: Path,
    marker: str = "contracts",
) -> StubQuality:
    """Find contract imports in a stub and whether any imported name is called."""
    runtime = runtime_for(stub_path)
    imports = runtime.contract_imports(source, stub_path, root, marker)
    if not imports:
        return StubQuality(has_contract_import=False)

    names: list[str] = []
    paths: list[Path] = []
    for contract in imports:
        names.extend(name for name in contract.symbols if name not in names)
        paths.extend(path for path in contract.paths if path not in paths)

    body = runtime.strip_imports(source)
    invoked = any(runtime.invokes(body, name) for name in names)
    if not invoked:
        logger.info("Stub %s imports %s but never calls them", stub_path, names)
    return StubQuality(
        has_contract_import=True,
        imported_names=tuple(names),
        contract_invoked=invoked,
        contract_paths=tuple(paths),
    )


def is_contract_placeholder(path: Path, source: str) -> bool:
    """Whether contract source still carries its runtime's scaffold sentinel."""
    return runtime_for(path).is_placeholder(source)


def check_contract_completeness(
    quality: StubQuality, root: Path
) -> list[ContractIssue]:
    """Report referenced contracts that are missing or still placeholders."""
    issues: list[ContractIssue] = []
    for path in quality.contract_paths:
        display = display_path(path, root)
        if not path.is_file():
            issues.append(ContractIssue(file=display, reason=MISSING))
            continue
        source = path.read_text(encoding="utf-8", errors="replace")
        if is_contract_placeholder(path, source):
            issues.append(ContractIssue(file=display, reason=PLACEHOLDER))
    if issues:
        logger.info("Contract issues: %s", [issue.to_dict() for issue in issues])
    return issues


def display_path(path: Path, root: Path) -> str:
    """Render a path relative to the workspace root when possible."""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return str(path)
