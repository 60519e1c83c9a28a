"""Runtime registry for stub execution and contract analysis.

Each runtime knows how to run one stub file in isolation, how its stubs
import contracts, which markers identify a placeholder contract, and which
mutation operators apply to its source. Adding a runtime means adding one
entry to ``RUNTIMES``.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from frproof.config.settings import ProveSettings

# Variables a parent test harness sets that must not leak into stub runs
HARNESS_ENV_MARKERS = frozenset(
    {
        "NODE_TEST_CONTEXT",
        "PYTEST_CURRENT_TEST",
        "PYTEST_VERSION",
        "PYTEST_XDIST_WORKER",
        "PYTEST_XDIST_WORKER_COUNT",
        "PYTEST_XDIST_TESTRUNUID",
    }
)


@dataclass(frozen=True, slots=True)
class MutationOperator:
    """One source perturbation, applied to the first textual match only."""

    id: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, source: str) -> str | None:
        """Return the mutated source, or None when the operator does not apply."""
        if not self.pattern.search(source):
            return None
        mutated = self.pattern.sub(self.replacement, source, count=1)
        if mutated == source:
            return None
        return mutated


@dataclass(frozen=True, slots=True)
class PlaceholderSentinel:
    """Markers that together identify an unimplemented contract."""

    markers: tuple[str, ...]

    def matches(self, source: str) -> bool:
        return all(marker in source for marker in self.markers)


@dataclass(frozen=True, slots=True)
class ContractImport:
    """A stub import that pulls symbols from a contract module."""

    source: str
    symbols: tuple[str, ...]
    paths: tuple[Path, ...]


def _operator(op_id: str, pattern: str, replacement: str) -> MutationOperator:
    return MutationOperator(
        id=op_id, pattern=re.compile(pattern), replacement=replacement
    )


class Runtime(ABC):
    """Capabilities of one test runtime."""

    name: str = ""
    extensions: tuple[str, ...] = ()
    sentinels: tuple[PlaceholderSentinel, ...] = ()
    operators: tuple[MutationOperator, ...] = ()

    @abstractmethod
    def command(self, stub_path: Path, settings: ProveSettings) -> list[str]:
        """Return the argv that runs one stub file."""

    @abstractmethod
    def contract_imports(
        self,
        source: str,
        stub_path: Path,
        root: Path,
        marker: str,
    ) -> list[ContractImport]:
        """Return contract imports declared by a stub, in source order."""

    @abstractmethod
    def strip_imports(self, source: str) -> str:
        """Return the stub source with import statements removed."""

    def working_directory(self, stub_path: Path, root: Path) -> Path:
        """Directory the stub process runs in."""
        return root

    def environment(self, base: Mapping[str, str]) -> dict[str, str]:
        """Return the stub process environment with harness markers scrubbed."""
        return {
            key: value for key, value in base.items() if key not in HARNESS_ENV_MARKERS
        }

    def invokes(self, body: str, symbol: str) -> bool:
        """Whether ``body`` calls ``symbol`` (directly or through an attribute)."""
        pattern = rf"(?<![\w.]){re.escape(symbol)}(?:\s*\.\s*\w+)*\s*\("
        return re.search(pattern, body) is not None

    def is_placeholder(self, source: str) -> bool:
        return any(sentinel.matches(source) for sentinel in self.sentinels)


class NodeRuntime(Runtime):
    """``node --test`` runner; also the default for unknown extensions."""

    name = "node"
    extensions = (".js", ".mjs", ".cjs")
    sentinels = (PlaceholderSentinel(('throw new Error("Not implemented:',)),)
    operators = (
        _operator("true->false", r"\btrue\b", "false"),
        _operator("false->true", r"\bfalse\b", "true"),
        _operator("===->!==", r" === ", " !== "),
        _operator("!==->===", r" !== ", " === "),
        _operator(">-><", r" > ", " < "),
        _operator("<->>", r" < ", " > "),
        _operator("&&->||", r" && ", " || "),
        _operator("null->undefined", r"\breturn null\b", "return undefined"),
        _operator("+->-", r"(\w) \+ (\w)", r"\1 - \2"),
    )

    _IMPORT_PATTERN = re.compile(
        r"^import\s+(?P<clause>[^\"';]+?)\s+from\s*[\"'](?P<path>[^\"']+)[\"']",
        re.MULTILINE,
    )
    _STRIP_PATTERN = re.compile(
        r"^import\b(?:[^\"';]*?from\s*)?\s*[\"'][^\"']*[\"'][^\n]*\n?",
        re.MULTILINE,
    )

    def command(self, stub_path: Path, settings: ProveSettings) -> list[str]:
        return [settings.node_executable, "--test", str(stub_path)]

    def contract_imports(
        self,
        source: str,
        stub_path: Path,
        root: Path,
        marker: str,
    ) -> list[ContractImport]:
        imports: list[ContractImport] = []
        for match in self._IMPORT_PATTERN.finditer(source):
            rel_path = match.group("path")
            if marker not in PurePosixPath(rel_path).parts:
                continue
            symbols = _parse_node_clause(match.group("clause"))
            if not symbols:
                continue
            resolved = (stub_path.parent / rel_path).resolve()
            if resolved.is_dir():
                resolved = resolved / "index.js"
            imports.append(
                ContractImport(source=rel_path, symbols=symbols, paths=(resolved,))
            )
        return imports

    def strip_imports(self, source: str) -> str:
        return self._STRIP_PATTERN.sub("", source)


class PythonRuntime(Runtime):
    """``python -m pytest`` runner for ``.py`` stubs."""

    name = "python"
    extensions = (".py",)
    sentinels = (
        PlaceholderSentinel(('raise NotImplementedError("Not implemented:',)),
        PlaceholderSentinel(("raise NotImplementedError('Not implemented:",)),
    )
    operators = (
        _operator("True->False", r"\bTrue\b", "False"),
        _operator("False->True", r"\bFalse\b", "True"),
        _operator("==->!=", r" == ", " != "),
        _operator("!=->==", r" != ", " == "),
        _operator(">-><", r" > ", " < "),
        _operator("<->>", r" < ", " > "),
        _operator("and->or", r" and ", " or "),
        _operator("None->False", r"\breturn None\b", "return False"),
        _operator("+->-", r"(\w) \+ (\w)", r"\1 - \2"),
    )

    _FROM_PAREN_PATTERN = re.compile(
        r"^from\s+(?P<module>\.*[\w.]*)\s+import\s*\((?P<names>[^)]*)\)",
        re.MULTILINE,
    )
    _FROM_LINE_PATTERN = re.compile(
        r"^from\s+(?P<module>\.*[\w.]*)\s+import\s+(?P<names>[^(\n][^\n]*)$",
        re.MULTILINE,
    )
    _STRIP_PAREN_PATTERN = re.compile(
        r"^from\s+\S+\s+import\s*\([^)]*\)[^\n]*\n?", re.MULTILINE
    )
    _STRIP_LINE_PATTERN = re.compile(
        r"^(?:from\s+\S+\s+)?import\b[^\n]*\n?", re.MULTILINE
    )

    def command(self, stub_path: Path, settings: ProveSettings) -> list[str]:
        return [
            settings.python_executable,
            "-m",
            "pytest",
            str(stub_path),
            "-q",
            "--tb=no",
            "-p",
            "no:cacheprovider",
        ]

    def environment(self, base: Mapping[str, str]) -> dict[str, str]:
        env = super().environment(base)
        # Bytecode caches keyed on mtime could outlive a same-size mutant.
        env["PYTHONDONTWRITEBYTECODE"] = "1"
        return env

    def contract_imports(
        self,
        source: str,
        stub_path: Path,
        root: Path,
        marker: str,
    ) -> list[ContractImport]:
        found: list[tuple[int, ContractImport]] = []
        for pattern in (self._FROM_PAREN_PATTERN, self._FROM_LINE_PATTERN):
            for match in pattern.finditer(source):
                module = match.group("module")
                if marker not in module.lstrip(".").split("."):
                    continue
                symbols = _parse_python_names(match.group("names"))
                if not symbols:
                    continue
                paths = _resolve_python_module(module, symbols, stub_path, root)
                found.append(
                    (
                        match.start(),
                        ContractImport(source=module, symbols=symbols, paths=paths),
                    )
                )
        return [contract for _, contract in sorted(found, key=lambda item: item[0])]

    def strip_imports(self, source: str) -> str:
        without_blocks = self._STRIP_PAREN_PATTERN.sub("", source)
        return self._STRIP_LINE_PATTERN.sub("", without_blocks)


class GoRuntime(Runtime):
    """``go test`` runner for ``.go`` stubs."""

    name = "go"
    extensions = (".go",)
    sentinels = (PlaceholderSentinel(("_ = input", "return nil, nil")),)
    operators = (
        _operator("true->false", r"\btrue\b", "false"),
        _operator("false->true", r"\bfalse\b", "true"),
        _operator("==->!=", r" == ", " != "),
        _operator("!=->==", r" != ", " == "),
        _operator(">-><", r" > ", " < "),
        _operator("<->>", r" < ", " > "),
        _operator("&&->||", r" && ", " || "),
        _operator("+->-", r"(\w) \+ (\w)", r"\1 - \2"),
    )

    _IMPORT_BLOCK_PATTERN = re.compile(r"^import\s*\((?P<block>[^)]*)\)", re.MULTILINE)
    _IMPORT_LINE_PATTERN = re.compile(
        r"^import\s+(?P<spec>[^(\n][^\n]*)$", re.MULTILINE
    )
    _SPEC_PATTERN = re.compile(r"^\s*(?:(?P<alias>[\w.]+)\s+)?\"(?P<path>[^\"]+)\"")
    _STRIP_PATTERN = re.compile(
        r"^import\s*\([^)]*\)[^\n]*\n?|^import\s+[^\n]*\n?", re.MULTILINE
    )

    def command(self, stub_path: Path, settings: ProveSettings) -> list[str]:
        return [settings.go_executable, "test", str(stub_path)]

    def working_directory(self, stub_path: Path, root: Path) -> Path:
        return stub_path.parent

    def contract_imports(
        self,
        source: str,
        stub_path: Path,
        root: Path,
        marker: str,
    ) -> list[ContractImport]:
        specs: list[tuple[int, str]] = []
        for match in self._IMPORT_BLOCK_PATTERN.finditer(source):
            offset = match.start("block")
            for line in match.group("block").splitlines():
                specs.append((offset, line))
                offset += len(line) + 1
        for match in self._IMPORT_LINE_PATTERN.finditer(source):
            specs.append((match.start("spec"), match.group("spec")))

        imports: list[ContractImport] = []
        for _, spec in sorted(specs, key=lambda item: item[0]):
            spec_match = self._SPEC_PATTERN.match(spec)
            if not spec_match:
                continue
            import_path = spec_match.group("path")
            parts = PurePosixPath(import_path).parts
            if marker not in parts:
                continue
            alias = spec_match.group("alias")
            if alias in ("_", "."):
                continue
            symbol = alias or parts[-1]
            imports.append(
                ContractImport(
                    source=import_path,
                    symbols=(symbol,),
                    paths=_resolve_go_package(parts, root),
                )
            )
        return imports

    def strip_imports(self, source: str) -> str:
        return self._STRIP_PATTERN.sub("", source)


RUNTIMES: tuple[Runtime, ...] = (NodeRuntime(), PythonRuntime(), GoRuntime())
DEFAULT_RUNTIME: Runtime = RUNTIMES[0]


def runtime_for(path: Path) -> Runtime:
    """Select a runtime by file extension, falling back to the default."""
    suffix = path.suffix.lower()
    for runtime in RUNTIMES:
        if suffix in runtime.extensions:
            return runtime
    return DEFAULT_RUNTIME


def supported_extensions() -> frozenset[str]:
    """All file extensions with a registered runtime."""
    return frozenset(ext for runtime in RUNTIMES for ext in runtime.extensions)


def _parse_node_clause(clause: str) -> tuple[str, ...]:
    """Local names bound by an ES import clause."""
    names: list[str] = []
    braces = re.search(r"\{(?P<inner>[^}]*)\}", clause)
    if braces:
        for item in braces.group("inner").split(","):
            name = re.split(r"\s+as\s+", item.strip())[-1].strip()
            if name:
                names.append(name)
        clause = clause[: braces.start()] + clause[braces.end() :]
    for item in clause.split(","):
        item = item.strip()
        if not item:
            continue
        namespace = re.fullmatch(r"\*\s+as\s+(?P<name>[\w$]+)", item)
        if namespace:
            names.append(namespace.group("name"))
        elif re.fullmatch(r"[\w$]+", item):
            names.append(item)
    return tuple(names)


def _parse_python_names(names_text: str) -> tuple[str, ...]:
    """Local names bound by a ``from x import ...`` clause."""
    names: list[str] = []
    for raw_line in names_text.splitlines():
        line = raw_line.split("#", 1)[0]
        for item in line.split(","):
            item = item.strip().strip("()").strip()
            if not item or item == "*":
                continue
            name = re.split(r"\s+as\s+", item)[-1].strip()
            if name.isidentifier():
                names.append(name)
    return tuple(names)


def _resolve_python_module(
    module: str,
    symbols: tuple[str, ...],
    stub_path: Path,
    root: Path,
) -> tuple[Path, ...]:
    """Resolve a contract module to files, trying root, src/ and the stub dir."""
    dots = len(module) - len(module.lstrip("."))
    parts = [part for part in module.lstrip(".").split(".") if part]
    if dots:
        base = stub_path.parent
        for _ in range(dots - 1):
            base = base.parent
        bases = [base]
    else:
        bases = [root, root / "src", stub_path.parent]

    for base in bases:
        module_file = base.joinpath(*parts).with_suffix(".py") if parts else None
        if module_file is not None and module_file.is_file():
            return (module_file.resolve(),)
        package_dir = base.joinpath(*parts)
        if package_dir.is_dir():
            submodules = tuple(
                (package_dir / f"{symbol}.py").resolve()
                for symbol in symbols
                if (package_dir / f"{symbol}.py").is_file()
            )
            if submodules:
                return submodules
            init_file = package_dir / "__init__.py"
            if init_file.is_file():
                return (init_file.resolve(),)

    fallback = bases[0].joinpath(*parts).with_suffix(".py") if parts else bases[0]
    return (fallback,)


def _resolve_go_package(parts: tuple[str, ...], root: Path) -> tuple[Path, ...]:
    """Resolve a Go import path to the non-test files of its package directory."""
    for index in range(len(parts)):
        candidate = root.joinpath(*parts[index:])
        if candidate.is_dir():
            return tuple(
                path.resolve()
                for path in sorted(candidate.glob("*.go"))
                if not path.name.endswith("_test.go")
            )
    return (root.joinpath(*parts),)
