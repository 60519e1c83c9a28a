"""Prove-run orchestration.

Runs the full pipeline for one feature:
1. Resolve the feature and check its documents exist
2. Parse requirement and test-definition documents
3. Discover generated stubs
4. Execute and classify each stub (optionally probing with mutations)
5. Aggregate and persist the proof record

Every configuration problem is raised before any process is spawned or any
file is written.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from frproof.config.paths import ProjectPaths
from frproof.config.settings import ProveSettings
from frproof.errors import ConfigurationError
from frproof.proof.aggregator import build_proof_record
from frproof.proof.classifier import analyze_stub_quality, check_contract_completeness
from frproof.proof.executor import StubExecutor
from frproof.proof.models import ProofRecord, TcResult
from frproof.proof.mutation import run_mutation_analysis
from frproof.proof.runtimes import supported_extensions
from frproof.proof.state import ProofRun, RunState
from frproof.trace import (
    RequirementDocument,
    ScanMode,
    ScanResult,
    TestDefinitionDocument,
    parse_requirement_document,
    parse_test_definitions,
    scan_stubs,
)

logger = logging.getLogger(__name__)

FEATURE_NAME_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

ProgressCallback = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class ProveOptions:
    """Run-mode flags for one prove run."""

    feature: str | None = None
    mutate: bool = False
    json_output: bool = False


@dataclass(frozen=True, slots=True)
class PreparedRun:
    """Everything a run needs once its inputs have been validated."""

    feature: str
    requirements: RequirementDocument
    definitions: TestDefinitionDocument
    scan: ScanResult


@dataclass(frozen=True, slots=True)
class ProveOutcome:
    """A persisted proof record and where it was written."""

    record: ProofRecord
    proof_file: Path

    @property
    def exit_code(self) -> int:
        return 0 if self.record.ok else 1


def normalize_feature_name(value: str | None) -> str:
    """Lower-case and validate a kebab-case feature name ("" when invalid)."""
    raw = (value or "").strip().lower()
    if not raw or not FEATURE_NAME_PATTERN.fullmatch(raw):
        return ""
    return raw


class ProofEngine:
    """Proves one feature's functional requirements against its stubs."""

    def __init__(
        self,
        paths: ProjectPaths,
        settings: ProveSettings | None = None,
        *,
        executor: StubExecutor | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self.paths = paths
        self.settings = settings or ProveSettings()
        self.executor = executor or StubExecutor(paths.workspace, self.settings)
        self._on_progress = on_progress
        self.run_state: ProofRun | None = None

    @property
    def root(self) -> Path:
        return self.paths.workspace

    def resolve_feature(self, requested: str | None) -> str:
        """Validate the requested feature or infer it from the approved specs.

        Raises:
            ConfigurationError: If the name is invalid, or none was given and
                the workspace does not hold exactly one approved spec.
        """
        if requested is not None and requested.strip():
            feature = normalize_feature_name(requested)
            if not feature:
                raise ConfigurationError(
                    "invalid_feature",
                    "Invalid feature name. Use kebab-case (example: user-login).",
                )
            return feature

        candidates: list[str] = []
        if self.paths.approved_specs_dir.is_dir():
            candidates = sorted(
                path.stem
                for path in self.paths.approved_specs_dir.glob("*.md")
                if normalize_feature_name(path.stem)
            )
        if len(candidates) == 1:
            logger.info("Inferred feature %s from approved specs", candidates[0])
            return candidates[0]
        raise ConfigurationError(
            "feature_required",
            "Feature name is required. Use --feature <name> or ensure an approved "
            "spec exists.",
            hint=(
                f"Approved specs found: {', '.join(candidates)}" if candidates else None
            ),
        )

    def prepare(self, options: ProveOptions) -> PreparedRun:
        """Check inputs and parse documents; nothing is spawned or written.

        Raises:
            ConfigurationError: On any missing or empty input.
        """
        run = ProofRun(feature=options.feature)
        self.run_state = run
        try:
            feature = self.resolve_feature(options.feature)
            run.feature = feature

            spec_file = self.paths.approved_spec_file(feature)
            tests_file = self.paths.tests_file(feature)
            if not spec_file.is_file():
                raise ConfigurationError(
                    "approved_spec_not_found",
                    f"Approved spec not found: {self.paths.relative(spec_file)}",
                    hint="Approve the feature spec before proving compliance.",
                )
            if not tests_file.is_file():
                raise ConfigurationError(
                    "tests_file_not_found",
                    f"Tests file not found: {self.paths.relative(tests_file)}",
                    hint="Write the test-definition document before proving.",
                )
        except ConfigurationError as e:
            run.transition(RunState.BLOCKED, reason=e.code)
            raise

        requirements = parse_requirement_document(
            spec_file.read_text(encoding="utf-8", errors="replace")
        )
        definitions = parse_test_definitions(
            tests_file.read_text(encoding="utf-8", errors="replace")
        )
        run.transition(RunState.TRACEABILITY_PARSED)

        try:
            if not requirements.fr_ids:
                raise ConfigurationError(
                    "no_fr_ids_in_spec",
                    "No FR-N identifiers found in approved spec. Nothing to prove.",
                )

            scan = scan_stubs(
                tests_file,
                self.paths.generated_tests_dir(feature),
                definitions.tc_ids,
                supported_extensions(),
            )
            if scan.mode == ScanMode.MISSING_TESTS_FILE:
                raise ConfigurationError(
                    "tests_file_not_found",
                    f"Tests file not found: {self.paths.relative(tests_file)}",
                )
            if not scan.found:
                generated = self.paths.relative(self.paths.generated_tests_dir(feature))
                raise ConfigurationError(
                    "no_tc_stubs",
                    "No TC stub files found in generated directory.",
                    hint=f"Expected directory: {generated}",
                )
        except ConfigurationError as e:
            run.transition(RunState.BLOCKED, reason=e.code)
            raise

        return PreparedRun(
            feature=feature,
            requirements=requirements,
            definitions=definitions,
            scan=scan,
        )

    def evaluate(self, tc_id: str, stub_path: Path, *, mutate: bool) -> TcResult:
        """Run and classify one stub."""
        run = self.executor.run(stub_path)
        file = self.paths.relative(stub_path)
        if not run.passed:
            suffix = " (timed out)" if run.timed_out else ""
            self._progress(f"  {tc_id}: FAIL{suffix}")
            return TcResult(passed=False, file=file)

        source = stub_path.read_text(encoding="utf-8", errors="replace")
        quality = analyze_stub_quality(
            source, stub_path, self.root, self.settings.contracts_marker
        )
        if quality.trivial:
            self._progress(
                f"  {tc_id}: PASS (trivial - contract imported but not invoked)"
            )
            return TcResult(passed=True, file=file, trivial=True)

        issues = tuple(check_contract_completeness(quality, self.root))
        if issues:
            self._progress(
                f"  {tc_id}: PASS (blocked - contract is still a placeholder)"
            )
            return TcResult(
                passed=True,
                file=file,
                contract_unimplemented=True,
                contract_issues=issues,
            )

        self._progress(f"  {tc_id}: PASS")
        mutation = None
        if mutate:
            mutation = run_mutation_analysis(
                stub_path, quality.contract_paths, self.executor
            )
            if mutation is None:
                self._progress(f"  {tc_id}: no contract mutations applicable")
            else:
                self._progress(
                    f"  {tc_id}: {mutation.detected}/{mutation.total} mutations "
                    f"detected ({round(mutation.score * 100)}%)"
                )
        return TcResult(passed=True, file=file, mutation=mutation)

    def execute(
        self, prepared: PreparedRun, options: ProveOptions
    ) -> dict[str, TcResult]:
        """Evaluate every declared test case in document order."""
        scan = prepared.scan
        self._progress(f"Proving compliance for: {prepared.feature}")
        self._progress(f"FRs to prove: {', '.join(prepared.requirements.fr_ids)}")
        self._progress(f"TC stubs found: {len(scan.found)}/{len(scan.stubs)}")
        if scan.missing:
            self._progress(f"Missing TC stubs: {', '.join(scan.missing)}")
        self._progress("")

        results: dict[str, TcResult] = {}
        for tc_id, stub_path in scan.stubs.items():
            if stub_path is None:
                results[tc_id] = TcResult.missing()
                continue
            results[tc_id] = self.evaluate(tc_id, stub_path, mutate=options.mutate)
        return results

    def persist(self, record: ProofRecord) -> Path:
        """Atomically write the record, replacing any previous one."""
        proof_file = self.paths.proof_file(record.feature)
        proof_file.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(record.to_dict(), indent=2, ensure_ascii=False) + "\n"

        # Write to temp file, then rename (atomic on most filesystems)
        temp_path = proof_file.with_name(f"{proof_file.name}.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(proof_file)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise
        logger.info("Wrote proof record %s (ok=%s)", proof_file, record.ok)
        return proof_file

    def prove(self, options: ProveOptions) -> ProveOutcome:
        """Run the whole pipeline and persist the record.

        Raises:
            ConfigurationError: Before any side effect, on missing inputs.
            InvariantViolation: If a mutated contract could not be restored.
        """
        prepared = self.prepare(options)
        run = self.run_state
        assert run is not None

        run.transition(RunState.EXECUTING)
        tc_results = self.execute(prepared, options)

        record = build_proof_record(
            prepared.feature,
            prepared.requirements.fr_ids,
            prepared.definitions.trace_map(),
            tc_results,
        )
        run.transition(RunState.AGGREGATED)

        proof_file = self.persist(record)
        run.transition(RunState.PERSISTED)
        return ProveOutcome(record=record, proof_file=proof_file)

    def mark_reported(self) -> None:
        if self.run_state is not None:
            self.run_state.transition(RunState.REPORTED)

    def _progress(self, line: str) -> None:
        if self._on_progress is not None:
            self._on_progress(line)
