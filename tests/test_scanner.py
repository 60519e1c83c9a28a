"""Tests for generated stub discovery."""

from __future__ import annotations

from conftest import FeatureWorkspace

from frproof.proof.runtimes import supported_extensions
from frproof.trace.scanner import ScanMode, scan_stubs


def _scan(workspace: FeatureWorkspace, tc_ids: list[str]):
    paths = workspace.paths
    return scan_stubs(
        paths.tests_file(workspace.feature),
        paths.generated_tests_dir(workspace.feature),
        tc_ids,
        supported_extensions(),
    )


def test_scan_reports_missing_tests_file(workspace: FeatureWorkspace) -> None:
    result = _scan(workspace, ["TC-1"])

    assert result.mode == ScanMode.MISSING_TESTS_FILE
    assert not result.available


def test_scan_reports_missing_generated_dir(workspace: FeatureWorkspace) -> None:
    workspace.write_tests("### TC-1\n- Trace: FR-1\n")

    result = _scan(workspace, ["TC-1"])

    assert result.mode == ScanMode.MISSING_GENERATED_DIR
    assert result.missing == ["TC-1"]


def test_scan_matches_marker_comments_and_file_stems(
    workspace: FeatureWorkspace,
) -> None:
    workspace.write_tests("### TC-1\n- Trace: FR-1\n")
    marker_stub = workspace.write_stub(
        "login.test.js", "// TC-1\nimport test from 'node:test';\n"
    )
    stem_stub = workspace.write_stub("nested/test_tc_2.py", "def test_x():\n    pass\n")

    result = _scan(workspace, ["TC-1", "TC-2", "TC-3"])

    assert result.available
    assert result.stubs == {"TC-1": marker_stub, "TC-2": stem_stub, "TC-3": None}
    assert result.found == ["TC-1", "TC-2"]
    assert result.missing == ["TC-3"]


def test_scan_first_file_wins_and_ignores_undeclared(
    workspace: FeatureWorkspace,
) -> None:
    workspace.write_tests("### TC-1\n- Trace: FR-1\n")
    first = workspace.write_stub("a_test.py", "# TC-1\n")
    workspace.write_stub("b_test.py", "# TC-1\n")
    workspace.write_stub("c_test.py", "# TC-9\n")

    result = _scan(workspace, ["TC-1"])

    assert result.stubs == {"TC-1": first}


def test_scan_skips_unregistered_extensions_and_caches(
    workspace: FeatureWorkspace,
) -> None:
    workspace.write_tests("### TC-1\n- Trace: FR-1\n")
    workspace.write_stub("tc-1.md", "# TC-1\n")
    workspace.write_stub("__pycache__/tc_1.py", "# TC-1\n")

    result = _scan(workspace, ["TC-1"])

    assert result.available
    assert result.missing == ["TC-1"]


def test_scan_marker_beats_stem(workspace: FeatureWorkspace) -> None:
    workspace.write_tests("### TC-1\n- Trace: FR-1\n")
    stub = workspace.write_stub("tc_1_test.go", "// TC-2\npackage demo\n")

    result = _scan(workspace, ["TC-1", "TC-2"])

    assert result.stubs == {"TC-1": None, "TC-2": stub}
