"""Tests for trivial-stub and placeholder-contract detection."""

from __future__ import annotations

from conftest import FeatureWorkspace

from frproof.proof.classifier import (
    MISSING,
    PLACEHOLDER,
    analyze_stub_quality,
    check_contract_completeness,
)

INVOKING_STUB = """# TC-1
from contracts.fr1_login import fr1_login


def test_login():
    assert fr1_login("ada") is True
"""

TRIVIAL_STUB = """# TC-1
from contracts.fr1_login import fr1_login


def test_login():
    assert True
"""


def test_stub_that_calls_its_contract_is_not_trivial(
    workspace: FeatureWorkspace,
) -> None:
    contract = workspace.write_contract(
        "fr1_login.py", "def fr1_login(u):\n    return True\n"
    )
    stub = workspace.write_stub("test_tc_1.py", INVOKING_STUB)

    quality = analyze_stub_quality(INVOKING_STUB, stub, workspace.root)

    assert quality.has_contract_import
    assert quality.contract_invoked
    assert not quality.trivial
    assert quality.imported_names == ("fr1_login",)
    assert quality.contract_paths == (contract.resolve(),)


def test_stub_that_never_calls_its_contract_is_trivial(
    workspace: FeatureWorkspace,
) -> None:
    stub = workspace.write_stub("test_tc_1.py", TRIVIAL_STUB)

    quality = analyze_stub_quality(TRIVIAL_STUB, stub, workspace.root)

    assert quality.has_contract_import
    assert not quality.contract_invoked
    assert quality.trivial


def test_stub_without_contract_import_is_never_trivial(
    workspace: FeatureWorkspace,
) -> None:
    source = "import os\n\ndef test_env():\n    assert os.sep\n"
    stub = workspace.write_stub("test_tc_1.py", source)

    quality = analyze_stub_quality(source, stub, workspace.root)

    assert not quality.has_contract_import
    assert not quality.trivial


def test_custom_contracts_marker(workspace: FeatureWorkspace) -> None:
    source = "from specs_impl.fr1 import fr1\n\ndef test_x():\n    fr1()\n"
    stub = workspace.write_stub("test_tc_1.py", source)

    default = analyze_stub_quality(source, stub, workspace.root)
    custom = analyze_stub_quality(source, stub, workspace.root, marker="specs_impl")

    assert not default.has_contract_import
    assert custom.has_contract_import
    assert custom.contract_invoked


def test_node_stub_quality(workspace: FeatureWorkspace) -> None:
    source = (
        "// TC-1\n"
        'import test from "node:test";\n'
        'import assert from "node:assert/strict";\n'
        'import { fr1Login } from "../../../contracts/fr1.js";\n\n'
        'test("TC-1", () => {\n'
        "  assert.ok(true);\n"
        "});\n"
    )
    stub = workspace.write_stub("tc-1.test.js", source)

    quality = analyze_stub_quality(source, stub, workspace.root)

    assert quality.trivial
    assert quality.contract_paths == (
        (workspace.root / "contracts" / "fr1.js").resolve(),
    )


def test_placeholder_contract_is_reported(workspace: FeatureWorkspace) -> None:
    workspace.write_contract(
        "fr1_login.py",
        'def fr1_login(u):\n    raise NotImplementedError("Not implemented: FR-1")\n',
    )
    stub = workspace.write_stub("test_tc_1.py", INVOKING_STUB)
    quality = analyze_stub_quality(INVOKING_STUB, stub, workspace.root)

    issues = check_contract_completeness(quality, workspace.root)

    assert [issue.to_dict() for issue in issues] == [
        {"file": "contracts/fr1_login.py", "reason": PLACEHOLDER}
    ]


def test_missing_contract_is_reported(workspace: FeatureWorkspace) -> None:
    stub = workspace.write_stub("test_tc_1.py", INVOKING_STUB)
    quality = analyze_stub_quality(INVOKING_STUB, stub, workspace.root)

    issues = check_contract_completeness(quality, workspace.root)

    assert [issue.reason for issue in issues] == [MISSING]


def test_implemented_contract_has_no_issues(workspace: FeatureWorkspace) -> None:
    workspace.write_contract("fr1_login.py", "def fr1_login(u):\n    return True\n")
    stub = workspace.write_stub("test_tc_1.py", INVOKING_STUB)
    quality = analyze_stub_quality(INVOKING_STUB, stub, workspace.root)

    assert check_contract_completeness(quality, workspace.root) == []
