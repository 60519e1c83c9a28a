"""Tests for the runtime registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from frproof.config.settings import ProveSettings
from frproof.proof.runtimes import (
    DEFAULT_RUNTIME,
    GoRuntime,
    NodeRuntime,
    PythonRuntime,
    runtime_for,
    supported_extensions,
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("a.test.js", "node"),
        ("a.test.mjs", "node"),
        ("test_a.py", "python"),
        ("a_test.go", "go"),
        ("A_TEST.PY", "python"),
        ("a.test.ts", "node"),
    ],
)
def test_runtime_for_selects_by_extension(name: str, expected: str) -> None:
    assert runtime_for(Path(name)).name == expected


def test_unknown_extension_falls_back_to_default() -> None:
    assert runtime_for(Path("stub.rb")) is DEFAULT_RUNTIME
    assert ".ts" not in supported_extensions()
    assert {".js", ".py", ".go"} <= supported_extensions()


def test_commands_and_working_directories(tmp_path: Path) -> None:
    settings = ProveSettings(python_executable="py3", node_executable="nodejs")
    stub = tmp_path / "generated" / "tc_1_test.go"

    assert NodeRuntime().command(tmp_path / "a.test.js", settings) == [
        "nodejs",
        "--test",
        str(tmp_path / "a.test.js"),
    ]
    assert PythonRuntime().command(tmp_path / "test_a.py", settings)[:4] == [
        "py3",
        "-m",
        "pytest",
        str(tmp_path / "test_a.py"),
    ]
    assert GoRuntime().command(stub, settings) == ["go", "test", str(stub)]
    assert GoRuntime().working_directory(stub, tmp_path) == stub.parent
    assert NodeRuntime().working_directory(stub, tmp_path) == tmp_path


def test_environment_scrubs_harness_markers() -> None:
    base = {
        "PATH": "/usr/bin",
        "NODE_TEST_CONTEXT": "child-v8",
        "PYTEST_CURRENT_TEST": "tests/x.py::y (call)",
        "PYTEST_XDIST_WORKER": "gw0",
    }

    node_env = NodeRuntime().environment(base)
    python_env = PythonRuntime().environment(base)

    assert node_env == {"PATH": "/usr/bin"}
    assert python_env == {"PATH": "/usr/bin", "PYTHONDONTWRITEBYTECODE": "1"}
    assert "NODE_TEST_CONTEXT" in base


def test_node_contract_imports_resolve_relative_to_stub(tmp_path: Path) -> None:
    stub = tmp_path / "tests" / "demo" / "generated" / "tc-1.test.js"
    source = (
        'import test from "node:test";\n'
        'import { login, lock as lockAccount } from "../../../src/contracts/fr1.js";\n'
        'import { helper } from "../helpers.js";\n'
    )

    imports = NodeRuntime().contract_imports(source, stub, tmp_path, "contracts")

    assert len(imports) == 1
    assert imports[0].symbols == ("login", "lockAccount")
    assert imports[0].paths == ((tmp_path / "src" / "contracts" / "fr1.js").resolve(),)


def test_node_default_and_namespace_imports(tmp_path: Path) -> None:
    stub = tmp_path / "generated" / "tc-1.test.js"
    source = (
        'import fr1, * as all from "../contracts/fr1.js";\n'
        'import {\n  a,\n  b,\n} from "../contracts/fr2.js";\n'
    )

    imports = NodeRuntime().contract_imports(source, stub, tmp_path, "contracts")

    assert [contract.symbols for contract in imports] == [("fr1", "all"), ("a", "b")]


def test_python_contract_imports(tmp_path: Path) -> None:
    contract = tmp_path / "src" / "contracts" / "fr1.py"
    contract.parent.mkdir(parents=True)
    contract.write_text("def login(user):\n    return True\n")
    stub = tmp_path / "tests" / "demo" / "generated" / "test_tc_1.py"
    source = (
        "import pytest\n"
        "from contracts.fr1 import login as do_login\n"
        "from contracts.fr2 import (\n"
        "    lock,  # comment\n"
        "    unlock,\n"
        ")\n"
        "from app.services import other\n"
    )

    imports = PythonRuntime().contract_imports(source, stub, tmp_path, "contracts")

    assert [contract_import.symbols for contract_import in imports] == [
        ("do_login",),
        ("lock", "unlock"),
    ]
    assert imports[0].paths == (contract.resolve(),)
    # Unresolvable modules still report a path so they can be flagged missing
    assert not imports[1].paths[0].exists()


def test_python_package_imports_resolve_submodules(tmp_path: Path) -> None:
    package = tmp_path / "contracts"
    package.mkdir()
    (package / "fr1_login.py").write_text("def fr1_login():\n    return 1\n")
    stub = tmp_path / "generated" / "test_tc_1.py"

    imports = PythonRuntime().contract_imports(
        "from contracts import fr1_login\n", stub, tmp_path, "contracts"
    )

    assert imports[0].paths == ((package / "fr1_login.py").resolve(),)


def test_go_contract_imports(tmp_path: Path) -> None:
    package = tmp_path / "internal" / "contracts"
    package.mkdir(parents=True)
    (package / "fr1.go").write_text("package contracts\n")
    (package / "fr1_test.go").write_text("package contracts\n")
    stub = tmp_path / "generated" / "tc_1_test.go"
    source = (
        "package demo\n\n"
        "import (\n"
        '\t"testing"\n'
        '\tc "example.com/app/internal/contracts"\n'
        ")\n"
    )

    imports = GoRuntime().contract_imports(source, stub, tmp_path, "contracts")

    assert imports[0].symbols == ("c",)
    assert imports[0].paths == ((package / "fr1.go").resolve(),)


def test_strip_imports_and_invocation() -> None:
    node = NodeRuntime()
    body = node.strip_imports(
        'import { login } from "../contracts/fr1.js";\ntest("x", () => login());\n'
    )

    assert "import" not in body
    assert node.invokes(body, "login")
    assert not node.invokes("const loginCount = 1;", "login")
    assert not node.invokes("other.login()", "login")

    python = PythonRuntime()
    py_body = python.strip_imports(
        "from contracts.fr1 import (\n    login,\n)\nimport os\n\nassert login\n"
    )
    assert "login," not in py_body
    assert not python.invokes(py_body, "login")

    go = GoRuntime()
    assert go.invokes("got := contracts.Login(input)", "contracts")


def test_placeholder_sentinels() -> None:
    assert NodeRuntime().is_placeholder(
        'export function f() { throw new Error("Not implemented: FR-1"); }'
    )
    assert PythonRuntime().is_placeholder(
        "def f():\n    raise NotImplementedError('Not implemented: FR-1')\n"
    )
    assert GoRuntime().is_placeholder(
        "func F(input In) (*Out, error) {\n\t_ = input\n\treturn nil, nil\n}\n"
    )
    assert not GoRuntime().is_placeholder(
        "func F() (*Out, error) {\n\treturn nil, nil\n}\n"
    )
    assert not PythonRuntime().is_placeholder("def f():\n    return 1\n")


def test_mutation_operators_apply_first_match_only() -> None:
    operators = {operator.id: operator for operator in NodeRuntime().operators}

    mutant = operators["true->false"].apply("a = true; b = true;")
    assert mutant == "a = false; b = true;"
    assert operators["+->-"].apply("return a + b + c;") == "return a - b + c;"
    assert operators["null->undefined"].apply("return null;") == "return undefined;"
    assert operators["===->!=="].apply("x = 1;") is None


def test_python_operators_target_python_syntax() -> None:
    operators = {operator.id: operator for operator in PythonRuntime().operators}

    assert operators["True->False"].apply("return True\n") == "return False\n"
    assert operators["and->or"].apply("return a and b\n") == "return a or b\n"
    assert operators["None->False"].apply("return None\n") == "return False\n"
    assert "null->undefined" not in operators
