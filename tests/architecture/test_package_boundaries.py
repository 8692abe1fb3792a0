"""
Package boundary contract.

1. ledger_kernel/** never imports an outer package.
2. ledger_ingestion never imports ledger_erp, ledger_batch or
   ledger_reporting; ledger_reporting never imports a write path.
3. domain/ packages are pure: no database, HTTP or spreadsheet libraries.

These tests read source code via AST; they import nothing they inspect.
"""

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]

IO_LIBRARIES = ("sqlalchemy", "requests", "openpyxl", "yaml")


def _python_files(package: str, subdir: str | None = None) -> list[Path]:
    root = REPO_ROOT / package
    if subdir is not None:
        root = root / subdir
    return sorted(root.rglob("*.py"))


def _imports(path: Path) -> list[tuple[int, str]]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    found: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.extend((node.lineno, alias.name) for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            found.append((node.lineno, node.module))
    return found


def _violations(files: list[Path], forbidden: tuple[str, ...]) -> list[str]:
    bad = []
    for path in files:
        for lineno, module in _imports(path):
            if any(module == p or module.startswith(f"{p}.") for p in forbidden):
                bad.append(f"  {path.relative_to(REPO_ROOT)}:{lineno} imports '{module}'")
    return bad


class TestLayering:
    def test_kernel_has_no_upward_dependencies(self):
        files = _python_files("ledger_kernel")
        assert files
        violations = _violations(
            files,
            ("ledger_config", "ledger_ingestion", "ledger_erp", "ledger_batch", "ledger_reporting"),
        )
        assert not violations, "ledger_kernel imports outer packages:\n" + "\n".join(violations)

    def test_ingestion_does_not_depend_on_erp_or_scheduling(self):
        violations = _violations(
            _python_files("ledger_ingestion"),
            ("ledger_erp", "ledger_batch", "ledger_reporting"),
        )
        assert not violations, "\n".join(violations)

    def test_reporting_is_read_only(self):
        violations = _violations(
            _python_files("ledger_reporting"),
            ("ledger_ingestion", "ledger_erp", "ledger_batch", "ledger_kernel.services"),
        )
        assert not violations, "\n".join(violations)


class TestPureDomain:
    def test_domain_packages_do_no_io(self):
        files = []
        for package in ("ledger_kernel", "ledger_ingestion", "ledger_batch"):
            files.extend(_python_files(package, "domain"))
        assert files
        violations = _violations(files, IO_LIBRARIES)
        assert not violations, "domain modules import I/O libraries:\n" + "\n".join(violations)

    def test_report_summaries_are_pure(self):
        files = [REPO_ROOT / "ledger_reporting" / "summaries.py", REPO_ROOT / "ledger_reporting" / "models.py"]
        violations = _violations(files, IO_LIBRARIES)
        assert not violations, "\n".join(violations)
