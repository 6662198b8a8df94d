"""Architectural tests for the Form Admin service.

Static, file/AST-based checks on the package layout and layering. They
read source files under the project root and never import application code.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, List, Set

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "form_admin"
LOGIC_DIR = PKG_DIR / "logic"
ROUTES_DIR = PKG_DIR / "routes"
MIGRATIONS_DIR = PKG_DIR / "db" / "migrations"


def _py_files(root: Path) -> List[Path]:
    return sorted(p for p in root.rglob("*.py") if "__pycache__" not in p.parts)


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Syntax error in {path}: {exc}")


def _imported_modules(tree: ast.Module) -> Set[str]:
    found: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            found.add(node.module)
    return found


def _top_levels(modules: Iterable[str]) -> Set[str]:
    return {m.split(".")[0] for m in modules}


def test_expected_modules_exist():
    for rel in [
        "main.py",
        "config.py",
        "logging_setup.py",
        "logic/graph.py",
        "logic/saga.py",
        "logic/entity_store.py",
        "logic/inmemory_store.py",
        "logic/repository_entities.py",
        "logic/question_validation.py",
        "logic/errors.py",
        "http/problem.py",
        "routes/forms.py",
        "routes/sections.py",
        "routes/questions.py",
    ]:
        assert (PKG_DIR / rel).is_file(), f"missing form_admin/{rel}"


def test_logic_layer_does_not_import_web_framework():
    offenders = []
    for path in _py_files(LOGIC_DIR):
        tops = _top_levels(_imported_modules(_parse(path)))
        if {"fastapi", "starlette"} & tops:
            offenders.append(path.name)
    assert offenders == []


def test_routes_do_not_touch_the_database():
    offenders = []
    for path in _py_files(ROUTES_DIR):
        modules = _imported_modules(_parse(path))
        if "sqlalchemy" in _top_levels(modules) or any(m.startswith("form_admin.db") for m in modules):
            offenders.append(path.name)
    assert offenders == []


def test_only_the_graph_writes_reference_lists():
    """Services never assign the child-reference lists through a store update."""
    guarded = {"questions", "sections", "sub_questions"}
    offenders = []
    for path in _py_files(LOGIC_DIR):
        if path.name in {"graph.py", "inmemory_store.py", "repository_entities.py"}:
            continue
        for node in ast.walk(_parse(path)):
            if (
                isinstance(node, ast.Call)
                and isinstance(node.func, ast.Attribute)
                and node.func.attr == "update"
                and len(node.args) >= 2
                and isinstance(node.args[1], ast.Dict)
            ):
                keys = {k.value for k in node.args[1].keys if isinstance(k, ast.Constant)}
                if keys & guarded:
                    offenders.append(f"{path.name}:{node.lineno}")
    assert offenders == []


def test_no_bare_except_in_package():
    offenders = []
    for path in _py_files(PKG_DIR):
        for node in ast.walk(_parse(path)):
            if isinstance(node, ast.ExceptHandler) and node.type is None:
                offenders.append(f"{path.relative_to(PKG_DIR)}:{node.lineno}")
    assert offenders == []


def test_domain_errors_declare_status_codes():
    tree = _parse(LOGIC_DIR / "errors.py")
    statuses = {}
    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            for stmt in node.body:
                if (
                    isinstance(stmt, ast.Assign)
                    and any(isinstance(t, ast.Name) and t.id == "status" for t in stmt.targets)
                    and isinstance(stmt.value, ast.Constant)
                ):
                    statuses[node.name] = stmt.value.value
    assert statuses["ValidationError"] == 400
    assert statuses["NotFoundError"] == 404
    assert statuses["ConflictError"] == 409
    assert statuses["PermissionDeniedError"] == 403
    assert statuses["PartialCascadeFailure"] == 500


def test_migrations_are_packaged_sql():
    files = sorted(p.name for p in MIGRATIONS_DIR.glob("*.sql"))
    assert files and files[0].startswith("001_")
    schema = (MIGRATIONS_DIR / files[0]).read_text(encoding="utf-8")
    for table in ("forms", "sections", "questions"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in schema


def test_api_router_is_mounted_under_version_prefix():
    source = (PKG_DIR / "main.py").read_text(encoding="utf-8")
    assert 'include_router(api_router, prefix="/api/v1")' in source
