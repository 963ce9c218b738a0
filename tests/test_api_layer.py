"""Tests for API layer guardrails and contracts."""

import ast
from pathlib import Path

API_DIR = Path(__file__).resolve().parents[1] / "src" / "ensinor" / "api"

# Forbidden imports (Session is allowed for type hints)
FORBIDDEN_MODULES = ("sqlalchemy", "sessionmaker", "declarative_base")
FORBIDDEN_NAMES = ("Column", "Integer", "String", "Base")
DIRECT_DB_CALLS = ("query", "add", "add_all", "commit", "delete", "execute", "flush")


def _api_files():
    return sorted(path for path in API_DIR.glob("*.py") if path.name != "__init__.py")


def _annotation_names(tree):
    """ids of every Name node that sits inside an argument or return annotation."""
    names = set()
    for node in ast.walk(tree):
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            args = node.args.posonlyargs + node.args.args + node.args.kwonlyargs
            annotations = [arg.annotation for arg in args if arg.annotation is not None]
            if node.returns is not None:
                annotations.append(node.returns)
            for annotation in annotations:
                names.update(id(child) for child in ast.walk(annotation) if isinstance(child, ast.Name))
    return names


def test_api_files_found():
    assert len(_api_files()) >= 10


def test_api_layer_has_no_sqlalchemy_imports():
    """API modules may import ``Session`` for type hints and nothing else from SQLAlchemy."""
    violations = []
    for api_file in _api_files():
        tree = ast.parse(api_file.read_text(encoding="utf-8"), filename=str(api_file))

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    if any(forbidden in alias.name for forbidden in FORBIDDEN_MODULES):
                        violations.append(f"{api_file.name}: direct import '{alias.name}'")
            elif isinstance(node, ast.ImportFrom):
                module = node.module or ""
                if any(forbidden in module for forbidden in FORBIDDEN_MODULES):
                    if module == "sqlalchemy.orm" and all(alias.name == "Session" for alias in node.names):
                        continue
                    violations.append(f"{api_file.name}: direct import from '{module}'")
                if module.endswith("database.schema"):
                    violations.append(f"{api_file.name}:{node.lineno} imports ORM models directly")
                for alias in node.names:
                    if alias.name in FORBIDDEN_NAMES:
                        violations.append(f"{api_file.name}: direct import '{alias.name}' from '{module}'")

    assert not violations, "API layer has SQLAlchemy violations:\n" + "\n".join(violations)


def test_session_only_used_in_type_hints():
    violations = []
    for api_file in _api_files():
        tree = ast.parse(api_file.read_text(encoding="utf-8"), filename=str(api_file))
        hinted = _annotation_names(tree)
        for node in ast.walk(tree):
            if isinstance(node, ast.Name) and node.id == "Session" and id(node) not in hinted:
                violations.append(f"{api_file.name}:{node.lineno} uses Session outside type hints")

    assert not violations, "\n".join(violations)


def test_api_layer_calls_repo_functions_only():
    """No ``session.query/add/commit/...`` in API modules; writes go through repos and ``transaction``."""
    violations = []
    for api_file in _api_files():
        tree = ast.parse(api_file.read_text(encoding="utf-8"), filename=str(api_file))
        for node in ast.walk(tree):
            if (
                isinstance(node, ast.Call)
                and isinstance(node.func, ast.Attribute)
                and isinstance(node.func.value, ast.Name)
                and node.func.value.id == "session"
                and node.func.attr in DIRECT_DB_CALLS
            ):
                violations.append(f"{api_file.name}:{node.lineno} calls session.{node.func.attr}()")

    assert not violations, "API layer touches the session directly:\n" + "\n".join(violations)
