"""Architectural tests for the authoring service layering.

Static, file/AST-based checks: these tests never import application code.

- The service layer (``progresslens/logic``) does not depend on the HTTP
  framework, so it can run under any boundary.
- Route modules hold no SQL; persistence stays in the repositories.
- Every route module exposes ``router`` and is registered in the package.
- Error conversion happens only in ``progresslens/http/problem.py``.
"""

from __future__ import annotations

import ast
import re
from pathlib import Path
from typing import Iterable, List

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "progresslens"
LOGIC_DIR = PKG_DIR / "logic"
ROUTES_DIR = PKG_DIR / "routes"

_SQL_RE = re.compile(r"\b(SELECT|INSERT\s+INTO|UPDATE\s+\w+\s+SET|DELETE\s+FROM)\b")


def _parse(path: Path) -> ast.Module:
    try:
        return ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    except SyntaxError as exc:
        pytest.fail(f"Failed to parse {path}: {exc}")


def _imported_modules(tree: ast.Module) -> Iterable[str]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom) and node.module:
            yield node.module


def _route_modules() -> List[Path]:
    return sorted(p for p in ROUTES_DIR.glob("*.py") if p.name != "__init__.py")


@pytest.mark.parametrize("path", sorted(LOGIC_DIR.glob("*.py")), ids=lambda p: p.name)
def test_logic_does_not_import_http_framework(path: Path) -> None:
    offending = [m for m in _imported_modules(_parse(path)) if m.split(".")[0] in {"fastapi", "starlette"}]
    assert not offending, f"{path.name} imports {offending}"


@pytest.mark.parametrize("path", _route_modules(), ids=lambda p: p.name)
def test_routes_contain_no_sql(path: Path) -> None:
    tree = _parse(path)
    literals = [n.value for n in ast.walk(tree) if isinstance(n, ast.Constant) and isinstance(n.value, str)]
    assert not [s for s in literals if _SQL_RE.search(s)], f"{path.name} embeds SQL"


def test_every_route_module_is_registered() -> None:
    init_src = (ROUTES_DIR / "__init__.py").read_text(encoding="utf-8")
    for path in _route_modules():
        tree = _parse(path)
        names = {t.id for n in tree.body if isinstance(n, ast.Assign) for t in n.targets if isinstance(t, ast.Name)}
        assert "router" in names, f"{path.name} does not define router"
        assert f"progresslens.routes.{path.stem} import router" in init_src


def test_no_bare_except_in_package() -> None:
    for path in PKG_DIR.rglob("*.py"):
        for node in ast.walk(_parse(path)):
            if isinstance(node, ast.ExceptHandler):
                assert node.type is not None, f"bare except in {path.relative_to(PROJECT_ROOT)}:{node.lineno}"


def test_responses_built_only_at_boundary() -> None:
    for path in LOGIC_DIR.glob("*.py"):
        assert "JSONResponse" not in path.read_text(encoding="utf-8"), path.name
