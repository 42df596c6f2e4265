"""
Test Layout Isolation
=====================

INVARIANT: The allocator and reconciler are pure and importable without
storage or web dependencies, so they can be exercised without a live store.

These modules must NOT import:
- asyncpg
- httpx
- fastapi
- repositories (the storage layer)
"""

import ast
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).parent.parent

PURE_MODULES = [
    "services/layout.py",
    "services/reconciler.py",
    "models/domain/word.py",
]

FORBIDDEN_IMPORTS = {"asyncpg", "httpx", "fastapi", "repositories", "starlette"}


def imported_roots(path: Path):
    tree = ast.parse(path.read_text())
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name.split(".")[0]
        elif isinstance(node, ast.ImportFrom) and node.module:
            yield node.module.split(".")[0]


@pytest.mark.parametrize("module", PURE_MODULES)
def test_module_has_no_infrastructure_imports(module):
    roots = set(imported_roots(BACKEND_ROOT / module))
    assert not roots & FORBIDDEN_IMPORTS, f"{module} imports {roots & FORBIDDEN_IMPORTS}"
