import ast
import pathlib

import pytest

INTAKE = pathlib.Path("src/intake")


def _imported_modules(path: pathlib.Path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.ImportFrom) and node.module:
            yield node.module
        elif isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name


def test_api_never_imports_infrastructure():
    for api_py in INTAKE.glob("api/**/*.py"):
        for module in _imported_modules(api_py):
            assert "infrastructure" not in module, f"{api_py} imports {module}"


@pytest.mark.parametrize("forbidden", ["fastapi", "sqlalchemy", "redis", "httpx"])
def test_domain_is_framework_free(forbidden):
    for domain_py in INTAKE.glob("domain/**/*.py"):
        for module in _imported_modules(domain_py):
            assert module.split(".")[0] != forbidden, f"{domain_py} imports {module}"
