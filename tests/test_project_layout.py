from __future__ import annotations

import importlib
import tomllib
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]


def test_required_package_paths_exist() -> None:
    required = [
        "src/cda/cli.py",
        "src/cda/config.py",
        "src/cda/discovery.py",
        "src/cda/paths.py",
        "src/cda/report.py",
        "src/cda/engine/__init__.py",
        "src/cda/languages/__init__.py",
        "src/cda/logging/__init__.py",
    ]
    for rel in required:
        assert (ROOT / rel).exists(), rel


@pytest.mark.parametrize("package", ["cda.engine", "cda.languages", "cda.logging"])
def test_public_exports_resolve(package: str) -> None:
    module = importlib.import_module(package)

    for name in module.__all__:
        assert hasattr(module, name), f"{package}.{name}"


def test_console_script_points_at_cli_main() -> None:
    payload = tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))
    target = payload["project"]["scripts"]["cda"]
    module_name, _, attribute = target.partition(":")

    entrypoint = getattr(importlib.import_module(module_name), attribute)

    assert callable(entrypoint)
    assert entrypoint(["-r", str(ROOT), "--events", "--data-dir", str(ROOT / "missing-state")]) == 0
