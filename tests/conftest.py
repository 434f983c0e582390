"""Shared fixtures for the guidelint test suite."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import pytest
import yaml


FIXTURES_DIR = Path(__file__).parent / "fixtures"
PASSING_DIR = FIXTURES_DIR / "passing"
FAILING_DIR = FIXTURES_DIR / "failing"
EDGE_CASES_DIR = FIXTURES_DIR / "edge_cases"


def write_config(directory: Path, data: dict[str, Any]) -> Path:
    """Write a .guidelint.yaml into *directory* and return its path."""
    path = directory / ".guidelint.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture()
def guidelint_home() -> Path:
    """Return the guidelint home directory (package root)."""
    from guidelint._paths import get_home

    return get_home()


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory with a .guidelint.yaml."""
    write_config(
        tmp_path,
        {
            "profile": "write",
            "rule_overrides": {},
            "logging": {"enabled": False},
        },
    )
    return tmp_path


@pytest.fixture()
def config_path(tmp_project: Path) -> str:
    """Return the path of the temporary project's config as a string."""
    return str(tmp_project / ".guidelint.yaml")


@pytest.fixture()
def custom_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, guidelint_home: Path) -> Path:
    """Copy the rule table into a temp dir and point $GUIDELINT_HOME at it."""
    home = tmp_path / "home"
    for name in ("rules", "profiles", "plugins"):
        shutil.copytree(guidelint_home / name, home / name)
    monkeypatch.setenv("GUIDELINT_HOME", str(home))
    return home


@pytest.fixture()
def passing_source() -> str:
    """Return the contents of the clean fixture."""
    return (PASSING_DIR / "clean_module.py").read_text(encoding="utf-8")


@pytest.fixture()
def logging_source() -> str:
    """Return source with logging mistakes."""
    return (FAILING_DIR / "logging_misuse.py").read_text(encoding="utf-8")


@pytest.fixture()
def typing_source() -> str:
    """Return source with deprecated typing and missing annotations."""
    return (FAILING_DIR / "legacy_typing.py").read_text(encoding="utf-8")


@pytest.fixture()
def exception_source() -> str:
    """Return source with exception handling mistakes."""
    return (FAILING_DIR / "exception_misuse.py").read_text(encoding="utf-8")


@pytest.fixture()
def misc_source() -> str:
    """Return source with import, default, file and naming mistakes."""
    return (FAILING_DIR / "misc_conventions.py").read_text(encoding="utf-8")
