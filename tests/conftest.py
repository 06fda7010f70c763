# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from pyassist.config import Settings
from pyassist.core.logging import OutputChannel


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Return settings rooted at a temporary workspace using this interpreter."""
    return Settings(python_path=sys.executable, workspace_root=tmp_path)


@pytest.fixture
def channel() -> OutputChannel:
    """Return a fresh output channel."""
    return OutputChannel("Test")


@pytest.fixture
def python_file(tmp_path: Path) -> Path:
    """Write a small Python module into the workspace."""
    path = tmp_path / "sample.py"
    path.write_text("x = 1 + 2\nprint(x)\n", encoding="utf-8")
    return path


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper writing dedented Python scripts under ``tmp_path/scripts``."""
    scripts = tmp_path / "scripts"
    scripts.mkdir(exist_ok=True)

    def _write(name: str, body: str) -> Path:
        path = scripts / name
        path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
        return path

    return _write
