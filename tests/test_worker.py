# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the bundled refactor worker script."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import pytest

from pyassist.config import Settings
from pyassist.core.documents import TextDocument
from pyassist.refactor import (
    ExtractMethodCommand,
    ExtractVariableCommand,
    RefactorSession,
    apply_text_edits,
    get_text_edits_from_patch,
)
from pyassist.refactor.worker import unified_diff


def test_unified_diff_marks_missing_final_newline() -> None:
    diff = unified_diff("sample.py", "a = 1\nb = 2", "a = 1\nb = 3")

    assert diff.startswith("--- a/sample.py\n+++ b/sample.py\n")
    assert diff.count("\\ No newline at end of file\n") == 2


def test_unified_diff_of_identical_text_is_empty() -> None:
    assert unified_diff("sample.py", "x = 1\n", "x = 1\n") == ""


def test_extract_variable_through_real_worker(settings: Settings, python_file: Path) -> None:
    pytest.importorskip("rope")
    document = TextDocument.from_path(python_file)
    command = ExtractVariableCommand(file=str(document.path), start=4, end=9, name="newvariable1")

    result = asyncio.run(RefactorSession(settings).send(command))

    updated = apply_text_edits(document.text, get_text_edits_from_patch(document.text, result.diff))
    assert "newvariable1 = 1 + 2" in updated
    assert "x = newvariable1" in updated


def test_extract_method_honours_indent_size(settings: Settings, tmp_path: Path) -> None:
    pytest.importorskip("rope")
    path = tmp_path / "module.py"
    path.write_text("x = 1\ny = x + 2\n", encoding="utf-8")
    document = TextDocument.from_path(path)
    command = ExtractMethodCommand(file=str(document.path), start=10, end=15, name="newmethod1", indent_size=2)

    result = asyncio.run(RefactorSession(settings).send(command))

    updated = apply_text_edits(document.text, get_text_edits_from_patch(document.text, result.diff))
    assert "def newmethod1(" in updated
    assert re.search(r"^  return x \+ 2$", updated, re.MULTILINE)
    assert not re.search(r"^    return", updated, re.MULTILINE)
