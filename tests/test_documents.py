# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for text documents and line helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from pyassist.core.documents import CRLF, LF, TextDocument, split_lines, windows_line_ending_count
from pyassist.core.models import Position


def test_split_lines_options() -> None:
    text = " a \r\n\nb\r"

    assert split_lines(text) == ["a", "b"]
    assert split_lines(text, remove_empty_entries=False, trim=False) == [" a ", "", "b", ""]


def test_offsets_round_trip_on_crlf_text() -> None:
    document = TextDocument(uri="untitled:1", text="ab\r\ncd\r\nef")

    assert document.eol == CRLF
    assert document.line_count == 3
    assert document.get_line(1) == "cd"
    assert document.offset_at(Position.create(1, 1)) == 5
    assert document.position_at(5) == Position.create(1, 1)


def test_offset_at_clamps_to_document() -> None:
    document = TextDocument(uri="untitled:1", text="abc\nde")

    assert document.eol == LF
    assert document.offset_at(Position.create(0, 99)) == 3
    assert document.offset_at(Position.create(10, 0)) == len(document.text)


def test_windows_line_ending_count() -> None:
    document = TextDocument(uri="untitled:1", text="a\r\nb\r\nc")

    assert windows_line_ending_count(document, 0) == 0
    assert windows_line_ending_count(document, 3) == 1
    assert windows_line_ending_count(document, len(document.text)) == 2


def test_from_path_preserves_newlines(tmp_path: Path) -> None:
    path = tmp_path / "crlf.py"
    path.write_bytes(b"x = 1\r\ny = 2\r\n")

    document = TextDocument.from_path(path)

    assert document.text == "x = 1\r\ny = 2\r\n"
    assert document.path == path.resolve()
    assert not document.dirty


def test_with_text_bumps_version() -> None:
    document = TextDocument(uri="untitled:1", text="a", version=3, dirty=True)

    updated = document.with_text("b", dirty=False)

    assert updated.version == 4
    assert updated.text == "b"
    assert not updated.dirty
    assert document.text == "a"


def test_path_rejects_non_file_uri() -> None:
    document = TextDocument(uri="untitled:scratch", text="")

    with pytest.raises(ValueError, match="not backed by a file"):
        _ = document.path
