# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the line-oriented linter output parser."""

from __future__ import annotations

import pytest

from pyassist.core.errors import LintParseError
from pyassist.core.severity import (
    DiagnosticSeverity,
    LintMessageSeverity,
    parse_messages_severity,
    to_diagnostic_severity,
)
from pyassist.linting.linters import MYPY_REGEX
from pyassist.linting.parser import DEFAULT_REGEX, match_named_regex, parse_line


def test_parse_line_negative_column_collapses_to_zero() -> None:
    message = parse_line("12,-1,Error,E501:line too long", DEFAULT_REGEX, "flake8")

    assert message is not None
    assert message.line == 12
    assert message.column == 0
    assert message.type == "Error"
    assert message.code == "E501"
    assert message.message == "line too long"
    assert message.provider == "flake8"
    assert message.file is None


@pytest.mark.parametrize(
    ("column", "offset", "expected"),
    [
        ("5", 1, 4),
        ("5", 0, 5),
        ("1", 1, 0),
        ("1", 3, 0),
        ("0", 1, 0),
    ],
)
def test_parse_line_applies_column_offset(column: str, offset: int, expected: int) -> None:
    message = parse_line(f"3,{column},W,W291:trailing whitespace", DEFAULT_REGEX, "flake8", offset)

    assert message is not None
    assert message.column == expected


def test_parse_line_strips_carriage_return() -> None:
    message = parse_line("7,2,E,E225:missing whitespace\r", DEFAULT_REGEX, "flake8")

    assert message is not None
    assert message.message == "missing whitespace"


@pytest.mark.parametrize("line", ["", "not a lint line", "abc,1,E,E1:msg", "1,2,E:missing code"])
def test_parse_line_without_match_returns_none(line: str) -> None:
    assert parse_line(line, DEFAULT_REGEX, "flake8") is None


def test_parse_line_rejects_non_numeric_line_number() -> None:
    regex = r"(?P<line>\w+):(?P<message>.*)"

    with pytest.raises(LintParseError) as excinfo:
        parse_line("twelve:boom", regex, "custom")

    assert excinfo.value.line == "twelve:boom"


def test_parse_line_with_mypy_pattern_captures_file() -> None:
    message = parse_line("pkg/mod.py:3:5: error: Incompatible types", MYPY_REGEX, "mypy", 1)

    assert message is not None
    assert message.file == "pkg/mod.py"
    assert message.line == 3
    assert message.column == 4
    assert message.type == "error"
    assert message.code == ""
    assert message.message == "Incompatible types"


def test_match_named_regex_returns_groups() -> None:
    groups = match_named_regex("1,2,W,W605:invalid escape", DEFAULT_REGEX)

    assert groups is not None
    assert groups["code"] == "W605"
    assert match_named_regex("nothing here", DEFAULT_REGEX) is None


def test_parse_messages_severity_defaults_to_information() -> None:
    mapping = {"E": "Error", "W": "warning", "X": "Bogus"}

    assert parse_messages_severity("E", mapping) is LintMessageSeverity.ERROR
    assert parse_messages_severity("W", mapping) is LintMessageSeverity.WARNING
    assert parse_messages_severity("X", mapping) is LintMessageSeverity.INFORMATION
    assert parse_messages_severity("C", mapping) is LintMessageSeverity.INFORMATION


def test_to_diagnostic_severity() -> None:
    assert to_diagnostic_severity(LintMessageSeverity.HINT) is DiagnosticSeverity.HINT
    assert to_diagnostic_severity(None) is DiagnosticSeverity.INFORMATION
