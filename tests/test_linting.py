# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the linter pipeline and the linting engine."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from pyassist.config import Settings
from pyassist.config.models import FLAKE8, MYPY, PYLINT
from pyassist.core.documents import TextDocument
from pyassist.core.logging import OutputChannel
from pyassist.core.models import LintMessage
from pyassist.core.severity import DiagnosticSeverity, LintMessageSeverity
from pyassist.linting import LintingEngine, create_linter, to_diagnostic
from pyassist.linting.linters import Pydocstyle
from pyassist.process import CancellationTokenSource, ProcessService


def _emit_script(output: str) -> str:
    return f"import sys\nsys.stdout.write({output!r})\n"


def _configure(settings: Settings, linter_id: str, *, path: str, output: str = "") -> None:
    linter = settings.linting.linter(linter_id)
    linter.enabled = True
    linter.path = path
    linter.args = ["-c", _emit_script(output)]


def _lint(settings: Settings, channel: OutputChannel, linter_id: str, document: TextDocument) -> list[LintMessage]:
    linter = create_linter(linter_id, settings, channel, ProcessService(sys.executable))
    return asyncio.run(linter.lint(document, CancellationTokenSource().token))


def test_flake8_output_is_parsed_with_severities(
    settings: Settings,
    channel: OutputChannel,
    python_file: Path,
) -> None:
    output = "1,5,E,E225:missing whitespace around operator\n2,1,W,W291:trailing whitespace\nnoise\n"
    _configure(settings, FLAKE8, path=sys.executable, output=output)

    messages = _lint(settings, channel, FLAKE8, TextDocument.from_path(python_file))

    assert [(message.line, message.column, message.code) for message in messages] == [
        (1, 4, "E225"),
        (2, 0, "W291"),
    ]
    assert [message.severity for message in messages] == [LintMessageSeverity.ERROR, LintMessageSeverity.WARNING]
    assert "########## Run linter flake8:" in channel.lines()
    assert any(line.startswith("########## Linting Output - flake8") for line in channel.lines())


def test_message_count_is_capped(settings: Settings, channel: OutputChannel, python_file: Path) -> None:
    settings.linting.max_number_of_problems = 3
    output = "".join(f"{index},1,E,E101:problem {index}\n" for index in range(1, 11))
    _configure(settings, FLAKE8, path=sys.executable, output=output)

    messages = _lint(settings, channel, FLAKE8, TextDocument.from_path(python_file))

    assert len(messages) == 3
    assert [message.line for message in messages] == [1, 2, 3]


def test_unparseable_lines_are_logged_and_skipped(
    settings: Settings,
    channel: OutputChannel,
    python_file: Path,
) -> None:
    linter = create_linter(FLAKE8, settings, channel, ProcessService(sys.executable))
    regex = r"(?P<line>\w+),(?P<column>\d+),(?P<type>\w+),(?P<code>\w+):(?P<message>.*)"
    output = "one,1,E,E1:bad line\n2,1,E,E2:good line\n"

    messages = linter.parse_messages(output, TextDocument.from_path(python_file), None, regex)

    assert [message.code for message in messages] == ["E2"]
    assert "########## Linter flake8 failed to parse the line:" in channel.lines()
    assert "one,1,E,E1:bad line" in channel.lines()


def test_missing_executable_yields_no_messages(
    settings: Settings,
    channel: OutputChannel,
    python_file: Path,
) -> None:
    _configure(settings, FLAKE8, path="pyassist-missing-linter-binary")

    messages = _lint(settings, channel, FLAKE8, TextDocument.from_path(python_file))

    assert messages == []
    assert "Linting with flake8 failed:" in channel.lines()


def test_disabled_linter_does_not_run(settings: Settings, channel: OutputChannel, python_file: Path) -> None:
    settings.linting.linter(FLAKE8).enabled = False

    assert _lint(settings, channel, FLAKE8, TextDocument.from_path(python_file)) == []
    assert channel.lines() == []


def test_linter_ignore_patterns_only_skip_that_linter(
    settings: Settings,
    channel: OutputChannel,
    python_file: Path,
) -> None:
    _configure(settings, FLAKE8, path=sys.executable, output="1,1,E,E1:flake8 finding\n")
    _configure(settings, PYLINT, path=sys.executable, output="1,0,error,E0001:pylint finding\n")
    settings.linting.linter(FLAKE8).ignore_patterns = ["sample.py"]
    document = TextDocument.from_path(python_file)

    assert _lint(settings, channel, FLAKE8, document) == []
    assert [message.code for message in _lint(settings, channel, PYLINT, document)] == ["E0001"]


def test_cancelled_run_returns_no_messages(settings: Settings, channel: OutputChannel, python_file: Path) -> None:
    _configure(settings, FLAKE8, path=sys.executable, output="1,1,E,E1:never seen\n")
    linter = create_linter(FLAKE8, settings, channel, ProcessService(sys.executable))

    async def _run() -> list[LintMessage]:
        source = CancellationTokenSource()
        source.cancel()
        return await linter.lint(TextDocument.from_path(python_file), source.token)

    assert asyncio.run(_run()) == []


def test_mypy_keeps_messages_for_the_document_only(
    settings: Settings,
    channel: OutputChannel,
    python_file: Path,
) -> None:
    output = "sample.py:1:5: error: Unsupported operand\nother.py:2:1: error: Elsewhere\nSuccess: no issues\n"
    _configure(settings, MYPY, path=sys.executable, output=output)

    messages = _lint(settings, channel, MYPY, TextDocument.from_path(python_file))

    assert len(messages) == 1
    assert messages[0].code == "error"
    assert messages[0].column == 4
    assert messages[0].severity is LintMessageSeverity.ERROR


def test_pydocstyle_output_is_flattened() -> None:
    output = (
        "sample.py:1 at module level:\n"
        "        D100: Missing docstring in public module\n"
        "sample.py:4 in public function `run`:\n"
        "        D103: Missing docstring in public function\n"
    )

    assert Pydocstyle._flatten(output).splitlines() == [
        "1,0,D,D100:Missing docstring in public module",
        "4,0,D,D103:Missing docstring in public function",
    ]


def test_engine_keeps_results_when_another_linter_fails(
    settings: Settings,
    channel: OutputChannel,
    python_file: Path,
) -> None:
    _configure(settings, FLAKE8, path="pyassist-missing-linter-binary")
    _configure(
        settings,
        PYLINT,
        path=sys.executable,
        output="1,0,convention,C0114:Missing module docstring\n2,4,error,E0602:Undefined variable 'y'\n",
    )
    engine = LintingEngine(settings, channel)

    messages = asyncio.run(engine.lint(TextDocument.from_path(python_file)))

    assert [(message.provider, message.code) for message in messages] == [
        (PYLINT, "C0114"),
        (PYLINT, "E0602"),
    ]
    assert "Linting with flake8 failed:" in channel.lines()


def test_engine_lint_document_returns_sorted_diagnostics(
    settings: Settings,
    channel: OutputChannel,
    python_file: Path,
) -> None:
    _configure(settings, FLAKE8, path=sys.executable, output="2,1,W,W291:trailing\n1,3,E,E225:operator\n")
    engine = LintingEngine(settings, channel)

    diagnostics = asyncio.run(engine.lint_document(TextDocument.from_path(python_file)))

    assert [diagnostic.range.start.line for diagnostic in diagnostics] == [0, 1]
    assert diagnostics[0].severity == DiagnosticSeverity.ERROR
    assert diagnostics[0].source == FLAKE8


def test_to_diagnostic_spans_to_end_of_line() -> None:
    document = TextDocument(uri="untitled:1", text="value = compute()\n")
    message = LintMessage(
        line=1,
        column=8,
        code="E1",
        message="boom",
        type="E",
        provider=FLAKE8,
        severity=LintMessageSeverity.WARNING,
    )

    diagnostic = to_diagnostic(message, document)

    assert diagnostic.range.start.character == 8
    assert diagnostic.range.end.character == len("value = compute()")
    assert diagnostic.severity == DiagnosticSeverity.WARNING


@pytest.mark.parametrize("linter_id", [FLAKE8, PYLINT, MYPY])
def test_execution_info_runs_module_without_custom_path(settings: Settings, linter_id: str) -> None:
    linter = create_linter(linter_id, settings, OutputChannel("Test"), ProcessService(sys.executable))

    info = linter.info.get_execution_info(["file.py"])

    assert info.exec_path == sys.executable
    assert info.args[:2] == ("-m", linter_id)
    assert info.args[-1] == "file.py"
