# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the refactor worker session against scripted fake workers."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

from pyassist.config import Settings
from pyassist.core.errors import (
    RefactorCommandError,
    RefactorDependencyMissingError,
    RefactorProtocolError,
    RefactorStartupError,
)
from pyassist.refactor import ExtractVariableCommand, RefactorResult, RefactorSession, SessionState

SPLIT_RESPONSE_WORKER = r"""
import json
import sys
import time

print("booting")
print("STARTED", flush=True)
command = json.loads(sys.stdin.readline())
sys.stdout.write('{"results"')
sys.stdout.flush()
time.sleep(0.3)
sys.stdout.write(':[{"diff":"--- a\\n+++ b\\n"}],"id":' + json.dumps(command["id"]) + '}\n')
sys.stdout.flush()
sys.stdin.readline()
"""

MISSING_DEPENDENCY_WORKER = r"""
import json
import sys

sys.stderr.write("DeprecationWarning: noise before the payload\n")
sys.stderr.write(json.dumps({
    "message": "",
    "traceback": "Traceback (most recent call last):\nModuleNotFoundError: no module rope",
}) + "\n")
sys.stderr.flush()
sys.exit(1)
"""

COMMAND_ERROR_WORKER = r"""
import json
import sys

print("STARTED", flush=True)
sys.stdin.readline()
sys.stderr.write(json.dumps({
    "message": "Cannot extract a partial expression",
    "traceback": "Traceback (most recent call last):\nRefactoringError: Cannot extract a partial expression",
    "type": "RefactoringError",
}) + "\n")
sys.stderr.flush()
sys.stdin.readline()
"""

WRONG_ID_WORKER = r"""
import sys

print("STARTED", flush=True)
sys.stdin.readline()
print('{"id": "99", "results": [{"diff": ""}]}', flush=True)
sys.stdin.readline()
"""

CRASHING_WORKER = r"""
import sys

sys.stderr.write("boom\n")
sys.exit(2)
"""

IDLE_ERROR_WORKER = r"""
import json
import sys
import time

print("STARTED", flush=True)
time.sleep(0.3)
sys.stderr.write(json.dumps({"message": "project closed", "traceback": "", "type": "RuntimeError"}) + "\n")
sys.stderr.flush()
time.sleep(30)
"""

SILENT_WORKER = r"""
import time

time.sleep(30)
"""


def _command() -> ExtractVariableCommand:
    return ExtractVariableCommand(file="/workspace/sample.py", start=4, end=9, name="newvariable1")


def _session(settings: Settings, write_script: Callable[[str, str], Path], body: str) -> RefactorSession:
    script = write_script("worker.py", body)
    return RefactorSession(settings, command=[sys.executable, str(script)])


def test_split_response_is_reassembled(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, SPLIT_RESPONSE_WORKER)

    result = asyncio.run(session.send(_command()))

    assert result.diff == "--- a\n+++ b\n"
    assert result.id == "2"
    assert session.state is SessionState.DISPOSED


def test_second_command_is_rejected_while_busy(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, SPLIT_RESPONSE_WORKER)

    async def _run() -> RefactorResult:
        await session.start()
        assert session.state is SessionState.READY
        first = asyncio.ensure_future(session.send(_command()))
        await asyncio.sleep(0)
        assert session.state is SessionState.BUSY
        with pytest.raises(RuntimeError, match="already in flight"):
            await session.send(_command())
        return await first

    assert asyncio.run(_run()).diff == "--- a\n+++ b\n"
    with pytest.raises(RuntimeError):
        asyncio.run(session.send(_command()))


def test_missing_dependency_fails_startup(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, MISSING_DEPENDENCY_WORKER)

    with pytest.raises(RefactorDependencyMissingError, match="Not installed"):
        asyncio.run(session.send(_command()))

    assert session.state is SessionState.FAILED


def test_command_error_is_reported_with_traceback(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, COMMAND_ERROR_WORKER)

    with pytest.raises(RefactorCommandError) as excinfo:
        asyncio.run(session.send(_command()))

    message = str(excinfo.value)
    assert message.startswith("Refactor failed. Cannot extract a partial expression\nTraceback")
    assert session.state is SessionState.FAILED


def test_mismatched_response_id_is_rejected(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, WRONG_ID_WORKER)

    with pytest.raises(RefactorProtocolError, match="does not match"):
        asyncio.run(session.send(_command()))


def test_worker_exit_before_ready_fails_startup(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, CRASHING_WORKER)

    with pytest.raises(RefactorStartupError) as excinfo:
        asyncio.run(session.start())

    assert not isinstance(excinfo.value, RefactorDependencyMissingError)
    assert "boom" in str(excinfo.value)


def test_startup_timeout(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    settings.refactor.startup_timeout = 0.5
    session = _session(settings, write_script, SILENT_WORKER)

    with pytest.raises(RefactorStartupError, match="did not start"):
        asyncio.run(session.start())


def test_missing_worker_executable(settings: Settings) -> None:
    session = RefactorSession(settings, command=["pyassist-missing-worker-binary"])

    with pytest.raises(RefactorStartupError):
        asyncio.run(session.start())

    assert session.state is SessionState.FAILED


def test_context_manager_disposes(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, SPLIT_RESPONSE_WORKER)

    async def _run() -> None:
        async with session:
            await session.start()

    asyncio.run(_run())

    assert session.state is SessionState.DISPOSED


def test_error_while_idle_fails_the_session(settings: Settings, write_script: Callable[[str, str], Path]) -> None:
    session = _session(settings, write_script, IDLE_ERROR_WORKER)

    async def _run() -> None:
        async with session:
            await session.start()
            for _ in range(100):
                if session.state is SessionState.FAILED:
                    break
                await asyncio.sleep(0.05)
            assert session.state is SessionState.FAILED
            with pytest.raises(RuntimeError, match="failed") as excinfo:
                await session.send(_command())
            assert isinstance(excinfo.value.__cause__, RefactorStartupError)
            assert "project closed" in str(excinfo.value.__cause__)

    asyncio.run(_run())

    assert session.state is SessionState.FAILED
