# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the linting and refactoring layers."""

from __future__ import annotations

from collections.abc import Sequence


class PyAssistError(Exception):
    """Base class for all errors raised by pyassist."""


class ConfigError(PyAssistError):
    """Raised when configuration input is invalid."""


class LintParseError(PyAssistError):
    """Raised when a single line of linter output cannot be converted."""

    def __init__(self, line: str, reason: str) -> None:
        """Record the offending line alongside the failure reason.

        Args:
            line: Raw output line that failed to parse.
            reason: Human readable explanation of the failure.
        """

        super().__init__(reason)
        self.line = line
        self.reason = reason


class ProcessSpawnError(PyAssistError):
    """Raised when an external tool could not be started or executed."""

    def __init__(self, command: Sequence[str], reason: str) -> None:
        """Initialise the error with the command that failed to launch.

        Args:
            command: Command sequence passed to the process layer.
            reason: Description of the operating system failure.
        """

        head = command[0] if command else "<empty>"
        super().__init__(f"Failed to execute '{head}': {reason}")
        self.command = tuple(command)
        self.reason = reason


class RefactorStartupError(PyAssistError):
    """Raised when the refactor worker fails before signalling readiness."""


class RefactorDependencyMissingError(RefactorStartupError):
    """Raised when the refactor worker reports its backing library is absent."""


class RefactorCommandError(PyAssistError):
    """Raised when the refactor worker reports an error for a command."""


class RefactorProtocolError(PyAssistError):
    """Raised when the refactor worker emits a payload of unexpected shape."""


class ApplyEditsError(PyAssistError):
    """Raised when a diff cannot be translated or applied to a document."""


__all__ = [
    "ApplyEditsError",
    "ConfigError",
    "LintParseError",
    "ProcessSpawnError",
    "PyAssistError",
    "RefactorCommandError",
    "RefactorDependencyMissingError",
    "RefactorProtocolError",
    "RefactorStartupError",
]
