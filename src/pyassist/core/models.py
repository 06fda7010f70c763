# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the pyassist package."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .severity import DiagnosticSeverity, LintMessageSeverity

type OutputSource = Literal["stdout", "stderr"]


class Position(BaseModel):
    """Zero-based line/character location inside a text document."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0)
    character: int = Field(ge=0)

    @classmethod
    def create(cls, line: int, character: int) -> Position:
        """Build a position from positional arguments.

        Args:
            line: Zero-based line number.
            character: Zero-based character offset within the line.

        Returns:
            Position: Immutable position instance.
        """

        return cls(line=line, character=character)


class Range(BaseModel):
    """Half-open span between two :class:`Position` values."""

    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    @classmethod
    def create(cls, start_line: int, start_character: int, end_line: int, end_character: int) -> Range:
        """Build a range from four zero-based coordinates."""

        return cls(
            start=Position.create(start_line, start_character),
            end=Position.create(end_line, end_character),
        )


class TextEdit(BaseModel):
    """Replace the text covered by :attr:`range` with :attr:`new_text`."""

    model_config = ConfigDict(frozen=True)

    range: Range
    new_text: str


class LintMessage(BaseModel):
    """One finding reported by a linter, positions are 1-based."""

    model_config = ConfigDict(validate_assignment=True)

    line: int
    column: int
    code: str
    message: str
    type: str
    provider: str
    file: str | None = None
    severity: LintMessageSeverity | None = None


class Diagnostic(BaseModel):
    """Editor-facing diagnostic derived from a :class:`LintMessage`."""

    model_config = ConfigDict(frozen=True)

    range: Range
    message: str
    severity: DiagnosticSeverity
    code: str | None = None
    source: str


class ExecutionInfo(BaseModel):
    """Resolved invocation of an external tool.

    ``module_name`` is set when the tool runs as ``python -m <module>``; in that
    case :attr:`exec_path` points at the interpreter and :attr:`args` already
    include the ``-m`` prefix.
    """

    model_config = ConfigDict(frozen=True)

    exec_path: str
    args: tuple[str, ...] = Field(default_factory=tuple)
    module_name: str | None = None
    product: str | None = None

    @field_validator("args", mode="before")
    @classmethod
    def _coerce_args(cls, value: Sequence[str] | None) -> tuple[str, ...]:
        """Normalise argument sequences into tuples of strings.

        Args:
            value: Raw argument sequence supplied by the caller.

        Returns:
            tuple[str, ...]: Arguments as an immutable tuple.
        """

        if value is None:
            return ()
        return tuple(str(item) for item in value)

    @property
    def command(self) -> list[str]:
        """Return the full command line including the executable."""

        return [self.exec_path, *self.args]


class ExecutionResult(BaseModel):
    """Captured streams and exit status of a finished tool process."""

    model_config = ConfigDict(frozen=True)

    stdout: str = ""
    stderr: str = ""
    returncode: int | None = None
    cancelled: bool = False


class OutputChunk(BaseModel):
    """Incremental piece of output read from one of a child's streams."""

    model_config = ConfigDict(frozen=True)

    source: OutputSource
    text: str


__all__ = [
    "Diagnostic",
    "ExecutionInfo",
    "ExecutionResult",
    "LintMessage",
    "OutputChunk",
    "OutputSource",
    "Position",
    "Range",
    "TextEdit",
]
