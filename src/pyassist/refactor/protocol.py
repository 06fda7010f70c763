# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Line-delimited JSON protocol spoken with the refactor worker.

Requests are single JSON objects terminated by ``\\n`` on the worker's stdin.
The worker prints ``STARTED`` once it is ready, replies on stdout with
``{"results": [{"diff": ...}]}`` and reports failures on stderr as
``{"message": ..., "traceback": ..., "type": ...}``.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer

from ..core.errors import RefactorProtocolError

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list[JsonValue] | dict[str, JsonValue]

READY_SENTINEL: Final[str] = "STARTED"
MODULE_NOT_FOUND: Final[str] = "ModuleNotFoundError"
ADD_IMPORT_ID: Final[str] = "1"
EXTRACT_VARIABLE_ID: Final[str] = "2"
EXTRACT_METHOD_ID: Final[str] = "3"

_LINE_SPLIT: Final[re.Pattern[str]] = re.compile(r"\r?\n")
_JSON_OPENERS: Final[tuple[str, ...]] = ("{", "[")


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str
    indent_size: int = Field(default=4, ge=1)

    def to_line(self) -> str:
        """Serialise the command as one newline-terminated JSON document."""

        return f"{self.model_dump_json()}\n"


class AddImportCommand(_Command):
    """Insert ``import name`` (or ``from parent import name``) into ``text``."""

    lookup: Literal["add_import"] = "add_import"
    id: str = ADD_IMPORT_ID
    text: str
    name: str
    parent: str = ""


class _ExtractCommand(_Command):
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    name: str

    @field_serializer("start", "end")
    def _offset_as_string(self, value: int) -> str:
        return str(value)


class ExtractVariableCommand(_ExtractCommand):
    """Extract the expression between two offsets into a new variable."""

    lookup: Literal["extract_variable"] = "extract_variable"
    id: str = EXTRACT_VARIABLE_ID


class ExtractMethodCommand(_ExtractCommand):
    """Extract the statements between two offsets into a new method."""

    lookup: Literal["extract_method"] = "extract_method"
    id: str = EXTRACT_METHOD_ID


RefactorCommand = Annotated[
    AddImportCommand | ExtractVariableCommand | ExtractMethodCommand,
    Field(discriminator="lookup"),
]


class RefactorDiff(BaseModel):
    """One unified diff produced by the worker."""

    model_config = ConfigDict(frozen=True)

    diff: str


class RefactorResult(BaseModel):
    """Successful worker response."""

    model_config = ConfigDict(frozen=True)

    results: list[RefactorDiff] = Field(min_length=1)
    id: str | int | None = None

    @property
    def diff(self) -> str:
        """Return the diff of the first result."""

        return self.results[0].diff


class RefactorErrorPayload(BaseModel):
    """Error record written by the worker to stderr."""

    model_config = ConfigDict(frozen=True)

    message: str | None = ""
    traceback: str = ""
    type: str | None = ""

    @property
    def summary(self) -> str:
        """Return the message, or the last traceback line when it is blank."""

        if self.message:
            return self.message
        lines = [line for line in self.traceback.splitlines() if line.strip()]
        return lines[-1] if lines else ""

    @property
    def formatted(self) -> str:
        """Return ``summary`` and the traceback separated by a newline."""

        return f"{self.summary}\n{self.traceback}"

    @property
    def is_dependency_missing(self) -> bool:
        """Return ``True`` when the worker could not import its backing library."""

        if self.type == MODULE_NOT_FOUND:
            return True
        return not self.type and self.summary.startswith(MODULE_NOT_FOUND)


def split_json_records(buffer: str) -> tuple[list[JsonValue], str]:
    """Frame ``buffer`` into complete JSON records.

    The buffer is split on line boundaries and blank lines are dropped. Only when
    every remaining line parses is the buffer considered complete; otherwise a
    record is still arriving and the whole buffer is handed back untouched.

    Args:
        buffer: Accumulated text read from a stream.

    Returns:
        tuple[list[JsonValue], str]: Parsed records and the text still pending.
        A complete buffer returns ``(records, "")``; an incomplete one returns
        ``([], buffer)``.
    """

    lines = [line for line in _LINE_SPLIT.split(buffer) if line.strip()]
    if not lines:
        return [], ""
    try:
        records: list[JsonValue] = [json.loads(line) for line in lines]
    except json.JSONDecodeError:
        return [], buffer
    return records, ""


def drop_noise_lines(buffer: str) -> tuple[str, list[str]]:
    """Remove complete lines that cannot start a JSON record.

    Interpreter warnings printed to stderr would otherwise keep
    :func:`split_json_records` from ever seeing a parseable buffer. The trailing
    unterminated fragment is always kept.

    Returns:
        tuple[str, list[str]]: The filtered buffer and the discarded lines.
    """

    *complete, tail = _LINE_SPLIT.split(buffer)
    kept: list[str] = []
    noise: list[str] = []
    for line in complete:
        stripped = line.strip()
        if not stripped or stripped.startswith(_JSON_OPENERS):
            kept.append(line)
        else:
            noise.append(line)
    kept.append(tail)
    return "\n".join(kept), noise


def consume_sentinel(buffer: str, sentinel: str = READY_SENTINEL) -> tuple[bool, str, list[str]]:
    """Look for the ready ``sentinel`` line in ``buffer``.

    Args:
        buffer: Accumulated stdout text.
        sentinel: Literal marker line emitted once by the worker.

    Returns:
        tuple[bool, str, list[str]]: Whether the sentinel was found, the text
        following it (or the untouched buffer), and the lines preceding it.
    """

    *complete, tail = _LINE_SPLIT.split(buffer)
    for index, line in enumerate(complete):
        if line.strip() == sentinel:
            remaining = "\n".join([*complete[index + 1 :], tail])
            return True, remaining, complete[:index]
    if tail.strip() == sentinel:
        return True, "", complete
    return False, buffer, []


def _first_record(record: JsonValue) -> JsonValue:
    if isinstance(record, list):
        if not record:
            raise RefactorProtocolError("Refactor worker returned an empty array")
        return record[0]
    return record


def parse_result(record: JsonValue) -> RefactorResult:
    """Validate a stdout record as a :class:`RefactorResult`.

    Raises:
        RefactorProtocolError: If the record does not carry a diff.
    """

    try:
        return RefactorResult.model_validate(_first_record(record))
    except ValidationError as exc:
        raise RefactorProtocolError(f"Unexpected refactor response: {exc}") from exc


def parse_error(record: JsonValue) -> RefactorErrorPayload:
    """Validate a stderr record as a :class:`RefactorErrorPayload`.

    Records of an unknown shape are wrapped so the raw content still reaches the
    audit log.
    """

    candidate = _first_record(record)
    try:
        return RefactorErrorPayload.model_validate(candidate)
    except ValidationError:
        return RefactorErrorPayload(message="Unrecognised refactor error", traceback=json.dumps(candidate))


__all__ = [
    "ADD_IMPORT_ID",
    "AddImportCommand",
    "EXTRACT_METHOD_ID",
    "EXTRACT_VARIABLE_ID",
    "ExtractMethodCommand",
    "ExtractVariableCommand",
    "JsonValue",
    "MODULE_NOT_FOUND",
    "READY_SENTINEL",
    "RefactorCommand",
    "RefactorDiff",
    "RefactorErrorPayload",
    "RefactorResult",
    "consume_sentinel",
    "drop_noise_lines",
    "parse_error",
    "parse_result",
    "split_json_records",
]
