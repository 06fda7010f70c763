# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Built-in linters and their registry."""

from __future__ import annotations

import re
from pathlib import Path
from typing import ClassVar, Final

from ..config.models import BANDIT, FLAKE8, MYPY, PYCODESTYLE, PYDOCSTYLE, PYLINT, Settings
from ..core.documents import TextDocument, split_lines
from ..core.logging import OutputChannel
from ..core.models import ExecutionResult, LintMessage
from ..process.cancellation import CancellationToken
from ..process.runner import ProcessService
from .base import BaseLinter
from .info import LinterInfo

PEP8_FORMAT: Final[str] = "--format=%(row)d,%(col)d,%(code).1s,%(code)s:%(text)s"
MYPY_REGEX: Final[str] = (
    r"(?P<file>[^:\r\n]+):(?P<line>\d+)(:(?P<column>\d+))?: (?P<type>\w+): (?P<message>.*?)\r?(\n|$)"
)
PYDOCSTYLE_HEADER: Final[re.Pattern[str]] = re.compile(r"^(?P<file>.+?):(?P<line>\d+)\b")
PYDOCSTYLE_DETAIL: Final[re.Pattern[str]] = re.compile(r"^\s+(?P<code>D\d+):? (?P<message>.*)$")


class Flake8(BaseLinter):
    """flake8 emitting the comma separated pep8 format."""

    linter_id: ClassVar[str] = FLAKE8
    product_name: ClassVar[str] = "Flake8"
    default_column_offset: ClassVar[int] = 1

    async def run_linter(self, document: TextDocument, token: CancellationToken) -> list[LintMessage]:
        return await self.run([PEP8_FORMAT, str(document.path)], document, token)


class Pycodestyle(Flake8):
    """pycodestyle sharing flake8's output format."""

    linter_id: ClassVar[str] = PYCODESTYLE
    product_name: ClassVar[str] = "pycodestyle"


class Pylint(BaseLinter):
    """pylint with a message template matching the default line pattern."""

    linter_id: ClassVar[str] = PYLINT
    product_name: ClassVar[str] = "Pylint"
    default_column_offset: ClassVar[int] = 0

    async def run_linter(self, document: TextDocument, token: CancellationToken) -> list[LintMessage]:
        args = [
            "--msg-template={line},{column},{category},{msg_id}:{msg}",
            "--reports=n",
            "--output-format=text",
            str(document.path),
        ]
        return await self.run(args, document, token)


class Mypy(BaseLinter):
    """mypy; only messages about the linted document are kept."""

    linter_id: ClassVar[str] = MYPY
    product_name: ClassVar[str] = "mypy"
    default_column_offset: ClassVar[int] = 1

    async def run_linter(self, document: TextDocument, token: CancellationToken) -> list[LintMessage]:
        args = [
            "--ignore-missing-imports",
            "--follow-imports=silent",
            "--show-column-numbers",
            "--no-pretty",
            str(document.path),
        ]
        return await self.run(args, document, token, MYPY_REGEX)

    async def handle_result(
        self,
        result: ExecutionResult,
        document: TextDocument,
        token: CancellationToken,
        regex: str,
    ) -> list[LintMessage]:
        messages = self.parse_messages(result.stdout, document, token, regex)
        target = document.path.resolve()
        root = self.info.settings.workspace_root
        kept: list[LintMessage] = []
        for message in messages:
            if message.file is None or (root / Path(message.file)).resolve() != target:
                continue
            message.code = message.type
            kept.append(message)
        return kept


class Bandit(BaseLinter):
    """bandit with a custom template reporting LOW/MEDIUM/HIGH severities."""

    linter_id: ClassVar[str] = BANDIT
    product_name: ClassVar[str] = "Bandit"
    default_column_offset: ClassVar[int] = 0

    async def run_linter(self, document: TextDocument, token: CancellationToken) -> list[LintMessage]:
        args = [
            "-f",
            "custom",
            "--msg-template",
            "{line},0,{severity},{test_id}:{msg}",
            "-q",
            str(document.path),
        ]
        return await self.run(args, document, token)


class Pydocstyle(BaseLinter):
    """pydocstyle, whose findings span a header line and an indented detail line."""

    linter_id: ClassVar[str] = PYDOCSTYLE
    product_name: ClassVar[str] = "pydocstyle"
    default_column_offset: ClassVar[int] = 0

    async def run_linter(self, document: TextDocument, token: CancellationToken) -> list[LintMessage]:
        return await self.run([str(document.path)], document, token)

    def parse_messages(
        self,
        output: str,
        document: TextDocument,
        token: CancellationToken | None,
        regex: str,
    ) -> list[LintMessage]:
        return super().parse_messages(self._flatten(output), document, token, regex)

    @staticmethod
    def _flatten(output: str) -> str:
        """Fold header/detail pairs into ``line,0,D,code:message`` lines."""

        flattened: list[str] = []
        line_number: str | None = None
        for raw in split_lines(output, remove_empty_entries=True, trim=False):
            header = PYDOCSTYLE_HEADER.match(raw)
            if header is not None and not raw[:1].isspace():
                line_number = header.group("line")
                continue
            detail = PYDOCSTYLE_DETAIL.match(raw)
            if detail is None or line_number is None:
                continue
            flattened.append(f"{line_number},0,D,{detail.group('code')}:{detail.group('message')}")
            line_number = None
        return "\n".join(flattened)


LINTER_CLASSES: Final[dict[str, type[BaseLinter]]] = {
    cls.linter_id: cls
    for cls in (Flake8, Pycodestyle, Pylint, Mypy, Bandit, Pydocstyle)
}


def available_linters() -> tuple[str, ...]:
    """Return the identifiers of every built-in linter."""

    return tuple(LINTER_CLASSES)


def create_linter(
    linter_id: str,
    settings: Settings,
    output_channel: OutputChannel,
    process_service: ProcessService,
) -> BaseLinter:
    """Instantiate the built-in linter registered as ``linter_id``.

    Raises:
        KeyError: If no linter is registered under ``linter_id``.
    """

    cls = LINTER_CLASSES[linter_id]
    info = LinterInfo(id=linter_id, name=cls.product_name, settings=settings)
    return cls(
        info,
        output_channel,
        process_service,
        column_offset=cls.default_column_offset,
    )


__all__ = [
    "Bandit",
    "Flake8",
    "LINTER_CLASSES",
    "Mypy",
    "Pycodestyle",
    "Pydocstyle",
    "Pylint",
    "available_linters",
    "create_linter",
]
