# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared linter execution pipeline: spawn, capture, parse and truncate."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import ClassVar

from ..core.documents import TextDocument, split_lines
from ..core.errors import LintParseError, ProcessSpawnError
from ..core.logging import BANNER, OutputChannel
from ..core.models import ExecutionResult, LintMessage
from ..core.severity import LintMessageSeverity, parse_messages_severity
from ..process.cancellation import CancellationToken
from ..process.runner import ProcessService
from .info import LinterInfo
from .parser import DEFAULT_REGEX, parse_line


class BaseLinter(ABC):
    """Drive one linter process and turn its stdout into :class:`LintMessage` values.

    Subclasses implement :meth:`run_linter`, usually by building an argument list
    and delegating to :meth:`run`. A failing linter never raises: spawn failures
    are logged to the output channel and yield an empty result, and individual
    unparseable lines are logged and skipped.
    """

    linter_id: ClassVar[str] = ""
    product_name: ClassVar[str] = ""
    default_column_offset: ClassVar[int] = 0

    def __init__(
        self,
        info: LinterInfo,
        output_channel: OutputChannel,
        process_service: ProcessService,
        *,
        column_offset: int = 0,
    ) -> None:
        """Bind the linter to its configuration and collaborators.

        Args:
            info: Identity and resolved settings of the linter.
            output_channel: Audit sink receiving invocations and raw output.
            process_service: Service used to spawn the linter process.
            column_offset: Amount subtracted from positive reported columns.
        """

        self._info = info
        self.output_channel = output_channel
        self.process_service = process_service
        self.column_offset = column_offset

    @property
    def info(self) -> LinterInfo:
        """Return the static description of this linter."""

        return self._info

    @property
    def max_number_of_problems(self) -> int:
        """Return the cap on messages reported for one run."""

        return self._info.settings.linting.max_number_of_problems

    @property
    def category_severity(self) -> Mapping[str, str]:
        """Return the configured category to severity-name mapping."""

        return self._info.linter_settings.category_severity

    async def lint(self, document: TextDocument, token: CancellationToken) -> list[LintMessage]:
        """Lint ``document`` and return the messages found."""

        return await self.run_linter(document, token)

    @abstractmethod
    async def run_linter(self, document: TextDocument, token: CancellationToken) -> list[LintMessage]:
        """Run the concrete linter for ``document``."""

    def parse_messages_severity(self, category: str, category_severity: Mapping[str, str]) -> LintMessageSeverity:
        """Map ``category`` to a severity using ``category_severity``."""

        return parse_messages_severity(category, category_severity)

    async def run(
        self,
        args: Sequence[str],
        document: TextDocument,
        token: CancellationToken,
        regex: str = DEFAULT_REGEX,
    ) -> list[LintMessage]:
        """Execute the linter with ``args`` and parse its stdout.

        Args:
            args: Linter specific arguments, typically ending with the file path.
            document: Document being linted.
            token: Cancellation token bound to this run.
            regex: Line pattern passed to :func:`parse_line`.

        Returns:
            list[LintMessage]: Parsed messages; empty when the linter is disabled
            for the document or could not be executed.
        """

        if not self._info.is_enabled(document):
            return []
        execution_info = self._info.get_execution_info(args, document)
        self.output_channel.append_line(f"{BANNER} Run linter {self._info.id}:")
        self.output_channel.append_line(json.dumps(execution_info.model_dump(mode="json")))
        self.output_channel.append_line("")
        try:
            result = await self.process_service.exec(
                execution_info,
                cwd=self._info.settings.workspace_root,
                token=token,
            )
        except ProcessSpawnError as exc:
            self._log_failure(exc)
            return []

        self.output_channel.append(f"{BANNER} Linting Output - {self._info.id}{BANNER}\n")
        self.output_channel.append(result.stdout)
        self.output_channel.append_line("")
        return await self.handle_result(result, document, token, regex)

    async def handle_result(
        self,
        result: ExecutionResult,
        document: TextDocument,
        token: CancellationToken,
        regex: str,
    ) -> list[LintMessage]:
        """Turn a finished execution into messages; subclasses may post-process."""

        return self.parse_messages(result.stdout, document, token, regex)

    def parse_messages(
        self,
        output: str,
        document: TextDocument,
        token: CancellationToken | None,
        regex: str,
    ) -> list[LintMessage]:
        """Parse ``output`` line by line.

        Lines are neither trimmed nor dropped when empty so that reported columns
        stay aligned with the raw text. Parsing stops once
        :attr:`max_number_of_problems` messages were collected or ``token`` is
        cancelled; the messages gathered so far are returned.

        Args:
            output: Raw stdout of the linter.
            document: Document being linted.
            token: Optional cancellation token checked between lines.
            regex: Line pattern passed to :func:`parse_line`.

        Returns:
            list[LintMessage]: Messages in output order.
        """

        del document
        messages: list[LintMessage] = []
        limit = self.max_number_of_problems
        for line in split_lines(output, remove_empty_entries=False, trim=False):
            if token is not None and token.is_cancellation_requested:
                break
            try:
                message = parse_line(line, regex, self._info.id, self.column_offset)
            except LintParseError as exc:
                self.output_channel.append_line(f"{BANNER} Linter {self._info.id} failed to parse the line:")
                self.output_channel.append_line(line)
                self.output_channel.append_line(str(exc))
                continue
            if message is None:
                continue
            message.severity = self.parse_messages_severity(message.type, self.category_severity)
            messages.append(message)
            if len(messages) >= limit:
                break
        return messages

    def _log_failure(self, error: Exception) -> None:
        self.output_channel.append_line(f"Linting with {self._info.id} failed:")
        self.output_channel.append_line(str(error))


__all__ = ["BaseLinter"]
