# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Run every enabled linter for a document and merge their diagnostics."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from ..config.models import Settings
from ..core.documents import TextDocument
from ..core.logging import OutputChannel
from ..core.models import Diagnostic, LintMessage, Range
from ..core.severity import to_diagnostic_severity
from ..process.cancellation import CancellationToken, CancellationTokenSource
from ..process.runner import ProcessService
from .base import BaseLinter
from .linters import available_linters, create_linter

LOGGER = logging.getLogger(__name__)


def to_diagnostic(message: LintMessage, document: TextDocument | None = None) -> Diagnostic:
    """Convert a 1-based :class:`LintMessage` into a 0-based :class:`Diagnostic`.

    The range starts at the reported column and, when ``document`` is supplied,
    extends to the end of the reported line.
    """

    line = max(message.line - 1, 0)
    start = message.column
    end = start
    if document is not None and line < document.line_count:
        text = document.get_line(line)
        start = min(start, len(text))
        end = max(len(text), start)
    return Diagnostic(
        range=Range.create(line, start, line, end),
        message=message.message,
        severity=to_diagnostic_severity(message.severity),
        code=message.code or None,
        source=message.provider,
    )


class LintingEngine:
    """Fan a document out to several linters and collect their findings.

    Each linter runs as its own task with a cancellation token derived from the
    caller's token, so cancelling the document run stops every linter while a
    crash in one linter leaves the others untouched.
    """

    def __init__(
        self,
        settings: Settings,
        output_channel: OutputChannel,
        process_service: ProcessService | None = None,
        *,
        linters: Sequence[BaseLinter] | None = None,
    ) -> None:
        """Create an engine for ``settings``.

        Args:
            settings: Explicit configuration shared by every linter.
            output_channel: Audit sink handed to each linter.
            process_service: Process spawner; defaults to one bound to ``settings``.
            linters: Pre-built linters overriding the built-in registry.
        """

        self.settings = settings
        self.output_channel = output_channel
        self.process_service = process_service or ProcessService(settings.python_path)
        self._linters = list(linters) if linters is not None else self._build_linters(available_linters())

    def _build_linters(self, linter_ids: Iterable[str]) -> list[BaseLinter]:
        return [
            create_linter(linter_id, self.settings, self.output_channel, self.process_service)
            for linter_id in linter_ids
        ]

    @property
    def linters(self) -> tuple[BaseLinter, ...]:
        """Return the linters managed by the engine."""

        return tuple(self._linters)

    def enabled_linters(self, document: TextDocument) -> list[BaseLinter]:
        """Return linters that are enabled for ``document``."""

        return [linter for linter in self._linters if linter.info.is_enabled(document)]

    async def lint(
        self,
        document: TextDocument,
        token: CancellationToken | None = None,
    ) -> list[LintMessage]:
        """Run enabled linters concurrently and return their messages in run order.

        Args:
            document: Document to lint.
            token: Optional token cancelling every linter run.

        Returns:
            list[LintMessage]: Messages grouped by linter.
        """

        linters = self.enabled_linters(document)
        if not linters:
            return []
        sources = [CancellationTokenSource(token) for _ in linters]
        results = await asyncio.gather(
            *(linter.lint(document, source.token) for linter, source in zip(linters, sources, strict=True)),
            return_exceptions=True,
        )
        messages: list[LintMessage] = []
        for linter, result in zip(linters, results, strict=True):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                LOGGER.error("Linter %s crashed: %s", linter.info.id, result, exc_info=result)
                self.output_channel.append_line(f"Linting with {linter.info.id} failed:")
                self.output_channel.append_line(str(result))
                continue
            messages.extend(result)
        return messages

    async def lint_document(
        self,
        document: TextDocument,
        token: CancellationToken | None = None,
    ) -> list[Diagnostic]:
        """Lint ``document`` and return editor diagnostics sorted by position."""

        messages = await self.lint(document, token)
        diagnostics = [to_diagnostic(message, document) for message in messages]
        diagnostics.sort(key=lambda diagnostic: (diagnostic.range.start.line, diagnostic.range.start.character))
        return diagnostics


__all__ = ["LintingEngine", "to_diagnostic"]
