# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing refactor commands: add import, extract variable, extract method."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from ..config.models import Settings
from ..core.documents import CRLF, TextDocument, windows_line_ending_count
from ..core.errors import ApplyEditsError, PyAssistError, RefactorDependencyMissingError
from ..core.logging import OutputChannel, fail, info, warn
from ..core.models import Position, Range, TextEdit
from ..process.runner import ProcessService
from .diffs import apply_text_edits, get_text_edits_from_patch
from .protocol import AddImportCommand, ExtractMethodCommand, ExtractVariableCommand, RefactorCommand
from .session import RefactorSession

LOGGER = logging.getLogger(__name__)

NEW_VARIABLE_PREFIX: Final[str] = "newvariable"
NEW_METHOD_PREFIX: Final[str] = "newmethod"
PARENT_MODULE_PROMPT: Final[str] = "Module:"
REFACTOR_FAILED_MESSAGE: Final[str] = "Cannot perform refactoring using selected element(s)."
ADD_IMPORT_FAILED_MESSAGE: Final[str] = "Cannot perform addImport using selected element(s)."
REFACTOR_BANNER: Final[str] = "Refactor Output"
ADD_IMPORT_BANNER: Final[str] = "Rope Output"


@runtime_checkable
class EditorHost(Protocol):
    """Editor services the refactor commands depend on."""

    async def save(self, document: TextDocument) -> TextDocument:
        """Persist ``document`` and return the clean snapshot."""
        ...

    async def apply_edits(self, document: TextDocument, edits: Sequence[TextEdit]) -> TextDocument:
        """Apply ``edits`` atomically and return the updated snapshot."""
        ...

    async def jump_to(self, document: TextDocument, position: Position) -> None:
        """Move the cursor of ``document`` to ``position``."""
        ...

    async def request_input(self, prompt: str) -> str:
        """Ask the user for a line of text."""
        ...

    def show_warning(self, message: str) -> None:
        """Display a warning to the user."""
        ...

    def show_error(self, message: str) -> None:
        """Display an error to the user."""
        ...


def _write_atomically(path: Path, text: str) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileEditorHost:
    """:class:`EditorHost` working directly against files on disk.

    Messages are printed with the rich console helpers and the last cursor
    position requested by a command is kept in :attr:`last_position`.
    """

    def __init__(
        self,
        *,
        input_provider: Callable[[str], str] | None = None,
        use_emoji: bool = True,
        use_color: bool | None = None,
    ) -> None:
        self._input_provider = input_provider
        self.use_emoji = use_emoji
        self.use_color = use_color
        self.last_position: Position | None = None

    async def save(self, document: TextDocument) -> TextDocument:
        _write_atomically(document.path, document.text)
        return document.with_text(document.text, dirty=False)

    async def apply_edits(self, document: TextDocument, edits: Sequence[TextEdit]) -> TextDocument:
        updated = apply_text_edits(document.text, edits)
        try:
            _write_atomically(document.path, updated)
        except OSError as exc:
            raise ApplyEditsError(f"Failed to write {document.path}: {exc}") from exc
        return document.with_text(updated, dirty=False)

    async def jump_to(self, document: TextDocument, position: Position) -> None:
        self.last_position = position
        info(
            f"{document.path}:{position.line + 1}:{position.character + 1}",
            use_emoji=self.use_emoji,
            use_color=self.use_color,
        )

    async def request_input(self, prompt: str) -> str:
        if self._input_provider is None:
            return ""
        return self._input_provider(prompt)

    def show_warning(self, message: str) -> None:
        warn(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def show_error(self, message: str) -> None:
        fail(message, use_emoji=self.use_emoji, use_color=self.use_color)


def default_name_factory(prefix: str) -> str:
    """Return ``prefix`` suffixed with the current millisecond."""

    return f"{prefix}{datetime.now().microsecond // 1000}"


@dataclass(frozen=True, slots=True)
class RefactorOutcome:
    """Result of a refactor command that ran to completion."""

    document: TextDocument
    position: Position | None = None


type SessionFactory = Callable[[], RefactorSession]


class RefactorOperations:
    """Run refactor commands against documents through an :class:`EditorHost`.

    Every command uses its own worker session. Failures from the worker or
    while applying its diff are written to the output channel with the full
    traceback, a generic message is shown to the user and the exception is
    re-raised for the caller.
    """

    def __init__(
        self,
        settings: Settings,
        editor: EditorHost,
        output_channel: OutputChannel,
        process_service: ProcessService | None = None,
        *,
        session_factory: SessionFactory | None = None,
        name_factory: Callable[[str], str] = default_name_factory,
    ) -> None:
        """Wire the operations to their collaborators.

        Args:
            settings: Explicit configuration for the worker and its interpreter.
            editor: Host applying edits and interacting with the user.
            output_channel: Audit sink for worker failures.
            process_service: Service used for the module check and the worker.
            session_factory: Builds a fresh worker session per command.
            name_factory: Produces new identifiers from a prefix.
        """

        self.settings = settings
        self.editor = editor
        self.output_channel = output_channel
        self.process_service = process_service or ProcessService(settings.python_path)
        self._session_factory = session_factory or self._create_session
        self._name_factory = name_factory

    def _create_session(self) -> RefactorSession:
        return RefactorSession(self.settings, self.process_service)

    def offset_at(self, document: TextDocument, position: Position) -> int:
        """Return the worker offset for ``position``.

        The worker counts every line break as one character, so for CRLF
        documents the ``\\r`` characters preceding the position are removed.
        """

        offset = document.offset_at(position)
        if document.eol == CRLF:
            offset -= windows_line_ending_count(document, offset)
        return offset

    async def add_import(
        self,
        document: TextDocument,
        name: str,
        parent: bool | str = False,
    ) -> RefactorOutcome | None:
        """Add ``import name`` (or ``from parent import name``) to ``document``.

        Args:
            document: Target document.
            name: Name to import.
            parent: Parent module; ``True`` asks the user for it.

        Returns:
            RefactorOutcome | None: The updated document, or ``None`` when the
            refactoring library is not installed.
        """

        prepared = await self._prepare(document)
        if prepared is None:
            return None
        parent_module = parent if isinstance(parent, str) else ""
        if parent is True:
            parent_module = await self.editor.request_input(PARENT_MODULE_PROMPT)
        command = AddImportCommand(
            file=str(prepared.path),
            text=prepared.text,
            name=name,
            parent=parent_module,
            indent_size=self.settings.refactor.indent_size,
        )
        try:
            diff = await self._request(command)
            if not diff:
                return RefactorOutcome(prepared)
            edits = get_text_edits_from_patch(prepared.text, diff)
            updated = await self.editor.apply_edits(prepared, edits)
        except PyAssistError as exc:
            self._report(ADD_IMPORT_BANNER, "Error in add import", exc, ADD_IMPORT_FAILED_MESSAGE)
            raise
        return RefactorOutcome(updated)

    async def extract_variable(self, document: TextDocument, selection: Range) -> RefactorOutcome | None:
        """Extract the expression in ``selection`` into a new variable."""

        return await self._extract(document, selection, NEW_VARIABLE_PREFIX, ExtractVariableCommand)

    async def extract_method(self, document: TextDocument, selection: Range) -> RefactorOutcome | None:
        """Extract the statements in ``selection`` into a new method."""

        return await self._extract(document, selection, NEW_METHOD_PREFIX, ExtractMethodCommand)

    async def _extract(
        self,
        document: TextDocument,
        selection: Range,
        prefix: str,
        command_type: type[ExtractVariableCommand] | type[ExtractMethodCommand],
    ) -> RefactorOutcome | None:
        prepared = await self._prepare(document)
        if prepared is None:
            return None
        new_name = self._name_factory(prefix)
        command = command_type(
            file=str(prepared.path),
            start=self.offset_at(prepared, selection.start),
            end=self.offset_at(prepared, selection.end),
            name=new_name,
            indent_size=self.settings.refactor.indent_size,
        )
        try:
            diff = await self._request(command)
            if not diff:
                return RefactorOutcome(prepared)
            edits = get_text_edits_from_patch(prepared.text, diff)
            updated = await self.editor.apply_edits(prepared, edits)
        except PyAssistError as exc:
            self._report(REFACTOR_BANNER, "Error in refactoring", exc, REFACTOR_FAILED_MESSAGE)
            raise

        if not edits:
            return RefactorOutcome(updated)
        first_changed = min(edit.range.start.line for edit in edits)
        position = find_name(updated, new_name, first_changed)
        if position is not None:
            await self.editor.jump_to(updated, position)
        return RefactorOutcome(updated, position)

    async def _prepare(self, document: TextDocument) -> TextDocument | None:
        if document.dirty:
            LOGGER.debug("Saving %s before refactoring", document.uri)
            document = await self.editor.save(document)
        module = self.settings.refactor.module
        if not await self.process_service.is_module_installed(module):
            self.editor.show_warning(f"Module {module} not installed")
            return None
        return document

    async def _request(self, command: RefactorCommand) -> str:
        async with self._session_factory() as session:
            result = await session.send(command)
        return result.diff

    def _report(self, banner: str, heading: str, error: PyAssistError, user_message: str) -> None:
        self.output_channel.banner(banner, closed=True)
        self.output_channel.append_line(f"{heading}:\n{error}")
        self.output_channel.append_line("")
        if isinstance(error, RefactorDependencyMissingError):
            module = self.settings.refactor.module
            self.editor.show_error(f"Module {module} not installed in {self.settings.python_path}; install it first.")
            return
        self.editor.show_error(user_message)


def find_name(document: TextDocument, name: str, start_line: int) -> Position | None:
    """Return the first position of ``name`` at or after ``start_line``."""

    for line_number in range(max(start_line, 0), document.line_count):
        column = document.get_line(line_number).find(name)
        if column >= 0:
            return Position.create(line_number, column)
    return None


__all__ = [
    "ADD_IMPORT_FAILED_MESSAGE",
    "EditorHost",
    "FileEditorHost",
    "REFACTOR_FAILED_MESSAGE",
    "RefactorOperations",
    "RefactorOutcome",
    "default_name_factory",
    "find_name",
]
